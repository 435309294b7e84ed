"""Expert schemas"""

import re
from datetime import datetime
from typing import Annotated, Optional
from uuid import UUID
from pydantic import AfterValidator, BaseModel, Field
from pydantic.alias_generators import to_camel

from expertassist.models.expert import ExpertType

PHONE_PATTERN = re.compile(r"^[+]?[(]?[0-9]{3}[)]?[-\s.]?[0-9]{3}[-\s.]?[0-9]{4,6}$")


def validate_phone_number(value: str) -> str:
    value = value.strip()
    if not PHONE_PATTERN.match(value):
        raise ValueError("Please provide a valid phone number")
    return value


PhoneNumber = Annotated[str, AfterValidator(validate_phone_number)]


class ExpertCreate(BaseModel):
    """Create expert request"""
    name: str = Field(min_length=1, max_length=255)
    phone_number: PhoneNumber
    expert_type: ExpertType = ExpertType.OTHER
    company: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        str_strip_whitespace = True


class ExpertUpdate(BaseModel):
    """Update expert request; omitted fields are left unchanged"""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    phone_number: Optional[PhoneNumber] = None
    expert_type: Optional[ExpertType] = None
    company: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        str_strip_whitespace = True


class ExpertResponse(BaseModel):
    """Expert response"""
    id: UUID
    user_id: UUID
    name: str
    phone_number: str
    expert_type: ExpertType
    company: Optional[str]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class ExpertSummary(BaseModel):
    """Expert fields joined into call listings"""
    id: UUID
    name: str
    phone_number: str
    expert_type: ExpertType

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True
