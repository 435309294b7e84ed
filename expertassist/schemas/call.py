"""Call schemas"""

from datetime import datetime
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from expertassist.models.call import CallStatus
from expertassist.schemas.expert import ExpertSummary


class CallInitiateRequest(BaseModel):
    """Initiate call request; goal and expertId are checked by the endpoint"""
    goal: Optional[str] = None
    expert_id: Optional[UUID] = None
    context_links: List[str] = []
    context_text: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        str_strip_whitespace = True


class CallResponse(BaseModel):
    """Call detail response"""
    id: UUID
    goal: str
    user_id: UUID
    expert_id: Optional[UUID]
    status: CallStatus
    recording_url: Optional[str]
    transcript: Optional[str]
    summary: Optional[str]
    failure_reason: Optional[str]
    context_links: List[str] = []
    context_text: Optional[str]
    duration_seconds: Optional[int]
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime]

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class CallListItem(CallResponse):
    """Call with its expert joined in"""
    expert: Optional[ExpertSummary] = None


class TranscriptData(BaseModel):
    call_id: UUID
    transcript: str

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class RecordingData(BaseModel):
    call_id: UUID
    recording_url: str

    class Config:
        alias_generator = to_camel
        populate_by_name = True
