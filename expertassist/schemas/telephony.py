"""Telephony provider schemas"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class PlacedCall(BaseModel):
    """Provider response to an outbound call request"""
    call_sid: str
    status: str  # provider vocabulary: queued, ringing, ...
    date_created: Optional[datetime] = None
    to: str
    from_: str = Field(alias="from")

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class ProviderCallStatus(BaseModel):
    """Provider status document for a placed call"""
    call_sid: str
    status: str
    duration: Optional[str] = None
    direction: Optional[str] = None
    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class DemoStatus(BaseModel):
    """Whether calls are placed for real or simulated"""
    demo_mode: bool
    twilio_configured: bool
    valid_account_sid: bool
    simulation_mode: bool

    class Config:
        alias_generator = to_camel
        populate_by_name = True
