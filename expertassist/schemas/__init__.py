"""Pydantic schemas for request/response validation"""

from expertassist.schemas.common import DataResponse, ListResponse, ErrorResponse
from expertassist.schemas.auth import (
    Token,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    UserResponse,
)
from expertassist.schemas.expert import (
    ExpertCreate,
    ExpertUpdate,
    ExpertResponse,
    ExpertSummary,
)
from expertassist.schemas.call import (
    CallInitiateRequest,
    CallResponse,
    CallListItem,
    TranscriptData,
    RecordingData,
)
from expertassist.schemas.telephony import PlacedCall, ProviderCallStatus, DemoStatus
from expertassist.schemas.llm import LLMMessage, LLMGenerateResponse, UsageStats

__all__ = [
    "DataResponse",
    "ListResponse",
    "ErrorResponse",
    "Token",
    "LoginRequest",
    "RefreshRequest",
    "RegisterRequest",
    "UserResponse",
    "ExpertCreate",
    "ExpertUpdate",
    "ExpertResponse",
    "ExpertSummary",
    "CallInitiateRequest",
    "CallResponse",
    "CallListItem",
    "TranscriptData",
    "RecordingData",
    "PlacedCall",
    "ProviderCallStatus",
    "DemoStatus",
    "LLMMessage",
    "LLMGenerateResponse",
    "UsageStats",
]
