"""Database models"""

from expertassist.models.user import User
from expertassist.models.expert import Expert, ExpertType
from expertassist.models.call import Call, CallStatus, TERMINAL_STATUSES, NON_TERMINAL_STATUSES

__all__ = [
    "User",
    "Expert",
    "ExpertType",
    "Call",
    "CallStatus",
    "TERMINAL_STATUSES",
    "NON_TERMINAL_STATUSES",
]
