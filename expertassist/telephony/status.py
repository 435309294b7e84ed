"""Translation between provider call statuses and CallStatus"""

from expertassist.models.call import CallStatus

PROVIDER_STATUS_MAP = {
    "queued": CallStatus.DIALING,
    "initiated": CallStatus.DIALING,
    "ringing": CallStatus.DIALING,
    "answered": CallStatus.CONNECTED,
    "in-progress": CallStatus.IN_PROGRESS,
    "completed": CallStatus.COMPLETED,
    "busy": CallStatus.FAILED,
    "no-answer": CallStatus.FAILED,
    "failed": CallStatus.FAILED,
    "canceled": CallStatus.FAILED,
}

PROVIDER_FAILURE_STATUSES = frozenset(
    status for status, mapped in PROVIDER_STATUS_MAP.items() if mapped == CallStatus.FAILED
)


def translate_provider_status(provider_status: str) -> CallStatus:
    """Map a provider status (queued, ringing, in-progress, ...) to a CallStatus"""
    try:
        return PROVIDER_STATUS_MAP[provider_status.lower()]
    except KeyError:
        raise ValueError(f"Unknown provider call status: {provider_status}")
