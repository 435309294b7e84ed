"""Call lifecycle errors"""

from uuid import UUID


class CallNotFoundError(Exception):
    """A call, or the expert or user it references, does not exist"""

    def __init__(self, message: str, call_id: UUID = None):
        super().__init__(message)
        self.call_id = call_id


class LifecycleConflictError(Exception):
    """The call is not in the status an operation requires"""

    def __init__(self, call_id: UUID, status):
        super().__init__(f"Call {call_id} is {status.value}, not pending")
        self.call_id = call_id
        self.status = status


class CallAlreadyFinishedError(Exception):
    """The call already reached a terminal status"""

    def __init__(self, call_id: UUID, status):
        super().__init__(f"Call {call_id} has already finished ({status.value})")
        self.call_id = call_id
        self.status = status


class ExternalServiceTimeoutError(Exception):
    """A telephony or generator call did not answer in time"""
