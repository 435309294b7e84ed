"""Base telephony provider interface"""

from abc import ABC, abstractmethod

from expertassist.schemas.telephony import PlacedCall, ProviderCallStatus


class BaseTelephonyProvider(ABC):
    """Abstract base class for telephony providers"""

    name: str = "base"

    @abstractmethod
    async def place_call(
        self,
        to_number: str,
        from_number: str,
        url: str,
        status_callback: str,
    ) -> PlacedCall:
        """Place an outbound call; ``url`` is fetched when the callee answers"""
        pass

    @abstractmethod
    async def get_call_status(self, call_sid: str) -> ProviderCallStatus:
        """Fetch the provider's current view of a call"""
        pass

    @abstractmethod
    async def end_call(self, call_sid: str) -> None:
        """Hang up an active call"""
        pass
