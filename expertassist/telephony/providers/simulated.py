"""Simulated telephony provider

Used when no usable Twilio account is configured. Call identifiers encode
the minting time, and status is a pure function of the time elapsed since.
"""

import time
from datetime import datetime
from typing import Callable

import structlog

from expertassist.schemas.telephony import PlacedCall, ProviderCallStatus
from expertassist.telephony.providers.base import BaseTelephonyProvider

logger = structlog.get_logger()

SIMULATED_SID_PREFIX = "demo-call-"
DEFAULT_FROM_NUMBER = "+15551234567"
DEFAULT_TO_NUMBER = "+15559876543"

# (seconds elapsed, status) checked from the latest stage down
STATUS_PROGRESSION = [
    (30, "completed"),
    (15, "in-progress"),
    (5, "ringing"),
]


def is_simulated_sid(call_sid: str) -> bool:
    return call_sid.startswith(SIMULATED_SID_PREFIX)


class SimulatedProvider(BaseTelephonyProvider):
    """Provider that never leaves the process"""

    name = "simulated"

    def __init__(self, from_number: str = "", clock: Callable[[], float] = time.time):
        self.from_number = from_number or DEFAULT_FROM_NUMBER
        self.clock = clock
        self._destinations = {}
        self._last_minted_ms = 0

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    async def place_call(
        self,
        to_number: str,
        from_number: str,
        url: str,
        status_callback: str,
    ) -> PlacedCall:
        # Identifiers are unique per provider even within one millisecond
        minted_ms = max(self._now_ms(), self._last_minted_ms + 1)
        self._last_minted_ms = minted_ms
        call_sid = f"{SIMULATED_SID_PREFIX}{minted_ms}"
        self._destinations[call_sid] = to_number

        logger.info(
            "[DEMO MODE] Simulated outbound call",
            call_sid=call_sid,
            to_number=to_number,
            url=url,
        )

        return PlacedCall(
            call_sid=call_sid,
            status="queued",
            date_created=datetime.utcfromtimestamp(minted_ms / 1000),
            to=to_number,
            from_=from_number or self.from_number,
        )

    async def get_call_status(self, call_sid: str) -> ProviderCallStatus:
        try:
            minted_ms = int(call_sid[len(SIMULATED_SID_PREFIX):])
        except ValueError:
            minted_ms = self._now_ms()

        now_ms = self._now_ms()
        elapsed_seconds = max(now_ms - minted_ms, 0) / 1000

        status = "queued"
        for threshold, stage in STATUS_PROGRESSION:
            if elapsed_seconds > threshold:
                status = stage
                break

        completed = status == "completed"
        if completed:
            to_number = self._destinations.pop(call_sid, DEFAULT_TO_NUMBER)
        else:
            to_number = self._destinations.get(call_sid, DEFAULT_TO_NUMBER)

        return ProviderCallStatus(
            call_sid=call_sid,
            status=status,
            duration=str(int(elapsed_seconds)) if completed else "0",
            direction="outbound-api",
            from_=self.from_number,
            to=to_number,
            start_time=datetime.utcfromtimestamp(minted_ms / 1000),
            end_time=datetime.utcfromtimestamp(now_ms / 1000) if completed else None,
        )

    async def end_call(self, call_sid: str) -> None:
        self._destinations.pop(call_sid, None)
        logger.info("[DEMO MODE] Ending simulated call", call_sid=call_sid)
