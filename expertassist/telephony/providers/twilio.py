"""Twilio telephony provider"""

from twilio.http.async_http_client import AsyncTwilioHttpClient
from twilio.rest import Client as TwilioClient
import structlog

from expertassist.schemas.telephony import PlacedCall, ProviderCallStatus
from expertassist.telephony.providers.base import BaseTelephonyProvider

logger = structlog.get_logger()

STATUS_CALLBACK_EVENTS = ["initiated", "ringing", "answered", "completed"]


class TwilioProvider(BaseTelephonyProvider):
    """Twilio Programmable Voice implementation"""

    name = "twilio"

    def __init__(self, account_sid: str, auth_token: str):
        self.client = TwilioClient(
            account_sid,
            auth_token,
            http_client=AsyncTwilioHttpClient(),
        )

    async def place_call(
        self,
        to_number: str,
        from_number: str,
        url: str,
        status_callback: str,
    ) -> PlacedCall:
        logger.info("Placing Twilio call", to_number=to_number, url=url)

        call = await self.client.calls.create_async(
            to=to_number,
            from_=from_number,
            url=url,
            status_callback=status_callback,
            status_callback_event=STATUS_CALLBACK_EVENTS,
            status_callback_method="POST",
            record=True,
        )

        return PlacedCall(
            call_sid=call.sid,
            status=call.status,
            date_created=call.date_created,
            to=call.to,
            from_=call.from_,
        )

    async def get_call_status(self, call_sid: str) -> ProviderCallStatus:
        call = await self.client.calls(call_sid).fetch_async()
        return ProviderCallStatus(
            call_sid=call.sid,
            status=call.status,
            duration=call.duration,
            direction=call.direction,
            from_=call.from_,
            to=call.to,
            start_time=call.start_time,
            end_time=call.end_time,
        )

    async def end_call(self, call_sid: str) -> None:
        await self.client.calls(call_sid).update_async(status="completed")
        logger.info("Twilio call ended", call_sid=call_sid)
