"""Telephony gateway

Routes call requests to Twilio, or to the simulated provider when Twilio is
not usable. Missing or invalid credentials never raise past this boundary.
"""

from typing import Optional

import structlog

from expertassist.config import Settings
from expertassist.schemas.telephony import PlacedCall, ProviderCallStatus
from expertassist.telephony.phone import normalize_phone_number
from expertassist.telephony.providers.base import BaseTelephonyProvider
from expertassist.telephony.providers.simulated import SimulatedProvider, is_simulated_sid
from expertassist.telephony.providers.twilio import TwilioProvider

logger = structlog.get_logger()

# Twilio cannot reach localhost, so real calls get the public demo TwiML instead
TWILIO_DEMO_VOICE_URL = "https://demo.twilio.com/welcome/voice/"


def simulation_reason(settings: Settings) -> Optional[str]:
    """Why Twilio cannot be used, or None when it can"""
    if settings.demo_mode:
        return "DEMO_MODE is enabled"
    if not settings.twilio_configured:
        return "Missing Twilio credentials"
    if not settings.twilio_account_sid_valid:
        return "Invalid Account SID format (must start with AC)"
    return None


class TelephonyGateway:
    """Single entry point for placing and inspecting outbound calls"""

    def __init__(
        self,
        settings: Settings,
        provider: Optional[BaseTelephonyProvider] = None,
        simulator: Optional[SimulatedProvider] = None,
    ):
        self.from_number = settings.twilio_phone_number
        self.country_code = settings.default_country_code
        self.simulator = simulator or SimulatedProvider(from_number=settings.twilio_phone_number)

        if provider is None:
            provider = self._build_provider(settings)
        self.provider = provider

    def _build_provider(self, settings: Settings) -> BaseTelephonyProvider:
        reason = simulation_reason(settings)
        if reason:
            logger.info("Telephony gateway running in simulation mode", reason=reason)
            return self.simulator

        try:
            provider = TwilioProvider(settings.twilio_account_sid, settings.twilio_auth_token)
        except Exception as e:
            logger.error(
                "Failed to initialize Twilio client, falling back to simulation mode",
                error=str(e),
            )
            return self.simulator

        logger.info("Telephony gateway initialized with Twilio credentials")
        return provider

    @property
    def simulation_mode(self) -> bool:
        return self.provider is self.simulator

    async def place_call(
        self,
        phone_number: str,
        callback_url: str,
        status_callback_url: str,
    ) -> PlacedCall:
        """Dial ``phone_number``; the provider fetches ``callback_url`` on answer"""
        to_number = normalize_phone_number(phone_number, self.country_code)

        if not self.simulation_mode and "localhost" in callback_url:
            logger.warning(
                "Using localhost for Twilio webhook, substituting the public demo URL",
                callback_url=callback_url,
            )
            callback_url = TWILIO_DEMO_VOICE_URL
            status_callback_url = TWILIO_DEMO_VOICE_URL

        return await self.provider.place_call(
            to_number=to_number,
            from_number=self.from_number,
            url=callback_url,
            status_callback=status_callback_url,
        )

    async def get_call_status(self, call_sid: str) -> ProviderCallStatus:
        if is_simulated_sid(call_sid):
            return await self.simulator.get_call_status(call_sid)
        return await self.provider.get_call_status(call_sid)

    async def end_call(self, call_sid: str) -> None:
        if is_simulated_sid(call_sid):
            await self.simulator.end_call(call_sid)
            return
        await self.provider.end_call(call_sid)
