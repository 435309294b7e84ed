"""Telephony provider implementations"""

from expertassist.telephony.providers.base import BaseTelephonyProvider
from expertassist.telephony.providers.twilio import TwilioProvider
from expertassist.telephony.providers.simulated import SimulatedProvider

__all__ = [
    "BaseTelephonyProvider",
    "TwilioProvider",
    "SimulatedProvider",
]
