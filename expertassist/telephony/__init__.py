"""Telephony gateway module"""

from expertassist.telephony.gateway import TelephonyGateway, simulation_reason
from expertassist.telephony.phone import normalize_phone_number
from expertassist.telephony.status import translate_provider_status

__all__ = [
    "TelephonyGateway",
    "simulation_reason",
    "normalize_phone_number",
    "translate_provider_status",
]
