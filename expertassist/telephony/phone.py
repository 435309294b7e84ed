"""Phone number normalization"""

import re

NON_DIGITS = re.compile(r"\D")


def normalize_phone_number(phone_number: str, country_code: str = "1") -> str:
    """
    Normalize a phone number to E.164 before dialing.

    Numbers already starting with ``+`` are passed through unchanged. A
    10-digit number is treated as domestic; an 11-digit number starting with
    the country code only needs the ``+``.
    """
    phone_number = phone_number.strip()
    if phone_number.startswith("+"):
        return phone_number

    digits = NON_DIGITS.sub("", phone_number)

    if len(digits) == 10:
        return f"+{country_code}{digits}"
    if len(digits) == 11 and digits.startswith(country_code):
        return f"+{digits}"

    # Anything else is assumed domestic
    return f"+{country_code}{digits}"
