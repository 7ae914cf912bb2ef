import re

PHONE_PATTERN = re.compile(r'^\+?\d{10,15}$')


def normalize_phone_number(phone_number: str) -> str:
    """
    Strip formatting from a phone number and validate it.

    Handles formats like:
    - "99999 99999"  -> "9999999999"
    - "+91-99999-99999" -> "+919999999999"

    Raises ValueError when the result is not 10-15 digits (optional leading +).
    """
    if phone_number is None:
        raise ValueError('Phone number is required')

    value = phone_number.strip()
    has_plus = value.startswith('+')
    digits = re.sub(r'\D', '', value)
    normalized = f'+{digits}' if has_plus else digits

    if not PHONE_PATTERN.match(normalized):
        raise ValueError('Phone number must contain 10 to 15 digits')
    return normalized


def format_mobile_e164(phone_number: str, default_country_code: str) -> str:
    """
    Convert a stored phone number to E.164 for the SMS gateway.

    - +919999999999 -> +919999999999
    - 9999999999    -> +919999999999 (default country code 91)
    - 09999999999   -> +919999999999
    """
    if phone_number.startswith('+'):
        return phone_number

    digits = re.sub(r'\D', '', phone_number).lstrip('0')
    if len(digits) > 10 and digits.startswith(default_country_code):
        return f'+{digits}'
    return f'+{default_country_code}{digits}'
