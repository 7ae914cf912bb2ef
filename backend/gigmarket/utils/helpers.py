import secrets
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; everything stored here is UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def generate_otp(length: int = 6) -> str:
    """Generate a fixed-width numeric OTP code (leading zeros allowed)"""
    return f"{secrets.randbelow(10 ** length):0{length}d}"


def mask_phone(phone_number: str) -> str:
    """Mask all but the last 4 digits for log output"""
    if not phone_number or len(phone_number) <= 4:
        return "****"
    return "*" * (len(phone_number) - 4) + phone_number[-4:]
