"""
Shared Rate Limiter Instance

Imported by main.py (app state + exception handler) and by the routes that
carry per-IP limits, without causing circular imports.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000/hour"],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED
)
