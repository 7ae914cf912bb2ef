"""
Models package - Import all SQLAlchemy models here
"""

from .user import User, USER_ROLES
from .otp import OtpRecord
from .token import TokenRecord

__all__ = [
    "User",
    "USER_ROLES",
    "OtpRecord",
    "TokenRecord"
]
