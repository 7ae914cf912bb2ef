from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func

from ..database import Base

OTP_LENGTH = 6


class OtpRecord(Base):
    """One OTP challenge per phone number, upserted on every send."""

    __tablename__ = "otp_records"

    id = Column(Integer, primary_key=True, index=True)
    phone_number = Column(String(20), unique=True, nullable=False, index=True)
    code = Column(String(OTP_LENGTH), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    attempts = Column(Integer, nullable=False, default=0, server_default="0")
    is_blocked = Column(Boolean, nullable=False, default=False, server_default="0")
    blocked_until = Column(DateTime(timezone=True), nullable=True)
    last_request_time = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
