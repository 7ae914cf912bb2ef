"""
OTP Issuance and Verification Service
Owns the per-phone OTP record and all time-based abuse rules
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy.orm import Session

from ..config import Settings
from ..database import upsert_statement
from ..models.otp import OtpRecord, OTP_LENGTH
from ..utils.errors import AppError, ErrorKind
from ..utils.helpers import utc_now, ensure_utc, generate_otp, mask_phone

logger = logging.getLogger(__name__)


@dataclass
class IssuedCode:
    phone_number: str
    code: str
    expires_at: datetime


class OtpService:
    """
    Every state transition (block reset, issuance, blocking) is a single
    conditional UPDATE so that concurrent requests for the same phone number
    cannot both act on a stale read.
    """

    def __init__(self, db: Session, config: Settings, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.config = config
        self.clock = clock
        self.expire_delta = timedelta(minutes=config.OTP_EXPIRE_MINUTES)
        self.block_delta = timedelta(minutes=config.OTP_BLOCK_MINUTES)

    def request_code(self, phone_number: str) -> IssuedCode:
        now = self.clock()

        self._ensure_record(phone_number)

        # Lift an elapsed block and start a fresh attempt window
        self._query(phone_number).filter(
            OtpRecord.is_blocked == True,
            OtpRecord.blocked_until <= now
        ).update(
            {
                OtpRecord.is_blocked: False,
                OtpRecord.blocked_until: None,
                OtpRecord.attempts: 0
            },
            synchronize_session=False
        )
        self.db.commit()

        record = self._query(phone_number).first()
        if record.is_blocked:
            raise self._blocked_error(record, now)

        code = generate_otp(OTP_LENGTH)
        if not code or len(code) != OTP_LENGTH or not code.isdigit():
            raise AppError(
                ErrorKind.INTERNAL,
                "Something went wrong while generating the OTP code"
            )

        expires_at = now + self.expire_delta
        issued = self._query(phone_number).filter(
            OtpRecord.is_blocked == False,
            OtpRecord.attempts < self.config.OTP_MAX_ATTEMPTS
        ).update(
            {
                OtpRecord.code: code,
                OtpRecord.expires_at: expires_at,
                OtpRecord.attempts: OtpRecord.attempts + 1,
                OtpRecord.last_request_time: now
            },
            synchronize_session=False
        )
        self.db.commit()

        if issued:
            logger.info(f"OTP issued for {mask_phone(phone_number)}")
            return IssuedCode(phone_number=phone_number, code=code, expires_at=expires_at)

        # Attempt window exhausted: block the number
        blocked = self._query(phone_number).filter(
            OtpRecord.is_blocked == False,
            OtpRecord.attempts >= self.config.OTP_MAX_ATTEMPTS
        ).update(
            {
                OtpRecord.is_blocked: True,
                OtpRecord.blocked_until: now + self.block_delta
            },
            synchronize_session=False
        )
        self.db.commit()

        if blocked:
            logger.warning(f"OTP requests blocked for {mask_phone(phone_number)}")
            raise AppError(
                ErrorKind.RATE_LIMITED,
                f"Too many attempts. Try again in {self.config.OTP_BLOCK_MINUTES} minutes.",
                details={"remaining_minutes": self.config.OTP_BLOCK_MINUTES}
            )

        # A concurrent request blocked the number first
        record = self._query(phone_number).first()
        raise self._blocked_error(record, now)

    def verify_code(self, phone_number: str, submitted_code: str) -> None:
        now = self.clock()
        record = self._query(phone_number).first()

        if record is None or record.code is None:
            raise AppError(ErrorKind.NOT_FOUND, "OTP record does not exist", status_code=400)

        if now > ensure_utc(record.expires_at):
            self._query(phone_number).delete(synchronize_session=False)
            self.db.commit()
            raise AppError(ErrorKind.EXPIRED, "OTP has expired")

        if submitted_code != record.code:
            raise AppError(ErrorKind.INVALID, "Invalid OTP")

        # Consume; a concurrent verify that already deleted the record wins
        consumed = self._query(phone_number).filter(
            OtpRecord.code == submitted_code
        ).delete(synchronize_session=False)
        self.db.commit()

        if not consumed:
            raise AppError(ErrorKind.NOT_FOUND, "OTP record does not exist", status_code=400)

        logger.info(f"OTP verified for {mask_phone(phone_number)}")

    def _query(self, phone_number: str):
        return self.db.query(OtpRecord).filter(OtpRecord.phone_number == phone_number)

    def _ensure_record(self, phone_number: str) -> None:
        stmt = upsert_statement(self.db, OtpRecord).values(
            phone_number=phone_number
        ).on_conflict_do_nothing(index_elements=["phone_number"])
        self.db.execute(stmt)
        self.db.commit()

    def _blocked_error(self, record: OtpRecord, now: datetime) -> AppError:
        blocked_until = ensure_utc(record.blocked_until) or now
        remaining = max(1, math.ceil((blocked_until - now).total_seconds() / 60))
        logger.info(f"OTP request rejected for {mask_phone(record.phone_number)}, blocked for {remaining} more minutes")
        return AppError(
            ErrorKind.RATE_LIMITED,
            f"Too many attempts. Please try again after {remaining} minutes.",
            details={"remaining_minutes": remaining}
        )
