"""
Token Issuance Service
Mints HS512 access/refresh pairs and keeps one revocable refresh record per user
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError
from sqlalchemy.orm import Session

from ..config import Settings
from ..database import upsert_statement
from ..models.token import TokenRecord
from ..models.user import User
from ..utils.errors import AppError, ErrorKind
from ..utils.helpers import utc_now, ensure_utc

logger = logging.getLogger(__name__)


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str


class TokenService:
    def __init__(self, db: Session, config: Settings, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.config = config
        self.clock = clock
        self.algorithm = config.JWT_ALGORITHM
        self.access_delta = timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
        self.refresh_delta = timedelta(days=config.REFRESH_TOKEN_EXPIRE_DAYS)
        self.record_delta = timedelta(days=config.REFRESH_TOKEN_RECORD_DAYS)

    # ------------------------------------------------------------------
    # Signing
    # ------------------------------------------------------------------
    def _sign(self, user: User, secret: str, lifetime: timedelta) -> str:
        now = self.clock()
        payload = {
            "id": user.id,
            "role": user.role,
            "iat": int(now.timestamp()),
            "exp": int((now + lifetime).timestamp()),
            # Two pairs minted within the same second must still differ
            "jti": uuid.uuid4().hex
        }
        try:
            return jwt.encode(payload, secret, algorithm=self.algorithm)
        except JWTError as e:
            raise AppError(ErrorKind.INTERNAL, f"Failed to sign token: {str(e)}")

    def create_access_token(self, user: User) -> str:
        return self._sign(user, self.config.ACCESS_TOKEN_SECRET, self.access_delta)

    def create_refresh_token(self, user: User) -> str:
        return self._sign(user, self.config.REFRESH_TOKEN_SECRET, self.refresh_delta)

    def decode_access_token(self, token: str) -> dict:
        """Verify signature and expiry of an access token"""
        try:
            return jwt.decode(token, self.config.ACCESS_TOKEN_SECRET, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise AppError(ErrorKind.UNAUTHORIZED, "Token has expired! Please log in again.")
        except JWTError:
            raise AppError(ErrorKind.UNAUTHORIZED, "Invalid token!")
        except Exception as e:
            logger.error(f"Unexpected access token verification failure: {e}")
            raise AppError(ErrorKind.INTERNAL, "Something went wrong with token verification")

    def decode_refresh_token(self, token: str) -> dict:
        try:
            return jwt.decode(token, self.config.REFRESH_TOKEN_SECRET, algorithms=[self.algorithm])
        except JWTError:
            raise AppError(ErrorKind.FORBIDDEN, "Invalid refresh token")

    # ------------------------------------------------------------------
    # Pair lifecycle
    # ------------------------------------------------------------------
    def issue_pair(self, user: User) -> TokenPair:
        pair = TokenPair(
            access_token=self.create_access_token(user),
            refresh_token=self.create_refresh_token(user)
        )

        expires = self.clock() + self.record_delta
        stmt = upsert_statement(self.db, TokenRecord).values(
            user_id=user.id,
            token=pair.refresh_token,
            expires=expires,
            blacklisted=False
        )
        # A previous record for the user (blacklisted or not) is overwritten
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id"],
            set_={
                "token": stmt.excluded.token,
                "expires": stmt.excluded.expires,
                "blacklisted": False,
                "updated_at": self.clock()
            }
        )
        self.db.execute(stmt)
        self.db.commit()

        return pair

    def rotate(self, old_refresh_token: str) -> TokenPair:
        now = self.clock()
        record = self.db.query(TokenRecord).filter(
            TokenRecord.token == old_refresh_token
        ).first()

        if record is None or record.blacklisted or ensure_utc(record.expires) < now:
            logger.info("Refresh rejected: token record missing, blacklisted or expired")
            raise AppError(ErrorKind.UNAUTHORIZED, "Invalid or expired token")

        decoded = self.decode_refresh_token(old_refresh_token)

        user = self.db.query(User).filter(User.id == decoded.get("id")).first()
        if user is None:
            raise AppError(ErrorKind.NOT_FOUND, "User not found")

        pair = TokenPair(
            access_token=self.create_access_token(user),
            refresh_token=self.create_refresh_token(user)
        )

        # Replace the stored token only if it is still the one presented,
        # which invalidates the old refresh token
        rotated = self.db.query(TokenRecord).filter(
            TokenRecord.user_id == user.id,
            TokenRecord.token == old_refresh_token,
            TokenRecord.blacklisted == False
        ).update(
            {
                TokenRecord.token: pair.refresh_token,
                TokenRecord.expires: now + self.record_delta
            },
            synchronize_session=False
        )
        self.db.commit()

        if not rotated:
            logger.info(f"Refresh rejected for user {user.id}: token was rotated or revoked concurrently")
            raise AppError(ErrorKind.UNAUTHORIZED, "Invalid or expired token")

        logger.info(f"Refresh token rotated for user {user.id}")
        return pair

    def revoke(self, refresh_token: Optional[str], user_id: int) -> None:
        if not refresh_token:
            raise AppError(ErrorKind.BAD_REQUEST, "Refresh token is required")

        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise AppError(ErrorKind.NOT_FOUND, "User not found")

        # Only the caller's own refresh token can be revoked
        revoked = self.db.query(TokenRecord).filter(
            TokenRecord.token == refresh_token,
            TokenRecord.user_id == user_id
        ).update(
            {TokenRecord.blacklisted: True},
            synchronize_session=False
        )
        self.db.commit()

        if revoked:
            logger.info(f"Refresh token revoked for user {user_id}")
        else:
            logger.warning(f"Logout by user {user_id} presented a refresh token that is not its own live token")
