"""
Authentication Service
Composes OTP issuance, user upsert and token issuance into the public auth flows
"""

import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from ..database import upsert_statement
from ..models.user import User
from ..schemas.auth import TokenPairResponse, VerifyOtpResponse
from .otp_service import OtpService
from .sms_service import SmsGateway, SmsDeliveryError
from .token_service import TokenService
from ..utils.helpers import mask_phone

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(
        self,
        db: Session,
        otp_service: OtpService,
        token_service: TokenService,
        sms_gateway: SmsGateway
    ):
        self.db = db
        self.otp_service = otp_service
        self.token_service = token_service
        self.sms_gateway = sms_gateway

    async def send_otp(self, phone_number: str) -> None:
        issued = self.otp_service.request_code(phone_number)

        # Delivery is fire-and-forget: the code counts as issued either way
        try:
            await self.sms_gateway.send_otp(phone_number, issued.code)
        except SmsDeliveryError as e:
            logger.warning(f"OTP delivery to {mask_phone(phone_number)} failed: {e}")

    def verify_otp(self, phone_number: str, code: str) -> Dict:
        self.otp_service.verify_code(phone_number, code)

        user, is_new_user = self.find_or_create_user(phone_number)
        pair = self.token_service.issue_pair(user)

        return VerifyOtpResponse(
            accessToken=pair.access_token,
            refreshToken=pair.refresh_token,
            role=user.role,
            isNewUser=is_new_user
        ).model_dump()

    def refresh(self, refresh_token: str) -> Dict:
        pair = self.token_service.rotate(refresh_token)
        return TokenPairResponse(
            accessToken=pair.access_token,
            refreshToken=pair.refresh_token
        ).model_dump()

    def logout(self, refresh_token: Optional[str], user_id: int) -> None:
        self.token_service.revoke(refresh_token, user_id)

    def find_or_create_user(self, phone_number: str):
        """Atomic find-or-create keyed on the unique phone number"""
        stmt = upsert_statement(self.db, User).values(
            phone_number=phone_number,
            role="customer"
        ).on_conflict_do_nothing(index_elements=["phone_number"])
        result = self.db.execute(stmt)
        self.db.commit()

        is_new_user = result.rowcount == 1
        user = self.db.query(User).filter(User.phone_number == phone_number).first()

        if is_new_user:
            logger.info(f"Created user {user.id} for {mask_phone(phone_number)}")
        return user, is_new_user
