"""
FastAPI dependency providers for the service layer.

Services are built per request around the request's DB session and the
process settings; tests swap them out through app.dependency_overrides.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .services.auth_service import AuthService
from .services.otp_service import OtpService
from .services.sms_service import SmsGateway
from .services.token_service import TokenService
from .utils.helpers import utc_now


def get_clock():
    return utc_now


def get_sms_gateway() -> SmsGateway:
    return SmsGateway(settings)


def get_otp_service(db: Session = Depends(get_db), clock=Depends(get_clock)) -> OtpService:
    return OtpService(db, settings, clock)


def get_token_service(db: Session = Depends(get_db), clock=Depends(get_clock)) -> TokenService:
    return TokenService(db, settings, clock)


def get_auth_service(
    db: Session = Depends(get_db),
    otp_service: OtpService = Depends(get_otp_service),
    token_service: TokenService = Depends(get_token_service),
    sms_gateway: SmsGateway = Depends(get_sms_gateway)
) -> AuthService:
    return AuthService(db, otp_service, token_service, sms_gateway)
