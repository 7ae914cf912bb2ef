from fastapi import APIRouter, Depends, Request

from ..config import settings
from ..dependencies import get_auth_service
from ..limiter import limiter
from ..models.user import User
from ..schemas.auth import SendOtpRequest, VerifyOtpRequest, RefreshTokenRequest, LogoutRequest
from ..services.auth_service import AuthService
from ..utils.responses import api_response
from ..utils.security import get_current_user

router = APIRouter(prefix="/auth", tags=["Authentication"])


# Send OTP to a phone number (creates the OTP record on first use)
@router.post("/send-otp")
@limiter.limit(settings.OTP_SEND_RATE_LIMIT)
async def send_otp(
    request: Request,
    body: SendOtpRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    await auth_service.send_otp(body.phoneNumber)
    return api_response(message="OTP sent successfully")


# Verify OTP, create the user on first login and issue a token pair
@router.post("/verify-otp")
async def verify_otp(
    body: VerifyOtpRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    data = auth_service.verify_otp(body.phoneNumber, body.otp)
    return api_response(data=data, message="OTP verified successfully")


# Exchange a refresh token for a new pair
@router.post("/refresh-token")
async def refresh_token(
    body: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    data = auth_service.refresh(body.refreshToken)
    return api_response(data=data, message="Access token refreshed successfully")


# Blacklist the caller's refresh token
@router.post("/logout")
async def logout(
    body: LogoutRequest,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
):
    auth_service.logout(body.refreshToken, current_user.id)
    return api_response(message="Logged out successfully")
