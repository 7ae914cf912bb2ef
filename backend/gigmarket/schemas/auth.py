from pydantic import BaseModel, validator
from typing import Optional

from ..utils.validators import normalize_phone_number


# Send OTP
class SendOtpRequest(BaseModel):
    phoneNumber: str

    @validator('phoneNumber')
    def validate_phone_number(cls, v):
        return normalize_phone_number(v)


# Verify OTP
class VerifyOtpRequest(BaseModel):
    phoneNumber: str
    otp: str

    @validator('phoneNumber')
    def validate_phone_number(cls, v):
        return normalize_phone_number(v)

    @validator('otp')
    def validate_otp(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('OTP is required')
        return v


# Refresh token
class RefreshTokenRequest(BaseModel):
    refreshToken: str

    @validator('refreshToken')
    def validate_refresh_token(cls, v):
        if not v or not v.strip():
            raise ValueError('Refresh token is required')
        return v.strip()


# Logout - a missing token is reported by the service as a 400
class LogoutRequest(BaseModel):
    refreshToken: Optional[str] = None


class TokenPairResponse(BaseModel):
    accessToken: str
    refreshToken: str


class VerifyOtpResponse(TokenPairResponse):
    role: str
    isNewUser: bool
