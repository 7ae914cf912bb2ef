from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Gig Marketplace API"
    APP_ENV: str = "development"
    DEBUG: bool = True
    ENABLE_API_DOCS: bool = True
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str

    # Tokens - secrets and lifetimes have no defaults, the app must not boot without them
    ACCESS_TOKEN_SECRET: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int
    REFRESH_TOKEN_SECRET: str
    REFRESH_TOKEN_EXPIRE_DAYS: int
    JWT_ALGORITHM: str = "HS512"
    REFRESH_TOKEN_RECORD_DAYS: int = 7

    # OTP policy
    OTP_EXPIRE_MINUTES: int = 10
    OTP_MAX_ATTEMPTS: int = 3
    OTP_BLOCK_MINUTES: int = 10

    # Rate limiting (slowapi)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    OTP_SEND_RATE_LIMIT: str = "5/minute"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @property
    def origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    # SMS gateway
    SMS_API_URL: str = ""
    SMS_API_KEY: str = ""
    SMS_SENDER_ID: str = "GIGMKT"
    SMS_DEFAULT_COUNTRY_CODE: str = "91"
    SMS_TIMEOUT_SECONDS: int = 10

    @property
    def sms_configured(self) -> bool:
        return bool(self.SMS_API_URL and self.SMS_API_KEY)

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"


# Create settings instance
settings = Settings()
