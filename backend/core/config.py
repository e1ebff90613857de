from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    # App settings
    APP_NAME: str = "IB Partner Dashboard API"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    SERVICE_NAME: str = "ib-partner-backend"

    # CORS settings
    ALLOWED_ORIGINS: List[str] = [
        "https://nommia-ib-dashboard.onrender.com",
        "http://localhost:5173",
    ]

    # Database settings; an empty URL disables payout and 2FA persistence
    DATABASE_URL: str = ""
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE: int = 300
    DB_POOL_TIMEOUT: int = 10
    DB_PRE_PING: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_TTL_DAYS: int = 7
    LOG_TO_FILE: bool = True

    # SMTP / Email settings
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 465
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_FROM_EMAIL: Optional[str] = None
    SMTP_FROM_NAME: str = "Nommia"
    SMTP_USE_TLS: bool = True
    SMTP_USE_SSL: bool = True
    SMTP_TIMEOUT: int = 15
    SMTP_DEBUG: bool = False

    # Outbound email retry policy
    EMAIL_MAX_ATTEMPTS: int = 3
    EMAIL_BACKOFF_SECONDS: float = 1.0

    # One-time passcodes
    OTP_TTL_SECONDS: int = 600

    # TOTP two-factor authentication
    TOTP_ISSUER: str = "Nommia"
    TOTP_VALID_WINDOW: int = 2
    QR_CODE_BASE_URL: str = "https://api.qrserver.com/v1/create-qr-code/?size=200x200&data="

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

# Create settings instance
settings = Settings()

if settings.EMAIL_MAX_ATTEMPTS < 1:
    raise ValueError("EMAIL_MAX_ATTEMPTS must be at least 1")

if settings.OTP_TTL_SECONDS <= 0:
    raise ValueError("OTP_TTL_SECONDS must be positive")
