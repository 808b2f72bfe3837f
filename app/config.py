"""
Application settings for the privacy request service.
"""
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./data/privacy.db"

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # File storage
    DATA_DIR: str = "./data"

    # Site
    SITE_NAME: str = "Privacy Center"
    SITE_URL: str = "http://localhost:8000/"
    # 0 = off, 1 = redirect, 2 = entire site over https
    FORCE_SSL: int = Field(default=0, ge=0, le=2)

    # Privacy component parameters
    PRIVACY_NOTIFY_DAYS: int = 14
    PRIVACY_ROLLBACK_ON_MAIL_FAILURE: bool = False

    # Confirmation token hashing
    TOKEN_HASH_ROUNDS: int = 12

    # Mail
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 25
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = False
    SMTP_TIMEOUT: float = 10.0
    MAIL_FROM: str = "no-reply@localhost"
    MAIL_FROM_NAME: str = "Privacy Center"
    # Raise MailTransportError on failure instead of returning False
    MAIL_THROW_ERRORS: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True
        validate_assignment = True


settings = Settings()
