import secrets
import os
from typing import Any, List, Optional, Union

from pydantic import validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "CBDRA"
    API_V1_STR: str = "/api"

    # Security
    SECRET_KEY: str = secrets.token_urlsafe(32)
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    JWT_ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "cbdra_session"
    SESSION_COOKIE_SECURE: bool = False

    # CORS
    CORS_ORIGINS: List[str] = []

    @validator("CORS_ORIGINS", pre=True)
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Database
    POSTGRES_SERVER: str = os.getenv("POSTGRES_SERVER", "localhost")
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "postgres")
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "cbdra")
    POSTGRES_PORT: int = int(os.getenv("POSTGRES_PORT", "5432"))
    DATABASE_URI: Optional[str] = None

    @validator("DATABASE_URI", pre=True, always=True)
    def assemble_db_connection(cls, v: Optional[str], values: dict) -> Any:
        if isinstance(v, str) and v:
            return v
        return (
            f"postgresql+asyncpg://{values.get('POSTGRES_USER')}:{values.get('POSTGRES_PASSWORD')}"
            f"@{values.get('POSTGRES_SERVER')}:{values.get('POSTGRES_PORT')}/{values.get('POSTGRES_DB') or ''}"
        )

    # Redis
    REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_DB: int = int(os.getenv("REDIS_DB", "0"))
    REDIS_PASSWORD: Optional[str] = os.getenv("REDIS_PASSWORD")
    NOTIFICATION_PUBSUB_ENABLED: bool = True

    # Mail
    MAIL_HOST: Optional[str] = None
    MAIL_PORT: int = 587
    MAIL_USERNAME: Optional[str] = None
    MAIL_PASSWORD: Optional[str] = None
    MAIL_USE_TLS: bool = True
    MAIL_FROM_NAME: str = "CDRA"
    MAIL_FROM_EMAIL: str = "no-reply@cdra.local"
    MAIL_SUPPRESS_SEND: bool = False
    SUPPORT_EMAIL: str = "support@cdra.local"

    # Verification
    OTP_EXPIRE_MINUTES: int = 10

    # Uploads
    UPLOAD_DIR: str = "public/uploads/incidents"
    UPLOAD_URL_PREFIX: str = "/uploads/incidents"
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = "cbdra.log"

    # Initial data
    FIRST_ADMIN_EMAIL: str = "admin@cbdra.com"
    FIRST_ADMIN_PASSWORD: Optional[str] = None

    class Config:
        case_sensitive = True
        env_file = ".env"
        extra = "allow"


settings = Settings()
