"""
Service settings, read from environment variables and an optional `.env` file.

Field names match the environment variable names (case-sensitive).
"""

from decimal import Decimal
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # Auth
    API_KEY: Optional[str] = None

    # Verification rules
    STATUS_GATING: bool = True
    AMOUNT_CHECK: bool = True
    AMOUNT_TOLERANCE: Decimal = Field(Decimal("0.001"), ge=0)

    # Record store
    RECORDS_FILE: Optional[str] = None
    LOOKUP_DELAY_SECONDS: float = Field(0.0, ge=0.0, le=5.0)

    # App
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]
    DEBUG_ENDPOINTS: bool = False

settings = Settings()
