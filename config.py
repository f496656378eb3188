from functools import lru_cache
from typing import Any, List, Optional
import json

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_list(v: Any) -> List[str]:
    """Parse a list setting from a JSON array or a comma-separated string"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        return [item.strip() for item in v.split(',') if item.strip()]
    return []


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Application
    APP_NAME: str = "Complaint Desk API"
    ENVIRONMENT: str = "development"
    PORT: int = 8000
    CORS_ORIGINS: Any = ["*"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    # Storage
    DATABASE_URL: Optional[str] = None
    DATABASE_NAME: Optional[str] = None
    SNAPSHOT_COLLECTION: str = "snapshot"

    # Fixed administrator credential
    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_PASSWORD: str = "admin123"

    # Complaints
    PAGE_SIZE: int = 10
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024
    ALLOWED_UPLOAD_TYPES: Any = ["image/jpeg", "image/png", "image/gif", "video/mp4"]

    @field_validator("CORS_ORIGINS", "ALLOWED_UPLOAD_TYPES", mode="before")
    @classmethod
    def _split_lists(cls, v: Any) -> List[str]:
        return parse_list(v)

    @property
    def mongo_configured(self) -> bool:
        return bool(self.DATABASE_URL and self.DATABASE_NAME)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
