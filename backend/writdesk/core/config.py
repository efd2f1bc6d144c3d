# # writdesk/core/config.py
"""
Application configuration using Pydantic Settings
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
import json
from pydantic import field_validator


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    """

    # Application
    APP_NAME: str = "WritDesk"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Remote case service (writs + proceedings)
    CASE_API_BASE_URL: str = "http://localhost:3000"
    CASE_API_TIMEOUT_SECONDS: float = 30.0
    ACCESS_TOKEN_HEADER: str = "x-access-token"
    LOGIN_PATH: str = "/login"

    @field_validator("CASE_API_BASE_URL", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().rstrip("/")
        return v

    # Views
    SEARCH_DEBOUNCE_MS: int = 300
    UPCOMING_HEARINGS_LIMIT: int = 10
    URGENT_HEARING_DAYS: int = 7
    WRIT_LIST_PAGE_SIZE: int = 20
    RECENT_WRITS_LIMIT: int = 5

    # Attachments (order of proceeding)
    ATTACHMENT_MAX_BYTES: int = 250 * 1024
    ATTACHMENT_ALLOWED_TYPES: str = (
        "application/pdf,image/png,image/jpeg,image/jpg,"
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet,"
        "application/vnd.ms-excel"
    )

    # In-memory API cache
    CACHE_TTL_SECONDS: int = 300
    # Entries untouched this long are evicted, stale fallback included
    CACHE_IDLE_SECONDS: int = 3600

    # CORS
    CORS_ORIGINS: str = '["http://localhost:5173"]'

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from string to list"""
        try:
            if isinstance(self.CORS_ORIGINS, str):
                return json.loads(self.CORS_ORIGINS)
            return self.CORS_ORIGINS
        except json.JSONDecodeError:
            return [part.strip() for part in self.CORS_ORIGINS.split(",") if part.strip()]

    @property
    def attachment_allowed_types_list(self) -> List[str]:
        """
        Parse comma-separated MIME types, lower-cased and de-duplicated.
        """
        out: List[str] = []
        for part in (self.ATTACHMENT_ALLOWED_TYPES or "").split(","):
            mime = part.strip().lower()
            if mime and mime not in out:
                out.append(mime)
        return out

    @property
    def search_debounce_seconds(self) -> float:
        return max(0, self.SEARCH_DEBOUNCE_MS) / 1000.0


# Create settings instance
settings = Settings()
