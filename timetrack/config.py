"""
Configuration for Legal Time Tracking Service
=============================================

Environment variables:
- STORE_BACKEND: sql|postgrest (default: sql)
- DATABASE_URL: SQLAlchemy URL for the sql backend (default: sqlite:///./timetrack.db)
- SUPABASE_URL: Base URL of the hosted PostgREST service
- SUPABASE_KEY: API key for the hosted service
- STORE_TIMEOUT: HTTP timeout in seconds (default: 30)
- REPORT_TIMEZONE: IANA zone for day/month boundaries (default: UTC)
- CORS_ALLOW_ORIGINS: Comma-separated origins (default: *)
- LOG_LEVEL: Logging level (default: INFO)
"""

from enum import Enum
from functools import lru_cache
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings


class StoreBackend(str, Enum):
    """Record store adapters"""
    SQL = "sql"
    POSTGREST = "postgrest"


class Settings(BaseSettings):
    """Application settings from environment variables"""

    # Record store
    store_backend: StoreBackend = StoreBackend.SQL
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    store_timeout: int = 30

    # Reports
    report_timezone: str = "UTC"

    # HTTP
    cors_allow_origins: str = "*"

    # Logging
    log_level: str = "INFO"

    # Service info
    service_version: str = "1.0.0"

    class Config:
        env_prefix = ""
        case_sensitive = False
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def tzinfo(self) -> ZoneInfo:
        """Timezone used for report boundaries, falls back to UTC"""
        try:
            return ZoneInfo(self.report_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            return ZoneInfo("UTC")

    @property
    def allowed_origins(self) -> List[str]:
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]

    def validate_store_config(self) -> List[str]:
        """Validate store configuration, return list of warnings"""
        warnings = []

        if self.store_backend == StoreBackend.POSTGREST:
            if not self.supabase_url:
                warnings.append("STORE_BACKEND=postgrest but SUPABASE_URL not set")
            if not self.supabase_key:
                warnings.append("STORE_BACKEND=postgrest but SUPABASE_KEY not set")

        try:
            ZoneInfo(self.report_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            warnings.append(f"REPORT_TIMEZONE={self.report_timezone} is unknown, using UTC")

        return warnings


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
