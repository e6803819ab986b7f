"""
Application Configuration

Pydantic Settings for environment variable management.
Storage credentials for both providers are read from the environment
exactly as the hosting platform exposes them (R2_*, DO_SPACES_*).
"""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import List
import json


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # App
    app_name: str = "Vidstream API"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # API
    cors_origins: str = '["*"]'

    # Cloudflare R2
    r2_account_id: str = ""
    r2_access_key_id: str = ""
    r2_secret_access_key: str = ""
    r2_bucket_name: str = ""

    # DigitalOcean Spaces
    do_spaces_access_key_id: str = ""
    do_spaces_secret_access_key: str = ""
    do_spaces_region: str = "sfo3"
    do_spaces_bucket_name: str = "my-movies"

    # Bucket layout
    videos_prefix: str = "videos/"
    sync_folder: str = "sync-data"

    # Presigned URLs (S3 caps validity at 7 days)
    signed_url_ttl_seconds: int = Field(3600, ge=1, le=604800)

    # Local client state (progress, sync code)
    state_database_url: str = "sqlite:///./vidstream_state.db"

    # Bucket CORS maintenance
    cors_bucket_origins: str = '["http://localhost:3000", "http://localhost:8888"]'

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from JSON string"""
        try:
            return json.loads(self.cors_origins)
        except (json.JSONDecodeError, TypeError):
            return ["*"]

    @property
    def cors_bucket_origins_list(self) -> List[str]:
        """Parse bucket CORS origins from JSON string"""
        try:
            return json.loads(self.cors_bucket_origins)
        except (json.JSONDecodeError, TypeError):
            return []


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Global settings instance for easy import
settings = get_settings()
