"""Application Settings - Central Configuration"""
from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # MongoDB
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "cra_requests_dev"

    # Request identifiers: <PREFIX><YYMMDD><seq>
    request_id_prefix: str = "CRA"
    request_id_min_seq_digits: int = 2

    # Admin digest batching
    digest_cutoff_hour: int = 16  # Events at/after this local hour digest next day
    digest_timezone: str = ""  # Empty = server local time zone

    # Draft idempotency lock
    draft_lock_lease_seconds: int = 30  # A crashed holder is taken over after this
    draft_lock_poll_interval_seconds: float = 0.05

    # Notification policy settings are re-read after this many seconds
    settings_cache_seconds: int = 30

    # In-app notifications
    inapp_default_page_size: int = 20

    # Auth (bearer JWT issued by the login service)
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"

    # Logging
    logs_path: str = "./logs"
    log_level: str = "INFO"

    # HTTP server (run.py)
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    # CORS - set to "*" to allow all origins
    cors_origins: str = "*"

    # Environment
    environment: str = "development"
    debug: bool = True

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string to list"""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.environment.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
