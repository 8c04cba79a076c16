"""
Centralized configuration management with Pydantic Settings.
All environment variables are validated and typed.
"""
from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app import __version__


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "MapNav API"
    app_version: str = __version__
    debug: bool = False
    environment: str = Field(default="development", pattern="^(development|staging|production)$")

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Database
    database_url: str = "sqlite+aiosqlite:///./mapnav.db"
    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_echo: bool = False

    # CORS - stored as comma-separated string to avoid JSON parsing issues
    allowed_origins_str: str = Field(default="http://localhost:3000", alias="ALLOWED_ORIGINS")

    @property
    def allowed_origins(self) -> List[str]:
        """Parse allowed origins from comma-separated string."""
        return [origin.strip() for origin in self.allowed_origins_str.split(",") if origin.strip()]

    # External services
    routing_base_url: str = "https://router.project-osrm.org"
    geocoding_base_url: str = "https://nominatim.openstreetmap.org"
    geoip_base_url: str = "http://ipapi.co"
    http_user_agent: str = "MapNav-App"

    # Timeouts and intervals (seconds)
    route_timeout_seconds: float = 10.0
    suggestion_timeout_seconds: float = 8.0
    suggestion_debounce_seconds: float = 0.3
    geoip_timeout_seconds: float = 5.0
    tracking_timeout_seconds: float = 10.0
    location_poll_interval_seconds: float = 60.0
    geolocation_timeout_seconds: float = 10.0
    geolocation_maximum_age_seconds: float = 60.0
    interaction_throttle_seconds: float = 0.0  # 0 disables throttling

    # Tracking client
    tracking_api_url: str = "http://localhost:8000/api/user-visits"
    locations_api_url: str = "http://localhost:8000/api/locations"
    recent_searches_path: str = "~/.mapnav/recent_searches.json"

    # Defaults (New Delhi, India)
    default_latitude: float = 28.6139
    default_longitude: float = 77.2090

    # Limits
    suggestion_limit: int = 5
    recent_searches_limit: int = 5
    overview_recent_limit: int = 10
    visits_page_size: int = 20

    # Observability
    sentry_dsn: Optional[str] = None
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
