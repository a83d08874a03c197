"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(RuntimeError):
    """Raised when a required upstream setting (URL or API key) is missing."""


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="EVROUTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "EV Route Planner API"
    api_prefix: str = "/api"
    osrm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: Literal["driving", "driving-hgv"] = Field(
        default="driving",
        description="OSRM profile to use when computing route geometry.",
    )
    osrm_max_retries: int = Field(default=3, ge=0)
    osrm_backoff_seconds: float = Field(default=1.0, ge=0.0)

    charger_provider: Literal["tomtom", "google"] = Field(
        default="tomtom",
        description="Which POI provider backs charger search.",
    )
    tomtom_api_key: Optional[str] = None
    tomtom_base_url: str = "https://api.tomtom.com"
    google_places_api_key: Optional[str] = None
    google_places_base_url: str = "https://maps.googleapis.com"
    search_timeout_seconds: float = Field(default=15.0, gt=0.0)

    # Cooperative throttling between provider calls within one planning pass
    search_delay_seconds: float = Field(default=1.5, ge=0.0)
    rate_limit_backoff_seconds: float = Field(default=5.0, ge=0.0)
    planner_sample_count: int = Field(default=5, ge=1)
    planner_max_depth: int = Field(default=5, ge=0)
    planner_timeout_seconds: float = Field(default=120.0, gt=0.0)
    search_radius_cap_m: int = Field(default=30000, ge=1)

    charger_cache_ttl_seconds: float = Field(default=300.0, ge=0.0)
    charger_cache_max_entries: int = Field(default=5, ge=1)
    charger_cache_distance_threshold_deg: float = Field(default=0.05, ge=0.0)

    constrained_platform: bool = Field(
        default=False,
        description="Clients on constrained platforms get a lower marker budget.",
    )
    cluster_max_nodes: int = Field(default=150, ge=1)
    cluster_max_nodes_constrained: int = Field(default=100, ge=1)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:8081",
            "http://127.0.0.1:8081",
            "http://localhost:19006",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @property
    def effective_cluster_cap(self) -> int:
        if self.constrained_platform:
            return self.cluster_max_nodes_constrained
        return self.cluster_max_nodes


settings = Settings()
