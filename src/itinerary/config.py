"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ITINERARY_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Itinerary Route Engine API"
    api_prefix: str = "/api"
    routing_provider: Literal["openrouteservice", "osrm"] = Field(
        default="openrouteservice",
        description="External routing service used to resolve day routes.",
    )
    ors_api_key: Optional[str] = Field(
        default=None,
        description="OpenRouteService API key. Without it routes fall back to straight lines.",
    )
    ors_base_url: str = Field(default="https://api.openrouteservice.org")
    ors_profile: str = Field(default="driving-car")
    osrm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: Literal["driving", "walking", "cycling"] = Field(default="driving")
    routing_timeout_seconds: float = Field(default=10.0, gt=0.0)
    routing_max_retries: int = Field(default=0, ge=0)
    routing_backoff_seconds: float = Field(default=0.5, ge=0.0)
    route_debounce_ms: int = Field(
        default=300,
        ge=0,
        description="Quiet period after a waypoint change before the route is resolved.",
    )
    route_cache_precision: int = Field(
        default=4,
        ge=0,
        description="Decimal places kept per coordinate when building route cache keys.",
    )
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )

    @property
    def route_debounce_seconds(self) -> float:
        return self.route_debounce_ms / 1000.0

    @field_validator("ors_api_key", "osrm_base_url", "supabase_url", "supabase_key", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> tuple[str, ...]:
        """Accept a JSON array or a comma-separated list of origins."""
        if value is None:
            return ()
        if isinstance(value, str):
            text = value.strip()
            value = json.loads(text) if text.startswith("[") else text.split(",")
        return tuple(str(origin).strip() for origin in value if str(origin).strip())


settings = Settings()
