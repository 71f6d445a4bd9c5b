"""Application configuration and settings management."""

from typing import Any, Optional

import json
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="TRUCKMATES_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    app_name: str = "TruckMates Route Planning API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root logging level applied at startup.")
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Google Maps web services
    google_maps_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("TRUCKMATES_GOOGLE_MAPS_API_KEY", "GOOGLE_MAPS_API_KEY"),
        description="API key for the Geocoding, Distance Matrix and Directions APIs.",
    )
    google_maps_base_url: str = Field(
        default="https://maps.googleapis.com/maps/api",
        description="Base URL for the Google Maps web services.",
    )
    google_maps_timeout_seconds: float = Field(default=10.0, gt=0.0)
    google_maps_max_retries: int = Field(default=0, ge=0)
    google_maps_backoff_seconds: float = Field(default=1.0, ge=0.0)

    # Routing heuristics
    average_speed_mph: float = Field(default=50.0, gt=0.0)
    fallback_distance_miles: float = Field(default=100.0, gt=0.0)
    fallback_route_distance_miles: float = Field(default=100.0, ge=0.0)
    fallback_route_duration_minutes: float = Field(default=120.0, ge=0.0)
    distance_max_parallel_requests: int = Field(
        default=1,
        ge=1,
        description="Concurrent pairwise lookups per sequencing step (1 keeps lookups sequential).",
    )

    # Costing and suitability
    fuel_price_per_gallon: float = Field(default=3.50, ge=0.0)
    miles_per_gallon: float = Field(default=6.5, gt=0.0)
    toll_rate_per_mile: float = Field(default=0.10, ge=0.0)
    include_tolls: bool = True
    max_gross_weight_lbs: float = Field(default=80000.0, gt=0.0)
    max_vehicle_height_ft: float = Field(default=14.0, gt=0.0)

    # Webhooks
    webhook_timeout_seconds: float = Field(default=30.0, gt=0.0)

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
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

    @field_validator("google_maps_api_key", mode="before")
    @classmethod
    def _blank_key_is_missing(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        value = str(value).strip()
        return value or None


settings = Settings()
