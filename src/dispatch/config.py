"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="DISPATCH_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Delivery Route Dispatch API"
    api_prefix: str = "/api"
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:4321",
            "http://127.0.0.1:4321",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Route optimization provider (OSRM-compatible optimize/trip API)
    optimizer_base_url: str = Field(
        default="https://us1.locationiq.com/v1/optimize",
        description="Base URL of the optimize endpoint, without profile or coordinates.",
    )
    optimizer_profile: Literal["driving", "driving-traffic", "cycling", "walking"] = Field(
        default="driving",
        description="Routing profile appended to the optimize URL.",
    )
    optimizer_access_key: Optional[str] = Field(
        default=None,
        description="API key sent as the `key` query parameter (LocationIQ).",
    )
    optimizer_geometries: Literal["polyline", "polyline6"] = Field(default="polyline6")
    optimizer_timeout_seconds: float = Field(default=30.0, gt=0.0)

    # Geocoding provider (Mapbox places API)
    geocoder_base_url: str = Field(
        default="https://api.mapbox.com/geocoding/v5/mapbox.places",
        description="Mapbox forward geocoding endpoint.",
    )
    mapbox_access_token: Optional[str] = Field(default=None)
    geocoder_country: str = Field(default="CA")
    geocoder_proximity: tuple[float, float] = Field(
        default=(-79.3832, 43.6532),
        description="Longitude/latitude used to bias geocoding results.",
    )
    geocoder_max_retries: int = Field(default=2, ge=0)
    geocoder_backoff_seconds: float = Field(default=0.5, ge=0.0)

    # Depot every route starts from
    depot_address: str = "817 Brimley Rd, Scarborough, ON M1J 1C9, Canada"
    depot_longitude: float = Field(default=-79.25445232067732, ge=-180.0, le=180.0)
    depot_latitude: float = Field(default=43.75300368666418, ge=-90.0, le=90.0)

    polyline_precision: int = Field(
        default=6,
        ge=1,
        description="Decimal precision of the encoded route geometry returned by the optimizer.",
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

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
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

    @field_validator("geocoder_proximity", mode="before")
    @classmethod
    def _parse_float_pair_from_env(cls, value: Any) -> tuple[float, float]:
        """Parse a "lon,lat" pair from environment variable (comma-separated or JSON array)."""
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
            except (json.JSONDecodeError, TypeError):
                parsed = [item.strip() for item in value.split(",") if item.strip()]
            value = parsed
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return (float(value[0]), float(value[1]))
        raise ValueError("geocoder_proximity must be a longitude,latitude pair")


settings = Settings()
