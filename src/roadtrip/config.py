"""Application configuration and settings management."""

from typing import Any

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ROADTRIP_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Road Trip Planner API"
    api_prefix: str = "/api"
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Day scheduling
    daily_tolerance_hours: float = Field(
        default=1.0,
        ge=0.0,
        description="Grace period a day's driving may exceed max drive hours before a split is forced.",
    )
    min_rest_hours: float = Field(default=7.0, ge=0.0)
    earliest_departure_hour: int = Field(default=5, ge=0, le=23)
    latest_full_day_departure_hour: int = Field(default=10, ge=0, le=23)
    latest_departure_hour: int = Field(default=18, ge=0, le=23)
    full_day_threshold: float = Field(
        default=0.75,
        ge=0.0,
        le=1.0,
        description="Share of the daily maximum above which a day counts as a full driving day.",
    )

    # Stop simulation
    critical_fuel_fraction: float = Field(default=0.15, ge=0.0, le=1.0)
    low_tank_fraction: float = Field(default=0.35, ge=0.0, le=1.0)
    full_tank_fraction: float = Field(default=0.98, ge=0.0, le=1.0)
    fuel_stop_minutes: int = Field(default=15, ge=0)
    rest_stop_minutes: int = Field(default=15, ge=0)
    meal_stop_minutes: int = Field(default=45, ge=0)
    overnight_stop_minutes: int = Field(default=480, ge=0)
    destination_grace_km: float = Field(default=50.0, ge=0.0)
    sparse_stretch_km: float = Field(default=150.0, ge=0.0)

    # Combo consolidation
    meal_absorb_window_minutes: int = Field(default=300, ge=0)
    fuel_absorb_window_minutes: int = Field(default=90, ge=0)
    combo_meal_minutes: int = Field(default=45, ge=0)
    combo_rest_minutes: int = Field(default=20, ge=0)

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


settings = Settings()
