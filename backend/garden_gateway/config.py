from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from garden_gateway.errors import ConfigurationError


REQUIRED_ENV = {
    "supabase_url": "SUPABASE_URL",
    "supabase_service_role_key": "SUPABASE_SERVICE_ROLE_KEY",
    "trefle_api_token": "TREFLE_API_TOKEN",
    "openweather_api_key": "OPENWEATHER_API_KEY",
}


def _env_list(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def _default_static_dir() -> str:
    return str(Path(__file__).resolve().parents[2] / "dist")


@dataclass
class Settings:
    app_name: str = "Garden Gateway"
    environment: str = field(default_factory=lambda: os.getenv("ENV", "development"))
    supabase_url: str = field(default_factory=lambda: os.getenv("SUPABASE_URL", "").rstrip("/"))
    supabase_service_role_key: str = field(default_factory=lambda: os.getenv("SUPABASE_SERVICE_ROLE_KEY", ""))
    trefle_api_token: str = field(default_factory=lambda: os.getenv("TREFLE_API_TOKEN", ""))
    openweather_api_key: str = field(default_factory=lambda: os.getenv("OPENWEATHER_API_KEY", ""))
    trefle_base_url: str = field(
        default_factory=lambda: os.getenv("TREFLE_BASE_URL", "https://trefle.io/api/v1").rstrip("/")
    )
    openweather_base_url: str = field(
        default_factory=lambda: os.getenv(
            "OPENWEATHER_BASE_URL", "https://api.openweathermap.org/data/3.0"
        ).rstrip("/")
    )
    species_timeout_seconds: float = field(default_factory=lambda: float(os.getenv("SPECIES_TIMEOUT_SECONDS", "2.0")))
    weather_timeout_seconds: float = field(default_factory=lambda: float(os.getenv("WEATHER_TIMEOUT_SECONDS", "2.0")))
    persistence_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("PERSISTENCE_TIMEOUT_SECONDS", "5.0"))
    )
    auth_timeout_seconds: float = field(default_factory=lambda: float(os.getenv("AUTH_TIMEOUT_SECONDS", "5.0")))
    search_cache_ttl_seconds: float = field(
        default_factory=lambda: float(os.getenv("SEARCH_CACHE_TTL_SECONDS", "300"))
    )
    rate_limit_window_seconds: int = field(
        default_factory=lambda: int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", str(15 * 60)))
    )
    rate_limit_max_requests: int = field(default_factory=lambda: int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100")))
    cors_origins: list[str] = field(default_factory=lambda: _env_list("CORS_ORIGINS", "*"))
    static_dir: str = field(default_factory=lambda: os.getenv("STATIC_DIR", _default_static_dir()))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_json: bool | None = field(
        default_factory=lambda: None if os.getenv("LOG_JSON") is None else os.getenv("LOG_JSON", "").lower() == "true"
    )

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def use_json_logs(self) -> bool:
        if self.log_json is None:
            return not self.is_development
        return self.log_json

    def missing_required(self) -> list[str]:
        return [env_name for attr, env_name in REQUIRED_ENV.items() if not getattr(self, attr)]

    def validate(self) -> None:
        missing = self.missing_required()
        if missing:
            raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")

    def presence_report(self) -> dict[str, bool]:
        """Which required variables are set, without exposing their values."""
        return {env_name: bool(getattr(self, attr)) for attr, env_name in REQUIRED_ENV.items()}


def get_settings() -> Settings:
    return Settings()
