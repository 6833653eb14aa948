"""Application settings loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "city-weather"
    app_version: str = "0.1.0"
    api_prefix: str = "/api"
    database_url: str = "sqlite:///./cityweather.db"
    # OpenWeatherMap current weather endpoint
    openweather_url: str = "https://api.openweathermap.org/data/2.5/weather"
    openweather_api_key: str = ""
    openweather_units: str = "metric"  # metric|imperial|standard
    weather_api_timeout: float = 10.0
    # Refresh passes
    scheduler_enabled: bool = True
    refresh_interval_seconds: int = 60 * 60
    refresh_max_workers: int = 4
    refresh_on_startup: bool = True
    # Per-worker pause after a 429; a shorter Retry-After from the API wins
    rate_limit_pause_seconds: float = 1.0
    city_seed_path: str = "config/cities.yml"
    metrics_enabled: bool = False
    metrics_host: str = "0.0.0.0"
    metrics_port: int = 9500
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="CITYWEATHER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
