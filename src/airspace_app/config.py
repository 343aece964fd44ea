"""Configuration management using Pydantic settings."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Airspace"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Airspace tiles
    airspace_tile_url: str = "https://airspaces.storage.googleapis.com/tiles/{z}/{x}/{y}.pbf"
    airspace_layer: str = "asp"
    airspace_max_zoom: int = 13          # no tiles are produced above this zoom
    airspace_min_zoom: int = 4
    airspace_fetch_timeout: Optional[float] = None   # None = no timeout

    # Defaults for a new map type
    airspace_default_altitude: float = 1000.0   # meters
    airspace_show_restricted: bool = True
    airspace_pixel_ratio: int = 1               # 2 for high density output


settings = Settings()
