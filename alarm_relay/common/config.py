"""
Application Settings

Loaded from environment variables (prefix ALARM_RELAY_) or a .env file.

Example .env:
    ALARM_RELAY_REMOTE_DEVICE_URL=http://192.168.4.1
    ALARM_RELAY_DATA_DIR=/var/lib/alarm-relay
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Relay configuration"""

    model_config = SettingsConfigDict(
        env_prefix="ALARM_RELAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Remote device controller
    remote_device_url: str = "http://192.168.4.1"
    remote_timeout_seconds: float = Field(default=5.0, gt=0)

    # Telemetry storage
    data_dir: Path = Path("data")
    sensor_file: str = "sensorData.json"
    image_file: str = "imageData.json"

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 3000
    # Comma-separated list, e.g. "http://localhost:5173,https://panel.local"
    allowed_origins: str = ""

    @field_validator("remote_device_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def sensor_path(self) -> Path:
        return self.data_dir / self.sensor_file

    @property
    def image_path(self) -> Path:
        return self.data_dir / self.image_file

    @property
    def origins(self) -> list[str]:
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings."""
    return Settings()
