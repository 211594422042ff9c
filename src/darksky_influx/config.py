"""Typed settings loader for the DarkSky -> InfluxDB collector."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError


class Settings(BaseSettings):
    """Application settings loaded from environment variables and `.env`.

    Settings are frozen once loaded; components receive the instance explicitly.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # general
    debug: bool = Field(default=False, alias="COLLECTOR_DEBUG")
    cron: str | None = Field(default=None, alias="COLLECTOR_CRON")

    # storage
    influxdb_host: str = Field(default="localhost", alias="INFLUXDB_HOST")
    influxdb_port: int = Field(default=8086, alias="INFLUXDB_PORT")
    influxdb_database: str = Field(default="weather", alias="INFLUXDB_DATABASE")
    influxdb_username: str = Field(default="", alias="INFLUXDB_USERNAME")
    influxdb_password: str = Field(default="", alias="INFLUXDB_PASSWORD", repr=False)
    influxdb_retention_policy: str = Field(default="", alias="INFLUXDB_RETENTION_POLICY")
    influxdb_ssl: bool = Field(default=False, alias="INFLUXDB_SSL")
    influxdb_timeout_seconds: float = Field(default=10.0, alias="INFLUXDB_TIMEOUT_SECONDS")

    # provider
    darksky_key: str | None = Field(default=None, alias="DARKSKY_KEY", repr=False)
    darksky_latitude: float = Field(alias="DARKSKY_LATITUDE")
    darksky_longitude: float = Field(alias="DARKSKY_LONGITUDE")
    darksky_units: Literal["auto", "ca", "uk2", "us", "si"] = Field(
        default="us", alias="DARKSKY_UNITS"
    )
    darksky_base_url: str = Field(
        default="https://api.darksky.net/forecast",
        alias="DARKSKY_BASE_URL",
    )
    darksky_timeout_seconds: float = Field(default=15.0, alias="DARKSKY_TIMEOUT_SECONDS")

    @field_validator("cron", "darksky_key", mode="before")
    @classmethod
    def empty_string_to_none(cls, value: Any) -> Any:
        """Treat empty env-string values as unset."""
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @model_validator(mode="after")
    def validate_settings(self) -> Settings:
        """Validate credentials, location and connection parameters."""
        if not self.darksky_key:
            raise ValueError("DARKSKY_KEY should be provided.")
        if not (-90 <= self.darksky_latitude <= 90):
            raise ValueError("DARKSKY_LATITUDE must be between -90 and 90.")
        if not (-180 <= self.darksky_longitude <= 180):
            raise ValueError("DARKSKY_LONGITUDE must be between -180 and 180.")
        if not self.darksky_base_url.startswith(("http://", "https://")):
            raise ValueError("DARKSKY_BASE_URL must be an http(s) URL.")
        if self.darksky_timeout_seconds <= 0:
            raise ValueError("DARKSKY_TIMEOUT_SECONDS must be > 0.")
        if not self.influxdb_host.strip():
            raise ValueError("INFLUXDB_HOST must not be empty.")
        if not (1 <= self.influxdb_port <= 65535):
            raise ValueError("INFLUXDB_PORT must be between 1 and 65535.")
        if not self.influxdb_database.strip():
            raise ValueError("INFLUXDB_DATABASE must not be empty.")
        if self.influxdb_timeout_seconds <= 0:
            raise ValueError("INFLUXDB_TIMEOUT_SECONDS must be > 0.")
        if self.cron is not None and len(self.cron.split()) not in (5, 6):
            raise ValueError("COLLECTOR_CRON must have 5 or 6 space-separated fields.")
        return self

    @property
    def influxdb_url(self) -> str:
        scheme = "https" if self.influxdb_ssl else "http"
        return f"{scheme}://{self.influxdb_host}:{self.influxdb_port}"

    def safe_summary(self) -> dict[str, Any]:
        """Return config summary safe for logging (no credentials)."""
        return {
            "debug": self.debug,
            "cron": self.cron,
            "influxdb_url": self.influxdb_url,
            "influxdb_database": self.influxdb_database,
            "influxdb_retention_policy": self.influxdb_retention_policy or None,
            "influxdb_username": self.influxdb_username or None,
            "darksky_base_url": self.darksky_base_url,
            "latitude": self.darksky_latitude,
            "longitude": self.darksky_longitude,
            "units": self.darksky_units,
        }


def load_settings(env_file: str | None = ".env") -> Settings:
    """Load and validate settings, raising ConfigError on failure."""
    try:
        return Settings(_env_file=env_file)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed reading environment/.env: {exc}") from exc
