"""Typed envelope models for DarkSky-shaped forecast payloads.

Only the envelope is modelled. Data blocks stay plain dicts so the collector
copies provider values verbatim, without pydantic coercion.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DailyBlock(BaseModel):
    """The `daily` block: a summary plus one data point per day."""

    model_config = ConfigDict(extra="ignore")

    summary: str | None = None
    data: list[dict[str, Any]] = Field(min_length=1)


class ForecastResponse(BaseModel):
    """Forecast response with the sections the collector reads."""

    model_config = ConfigDict(extra="ignore")

    latitude: float | None = None
    longitude: float | None = None
    timezone: str | None = None
    currently: dict[str, Any]
    daily: DailyBlock

    @property
    def today(self) -> dict[str, Any]:
        """First element of the daily forecast sequence."""
        return self.daily.data[0]


class ForecastFetchResult(BaseModel):
    """Raw + parsed result returned by weather providers."""

    response: ForecastResponse
    raw_payload: dict[str, Any]
