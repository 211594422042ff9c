"""Shared typed models for time-series points."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class MeasurementPoint(BaseModel):
    """One time-series point handed to the storage writer."""

    model_config = ConfigDict(frozen=True)

    measurement: Literal["weather", "forecast"] = Field(description="Measurement name")
    tags: dict[str, str] = Field(default_factory=dict, description="Tag set, e.g. source")
    fields: dict[str, Any] = Field(
        description="Field values copied verbatim from the provider payload"
    )
