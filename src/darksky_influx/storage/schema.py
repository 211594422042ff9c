"""Measurement schema shared by the collector and the storage writer."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType


class FieldType(str, Enum):
    FLOAT = "float"
    INTEGER = "integer"


@dataclass(frozen=True)
class MeasurementSchema:
    """Field names and declared types for one measurement."""

    measurement: str
    tags: tuple[str, ...]
    fields: Mapping[str, FieldType]


_F = FieldType.FLOAT
_I = FieldType.INTEGER

WEATHER_SCHEMA = MeasurementSchema(
    measurement="weather",
    tags=("source",),
    fields=MappingProxyType(
        {
            "temperature": _F,
            "apparent_temperature": _F,
            "dew_point": _F,
            "humidity": _F,
            "wind_speed": _F,
            "wind_bearing": _F,
            "cloud_cover": _F,
            "pressure": _F,
            "ozone": _F,
            "uv_index": _F,
            "visibility": _F,
            "precip_intensity": _F,
            "precip_probability": _F,
            "nearest_storm_distance": _F,
            "nearest_storm_bearing": _F,
            "sunrise_time": _I,
            "sunset_time": _I,
            "sun_status": _I,
        }
    ),
)

FORECAST_SCHEMA = MeasurementSchema(
    measurement="forecast",
    tags=("source",),
    fields=MappingProxyType(
        {
            "temperature_high": _F,
            "apparent_temperature_high": _F,
            "temperature_low": _F,
            "apparent_temperature_low": _F,
            "temperature_max": _F,
            "apparent_temperature_max": _F,
            "temperature_min": _F,
            "apparent_temperature_min": _F,
            "dew_point": _F,
            "humidity": _F,
            "wind_speed": _F,
            "wind_bearing": _F,
            "cloud_cover": _F,
            "pressure": _F,
            "ozone": _F,
            "uv_index": _F,
            "visibility": _F,
            "precip_intensity": _F,
            "precip_probability": _F,
            "sun_status": _I,
        }
    ),
)

SCHEMAS: Mapping[str, MeasurementSchema] = MappingProxyType(
    {schema.measurement: schema for schema in (WEATHER_SCHEMA, FORECAST_SCHEMA)}
)
