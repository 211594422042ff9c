"""Forecast collector: one fetch -> transform -> write cycle per trigger."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Protocol

from .config import Settings
from .exceptions import StorageWriteError, WeatherProviderError
from .models import MeasurementPoint
from .redaction import sanitize_for_logging
from .weather.base import WeatherProvider
from .weather.models import ForecastResponse

DEFAULT_SOURCE = "darksky"

# storage field -> provider field
CURRENT_FIELD_MAP: Mapping[str, str] = {
    "temperature": "temperature",
    "apparent_temperature": "apparentTemperature",
    "dew_point": "dewPoint",
    "humidity": "humidity",
    "wind_speed": "windSpeed",
    "wind_bearing": "windBearing",
    "cloud_cover": "cloudCover",
    "pressure": "pressure",
    "ozone": "ozone",
    "uv_index": "uvIndex",
    "visibility": "visibility",
    "precip_intensity": "precipIntensity",
    "precip_probability": "precipProbability",
    "nearest_storm_distance": "nearestStormDistance",
    "nearest_storm_bearing": "nearestStormBearing",
}

SUN_FIELD_MAP: Mapping[str, str] = {
    "sunrise_time": "sunriseTime",
    "sunset_time": "sunsetTime",
}

DAILY_FIELD_MAP: Mapping[str, str] = {
    "temperature_high": "temperatureHigh",
    "apparent_temperature_high": "apparentTemperatureHigh",
    "temperature_low": "temperatureLow",
    "apparent_temperature_low": "apparentTemperatureLow",
    "temperature_max": "temperatureMax",
    "apparent_temperature_max": "apparentTemperatureMax",
    "temperature_min": "temperatureMin",
    "apparent_temperature_min": "apparentTemperatureMin",
    "dew_point": "dewPoint",
    "humidity": "humidity",
    "wind_speed": "windSpeed",
    "wind_bearing": "windBearing",
    "cloud_cover": "cloudCover",
    "pressure": "pressure",
    "ozone": "ozone",
    "uv_index": "uvIndex",
    "visibility": "visibility",
    "precip_intensity": "precipIntensity",
    "precip_probability": "precipProbability",
}


class PointWriter(Protocol):
    def write_points(self, points: Sequence[MeasurementPoint]) -> None: ...


def compute_sun_status(sunrise_time: Any, sunset_time: Any, now: float) -> int:
    """Return 1 when `now` lies strictly between sunrise and sunset, else 0.

    Missing bounds (polar day or night) count as "not between".
    """
    if sunrise_time is None or sunset_time is None:
        return 0
    return 1 if sunrise_time < now < sunset_time else 0


def _rename(source: Mapping[str, Any], field_map: Mapping[str, str]) -> dict[str, Any]:
    return {target: source[key] for target, key in field_map.items() if key in source}


def build_weather_point(
    current: Mapping[str, Any],
    daily: Mapping[str, Any],
    sun_status: int,
    source: str = DEFAULT_SOURCE,
) -> MeasurementPoint:
    fields = _rename(current, CURRENT_FIELD_MAP)
    fields.update(_rename(daily, SUN_FIELD_MAP))
    fields["sun_status"] = sun_status
    return MeasurementPoint(measurement="weather", tags={"source": source}, fields=fields)


def build_forecast_point(
    daily: Mapping[str, Any],
    sun_status: int,
    source: str = DEFAULT_SOURCE,
) -> MeasurementPoint:
    fields = _rename(daily, DAILY_FIELD_MAP)
    fields["sun_status"] = sun_status
    return MeasurementPoint(measurement="forecast", tags={"source": source}, fields=fields)


def build_points(
    response: ForecastResponse,
    sun_status: int,
    source: str = DEFAULT_SOURCE,
) -> list[MeasurementPoint]:
    """Build the current-conditions and daily-forecast points for one cycle."""
    daily = response.today
    return [
        build_weather_point(response.currently, daily, sun_status, source),
        build_forecast_point(daily, sun_status, source),
    ]


class ForecastCollector:
    """Runs fetch -> transform -> write cycles against injected collaborators."""

    def __init__(
        self,
        settings: Settings,
        provider: WeatherProvider,
        writer: PointWriter,
        logger: logging.Logger,
        clock: Callable[[], float] = time.time,
        source: str = DEFAULT_SOURCE,
    ) -> None:
        self.settings = settings
        self.provider = provider
        self.writer = writer
        self.logger = logger
        self._clock = clock
        self.source = source

    def run_cycle(self) -> None:
        """Fetch, transform and write once. Failures are logged, never raised."""
        try:
            result = self.provider.fetch_forecast(
                lat=self.settings.darksky_latitude,
                lon=self.settings.darksky_longitude,
                units=self.settings.darksky_units,
            )
        except WeatherProviderError as exc:
            self.logger.error(
                "Error while requesting forecast (%s): %s", exc.category, exc
            )
            return

        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(
                "Forecast payload: %s", json.dumps(sanitize_for_logging(result.raw_payload))
            )

        response = result.response
        daily = response.today
        now = self._clock()
        sun_status = compute_sun_status(daily.get("sunriseTime"), daily.get("sunsetTime"), now)
        self.logger.debug(
            "Sunrise: %s Sunset: %s Now: %s Sun status: %d",
            daily.get("sunriseTime"),
            daily.get("sunsetTime"),
            now,
            sun_status,
        )

        points = build_points(response, sun_status, self.source)
        try:
            self.writer.write_points(points)
        except StorageWriteError as exc:
            self.logger.error("Error writing to InfluxDB: %s", exc)
            return

        self.logger.info(
            "Wrote %d points (sun_status=%d) to InfluxDB", len(points), sun_status
        )
