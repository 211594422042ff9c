"""Forecast collector tests: sun status, field mapping and failure isolation."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from darksky_influx.collector import (
    CURRENT_FIELD_MAP,
    DAILY_FIELD_MAP,
    ForecastCollector,
    build_points,
    compute_sun_status,
)
from darksky_influx.exceptions import StorageWriteError, WeatherProviderError
from darksky_influx.models import MeasurementPoint
from darksky_influx.storage.influx import InfluxPointWriter
from darksky_influx.storage.schema import FORECAST_SCHEMA, WEATHER_SCHEMA
from darksky_influx.weather.models import ForecastFetchResult, ForecastResponse

SUNRISE = 1700000000
SUNSET = 1700040000


def _payload() -> dict[str, Any]:
    return {
        "latitude": 52.3676,
        "longitude": 4.9041,
        "timezone": "Europe/Amsterdam",
        "currently": {
            "time": 1700020000,
            "summary": "Overcast",
            "temperature": 8.41,
            "apparentTemperature": 5.9,
            "dewPoint": 6.2,
            "humidity": 0.86,
            "windSpeed": 4.4,
            "windBearing": 250,
            "cloudCover": 0.97,
            "pressure": 1008.3,
            "ozone": 297.1,
            "uvIndex": 1,
            "visibility": 16.093,
            "precipIntensity": 0.0102,
            "precipProbability": 0.04,
            "nearestStormDistance": 27,
            "nearestStormBearing": 112,
        },
        "daily": {
            "summary": "Rain throughout the week.",
            "data": [
                {
                    "time": 1699992000,
                    "sunriseTime": SUNRISE,
                    "sunsetTime": SUNSET,
                    "temperatureHigh": 10.2,
                    "apparentTemperatureHigh": 8.9,
                    "temperatureLow": 4.1,
                    "apparentTemperatureLow": 1.3,
                    "temperatureMax": 10.5,
                    "apparentTemperatureMax": 9.0,
                    "temperatureMin": 5.2,
                    "apparentTemperatureMin": 2.2,
                    "dewPoint": 5.8,
                    "humidity": 0.88,
                    "windSpeed": 5.1,
                    "windBearing": 241,
                    "cloudCover": 0.93,
                    "pressure": 1007.9,
                    "ozone": 301.4,
                    "uvIndex": 1,
                    "visibility": 14.2,
                    "precipIntensity": 0.231,
                    "precipProbability": 0.71,
                },
                {"time": 1700078400, "sunriseTime": 1700086500},
            ],
        },
    }


class FakeProvider:
    def __init__(self, payload: dict[str, Any] | None = None, error: Exception | None = None):
        self.payload = payload
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def fetch_forecast(self, *, lat: float, lon: float, units: str) -> ForecastFetchResult:
        self.calls.append({"lat": lat, "lon": lon, "units": units})
        if self.error is not None:
            raise self.error
        assert self.payload is not None
        return ForecastFetchResult(
            response=ForecastResponse.model_validate(self.payload),
            raw_payload=self.payload,
        )

    def close(self) -> None:
        pass


class FakeWriter:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.batches: list[list[MeasurementPoint]] = []

    def write_points(self, points: Sequence[MeasurementPoint]) -> None:
        self.batches.append(list(points))
        if self.error is not None:
            raise self.error


def _make_settings(**overrides: Any) -> Any:
    defaults = {
        "darksky_latitude": 52.3676,
        "darksky_longitude": 4.9041,
        "darksky_units": "si",
        "debug": False,
    }
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


def _make_collector(
    provider: FakeProvider,
    writer: FakeWriter,
    now: float = 1700020000.5,
    logger: logging.Logger | None = None,
) -> ForecastCollector:
    return ForecastCollector(
        settings=_make_settings(),
        provider=provider,  # type: ignore[arg-type]
        writer=writer,
        logger=logger or logging.getLogger("test_collector"),
        clock=lambda: now,
    )


class TestSunStatus:
    @pytest.mark.parametrize(
        ("now", "expected"),
        [
            (1700020000, 1),
            (1700000000, 0),
            (1700040000, 0),
            (1699999999, 0),
            (1700040001, 0),
            (1700000000.001, 1),
            (1700039999.999, 1),
        ],
    )
    def test_strict_bounds(self, now: float, expected: int) -> None:
        assert compute_sun_status(SUNRISE, SUNSET, now) == expected

    def test_missing_bounds_mean_sun_down(self) -> None:
        assert compute_sun_status(None, SUNSET, 1700020000) == 0
        assert compute_sun_status(SUNRISE, None, 1700020000) == 0


class TestBuildPoints:
    def test_weather_point_renames_current_fields_verbatim(self) -> None:
        payload = _payload()
        weather, _ = build_points(ForecastResponse.model_validate(payload), sun_status=1)

        assert weather.measurement == "weather"
        assert weather.tags == {"source": "darksky"}
        current = payload["currently"]
        for target, source in CURRENT_FIELD_MAP.items():
            assert weather.fields[target] == current[source]
            assert type(weather.fields[target]) is type(current[source])
        assert weather.fields["sunrise_time"] == SUNRISE
        assert weather.fields["sunset_time"] == SUNSET
        assert weather.fields["sun_status"] == 1
        assert set(weather.fields) == set(WEATHER_SCHEMA.fields)

    def test_forecast_point_uses_first_daily_entry(self) -> None:
        payload = _payload()
        _, forecast = build_points(ForecastResponse.model_validate(payload), sun_status=0)

        assert forecast.measurement == "forecast"
        assert forecast.tags == {"source": "darksky"}
        daily = payload["daily"]["data"][0]
        for target, source in DAILY_FIELD_MAP.items():
            assert forecast.fields[target] == daily[source]
        assert forecast.fields["sun_status"] == 0
        assert set(forecast.fields) == set(FORECAST_SCHEMA.fields)

    def test_absent_fields_are_omitted_and_nulls_kept(self) -> None:
        payload = _payload()
        del payload["currently"]["nearestStormDistance"]
        del payload["currently"]["nearestStormBearing"]
        payload["currently"]["ozone"] = None
        del payload["daily"]["data"][0]["sunsetTime"]

        weather, forecast = build_points(ForecastResponse.model_validate(payload), sun_status=0)

        assert "nearest_storm_distance" not in weather.fields
        assert "nearest_storm_bearing" not in weather.fields
        assert "sunset_time" not in weather.fields
        assert weather.fields["ozone"] is None
        assert forecast.fields["ozone"] == 301.4

    def test_points_are_immutable(self) -> None:
        weather, _ = build_points(ForecastResponse.model_validate(_payload()), sun_status=1)
        with pytest.raises(ValidationError):
            weather.measurement = "forecast"  # type: ignore[misc]


class TestRunCycle:
    def test_successful_cycle_writes_both_points_in_one_batch(self) -> None:
        provider = FakeProvider(payload=_payload())
        writer = FakeWriter()

        _make_collector(provider, writer).run_cycle()

        assert provider.calls == [{"lat": 52.3676, "lon": 4.9041, "units": "si"}]
        assert len(writer.batches) == 1
        weather, forecast = writer.batches[0]
        assert weather.measurement == "weather"
        assert forecast.measurement == "forecast"

    @pytest.mark.parametrize(("now", "expected"), [(1700020000.5, 1), (1700040000, 0)])
    def test_sun_status_shared_by_both_points(self, now: float, expected: int) -> None:
        writer = FakeWriter()

        _make_collector(FakeProvider(payload=_payload()), writer, now=now).run_cycle()

        weather, forecast = writer.batches[0]
        assert weather.fields["sun_status"] == expected
        assert forecast.fields["sun_status"] == expected

    def test_fetch_failure_skips_write(self, caplog: pytest.LogCaptureFixture) -> None:
        provider = FakeProvider(
            error=WeatherProviderError("connection refused", category="transport")
        )
        writer = FakeWriter()

        with caplog.at_level(logging.ERROR, logger="test_collector"):
            _make_collector(provider, writer).run_cycle()

        assert writer.batches == []
        assert "Error while requesting forecast (transport)" in caplog.text

    def test_write_failure_is_logged_not_raised(self, caplog: pytest.LogCaptureFixture) -> None:
        writer = FakeWriter(error=StorageWriteError("database not found"))

        with caplog.at_level(logging.ERROR, logger="test_collector"):
            _make_collector(FakeProvider(payload=_payload()), writer).run_cycle()

        assert len(writer.batches) == 1
        assert "Error writing to InfluxDB: database not found" in caplog.text

    def test_debug_logging_echoes_payload_and_sun_status(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.DEBUG, logger="test_collector"):
            _make_collector(FakeProvider(payload=_payload()), FakeWriter()).run_cycle()

        assert "Forecast payload:" in caplog.text
        assert "Europe/Amsterdam" in caplog.text
        assert "Sun status: 1" in caplog.text

    def test_out_of_range_value_is_logged_not_raised(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        payload = _payload()
        payload["daily"]["data"][0]["sunriseTime"] = float("inf")
        client = MagicMock()
        writer = InfluxPointWriter(
            settings=SimpleNamespace(
                influxdb_url="http://localhost:8086",
                influxdb_database="weather",
                influxdb_retention_policy="",
                influxdb_username="",
                influxdb_password="",
                influxdb_timeout_seconds=10.0,
            ),
            logger=logging.getLogger("test_collector"),
            client=client,
        )

        with caplog.at_level(logging.ERROR, logger="test_collector"):
            _make_collector(FakeProvider(payload=payload), writer).run_cycle()  # type: ignore[arg-type]

        assert "Error writing to InfluxDB" in caplog.text
        assert "sunrise_time" in caplog.text
        client.write_api.return_value.write.assert_not_called()
