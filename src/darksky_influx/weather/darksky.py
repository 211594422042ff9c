"""DarkSky (and DarkSky-compatible) forecast provider."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..config import Settings
from ..exceptions import WeatherProviderError
from ..redaction import sanitize_text
from .base import WeatherProvider
from .models import ForecastFetchResult, ForecastResponse

EXCLUDED_BLOCKS = ("minutely", "hourly", "alerts", "flags")


class DarkSkyWeatherProvider(WeatherProvider):
    """Fetches current conditions and the daily forecast from the DarkSky API."""

    provider_name = "darksky"

    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger,
        client: httpx.Client | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self._base_url = settings.darksky_base_url.rstrip("/")
        self._secrets = (settings.darksky_key,)
        self._client = client or httpx.Client(
            timeout=settings.darksky_timeout_seconds,
            headers={"Accept": "application/json"},
        )

    def __enter__(self) -> DarkSkyWeatherProvider:
        return self

    def __exit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def forecast_url(self, lat: float, lon: float) -> str:
        return f"{self._base_url}/{self.settings.darksky_key}/{lat},{lon}"

    def fetch_forecast(self, *, lat: float, lon: float, units: str) -> ForecastFetchResult:
        """Request current + daily data, excluding minutely/hourly/alerts/flags."""
        url = self.forecast_url(lat, lon)
        params = {"exclude": ",".join(EXCLUDED_BLOCKS), "units": units}
        self.logger.debug("Requesting DarkSky forecast for %s,%s units=%s", lat, lon, units)

        payload = self._request_json(url, params)
        try:
            response = ForecastResponse.model_validate(payload)
        except ValidationError as exc:
            raise WeatherProviderError(
                "DarkSky payload missing 'currently' or 'daily.data' forecast sections: "
                f"{exc.error_count()} validation error(s).",
                category="payload",
            ) from exc
        return ForecastFetchResult(response=response, raw_payload=payload)

    def _request_json(self, url: str, params: dict[str, str]) -> dict[str, Any]:
        try:
            response = self._client.get(url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise WeatherProviderError(
                f"DarkSky forecast request failed with status {status}: "
                f"{sanitize_text(self._error_detail(exc.response), self._secrets)}",
                category="status",
                status_code=status,
            ) from exc
        except httpx.HTTPError as exc:
            raise WeatherProviderError(
                f"DarkSky forecast request failed ({type(exc).__name__}): "
                f"{sanitize_text(str(exc), self._secrets)}",
                category="transport",
            ) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise WeatherProviderError(
                "DarkSky forecast returned non-JSON response.",
                category="payload",
            ) from exc

        if not isinstance(payload, dict):
            raise WeatherProviderError(
                f"DarkSky forecast returned unexpected payload type {type(payload).__name__}.",
                category="payload",
            )
        return payload

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        # DarkSky error bodies look like {"code": 403, "error": "daily usage limit exceeded"}
        try:
            body = response.json()
        except ValueError:
            return response.text[:300]
        if isinstance(body, dict) and isinstance(body.get("error"), str):
            return body["error"]
        return response.text[:300]
