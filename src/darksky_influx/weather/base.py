"""Provider-agnostic weather interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .models import ForecastFetchResult


class WeatherProvider(ABC):
    """Base contract for providers feeding the forecast collector."""

    @abstractmethod
    def fetch_forecast(self, *, lat: float, lon: float, units: str) -> ForecastFetchResult:
        """Fetch current conditions and the daily forecast for one location."""

    @abstractmethod
    def close(self) -> None:
        """Release provider resources."""
