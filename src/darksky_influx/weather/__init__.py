"""Weather provider integrations."""

from .base import WeatherProvider
from .darksky import DarkSkyWeatherProvider
from .models import DailyBlock, ForecastFetchResult, ForecastResponse

__all__ = [
    "DailyBlock",
    "DarkSkyWeatherProvider",
    "ForecastFetchResult",
    "ForecastResponse",
    "WeatherProvider",
]
