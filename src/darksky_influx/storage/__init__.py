"""Time-series storage: measurement schema and the InfluxDB writer."""

from .influx import InfluxPointWriter, to_influx_point
from .schema import FORECAST_SCHEMA, SCHEMAS, WEATHER_SCHEMA, FieldType, MeasurementSchema

__all__ = [
    "FORECAST_SCHEMA",
    "FieldType",
    "InfluxPointWriter",
    "MeasurementSchema",
    "SCHEMAS",
    "WEATHER_SCHEMA",
    "to_influx_point",
]
