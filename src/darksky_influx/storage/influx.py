"""InfluxDB point encoding and batched writes (1.8+ compatibility API)."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from typing import Any

from influxdb_client import InfluxDBClient, Point
from influxdb_client.client.write_api import SYNCHRONOUS
from influxdb_client.rest import ApiException
from urllib3.exceptions import HTTPError as Urllib3HTTPError

from ..config import Settings
from ..exceptions import StorageWriteError
from ..models import MeasurementPoint
from ..redaction import sanitize_text
from .schema import SCHEMAS, FieldType, MeasurementSchema


def _encode_field(name: str, value: Any, field_type: FieldType) -> float | int:
    try:
        number = float(value)
        if not math.isfinite(number):
            raise ValueError("line protocol cannot carry NaN or infinity")
        if field_type is FieldType.INTEGER:
            return int(value)
        return number
    except (TypeError, ValueError, OverflowError) as exc:
        raise StorageWriteError(
            f"Field '{name}' value {value!r} is not a valid {field_type.value}."
        ) from exc


def to_influx_point(
    point: MeasurementPoint,
    schemas: Mapping[str, MeasurementSchema] = SCHEMAS,
) -> Point:
    """Encode a point using the declared field types of its measurement.

    Null values are skipped since line protocol has no null.
    """
    schema = schemas.get(point.measurement)
    if schema is None:
        raise StorageWriteError(f"No schema declared for measurement '{point.measurement}'.")

    record = Point(point.measurement)
    for tag, value in point.tags.items():
        if tag not in schema.tags:
            raise StorageWriteError(
                f"Tag '{tag}' is not declared for measurement '{point.measurement}'."
            )
        record.tag(tag, value)
    for name, value in point.fields.items():
        field_type = schema.fields.get(name)
        if field_type is None:
            raise StorageWriteError(
                f"Field '{name}' is not declared for measurement '{point.measurement}'."
            )
        if value is None:
            continue
        record.field(name, _encode_field(name, value, field_type))
    return record


class InfluxPointWriter:
    """Writes measurement points to an InfluxDB 1.x database in one batch."""

    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger,
        client: InfluxDBClient | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        token = (
            f"{settings.influxdb_username}:{settings.influxdb_password}"
            if settings.influxdb_username
            else ""
        )
        self._client = client or InfluxDBClient(
            url=settings.influxdb_url,
            token=token,
            org="-",
            timeout=int(settings.influxdb_timeout_seconds * 1000),
        )
        self._write_api = self._client.write_api(write_options=SYNCHRONOUS)
        # 1.x compatibility: bucket is "database/retention_policy"
        self.bucket = f"{settings.influxdb_database}/{settings.influxdb_retention_policy}"

    def __enter__(self) -> InfluxPointWriter:
        return self

    def __exit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def ping(self) -> bool:
        """Return True when the InfluxDB server answers."""
        return bool(self._client.ping())

    def write_points(self, points: Sequence[MeasurementPoint]) -> None:
        """Encode and write all points in a single request."""
        records = [to_influx_point(point) for point in points]
        try:
            self._write_api.write(bucket=self.bucket, record=records)
        except ApiException as exc:
            raise StorageWriteError(
                f"InfluxDB rejected write to '{self.bucket}' with status {exc.status}: "
                f"{sanitize_text(str(exc.body or exc.reason))}"
            ) from exc
        except (Urllib3HTTPError, OSError) as exc:
            raise StorageWriteError(
                f"InfluxDB write request failed ({type(exc).__name__}): "
                f"{sanitize_text(str(exc))}"
            ) from exc
        self.logger.debug("Wrote %d points to %s", len(records), self.bucket)
