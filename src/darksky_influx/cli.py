"""CLI: load config, then write DarkSky data to InfluxDB once or on a cron schedule."""

from __future__ import annotations

import argparse
import sys

from rich.console import Console

from .collector import ForecastCollector
from .config import load_settings
from .exceptions import ConfigError
from .log_setup import setup_logger
from .scheduler import build_cron_trigger, run_schedule
from .storage.influx import InfluxPointWriter
from .weather.darksky import DarkSkyWeatherProvider


def parse_args() -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Write DarkSky current conditions and daily forecast to InfluxDB."
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single cycle even when COLLECTOR_CRON is set.",
    )
    return parser.parse_args()


def main() -> int:
    """Run the collector."""
    args = parse_args()
    console = Console()

    try:
        settings = load_settings()
        if settings.cron and not args.once:
            build_cron_trigger(settings.cron)
    except ConfigError as exc:
        setup_logger().error("Configuration failure: %s", exc)
        return 2

    logger = setup_logger(
        debug=settings.debug,
        secrets=(settings.darksky_key, settings.influxdb_password),
    )
    logger.info("Starting collector with config: %s", settings.safe_summary())

    try:
        with (
            DarkSkyWeatherProvider(settings=settings, logger=logger) as provider,
            InfluxPointWriter(settings=settings, logger=logger) as writer,
        ):
            if not writer.ping():
                logger.warning("InfluxDB at %s did not answer ping.", settings.influxdb_url)
            collector = ForecastCollector(
                settings=settings,
                provider=provider,
                writer=writer,
                logger=logger,
            )
            run_schedule(settings, collector, console, once=args.once)
    except (KeyboardInterrupt, SystemExit):
        logger.info("Collector stopped.")
    except Exception as exc:  # pragma: no cover - defensive catch for CLI runtime
        logger.exception("Unexpected collector failure: %s", exc)
        return 99

    return 0


if __name__ == "__main__":
    sys.exit(main())
