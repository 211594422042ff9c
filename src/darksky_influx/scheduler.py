"""One-shot or cron-driven dispatch of collector cycles."""

from __future__ import annotations

from typing import Protocol

from apscheduler.schedulers.base import BaseScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger
from rich.console import Console

from .config import Settings
from .exceptions import ConfigError

JOB_ID = "forecast_cycle"

# cron weekday numbering: 0 and 7 are both Sunday
_CRON_WEEKDAY_NAMES = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")
# APScheduler numbers weekdays from Monday
_APS_WEEKDAYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")
_UNRESTRICTED = {"*", "?"}


class Collector(Protocol):
    def run_cycle(self) -> None: ...


def _cron_weekday(token: str) -> int:
    name = token.lower()
    if name in _CRON_WEEKDAY_NAMES:
        return _CRON_WEEKDAY_NAMES.index(name)
    if not token.isdigit() or int(token) > 7:
        raise ConfigError(f"Invalid cron day-of-week value '{token}'; expected 0-7 or sun-sat.")
    return int(token) % 7


def _cron_weekdays(field: str) -> set[int]:
    """Expand a cron day-of-week field into cron weekday numbers (0 = Sunday)."""
    days: set[int] = set()
    for item in field.split(","):
        span, _, step_text = item.partition("/")
        step = 1
        if step_text:
            if not step_text.isdigit() or int(step_text) == 0:
                raise ConfigError(f"Invalid cron day-of-week step in '{item}'.")
            step = int(step_text)
        if span in _UNRESTRICTED:
            first, last = 0, 6
        elif "-" in span:
            start, _, end = span.partition("-")
            first, last = _cron_weekday(start), _cron_weekday(end)
            # "x-7" and "x-sun" end on Sunday at the top of the week
            if last == 0 and end.lower() in ("7", "sun"):
                last = 7
            if first > last:
                raise ConfigError(f"Invalid cron day-of-week range '{span}'.")
        else:
            first = _cron_weekday(span)
            last = 6 if step_text else first
        days.update(day % 7 for day in range(first, last + 1, step))
    return days


def _cron_day_of_week(field: str) -> str:
    """Translate a cron day-of-week field into APScheduler weekday names."""
    if field in _UNRESTRICTED:
        return "*"
    indexes = sorted((day - 1) % 7 for day in _cron_weekdays(field))
    if len(indexes) == 7:
        return "*"

    runs: list[list[int]] = []
    for index in indexes:
        if runs and index == runs[-1][-1] + 1:
            runs[-1].append(index)
        else:
            runs.append([index])
    names: list[str] = []
    for run in runs:
        if len(run) > 1:
            names.append(f"{_APS_WEEKDAYS[run[0]]}-{_APS_WEEKDAYS[run[-1]]}")
        else:
            names.append(_APS_WEEKDAYS[run[0]])
    return ",".join(names)


def build_cron_trigger(expression: str) -> CronTrigger:
    """Parse a 5-field cron expression, or 6 fields with leading seconds."""
    parts = expression.split()
    if len(parts) == 5:
        second = "0"
        minute, hour, day, month, day_of_week = parts
    elif len(parts) == 6:
        second, minute, hour, day, month, day_of_week = parts
    else:
        raise ConfigError(
            f"Invalid cron expression '{expression}': expected 5 or 6 fields, got {len(parts)}."
        )
    if day not in _UNRESTRICTED and day_of_week not in _UNRESTRICTED:
        # cron fires when either day field matches, APScheduler only when both do
        raise ConfigError(
            f"Invalid cron expression '{expression}': restrict day-of-month or "
            "day-of-week, not both."
        )

    try:
        return CronTrigger(
            second=second,
            minute=minute,
            hour=hour,
            day="*" if day == "?" else day,
            month=month,
            day_of_week=_cron_day_of_week(day_of_week),
        )
    except ValueError as exc:
        raise ConfigError(f"Invalid cron expression '{expression}': {exc}") from exc


def run_schedule(
    settings: Settings,
    collector: Collector,
    console: Console,
    *,
    once: bool = False,
    scheduler: BaseScheduler | None = None,
) -> None:
    """Run a single cycle, or register the collector on a cron trigger and block."""
    if settings.cron and not once:
        trigger = build_cron_trigger(settings.cron)
        scheduler = scheduler or BlockingScheduler()
        scheduler.add_job(collector.run_cycle, trigger, id=JOB_ID, name="DarkSky -> InfluxDB")
        console.print(
            f"DarkSky data will be written to InfluxDB on cron interval '{settings.cron}'"
        )
        scheduler.start()
        return

    console.print("DarkSky data is written to InfluxDB once")
    collector.run_cycle()
