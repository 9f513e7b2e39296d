"""Run metadata: UTC timestamps, run dates and run identifiers."""

from __future__ import annotations

from datetime import date, datetime, timezone

from amenity_parser.common.errors import ConfigError


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def utc_timestamp_iso() -> str:
    return _utc_now().isoformat(timespec="milliseconds")


def parse_run_date(value: str | None) -> str:
    """Validate a YYYY-MM-DD run date; today's UTC date when omitted."""
    if not value:
        return _utc_now().date().isoformat()
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError as exc:
        raise ConfigError(f"Invalid run date {value!r}, expected YYYY-MM-DD") from exc


def generate_run_id(now: datetime | None = None) -> str:
    stamp = (now or _utc_now()).astimezone(timezone.utc)
    return stamp.strftime("run-%Y%m%dT%H%M%S%fZ")
