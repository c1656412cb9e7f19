"""Parsing of the date/time strings accepted by the public API."""

from datetime import date, time

from src.core.exceptions import InvalidInput


def parse_date(value: str | None, field_name: str = "date") -> date:
    if not value or not value.strip():
        raise InvalidInput(f"{field_name} is required")
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise InvalidInput(f"Invalid {field_name} format, expected YYYY-MM-DD") from exc


def parse_time(value: str | None, field_name: str = "time") -> time:
    """Parse HH:MM or HH:MM:SS, truncated to the minute."""
    if not value or not value.strip():
        raise InvalidInput(f"{field_name} is required")
    try:
        parsed = time.fromisoformat(value.strip())
    except ValueError as exc:
        raise InvalidInput(f"Invalid {field_name} format, expected HH:MM") from exc
    if parsed.tzinfo is not None:
        raise InvalidInput(f"{field_name} must not carry a UTC offset")
    return parsed.replace(second=0, microsecond=0)
