import re
from datetime import datetime, timedelta, timezone
from typing import Optional

UTC_TIMESTAMP_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(\d+))?Z$")


def format_timestamp(value: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now_iso() -> str:
    return format_timestamp(datetime.now(timezone.utc))


def parse_timestamp(value: str) -> datetime:
    """
    Parse a UTC ISO-8601 date-time with a ``Z`` suffix.

    Fractional seconds may have any number of digits; anything past
    microseconds is truncated. Offsets and naive values raise ValueError.
    """
    match = UTC_TIMESTAMP_PATTERN.match(value) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"invalid UTC ISO-8601 datetime: {value!r}")
    whole, fraction = match.groups()
    parsed = datetime.strptime(whole, "%Y-%m-%dT%H:%M:%S").replace(tzinfo=timezone.utc)
    if fraction:
        parsed = parsed.replace(microsecond=int(fraction[:6].ljust(6, "0")))
    return parsed


def next_timestamp(previous: Optional[str], now: Optional[str] = None) -> str:
    """
    Stamp that is strictly later than ``previous``.

    When the clock has not moved past the stored value, one millisecond is added
    to it instead.
    """
    current = now or utc_now_iso()
    if not previous:
        return current
    try:
        previous_dt = parse_timestamp(previous)
    except ValueError:
        return current
    if parse_timestamp(current) > previous_dt:
        return current
    return format_timestamp(previous_dt + timedelta(milliseconds=1))
