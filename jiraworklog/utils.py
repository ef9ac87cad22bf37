"""Duration and timestamp helpers for jiraworklog."""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from .errors import DurationParseError, TimestampParseError


SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 60 * SECONDS_PER_MINUTE
# Jira's default working day.
SECONDS_PER_DAY = 8 * SECONDS_PER_HOUR

# Largest unit first, format_duration relies on the order.
UNIT_SECONDS = {
    "d": SECONDS_PER_DAY,
    "h": SECONDS_PER_HOUR,
    "m": SECONDS_PER_MINUTE,
}

# Work logged against a bare date is placed at midday.
DEFAULT_START_TIME = time(12, 0)

JIRA_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"


def parse_duration(duration: str) -> int:
    """Return the number of seconds in a duration such as ``1h30m``.

    Units are ``d`` (an 8 hour working day), ``h`` and ``m``; spaces between
    segments are optional and a lone number counts as minutes. Anything else,
    including a total of zero, raises :class:`DurationParseError`.
    """

    total = 0
    token = ""
    duration = duration.strip()
    if not duration:
        raise DurationParseError("Duration cannot be empty")

    for char in duration:
        if char.isdigit():
            token += char
            continue
        if char.isspace():
            if token:
                raise DurationParseError(f"Duration segment '{token}' is missing a unit")
            continue
        if char == "-":
            raise DurationParseError(f"Negative durations are not allowed: '{duration}'")
        if not token:
            raise DurationParseError(f"Missing value before unit '{char}'")
        if char not in UNIT_SECONDS:
            raise DurationParseError(
                f"Unknown unit '{char}' in duration '{duration}', use d, h or m"
            )
        total += int(token) * UNIT_SECONDS[char]
        token = ""

    if token:
        if total:
            raise DurationParseError(f"Duration segment '{token}' is missing a unit")
        total = int(token) * SECONDS_PER_MINUTE

    if total <= 0:
        raise DurationParseError(f"Duration '{duration}' must be longer than zero")

    return total


def format_duration(seconds: int) -> str:
    """Render ``seconds`` the way Jira shows time spent (``1d 2h 30m``)."""
    if seconds < 0:
        raise ValueError("Duration cannot be negative")

    parts = []
    remaining = seconds
    for unit, size in UNIT_SECONDS.items():
        count, remaining = divmod(remaining, size)
        if count:
            parts.append(f"{count}{unit}")
    if remaining or not parts:
        parts.append(f"{remaining}s")
    return " ".join(parts)


def local_now() -> datetime:
    """Return the current time in the machine's local timezone."""
    return datetime.now().astimezone()


def _is_local(moment: datetime) -> bool:
    return moment.utcoffset() == moment.astimezone().utcoffset()


def _relative_day(text: str, today: date) -> Optional[date]:
    if text == "today":
        return today
    if text == "yesterday":
        return today - timedelta(days=1)
    return None


def parse_date(text: str, today: Optional[date] = None) -> date:
    """Parse ``today``, ``yesterday`` or ``YYYY-MM-DD``."""
    today = today or local_now().date()
    value = text.strip().lower()
    relative = _relative_day(value, today)
    if relative is not None:
        return relative
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise TimestampParseError(
            f"Could not parse '{text}' as a date, dates should have format yyyy-mm-dd"
        ) from None


def parse_start_time(text: str, now: Optional[datetime] = None) -> datetime:
    """Turn user input into the timezone aware start of a work log.

    Accepts ``now``, ``today``, ``yesterday``, ``YYYY-MM-DD``,
    ``YYYY-MM-DD HH:MM[:SS]`` (a ``T`` separator works too) and ``HH:MM``
    for a time today. Bare dates are placed at midday.

    When ``now`` is in the machine's local zone (the default) results carry
    the local offset in effect on the resulting date, so daylight saving
    changes between ``now`` and the start are respected. A ``now`` in some
    other fixed zone pins every result to that zone.
    """
    now = now or local_now()
    if now.tzinfo is None:
        now = now.astimezone()
    follow_local = _is_local(now)

    def localize(moment: datetime) -> datetime:
        if moment.tzinfo is None:
            return moment.astimezone() if follow_local else moment.replace(tzinfo=now.tzinfo)
        return moment.astimezone() if follow_local else moment.astimezone(now.tzinfo)

    value = text.strip().lower()
    if not value:
        raise TimestampParseError("Start time cannot be empty")
    if value == "now":
        return now

    relative = _relative_day(value, now.date())
    if relative is not None:
        return localize(datetime.combine(relative, DEFAULT_START_TIME))

    if len(value) <= 8 and ":" in value:
        try:
            clock = time.fromisoformat(value)
        except ValueError:
            pass
        else:
            return localize(datetime.combine(now.date(), clock))

    if len(value) == 10:
        try:
            day = date.fromisoformat(value)
        except ValueError:
            pass
        else:
            return localize(datetime.combine(day, DEFAULT_START_TIME))

    try:
        parsed = datetime.fromisoformat(value.upper())
    except ValueError:
        raise TimestampParseError(
            f"Could not parse start time '{text}', use 'now', 'today', yyyy-mm-dd, "
            "'yyyy-mm-dd HH:MM' or HH:MM"
        ) from None
    return localize(parsed)


def local_day_bounds(day: date) -> tuple[datetime, datetime]:
    """Local midnight at the start and at the end of ``day``."""
    start = datetime.combine(day, time.min).astimezone()
    end = datetime.combine(day + timedelta(days=1), time.min).astimezone()
    return start, end


def make_timestamp(dt: datetime | None = None) -> str:
    """Return a timestamp in the ``started`` format Jira's API expects.

    The format is ``yyyy-MM-ddTHH:mm:ss.SSS+HHMM``.
    """
    dt = dt or datetime.now(timezone.utc)
    if dt.tzinfo is None:
        dt = dt.astimezone()
    milliseconds = dt.microsecond // 1000
    return dt.strftime(f"%Y-%m-%dT%H:%M:%S.{milliseconds:03d}%z")


def parse_jira_timestamp(value: str) -> datetime:
    """Parse a timestamp returned by Jira (``2024-01-31T09:00:00.000+0100``)."""
    try:
        return datetime.strptime(value, JIRA_TIMESTAMP_FORMAT)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise TimestampParseError(f"Unrecognized Jira timestamp: {value}") from None


def epoch_millis(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)
