"""
Calendar normalizer: stored instants -> business-timezone bucket keys.

Every day, fiscal-week and month key in the engine is produced here. The
wall-clock date is always read from the instant converted into the
business zone; a local day is never derived by truncating a UTC string.
"""

import logging
import math
import re
from datetime import date, datetime, timedelta
from typing import Any, Iterable

import pandas as pd

from .config import BUCKET_UNITS
from .errors import ConfigurationError, InvalidTimestamp

logger = logging.getLogger(__name__)

_WEEKDAY_LABELS = ["Mo", "Tu", "We", "Th", "Fr", "Sa", "Su"]

_DAY_KEY = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_MONTH_KEY = re.compile(r"^(\d{4})-(\d{2})$")
_WEEK_KEY = re.compile(r"^FW(\d{1,2})-(\d{4})$")
_ROLLING_KEY = re.compile(r"^R(-?\d+)$")

# Wall-clock inputs typed by operators
_US_WALL_TIME = re.compile(
    r"^(\d{1,2})/(\d{1,2})/(\d{4})\s+(\d{1,2}):(\d{2})(?::(\d{2}))?\s*([AaPp][Mm])$"
)
_ISO_WALL_TIME = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[\sT](\d{1,2}):(\d{2})(?::(\d{2}))?$"
)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------
def parse_instant(value: Any) -> pd.Timestamp:
    """Parse a stored instant into a tz-aware UTC timestamp.

    Accepts datetime / pd.Timestamp objects, ISO-8601 strings, MySQL-style
    ``"YYYY-MM-DD HH:MM:SS"`` strings and epoch seconds. Naive values are
    taken as UTC, which is how the persistence layer stores them.

    Raises
    ------
    InvalidTimestamp
        For None, blanks, NaN, relative words such as "now", or any text
        pandas cannot parse.
    """
    if value is None or isinstance(value, bool):
        raise InvalidTimestamp(f"Not a timestamp: {value!r}")

    try:
        if isinstance(value, (int, float)):
            if math.isnan(value) or math.isinf(value):
                raise InvalidTimestamp(f"Not a timestamp: {value!r}")
            ts = pd.Timestamp(value, unit="s", tz="UTC")
        elif isinstance(value, str):
            text = value.strip()
            # pandas happily parses "now"/"today"; stored data never contains them
            if not text or not text[0].isdigit():
                raise InvalidTimestamp(f"Unparsable timestamp: {value!r}")
            ts = pd.Timestamp(text)
        else:
            ts = pd.Timestamp(value)
    except (ValueError, TypeError, OverflowError) as exc:
        raise InvalidTimestamp(f"Unparsable timestamp: {value!r}") from exc

    if ts is pd.NaT or pd.isna(ts):
        raise InvalidTimestamp(f"Unparsable timestamp: {value!r}")

    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def local_parts(instant: Any, tz: str) -> pd.Timestamp:
    """Return ``instant`` as a wall-clock timestamp in ``tz``.

    The offset comes from the instant itself, so CST/CDT is resolved per
    timestamp rather than assumed constant.
    """
    return parse_instant(instant).tz_convert(tz)


def as_date(value: Any) -> date:
    """Coerce a local calendar date given as date, datetime or string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return pd.Timestamp(value).date()
    except (ValueError, TypeError) as exc:
        raise InvalidTimestamp(f"Not a calendar date: {value!r}") from exc


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------
def fiscal_week(local_date: Any) -> tuple[int, int]:
    """Return ``(week, year)`` for a local calendar date.

    Weeks start on Monday and are bounded by the calendar year:
    ``week = ceil((day_of_year0 + jan1_weekday + 1) / 7)`` where
    ``jan1_weekday`` is 0 for Monday. All days from a Monday to the
    following Sunday share a week, except where 31 Dec / 1 Jan splits it.
    """
    d = as_date(local_date)
    jan1 = date(d.year, 1, 1)
    day_of_year0 = (d - jan1).days
    week = math.ceil((day_of_year0 + jan1.weekday() + 1) / 7)
    return week, d.year


def day_key(local_date: Any) -> str:
    d = as_date(local_date)
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def week_key(local_date: Any) -> str:
    week, year = fiscal_week(local_date)
    return f"FW{week}-{year}"


def month_key(local_date: Any) -> str:
    d = as_date(local_date)
    return f"{d.year:04d}-{d.month:02d}"


def rolling_key(local_date: Any, window_days: int, origin: Any) -> str:
    """Key of the ``window_days``-wide window containing ``local_date``.

    Window 0 starts on ``origin``; earlier dates get negative indices.
    """
    if window_days is None or window_days < 1:
        raise ConfigurationError("rolling buckets need window_days >= 1")
    if origin is None:
        raise ConfigurationError("rolling buckets need an origin date")
    offset = (as_date(local_date) - as_date(origin)).days
    return f"R{offset // window_days}"


def normalize(
    instant: Any,
    unit: str,
    tz: str,
    *,
    window_days: int | None = None,
    origin: Any = None,
) -> str:
    """Normalize a stored instant into a bucket key in the business zone.

    Parameters
    ----------
    instant : Stored timestamp (see parse_instant).
    unit : "day", "week", "month" or "rolling".
    tz : IANA business timezone.
    window_days, origin : Rolling-window width and local start date
        (unit="rolling" only).

    Returns
    -------
    ``YYYY-MM-DD``, ``FW<week>-<year>``, ``YYYY-MM`` or ``R<index>``.
    """
    if unit not in BUCKET_UNITS:
        raise ConfigurationError(f"Unknown bucket unit: {unit!r}")

    local = local_parts(instant, tz)
    local_date = local.date()

    if unit == "day":
        return day_key(local_date)
    if unit == "week":
        return week_key(local_date)
    if unit == "month":
        return month_key(local_date)
    return rolling_key(local_date, window_days, origin)


def key_for_date(local_date: Any, unit: str, *, window_days: int | None = None,
                 origin: Any = None) -> str:
    """Bucket key for a date that is already a business-zone calendar date."""
    if unit == "day":
        return day_key(local_date)
    if unit == "week":
        return week_key(local_date)
    if unit == "month":
        return month_key(local_date)
    if unit == "rolling":
        return rolling_key(local_date, window_days, origin)
    raise ConfigurationError(f"Unknown bucket unit: {unit!r}")


def bucket_sort_key(key: str) -> tuple:
    """Total ordering for bucket keys.

    Day and month keys sort by date, fiscal weeks by (year, week) so that
    FW10 follows FW9, rolling keys by index. Unknown keys sort last,
    alphabetically.
    """
    m = _DAY_KEY.match(key)
    if m:
        return (0, int(m.group(1)), int(m.group(2)), int(m.group(3)), "")
    m = _WEEK_KEY.match(key)
    if m:
        return (1, int(m.group(2)), int(m.group(1)), 0, "")
    m = _MONTH_KEY.match(key)
    if m:
        return (2, int(m.group(1)), int(m.group(2)), 0, "")
    m = _ROLLING_KEY.match(key)
    if m:
        return (3, int(m.group(1)), 0, 0, "")
    return (4, 0, 0, 0, key)


def sort_keys(keys: Iterable[str]) -> list[str]:
    return sorted(keys, key=bucket_sort_key)


def day_label(key: str) -> str:
    """Short chart label for a day key, e.g. ``"Mo 6/2"``."""
    m = _DAY_KEY.match(key)
    if not m:
        return key
    d = date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    return f"{_WEEKDAY_LABELS[d.weekday()]} {d.month}/{d.day}"


# ---------------------------------------------------------------------------
# Wall time -> UTC
# ---------------------------------------------------------------------------
def _parse_wall_time(wall: Any) -> tuple[int, int, int, int, int, int]:
    if isinstance(wall, datetime):
        return wall.year, wall.month, wall.day, wall.hour, wall.minute, wall.second

    text = str(wall or "").strip()

    m = _US_WALL_TIME.match(text)
    if m:
        mm, dd, yyyy, hh, mi, ss, ampm = m.groups()
        hour = int(hh)
        if ampm.lower() == "pm" and hour != 12:
            hour += 12
        if ampm.lower() == "am" and hour == 12:
            hour = 0
        return int(yyyy), int(mm), int(dd), hour, int(mi), int(ss or 0)

    m = _ISO_WALL_TIME.match(text)
    if m:
        yyyy, mm, dd, hh, mi, ss = m.groups()
        return int(yyyy), int(mm), int(dd), int(hh), int(mi), int(ss or 0)

    raise InvalidTimestamp(
        f'Unrecognized wall time {wall!r}; use "MM/DD/YYYY hh:mm AM/PM" '
        'or "YYYY-MM-DD HH:MM"'
    )


def _utc_offset(tz: str, utc_instant: pd.Timestamp) -> pd.Timedelta:
    """Offset (local - UTC) of ``tz`` at ``utc_instant``."""
    return pd.Timedelta(utc_instant.tz_convert(tz).utcoffset())


def wall_time_to_utc(wall: Any, tz: str) -> pd.Timestamp:
    """Convert a business-zone wall-clock time to a UTC instant.

    The wall time is first read as if it were UTC. The zone offset at that
    guess is removed, then the offset is recomputed at the corrected
    instant and applied again, which settles times within the hour around
    a DST change.
    """
    try:
        parts = _parse_wall_time(wall)
        year, month, day, hour, minute, second = parts
        guess = pd.Timestamp(datetime(year, month, day, hour, minute, second)).tz_localize("UTC")
    except (ValueError, TypeError) as exc:
        raise InvalidTimestamp(f"Invalid wall time: {wall!r}") from exc

    offset = _utc_offset(tz, guess)
    utc = guess - offset
    refined = _utc_offset(tz, utc)
    if refined != offset:
        logger.debug("DST refinement for %r: %s -> %s", wall, offset, refined)
    return guess - refined


def local_today(tz: str, now: Any = None) -> date:
    """Business-zone calendar date of ``now`` (default: the current instant)."""
    instant = pd.Timestamp.now(tz="UTC") if now is None else parse_instant(now)
    return instant.tz_convert(tz).date()


# ---------------------------------------------------------------------------
# Target axes (oldest first)
# ---------------------------------------------------------------------------
def days_between(start: Any, end: Any) -> list[str]:
    """Every day key from ``start`` to ``end`` inclusive."""
    first, last = as_date(start), as_date(end)
    n = (last - first).days + 1
    return [day_key(first + timedelta(days=i)) for i in range(max(n, 0))]


def last_n_days(end: Any, n: int) -> list[str]:
    last = as_date(end)
    return [day_key(last - timedelta(days=i)) for i in range(n - 1, -1, -1)]


def work_week_days(today: Any) -> list[str]:
    """Monday to Friday of the local week containing ``today``."""
    d = as_date(today)
    monday = d - timedelta(days=d.weekday())
    return [day_key(monday + timedelta(days=i)) for i in range(5)]


def last_n_fiscal_weeks(end: Any, n: int) -> list[str]:
    """The ``n`` most recent fiscal-week keys up to ``end``.

    Walks back a day at a time so a week split by New Year contributes
    both of its keys, exactly as normalize() would produce them.
    """
    keys: list[str] = []
    d = as_date(end)
    while len(keys) < n:
        key = week_key(d)
        if key not in keys:
            keys.append(key)
        d -= timedelta(days=1)
    return list(reversed(keys))


def fiscal_weeks_to_date(today: Any) -> list[str]:
    """FW1 .. current fiscal week of the year containing ``today``."""
    week, year = fiscal_week(today)
    return [f"FW{w}-{year}" for w in range(1, week + 1)]


def last_n_months(end: Any, n: int) -> list[str]:
    d = as_date(end)
    year, month = d.year, d.month
    keys = []
    for _ in range(n):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(keys))


def rolling_axis(count: int, start: int = 0) -> list[str]:
    return [f"R{i}" for i in range(start, start + count)]
