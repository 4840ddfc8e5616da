"""
Series building and alignment.

Raw rows are bucketed into sparse ``(key, value)`` series, then every
series (base KPI, shift overlay, machine overlay) is mapped onto a
caller-supplied bucket axis by the same align() call. Missing buckets come
out as None, never 0, so overlay indices always line up with the base
series.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Any, Callable, Iterable, Sequence

import numpy as np
import pandas as pd

from .config import OEE_DECIMALS, OEE_MAX_PCT, SHIFT_IDS, SHIFT_WINDOWS
from .errors import ConfigurationError, InvalidTimestamp
from .timebuckets import (
    day_key,
    key_for_date,
    normalize,
    parse_instant,
    sort_keys,
    wall_time_to_utc,
)
from .utils import safe_float

logger = logging.getLogger(__name__)

_AGGREGATIONS = ("mean", "sum", "count", "last")


@dataclass(frozen=True)
class Series:
    """Ordered ``(key, value | None)`` pairs. Order is chronological."""

    keys: tuple[str, ...]
    values: tuple[float | None, ...]
    name: str | None = None

    def __post_init__(self):
        if len(self.keys) != len(self.values):
            raise ValueError(
                f"Series keys/values length mismatch: {len(self.keys)} != {len(self.values)}"
            )

    def __len__(self) -> int:
        return len(self.keys)

    @classmethod
    def from_pairs(cls, pairs: Iterable, name: str | None = None) -> "Series":
        lookup = _to_lookup(pairs)
        return cls(tuple(lookup.keys()), tuple(lookup.values()), name)

    def pairs(self) -> list[tuple[str, float | None]]:
        return list(zip(self.keys, self.values))

    def valid_values(self) -> list[float]:
        return [v for v in self.values if v is not None]

    def value_at(self, key: str) -> float | None:
        for k, v in zip(self.keys, self.values):
            if k == key:
                return v
        return None

    def to_dict(self) -> dict:
        return {"name": self.name, "labels": list(self.keys), "values": list(self.values)}

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({"key": list(self.keys), "value": list(self.values)})


class AlignedSeries(Series):
    """A Series whose keys are exactly a target axis, gaps as None."""


def _to_lookup(source: Any) -> dict[str, float | None]:
    """Build a fresh key -> value map. Later duplicates win."""
    if source is None:
        return {}
    if isinstance(source, Series):
        items = zip(source.keys, source.values)
    elif isinstance(source, pd.Series):
        items = source.items()
    elif isinstance(source, Mapping):
        items = source.items()
    else:
        items = []
        for entry in source:
            if isinstance(entry, Mapping):
                items.append((entry["key"], entry.get("value")))
            else:
                key, value = entry
                items.append((key, value))

    return {str(key): safe_float(value) for key, value in items}


# ---------------------------------------------------------------------------
# Alignment
# ---------------------------------------------------------------------------
def align(source: Any, axis: Iterable[str], name: str | None = None) -> AlignedSeries:
    """Map a sparse series onto an ordered bucket axis.

    Parameters
    ----------
    source : Series, pd.Series, mapping, or iterable of ``(key, value)``
        pairs / ``{"key", "value"}`` dicts. Not modified.
    axis : Ordered bucket keys, e.g. last_n_days(today, 7).

    Returns
    -------
    AlignedSeries with ``len(axis)`` entries; keys equal the axis.
    """
    lookup = _to_lookup(source)
    keys = tuple(axis)
    if name is None and isinstance(source, Series):
        name = source.name
    return AlignedSeries(keys, tuple(lookup.get(k) for k in keys), name)


def align_overlays(
    overlays: Mapping[str, Any],
    axis: Iterable[str],
) -> dict[str, AlignedSeries]:
    """Align each named overlay (shift or machine) onto the same axis.

    Several overlay families may be passed together; which ones are shown
    at once is a UI decision.
    """
    keys = tuple(axis)
    return {name: align(source, keys, name=name) for name, source in overlays.items()}


# ---------------------------------------------------------------------------
# Pointwise composites
# ---------------------------------------------------------------------------
def combine_aligned(
    series_list: Sequence[Series],
    fn: Callable[..., float | None],
    name: str | None = None,
) -> AlignedSeries:
    """Apply ``fn`` point by point across series sharing one axis.

    ``fn`` receives one value per series. A point is None when any input
    is None or ``fn`` returns None.

    Raises
    ------
    ConfigurationError
        If no series is given or their keys differ.
    """
    if not series_list:
        raise ConfigurationError("combine_aligned needs at least one series")
    keys = tuple(series_list[0].keys)
    for other in series_list[1:]:
        if tuple(other.keys) != keys:
            raise ConfigurationError(
                f"Cannot combine series on different axes: {series_list[0].name!r} vs {other.name!r}"
            )

    values = []
    for point in zip(*(s.values for s in series_list)):
        if any(v is None for v in point):
            values.append(None)
            continue
        values.append(safe_float(fn(*point)))
    return AlignedSeries(keys, tuple(values), name)


def _oee_point(efficiency: float, availability: float, yield_pct: float) -> float | None:
    value = efficiency * availability * yield_pct / 10000
    if value > OEE_MAX_PCT:
        return None
    return round(value, OEE_DECIMALS)


def oee(
    efficiency: Series,
    availability: Series,
    yield_pct: Series,
    name: str = "OEE (%)",
) -> AlignedSeries:
    """OEE % = efficiency x availability x yield / 10000, per bucket.

    All three inputs are percentages aligned on the same axis. Points over
    OEE_MAX_PCT come out as gaps.
    """
    return combine_aligned([efficiency, availability, yield_pct], _oee_point, name)


def oee_overlays(
    efficiency: Mapping[str, Series],
    availability: Mapping[str, Series],
    yield_pct: Series,
) -> dict[str, AlignedSeries]:
    """OEE per shift or machine.

    Yield is measured for the line as a whole, so the same yield series is
    used for every overlay. Only names present in both efficiency and
    availability get an OEE overlay.
    """
    return {
        name: oee(series, availability[name], yield_pct, name=name)
        for name, series in efficiency.items()
        if name in availability
    }


# ---------------------------------------------------------------------------
# Building from raw rows
# ---------------------------------------------------------------------------
def _rows_frame(rows: Any) -> pd.DataFrame:
    if isinstance(rows, pd.DataFrame):
        return rows.copy()
    return pd.DataFrame(list(rows))


def _aggregate(frame: pd.DataFrame, how: str) -> pd.Series:
    if how not in _AGGREGATIONS:
        raise ConfigurationError(f"Unknown aggregation: {how!r}")
    grouped = frame.groupby("key", sort=False)["value"]
    if how == "mean":
        return grouped.mean()
    if how == "sum":
        return grouped.sum(min_count=1)
    if how == "count":
        return grouped.count()
    return grouped.last()


def _series_from_aggregate(agg: pd.Series, name: str | None) -> Series:
    ordered = sort_keys(agg.index)
    values = tuple(None if pd.isna(agg[k]) else float(agg[k]) for k in ordered)
    return Series(tuple(ordered), values, name)


def build_series(
    rows: Any,
    unit: str,
    tz: str,
    *,
    value_field: str = "value",
    timestamp_field: str = "timestamp",
    how: str = "mean",
    window_days: int | None = None,
    origin: Any = None,
    name: str | None = None,
) -> Series:
    """Bucket raw rows into a sparse, chronologically ordered series.

    Parameters
    ----------
    rows : Iterable of dicts or a DataFrame with ``timestamp`` and ``value``.
    unit : Bucket unit ("day", "week", "month", "rolling").
    tz : Business timezone.
    how : "mean", "sum", "count" (non-null values) or "last".

    Rows with an unparsable timestamp are skipped and logged; they never
    abort the build.
    """
    df = _rows_frame(rows)
    if df.empty or timestamp_field not in df.columns:
        logger.warning("No rows to build series %r", name)
        return Series((), (), name)

    keys = []
    skipped = 0
    for raw in df[timestamp_field]:
        try:
            keys.append(normalize(raw, unit, tz, window_days=window_days, origin=origin))
        except InvalidTimestamp:
            keys.append(None)
            skipped += 1
    if skipped:
        logger.warning("Skipped %d row(s) with invalid timestamps in %r", skipped, name)

    raw_values = df[value_field] if value_field in df.columns else [None] * len(df)
    values = [safe_float(v) for v in raw_values]

    frame = pd.DataFrame({
        "key": keys,
        "value": [np.nan if v is None else v for v in values],
    })
    frame = frame[frame["key"].notna()]
    if frame.empty:
        return Series((), (), name)

    result = _series_from_aggregate(_aggregate(frame, how), name)
    logger.info("Built series %r with %d %s buckets", name, len(result), unit)
    return result


def build_overlays(
    rows: Any,
    family: str,
    unit: str,
    tz: str,
    **kwargs,
) -> dict[str, Series]:
    """One series per distinct value of ``family`` ("shift", "machine", ...)."""
    df = _rows_frame(rows)
    if df.empty or family not in df.columns:
        return {}

    overlays = {}
    for member in sorted(df[family].dropna().unique(), key=str):
        subset = df[df[family] == member]
        overlays[str(member)] = build_series(subset, unit, tz, name=str(member), **kwargs)
    return overlays


def resample_series(series: Series, unit: str, how: str = "mean", **kwargs) -> Series:
    """Re-bucket a daily series into weeks or months.

    Used for year-to-date views, where daily values are shown as weekly
    averages. Null days are ignored; a bucket with no values is None.
    """
    keys = [key_for_date(k, unit, **kwargs) for k in series.keys]
    frame = pd.DataFrame({
        "key": keys,
        "value": [np.nan if v is None else v for v in series.values],
    })
    if frame.empty:
        return Series((), (), series.name)
    return _series_from_aggregate(_aggregate(frame, how), series.name)


def window_average(series: Series, keys: Iterable[str]) -> float | None:
    """Mean of the non-null values at ``keys``; None when there are none."""
    lookup = dict(zip(series.keys, series.values))
    selected = [lookup[k] for k in keys if lookup.get(k) is not None]
    if not selected:
        return None
    return float(np.mean(selected))


# ---------------------------------------------------------------------------
# Downtime splitting
# ---------------------------------------------------------------------------
def _shift_at(minute_of_day: float) -> tuple[str, int]:
    for shift, (start, end) in SHIFT_WINDOWS.items():
        if start <= minute_of_day < end:
            return shift, end
    raise ValueError(f"Minute {minute_of_day} outside any shift window")


def split_downtime(start: Any, end: Any, tz: str) -> dict[str, dict[str, float]]:
    """Split a downtime interval into minutes per local day and shift.

    Boundaries (shift changes, local midnight) are located in the business
    zone and converted back to UTC, so elapsed minutes stay exact across
    DST changes.

    Returns
    -------
    ``{day_key: {"shift1": minutes, "shift2": minutes, "shift3": minutes}}``
    in chronological order. Empty if ``end <= start``.
    """
    cursor = parse_instant(start)
    stop = parse_instant(end)
    result: dict[str, dict[str, float]] = {}

    while cursor < stop:
        local = cursor.tz_convert(tz)
        minute_of_day = local.hour * 60 + local.minute + local.second / 60
        shift, window_end = _shift_at(minute_of_day)

        wall_boundary = datetime.combine(local.date(), time()) + timedelta(minutes=window_end)
        boundary = wall_time_to_utc(wall_boundary, tz)
        if boundary <= cursor:
            boundary = cursor + pd.Timedelta(minutes=1)

        step_end = min(boundary, stop)
        minutes = (step_end - cursor).total_seconds() / 60

        day = result.setdefault(day_key(local.date()), {s: 0.0 for s in SHIFT_IDS})
        day[shift] += minutes
        cursor = step_end

    return result
