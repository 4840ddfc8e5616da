"""
Session-scoped facade over the analytics functions.

KpiEngine holds the one piece of configuration every calendar operation
needs, the business timezone, so callers do not thread it through each
call. It keeps no data between calls; any number of engines (or calls on
one engine) can run side by side on different snapshots.
"""

import logging
from datetime import date
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from . import timebuckets
from .classify import classify, classify_series, trend
from .comparison import compare, compare_distributions
from .config import BUSINESS_TIMEZONE
from .distribution import histogram
from .errors import ConfigurationError
from .pareto import pareto, vital_few
from .series import (
    AlignedSeries,
    Series,
    align,
    align_overlays,
    build_overlays,
    build_series,
    combine_aligned,
    oee,
    oee_overlays,
    resample_series,
    split_downtime,
    window_average,
)
from .stats import describe

logger = logging.getLogger(__name__)

# Dashboard time filters understood by KpiEngine.axis()
_VIEWS = ("week", "7days", "month", "90days", "ytd", "weeks", "months")


class KpiEngine:
    """Analytics entry point bound to a business timezone."""

    # Timezone-free analytics, exposed unchanged
    classify = staticmethod(classify)
    classify_series = staticmethod(classify_series)
    trend = staticmethod(trend)
    describe = staticmethod(describe)
    histogram = staticmethod(histogram)
    pareto = staticmethod(pareto)
    vital_few = staticmethod(vital_few)
    compare = staticmethod(compare)
    compare_distributions = staticmethod(compare_distributions)
    align = staticmethod(align)
    align_overlays = staticmethod(align_overlays)
    resample_series = staticmethod(resample_series)
    window_average = staticmethod(window_average)
    combine_aligned = staticmethod(combine_aligned)
    oee = staticmethod(oee)
    oee_overlays = staticmethod(oee_overlays)

    def __init__(self, timezone: str = BUSINESS_TIMEZONE):
        try:
            ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError, TypeError) as exc:
            raise ConfigurationError(f"Unknown timezone: {timezone!r}") from exc
        self._timezone = timezone
        logger.debug("KpiEngine bound to %s", timezone)

    @property
    def timezone(self) -> str:
        return self._timezone

    def __repr__(self) -> str:
        return f"KpiEngine(timezone={self._timezone!r})"

    # ------------------------------------------------------------------
    # Calendar
    # ------------------------------------------------------------------
    def normalize(self, instant: Any, unit: str = "day", **kwargs) -> str:
        return timebuckets.normalize(instant, unit, self._timezone, **kwargs)

    def wall_time_to_utc(self, wall: Any):
        return timebuckets.wall_time_to_utc(wall, self._timezone)

    def today(self, now: Any = None) -> date:
        return timebuckets.local_today(self._timezone, now)

    def axis(self, view: str, *, today: Any = None, n: int | None = None) -> list[str]:
        """Target bucket axis for a dashboard time filter.

        Views
        -----
        week    Monday-Friday of the current local week
        7days   last 7 days (or ``n``)
        month   first of the current month to today
        90days  last 90 days (or ``n``)
        ytd     fiscal weeks of the year to date
        weeks   last 6 fiscal weeks (or ``n``)
        months  last 12 months (or ``n``)
        """
        if view not in _VIEWS:
            raise ConfigurationError(f"Unknown view {view!r}; expected one of {_VIEWS}")

        local_day = timebuckets.as_date(today) if today is not None else self.today()

        if view == "week":
            return timebuckets.work_week_days(local_day)
        if view == "7days":
            return timebuckets.last_n_days(local_day, n or 7)
        if view == "month":
            return timebuckets.days_between(local_day.replace(day=1), local_day)
        if view == "90days":
            return timebuckets.last_n_days(local_day, n or 90)
        if view == "ytd":
            return timebuckets.fiscal_weeks_to_date(local_day)
        if view == "weeks":
            return timebuckets.last_n_fiscal_weeks(local_day, n or 6)
        return timebuckets.last_n_months(local_day, n or 12)

    def previous_weeks(self, today: Any = None, n: int = 4) -> tuple[list[str], list[str]]:
        """(latest n fiscal weeks, the n weeks before them)."""
        local_day = timebuckets.as_date(today) if today is not None else self.today()
        weeks = timebuckets.last_n_fiscal_weeks(local_day, 2 * n)
        return weeks[n:], weeks[:n]

    # ------------------------------------------------------------------
    # Series
    # ------------------------------------------------------------------
    def build_series(self, rows: Any, unit: str = "day", **kwargs) -> Series:
        return build_series(rows, unit, self._timezone, **kwargs)

    def build_overlays(self, rows: Any, family: str, unit: str = "day", **kwargs) -> dict[str, Series]:
        return build_overlays(rows, family, unit, self._timezone, **kwargs)

    def aligned(self, rows: Any, axis: list[str], unit: str = "day", **kwargs) -> AlignedSeries:
        """build_series + align in one step."""
        return align(self.build_series(rows, unit, **kwargs), axis)

    def split_downtime(self, start: Any, end: Any) -> dict[str, dict[str, float]]:
        return split_downtime(start, end, self._timezone)
