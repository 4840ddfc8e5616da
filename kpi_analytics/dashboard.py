"""
Dashboard-ready output bundles.

These are the entry points a rendering front end calls to populate KPI
cards, Measure/Improve panels and Pareto charts. Each function returns a
plain dict. Every analytic inside a bundle runs on its own: if one fails
with an engine error, its slot holds ``{"error": kind, "detail": ...}``
and the other slots are still filled.
"""

import logging
from typing import Any, Callable, Iterable, Mapping

from .classify import ThresholdSpec, calc_variance
from .config import HISTOGRAM_BIN_COUNT, PARETO_VITAL_FEW_PCT
from .engine import KpiEngine
from .errors import KpiAnalyticsError, error_payload
from .timebuckets import day_label

logger = logging.getLogger(__name__)


def _isolated(label: str, compute: Callable[[], Any]) -> Any:
    """Run one analytic; an engine error becomes an error payload."""
    try:
        return compute()
    except KpiAnalyticsError as exc:
        logger.warning("%s unavailable: %s", label, exc)
        return error_payload(exc)


def _labels(keys: Iterable[str], unit: str) -> list[str]:
    if unit == "day":
        return [day_label(k) for k in keys]
    return list(keys)


def get_kpi_card(
    engine: KpiEngine,
    kpi_name: str,
    rows: Any,
    axis: list[str],
    preferences: Mapping | None = None,
    *,
    unit: str = "day",
    overlay_families: Iterable[str] = ("shift", "machine"),
    how: str = "mean",
) -> dict:
    """Single entry point for one KPI trend card.

    Parameters
    ----------
    engine : Session engine (carries the business timezone).
    kpi_name : Display name, used to look up threshold and goal.
    rows : Raw rows ``{timestamp, value, shift?, machine?}``.
    axis : Target bucket keys, oldest first (see KpiEngine.axis).
    preferences : Stored ``{"thresholds": ..., "goals": ...}`` record.

    Returns
    -------
    dict with keys:
        kpi_name, unit, keys, labels, series, threshold, classification,
        latest, variance, trend, overlays
    """
    threshold = ThresholdSpec.from_preferences(preferences, kpi_name)
    card: dict[str, Any] = {
        "kpi_name": kpi_name,
        "unit": unit,
        "keys": list(axis),
        "labels": _labels(axis, unit),
        "threshold": threshold.to_dict(),
    }

    base = _isolated(
        f"{kpi_name} series",
        lambda: engine.aligned(rows, axis, unit, how=how, name=kpi_name),
    )
    if isinstance(base, dict):
        card.update(series=base, classification=[], latest=None, variance=None, trend=None)
    else:
        card["series"] = base.to_dict()
        card["classification"] = engine.classify_series(base, threshold)
        valid = base.valid_values()
        card["latest"] = valid[-1] if valid else None
        if card["latest"] is not None and threshold.configured:
            absolute, pct = calc_variance(card["latest"], threshold.value)
            card["variance"] = {"absolute": absolute, "pct": pct}
        else:
            card["variance"] = None
        card["trend"] = engine.trend(base, threshold.goal).to_dict()

    def overlay_family(family: str) -> dict:
        built = engine.build_overlays(rows, family, unit, how=how)
        return {name: s.to_dict() for name, s in engine.align_overlays(built, axis).items()}

    card["overlays"] = {
        family: _isolated(f"{kpi_name} {family} overlays", lambda f=family: overlay_family(f))
        for family in overlay_families
    }
    return card


def get_measure_summary(
    engine: KpiEngine,
    values: Any,
    bin_count: int = HISTOGRAM_BIN_COUNT,
) -> dict:
    """Statistics and histogram for a Measure-phase panel.

    Returns
    -------
    dict with keys ``statistics`` and ``histogram``; either may hold an
    error payload (e.g. ``empty_input`` when there are no values).
    """
    return {
        "statistics": _isolated("statistics", lambda: engine.describe(values).to_dict()),
        "histogram": _isolated(
            "histogram", lambda: engine.histogram(values, bin_count).to_dict()
        ),
    }


def get_improve_comparison(
    engine: KpiEngine,
    series: Any,
    cutover_key: str,
    goal: str,
    bin_count: int = HISTOGRAM_BIN_COUNT,
) -> dict:
    """Before/after table plus overlaid before/after histograms."""
    return {
        "cutover_key": cutover_key,
        "comparison": _isolated(
            "comparison", lambda: engine.compare(series, cutover_key, goal).to_dict()
        ),
        "distributions": _isolated(
            "distributions",
            lambda: engine.compare_distributions(series, cutover_key, bin_count).to_dict(),
        ),
    }


def get_pareto_chart(
    engine: KpiEngine,
    records: Iterable[Any],
    category_of: Callable[[Any], Any],
    measure_of: Callable[[Any], Any],
    *,
    unit: str | None = None,
    to_unit: str | None = None,
    cutoff: float = PARETO_VITAL_FEW_PCT,
) -> dict:
    """Bar + cumulative-line payload with the vital-few categories marked.

    Returns an error payload (``empty_input``) when no record carries a
    numeric measure.
    """
    def compute() -> dict:
        result = engine.pareto(records, category_of, measure_of, unit=unit, to_unit=to_unit)
        chart = result.to_dict()
        chart["cutoff"] = cutoff
        chart["vital_few"] = [e.category for e in engine.vital_few(result, cutoff)]
        return chart

    return _isolated("pareto", compute)


def get_window_comparison(
    engine: KpiEngine,
    weekly: Any,
    goal: str,
    today: Any = None,
    n: int = 4,
) -> dict:
    """Latest n fiscal weeks vs the n weeks before them.

    ``weekly`` is a fiscal-week series (e.g. resample_series(daily, "week")).
    The trend compares the two window averages.
    """
    latest_keys, earlier_keys = engine.previous_weeks(today, n)
    latest = engine.window_average(weekly, latest_keys)
    earlier = engine.window_average(weekly, earlier_keys)
    return {
        "latest_weeks": latest_keys,
        "previous_weeks": earlier_keys,
        "latest": latest,
        "previous": earlier,
        "trend": engine.trend([earlier, latest], goal).to_dict(),
    }
