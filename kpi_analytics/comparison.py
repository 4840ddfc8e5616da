"""
Before/after comparison around an improvement cutover.

Buckets strictly before the cutover key form the baseline; the cutover
bucket and everything after it form the "after" sample. Mean and median
are judged against the KPI goal; lower spread (stddev, cv) is always the
better outcome.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .classify import validate_goal
from .config import HISTOGRAM_BIN_COUNT
from .distribution import HistogramModel, histogram
from .errors import ConfigurationError, InsufficientData
from .series import Series
from .stats import StatisticsResult, describe
from .timebuckets import bucket_sort_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComparisonResult:
    before: StatisticsResult
    after: StatisticsResult
    improved: bool
    goal: str
    cutover_key: str
    # metric name -> improved?  (mean, median, stddev, cv)
    metrics: Mapping[str, bool] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "metrics", MappingProxyType(dict(self.metrics)))

    def to_dict(self) -> dict:
        return {
            "cutover_key": self.cutover_key,
            "goal": self.goal,
            "improved": self.improved,
            "before": self.before.to_dict(),
            "after": self.after.to_dict(),
            "metrics": dict(self.metrics),
        }


@dataclass(frozen=True)
class DistributionComparison:
    before: HistogramModel
    after: HistogramModel
    value_range: tuple[float, float]

    def to_dict(self) -> dict:
        return {
            "value_range": list(self.value_range),
            "before": self.before.to_dict(),
            "after": self.after.to_dict(),
        }


def is_improvement(before: float, after: float, goal: str) -> bool:
    """True when ``after`` moved the goal's way (strictly)."""
    validate_goal(goal)
    if goal == "maximize":
        return after > before
    return after < before


def partition(series: Any, cutover_key: str) -> tuple[list[float], list[float]]:
    """Split the valid values of a series at ``cutover_key``.

    Key order comes from bucket_sort_key, so fiscal weeks and rolling
    windows split chronologically, not alphabetically. The input is only
    read.
    """
    if not isinstance(series, Series):
        series = Series.from_pairs(series)

    cutover = bucket_sort_key(cutover_key)
    before: list[float] = []
    after: list[float] = []
    for key, value in series.pairs():
        position = bucket_sort_key(key)
        if position[0] != cutover[0]:
            raise ConfigurationError(
                f"Cutover key {cutover_key!r} does not match bucket key {key!r}"
            )
        if value is None:
            continue
        if position < cutover:
            before.append(value)
        else:
            after.append(value)

    logger.debug("Cutover %s: %d before, %d after", cutover_key, len(before), len(after))
    return before, after


def _require_both(before: list[float], after: list[float], cutover_key: str) -> None:
    if not before or not after:
        raise InsufficientData(
            f"Not enough data around cutover {cutover_key}: "
            f"{len(before)} value(s) before, {len(after)} after"
        )


def compare(series: Any, cutover_key: str, goal: str) -> ComparisonResult:
    """Describe the series before and after ``cutover_key``.

    Raises
    ------
    InsufficientData
        If either side of the cutover has no valid value.
    """
    validate_goal(goal)
    before_values, after_values = partition(series, cutover_key)
    _require_both(before_values, after_values, cutover_key)

    before = describe(before_values)
    after = describe(after_values)

    metrics = {
        "mean": is_improvement(before.mean, after.mean, goal),
        "median": is_improvement(before.median, after.median, goal),
        "stddev": after.stddev < before.stddev,
        "cv": after.cv < before.cv,
    }
    return ComparisonResult(before, after, metrics["mean"], goal, cutover_key, metrics)


def compare_distributions(
    series: Any,
    cutover_key: str,
    bin_count: int = HISTOGRAM_BIN_COUNT,
) -> DistributionComparison:
    """Before/after histograms over one shared range, for overlaid display.

    Each side carries its own Gaussian curve, or None when that side has
    zero variance.
    """
    before_values, after_values = partition(series, cutover_key)
    _require_both(before_values, after_values, cutover_key)

    combined = before_values + after_values
    value_range = (min(combined), max(combined))
    return DistributionComparison(
        histogram(before_values, bin_count, value_range),
        histogram(after_values, bin_count, value_range),
        value_range,
    )
