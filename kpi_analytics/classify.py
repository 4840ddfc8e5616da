"""
Threshold/goal classification and trend arrows: pure functions.

A KPI point passes when it sits on the goal side of its threshold
(boundary inclusive). A NaN threshold means nothing is configured and the
point stays unclassified (grey), which is a result, not an error.
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterable

from .config import DEFAULT_GOAL, GOALS, KPI_REGISTRY, TREND_FLAT_BAND
from .errors import ConfigurationError
from .series import Series
from .utils import safe_float

logger = logging.getLogger(__name__)

PASS = "pass"
FAIL = "fail"
UNCLASSIFIED = "unclassified"

UP = "up"
DOWN = "down"
FLAT = "flat"

_ARROWS = {UP: "↑", DOWN: "↓", FLAT: "→"}


def validate_goal(goal: str) -> str:
    if goal not in GOALS:
        raise ConfigurationError(f"Unknown goal {goal!r}; expected one of {GOALS}")
    return goal


@dataclass(frozen=True)
class ThresholdSpec:
    """Goal line for one KPI. ``value`` is NaN when not configured."""

    value: float = math.nan
    goal: str = DEFAULT_GOAL

    def __post_init__(self):
        validate_goal(self.goal)
        number = safe_float(self.value)
        object.__setattr__(self, "value", math.nan if number is None else number)

    @property
    def configured(self) -> bool:
        return not math.isnan(self.value)

    @classmethod
    def from_preferences(cls, preferences: Mapping | None, kpi_name: str) -> "ThresholdSpec":
        """Build from a stored preference record.

        ``preferences`` has the preference-storage shape
        ``{"thresholds": {kpi: value}, "goals": {kpi: goal}}``. Missing
        entries fall back to KPI_REGISTRY, then to no threshold.
        """
        preferences = preferences or {}
        registry = KPI_REGISTRY.get(kpi_name, {})

        thresholds = preferences.get("thresholds") or {}
        goals = preferences.get("goals") or {}

        value = thresholds.get(kpi_name, registry.get("threshold"))
        goal = goals.get(kpi_name) or registry.get("goal", DEFAULT_GOAL)
        return cls(math.nan if value is None else value, goal)

    def to_dict(self) -> dict:
        return {"value": self.value if self.configured else None, "goal": self.goal}


@dataclass(frozen=True)
class Trend:
    """Change between the two most recent valid points of a series.

    favorable
        True when the move goes the goal's way, False when against it,
        None for flat / unclassified trends or when no goal was given.
    """

    direction: str
    delta: float | None
    latest: float | None = None
    previous: float | None = None
    favorable: bool | None = None

    @property
    def arrow(self) -> str | None:
        return _ARROWS.get(self.direction)

    def to_dict(self) -> dict:
        return {
            "direction": self.direction,
            "delta": self.delta,
            "latest": self.latest,
            "previous": self.previous,
            "favorable": self.favorable,
            "arrow": self.arrow,
        }


def calc_variance(actual: float, threshold: float) -> tuple[float, float | None]:
    """Return (absolute_variance, pct_variance) of ``actual`` vs ``threshold``.

    pct_variance is None if threshold == 0.
    """
    absolute = actual - threshold
    if threshold == 0:
        return absolute, None
    pct = (absolute / threshold) * 100
    return absolute, pct


def classify(value: Any, threshold: ThresholdSpec) -> str:
    """Return 'pass', 'fail' or 'unclassified' for one point.

    Logic
    -----
    - value missing or threshold NaN -> unclassified
    - goal='maximize': pass if value >= threshold
    - goal='minimize': pass if value <= threshold
    """
    number = safe_float(value)
    if number is None or not threshold.configured:
        return UNCLASSIFIED

    if threshold.goal == "maximize":
        return PASS if number >= threshold.value else FAIL
    return PASS if number <= threshold.value else FAIL


def classify_series(series: Series | Iterable, threshold: ThresholdSpec) -> list[str]:
    """Classify every point of an aligned series; gaps stay unclassified."""
    values = series.values if isinstance(series, Series) else series
    return [classify(v, threshold) for v in values]


def trend(
    series: Series | Iterable,
    goal: str | None = None,
    flat_band: float = TREND_FLAT_BAND,
) -> Trend:
    """Trend arrow from the two most recent non-null values.

    The series is scanned from the end backward, skipping gaps. ``|delta|``
    within ``flat_band`` is flat. Fewer than two valid values gives an
    unclassified trend with delta None.
    """
    if goal is not None:
        validate_goal(goal)

    values = series.values if isinstance(series, Series) else list(series)

    found: list[float] = []
    for raw in reversed(values):
        number = safe_float(raw)
        if number is None:
            continue
        found.append(number)
        if len(found) == 2:
            break

    if len(found) < 2:
        return Trend(UNCLASSIFIED, None)

    latest, previous = found
    delta = latest - previous

    if abs(delta) <= flat_band:
        return Trend(FLAT, delta, latest, previous, None)

    direction = UP if delta > 0 else DOWN
    favorable = None
    if goal is not None:
        favorable = (direction == UP) == (goal == "maximize")
    return Trend(direction, delta, latest, previous, favorable)
