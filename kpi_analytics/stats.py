"""
Descriptive statistics over a KPI value set.

Standard deviation is the population form (divide by n). Every histogram
and Gaussian overlay downstream is scaled with this convention, so it is
kept even for small before/after samples.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Iterable

import numpy as np

from .errors import EmptyInput
from .series import Series
from .utils import safe_float

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatisticsResult:
    count: int
    mean: float
    median: float
    stddev: float
    min: float
    max: float
    range: float
    cv: float

    @property
    def cv_pct(self) -> float:
        return self.cv * 100

    def to_dict(self) -> dict:
        return asdict(self)


def clean_values(values: Series | Iterable[Any]) -> list[float]:
    """Drop None, NaN, infinities and non-numeric entries."""
    raw = values.values if isinstance(values, Series) else values
    cleaned = []
    for v in raw:
        number = safe_float(v)
        if number is not None:
            cleaned.append(number)
    return cleaned


def describe(values: Series | Iterable[Any]) -> StatisticsResult:
    """Compute count, mean, median, population stddev, min, max, range, cv.

    Parameters
    ----------
    values : Raw values or an aligned Series; gaps and non-numerics are
        filtered out first. The input is not modified.

    Returns
    -------
    A new StatisticsResult. ``cv`` is stddev / mean, reported as 0 when the
    mean is 0.

    Raises
    ------
    EmptyInput
        If nothing numeric remains after filtering.
    """
    cleaned = clean_values(values)
    if not cleaned:
        raise EmptyInput("No numeric values to describe")

    arr = np.asarray(cleaned, dtype=float)
    mean = float(arr.mean())
    stddev = float(arr.std(ddof=0))
    lo = float(arr.min())
    hi = float(arr.max())

    return StatisticsResult(
        count=int(arr.size),
        mean=mean,
        median=float(np.median(arr)),
        stddev=stddev,
        min=lo,
        max=hi,
        range=hi - lo,
        cv=stddev / mean if mean != 0 else 0.0,
    )
