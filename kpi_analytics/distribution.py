"""
Histogram and Gaussian overlay models for the Measure/Improve panels.

The Gaussian curve is area-matched to the bars (pdf * count * bin_width),
so it can be drawn on the same frequency axis as the histogram.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable

import numpy as np

from .config import GAUSSIAN_SAMPLE_POINTS, GAUSSIAN_SIGMA_SPAN, HISTOGRAM_BIN_COUNT
from .errors import ConfigurationError, DegenerateDistribution
from .stats import StatisticsResult, clean_values, describe

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistogramModel:
    bin_centers: tuple[float, ...]
    counts: tuple[int, ...]
    bin_width: float
    statistics: StatisticsResult
    # None when stddev == 0: render the bars only
    gaussian_curve: tuple[tuple[float, float], ...] | None

    @property
    def degenerate(self) -> bool:
        return self.gaussian_curve is None

    def to_dict(self) -> dict:
        return {
            "bin_centers": list(self.bin_centers),
            "counts": list(self.counts),
            "bin_width": self.bin_width,
            "gaussian_curve": (
                None if self.gaussian_curve is None
                else [{"x": x, "y": y} for x, y in self.gaussian_curve]
            ),
            "degenerate": self.degenerate,
            "statistics": self.statistics.to_dict(),
        }


def normal_pdf(x, mean: float, stddev: float):
    """Normal density; works on scalars and numpy arrays."""
    return np.exp(-((np.asarray(x) - mean) ** 2) / (2 * stddev ** 2)) / (
        stddev * math.sqrt(2 * math.pi)
    )


def gaussian_curve(
    mean: float,
    stddev: float,
    count: int,
    bin_width: float,
    points: int = GAUSSIAN_SAMPLE_POINTS,
    span: float = GAUSSIAN_SIGMA_SPAN,
) -> tuple[tuple[float, float], ...]:
    """Sample a count-scaled normal curve over mean ± span·stddev.

    Raises
    ------
    DegenerateDistribution
        If stddev is zero (or not finite); the density is undefined.
    """
    if not math.isfinite(stddev) or stddev <= 0:
        raise DegenerateDistribution(f"Cannot model a Gaussian with stddev={stddev}")

    xs = np.linspace(mean - span * stddev, mean + span * stddev, points)
    ys = normal_pdf(xs, mean, stddev) * count * bin_width
    return tuple((float(x), float(y)) for x, y in zip(xs, ys))


def bin_counts(
    values: Iterable[float],
    bin_count: int,
    lo: float,
    hi: float,
) -> tuple[tuple[float, ...], tuple[int, ...], float]:
    """Equal-width bin counts over [lo, hi].

    A value at ``hi`` (or beyond, for a shared range) is clamped into the
    last bin. A zero-width range puts every value in the first bin.

    Returns
    -------
    (bin_centers, counts, bin_width)
    """
    if bin_count < 1:
        raise ConfigurationError(f"bin_count must be >= 1, got {bin_count}")

    arr = np.asarray(list(values), dtype=float)
    width = (hi - lo) / bin_count
    centers = tuple(float(lo + width * (i + 0.5)) for i in range(bin_count))

    if width == 0:
        counts = [0] * bin_count
        counts[0] = int(arr.size)
        return centers, tuple(counts), 0.0

    idx = np.floor((arr - lo) / width).astype(int)
    idx = np.clip(idx, 0, bin_count - 1)
    counts = np.bincount(idx, minlength=bin_count)
    return centers, tuple(int(c) for c in counts), float(width)


def histogram(
    values: Iterable[Any],
    bin_count: int = HISTOGRAM_BIN_COUNT,
    value_range: tuple[float, float] | None = None,
) -> HistogramModel:
    """Bin a value set and fit the matching Gaussian overlay.

    Parameters
    ----------
    values : Raw values or an aligned Series; gaps are dropped.
    bin_count : Number of equal-width bins (10 for every dashboard panel).
    value_range : Shared (min, max) when several histograms are overlaid,
        e.g. before/after an improvement. Defaults to the data's own range.

    Raises
    ------
    EmptyInput
        If ``values`` holds no numeric entries.
    """
    cleaned = clean_values(values)
    stats = describe(cleaned)
    lo, hi = value_range if value_range is not None else (stats.min, stats.max)

    centers, counts, width = bin_counts(cleaned, bin_count, lo, hi)

    try:
        curve = gaussian_curve(stats.mean, stats.stddev, stats.count, width)
    except DegenerateDistribution:
        logger.warning(
            "Zero variance across %d values; histogram without Gaussian overlay",
            stats.count,
        )
        curve = None

    return HistogramModel(centers, counts, width, stats, curve)
