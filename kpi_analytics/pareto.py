"""
Pareto analysis: rank categorical contributors by summed impact.

Units are converted explicitly per call (e.g. production-issue minutes to
hours) before grouping, so one Pareto never mixes units.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable

import pandas as pd

from .config import PARETO_DEFAULT_CATEGORY, PARETO_VITAL_FEW_PCT, UNIT_FACTORS
from .errors import ConfigurationError, EmptyInput
from .utils import safe_float, truncate_label

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParetoEntry:
    rank: int
    category: str
    total: float
    # unrounded; display_percent is the one-decimal chart value
    cumulative_percent: float
    share_percent: float

    @property
    def display_percent(self) -> float:
        return round(self.cumulative_percent, 1)

    @property
    def display_label(self) -> str:
        return truncate_label(self.category)

    def to_dict(self) -> dict:
        return {
            "rank": self.rank,
            "category": self.category,
            "label": self.display_label,
            "total": self.total,
            "share_percent": self.share_percent,
            "cumulative_percent": self.display_percent,
        }


@dataclass(frozen=True)
class ParetoResult:
    entries: tuple[ParetoEntry, ...]
    grand_total: float
    unit: str | None = None

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def __getitem__(self, index):
        return self.entries[index]

    def categories(self) -> list[str]:
        return [e.category for e in self.entries]

    def to_dict(self) -> dict:
        """Bar + cumulative-line chart payload."""
        return {
            "unit": self.unit,
            "grand_total": self.grand_total,
            "labels": [e.display_label for e in self.entries],
            "bars": [e.total for e in self.entries],
            "cumulative": [e.display_percent for e in self.entries],
            "entries": [e.to_dict() for e in self.entries],
        }


def convert_units(value: float, unit: str | None, to_unit: str | None) -> float:
    """Convert a duration between units listed in UNIT_FACTORS."""
    if unit is None or to_unit is None or unit == to_unit:
        return value
    if unit not in UNIT_FACTORS or to_unit not in UNIT_FACTORS:
        raise ConfigurationError(f"Cannot convert {unit!r} to {to_unit!r}")
    return value * UNIT_FACTORS[unit] / UNIT_FACTORS[to_unit]


def _category(raw: Any) -> str:
    if raw is None or (isinstance(raw, float) and pd.isna(raw)):
        return PARETO_DEFAULT_CATEGORY
    text = str(raw).strip()
    return text or PARETO_DEFAULT_CATEGORY


def pareto(
    records: Iterable[Any],
    category_of: Callable[[Any], Any],
    measure_of: Callable[[Any], Any],
    *,
    unit: str | None = None,
    to_unit: str | None = None,
) -> ParetoResult:
    """Group records by category, sum the measure, rank descending.

    Parameters
    ----------
    records : Any iterable (maintenance logs, production issues, ...).
    category_of, measure_of : Accessors for the category and the measure.
        Blank categories fall under "Other"; non-numeric or negative
        measures are skipped.
    unit, to_unit : Unit of the measure and the unit to report in.

    Returns
    -------
    ParetoResult with entries descending by total; ties keep first-seen
    order. The last cumulative percent is 100 when the grand total is > 0.

    Raises
    ------
    EmptyInput
        If no record carries a non-negative numeric measure.
    """
    if to_unit is not None and unit is None:
        raise ConfigurationError("to_unit given without the source unit")
    if unit is not None and unit not in UNIT_FACTORS:
        raise ConfigurationError(f"Unknown unit {unit!r}")

    categories = []
    measures = []
    skipped = 0
    for record in records:
        measure = safe_float(measure_of(record))
        # end-before-start records carry negative durations
        if measure is None or measure < 0:
            skipped += 1
            continue
        categories.append(_category(category_of(record)))
        measures.append(convert_units(measure, unit, to_unit))

    if skipped:
        logger.warning("Skipped %d record(s) without a non-negative numeric measure", skipped)
    if not measures:
        raise EmptyInput("No records with a numeric measure for Pareto analysis")

    frame = pd.DataFrame({"category": categories, "measure": measures})
    totals = frame.groupby("category", sort=False)["measure"].sum()

    # sorted() is stable: equal totals keep first-seen order
    ranked = sorted(totals.items(), key=lambda item: -item[1])
    grand_total = float(sum(total for _, total in ranked))

    entries = []
    running = 0.0
    for rank, (category, total) in enumerate(ranked, start=1):
        running += total
        if grand_total > 0:
            cumulative = running / grand_total * 100
            share = total / grand_total * 100
        else:
            cumulative = share = 0.0
        entries.append(ParetoEntry(rank, category, float(total), float(cumulative), float(share)))

    logger.info("Pareto over %d records -> %d categories", len(measures), len(entries))
    return ParetoResult(tuple(entries), grand_total, to_unit or unit)


def vital_few(result: ParetoResult, cutoff: float = PARETO_VITAL_FEW_PCT) -> list[ParetoEntry]:
    """Leading entries up to and including the first reaching ``cutoff`` %.

    Uses the unrounded cumulative percent so 79.96 does not count as 80.
    """
    selected = []
    for entry in result.entries:
        selected.append(entry)
        if entry.cumulative_percent >= cutoff:
            break
    return selected
