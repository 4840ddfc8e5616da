"""
Simulated data generator for the KPI analytics engine.

Generates raw rows shaped like the persistence layer's output: production
readings per machine and shift, maintenance logs and production issues.
All values are synthetic. Each generator takes a seed so demos and tests
get the same data on every run.
"""

from datetime import date, datetime, time, timedelta

import numpy as np
import pandas as pd

from .config import BUSINESS_TIMEZONE, KPI_REGISTRY, SHIFT_WINDOWS
from .timebuckets import as_date, wall_time_to_utc

_SEED = 42

# ---------------------------------------------------------------------------
# Typical line parameters (realistic ranges)
# ---------------------------------------------------------------------------
_KPI_PARAMS = {
    "Availability (%)": {"mean": 88.0, "std": 3.0},
    "Efficiency (%)": {"mean": 82.0, "std": 4.0},
    "Utilization (%)": {"mean": 76.0, "std": 5.0},
    "Yield (%)": {"mean": 96.5, "std": 1.2},
    "Cycle Time (h)": {"mean": 1.8, "std": 0.2},
    "Changeover Time (h)": {"mean": 0.9, "std": 0.25},
}

_MACHINES = ("CNC-01", "CNC-02", "Press-03")

_MAINTENANCE_REASONS = (
    ("Hydraulic leak", 0.30, 3.0),
    ("Spindle bearing", 0.20, 5.0),
    ("Sensor fault", 0.20, 1.0),
    ("Preventive service", 0.15, 2.0),
    ("Tooling wear", 0.10, 1.5),
    ("Electrical cabinet overheating", 0.05, 4.0),
)

_ISSUE_TYPES = (
    ("Material shortage", 0.35, 45.0),
    ("Quality hold", 0.25, 30.0),
    ("Operator unavailable", 0.20, 20.0),
    ("Changeover overrun", 0.15, 25.0),
    ("", 0.05, 15.0),  # uncategorised issues land in "Other"
)


def _mid_shift_wall_time(day: date, shift: str) -> datetime:
    start, end = SHIFT_WINDOWS[shift]
    return datetime.combine(day, time()) + timedelta(minutes=(start + end) // 2)


def generate_production_rows(
    kpi_name: str = "Availability (%)",
    start: str = "2025-03-03",
    n_days: int = 28,
    tz: str = BUSINESS_TIMEZONE,
    seed: int = _SEED,
    gap_probability: float = 0.05,
) -> pd.DataFrame:
    """Generate one reading per machine, shift and local day.

    Timestamps are UTC ISO strings (the stored format); each reading sits
    in the middle of its local shift so bucketing back in ``tz`` recovers
    the same day and shift. About ``gap_probability`` of the readings are
    dropped to leave realistic gaps.

    Returns
    -------
    DataFrame with columns: timestamp, value, machine, shift, kpi_name
    """
    rng = np.random.default_rng(seed)
    params = _KPI_PARAMS.get(kpi_name, {"mean": 50.0, "std": 5.0})
    first = as_date(start)
    rows = []

    for offset in range(n_days):
        day = first + timedelta(days=offset)
        for machine in _MACHINES:
            for shift in SHIFT_WINDOWS:
                if rng.random() < gap_probability:
                    continue
                instant = wall_time_to_utc(_mid_shift_wall_time(day, shift), tz)
                value = rng.normal(params["mean"], params["std"])
                rows.append({
                    "timestamp": instant.strftime("%Y-%m-%dT%H:%M:%SZ"),
                    "value": round(float(value), 2),
                    "machine": machine,
                    "shift": shift,
                    "kpi_name": kpi_name,
                })

    return pd.DataFrame(rows)


def generate_improvement_series(
    start: str = "2025-01-06",
    n_days: int = 60,
    cutover_day: int = 30,
    kpi_name: str = "Availability (%)",
    seed: int = _SEED,
) -> pd.DataFrame:
    """Daily readings with a step change at ``cutover_day`` (Improve phase demo).

    The shift is in the KPI's goal direction and the spread narrows after
    the cutover.
    """
    rng = np.random.default_rng(seed)
    params = _KPI_PARAMS.get(kpi_name, {"mean": 50.0, "std": 5.0})
    goal = KPI_REGISTRY.get(kpi_name, {}).get("goal", "maximize")
    step = params["std"] * (1.5 if goal == "maximize" else -1.5)
    first = as_date(start)
    rows = []

    for offset in range(n_days):
        after = offset >= cutover_day
        mean = params["mean"] + (step if after else 0.0)
        std = params["std"] * (0.6 if after else 1.0)
        day = first + timedelta(days=offset)
        rows.append({
            # 18:00 UTC is daytime on the same calendar day across US zones
            "timestamp": f"{day.isoformat()} 18:00:00",
            "value": round(float(rng.normal(mean, std)), 2),
        })

    return pd.DataFrame(rows)


def _weighted_choice(rng, table):
    weights = np.array([w for _, w, _ in table])
    index = rng.choice(len(table), p=weights / weights.sum())
    return table[index]


def generate_maintenance_logs(n_records: int = 40, seed: int = _SEED) -> list[dict]:
    """Maintenance log records: ``{machine, reason, duration_h}``."""
    rng = np.random.default_rng(seed)
    records = []
    for _ in range(n_records):
        reason, _, typical = _weighted_choice(rng, _MAINTENANCE_REASONS)
        records.append({
            "machine": str(rng.choice(_MACHINES)),
            "reason": reason,
            "duration_h": round(float(rng.gamma(2.0, typical / 2.0)), 2),
        })
    return records


def generate_production_issues(
    n_records: int = 60,
    start: str = "2025-03-03",
    n_days: int = 28,
    seed: int = _SEED,
) -> list[dict]:
    """Production issue records with UTC start/end and downtime in minutes.

    Returns
    -------
    list of ``{issue_type, machine, start, end, downtime_min}``
    """
    rng = np.random.default_rng(seed)
    origin = pd.Timestamp(as_date(start)).tz_localize("UTC")
    records = []
    for _ in range(n_records):
        issue_type, _, typical = _weighted_choice(rng, _ISSUE_TYPES)
        begin = origin + pd.Timedelta(minutes=int(rng.integers(0, n_days * 1440)))
        minutes = max(1, int(rng.gamma(2.0, typical / 2.0)))
        records.append({
            "issue_type": issue_type,
            "machine": str(rng.choice(_MACHINES)),
            "start": begin.isoformat(),
            "end": (begin + pd.Timedelta(minutes=minutes)).isoformat(),
            "downtime_min": minutes,
        })
    return records
