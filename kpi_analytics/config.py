"""
Configuration: business timezone, KPI registry, analytics constants.

KPI_REGISTRY maps each KPI display name to its goal direction, display
unit and default threshold. Stored user preferences override the
threshold and goal; the registry only fills gaps.
"""

# ---------------------------------------------------------------------------
# Site identity
# ---------------------------------------------------------------------------
# IANA zone in which every calendar bucket is computed. Supplied once to
# KpiEngine; never re-derived from the server or browser locale.
BUSINESS_TIMEZONE = "America/Chicago"

# ---------------------------------------------------------------------------
# Distribution modelling
# ---------------------------------------------------------------------------
HISTOGRAM_BIN_COUNT = 10
GAUSSIAN_SAMPLE_POINTS = 101
GAUSSIAN_SIGMA_SPAN = 3.0

# ---------------------------------------------------------------------------
# Classification and trend
# ---------------------------------------------------------------------------
GOALS = ("maximize", "minimize")
DEFAULT_GOAL = "maximize"

# |delta| at or below this band renders as a flat arrow
TREND_FLAT_BAND = 0.5

# ---------------------------------------------------------------------------
# Pareto
# ---------------------------------------------------------------------------
PARETO_VITAL_FEW_PCT = 80.0
PARETO_DEFAULT_CATEGORY = "Other"

# Category labels longer than this are truncated for chart axes
DISPLAY_LABEL_MAX = 20

# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------
# Factor that converts one unit into hours
UNIT_FACTORS: dict[str, float] = {
    "s": 1 / 3600,
    "min": 1 / 60,
    "h": 1.0,
}

# ---------------------------------------------------------------------------
# Shifts (local wall-clock minutes since midnight, end exclusive)
# ---------------------------------------------------------------------------
SHIFT_WINDOWS: dict[str, tuple[int, int]] = {
    "shift3": (0, 480),      # 00:00 -> 08:00
    "shift1": (480, 960),    # 08:00 -> 16:00
    "shift2": (960, 1440),   # 16:00 -> 24:00
}

SHIFT_IDS = ("shift1", "shift2", "shift3")

# ---------------------------------------------------------------------------
# OEE (efficiency x availability x yield, each in %)
# ---------------------------------------------------------------------------
# Points above this are data errors and shown as gaps
OEE_MAX_PCT = 100.0
OEE_DECIMALS = 1

# ---------------------------------------------------------------------------
# KPI Registry
# ---------------------------------------------------------------------------
# goal: "maximize" or "minimize"
# unit: display unit string
# threshold: default goal line (None = not configured)
KPI_REGISTRY: dict[str, dict] = {
    "OEE (%)": {
        "goal": "maximize",
        "unit": "%",
        "threshold": 85.0,
    },
    "Availability (%)": {
        "goal": "maximize",
        "unit": "%",
        "threshold": 90.0,
    },
    "Efficiency (%)": {
        "goal": "maximize",
        "unit": "%",
        "threshold": 85.0,
    },
    "Utilization (%)": {
        "goal": "maximize",
        "unit": "%",
        "threshold": 75.0,
    },
    "Yield (%)": {
        "goal": "maximize",
        "unit": "%",
        "threshold": 95.0,
    },
    "Planned Downtime (h)": {
        "goal": "minimize",
        "unit": "h",
        "threshold": None,
    },
    "Unplanned Downtime (h)": {
        "goal": "minimize",
        "unit": "h",
        "threshold": 2.0,
    },
    "Cycle Time (h)": {
        "goal": "minimize",
        "unit": "h",
        "threshold": None,
    },
    "Changeover Time (h)": {
        "goal": "minimize",
        "unit": "h",
        "threshold": 0.5,
    },
    "Mean Downtime (h)": {
        "goal": "minimize",
        "unit": "h",
        "threshold": 1.5,
    },
    "Intervention Frequency": {
        "goal": "minimize",
        "unit": "",
        "threshold": None,
    },
}

# Bucket units understood by the calendar normalizer
BUCKET_UNITS = ("day", "week", "month", "rolling")
