"""
Error taxonomy for the analytics engine.

Each error carries a short ``kind`` code. The dashboard layer maps codes to
UI states ("No data", grey cards) instead of matching on exception types.
"""

from typing import Any


class KpiAnalyticsError(Exception):
    """Base class for every error raised by the engine."""

    kind = "analytics_error"


class InvalidTimestamp(KpiAnalyticsError, ValueError):
    """A stored instant or wall-clock string could not be parsed."""

    kind = "invalid_timestamp"


class EmptyInput(KpiAnalyticsError, ValueError):
    """No usable values remained after filtering nulls and non-numerics."""

    kind = "empty_input"


class InsufficientData(KpiAnalyticsError, ValueError):
    """A partition needed for a comparison has no valid values."""

    kind = "insufficient_data"


class DegenerateDistribution(KpiAnalyticsError, ArithmeticError):
    """Zero variance: a Gaussian model cannot be fitted."""

    kind = "degenerate_distribution"


class PhaseTransitionError(KpiAnalyticsError):
    """A DMAIC phase change that is not a single forward step."""

    kind = "invalid_phase_transition"


class ConfigurationError(KpiAnalyticsError, ValueError):
    """Unknown timezone, goal, unit or bucket unit."""

    kind = "configuration_error"


def error_payload(exc: Exception) -> dict[str, Any]:
    """Return a plain dict describing ``exc`` for dashboard bundles."""
    kind = getattr(exc, "kind", "internal_error")
    return {"error": kind, "detail": str(exc)}
