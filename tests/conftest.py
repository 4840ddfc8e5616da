"""
Pytest configuration and shared fixtures for the KPI analytics tests.
"""
import pytest

from kpi_analytics.engine import KpiEngine
from kpi_analytics.series import Series

TZ = "America/Chicago"


@pytest.fixture
def tz():
    """Business timezone used throughout the tests (has DST)."""
    return TZ


@pytest.fixture
def engine():
    return KpiEngine(TZ)


@pytest.fixture
def raw_rows():
    """Raw rows as the persistence layer returns them (UTC strings)."""
    return [
        # 2025-06-02 10:00 CDT, shift1
        {"timestamp": "2025-06-02T15:00:00Z", "value": 92, "shift": "shift1", "machine": "M1"},
        # 2025-06-02 18:00 CDT, shift2
        {"timestamp": "2025-06-02 23:00:00", "value": "88", "shift": "shift2", "machine": "M2"},
        # 2025-06-04 10:00 CDT, shift1
        {"timestamp": "2025-06-04T15:00:00Z", "value": 80.0, "shift": "shift1", "machine": "M1"},
        # Unparsable rows never abort a build
        {"timestamp": "not a date", "value": 50, "shift": "shift1", "machine": "M1"},
    ]


@pytest.fixture
def kpi_preferences():
    """Preference record in the storage shape."""
    return {
        "thresholds": {"Availability (%)": 85.0},
        "goals": {"Availability (%)": "maximize"},
    }


@pytest.fixture
def improvement_series():
    """Daily series with a clear step up at 2025-01-04."""
    keys = ("2025-01-01", "2025-01-02", "2025-01-03", "2025-01-04", "2025-01-05", "2025-01-06")
    return Series(keys, (1.0, 2.0, 3.0, 10.0, 11.0, 12.0), "Availability (%)")


@pytest.fixture
def downtime_records():
    """Maintenance-log style records (hours)."""
    return [
        {"reason": "A", "h": 3},
        {"reason": "B", "h": 1},
        {"reason": "A", "h": 2},
    ]
