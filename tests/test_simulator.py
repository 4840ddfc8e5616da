"""
Tests for the synthetic data generators feeding demos and the smoke run.
"""
import pandas as pd

from kpi_analytics.pareto import pareto
from kpi_analytics.series import build_overlays, build_series
from kpi_analytics.simulator import (
    generate_improvement_series,
    generate_maintenance_logs,
    generate_production_issues,
    generate_production_rows,
)
from kpi_analytics.timebuckets import days_between


def test_production_rows_reproducible():
    first = generate_production_rows(seed=3)
    second = generate_production_rows(seed=3)
    pd.testing.assert_frame_equal(first, second)


def test_production_rows_bucket_back_to_local_days(tz):
    # The window spans the 2025-03-09 DST change
    rows = generate_production_rows(start="2025-03-03", n_days=14, tz=tz, gap_probability=0.0)
    assert len(rows) == 14 * 3 * 3
    series = build_series(rows, "day", tz)
    assert list(series.keys) == days_between("2025-03-03", "2025-03-16")


def test_production_rows_keep_their_shift(tz):
    rows = generate_production_rows(start="2025-03-08", n_days=3, tz=tz, gap_probability=0.0)
    overlays = build_overlays(rows, "shift", "day", tz, how="count")
    for shift in ("shift1", "shift2", "shift3"):
        assert overlays[shift].values == (3.0, 3.0, 3.0)


def test_improvement_series_steps_up(tz):
    rows = generate_improvement_series(n_days=40, cutover_day=20)
    series = build_series(rows, "day", tz)
    assert len(series) == 40
    before = series.values[:20]
    after = series.values[20:]
    assert sum(after) / len(after) > sum(before) / len(before)


def test_pareto_from_generated_records():
    logs = generate_maintenance_logs(30, seed=1)
    result = pareto(logs, lambda r: r["reason"], lambda r: r["duration_h"], unit="h")
    assert result.grand_total > 0
    assert result[-1].display_percent == 100.0

    issues = generate_production_issues(30, seed=1)
    assert all(r["downtime_min"] >= 1 for r in issues)
