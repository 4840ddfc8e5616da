"""
KPI analytics engine: end-to-end smoke pipeline.

Generates synthetic raw rows, runs every analytic through the engine and
the dashboard bundles, and prints the results.

Usage:
    python main.py
"""

import logging

from kpi_analytics import dashboard
from kpi_analytics.dmaic import ProjectState, snapshot_sources
from kpi_analytics.engine import KpiEngine
from kpi_analytics.simulator import (
    generate_improvement_series,
    generate_maintenance_logs,
    generate_production_issues,
    generate_production_rows,
)

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

KPI_NAME = "Availability (%)"
TODAY = "2025-03-30"
PREFERENCES = {"thresholds": {KPI_NAME: 85.0}, "goals": {KPI_NAME: "maximize"}}


def main() -> None:
    """Run every analytic on synthetic data and print smoke-test outputs."""

    print("=" * 70)
    print("  SHOP-FLOOR KPI ANALYTICS ENGINE")
    print("  Analytics Pipeline Smoke Test")
    print("=" * 70)
    print()

    engine = KpiEngine()
    print(f"Engine: {engine!r}")

    # ------------------------------------------------------------------
    # 1. Calendar
    # ------------------------------------------------------------------
    print("\n[ 1 ] CALENDAR NORMALIZER")
    print("-" * 40)
    for instant in ("2025-03-09T05:59:00Z", "2025-03-09T07:00:00Z", "2025-03-09T08:30:00Z"):
        print(f"  {instant} -> day {engine.normalize(instant)} | week {engine.normalize(instant, 'week')}")
    print(f"  05/04/2025 06:30 PM local -> {engine.wall_time_to_utc('05/04/2025 06:30 PM').isoformat()}")
    print(f"  Last 7 days: {engine.axis('7days', today=TODAY)}")
    print(f"  Last 6 fiscal weeks: {engine.axis('weeks', today=TODAY)}")

    # ------------------------------------------------------------------
    # 2. KPI card with overlays
    # ------------------------------------------------------------------
    print("\n[ 2 ] KPI CARD")
    print("-" * 40)
    rows = generate_production_rows(KPI_NAME, start="2025-03-03", n_days=28)
    print(f"\nRaw rows: {len(rows)}")
    print(rows.head().to_string(index=False))

    axis = engine.axis("7days", today=TODAY)
    card = dashboard.get_kpi_card(engine, KPI_NAME, rows, axis, PREFERENCES)
    print(f"\n  Labels:         {card['labels']}")
    print(f"  Values:         {[round(v, 1) if v is not None else None for v in card['series']['values']]}")
    print(f"  Classification: {card['classification']}")
    print(f"  Trend:          {card['trend']}")
    print(f"  Shift overlays: {sorted(card['overlays']['shift'])}")

    components = [
        engine.aligned(generate_production_rows(kpi, start="2025-03-03", n_days=28), axis)
        for kpi in ("Efficiency (%)", "Availability (%)", "Yield (%)")
    ]
    print(f"  OEE:            {list(engine.oee(*components).values)}")

    daily = engine.build_series(rows, "day", name=KPI_NAME)
    weekly = engine.resample_series(daily, "week")
    window = dashboard.get_window_comparison(engine, weekly, "maximize", today=TODAY, n=2)
    print(f"  Latest vs previous weeks: {window}")

    # ------------------------------------------------------------------
    # 3. Measure / Improve
    # ------------------------------------------------------------------
    print("\n[ 3 ] MEASURE & IMPROVE")
    print("-" * 40)
    improvement = generate_improvement_series(start="2025-01-06", n_days=60, cutover_day=30)
    series = engine.build_series(improvement, "day", name=KPI_NAME)
    measure = dashboard.get_measure_summary(engine, series)
    print(f"\n  Statistics: {measure['statistics']}")
    print(f"  Histogram counts: {measure['histogram']['counts']}")

    cutover = series.keys[30]
    improve = dashboard.get_improve_comparison(engine, series, cutover, "maximize")
    print(f"  Cutover {cutover}: improved={improve['comparison']['improved']}")
    print(f"  Metrics: {improve['comparison']['metrics']}")

    # Failure in one bundle does not stop the others
    early = dashboard.get_improve_comparison(engine, series, series.keys[0], "maximize")
    print(f"  Cutover at first key: {early['comparison']}")

    # ------------------------------------------------------------------
    # 4. Pareto
    # ------------------------------------------------------------------
    print("\n[ 4 ] PARETO")
    print("-" * 40)
    maintenance = dashboard.get_pareto_chart(
        engine,
        generate_maintenance_logs(),
        lambda r: r["reason"],
        lambda r: r["duration_h"],
        unit="h",
    )
    print(f"\n  Maintenance (h): {list(zip(maintenance['labels'], maintenance['cumulative']))}")
    print(f"  Vital few: {maintenance['vital_few']}")

    issues = generate_production_issues()
    production = dashboard.get_pareto_chart(
        engine,
        issues,
        lambda r: r["issue_type"],
        lambda r: r["downtime_min"],
        unit="min",
        to_unit="h",
    )
    print(f"  Production issues (h): {list(zip(production['labels'], production['bars']))}")

    first = issues[0]
    print(f"  Downtime split for {first['start']}: {engine.split_downtime(first['start'], first['end'])}")

    # ------------------------------------------------------------------
    # 5. DMAIC
    # ------------------------------------------------------------------
    print("\n[ 5 ] DMAIC LIFECYCLE")
    print("-" * 40)
    state = ProjectState.start("2025-01-02T15:00:00Z")
    for at in ("2025-01-06", "2025-02-03", "2025-02-17", "2025-03-10", "2025-04-01"):
        state = state.advance(at)
        sources = [p.value for p in snapshot_sources(state.phase)]
        print(f"  {state.phase.value:8s} | reads frozen: {sources}")

    print("\n" + "=" * 70)
    print("  Pipeline complete.")
    print("=" * 70)


if __name__ == "__main__":
    main()
