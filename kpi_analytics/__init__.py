"""
Shop-floor KPI analytics engine.

Pure, in-memory transformations behind the KPI dashboards and the DMAIC
continuous-improvement workflow: calendar bucketing in the site's business
timezone, series alignment with shift/machine overlays, threshold
classification and trends, descriptive statistics, histograms with
Gaussian overlays, Pareto ranking and before/after comparison.

To use from a web layer:
    Create one KpiEngine per session (it only holds the timezone), fetch
    raw rows through the persistence layer, then call the bundles in
    kpi_analytics.dashboard to get plain dicts for cards and charts.

To add new KPIs:
    Add an entry to config.KPI_REGISTRY mapping the KPI display name to its
    goal, unit and default threshold. Stored user preferences override the
    registry threshold and goal.

To change the site timezone:
    Pass the IANA zone to KpiEngine(timezone=...) or edit
    config.BUSINESS_TIMEZONE. Never pre-convert timestamps to local time
    before handing them to the engine.
"""
