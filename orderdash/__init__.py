"""Core (UI-agnostic) dashboard-builder logic.

This package contains:
- order record helpers (numeric/date coercion, derived fields)
- the date-range filter
- widget config resolution and validation
- the aggregation engine (KPI, grouped series, scatter points, table views)
- responsive layout derivation
- best-effort persistence of dashboard state
- chart helpers (Altair -> Vega-Lite spec dict)
"""
