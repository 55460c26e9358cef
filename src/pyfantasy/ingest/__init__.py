"""Input adapters that normalize raw projection data."""

from .projections import (
    LoadReport,
    ProjectionRow,
    canonical_team,
    load_actuals_csv,
    load_projection_csv,
    load_roster_csv,
    rows_to_roster,
)

__all__ = [
    "LoadReport",
    "ProjectionRow",
    "canonical_team",
    "load_actuals_csv",
    "load_projection_csv",
    "load_roster_csv",
    "rows_to_roster",
]
