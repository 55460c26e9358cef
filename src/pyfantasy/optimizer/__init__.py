"""Lineup selection across formation templates."""

from .service import (
    LineupPlayer,
    LineupResult,
    OptimizationReport,
    Shortfall,
    SwapRecommendation,
    evaluate_template,
    optimize,
    rank_lineups,
)

__all__ = [
    "LineupPlayer",
    "LineupResult",
    "OptimizationReport",
    "Shortfall",
    "SwapRecommendation",
    "evaluate_template",
    "optimize",
    "rank_lineups",
]
