"""Score conversion and lineup optimization for season-long fantasy football."""

from pyfantasy.errors import MissingRequiredInput
from pyfantasy.optimizer import optimize
from pyfantasy.scoring import (
    MLCorrectionModel,
    calibrate,
    classify_archetype,
    convert,
    project_player,
    project_roster,
    reconcile,
    statistical_estimate,
)

__all__ = [
    "MLCorrectionModel",
    "MissingRequiredInput",
    "calibrate",
    "classify_archetype",
    "convert",
    "optimize",
    "project_player",
    "project_roster",
    "reconcile",
    "statistical_estimate",
]
