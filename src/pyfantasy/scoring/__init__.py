"""Score conversion, calibration and ensemble projection."""

from .archetypes import ArchetypeMatch, ArchetypeSource, ArchetypeSummary, classify_archetype, summarize_archetypes
from .calibration import (
    CalibrationConfidence,
    CalibrationResult,
    RatioLookup,
    RatioTier,
    actuals_from_projections,
    calibrate,
)
from .consensus import Agreement, AgreementSummary, ConsensusResult, reconcile, summarize_agreement
from .converter import ConversionResult, FactorBreakdown, ProjectionConfidence, convert
from .ensemble import EnsembleProjection, build_training_records, project_player, project_roster
from .ml_model import MLCorrection, MLCorrectionModel, MLFeatures, TrainingRecord, features_for
from .statistical import StatisticalContext, StatisticalEstimate, context_from_projections, statistical_estimate

__all__ = [
    "Agreement",
    "AgreementSummary",
    "ArchetypeMatch",
    "ArchetypeSource",
    "ArchetypeSummary",
    "CalibrationConfidence",
    "CalibrationResult",
    "ConsensusResult",
    "ConversionResult",
    "EnsembleProjection",
    "FactorBreakdown",
    "MLCorrection",
    "MLCorrectionModel",
    "MLFeatures",
    "ProjectionConfidence",
    "RatioLookup",
    "RatioTier",
    "StatisticalContext",
    "StatisticalEstimate",
    "TrainingRecord",
    "actuals_from_projections",
    "build_training_records",
    "calibrate",
    "classify_archetype",
    "context_from_projections",
    "convert",
    "features_for",
    "project_player",
    "project_roster",
    "reconcile",
    "statistical_estimate",
    "summarize_agreement",
    "summarize_archetypes",
]
