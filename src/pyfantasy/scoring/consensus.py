"""Reconcile the statistical and ML-corrected estimates for one player/period."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional

from .ml_model import MLCorrection
from .statistical import StatisticalEstimate


MISSING_CONFIDENCE = 70
OUTLIER_FACTOR = 3.0
OUTLIER_CAP_FACTOR = 2.5
OUTLIER_PENALTY = 15


class Agreement(str, Enum):
    STRONG = "STRONG"
    MODERATE = "MODERATE"
    WEAK = "WEAK"
    DISAGREEMENT = "DISAGREEMENT"


# (upper bound on difference/average, weight of the average vs baseline, confidence delta)
_TIERS = (
    (Agreement.STRONG, 0.10, 1.0, 15),
    (Agreement.MODERATE, 0.20, 1.0, 5),
    (Agreement.WEAK, 0.30, 0.7, -5),
)
_DISAGREEMENT = (Agreement.DISAGREEMENT, None, 0.5, -20)


@dataclass(frozen=True)
class ConsensusBreakdown:
    statistical_points: float
    ml_points: float
    baseline: float
    agreement_ratio: float
    is_outlier: bool
    confidence_adjustment: int


@dataclass(frozen=True)
class ConsensusResult:
    points: float
    confidence: int
    agreement: Agreement
    breakdown: ConsensusBreakdown

    @property
    def agreement_ratio(self) -> float:
        return self.breakdown.agreement_ratio


@dataclass(frozen=True)
class AgreementSummary:
    total: int
    by_agreement: Dict[Agreement, int]
    outliers: int

    def share(self, agreement: Agreement) -> float:
        return self.by_agreement.get(agreement, 0) / self.total if self.total else 0.0


def _tier(ratio: float):
    for tier in _TIERS:
        if ratio <= tier[1]:
            return tier
    return _DISAGREEMENT


def _confidence_or_default(value: Optional[int]) -> int:
    return MISSING_CONFIDENCE if value is None else value


def reconcile(
    statistical: StatisticalEstimate,
    ml: MLCorrection,
    calibrated_points: float,
    baseline: float,
) -> ConsensusResult:
    """Agreement-weighted consensus, falling back toward ``baseline`` on disagreement.

    The ML estimate is ``calibrated_points * ml.multiplier``. ``baseline`` is the
    unprocessed source-system projection for the same period.
    """

    stat_points = statistical.points
    ml_points = calibrated_points * ml.multiplier
    average = (stat_points + ml_points) / 2
    difference = abs(stat_points - ml_points)
    ratio = difference / average if average > 0 else 0.0

    agreement, _, average_weight, adjustment = _tier(ratio)
    points = average * average_weight + baseline * (1 - average_weight)

    is_outlier = baseline > 0 and points > baseline * OUTLIER_FACTOR
    if is_outlier:
        points = min(points, baseline * OUTLIER_CAP_FACTOR)
        adjustment -= OUTLIER_PENALTY

    base_confidence = min(
        _confidence_or_default(statistical.confidence),
        _confidence_or_default(ml.confidence),
    )
    return ConsensusResult(
        points=max(0.0, points),
        confidence=max(0, min(100, base_confidence + adjustment)),
        agreement=agreement,
        breakdown=ConsensusBreakdown(
            statistical_points=stat_points,
            ml_points=ml_points,
            baseline=baseline,
            agreement_ratio=ratio,
            is_outlier=is_outlier,
            confidence_adjustment=adjustment,
        ),
    )


def summarize_agreement(results: Iterable[ConsensusResult]) -> AgreementSummary:
    counts: Counter[Agreement] = Counter({agreement: 0 for agreement in Agreement})
    outliers = 0
    total = 0
    for result in results:
        total += 1
        counts[result.agreement] += 1
        if result.breakdown.is_outlier:
            outliers += 1
    return AgreementSummary(total=total, by_agreement=dict(counts), outliers=outliers)
