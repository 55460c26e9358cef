"""Convert source-system projections into calibrated target-system projections."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from pyfantasy.config import DEFAULT_REFERENCE, ReferenceData
from pyfantasy.errors import MissingRequiredInput
from pyfantasy.models import PeriodProjection, PlayerRecord, normalize_projections

from .adjustments import (
    FixtureRun,
    FormMomentum,
    InjuryAdjustment,
    PlayingTime,
    fixture_run_quality,
    form_momentum,
    injury_return_adjustment,
    playing_time_confidence,
)
from .archetypes import ArchetypeMatch, classify_archetype
from .calibration import CalibrationResult, RatioLookup
from .matchup import Matchup, StartRecommendation, single_period_matchup, start_recommendation


logger = logging.getLogger(__name__)

REFERENCE_ESTIMATE_WEIGHT = 0.35
HIGH_CONFIDENCE_PERIODS = 15
MEDIUM_CONFIDENCE_PERIODS = 10


class ProjectionConfidence(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class FactorBreakdown:
    ratio: float
    archetype: ArchetypeMatch
    calibration: Optional[RatioLookup]
    form: FormMomentum
    fixture: FixtureRun
    injury: InjuryAdjustment
    playing_time: PlayingTime

    @property
    def adjustment_multiplier(self) -> float:
        """Product of the four factors applied after the base ratio."""

        return (
            self.form.multiplier
            * self.fixture.multiplier
            * self.injury.multiplier
            * self.playing_time.multiplier
        )

    @property
    def total_multiplier(self) -> float:
        return self.ratio * self.adjustment_multiplier


@dataclass(frozen=True)
class ConversionResult:
    player_id: str
    target_period: int
    source_season_total: float
    source_season_average: float
    source_target_points: float
    season_total: float
    season_average: float
    target_period_points: float
    confidence: ProjectionConfidence
    calibrated: bool
    factors: FactorBreakdown
    matchup: Matchup
    start: StartRecommendation


def _confidence(season_total: float, periods: int) -> ProjectionConfidence:
    if season_total == 0:
        return ProjectionConfidence.NONE
    if periods >= HIGH_CONFIDENCE_PERIODS:
        return ProjectionConfidence.HIGH
    if periods >= MEDIUM_CONFIDENCE_PERIODS:
        return ProjectionConfidence.MEDIUM
    return ProjectionConfidence.LOW


def convert(
    player: PlayerRecord,
    projections: Iterable[PeriodProjection],
    target_period: int | None,
    calibration: CalibrationResult | None = None,
    *,
    reference: ReferenceData = DEFAULT_REFERENCE,
    reference_estimate: float | None = None,
) -> ConversionResult:
    """Run the conversion pipeline for one player and one target period.

    The ratio comes from ``calibration`` when supplied, else from the player's
    archetype. Form, fixture run, injury return and playing time then scale the
    converted season total, season average and target-period points alike.
    ``reference_estimate`` is an optional independent source-system estimate for
    the target period, blended in at 35%.
    """

    if target_period is None:
        raise MissingRequiredInput("target_period is required for score conversion")

    series = normalize_projections(projections)
    source_total = sum(item.points for item in series)
    source_average = source_total / len(series) if series else 0.0
    target_entry = next((item for item in series if item.period == target_period), None)
    source_target = target_entry.points if target_entry is not None else 0.0

    archetype = classify_archetype(player, reference)
    lookup: Optional[RatioLookup] = None
    if calibration is not None:
        lookup = calibration.ratio_for(player.role, player.player_id)
        ratio = lookup.ratio
    else:
        ratio = archetype.ratio

    factors = FactorBreakdown(
        ratio=ratio,
        archetype=archetype,
        calibration=lookup,
        form=form_momentum(series, target_period, source_average),
        fixture=fixture_run_quality(series, target_period, source_average),
        injury=injury_return_adjustment(player, series, target_period),
        playing_time=playing_time_confidence(series, target_period),
    )
    adjustment = factors.adjustment_multiplier

    converted_target = source_target * ratio
    if reference_estimate is not None and reference_estimate > 0 and source_target > 0:
        converted_target = (
            converted_target * (1 - REFERENCE_ESTIMATE_WEIGHT)
            + reference_estimate * ratio * REFERENCE_ESTIMATE_WEIGHT
        )

    target_points = round(max(0.0, converted_target * adjustment), 2)
    result = ConversionResult(
        player_id=player.player_id,
        target_period=target_period,
        source_season_total=round(source_total, 2),
        source_season_average=round(source_average, 2),
        source_target_points=source_target,
        season_total=round(max(0.0, source_total * ratio * adjustment), 2),
        season_average=round(max(0.0, source_average * ratio * adjustment), 2),
        target_period_points=target_points,
        confidence=_confidence(source_total, len(series)),
        calibrated=bool(calibration is not None and calibration.calibrated),
        factors=factors,
        matchup=single_period_matchup(series, target_period),
        start=start_recommendation(target_points, player.role),
    )
    logger.debug(
        "Converted %s for period %s: ratio %.3f x adjustments %.3f -> %.2f",
        player.player_id,
        target_period,
        ratio,
        adjustment,
        target_points,
    )
    return result
