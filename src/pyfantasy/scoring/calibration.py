"""Empirical source-to-target conversion ratios learned from historical actuals.

For every completed period where a player has realized points under both
systems, ``target / source`` is one observation of that player's conversion
ratio. Observations are bucketed per role (trimmed mean) and per player
(raw mean blended toward the role ratio by sample size).
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Mapping, Optional

from pyfantasy.config import DEFAULT_REFERENCE, ReferenceData
from pyfantasy.models import PeriodProjection, ProjectionSource


logger = logging.getLogger(__name__)

ActualsSeries = Mapping[str, Mapping[int, Optional[float]]]

MIN_TOTAL_SAMPLES = 10
MIN_ROLE_SAMPLES = 3
MIN_PLAYER_SAMPLES = 5
FULL_TRUST_SAMPLES = 15
TRIM_FRACTION = 0.10
MIN_PLAUSIBLE_RATIO = 0.15
MAX_PLAUSIBLE_RATIO = 6.0


class CalibrationConfidence(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RatioTier(str, Enum):
    PLAYER = "player"
    ROLE = "role"
    STATIC = "static_fallback"
    GENERIC = "generic"


@dataclass(frozen=True)
class RatioLookup:
    ratio: float
    tier: RatioTier


@dataclass(frozen=True)
class CalibrationResult:
    role_ratios: Mapping[str, float]
    entity_ratios: Mapping[str, float]
    sample_count: int
    role_sample_counts: Mapping[str, int]
    confidence: CalibrationConfidence
    calibrated: bool
    periods_analyzed: int = 0
    fallback_reason: str | None = None
    static_ratios: Mapping[str, float] = field(default_factory=dict)
    generic_ratio: float = 1.0

    def ratio_for(self, role: str, player_id: str | None = None) -> RatioLookup:
        """Resolve a ratio: player-specific, then role, then static, then generic."""

        if player_id is not None and player_id in self.entity_ratios:
            return RatioLookup(self.entity_ratios[player_id], RatioTier.PLAYER)
        if self.calibrated and role in self.role_ratios:
            return RatioLookup(self.role_ratios[role], RatioTier.ROLE)
        if role in self.static_ratios:
            return RatioLookup(self.static_ratios[role], RatioTier.STATIC)
        return RatioLookup(self.generic_ratio, RatioTier.GENERIC)


def _fallback(
    reference: ReferenceData,
    reason: str,
    *,
    sample_count: int = 0,
    periods_analyzed: int = 0,
) -> CalibrationResult:
    logger.info("Calibration fallback (%s): using static role ratios", reason)
    return CalibrationResult(
        role_ratios=dict(reference.role_ratios),
        entity_ratios={},
        sample_count=sample_count,
        role_sample_counts={},
        confidence=CalibrationConfidence.NONE,
        calibrated=False,
        periods_analyzed=periods_analyzed,
        fallback_reason=reason,
        static_ratios=dict(reference.role_ratios),
        generic_ratio=reference.generic_ratio,
    )


def trimmed_mean(values: Iterable[float], fraction: float = TRIM_FRACTION) -> float:
    """Mean after dropping ``floor(n * fraction)`` values from each end."""

    ordered = sorted(values)
    if not ordered:
        raise ValueError("trimmed_mean() requires at least one value")
    trim = int(len(ordered) * fraction)
    kept = ordered[trim : len(ordered) - trim] if trim > 0 else ordered
    return sum(kept) / len(kept)


def _confidence_for(sample_count: int) -> CalibrationConfidence:
    if sample_count >= 50:
        return CalibrationConfidence.HIGH
    if sample_count >= 20:
        return CalibrationConfidence.MEDIUM
    return CalibrationConfidence.LOW


def calibrate(
    source_actuals: ActualsSeries,
    target_actuals: ActualsSeries,
    roles: Mapping[str, str],
    *,
    reference: ReferenceData = DEFAULT_REFERENCE,
    completed_through: int | None = None,
) -> CalibrationResult:
    """Compute role and player conversion ratios from paired historical actuals.

    ``source_actuals`` and ``target_actuals`` map player id to ``{period: points}``.
    Pairs where either side is missing or non-positive (blank or unplayed periods)
    and pairs outside the plausible ratio band are discarded.
    """

    if not source_actuals or not target_actuals:
        return _fallback(reference, "no_data")

    known_roles = set(reference.roles) | set(reference.role_ratios)
    role_samples: dict[str, list[float]] = {role: [] for role in reference.roles}
    player_samples: dict[str, list[float]] = defaultdict(list)
    player_roles: dict[str, str] = {}
    periods: set[int] = set()
    dropped = 0

    for player_id, target_series in target_actuals.items():
        role = roles.get(player_id)
        if role is None or role not in known_roles:
            continue
        source_series = source_actuals.get(player_id)
        if not source_series:
            continue
        for period, target_points in target_series.items():
            if completed_through is not None and period > completed_through:
                continue
            source_points = source_series.get(period)
            if source_points is None or target_points is None:
                continue
            if not (math.isfinite(source_points) and math.isfinite(target_points)):
                continue
            if source_points <= 0 or target_points <= 0:
                continue
            ratio = target_points / source_points
            if not MIN_PLAUSIBLE_RATIO <= ratio <= MAX_PLAUSIBLE_RATIO:
                dropped += 1
                continue
            role_samples.setdefault(role, []).append(ratio)
            player_samples[player_id].append(ratio)
            player_roles[player_id] = role
            periods.add(period)

    total = sum(len(samples) for samples in role_samples.values())
    logger.debug("Calibration paired %s samples (%s implausible pairs dropped)", total, dropped)
    if total < MIN_TOTAL_SAMPLES:
        return _fallback(reference, "insufficient_data", sample_count=total, periods_analyzed=len(periods))

    role_ratios: Dict[str, float] = {}
    role_counts: Dict[str, int] = {}
    for role, samples in role_samples.items():
        role_counts[role] = len(samples)
        if len(samples) < MIN_ROLE_SAMPLES:
            role_ratios[role] = reference.role_ratio(role)
            continue
        role_ratios[role] = round(trimmed_mean(samples), 3)

    entity_ratios: Dict[str, float] = {}
    for player_id, samples in player_samples.items():
        if len(samples) < MIN_PLAYER_SAMPLES:
            continue
        raw_mean = sum(samples) / len(samples)
        role_ratio = role_ratios.get(player_roles[player_id], reference.generic_ratio)
        weight = min(len(samples) / FULL_TRUST_SAMPLES, 1.0)
        entity_ratios[player_id] = round(raw_mean * weight + role_ratio * (1 - weight), 3)

    confidence = _confidence_for(total)
    logger.info(
        "Calibration complete: %s samples over %s periods, confidence=%s, %s player ratios",
        total,
        len(periods),
        confidence.value,
        len(entity_ratios),
    )
    return CalibrationResult(
        role_ratios=role_ratios,
        entity_ratios=entity_ratios,
        sample_count=total,
        role_sample_counts=role_counts,
        confidence=confidence,
        calibrated=True,
        periods_analyzed=len(periods),
        static_ratios=dict(reference.role_ratios),
        generic_ratio=reference.generic_ratio,
    )


def actuals_from_projections(
    projections_by_player: Mapping[str, Iterable[PeriodProjection]],
) -> Dict[str, Dict[int, float]]:
    """Collect realized (``result`` provenance) points into an actuals series."""

    series: Dict[str, Dict[int, float]] = {}
    for player_id, projections in projections_by_player.items():
        realized = {
            projection.period: projection.points
            for projection in projections
            if projection.source is ProjectionSource.RESULT
        }
        if realized:
            series[player_id] = realized
    return series
