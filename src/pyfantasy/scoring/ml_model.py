"""Rule-ensemble bias correction applied on top of calibrated estimates.

Each rule returns a residual (positive means the calibrated estimate runs low).
Residuals are weighted and summed into a single correction multiplier. The
role residual rule is learned from historical records by ``fit``; the other
rules are fixed.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from pyfantasy.models import PeriodProjection, PlayerRecord

from .adjustments import AvailabilityStatus, injury_return_adjustment


logger = logging.getLogger(__name__)

DEFAULT_ROLE_RESIDUALS: Dict[str, float] = {
    "GKP": 1.05,
    "DEF": 1.02,
    "MID": 1.08,
    "FWD": 1.12,
}
RESIDUAL_BOUNDS = (0.80, 1.25)
MULTIPLIER_BOUNDS = (0.5, 1.5)

UNTRAINED_CONFIDENCE = 50
BASE_CONFIDENCE = 60

DEFAULT_STRONG_TEAMS = frozenset({"Man City", "Arsenal", "Liverpool", "Chelsea", "Tottenham", "Man Utd"})
DEFAULT_STRONG_OPPONENTS = frozenset({"mci", "ars", "liv", "che", "tot", "mun"})

ATTACKING_ROLES = frozenset({"MID", "FWD"})
DEFENSIVE_ROLES = frozenset({"GKP", "DEF"})
ASSUMED_MINUTES = 90.0

_SUSPENSION_WORDS = ("suspended", "banned")


@dataclass(frozen=True)
class MLFeatures:
    role: str
    team: str = ""
    opponent: Optional[str] = None
    predicted_minutes: Optional[float] = None
    injured: bool = False
    suspended: bool = False
    in_squad: bool = True


@dataclass(frozen=True)
class MLCorrection:
    multiplier: float
    confidence: int
    contributions: Mapping[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class TrainingRecord:
    role: str
    calibrated_points: float
    target_actual: Optional[float]


@dataclass(frozen=True)
class _Rule:
    name: str
    weight: float
    predict: Callable[[MLFeatures], float]


def _clamp(value: float, bounds: Tuple[float, float]) -> float:
    low, high = bounds
    return max(low, min(high, value))


class MLCorrectionModel:
    """Weighted decision rules predicting a correction multiplier.

    Untrained models are neutral: multiplier 1.0 at confidence 50.
    """

    def __init__(
        self,
        *,
        strong_teams: Iterable[str] = DEFAULT_STRONG_TEAMS,
        strong_opponents: Iterable[str] = DEFAULT_STRONG_OPPONENTS,
    ) -> None:
        self.strong_teams = frozenset(strong_teams)
        self.strong_opponents = frozenset(code.lower() for code in strong_opponents)
        self.role_residuals: Dict[str, float] = dict(DEFAULT_ROLE_RESIDUALS)
        self.trained = False
        self.sample_count = 0

    def fit(self, records: Iterable[TrainingRecord]) -> "MLCorrectionModel":
        """Learn per-role residuals as mean ``target_actual / calibrated_points``."""

        buckets: Dict[str, list[float]] = defaultdict(list)
        for record in records:
            if record.target_actual is None or record.calibrated_points <= 0:
                continue
            buckets[record.role].append(record.target_actual / record.calibrated_points)

        total = sum(len(values) for values in buckets.values())
        if total == 0:
            logger.warning("ML correction model received no usable training records; staying untrained")
            return self

        residuals = dict(DEFAULT_ROLE_RESIDUALS)
        for role, values in buckets.items():
            residuals[role] = round(_clamp(sum(values) / len(values), RESIDUAL_BOUNDS), 3)
        self.role_residuals = residuals
        self.trained = True
        self.sample_count = total
        logger.info("ML correction model trained on %s records across %s roles", total, len(buckets))
        return self

    def _rules(self) -> Sequence[_Rule]:
        return (
            _Rule("role_residual", 0.30, self._role_residual),
            _Rule("minutes", 0.25, self._minutes),
            _Rule("team_strength", 0.20, self._team_strength),
            _Rule("opponent", 0.15, self._opponent),
            _Rule("availability", 0.10, self._availability),
        )

    def _role_residual(self, features: MLFeatures) -> float:
        return self.role_residuals.get(features.role, 1.0) - 1.0

    @staticmethod
    def _minutes(features: MLFeatures) -> float:
        minutes = features.predicted_minutes if features.predicted_minutes is not None else ASSUMED_MINUTES
        if minutes < 60:
            return -0.15
        if minutes < 75:
            return -0.08
        if minutes >= 85:
            return 0.05
        return 0.0

    def _team_strength(self, features: MLFeatures) -> float:
        if features.team not in self.strong_teams:
            return 0.0
        if features.role in ATTACKING_ROLES:
            return 0.08
        if features.role == "DEF":
            return 0.05
        return 0.0

    def _opponent(self, features: MLFeatures) -> float:
        if not features.opponent or features.opponent.lower() not in self.strong_opponents:
            return 0.0
        if features.role in ATTACKING_ROLES:
            return -0.10
        if features.role in DEFENSIVE_ROLES:
            return 0.05
        return 0.0

    @staticmethod
    def _availability(features: MLFeatures) -> float:
        if features.injured or features.suspended:
            return -0.50
        if not features.in_squad:
            return -0.30
        return 0.0

    def _confidence(self, features: MLFeatures) -> int:
        confidence = BASE_CONFIDENCE
        if features.predicted_minutes is not None:
            confidence += 10
        if features.team:
            confidence += 10
        if features.opponent:
            confidence += 10
        if features.in_squad:
            confidence += 10
        return min(100, confidence)

    def predict(self, features: MLFeatures) -> MLCorrection:
        if not self.trained:
            return MLCorrection(1.0, UNTRAINED_CONFIDENCE)

        contributions: Dict[str, float] = {}
        for rule in self._rules():
            contributions[rule.name] = rule.predict(features) * rule.weight
        multiplier = _clamp(1.0 + sum(contributions.values()), MULTIPLIER_BOUNDS)
        return MLCorrection(multiplier, self._confidence(features), contributions)

    def feature_importance(self) -> Dict[str, float]:
        if not self.trained:
            return {}
        return {rule.name: rule.weight for rule in self._rules()}


def features_for(
    player: PlayerRecord,
    projections: Sequence[PeriodProjection],
    target_period: int,
) -> MLFeatures:
    """Build model features from a player and its normalized projection series."""

    current = next((item for item in projections if item.period == target_period), None)
    availability = injury_return_adjustment(player, projections, target_period)
    status_text = f"{player.injury_status or ''} {player.news or ''}".lower()
    suspended = any(word in status_text for word in _SUSPENSION_WORDS)
    in_squad = not (current is not None and current.minutes == 0)
    return MLFeatures(
        role=player.role,
        team=player.team,
        opponent=current.opponent if current is not None else None,
        predicted_minutes=current.minutes if current is not None else None,
        injured=availability.availability is AvailabilityStatus.INJURED and not suspended,
        suspended=suspended and availability.availability is AvailabilityStatus.INJURED,
        in_squad=in_squad,
    )
