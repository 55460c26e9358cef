"""Statistical estimate built from learned role multipliers and rotation risk."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from pyfantasy.models import PeriodProjection, PlayerRecord

from .adjustments import recent_periods


# Realized target/source ratios measured over a completed half season.
LEARNED_ROLE_MULTIPLIERS: Dict[str, float] = {
    "GKP": 1.129,
    "DEF": 1.264,
    "MID": 1.267,
    "FWD": 1.282,
}
DEFAULT_ROLE_MULTIPLIER = 1.267
ASSUMED_MINUTES = 90.0

MINUTES_BANDS = (
    (85.0, 1.0),
    (70.0, 0.95),
    (50.0, 0.85),
)
LOW_MINUTES_MULTIPLIER = 0.65

DEFENSIVE_ROLES = frozenset({"GKP", "DEF"})
_DEFENSIVE_FIXTURE = {1: 0.95, 2: 0.98, 3: 1.0, 4: 1.05, 5: 1.08}
_ATTACKING_FIXTURE = {1: 1.10, 2: 1.05, 3: 1.0, 4: 0.95, 5: 0.90}

BASE_CONFIDENCE = 70


@dataclass(frozen=True)
class StatisticalContext:
    recent_average: Optional[float] = None
    season_average: Optional[float] = None
    difficulty: Optional[int] = None

    @property
    def has_form(self) -> bool:
        return bool(self.recent_average) and bool(self.season_average)


@dataclass(frozen=True)
class StatisticalEstimate:
    points: float
    confidence: int
    base_points: float
    role_multiplier: float
    minutes_multiplier: float
    form_multiplier: float
    fixture_multiplier: float


def role_multiplier(role: str) -> float:
    return LEARNED_ROLE_MULTIPLIERS.get(role, DEFAULT_ROLE_MULTIPLIER)


def minutes_multiplier(minutes: float) -> float:
    for floor, multiplier in MINUTES_BANDS:
        if minutes >= floor:
            return multiplier
    return LOW_MINUTES_MULTIPLIER


def form_multiplier(context: StatisticalContext) -> float:
    if not context.has_form:
        return 1.0
    ratio = context.recent_average / context.season_average
    if ratio >= 1.3:
        return 1.15
    if ratio >= 1.1:
        return 1.08
    if ratio <= 0.7:
        return 0.85
    if ratio <= 0.9:
        return 0.92
    return 1.0


def fixture_multiplier(difficulty: Optional[int], role: str) -> float:
    """Easy fixtures favour attackers; hard ones favour defensive roles."""

    if not difficulty:
        return 1.0
    table = _DEFENSIVE_FIXTURE if role in DEFENSIVE_ROLES else _ATTACKING_FIXTURE
    return table.get(difficulty, 1.0)


def _confidence(*, has_minutes: bool, has_form: bool, has_fixture: bool, minutes_factor: float) -> int:
    confidence = BASE_CONFIDENCE
    if has_minutes:
        confidence += 10
    if has_form:
        confidence += 10
    if has_fixture:
        confidence += 5
    if minutes_factor < 0.9:
        confidence -= 15
    elif minutes_factor < 0.95:
        confidence -= 5
    return max(0, min(100, confidence))


def statistical_estimate(
    player: PlayerRecord,
    base_points: float,
    *,
    minutes: float | None = None,
    context: StatisticalContext | None = None,
) -> StatisticalEstimate:
    """Scale a source-system estimate by role, minutes, form and fixture.

    Missing minutes are treated as a full match for the multiplier but do not
    earn the minutes confidence bonus.
    """

    context = context or StatisticalContext()
    role_factor = role_multiplier(player.role)
    minutes_factor = minutes_multiplier(minutes if minutes is not None else ASSUMED_MINUTES)
    form_factor = form_multiplier(context)
    fixture_factor = fixture_multiplier(context.difficulty, player.role)

    points = base_points * role_factor * minutes_factor * form_factor * fixture_factor
    return StatisticalEstimate(
        points=max(0.0, points),
        confidence=_confidence(
            has_minutes=minutes is not None,
            has_form=context.has_form,
            has_fixture=bool(context.difficulty),
            minutes_factor=minutes_factor,
        ),
        base_points=base_points,
        role_multiplier=role_factor,
        minutes_multiplier=minutes_factor,
        form_multiplier=form_factor,
        fixture_multiplier=fixture_factor,
    )


def context_from_projections(
    projections: Sequence[PeriodProjection],
    target_period: int,
) -> StatisticalContext:
    """Derive form and fixture context from a normalized projection series."""

    season_average = None
    if projections:
        season_average = sum(item.points for item in projections) / len(projections)

    recent = recent_periods(projections, target_period)
    recent_average = sum(item.points for item in recent) / len(recent) if recent else None

    difficulty = None
    for item in projections:
        if item.period == target_period:
            difficulty = item.difficulty
            break

    return StatisticalContext(
        recent_average=recent_average,
        season_average=season_average,
        difficulty=difficulty,
    )
