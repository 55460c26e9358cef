"""Single-period matchup quality and start/bench advice."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

from pyfantasy.models import PeriodProjection


NEUTRAL_DIFFICULTY = 3
HOME_ADJUSTMENT = -0.5
AWAY_ADJUSTMENT = 0.3

# (must start, safe start, flex) thresholds in target-system points.
_START_THRESHOLDS: Dict[str, Tuple[float, float, float]] = {
    "GKP": (4.5, 3.0, 2.0),
    "DEF": (5.0, 3.5, 2.5),
    "MID": (6.0, 4.0, 3.0),
    "FWD": (6.5, 4.5, 3.5),
}
_DEFAULT_THRESHOLDS = (6.0, 4.0, 3.0)


@dataclass(frozen=True)
class Matchup:
    quality: str
    opponent: str
    difficulty: int
    adjusted_difficulty: float
    is_home: bool
    points: float = 0.0
    minutes: float | None = None
    has_matchup: bool = True


@dataclass(frozen=True)
class StartRecommendation:
    recommendation: str
    confidence: str
    description: str


def _quality(adjusted: float) -> str:
    if adjusted <= 2.0:
        return "smash_spot"
    if adjusted <= 2.8:
        return "favorable"
    if adjusted <= 3.5:
        return "neutral"
    if adjusted <= 4.2:
        return "difficult"
    return "avoid"


def single_period_matchup(projections: Sequence[PeriodProjection], target_period: int) -> Matchup:
    """Classify this period's opponent, nudging difficulty for home/away."""

    current = next((item for item in projections if item.period == target_period), None)
    if current is None:
        return Matchup(
            quality="unknown",
            opponent="TBD",
            difficulty=NEUTRAL_DIFFICULTY,
            adjusted_difficulty=float(NEUTRAL_DIFFICULTY),
            is_home=True,
            has_matchup=False,
        )

    difficulty = current.difficulty or NEUTRAL_DIFFICULTY
    is_home = current.is_home if current.is_home is not None else True
    if is_home:
        adjusted = max(1.0, difficulty + HOME_ADJUSTMENT)
    else:
        adjusted = min(5.0, difficulty + AWAY_ADJUSTMENT)
    return Matchup(
        quality=_quality(adjusted),
        opponent=(current.opponent or "TBD").upper(),
        difficulty=difficulty,
        adjusted_difficulty=adjusted,
        is_home=is_home,
        points=current.points,
        minutes=current.minutes,
    )


def start_recommendation(points: float, role: str) -> StartRecommendation:
    must_start, safe_start, flex = _START_THRESHOLDS.get(role, _DEFAULT_THRESHOLDS)
    if points >= must_start:
        return StartRecommendation("MUST_START", "high", f"Excellent projection ({points:.1f} pts)")
    if points >= safe_start:
        return StartRecommendation("SAFE_START", "medium", f"Solid projection ({points:.1f} pts)")
    if points >= flex:
        return StartRecommendation("FLEX", "low", f"Risky play ({points:.1f} pts)")
    return StartRecommendation("BENCH", "none", f"Low projection ({points:.1f} pts)")
