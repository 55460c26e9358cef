"""Per-factor adjustments applied on top of the base conversion ratio.

Each factor degrades to a neutral 1.0 multiplier when its inputs are missing,
and reports why through its ``status`` field.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from pyfantasy.models import PeriodProjection, PlayerRecord


FORM_WINDOW = 3
FORM_MIN_PERIODS = 2
FORM_BOUNDS = (0.80, 1.20)

FIXTURE_WINDOW = 6
FIXTURE_MIN_PERIODS = 3
# Source projections already price in fixtures, so this band stays narrow.
FIXTURE_BOUNDS = (0.92, 1.08)

INJURED_MULTIPLIER = 0.5
RECOVERY_MULTIPLIERS = (0.70, 0.85, 0.95, 1.00)
LOW_MINUTES = 30.0
ASSUMED_MINUTES = 90.0

NO_MINUTES_MULTIPLIER = 0.70
MINUTES_BANDS = (
    (30.0, 0.40),
    (60.0, 0.75),
    (75.0, 0.90),
)

_INJURY_PATTERN = re.compile(r"\b(injured|injury|out|suspended|banned)\b")
_RETURN_PATTERN = re.compile(r"\b(returned|back|fit|available|recovered)\b")


class FactorStatus(str, Enum):
    CALCULATED = "calculated"
    INSUFFICIENT_DATA = "insufficient_data"
    NO_SEASON_AVERAGE = "no_season_average"
    NO_INJURY_DATA = "no_injury_data"
    INJURY_STATUS = "injury_status"
    NO_RECENT_DATA = "no_recent_data"
    NO_ADJUSTMENT_NEEDED = "no_adjustment_needed"
    TARGET_MINUTES = "target_minutes"
    AVERAGE_MINUTES = "average_minutes"
    NO_MINUTES_DATA = "no_minutes_data"


class AvailabilityStatus(str, Enum):
    HEALTHY = "healthy"
    INJURED = "injured"
    RETURNING = "returning"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class FormMomentum:
    multiplier: float
    status: FactorStatus
    recent_average: float | None = None
    season_average: float | None = None
    periods_used: int = 0
    trend: str = "neutral"


@dataclass(frozen=True)
class FixtureRun:
    multiplier: float
    status: FactorStatus
    upcoming_average: float | None = None
    season_average: float | None = None
    periods_analyzed: int = 0
    rating: str = "average"


@dataclass(frozen=True)
class InjuryAdjustment:
    multiplier: float
    status: FactorStatus
    availability: AvailabilityStatus
    weeks_back: int | None = None
    description: str | None = None


@dataclass(frozen=True)
class PlayingTime:
    multiplier: float
    status: FactorStatus
    expected_minutes: float


def _clamp(value: float, bounds: tuple[float, float]) -> float:
    low, high = bounds
    return max(low, min(high, value))


def _mean_points(projections: Sequence[PeriodProjection]) -> float:
    return sum(item.points for item in projections) / len(projections)


def recent_periods(projections: Sequence[PeriodProjection], target_period: int) -> list[PeriodProjection]:
    """Periods in ``[target - FORM_WINDOW, target)``, most recent first."""

    window = [
        item
        for item in projections
        if target_period - FORM_WINDOW <= item.period < target_period
    ]
    return sorted(window, key=lambda item: item.period, reverse=True)[:FORM_WINDOW]


def form_momentum(
    projections: Sequence[PeriodProjection],
    target_period: int,
    season_average: float,
) -> FormMomentum:
    """Recent-periods average against the season average, clamped to +/-20%."""

    if season_average <= 0:
        return FormMomentum(1.0, FactorStatus.NO_SEASON_AVERAGE)

    recent = recent_periods(projections, target_period)
    if len(recent) < FORM_MIN_PERIODS:
        return FormMomentum(1.0, FactorStatus.INSUFFICIENT_DATA, periods_used=len(recent))

    recent_average = _mean_points(recent)
    multiplier = _clamp(recent_average / season_average, FORM_BOUNDS)
    trend = "neutral"
    if multiplier > 1.05:
        trend = "hot"
    elif multiplier < 0.95:
        trend = "cold"
    return FormMomentum(
        multiplier=multiplier,
        status=FactorStatus.CALCULATED,
        recent_average=round(recent_average, 2),
        season_average=round(season_average, 2),
        periods_used=len(recent),
        trend=trend,
    )


def fixture_run_quality(
    projections: Sequence[PeriodProjection],
    target_period: int,
    season_average: float,
) -> FixtureRun:
    """Upcoming-periods average (target inclusive) against the season average."""

    if season_average <= 0:
        return FixtureRun(1.0, FactorStatus.NO_SEASON_AVERAGE)

    upcoming = [
        item
        for item in projections
        if target_period <= item.period < target_period + FIXTURE_WINDOW
    ]
    if len(upcoming) < FIXTURE_MIN_PERIODS:
        return FixtureRun(1.0, FactorStatus.INSUFFICIENT_DATA, periods_analyzed=len(upcoming))

    upcoming_average = _mean_points(upcoming)
    multiplier = _clamp(upcoming_average / season_average, FIXTURE_BOUNDS)
    rating = "average"
    if multiplier > 1.05:
        rating = "favorable"
    elif multiplier < 0.95:
        rating = "difficult"
    return FixtureRun(
        multiplier=multiplier,
        status=FactorStatus.CALCULATED,
        upcoming_average=round(upcoming_average, 2),
        season_average=round(season_average, 2),
        periods_analyzed=len(upcoming),
        rating=rating,
    )


def injury_return_adjustment(
    player: PlayerRecord,
    projections: Sequence[PeriodProjection],
    target_period: int,
) -> InjuryAdjustment:
    """Scale down players who are out, or easing back in after low-minute periods."""

    status_text = (player.injury_status or "").lower()
    news_text = (player.news or "").lower()

    injured = bool(_INJURY_PATTERN.search(status_text) or _INJURY_PATTERN.search(news_text))
    returning = bool(_RETURN_PATTERN.search(news_text))

    if not injured and not returning:
        return InjuryAdjustment(1.0, FactorStatus.NO_INJURY_DATA, AvailabilityStatus.HEALTHY)

    if injured and not returning:
        return InjuryAdjustment(
            INJURED_MULTIPLIER,
            FactorStatus.INJURY_STATUS,
            AvailabilityStatus.INJURED,
            description="Currently injured or suspended",
        )

    recent = recent_periods(projections, target_period)
    if not recent:
        return InjuryAdjustment(1.0, FactorStatus.NO_RECENT_DATA, AvailabilityStatus.UNKNOWN)

    low_minutes = [
        item
        for item in recent
        if (item.minutes if item.minutes is not None else ASSUMED_MINUTES) < LOW_MINUTES
    ]
    if low_minutes:
        weeks_back = len(recent) - len(low_minutes) + 1
        multiplier = RECOVERY_MULTIPLIERS[min(weeks_back - 1, len(RECOVERY_MULTIPLIERS) - 1)]
        return InjuryAdjustment(
            multiplier,
            FactorStatus.CALCULATED,
            AvailabilityStatus.RETURNING,
            weeks_back=weeks_back,
            description=f"Returning from injury (week {weeks_back})",
        )

    return InjuryAdjustment(1.0, FactorStatus.NO_ADJUSTMENT_NEEDED, AvailabilityStatus.HEALTHY)


def _minutes_multiplier(minutes: float) -> float:
    for ceiling, multiplier in MINUTES_BANDS:
        if minutes < ceiling:
            return multiplier
    return 1.0


def resolve_expected_minutes(
    projections: Sequence[PeriodProjection],
    target_period: int,
) -> tuple[Optional[float], FactorStatus]:
    for item in projections:
        if item.period == target_period and item.minutes is not None:
            return item.minutes, FactorStatus.TARGET_MINUTES
    known = [item.minutes for item in projections if item.minutes is not None]
    if known:
        return sum(known) / len(known), FactorStatus.AVERAGE_MINUTES
    return None, FactorStatus.NO_MINUTES_DATA


def playing_time_confidence(
    projections: Sequence[PeriodProjection],
    target_period: int,
) -> PlayingTime:
    """Rotation-risk multiplier from the minutes expected in the target period."""

    minutes, status = resolve_expected_minutes(projections, target_period)
    if minutes is None:
        return PlayingTime(NO_MINUTES_MULTIPLIER, status, ASSUMED_MINUTES)
    return PlayingTime(_minutes_multiplier(minutes), status, round(minutes, 2))
