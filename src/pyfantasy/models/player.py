"""Canonical player and projection models shared across ingestion and scoring layers."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict


_ROLE_ALIASES = {
    "G": "GKP",
    "GK": "GKP",
    "GKP": "GKP",
    "GOALKEEPER": "GKP",
    "KEEPER": "GKP",
    "D": "DEF",
    "DEF": "DEF",
    "DEFENDER": "DEF",
    "M": "MID",
    "MID": "MID",
    "MIDFIELDER": "MID",
    "F": "FWD",
    "FW": "FWD",
    "FWD": "FWD",
    "FORWARD": "FWD",
}


def normalize_role(value: str) -> str:
    """Map single-letter and long role codes onto GKP/DEF/MID/FWD.

    Unknown codes are returned upper-cased so callers can still report them.
    """

    key = value.strip().upper()
    return _ROLE_ALIASES.get(key, key)


class Ownership(str, Enum):
    UNOWNED = "unowned"
    MINE = "owned_by_self"
    OTHER = "owned_by_other"


class ProjectionSource(str, Enum):
    PROJECTION = "projection"
    RESULT = "result"


class PlayerRecord(BaseModel):
    """Normalized athlete payload used by the scoring and optimizer pipelines."""

    player_id: str = Field(..., min_length=1)
    name: str
    team: str = ""
    role: str
    ownership: Ownership = Ownership.UNOWNED
    injury_status: Optional[str] = None
    news: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @field_validator("role")
    @classmethod
    def _canonical_role(cls, value: str) -> str:
        return normalize_role(value)


class PeriodProjection(BaseModel):
    """Source-system points for one player in one period (gameweek)."""

    period: int = Field(..., ge=0)
    points: float
    minutes: float | None = Field(default=None, ge=0.0)
    opponent: Optional[str] = None
    difficulty: int | None = Field(default=None, ge=1, le=5)
    is_home: Optional[bool] = None
    source: ProjectionSource = ProjectionSource.PROJECTION

    model_config = ConfigDict(frozen=True)


def normalize_projections(projections: Iterable[PeriodProjection]) -> Tuple[PeriodProjection, ...]:
    """Return projections ordered by period, rejecting duplicate periods."""

    ordered = sorted(projections, key=lambda item: item.period)
    seen: set[int] = set()
    for projection in ordered:
        if projection.period in seen:
            raise ValueError(f"Duplicate projection for period {projection.period}")
        seen.add(projection.period)
    return tuple(ordered)
