"""Canonical models shared across ingestion, scoring and optimizer layers."""

from .player import (
    Ownership,
    PeriodProjection,
    PlayerRecord,
    ProjectionSource,
    normalize_projections,
    normalize_role,
)

__all__ = [
    "Ownership",
    "PeriodProjection",
    "PlayerRecord",
    "ProjectionSource",
    "normalize_projections",
    "normalize_role",
]
