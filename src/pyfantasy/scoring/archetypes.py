"""Archetype classification and the static conversion ratio it implies."""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable

from pyfantasy.config import DEFAULT_REFERENCE, ReferenceData
from pyfantasy.models import PlayerRecord


logger = logging.getLogger(__name__)

_PUNCTUATION = re.compile(r"[^\w\s]")


class ArchetypeSource(str, Enum):
    ARCHETYPE_MAPPING = "archetype_mapping"
    POSITION_DEFAULT = "position_default"
    POSITION_FALLBACK = "position_fallback"


@dataclass(frozen=True)
class ArchetypeMatch:
    archetype: str
    ratio: float
    source: ArchetypeSource
    description: str | None = None


@dataclass(frozen=True)
class ArchetypeSummary:
    total_players: int
    by_source: Dict[ArchetypeSource, int]
    by_archetype: Dict[str, int] = field(default_factory=dict)

    @property
    def with_archetype(self) -> int:
        return self.by_source.get(ArchetypeSource.ARCHETYPE_MAPPING, 0)


def _normalize_name(name: str) -> str:
    return _PUNCTUATION.sub("", name.lower()).strip()


def _names_match(mapped: str, player: str) -> bool:
    if not mapped or not player:
        return False
    return mapped == player or mapped in player or player in mapped


def classify_archetype(player: PlayerRecord, reference: ReferenceData = DEFAULT_REFERENCE) -> ArchetypeMatch:
    """Resolve the archetype (and its ratio) for a player.

    Unknown roles get the generic ratio; known roles without a named match get the
    role's default ratio.
    """

    role = player.role
    if role not in reference.role_ratios and role not in reference.archetype_members:
        return ArchetypeMatch("unknown", reference.generic_ratio, ArchetypeSource.POSITION_FALLBACK)

    player_name = _normalize_name(player.name)
    members = reference.archetype_members.get(role)
    if not player_name or not members:
        return ArchetypeMatch("unknown", reference.role_ratio(role), ArchetypeSource.POSITION_FALLBACK)

    for archetype_name, mapped_names in members.items():
        if any(_names_match(_normalize_name(mapped), player_name) for mapped in mapped_names):
            spec = reference.find_archetype(role, archetype_name)
            if spec is None:
                logger.warning("Archetype %s/%s has members but no ratio; skipping", role, archetype_name)
                continue
            logger.debug("Archetype: %s -> %s (%.2fx)", player.name, spec.name, spec.ratio)
            return ArchetypeMatch(spec.name, spec.ratio, ArchetypeSource.ARCHETYPE_MAPPING, spec.description)

    return ArchetypeMatch(f"default_{role.lower()}", reference.role_ratio(role), ArchetypeSource.POSITION_DEFAULT)


def summarize_archetypes(
    players: Iterable[PlayerRecord],
    reference: ReferenceData = DEFAULT_REFERENCE,
) -> ArchetypeSummary:
    by_source: Counter[ArchetypeSource] = Counter({source: 0 for source in ArchetypeSource})
    by_archetype: Counter[str] = Counter()
    total = 0
    for player in players:
        total += 1
        match = classify_archetype(player, reference)
        by_source[match.source] += 1
        if match.source is ArchetypeSource.ARCHETYPE_MAPPING:
            by_archetype[f"{player.role}_{match.archetype}"] += 1
    return ArchetypeSummary(total_players=total, by_source=dict(by_source), by_archetype=dict(by_archetype))
