"""Read-only reference data threaded through the scoring and optimizer layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Tuple

from .archetypes import (
    DEFAULT_ARCHETYPE_MEMBERS,
    DEFAULT_ARCHETYPES,
    FALLBACK_ROLE_RATIOS,
    GENERIC_RATIO,
    ArchetypeSpec,
)
from .formations import ROLES, FormationTemplate, iter_templates


@dataclass(frozen=True)
class ReferenceData:
    """Archetype tables, static ratios and formation templates for one batch."""

    archetypes: Mapping[str, Tuple[ArchetypeSpec, ...]]
    archetype_members: Mapping[str, Mapping[str, Tuple[str, ...]]]
    role_ratios: Mapping[str, float]
    templates: Tuple[FormationTemplate, ...]
    generic_ratio: float = GENERIC_RATIO
    roles: Tuple[str, ...] = field(default=ROLES)

    def __post_init__(self) -> None:
        for role, specs in self.archetypes.items():
            for spec in specs:
                if spec.role != role:
                    raise ValueError(
                        f"Archetype {spec.name!r} declares role {spec.role!r} but is listed under {role!r}"
                    )

    def role_ratio(self, role: str) -> float:
        return self.role_ratios.get(role, self.generic_ratio)

    def find_archetype(self, role: str, name: str) -> ArchetypeSpec | None:
        for spec in self.archetypes.get(role, ()):
            if spec.name == name:
                return spec
        return None


DEFAULT_REFERENCE = ReferenceData(
    archetypes=DEFAULT_ARCHETYPES,
    archetype_members=DEFAULT_ARCHETYPE_MEMBERS,
    role_ratios=FALLBACK_ROLE_RATIOS,
    templates=tuple(iter_templates()),
)
