"""Persist and load reference-data profiles (archetypes, ratios, formations)."""

from __future__ import annotations

import json
from pathlib import Path

from pyfantasy.config import DEFAULT_REFERENCE, ArchetypeSpec, FormationTemplate, ReferenceData


def load_reference(path: Path, *, base: ReferenceData = DEFAULT_REFERENCE) -> ReferenceData:
    """Load a JSON profile, falling back to ``base`` for any section it omits.

    The layout mirrors :func:`save_reference`::

        {
          "archetypes": {"DEF": {"attacking_fullback": {"ratio": 1.2, "description": "..."}}},
          "player_mappings": {"DEF": {"attacking_fullback": ["Pedro Porro"]}},
          "role_ratios": {"DEF": 1.15},
          "formations": {"4-4-2": {"GKP": 1, "DEF": 4, "MID": 4, "FWD": 2}}
        }
    """

    data = json.loads(path.read_text(encoding="utf-8"))

    archetypes = base.archetypes
    if "archetypes" in data:
        archetypes = {
            role: tuple(
                ArchetypeSpec(
                    name=name,
                    role=role,
                    ratio=float(info["ratio"]),
                    description=info.get("description", ""),
                )
                for name, info in entries.items()
            )
            for role, entries in data["archetypes"].items()
        }

    members = base.archetype_members
    if "player_mappings" in data:
        members = {
            role: {name: tuple(names) for name, names in entries.items()}
            for role, entries in data["player_mappings"].items()
        }

    role_ratios = base.role_ratios
    if "role_ratios" in data:
        role_ratios = {role: float(value) for role, value in data["role_ratios"].items()}

    templates = base.templates
    if "formations" in data:
        templates = tuple(
            FormationTemplate(name, {role: int(count) for role, count in requirements.items()})
            for name, requirements in data["formations"].items()
        )

    return ReferenceData(
        archetypes=archetypes,
        archetype_members=members,
        role_ratios=role_ratios,
        templates=templates,
        generic_ratio=float(data.get("generic_ratio", base.generic_ratio)),
    )


def save_reference(reference: ReferenceData, path: Path) -> None:
    payload = {
        "archetypes": {
            role: {spec.name: {"ratio": spec.ratio, "description": spec.description} for spec in specs}
            for role, specs in reference.archetypes.items()
        },
        "player_mappings": {
            role: {name: list(names) for name, names in entries.items()}
            for role, entries in reference.archetype_members.items()
        },
        "role_ratios": dict(reference.role_ratios),
        "formations": {template.name: dict(template.requirements) for template in reference.templates},
        "generic_ratio": reference.generic_ratio,
    }
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
