"""Formation templates for the starting lineup."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Tuple

ROLES: Tuple[str, ...] = ("GKP", "DEF", "MID", "FWD")
STARTING_SIZE = 11


@dataclass(frozen=True)
class FormationTemplate:
    name: str
    requirements: Mapping[str, int]

    def __post_init__(self) -> None:
        if self.headcount != STARTING_SIZE:
            raise ValueError(
                f"Formation {self.name!r} fields {self.headcount} players, expected {STARTING_SIZE}"
            )

    @property
    def headcount(self) -> int:
        return sum(self.requirements.values())


_TEMPLATES: Dict[str, FormationTemplate] = {
    "3-5-2": FormationTemplate("3-5-2", {"GKP": 1, "DEF": 3, "MID": 5, "FWD": 2}),
    "4-4-2": FormationTemplate("4-4-2", {"GKP": 1, "DEF": 4, "MID": 4, "FWD": 2}),
    "4-5-1": FormationTemplate("4-5-1", {"GKP": 1, "DEF": 4, "MID": 5, "FWD": 1}),
    "3-4-3": FormationTemplate("3-4-3", {"GKP": 1, "DEF": 3, "MID": 4, "FWD": 3}),
    "4-3-3": FormationTemplate("4-3-3", {"GKP": 1, "DEF": 4, "MID": 3, "FWD": 3}),
    "5-4-1": FormationTemplate("5-4-1", {"GKP": 1, "DEF": 5, "MID": 4, "FWD": 1}),
}


def iter_templates() -> Iterable[FormationTemplate]:
    """Return an iterator of all configured formation templates."""

    return _TEMPLATES.values()


def get_template(name: str) -> FormationTemplate:
    """Fetch a template by name (e.g. "4-4-2"), raising KeyError if missing."""

    key = name.strip()
    if key not in _TEMPLATES:
        raise KeyError(f"No formation template configured for {name!r}")
    return _TEMPLATES[key]


def formation_label(role_counts: Mapping[str, int]) -> str:
    """Render outfield role counts as a formation name such as "4-4-2"."""

    return "-".join(str(role_counts.get(role, 0)) for role in ROLES[1:])
