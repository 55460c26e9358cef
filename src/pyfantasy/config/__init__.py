"""Configuration helpers for formation templates and archetype reference data."""

from .archetypes import FALLBACK_ROLE_RATIOS, GENERIC_RATIO, ArchetypeSpec
from .formations import (
    ROLES,
    STARTING_SIZE,
    FormationTemplate,
    formation_label,
    get_template,
    iter_templates,
)
from .reference import DEFAULT_REFERENCE, ReferenceData

__all__ = [
    "ArchetypeSpec",
    "DEFAULT_REFERENCE",
    "FALLBACK_ROLE_RATIOS",
    "FormationTemplate",
    "GENERIC_RATIO",
    "ROLES",
    "ReferenceData",
    "STARTING_SIZE",
    "formation_label",
    "get_template",
    "iter_templates",
]
