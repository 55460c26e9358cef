"""Static archetype reference data and role conversion ratios."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class ArchetypeSpec:
    name: str
    role: str
    ratio: float
    description: str


# Source-to-target ratios used when no archetype or calibration applies.
FALLBACK_ROLE_RATIOS: Dict[str, float] = {
    "GKP": 0.90,
    "DEF": 1.15,
    "MID": 1.05,
    "FWD": 0.97,
}

GENERIC_RATIO = 1.0


def _spec(role: str, name: str, ratio: float, description: str) -> ArchetypeSpec:
    return ArchetypeSpec(name=name, role=role, ratio=ratio, description=description)


DEFAULT_ARCHETYPES: Dict[str, Tuple[ArchetypeSpec, ...]] = {
    "GKP": (
        _spec("GKP", "shot_stopper", 0.95, "High save volume behind a leaky defence"),
        _spec("GKP", "sweeper_keeper", 0.85, "Few saves, relies on clean sheets"),
    ),
    "DEF": (
        _spec("DEF", "attacking_fullback", 1.20, "Crosses, key passes and chance creation"),
        _spec("DEF", "defensive_stopper", 1.25, "Tackles, interceptions and blocks in volume"),
        _spec("DEF", "ball_playing_cb", 1.10, "Progressive passing, modest defensive actions"),
    ),
    "MID": (
        _spec("MID", "defensive_midfielder", 1.20, "Ball winner rewarded for tackles and recoveries"),
        _spec("MID", "box_to_box", 1.12, "Balanced attacking and defensive output"),
        _spec("MID", "creative_playmaker", 1.05, "Chance creation, low defensive contribution"),
        _spec("MID", "goal_scoring_winger", 0.98, "Shots and goals, frequently dispossessed"),
    ),
    "FWD": (
        _spec("FWD", "high_pressing_forward", 1.05, "Presses from the front and links play"),
        _spec("FWD", "target_man", 0.97, "Aerial duels and hold-up play"),
        _spec("FWD", "poacher", 0.90, "Penalty-box finisher with little involvement"),
    ),
}

DEFAULT_ARCHETYPE_MEMBERS: Dict[str, Dict[str, Tuple[str, ...]]] = {
    "GKP": {
        "shot_stopper": ("Jordan Pickford", "Bernd Leno", "Andre Onana", "Mark Flekken"),
        "sweeper_keeper": ("Alisson", "Ederson", "David Raya"),
    },
    "DEF": {
        "attacking_fullback": ("Trent Alexander-Arnold", "Pedro Porro", "Kieran Trippier", "Destiny Udogie"),
        "defensive_stopper": ("James Tarkowski", "Marc Guehi", "Murillo", "Nikola Milenkovic"),
        "ball_playing_cb": ("Virgil van Dijk", "William Saliba", "Ruben Dias", "John Stones"),
    },
    "MID": {
        "defensive_midfielder": ("Moises Caicedo", "Joao Palhinha", "Declan Rice", "Rodri"),
        "box_to_box": ("Bruno Guimaraes", "Kobbie Mainoo", "Youri Tielemans"),
        "creative_playmaker": ("Kevin De Bruyne", "Martin Odegaard", "Bruno Fernandes", "James Maddison"),
        "goal_scoring_winger": ("Mohamed Salah", "Bukayo Saka", "Son Heung-min", "Anthony Gordon"),
    },
    "FWD": {
        "high_pressing_forward": ("Ollie Watkins", "Dominic Solanke", "Jean-Philippe Mateta"),
        "target_man": ("Chris Wood", "Dominic Calvert-Lewin", "Yoane Wissa"),
        "poacher": ("Erling Haaland", "Alexander Isak", "Nicolas Jackson"),
    },
}
