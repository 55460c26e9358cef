import pytest

from pyfantasy.config import DEFAULT_REFERENCE
from pyfantasy.models import PlayerRecord
from pyfantasy.scoring import ArchetypeSource, classify_archetype, summarize_archetypes


def _player(name: str, role: str) -> PlayerRecord:
    return PlayerRecord(player_id=name or "anon", name=name, role=role)


def test_named_player_matches_archetype():
    match = classify_archetype(_player("Erling Haaland", "FWD"))

    assert match.archetype == "poacher"
    assert match.ratio == pytest.approx(0.90)
    assert match.source is ArchetypeSource.ARCHETYPE_MAPPING
    assert match.description


def test_short_name_and_punctuation_still_match():
    assert classify_archetype(_player("Haaland", "FWD")).archetype == "poacher"

    match = classify_archetype(_player("Alexander-Arnold", "DEF"))
    assert match.archetype == "attacking_fullback"
    assert match.ratio == pytest.approx(1.20)


def test_known_role_without_match_uses_role_default():
    match = classify_archetype(_player("Unheard Of", "MID"))

    assert match.archetype == "default_mid"
    assert match.ratio == pytest.approx(DEFAULT_REFERENCE.role_ratios["MID"])
    assert match.source is ArchetypeSource.POSITION_DEFAULT


def test_unknown_role_gets_generic_ratio():
    match = classify_archetype(_player("Pep", "COACH"))

    assert match.archetype == "unknown"
    assert match.ratio == pytest.approx(1.0)
    assert match.source is ArchetypeSource.POSITION_FALLBACK


def test_blank_name_falls_back_to_role_ratio():
    match = classify_archetype(PlayerRecord(player_id="x", name="", role="DEF"))

    assert match.ratio == pytest.approx(1.15)
    assert match.source is ArchetypeSource.POSITION_FALLBACK


def test_summarize_archetypes_counts_sources():
    players = [
        _player("Mohamed Salah", "MID"),
        _player("Declan Rice", "MID"),
        _player("Squad Player", "DEF"),
        _player("Pep", "COACH"),
    ]

    summary = summarize_archetypes(players)

    assert summary.total_players == 4
    assert summary.with_archetype == 2
    assert summary.by_source[ArchetypeSource.POSITION_DEFAULT] == 1
    assert summary.by_source[ArchetypeSource.POSITION_FALLBACK] == 1
    assert summary.by_archetype == {"MID_goal_scoring_winger": 1, "MID_defensive_midfielder": 1}
