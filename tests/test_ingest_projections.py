from pathlib import Path

import pytest

from pyfantasy.ingest import (
    ProjectionRow,
    canonical_team,
    load_actuals_csv,
    load_roster_csv,
    rows_to_roster,
)
from pyfantasy.models import Ownership, ProjectionSource


def _row(**kwargs):
    mapping = {
        "player_id": "player_id",
        "name": "name",
        "team": "team",
        "position": "position",
        "period": "period",
        "points": "points",
        "minutes": "minutes",
        "opponent": "opponent",
        "is_home": "is_home",
        "ownership": "ownership",
        "injury_status": "injury_status",
        "source": "source",
    }
    return ProjectionRow.from_mapping(kwargs, mapping)


def test_rows_to_roster_groups_periods_by_player():
    rows = [
        _row(player_id="p1", name="Bukayo Saka", team="ars", position="Midfielder", period="2", points="6.5",
             minutes="88", opponent="che", is_home="H", ownership="mine"),
        _row(player_id="p1", name="Bukayo Saka", team="ars", position="Midfielder", period="1", points="4.0",
             is_home="away", injury_status="Knock"),
        _row(player_id="p2", name="Erling Haaland", team="MCI", position="Forward", period="1", points="9.1",
             ownership="taken", source="result"),
    ]

    players, projections, report = rows_to_roster(rows)

    assert [player.player_id for player in players] == ["p1", "p2"]
    saka, haaland = players
    assert saka.role == "MID"
    assert saka.team == "Arsenal"
    assert saka.ownership is Ownership.MINE
    assert saka.injury_status == "Knock"
    assert haaland.role == "FWD"
    assert haaland.team == "Man City"
    assert haaland.ownership is Ownership.OTHER

    assert [item.period for item in projections["p1"]] == [1, 2]
    later = projections["p1"][1]
    assert later.minutes == pytest.approx(88.0)
    assert later.opponent == "che"
    assert later.is_home is True
    assert projections["p1"][0].is_home is False
    assert projections["p2"][0].source is ProjectionSource.RESULT

    assert report.total_rows == 3
    assert report.players == 2
    assert report.periods == 2
    assert report.unknown_roles == []


def test_blank_points_are_skipped_not_zero():
    rows = [
        _row(player_id="p1", name="Player", team="FUL", position="D", period="1", points=""),
        _row(player_id="p1", name="Player", team="FUL", position="D", period="2", points="3"),
    ]

    players, projections, report = rows_to_roster(rows)

    assert len(players) == 1
    assert [item.period for item in projections["p1"]] == [2]
    assert report.rows_without_points == 1


def test_duplicate_period_raises_with_player_name():
    rows = [
        _row(player_id="p1", name="Dup Player", team="FUL", position="D", period="3", points="3"),
        _row(player_id="p1", name="Dup Player", team="FUL", position="D", period="3", points="4"),
    ]

    with pytest.raises(ValueError, match="Dup Player"):
        rows_to_roster(rows)


def test_non_numeric_points_raise():
    rows = [_row(player_id="p1", name="Player", team="FUL", position="D", period="3", points="n/a")]

    with pytest.raises(ValueError, match="not numeric"):
        rows_to_roster(rows)


def test_unknown_roles_and_ownership_are_reported(caplog):
    rows = [
        _row(player_id="c1", name="Coach", team="FUL", position="Manager", period="1", points="2", ownership="maybe"),
        _row(name="", team="FUL", position="D", period="1", points="2"),
    ]

    with caplog.at_level("WARNING"):
        players, _, report = rows_to_roster(rows)

    assert players[0].ownership is Ownership.UNOWNED
    assert report.unknown_roles == ["MANAGER"]
    assert report.skipped_rows == ["<blank>"]
    assert "Unknown ownership value" in caplog.text


def test_canonical_team_aliases():
    assert canonical_team("Manchester United") == "Man Utd"
    assert canonical_team("spurs") == "Tottenham"
    assert canonical_team("Nottingham Forest") == "Nott'm Forest"
    assert canonical_team("Unknown FC") == "Unknown FC"


def test_pipe_mapping_joins_columns():
    row = ProjectionRow.from_mapping(
        {"first": "Mohamed", "last": "Salah", "team": "LIV", "gw": "4", "pts": "8"},
        {"name": "first|last", "period": "gw", "points": "pts"},
    )

    assert row.raw_name == "Mohamed Salah"
    assert row.raw_period == "4"
    assert row.raw_id is None


def test_load_roster_csv(tmp_path: Path):
    path = tmp_path / "projections.csv"
    path.write_text(
        "player_id,name,team,position,period,points,minutes\n"
        "p1,Jordan Pickford,EVE,GK,1,3.5,90\n"
        "p1,Jordan Pickford,EVE,GK,2,4.0,90\n",
        encoding="utf-8",
    )

    players, projections, report = load_roster_csv(path)

    assert players[0].role == "GKP"
    assert players[0].team == "Everton"
    assert len(projections["p1"]) == 2
    assert report.periods == 2


def test_load_actuals_csv_keeps_blanks_as_missing(tmp_path: Path):
    path = tmp_path / "actuals.csv"
    path.write_text(
        "player_id,name,team,period,points\n"
        "p1,Player One,ARS,1,5\n"
        "p1,Player One,ARS,2,\n"
        "p2,Player Two,CHE,1,2.5\n",
        encoding="utf-8",
    )

    actuals = load_actuals_csv(path)

    assert actuals == {"p1": {1: 5.0, 2: None}, "p2": {1: 2.5}}


def test_load_actuals_csv_rejects_bad_rows(tmp_path: Path):
    duplicate = tmp_path / "duplicate.csv"
    duplicate.write_text("player_id,name,team,period,points\np1,A,ARS,1,5\np1,A,ARS,1,6\n", encoding="utf-8")
    malformed = tmp_path / "malformed.csv"
    malformed.write_text("player_id,name,team,period,points\np1,A,ARS,one,5\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Duplicate"):
        load_actuals_csv(duplicate)
    with pytest.raises(ValueError, match="period 'one' is not numeric"):
        load_actuals_csv(malformed)


def test_non_finite_cells_are_read_as_missing(tmp_path: Path):
    rows = [
        _row(player_id="p1", name="Player", team="FUL", position="D", period="1", points="NaN"),
        _row(player_id="p1", name="Player", team="FUL", position="D", period="2", points="3", minutes="nan"),
    ]
    path = tmp_path / "actuals.csv"
    path.write_text("player_id,name,team,period,points\np1,A,ARS,1,NaN\np1,A,ARS,2,inf\n", encoding="utf-8")

    _, projections, report = rows_to_roster(rows)

    assert [item.period for item in projections["p1"]] == [2]
    assert projections["p1"][0].minutes is None
    assert report.rows_without_points == 1
    assert load_actuals_csv(path) == {"p1": {1: None, 2: None}}


@pytest.mark.parametrize("period", ["3.5", "inf", "nan"])
def test_fractional_or_non_finite_period_raises(period):
    rows = [_row(player_id="p1", name="Player", team="FUL", position="D", period=period, points="3")]

    with pytest.raises(ValueError, match="period"):
        rows_to_roster(rows)


def test_whole_number_float_period_is_accepted():
    rows = [_row(player_id="p1", name="Player", team="FUL", position="D", period="4.0", points="3")]

    _, projections, _ = rows_to_roster(rows)

    assert projections["p1"][0].period == 4
