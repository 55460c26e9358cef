import pytest

from pyfantasy.errors import MissingRequiredInput
from pyfantasy.models import PeriodProjection, PlayerRecord
from pyfantasy.scoring import (
    MLCorrectionModel,
    TrainingRecord,
    build_training_records,
    project_player,
    project_roster,
)


def _series(points, *, minutes: float | None = 90.0):
    return [
        PeriodProjection(period=period, points=value, minutes=minutes, opponent="ful", difficulty=3)
        for period, value in enumerate(points, start=1)
    ]


def _roster():
    players = [
        PlayerRecord(player_id="gk", name="Jordan Pickford", team="Everton", role="GKP"),
        PlayerRecord(player_id="df", name="Virgil van Dijk", team="Liverpool", role="DEF"),
        PlayerRecord(player_id="md", name="Bukayo Saka", team="Arsenal", role="MID", injury_status="Injured"),
        PlayerRecord(player_id="fw", name="Chris Wood", team="Nott'm Forest", role="FWD"),
    ]
    projections = {
        "gk": _series([3.5] * 12),
        "df": _series([4.0, 5.0, 3.0, 6.0, 4.5, 5.5, 4.0, 5.0, 3.5, 4.0, 6.0, 5.0]),
        "md": _series([6.0, 7.5, 5.0, 8.0, 6.5, 7.0, 9.0, 6.0, 5.5, 7.0, 6.0, 8.0], minutes=70.0),
        "fw": _series([5.0, 2.0, 6.0, 4.0, 3.0, 7.0, 4.5, 5.0, 2.5, 6.0, 4.0, 5.0]),
    }
    return players, projections


def test_project_player_blends_three_estimates():
    players, projections = _roster()

    result = project_player(players[1], projections["df"], 6)

    expected = (
        0.40 * result.statistical.points
        + 0.40 * result.ml_points
        + 0.20 * result.consensus.points
    )
    assert result.current_points == pytest.approx(expected, abs=0.005)
    assert result.season_average == result.current_points
    assert result.remaining_periods == 32
    assert result.season_total == pytest.approx(result.current_points * 32, abs=0.2)
    assert 0 <= result.confidence <= 100


def test_untrained_model_leaves_calibrated_points_unchanged():
    players, projections = _roster()

    result = project_player(players[3], projections["fw"], 6)

    assert result.ml.multiplier == 1.0
    assert result.ml_points == pytest.approx(result.conversion.target_period_points)
    assert result.consensus.breakdown.baseline == pytest.approx(7.0)


def test_confidence_is_weighted_blend():
    players, projections = _roster()

    result = project_player(players[0], projections["gk"], 6, remaining_periods=4)

    expected = 0.4 * result.statistical.confidence + 0.4 * result.ml.confidence + 0.2 * result.consensus.confidence
    assert result.confidence == round(expected)
    assert result.season_total == pytest.approx(result.current_points * 4, abs=0.05)


def test_project_player_requires_target_period():
    players, projections = _roster()

    with pytest.raises(MissingRequiredInput):
        project_player(players[0], projections["gk"], None)


def test_project_roster_keeps_roster_order_and_handles_missing_series():
    players, projections = _roster()
    projections.pop("fw")

    results = project_roster(players, projections, 6, parallel_jobs=1)

    assert [result.player_id for result in results] == ["gk", "df", "md", "fw"]
    assert results[3].current_points == 0.0


def test_parallel_projection_matches_serial():
    players, projections = _roster()
    model = MLCorrectionModel().fit([TrainingRecord("MID", 5.0, 6.0), TrainingRecord("DEF", 4.0, 4.4)])

    serial = project_roster(players, projections, 6, model=model, parallel_jobs=1)
    parallel = project_roster(players, projections, 6, model=model, parallel_jobs=2)

    assert parallel == serial


def test_parallel_jobs_default_from_environment(monkeypatch):
    players, projections = _roster()
    monkeypatch.setenv("PYFANTASY_PARALLEL_JOBS", "not-a-number")

    results = project_roster(players[:1], projections, 6)

    assert len(results) == 1


def test_build_training_records_uses_completed_periods_only():
    players, projections = _roster()
    target_actuals = {"df": {1: 5.0, 2: None, 7: 8.0}}

    records = build_training_records(players, projections, target_actuals, before_period=6)

    assert [record.target_actual for record in records] == [5.0, None]
    # Virgil van Dijk maps to the ball-playing centre-back archetype.
    assert records[0].calibrated_points == pytest.approx(4.0 * 1.10)
    assert all(record.role == "DEF" for record in records)
