import pytest

from pyfantasy.config import DEFAULT_REFERENCE
from pyfantasy.models import PeriodProjection, ProjectionSource
from pyfantasy.scoring import (
    CalibrationConfidence,
    RatioTier,
    actuals_from_projections,
    calibrate,
)
from pyfantasy.scoring.calibration import trimmed_mean


def _paired(ratio: float, periods=range(1, 13), *, base: float = 2.0):
    source = {period: base + period for period in periods}
    target = {period: (base + period) * ratio for period in periods}
    return source, target


def test_round_trip_recovers_constant_ratio():
    source, target = _paired(1.2)

    result = calibrate({"p1": source}, {"p1": target}, {"p1": "MID"})

    assert result.calibrated is True
    assert result.sample_count == 12
    assert result.role_ratios["MID"] == pytest.approx(1.2, abs=1e-3)
    assert result.entity_ratios["p1"] == pytest.approx(1.2, abs=1e-3)
    assert result.confidence is CalibrationConfidence.LOW
    assert result.periods_analyzed == 12


def test_implausible_pairs_are_dropped():
    source, target = _paired(1.2)
    source[20] = 1.0
    target[20] = 10.0

    result = calibrate({"p1": source}, {"p1": target}, {"p1": "MID"})

    assert result.sample_count == 12
    assert result.role_ratios["MID"] == pytest.approx(1.2, abs=1e-3)
    assert result.entity_ratios["p1"] == pytest.approx(1.2, abs=1e-3)


def test_blank_and_non_positive_periods_are_not_observations():
    source, target = _paired(1.2)
    source.update({30: None, 31: 0.0, 32: 4.0})
    target.update({30: 5.0, 31: 3.0, 32: -1.0})

    result = calibrate({"p1": source}, {"p1": target}, {"p1": "MID"})

    assert result.sample_count == 12


def test_no_data_returns_static_fallback():
    result = calibrate({}, {}, {})

    assert result.calibrated is False
    assert result.confidence is CalibrationConfidence.NONE
    assert result.fallback_reason == "no_data"
    assert result.role_ratios == DEFAULT_REFERENCE.role_ratios
    lookup = result.ratio_for("DEF", "p1")
    assert lookup.tier is RatioTier.STATIC
    assert lookup.ratio == pytest.approx(1.15)
    assert result.ratio_for("COACH").tier is RatioTier.GENERIC


def test_too_few_samples_returns_static_fallback():
    source, target = _paired(1.2, periods=range(1, 6))

    result = calibrate({"p1": source}, {"p1": target}, {"p1": "MID"})

    assert result.calibrated is False
    assert result.fallback_reason == "insufficient_data"
    assert result.sample_count == 5
    assert result.entity_ratios == {}


def test_entity_ratio_blends_toward_role_ratio():
    high_source, high_target = _paired(2.0, periods=range(1, 7))
    low_source, low_target = _paired(1.0, periods=range(1, 7))
    sparse_source, sparse_target = _paired(1.6, periods=range(1, 3))

    result = calibrate(
        {"high": high_source, "low": low_source, "def": sparse_source},
        {"high": high_target, "low": low_target, "def": sparse_target},
        {"high": "MID", "low": "MID", "def": "DEF"},
    )

    # Twelve MID samples: one trimmed from each end leaves five of each ratio.
    assert result.role_ratios["MID"] == pytest.approx(1.5)
    # Six samples give weight 0.4 to the player's own mean.
    assert result.entity_ratios["high"] == pytest.approx(1.7)
    assert result.entity_ratios["low"] == pytest.approx(1.3)
    # Two DEF samples are not enough for a role or player ratio.
    assert result.role_ratios["DEF"] == pytest.approx(1.15)
    assert "def" not in result.entity_ratios
    assert result.role_sample_counts["DEF"] == 2
    assert result.ratio_for("DEF", "def").tier is RatioTier.ROLE
    assert result.ratio_for("MID", "high").tier is RatioTier.PLAYER


def test_unknown_roles_and_later_periods_are_ignored():
    source, target = _paired(1.2, periods=range(1, 16))
    coach_source, coach_target = _paired(3.0)

    result = calibrate(
        {"p1": source, "coach": coach_source},
        {"p1": target, "coach": coach_target},
        {"p1": "FWD", "coach": "COACH"},
        completed_through=11,
    )

    assert result.sample_count == 11
    assert result.role_ratios["FWD"] == pytest.approx(1.2, abs=1e-3)


def test_confidence_tiers_follow_sample_count():
    players = {f"p{i}": _paired(1.1) for i in range(5)}
    result = calibrate(
        {pid: pair[0] for pid, pair in players.items()},
        {pid: pair[1] for pid, pair in players.items()},
        {pid: "DEF" for pid in players},
    )

    assert result.sample_count == 60
    assert result.confidence is CalibrationConfidence.HIGH


def test_trimmed_mean_drops_tails():
    assert trimmed_mean(range(1, 11)) == pytest.approx(5.5)
    assert trimmed_mean([1.0, 100.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0, 9.0]) == pytest.approx(5.5)
    with pytest.raises(ValueError):
        trimmed_mean([])


def test_actuals_from_projections_keeps_results_only():
    projections = {
        "p1": [
            PeriodProjection(period=1, points=6.0, source=ProjectionSource.RESULT),
            PeriodProjection(period=2, points=4.0),
        ],
        "p2": [PeriodProjection(period=1, points=3.0)],
    }

    assert actuals_from_projections(projections) == {"p1": {1: 6.0}}


def test_non_finite_pairs_are_not_observations():
    source, target = _paired(1.2)
    source.update({20: float("nan"), 21: 4.0, 22: float("inf")})
    target.update({20: 5.0, 21: float("nan"), 22: 6.0})

    result = calibrate({"p1": source}, {"p1": target}, {"p1": "MID"})

    assert result.sample_count == 12
    assert result.role_ratios["MID"] == pytest.approx(1.2, abs=1e-3)
    assert result.entity_ratios["p1"] == pytest.approx(1.2, abs=1e-3)


@pytest.mark.parametrize(
    ("samples", "expected"),
    [
        (19, CalibrationConfidence.LOW),
        (20, CalibrationConfidence.MEDIUM),
        (49, CalibrationConfidence.MEDIUM),
        (50, CalibrationConfidence.HIGH),
    ],
)
def test_confidence_tier_boundaries(samples, expected):
    source, target = _paired(1.1, periods=range(1, samples + 1))

    result = calibrate({"p1": source}, {"p1": target}, {"p1": "DEF"})

    assert result.sample_count == samples
    assert result.confidence is expected
