import pytest

from pyfantasy.scoring import (
    Agreement,
    MLCorrection,
    StatisticalEstimate,
    reconcile,
    summarize_agreement,
)


def _stat(points: float, confidence: int = 80) -> StatisticalEstimate:
    return StatisticalEstimate(
        points=points,
        confidence=confidence,
        base_points=points,
        role_multiplier=1.0,
        minutes_multiplier=1.0,
        form_multiplier=1.0,
        fixture_multiplier=1.0,
    )


def _ml(multiplier: float = 1.0, confidence: int = 90) -> MLCorrection:
    return MLCorrection(multiplier=multiplier, confidence=confidence)


def test_strong_agreement_uses_average_and_boosts_confidence():
    result = reconcile(_stat(10.0), _ml(), calibrated_points=10.0, baseline=8.0)

    assert result.agreement is Agreement.STRONG
    assert result.points == pytest.approx(10.0)
    assert result.confidence == 95
    assert result.breakdown.is_outlier is False


def test_moderate_agreement_uses_average():
    result = reconcile(_stat(10.0), _ml(), calibrated_points=8.5, baseline=8.0)

    assert result.agreement is Agreement.MODERATE
    assert result.points == pytest.approx(9.25)
    assert result.confidence == 85


def test_weak_agreement_leans_on_baseline():
    result = reconcile(_stat(10.0), _ml(), calibrated_points=7.5, baseline=5.0)

    assert result.agreement is Agreement.WEAK
    assert result.points == pytest.approx(0.7 * 8.75 + 0.3 * 5.0)
    assert result.confidence == 75


def test_disagreement_lands_between_average_and_baseline():
    result = reconcile(_stat(10.0), _ml(confidence=70), calibrated_points=5.0, baseline=4.0)

    average = (10.0 + 5.0) / 2
    assert result.agreement is Agreement.DISAGREEMENT
    assert result.breakdown.agreement_ratio > 0.30
    assert 4.0 < result.points < average
    assert result.points == pytest.approx(5.75)
    assert result.confidence == 50


def test_ml_multiplier_scales_calibrated_points():
    result = reconcile(_stat(12.0), _ml(multiplier=1.2), calibrated_points=10.0, baseline=9.0)

    assert result.breakdown.ml_points == pytest.approx(12.0)
    assert result.agreement is Agreement.STRONG


def test_outlier_is_capped_and_penalized():
    result = reconcile(_stat(12.0), _ml(), calibrated_points=12.0, baseline=3.0)

    assert result.breakdown.is_outlier is True
    assert result.points == pytest.approx(7.5)
    assert result.confidence == 80
    assert result.breakdown.confidence_adjustment == 0


def test_zero_estimates_are_strong_and_non_negative():
    result = reconcile(_stat(0.0), _ml(), calibrated_points=0.0, baseline=0.0)

    assert result.agreement is Agreement.STRONG
    assert result.points == 0.0


def test_confidence_is_clamped():
    result = reconcile(_stat(10.0, confidence=10), _ml(confidence=5), calibrated_points=2.0, baseline=1.0)

    assert result.confidence == 0


def test_summarize_agreement_counts_tiers_and_outliers():
    results = [
        reconcile(_stat(10.0), _ml(), calibrated_points=10.0, baseline=8.0),
        reconcile(_stat(12.0), _ml(), calibrated_points=12.0, baseline=3.0),
        reconcile(_stat(10.0), _ml(), calibrated_points=5.0, baseline=4.0),
    ]

    summary = summarize_agreement(results)

    assert summary.total == 3
    assert summary.by_agreement[Agreement.STRONG] == 2
    assert summary.by_agreement[Agreement.DISAGREEMENT] == 1
    assert summary.by_agreement[Agreement.WEAK] == 0
    assert summary.outliers == 1
    assert summary.share(Agreement.STRONG) == pytest.approx(2 / 3)


def test_agreement_ratio_is_exposed_on_result():
    result = reconcile(_stat(10.0), _ml(), calibrated_points=5.0, baseline=4.0)

    assert result.agreement_ratio == pytest.approx(5.0 / 7.5)
    assert result.agreement_ratio == result.breakdown.agreement_ratio
