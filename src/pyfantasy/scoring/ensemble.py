"""Blend the statistical, ML-corrected and consensus estimates into one projection."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import multiprocessing as mp
import os
import time
from typing import Iterable, List, Mapping, Optional, Sequence

from pyfantasy.config import DEFAULT_REFERENCE, ReferenceData
from pyfantasy.models import PeriodProjection, PlayerRecord, normalize_projections

from .archetypes import classify_archetype
from .calibration import CalibrationResult
from .consensus import ConsensusResult, reconcile
from .converter import ConversionResult, convert
from .ml_model import MLCorrection, MLCorrectionModel, TrainingRecord, features_for
from .statistical import StatisticalEstimate, context_from_projections, statistical_estimate


logger = logging.getLogger(__name__)

STATISTICAL_WEIGHT = 0.40
ML_WEIGHT = 0.40
CONSENSUS_WEIGHT = 0.20
MISSING_CONFIDENCE = 70
SEASON_PERIODS = 38

_PARALLEL_JOBS_ENV = "PYFANTASY_PARALLEL_JOBS"


def _env_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; using default %d", name, raw, default)
        return default
    if min_value is not None:
        value = max(min_value, value)
    return value


def default_parallel_jobs() -> int:
    return _env_int(_PARALLEL_JOBS_ENV, 1, min_value=1)


@dataclass(frozen=True)
class EnsembleProjection:
    player_id: str
    target_period: int
    current_points: float
    season_total: float
    season_average: float
    confidence: int
    remaining_periods: int
    conversion: ConversionResult
    statistical: StatisticalEstimate
    ml: MLCorrection
    ml_points: float
    consensus: ConsensusResult


def _confidence_or_default(value: Optional[int]) -> int:
    return MISSING_CONFIDENCE if value is None else value


def project_player(
    player: PlayerRecord,
    projections: Iterable[PeriodProjection],
    target_period: int | None,
    *,
    calibration: CalibrationResult | None = None,
    model: MLCorrectionModel | None = None,
    reference: ReferenceData = DEFAULT_REFERENCE,
    remaining_periods: int | None = None,
) -> EnsembleProjection:
    """Project one player for ``target_period`` using all three estimators.

    The calibrated conversion feeds the ML estimate; the raw source points for
    the period are the consensus baseline. Season total assumes the blended
    per-period figure holds for every remaining period.
    """

    series = normalize_projections(projections)
    conversion = convert(player, series, target_period, calibration, reference=reference)
    period = conversion.target_period
    baseline = conversion.source_target_points
    calibrated_points = conversion.target_period_points

    current = next((item for item in series if item.period == period), None)
    statistical = statistical_estimate(
        player,
        baseline,
        minutes=current.minutes if current is not None else None,
        context=context_from_projections(series, period),
    )
    ml = (model or MLCorrectionModel()).predict(features_for(player, series, period))
    ml_points = calibrated_points * ml.multiplier
    consensus = reconcile(statistical, ml, calibrated_points, baseline)

    blended = (
        statistical.points * STATISTICAL_WEIGHT
        + ml_points * ML_WEIGHT
        + consensus.points * CONSENSUS_WEIGHT
    )
    confidence = (
        _confidence_or_default(statistical.confidence) * STATISTICAL_WEIGHT
        + _confidence_or_default(ml.confidence) * ML_WEIGHT
        + _confidence_or_default(consensus.confidence) * CONSENSUS_WEIGHT
    )
    remaining = remaining_periods if remaining_periods is not None else max(0, SEASON_PERIODS - period)
    current_points = max(0.0, blended)
    return EnsembleProjection(
        player_id=player.player_id,
        target_period=period,
        current_points=round(current_points, 2),
        season_total=round(current_points * remaining, 2),
        season_average=round(current_points, 2),
        confidence=round(max(0.0, min(100.0, confidence))),
        remaining_periods=remaining,
        conversion=conversion,
        statistical=statistical,
        ml=ml,
        ml_points=ml_points,
        consensus=consensus,
    )


def build_training_records(
    players: Sequence[PlayerRecord],
    projections: Mapping[str, Iterable[PeriodProjection]],
    target_actuals: Mapping[str, Mapping[int, Optional[float]]],
    *,
    before_period: int,
    calibration: CalibrationResult | None = None,
    reference: ReferenceData = DEFAULT_REFERENCE,
) -> List[TrainingRecord]:
    """Pair calibrated source points with realized target points for completed periods."""

    records: List[TrainingRecord] = []
    for player in players:
        actuals = target_actuals.get(player.player_id)
        if not actuals:
            continue
        if calibration is not None:
            ratio = calibration.ratio_for(player.role, player.player_id).ratio
        else:
            ratio = classify_archetype(player, reference).ratio
        for item in projections.get(player.player_id, ()):
            if item.period >= before_period or item.period not in actuals:
                continue
            records.append(TrainingRecord(player.role, item.points * ratio, actuals[item.period]))
    return records


class ProjectionJobConfig:
    def __init__(self, job_id: int, players: list[PlayerRecord],
                 projections: dict[str, tuple[PeriodProjection, ...]], target_period: int | None,
                 calibration: CalibrationResult | None, model: MLCorrectionModel | None,
                 reference: ReferenceData, remaining_periods: int | None):
        self.job_id = job_id
        self.players = players
        self.projections = projections
        self.target_period = target_period
        self.calibration = calibration
        self.model = model
        self.reference = reference
        self.remaining_periods = remaining_periods


class ProjectionJobResult:
    def __init__(self, job_id: int, projections: list[EnsembleProjection]):
        self.job_id = job_id
        self.projections = projections


def _project_serial(
    players: Sequence[PlayerRecord],
    projections: Mapping[str, Iterable[PeriodProjection]],
    target_period: int | None,
    *,
    calibration: CalibrationResult | None,
    model: MLCorrectionModel | None,
    reference: ReferenceData,
    remaining_periods: int | None,
) -> list[EnsembleProjection]:
    return [
        project_player(
            player,
            projections.get(player.player_id, ()),
            target_period,
            calibration=calibration,
            model=model,
            reference=reference,
            remaining_periods=remaining_periods,
        )
        for player in players
    ]


def _run_projection_job(config: ProjectionJobConfig) -> ProjectionJobResult:
    results = _project_serial(
        config.players,
        config.projections,
        config.target_period,
        calibration=config.calibration,
        model=config.model,
        reference=config.reference,
        remaining_periods=config.remaining_periods,
    )
    return ProjectionJobResult(config.job_id, results)


def _projection_worker(config: ProjectionJobConfig, queue: mp.Queue) -> None:
    try:
        queue.put(_run_projection_job(config))
    except Exception as exc:  # pragma: no cover - worker errors bubble to parent
        queue.put(exc)


def project_roster(
    players: Sequence[PlayerRecord],
    projections: Mapping[str, Iterable[PeriodProjection]],
    target_period: int | None,
    *,
    calibration: CalibrationResult | None = None,
    model: MLCorrectionModel | None = None,
    reference: ReferenceData = DEFAULT_REFERENCE,
    remaining_periods: int | None = None,
    parallel_jobs: int | None = None,
) -> List[EnsembleProjection]:
    """Project every player, optionally spreading the work across processes.

    Results are returned in roster order whatever the worker count.
    """

    players = list(players)
    workers = max(1, parallel_jobs if parallel_jobs is not None else default_parallel_jobs())
    workers = min(workers, len(players)) if players else 1
    run_start = time.perf_counter()

    if workers <= 1:
        results = _project_serial(
            players,
            projections,
            target_period,
            calibration=calibration,
            model=model,
            reference=reference,
            remaining_periods=remaining_periods,
        )
        logger.info("Projected %s players in %.2fs", len(results), time.perf_counter() - run_start)
        return results

    chunk = -(-len(players) // workers)
    ctx = mp.get_context("spawn")
    queue: mp.Queue = ctx.Queue()
    processes: dict[int, mp.Process] = {}
    outcomes: dict[int, list[EnsembleProjection]] = {}

    try:
        for job_id, start in enumerate(range(0, len(players), chunk)):
            batch = players[start : start + chunk]
            config = ProjectionJobConfig(
                job_id,
                batch,
                {player.player_id: tuple(projections.get(player.player_id, ())) for player in batch},
                target_period,
                calibration,
                model,
                reference,
                remaining_periods,
            )
            proc = ctx.Process(target=_projection_worker, args=(config, queue))
            proc.start()
            processes[job_id] = proc
            logger.debug("Dispatched projection batch %s with %s players", job_id, len(batch))

        while processes:
            outcome = queue.get()
            if isinstance(outcome, Exception):
                raise outcome
            proc = processes.pop(outcome.job_id, None)
            if proc is not None:
                proc.join()
            outcomes[outcome.job_id] = outcome.projections
    finally:
        for proc in processes.values():
            if proc.is_alive():
                proc.terminate()
            proc.join()

    results = [item for job_id in sorted(outcomes) for item in outcomes[job_id]]
    logger.info(
        "Projected %s players across %s workers in %.2fs",
        len(results),
        len(outcomes),
        time.perf_counter() - run_start,
    )
    return results
