"""Command-line interface for projecting a roster and picking its best formation."""

from __future__ import annotations

import argparse
import csv
import json
import logging
from pathlib import Path
from typing import Optional, Sequence

from pyfantasy.config import DEFAULT_REFERENCE
from pyfantasy.config_loader import load_reference, save_reference
from pyfantasy.ingest import load_actuals_csv, load_projection_csv, rows_to_roster
from pyfantasy.models import Ownership
from pyfantasy.optimizer import optimize
from pyfantasy.scoring import (
    MLCorrectionModel,
    build_training_records,
    calibrate,
    project_roster,
    summarize_agreement,
    summarize_archetypes,
)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Convert source projections and pick the best lineup")
    parser.add_argument("projections", type=Path, help="Path to per-period projections CSV")
    parser.add_argument("--period", type=int, required=True, help="Target period (gameweek) index")
    parser.add_argument(
        "--projection-column",
        action="append",
        default=[],
        help="Mapping for projection CSV columns (e.g., points=xPts)",
    )
    parser.add_argument("--source-actuals", type=Path, default=None, help="Realized source-system points CSV")
    parser.add_argument("--target-actuals", type=Path, default=None, help="Realized target-system points CSV")
    parser.add_argument("--reference", type=Path, default=None, help="Reference data JSON profile")
    parser.add_argument("--save-reference", type=Path, default=None, help="Write the active reference data as JSON")
    parser.add_argument(
        "--starters",
        nargs="*",
        default=None,
        help="Player IDs in the current starting lineup",
    )
    parser.add_argument(
        "--owned-only",
        action="store_true",
        help="Only consider players owned by this team when optimizing",
    )
    parser.add_argument(
        "--remaining-periods",
        type=int,
        default=None,
        help="Periods left in the season (default derived from --period)",
    )
    parser.add_argument(
        "--parallel-jobs",
        type=int,
        default=None,
        help="Worker processes for per-player projection (default from PYFANTASY_PARALLEL_JOBS)",
    )
    parser.add_argument("--output", type=Path, default=Path("formations.csv"), help="Ranked formations CSV path")
    parser.add_argument("--players-output", type=Path, default=None, help="Optional per-player projections CSV")
    parser.add_argument("--report", type=Path, default=None, help="Optional path to write summary JSON")
    parser.add_argument("--log-level", default="INFO", help="Logging level (e.g., DEBUG, INFO)")
    return parser.parse_args(argv)


def _parse_mapping(entries: list[str]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for entry in entries:
        if "=" not in entry:
            raise ValueError(f"Invalid mapping entry '{entry}', expected key=value")
        key, value = entry.split("=", 1)
        mapping[key.strip()] = value.strip()
    return mapping


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    reference = load_reference(args.reference) if args.reference else DEFAULT_REFERENCE
    if args.save_reference:
        save_reference(reference, args.save_reference)
        print(f"Saved reference data to {args.save_reference}")

    projection_mapping = _parse_mapping(args.projection_column)
    rows = load_projection_csv(args.projections, mapping=projection_mapping or None)
    players, projections, load_report = rows_to_roster(rows)
    print(f"Loaded {load_report.players} players across {load_report.periods} periods")

    calibration = None
    model = None
    if args.source_actuals and args.target_actuals:
        source_actuals = load_actuals_csv(args.source_actuals)
        target_actuals = load_actuals_csv(args.target_actuals)
        calibration = calibrate(
            source_actuals,
            target_actuals,
            {player.player_id: player.role for player in players},
            reference=reference,
            completed_through=args.period - 1,
        )
        print(
            f"Calibration: {calibration.sample_count} samples, confidence={calibration.confidence.value}"
            + ("" if calibration.calibrated else f" (fallback: {calibration.fallback_reason})")
        )
        model = MLCorrectionModel().fit(
            build_training_records(
                players,
                projections,
                target_actuals,
                before_period=args.period,
                calibration=calibration,
                reference=reference,
            )
        )

    results = project_roster(
        players,
        projections,
        args.period,
        calibration=calibration,
        model=model,
        reference=reference,
        remaining_periods=args.remaining_periods,
        parallel_jobs=args.parallel_jobs,
    )
    points = {result.player_id: result.current_points for result in results}

    pool = players
    if args.owned_only:
        pool = [player for player in players if player.ownership is Ownership.MINE]
    report = optimize(pool, points, reference.templates, current_lineup=args.starters)

    with args.output.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["rank", "formation", "valid", "total_points", "reason", "player_ids", "player_names"])
        for rank, lineup in enumerate(report.ranked, start=1):
            writer.writerow([
                rank,
                lineup.formation,
                lineup.valid,
                lineup.total_points,
                lineup.reason or "",
                " ".join(player.player_id for player in lineup.players),
                "|".join(player.name for player in lineup.players),
            ])

    if args.players_output:
        by_id = {player.player_id: player for player in players}
        with args.players_output.open("w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow([
                "player_id",
                "name",
                "role",
                "team",
                "converted_points",
                "ensemble_points",
                "season_total",
                "confidence",
                "agreement",
                "start",
            ])
            for result in results:
                player = by_id[result.player_id]
                writer.writerow([
                    player.player_id,
                    player.name,
                    player.role,
                    player.team,
                    result.conversion.target_period_points,
                    result.current_points,
                    result.season_total,
                    result.confidence,
                    result.consensus.agreement.value,
                    result.conversion.start.recommendation,
                ])

    if report.recommendation is not None:
        print(f"Best formation {report.recommendation.formation}: {report.recommendation.total_points:.2f} pts")
    else:
        print("No valid formation for this roster")
    if report.current_points is not None:
        print(f"Current lineup {report.current_formation}: {report.current_points:.2f} pts")
        for swap in report.swaps:
            print(f"  {swap.describe()}")

    if args.report:
        agreement = summarize_agreement(result.consensus for result in results)
        archetypes = summarize_archetypes(players, reference)
        payload = {
            "period": args.period,
            "players": load_report.players,
            "periods": load_report.periods,
            "skipped_rows": load_report.skipped_rows,
            "unknown_roles": load_report.unknown_roles,
            "archetypes": {
                "with_archetype": archetypes.with_archetype,
                "by_source": {source.value: count for source, count in archetypes.by_source.items()},
            },
            "calibration": None if calibration is None else {
                "calibrated": calibration.calibrated,
                "confidence": calibration.confidence.value,
                "sample_count": calibration.sample_count,
                "role_ratios": dict(calibration.role_ratios),
                "fallback_reason": calibration.fallback_reason,
            },
            "agreement": {tier.value: count for tier, count in agreement.by_agreement.items()},
            "outliers": agreement.outliers,
            "best_formation": None if report.recommendation is None else report.recommendation.formation,
            "best_points": None if report.recommendation is None else report.recommendation.total_points,
            "current_formation": report.current_formation,
            "current_points": report.current_points,
            "improvement": report.improvement,
            "efficiency": report.efficiency,
            "already_optimal": report.already_optimal,
            "swaps": [swap.describe() for swap in report.swaps],
        }
        args.report.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"Wrote summary report to {args.report}")


if __name__ == "__main__":
    main()
