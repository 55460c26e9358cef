"""Formation-template lineup selection and current-lineup analysis."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from collections import Counter, defaultdict
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from pyfantasy.config import DEFAULT_REFERENCE, FormationTemplate, formation_label
from pyfantasy.errors import MissingRequiredInput
from pyfantasy.models import PlayerRecord


logger = logging.getLogger(__name__)

_SWAP_THRESHOLD_ENV = "PYFANTASY_SWAP_THRESHOLD"
_SWAP_THRESHOLD_DEFAULT = 0.5
_MAX_SWAPS_DEFAULT = 5


def _env_float(name: str, default: float, *, clamp_min: float | None = None, clamp_max: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid float for %s: %s; using default %.2f", name, raw, default)
        return default
    if clamp_min is not None:
        value = max(clamp_min, value)
    if clamp_max is not None:
        value = min(clamp_max, value)
    return value


def _swap_threshold() -> float:
    return _env_float(_SWAP_THRESHOLD_ENV, _SWAP_THRESHOLD_DEFAULT, clamp_min=0.0)


@dataclass(frozen=True)
class LineupPlayer:
    player_id: str
    name: str
    team: str
    role: str
    points: float


@dataclass(frozen=True)
class Shortfall:
    role: str
    required: int
    available: int

    def describe(self) -> str:
        return f"{self.role}: need {self.required}, have {self.available}"


@dataclass(frozen=True)
class LineupResult:
    formation: str
    valid: bool
    players: Tuple[LineupPlayer, ...]
    total_points: float
    reason: Optional[str] = None
    shortfalls: Tuple[Shortfall, ...] = ()

    @property
    def player_ids(self) -> Tuple[str, ...]:
        return tuple(player.player_id for player in self.players)


@dataclass(frozen=True)
class SwapRecommendation:
    role: str
    bench: LineupPlayer
    starter: LineupPlayer
    gain: float

    def describe(self) -> str:
        return f"Start {self.bench.name} over {self.starter.name} (+{self.gain:.2f})"


@dataclass(frozen=True)
class OptimizationReport:
    ranked: Tuple[LineupResult, ...]
    recommendation: Optional[LineupResult]
    current_formation: Optional[str] = None
    current_points: Optional[float] = None
    formation_differs: bool = False
    swaps: Tuple[SwapRecommendation, ...] = ()
    improvement: Optional[float] = None
    efficiency: Optional[float] = None
    already_optimal: bool = False

    @property
    def valid_lineups(self) -> Tuple[LineupResult, ...]:
        return tuple(result for result in self.ranked if result.valid)


def _to_lineup_players(
    roster: Sequence[PlayerRecord],
    points: Mapping[str, float],
) -> List[LineupPlayer]:
    players: List[LineupPlayer] = []
    for record in roster:
        value = points.get(record.player_id)
        if value is None:
            raise MissingRequiredInput(f"No projected points for {record.name} ({record.player_id})")
        players.append(
            LineupPlayer(
                player_id=record.player_id,
                name=record.name,
                team=record.team,
                role=record.role,
                points=float(value),
            )
        )
    return players


def _group_by_role(players: Sequence[LineupPlayer]) -> Dict[str, List[LineupPlayer]]:
    # sorted() is stable, so ties keep roster order.
    groups: Dict[str, List[LineupPlayer]] = defaultdict(list)
    for player in players:
        groups[player.role].append(player)
    return {role: sorted(members, key=lambda item: item.points, reverse=True) for role, members in groups.items()}


def evaluate_template(template: FormationTemplate, groups: Mapping[str, Sequence[LineupPlayer]]) -> LineupResult:
    """Fill one template with the top-N players per role, or report the shortfall."""

    shortfalls = tuple(
        Shortfall(role, required, len(groups.get(role, ())))
        for role, required in template.requirements.items()
        if len(groups.get(role, ())) < required
    )
    if shortfalls:
        return LineupResult(
            formation=template.name,
            valid=False,
            players=(),
            total_points=0.0,
            reason="; ".join(shortfall.describe() for shortfall in shortfalls),
            shortfalls=shortfalls,
        )

    selected: List[LineupPlayer] = []
    for role, required in template.requirements.items():
        selected.extend(groups.get(role, ())[:required])
    return LineupResult(
        formation=template.name,
        valid=True,
        players=tuple(selected),
        total_points=round(sum(player.points for player in selected), 2),
    )


def rank_lineups(results: Sequence[LineupResult]) -> Tuple[LineupResult, ...]:
    """Valid lineups by total descending (ties in template order), then invalid ones."""

    indexed = list(enumerate(results))
    indexed.sort(key=lambda item: (not item[1].valid, -item[1].total_points, item[0]))
    return tuple(result for _, result in indexed)


def _swap_recommendations(
    starters: Sequence[LineupPlayer],
    bench: Sequence[LineupPlayer],
    threshold: float,
) -> List[SwapRecommendation]:
    swaps: List[SwapRecommendation] = []
    for bench_player in bench:
        for starter in starters:
            if bench_player.role != starter.role:
                continue
            gain = bench_player.points - starter.points
            if gain > threshold:
                swaps.append(SwapRecommendation(starter.role, bench_player, starter, round(gain, 2)))
    swaps.sort(key=lambda swap: swap.gain, reverse=True)
    return swaps


def optimize(
    roster: Sequence[PlayerRecord],
    points: Mapping[str, float],
    templates: Sequence[FormationTemplate] = DEFAULT_REFERENCE.templates,
    current_lineup: Optional[Iterable[str]] = None,
    *,
    swap_threshold: float | None = None,
    max_swaps: int | None = _MAX_SWAPS_DEFAULT,
) -> OptimizationReport:
    """Evaluate every template against the roster and rank the results.

    ``points`` maps player id to projected points for the period; every roster
    player needs an entry. With ``current_lineup`` (starter ids), the report
    also carries swap advice and the gap to the best lineup.
    """

    players = _to_lineup_players(roster, points)
    groups = _group_by_role(players)
    ranked = rank_lineups([evaluate_template(template, groups) for template in templates])
    best = ranked[0] if ranked and ranked[0].valid else None
    if best is None:
        logger.warning("No valid formation for a roster of %s players", len(players))
    else:
        logger.info("Best formation %s with %.2f points", best.formation, best.total_points)

    if current_lineup is None:
        return OptimizationReport(ranked=ranked, recommendation=best)

    by_id = {player.player_id: player for player in players}
    current_ids = list(dict.fromkeys(current_lineup))
    unknown = [player_id for player_id in current_ids if player_id not in by_id]
    if unknown:
        raise MissingRequiredInput(f"Current lineup ids not in roster: {', '.join(unknown)}")

    starters = [by_id[player_id] for player_id in current_ids]
    starting = set(current_ids)
    bench = [player for player in players if player.player_id not in starting]
    current_points = round(sum(player.points for player in starters), 2)
    current_formation = formation_label(Counter(player.role for player in starters))

    threshold = swap_threshold if swap_threshold is not None else _swap_threshold()
    swaps = _swap_recommendations(starters, bench, threshold)
    if max_swaps is not None:
        swaps = swaps[:max_swaps]

    improvement = None
    efficiency = None
    formation_differs = False
    if best is not None:
        improvement = round(best.total_points - current_points, 2)
        if best.total_points > 0:
            efficiency = round(current_points / best.total_points, 4)
        else:
            efficiency = 1.0 if current_points >= best.total_points else 0.0
        formation_differs = current_formation != formation_label(Counter(player.role for player in best.players))

    already_optimal = best is not None and not swaps and improvement <= 0
    return OptimizationReport(
        ranked=ranked,
        recommendation=best,
        current_formation=current_formation,
        current_points=current_points,
        formation_differs=formation_differs,
        swaps=tuple(swaps),
        improvement=improvement,
        efficiency=efficiency,
        already_optimal=already_optimal,
    )
