"""Helpers to load projection CSVs and emit canonical records."""

from __future__ import annotations

import csv
import logging
import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, ValidationError

from pyfantasy.config import ROLES
from pyfantasy.models import (
    Ownership,
    PeriodProjection,
    PlayerRecord,
    ProjectionSource,
    normalize_projections,
    normalize_role,
)


logger = logging.getLogger(__name__)

TEAM_ALIAS_GROUPS: dict[str, list[str]] = {
    "Arsenal": ["ARS", "ARSENAL", "ARSENAL FC"],
    "Aston Villa": ["AVL", "ASTON VILLA", "VILLA"],
    "Bournemouth": ["BOU", "BOURNEMOUTH", "AFC BOURNEMOUTH"],
    "Brentford": ["BRE", "BRENTFORD"],
    "Brighton": ["BHA", "BRI", "BRIGHTON", "BRIGHTON AND HOVE ALBION", "BRIGHTON & HOVE ALBION"],
    "Chelsea": ["CHE", "CHELSEA", "CHELSEA FC"],
    "Crystal Palace": ["CRY", "CRYSTAL PALACE", "PALACE"],
    "Everton": ["EVE", "EVERTON"],
    "Fulham": ["FUL", "FULHAM"],
    "Ipswich": ["IPS", "IPSWICH", "IPSWICH TOWN"],
    "Leicester": ["LEI", "LEICESTER", "LEICESTER CITY"],
    "Liverpool": ["LIV", "LIVERPOOL", "LIVERPOOL FC"],
    "Man City": ["MCI", "MAN CITY", "MANCHESTER CITY", "MAN CITY FC"],
    "Man Utd": ["MUN", "MAN UTD", "MAN UNITED", "MANCHESTER UNITED"],
    "Newcastle": ["NEW", "NEWCASTLE", "NEWCASTLE UNITED", "NEWCASTLE UTD"],
    "Nott'm Forest": ["NFO", "NOT", "NOTTM FOREST", "NOTTINGHAM FOREST", "FOREST"],
    "Southampton": ["SOU", "SOUTHAMPTON"],
    "Tottenham": ["TOT", "TOTTENHAM", "TOTTENHAM HOTSPUR", "SPURS"],
    "West Ham": ["WHU", "WEST HAM", "WEST HAM UNITED"],
    "Wolves": ["WOL", "WOLVES", "WOLVERHAMPTON", "WOLVERHAMPTON WANDERERS"],
}


def _team_token(value: str) -> str:
    return re.sub(r"[^A-Z0-9]", "", value.upper())


def _build_alias_lookup() -> dict[str, str]:
    lookup: dict[str, str] = {}
    for canonical, variants in TEAM_ALIAS_GROUPS.items():
        for variant in (canonical, *variants):
            key = _team_token(variant)
            if key:
                lookup.setdefault(key, canonical)
    return lookup


TEAM_ALIAS_LOOKUP = _build_alias_lookup()


class ProjectionRow(BaseModel):
    raw_id: Optional[str] = None
    raw_name: str
    raw_team: str
    raw_position: Optional[str] = None
    raw_period: str
    raw_points: str
    raw_minutes: Optional[str] = None
    raw_opponent: Optional[str] = None
    raw_difficulty: Optional[str] = None
    raw_is_home: Optional[str] = None
    raw_ownership: Optional[str] = None
    raw_injury_status: Optional[str] = None
    raw_news: Optional[str] = None
    raw_source: Optional[str] = None

    @classmethod
    def from_mapping(cls, row: Mapping[str, str], mapping: Mapping[str, str]) -> "ProjectionRow":
        def extract(spec: Optional[str | Sequence[str]], *, default: Optional[str] = None) -> Optional[str]:
            if spec is None:
                return default
            if isinstance(spec, str):
                value = row.get(spec)
                return value.strip() if value is not None else default
            parts = [row.get(col, "").strip() for col in spec if row.get(col)]
            return " ".join(parts) if parts else default

        def parse_spec(key: str, default_key: Optional[str] = None) -> Optional[str | Sequence[str]]:
            spec = mapping.get(key)
            if spec is None and default_key:
                spec = default_key
            if spec is None:
                return None
            if isinstance(spec, str) and "|" in spec:
                return tuple(part.strip() for part in spec.split("|"))
            return spec

        data = {
            "raw_id": extract(parse_spec("player_id")),
            "raw_name": extract(parse_spec("name", "name"), default=""),
            "raw_team": extract(parse_spec("team", "team"), default=""),
            "raw_position": extract(parse_spec("position")),
            "raw_period": extract(parse_spec("period", "period"), default=""),
            "raw_points": extract(parse_spec("points", "points"), default=""),
            "raw_minutes": extract(parse_spec("minutes")),
            "raw_opponent": extract(parse_spec("opponent")),
            "raw_difficulty": extract(parse_spec("difficulty")),
            "raw_is_home": extract(parse_spec("is_home")),
            "raw_ownership": extract(parse_spec("ownership")),
            "raw_injury_status": extract(parse_spec("injury_status")),
            "raw_news": extract(parse_spec("news")),
            "raw_source": extract(parse_spec("source")),
        }
        return cls(**data)


DEFAULT_PROJECTION_MAPPING = {
    "player_id": "player_id",
    "name": "name",
    "team": "team",
    "position": "position",
    "period": "period",
    "points": "points",
    "minutes": "minutes",
    "opponent": "opponent",
    "difficulty": "difficulty",
    "is_home": "is_home",
    "ownership": "ownership",
    "injury_status": "injury_status",
    "news": "news",
    "source": "source",
}

DEFAULT_ACTUALS_MAPPING = {
    "player_id": "player_id",
    "name": "name",
    "team": "team",
    "period": "period",
    "points": "points",
}

_OWNERSHIP_ALIASES = {
    "": Ownership.UNOWNED,
    "unowned": Ownership.UNOWNED,
    "free": Ownership.UNOWNED,
    "fa": Ownership.UNOWNED,
    "owned_by_self": Ownership.MINE,
    "mine": Ownership.MINE,
    "self": Ownership.MINE,
    "me": Ownership.MINE,
    "owned_by_other": Ownership.OTHER,
    "other": Ownership.OTHER,
    "taken": Ownership.OTHER,
}


def canonical_team(team: str) -> str:
    token = _team_token(team)
    if not token:
        return team.strip()
    return TEAM_ALIAS_LOOKUP.get(token, team.strip())


def load_projection_csv(path: Path, *, mapping: Mapping[str, str] | None = None) -> List[ProjectionRow]:
    mapping = mapping or DEFAULT_PROJECTION_MAPPING
    with path.open(newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        rows = [ProjectionRow.from_mapping(row, mapping) for row in reader]
    return rows


def _parse_period(raw_period: str) -> int:
    text = raw_period.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        value = float(text)
    except ValueError:
        raise ValueError(f"period '{raw_period}' is not numeric") from None
    if not value.is_integer():
        raise ValueError(f"period '{raw_period}' is not a whole number")
    return int(value)


def _parse_points(raw_points: Optional[str]) -> Optional[float]:
    """Blank and non-finite cells (``NaN``, ``inf``) are missing data (``None``), never a zero score."""

    return _parse_optional_float(raw_points, "points")


def _parse_optional_float(raw: Optional[str], label: str) -> Optional[float]:
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw.strip())
    except ValueError:
        raise ValueError(f"{label} '{raw}' is not numeric") from None
    if not math.isfinite(value):
        logger.warning("Treating non-finite %s '%s' as missing", label, raw)
        return None
    return value


def _parse_difficulty(raw: Optional[str]) -> Optional[int]:
    value = _parse_optional_float(raw, "difficulty")
    return int(value) if value is not None else None


def _parse_flag(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    text = value.strip().lower()
    if not text:
        return None
    if text in {"1", "true", "t", "yes", "y", "h", "home"}:
        return True
    if text in {"0", "false", "f", "no", "n", "a", "away"}:
        return False
    return None


def _parse_ownership(raw: Optional[str]) -> Ownership:
    key = (raw or "").strip().lower()
    if key in _OWNERSHIP_ALIASES:
        return _OWNERSHIP_ALIASES[key]
    logger.warning("Unknown ownership value '%s'; treating as unowned", raw)
    return Ownership.UNOWNED


def _parse_source(raw: Optional[str]) -> ProjectionSource:
    key = (raw or "").strip().lower()
    if key in {"result", "actual", "realized"}:
        return ProjectionSource.RESULT
    return ProjectionSource.PROJECTION


@dataclass(frozen=True)
class LoadReport:
    total_rows: int
    players: int
    periods: int
    skipped_rows: List[str] = field(default_factory=list)
    unknown_roles: List[str] = field(default_factory=list)
    rows_without_points: int = 0


def _player_from_row(row: ProjectionRow) -> PlayerRecord:
    metadata: dict[str, object] = {}
    if row.raw_position is not None:
        metadata["raw_position"] = row.raw_position
    return PlayerRecord(
        player_id=row.raw_id or row.raw_name,
        name=row.raw_name,
        team=canonical_team(row.raw_team) if row.raw_team else "",
        role=row.raw_position or "",
        ownership=_parse_ownership(row.raw_ownership),
        injury_status=row.raw_injury_status or None,
        news=row.raw_news or None,
        metadata=metadata,
    )


def rows_to_roster(
    rows: Sequence[ProjectionRow],
) -> Tuple[List[PlayerRecord], Dict[str, Tuple[PeriodProjection, ...]], LoadReport]:
    """Group long-format rows into players plus their period projections.

    Player attributes come from the first row for each id; later rows may fill
    in injury status or news. A repeated ``(player, period)`` pair raises
    ``ValueError``. Rows with blank points are skipped (not read as zero).
    """

    players: Dict[str, PlayerRecord] = {}
    series: Dict[str, List[PeriodProjection]] = {}
    skipped: List[str] = []
    unknown_roles: set[str] = set()
    without_points = 0
    periods: set[int] = set()

    for row in rows:
        player_id = row.raw_id or row.raw_name
        if not player_id:
            skipped.append(row.raw_name or "<blank>")
            continue

        if player_id not in players:
            try:
                record = _player_from_row(row)
            except ValidationError as exc:
                logger.warning("Skipping row for %s: %s", player_id, exc)
                skipped.append(player_id)
                continue
            if record.role not in ROLES:
                unknown_roles.add(record.role or "<blank>")
            players[player_id] = record
            series[player_id] = []
        else:
            existing = players[player_id]
            update: dict[str, object] = {}
            if row.raw_injury_status and not existing.injury_status:
                update["injury_status"] = row.raw_injury_status
            if row.raw_news and not existing.news:
                update["news"] = row.raw_news
            if update:
                players[player_id] = existing.model_copy(update=update)

        points = _parse_points(row.raw_points)
        if points is None:
            without_points += 1
            continue
        period = _parse_period(row.raw_period)
        series[player_id].append(
            PeriodProjection(
                period=period,
                points=points,
                minutes=_parse_optional_float(row.raw_minutes, "minutes"),
                opponent=row.raw_opponent or None,
                difficulty=_parse_difficulty(row.raw_difficulty),
                is_home=_parse_flag(row.raw_is_home),
                source=_parse_source(row.raw_source),
            )
        )
        periods.add(period)

    projections: Dict[str, Tuple[PeriodProjection, ...]] = {}
    for player_id, items in series.items():
        try:
            projections[player_id] = normalize_projections(items)
        except ValueError as exc:
            raise ValueError(f"{players[player_id].name}: {exc}") from None

    if unknown_roles:
        logger.warning("Unknown roles in projection feed: %s", ", ".join(sorted(unknown_roles)))
    report = LoadReport(
        total_rows=len(rows),
        players=len(players),
        periods=len(periods),
        skipped_rows=skipped,
        unknown_roles=sorted(unknown_roles),
        rows_without_points=without_points,
    )
    logger.info(
        "Loaded %s players across %s periods (%s rows, %s skipped)",
        report.players,
        report.periods,
        report.total_rows,
        len(skipped),
    )
    return list(players.values()), projections, report


def load_roster_csv(
    path: Path,
    *,
    mapping: Mapping[str, str] | None = None,
) -> Tuple[List[PlayerRecord], Dict[str, Tuple[PeriodProjection, ...]], LoadReport]:
    return rows_to_roster(load_projection_csv(path, mapping=mapping))


def load_actuals_csv(
    path: Path,
    *,
    mapping: Mapping[str, str] | None = None,
) -> Dict[str, Dict[int, Optional[float]]]:
    """Load realized points as ``{player_id: {period: points or None}}``."""

    rows = load_projection_csv(path, mapping=mapping or DEFAULT_ACTUALS_MAPPING)
    actuals: Dict[str, Dict[int, Optional[float]]] = {}
    for row in rows:
        player_id = row.raw_id or row.raw_name
        if not player_id:
            continue
        period = _parse_period(row.raw_period)
        series = actuals.setdefault(player_id, {})
        if period in series:
            raise ValueError(f"Duplicate actual for {player_id} in period {period}")
        series[period] = _parse_points(row.raw_points)
    return actuals
