"""
Data pipeline orchestration layer.

Turns upstream records into validated ``Game`` objects:
- Parses REST and GraphQL shapes through the pydantic schemas
- Attaches flat line lists to their games
- Fetches several seasons concurrently
- Skips and counts malformed records instead of aborting a batch
"""
from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from loguru import logger
from pydantic import ValidationError

from ..config.constants import SeasonType
from .schemas import Game, Line
from .sources.base import DataSourceHealth
from .sources.cfbd import CFBDClient

GameId = Union[int, str]


@dataclass
class FetchResult:
    """Games produced by one pipeline call."""

    games: list[Game] = field(default_factory=list)
    skipped_records: int = 0  # Records that failed validation
    skipped_lines: int = 0  # Invalid lines dropped from otherwise valid games
    failed_seasons: list[int] = field(default_factory=list)

    def extend(self, other: "FetchResult") -> None:
        self.games.extend(other.games)
        self.skipped_records += other.skipped_records
        self.skipped_lines += other.skipped_lines
        self.failed_seasons.extend(other.failed_seasons)


def current_season(today: Optional[date] = None) -> int:
    """
    Season year for a date. Seasons kick off in August, so January through
    July still belong to the previous year's season.
    """
    today = today or date.today()
    return today.year if today.month >= 8 else today.year - 1


def _drop_invalid_lines(record: Any) -> tuple[Any, int]:
    """Validate a record's nested lines one at a time; return the record and the drop count."""
    if not isinstance(record, dict) or not isinstance(record.get("lines"), list):
        return record, 0

    lines = []
    for raw in record["lines"]:
        try:
            lines.append(Line.model_validate(raw))
        except ValidationError as e:
            logger.warning(
                f"Dropping invalid line for game {record.get('id')}: {e.error_count()} errors"
            )
    dropped = len(record["lines"]) - len(lines)
    return {**record, "lines": lines}, dropped


def parse_games(records: Iterable[dict[str, Any]]) -> FetchResult:
    """
    Validate raw game records.

    Invalid records are logged and counted, never raised. A bad line only
    costs its own line: the game keeps every line that validates.
    """
    result = FetchResult()
    for record in records:
        record, dropped = _drop_invalid_lines(record)
        result.skipped_lines += dropped
        try:
            result.games.append(Game.model_validate(record))
        except ValidationError as e:
            result.skipped_records += 1
            record_id = record.get("id") if isinstance(record, dict) else None
            logger.warning(f"Skipping invalid game record {record_id}: {e.error_count()} errors")
    return result


def group_lines_by_game(raw_lines: Iterable[dict[str, Any]]) -> dict[GameId, list[Line]]:
    """
    Group flat line records by game id, keeping input order within a game.

    Records without a game id or that fail validation are dropped.
    """
    grouped: dict[GameId, list[Line]] = {}
    for record in raw_lines:
        try:
            line = Line.model_validate(record)
        except ValidationError as e:
            logger.warning(f"Skipping invalid line record: {e.error_count()} errors")
            continue
        if line.game_id is None:
            logger.debug(f"Skipping line from {line.provider} with no game id")
            continue
        grouped.setdefault(line.game_id, []).append(line)
    return grouped


def attach_lines(games: Iterable[Game], raw_lines: Iterable[dict[str, Any]]) -> list[Game]:
    """
    Return copies of ``games`` with matching lines appended to their own.

    Game ids are compared as strings so that ``401`` and ``"401"`` match.
    """
    grouped: dict[str, list[Line]] = {}
    for game_id, lines in group_lines_by_game(raw_lines).items():
        grouped.setdefault(str(game_id), []).extend(lines)

    attached = []
    for game in games:
        extra = grouped.get(str(game.id))
        attached.append(game.with_lines([*game.lines, *extra]) if extra else game)
    return attached


def load_games_file(path: Union[str, Path]) -> FetchResult:
    """Load game records from a JSON file holding a list of games."""
    path = Path(path)
    with path.open(encoding="utf-8") as f:
        records = json.load(f)
    if not isinstance(records, list):
        raise ValueError(f"{path} must contain a JSON list of game records")
    result = parse_games(records)
    logger.info(
        f"Loaded {len(result.games)} games from {path}"
        + (f" ({result.skipped_records} skipped)" if result.skipped_records else "")
        + (f" ({result.skipped_lines} invalid lines dropped)" if result.skipped_lines else "")
    )
    return result


class ATSDataPipeline:
    """
    Unified data access for ATS and arbitrage reports.

    Example:
        >>> pipeline = ATSDataPipeline.from_settings(get_settings())
        >>> history = await pipeline.fetch_team_history("Ohio State", [2023, 2024])
        >>> await pipeline.close()
    """

    def __init__(self, client: CFBDClient):
        self.client = client
        self.logger = logger.bind(source="pipeline")

    @classmethod
    def from_settings(cls, settings) -> "ATSDataPipeline":
        return cls(CFBDClient.from_settings(settings))

    async def __aenter__(self) -> "ATSDataPipeline":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def health_check(self) -> DataSourceHealth:
        return await self.client.health_check()

    async def _fetch_season(
        self, team: str, season: int, season_type: SeasonType
    ) -> FetchResult:
        records = await self.client.get_team_lines(team, season, season_type)
        return parse_games(records)

    async def fetch_team_history(
        self,
        team: str,
        seasons: Iterable[int],
        season_type: SeasonType = SeasonType.REGULAR,
    ) -> FetchResult:
        """
        Fetch a team's games with lines for several seasons concurrently.

        A season that fails is logged and listed in ``failed_seasons``; if
        every season fails, the first error is raised.
        """
        seasons = sorted(set(seasons))
        self.logger.info(f"Fetching {team} {season_type.value} lines for seasons {seasons}")

        results = await asyncio.gather(
            *[self._fetch_season(team, season, season_type) for season in seasons],
            return_exceptions=True,
        )

        combined = FetchResult()
        errors: list[BaseException] = []
        for season, result in zip(seasons, results):
            if isinstance(result, BaseException):
                self.logger.warning(f"Error fetching {team} {season}: {result}")
                combined.failed_seasons.append(season)
                errors.append(result)
            else:
                combined.extend(result)

        if errors and len(errors) == len(seasons):
            raise errors[0]

        return combined

    async def fetch_week_games(
        self,
        year: int,
        week: int,
        season_type: SeasonType = SeasonType.REGULAR,
    ) -> FetchResult:
        """Fetch every game of one week together with all of its lines."""
        records = await self.client.get_week_lines(year, week, season_type)
        return parse_games(records)

    async def close(self) -> None:
        """Close data source connections."""
        await self.client.close()
        self.logger.info("Data pipeline closed")
