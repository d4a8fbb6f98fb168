"""
Pydantic schemas for game and betting-line records.

Accept both the REST (``/lines``, ``/games``) and GraphQL shapes returned by
the College Football Data API, plus snake_case names, and normalize them to
one immutable representation.
"""
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from ..config.constants import ScoreState, SeasonType


def same_team(a: Optional[str], b: Optional[str]) -> bool:
    """Case- and whitespace-insensitive team name comparison."""
    if a is None or b is None:
        return False
    return a.strip().casefold() == b.strip().casefold()


class Line(BaseModel):
    """One sportsbook's posted odds for a game.

    ``spread`` is always from the home team's perspective: negative means the
    home team is favored by that many points.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    provider: str
    spread: Optional[float] = None
    over_under: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("over_under", "overUnder")
    )
    home_moneyline: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("home_moneyline", "homeMoneyline", "moneylineHome"),
    )
    away_moneyline: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("away_moneyline", "awayMoneyline", "moneylineAway"),
    )
    spread_open: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("spread_open", "spreadOpen")
    )
    over_under_open: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("over_under_open", "overUnderOpen")
    )
    formatted_spread: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("formatted_spread", "formattedSpread")
    )
    game_id: Optional[Union[int, str]] = Field(
        default=None, validation_alias=AliasChoices("game_id", "gameId")
    )

    @model_validator(mode="before")
    @classmethod
    def flatten_provider(cls, data: Any) -> Any:
        # GraphQL returns provider as {"id": ..., "name": ...}
        if isinstance(data, dict) and isinstance(data.get("provider"), dict):
            data = dict(data)
            data["provider"] = data["provider"].get("name") or ""
        return data

    @property
    def has_moneylines(self) -> bool:
        """Both sides quoted with valid American odds (|odds| >= 100)."""
        return all(
            odds is not None and abs(odds) >= 100
            for odds in (self.home_moneyline, self.away_moneyline)
        )

    @property
    def spread_movement(self) -> Optional[float]:
        """Points the spread moved from open to close (home perspective)."""
        if self.spread is None or self.spread_open is None:
            return None
        return self.spread - self.spread_open


class Game(BaseModel):
    """One real-world contest, optionally carrying its betting lines.

    A one-sided score is accepted here and surfaces as
    ``ScoreState.PARTIAL`` so that batch calculations can count it.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: Union[int, str]
    season: int
    week: int
    season_type: SeasonType = Field(
        default=SeasonType.REGULAR,
        validation_alias=AliasChoices("season_type", "seasonType"),
    )
    start_date: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("start_date", "startDate")
    )
    home_team: str = Field(validation_alias=AliasChoices("home_team", "homeTeam"))
    away_team: str = Field(validation_alias=AliasChoices("away_team", "awayTeam"))
    home_score: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("home_score", "homeScore", "homePoints", "home_points"),
    )
    away_score: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("away_score", "awayScore", "awayPoints", "away_points"),
    )
    lines: tuple[Line, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def flatten_teams(cls, data: Any) -> Any:
        # GraphQL returns teams as {"school": ..., "abbreviation": ...}
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ("homeTeam", "awayTeam", "home_team", "away_team"):
            value = data.get(key)
            if isinstance(value, dict):
                data[key] = value.get("school") or value.get("name")
        if "season" not in data and "year" in data:
            data["season"] = data["year"]
        return data

    @property
    def score_state(self) -> ScoreState:
        if self.home_score is not None and self.away_score is not None:
            return ScoreState.COMPLETED
        if self.home_score is None and self.away_score is None:
            return ScoreState.SCHEDULED
        return ScoreState.PARTIAL

    @property
    def is_completed(self) -> bool:
        return self.score_state is ScoreState.COMPLETED

    def involves(self, team: str) -> bool:
        return same_team(self.home_team, team) or same_team(self.away_team, team)

    def is_home(self, team: str) -> bool:
        return same_team(self.home_team, team)

    def opponent_of(self, team: str) -> str:
        return self.away_team if self.is_home(team) else self.home_team

    def with_lines(self, lines: list[Line]) -> "Game":
        """Return a copy of this game carrying the given lines."""
        return self.model_copy(update={"lines": tuple(lines)})
