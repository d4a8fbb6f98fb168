"""
Season-level ATS aggregation with situational breakdown.

Provides:
- Overall ATS record, win percentage, ROI and profit on a flat stake
- Home/away, favorite/underdog and spread-size breakdowns
- Season-by-season breakdown and notable covers/beats
- A data-quality report listing every game that could not be scored
"""
import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional, Union

import polars as pl
from loguru import logger

from ..config.constants import (
    DEFAULT_MEDIUM_SPREAD_MAX,
    DEFAULT_NOTABLE_LIMIT,
    DEFAULT_NOTABLE_MARGIN,
    DEFAULT_PUSH_THRESHOLD,
    DEFAULT_SMALL_SPREAD_MAX,
    DEFAULT_STAKE,
    ATSOutcome,
    ExclusionReason,
    FavoriteStatus,
    Location,
    ScoreState,
    SeasonType,
    SpreadTier,
)
from ..betting.odds_converter import standard_win_payout_ratio
from ..data.schemas import Game
from ..exceptions import InvalidInputError
from .ats_classifier import STANDARD_WIN_PAYOUT_RATIO, ATSResult, classify_game
from .line_selection import LineSelectionPolicy


@dataclass(frozen=True)
class SpreadTiers:
    """Spread-size tiers on |adjusted spread|: small <= small_max < medium <= medium_max < large."""

    small_max: float = DEFAULT_SMALL_SPREAD_MAX
    medium_max: float = DEFAULT_MEDIUM_SPREAD_MAX

    def __post_init__(self):
        if not 0 < self.small_max < self.medium_max:
            raise ValueError(
                f"Spread tiers must satisfy 0 < small_max < medium_max, "
                f"got {self.small_max} and {self.medium_max}"
            )

    def tier_for(self, spread: float) -> SpreadTier:
        size = abs(spread)
        if size <= self.small_max:
            return SpreadTier.SMALL
        if size <= self.medium_max:
            return SpreadTier.MEDIUM
        return SpreadTier.LARGE


def favorite_status(adjusted_spread: float) -> FavoriteStatus:
    """Negative team spread is a favorite; a pick'em (0) counts as favorite."""
    return FavoriteStatus.FAVORITE if adjusted_spread <= 0 else FavoriteStatus.UNDERDOG


@dataclass(frozen=True)
class GameATSResult:
    """One scored game for one team."""

    game_id: Union[int, str]
    season: int
    week: int
    season_type: SeasonType
    start_date: Optional[datetime]
    team: str
    opponent: str
    location: Location
    team_score: int
    opponent_score: int
    provider: str
    spread: float  # As posted, home perspective
    favorite_status: FavoriteStatus
    spread_tier: SpreadTier
    ats: ATSResult

    @property
    def classification(self) -> ATSOutcome:
        return self.ats.classification

    @property
    def ats_margin(self) -> float:
        return self.ats.ats_margin

    @property
    def adjusted_spread(self) -> float:
        return self.ats.adjusted_spread

    @property
    def sort_key(self) -> tuple:
        # Postseason weeks restart at 1, so the segment sorts before the week
        kickoff = self.start_date.timestamp() if self.start_date is not None else math.inf
        return (
            self.season,
            self.season_type is not SeasonType.REGULAR,
            self.week,
            kickoff,
            str(self.game_id),
        )


@dataclass
class SituationalBucket:
    """Win/loss/push counts for one situational category."""

    label: str
    wins: int = 0
    losses: int = 0
    pushes: int = 0

    def record(self, outcome: ATSOutcome) -> None:
        if outcome is ATSOutcome.WIN:
            self.wins += 1
        elif outcome is ATSOutcome.LOSS:
            self.losses += 1
        else:
            self.pushes += 1

    @property
    def games(self) -> int:
        return self.wins + self.losses + self.pushes

    @property
    def win_percentage(self) -> float:
        """Win percentage excluding pushes."""
        decided = self.wins + self.losses
        return self.wins / decided * 100 if decided > 0 else 0.0

    @property
    def record_str(self) -> str:
        return f"{self.wins}-{self.losses}-{self.pushes}"


def _buckets(labels: Iterable[str]) -> dict[str, SituationalBucket]:
    return {label: SituationalBucket(label) for label in labels}


@dataclass
class SituationalBreakdown:
    """Three independent partitions of the same scored games."""

    location: dict[str, SituationalBucket] = field(
        default_factory=lambda: _buckets(loc.value for loc in Location)
    )
    favorite: dict[str, SituationalBucket] = field(
        default_factory=lambda: _buckets(f.value for f in FavoriteStatus)
    )
    spread_size: dict[str, SituationalBucket] = field(
        default_factory=lambda: _buckets(t.value for t in SpreadTier)
    )

    def add(self, result: GameATSResult) -> None:
        outcome = result.classification
        self.location[result.location.value].record(outcome)
        self.favorite[result.favorite_status.value].record(outcome)
        self.spread_size[result.spread_tier.value].record(outcome)

    def dimensions(self) -> dict[str, dict[str, SituationalBucket]]:
        return {
            "location": self.location,
            "favorite": self.favorite,
            "spread_size": self.spread_size,
        }


@dataclass(frozen=True)
class ExcludedGame:
    """A game that could not be scored, and why."""

    game_id: Union[int, str]
    reason: ExclusionReason
    detail: str = ""


@dataclass
class DataQualityReport:
    """Games excluded from aggregation, plus input that never became a game."""

    excluded: list[ExcludedGame] = field(default_factory=list)
    skipped_records: int = 0  # Game records that failed validation
    skipped_lines: int = 0  # Invalid lines dropped from scored or excluded games

    @property
    def invalid_games(self) -> int:
        return len(self.excluded)

    @property
    def by_reason(self) -> dict[ExclusionReason, int]:
        return dict(Counter(e.reason for e in self.excluded))

    @property
    def is_clean(self) -> bool:
        return not (self.excluded or self.skipped_records or self.skipped_lines)


@dataclass
class YearlyATS:
    """ATS record for one season."""

    season: int
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    profit: float = 0.0

    @property
    def games(self) -> int:
        return self.wins + self.losses + self.pushes

    @property
    def win_percentage(self) -> float:
        decided = self.wins + self.losses
        return self.wins / decided * 100 if decided > 0 else 0.0


@dataclass
class SeasonSummary:
    """Aggregated ATS results for one team."""

    team: str
    stake: float
    results: list[GameATSResult]
    situational: SituationalBreakdown
    yearly: list[YearlyATS]
    best_covers: list[GameATSResult]
    worst_beats: list[GameATSResult]
    data_quality: DataQualityReport
    season_type: Optional[SeasonType] = None
    season_types: tuple[SeasonType, ...] = ()
    filtered_out: int = 0

    def _count(self, outcome: ATSOutcome) -> int:
        return sum(1 for r in self.results if r.classification is outcome)

    @property
    def wins(self) -> int:
        return self._count(ATSOutcome.WIN)

    @property
    def losses(self) -> int:
        return self._count(ATSOutcome.LOSS)

    @property
    def pushes(self) -> int:
        return self._count(ATSOutcome.PUSH)

    @property
    def total_games(self) -> int:
        return len(self.results)

    @property
    def invalid_games(self) -> int:
        return self.data_quality.invalid_games

    @property
    def win_percentage(self) -> float:
        """wins / (wins + losses) * 100; pushes never count."""
        decided = self.wins + self.losses
        return self.wins / decided * 100 if decided > 0 else 0.0

    @property
    def total_profit(self) -> float:
        return math.fsum(r.ats.roi_delta for r in self.results)

    @property
    def roi_percentage(self) -> float:
        staked = self.total_games * self.stake
        return self.total_profit / staked * 100 if staked > 0 else 0.0

    @property
    def average_spread(self) -> float:
        """Mean |spread| faced."""
        if not self.results:
            return 0.0
        return math.fsum(abs(r.adjusted_spread) for r in self.results) / len(self.results)

    @property
    def average_ats_margin(self) -> float:
        if not self.results:
            return 0.0
        return math.fsum(r.ats_margin for r in self.results) / len(self.results)

    @property
    def record_str(self) -> str:
        return f"{self.wins}-{self.losses}-{self.pushes}"

    def to_frame(self) -> pl.DataFrame:
        """Game-by-game results as a DataFrame."""
        return pl.DataFrame(
            {
                "season": [r.season for r in self.results],
                "season_type": [r.season_type.value for r in self.results],
                "week": [r.week for r in self.results],
                "game_id": [str(r.game_id) for r in self.results],
                "opponent": [r.opponent for r in self.results],
                "location": [r.location.value for r in self.results],
                "team_score": [r.team_score for r in self.results],
                "opponent_score": [r.opponent_score for r in self.results],
                "provider": [r.provider for r in self.results],
                "team_spread": [r.adjusted_spread for r in self.results],
                "ats_margin": [r.ats_margin for r in self.results],
                "result": [r.classification.value for r in self.results],
                "roi": [r.ats.roi_delta for r in self.results],
            },
            schema={
                "season": pl.Int64,
                "season_type": pl.Utf8,
                "week": pl.Int64,
                "game_id": pl.Utf8,
                "opponent": pl.Utf8,
                "location": pl.Utf8,
                "team_score": pl.Int64,
                "opponent_score": pl.Int64,
                "provider": pl.Utf8,
                "team_spread": pl.Float64,
                "ats_margin": pl.Float64,
                "result": pl.Utf8,
                "roi": pl.Float64,
            },
        )

    def summary(self) -> str:
        """Generate a plain-text summary report."""
        lines = [
            "=" * 70,
            f"ATS SUMMARY - {self.team.upper()}",
            "=" * 70,
            f"Games Scored: {self.total_games}",
            f"ATS Record: {self.record_str} ({self.win_percentage:.1f}%)",
            f"ROI: {self.roi_percentage:+.1f}%",
            f"Total Profit/Loss: ${self.total_profit:+,.2f} (${self.stake:,.0f} per game)",
            f"Average Spread: {self.average_spread:.1f}",
            f"Average ATS Margin: {self.average_ats_margin:+.1f}",
            "",
            "SITUATIONAL BREAKDOWN:",
        ]

        for dimension, buckets in self.situational.dimensions().items():
            for label, bucket in buckets.items():
                lines.append(
                    f"  {dimension}/{label}: {bucket.record_str} "
                    f"({bucket.win_percentage:.1f}%) - {bucket.games} games"
                )

        if self.yearly:
            lines.append("")
            lines.append("SEASON-BY-SEASON:")
            for year in self.yearly:
                lines.append(
                    f"  {year.season}: {year.wins}-{year.losses}-{year.pushes} "
                    f"({year.win_percentage:.1f}%) | ${year.profit:+,.2f}"
                )

        lines.append("")
        lines.append(f"Excluded Games: {self.invalid_games}")
        for reason, count in sorted(
            self.data_quality.by_reason.items(), key=lambda x: x[0].value
        ):
            lines.append(f"  {reason.value}: {count}")
        if self.data_quality.skipped_records:
            lines.append(f"Unreadable Records: {self.data_quality.skipped_records}")
        if self.data_quality.skipped_lines:
            lines.append(f"Invalid Lines Dropped: {self.data_quality.skipped_lines}")
        if len(self.season_types) > 1:
            lines.append(
                "Segments mixed: " + ", ".join(s.value for s in self.season_types)
            )

        lines.append("=" * 70)
        return "\n".join(lines)


class SeasonAggregator:
    """
    Reduce a team's games to ATS summary and situational statistics.

    Each game is resolved to one line through the selection policy, scored
    with the ATS classifier, and counted once in every situational
    dimension. Games that cannot be scored are listed in the data-quality
    report and never counted as a win, loss or push.

    Usage:
        >>> aggregator = SeasonAggregator()
        >>> summary = aggregator.aggregate(games, "Ohio State", season_type="regular")
        >>> print(summary.record_str, f"{summary.win_percentage:.1f}%")
    """

    def __init__(
        self,
        policy: Optional[LineSelectionPolicy] = None,
        push_threshold: float = DEFAULT_PUSH_THRESHOLD,
        stake: float = DEFAULT_STAKE,
        win_payout_ratio: float = STANDARD_WIN_PAYOUT_RATIO,
        tiers: Optional[SpreadTiers] = None,
        notable_margin: float = DEFAULT_NOTABLE_MARGIN,
        notable_limit: int = DEFAULT_NOTABLE_LIMIT,
    ):
        """
        Initialize the aggregator.

        Args:
            policy: Line selection policy (defaults to the standard provider priority)
            push_threshold: ATS margins with smaller absolute value are pushes
            stake: Flat stake per game
            win_payout_ratio: Profit per unit staked on a win
            tiers: Spread-size tier boundaries
            notable_margin: ATS margin beyond which a game is a best cover / worst beat
            notable_limit: How many best covers and worst beats to keep
        """
        if stake <= 0:
            raise ValueError("stake must be positive")
        self.policy = policy or LineSelectionPolicy()
        self.push_threshold = push_threshold
        self.stake = stake
        self.win_payout_ratio = win_payout_ratio
        self.tiers = tiers or SpreadTiers()
        self.notable_margin = notable_margin
        self.notable_limit = notable_limit

    @classmethod
    def from_settings(cls, settings) -> "SeasonAggregator":
        ats = settings.ats
        return cls(
            policy=LineSelectionPolicy.from_settings(settings),
            push_threshold=ats.push_threshold,
            stake=ats.stake,
            win_payout_ratio=standard_win_payout_ratio(ats.standard_odds),
            tiers=SpreadTiers(ats.small_spread_max, ats.medium_spread_max),
            notable_margin=ats.notable_margin,
            notable_limit=ats.notable_limit,
        )

    def _exclusion_reason(self, game: Game, team: str) -> Optional[ExclusionReason]:
        if not game.involves(team):
            return ExclusionReason.TEAM_NOT_IN_GAME
        state = game.score_state
        if state is ScoreState.PARTIAL:
            return ExclusionReason.PARTIAL_SCORE
        if state is ScoreState.SCHEDULED:
            return ExclusionReason.NOT_PLAYED
        if not game.lines:
            return ExclusionReason.NO_LINES
        return None

    def score_game(self, game: Game, team: str) -> GameATSResult:
        """
        Score one game for the team.

        Raises:
            InvalidInputError: If the game cannot be scored
        """
        line = self.policy.select(game.lines)
        if line is None:
            raise InvalidInputError(
                f"Game {game.id} has no line with a usable spread",
                field="spread",
                value=game.id,
            )

        ats = classify_game(
            game,
            line,
            team,
            push_threshold=self.push_threshold,
            stake=self.stake,
            win_payout_ratio=self.win_payout_ratio,
        )
        is_home = game.is_home(team)

        return GameATSResult(
            game_id=game.id,
            season=game.season,
            week=game.week,
            season_type=game.season_type,
            start_date=game.start_date,
            team=game.home_team if is_home else game.away_team,
            opponent=game.opponent_of(team),
            location=Location.HOME if is_home else Location.AWAY,
            team_score=game.home_score if is_home else game.away_score,
            opponent_score=game.away_score if is_home else game.home_score,
            provider=line.provider,
            spread=line.spread,
            favorite_status=favorite_status(ats.adjusted_spread),
            spread_tier=self.tiers.tier_for(ats.adjusted_spread),
            ats=ats,
        )

    def aggregate(
        self,
        games: Iterable[Game],
        team: str,
        season_type: Optional[Union[SeasonType, str]] = None,
        skipped_records: int = 0,
        skipped_lines: int = 0,
    ) -> SeasonSummary:
        """
        Aggregate ATS statistics for a team.

        Args:
            games: Game records with their lines
            team: Team name as it appears in the records
            season_type: Restrict to one segment (regular or postseason)
            skipped_records: Upstream records that failed validation
            skipped_lines: Upstream lines dropped during validation

        Returns:
            SeasonSummary; unscorable games appear in ``data_quality``
        """
        segment = SeasonType(season_type) if season_type is not None else None

        results: list[GameATSResult] = []
        quality = DataQualityReport(
            skipped_records=skipped_records, skipped_lines=skipped_lines
        )
        filtered_out = 0

        for game in games:
            if segment is not None and game.season_type is not segment:
                filtered_out += 1
                continue

            reason = self._exclusion_reason(game, team)
            if reason is None:
                try:
                    results.append(self.score_game(game, team))
                    continue
                except InvalidInputError as e:
                    reason = ExclusionReason.NO_USABLE_SPREAD
                    detail = str(e)
            else:
                detail = ""

            logger.debug(f"Excluding game {game.id} for {team}: {reason.value}")
            quality.excluded.append(ExcludedGame(game.id, reason, detail))

        results.sort(key=lambda r: r.sort_key)
        quality.excluded.sort(key=lambda e: (e.reason.value, str(e.game_id)))

        season_types = tuple(
            s for s in SeasonType if any(r.season_type is s for r in results)
        )
        if segment is None and len(season_types) > 1:
            logger.warning(
                f"{team}: aggregating mixed segments "
                f"({', '.join(s.value for s in season_types)})"
            )
        if quality.invalid_games:
            logger.info(f"{team}: {quality.invalid_games} games excluded from ATS totals")

        situational = SituationalBreakdown()
        for result in results:
            situational.add(result)

        return SeasonSummary(
            team=team,
            stake=self.stake,
            results=results,
            situational=situational,
            yearly=self._yearly(results),
            best_covers=self._best_covers(results),
            worst_beats=self._worst_beats(results),
            data_quality=quality,
            season_type=segment,
            season_types=season_types,
            filtered_out=filtered_out,
        )

    def _yearly(self, results: list[GameATSResult]) -> list[YearlyATS]:
        by_season: dict[int, YearlyATS] = {}
        for r in results:
            year = by_season.setdefault(r.season, YearlyATS(season=r.season))
            if r.classification is ATSOutcome.WIN:
                year.wins += 1
            elif r.classification is ATSOutcome.LOSS:
                year.losses += 1
            else:
                year.pushes += 1
            year.profit += r.ats.roi_delta
        return [by_season[s] for s in sorted(by_season)]

    def _best_covers(self, results: list[GameATSResult]) -> list[GameATSResult]:
        covers = [r for r in results if r.ats_margin > self.notable_margin]
        covers.sort(key=lambda r: (-r.ats_margin, r.sort_key))
        return covers[: self.notable_limit]

    def _worst_beats(self, results: list[GameATSResult]) -> list[GameATSResult]:
        beats = [r for r in results if r.ats_margin < -self.notable_margin]
        beats.sort(key=lambda r: (r.ats_margin, r.sort_key))
        return beats[: self.notable_limit]


def head_to_head(games: Iterable[Game], team_a: str, team_b: str) -> list[Game]:
    """Games in which both teams played each other."""
    return [g for g in games if g.involves(team_a) and g.involves(team_b)]
