"""
Cross-book moneyline arbitrage detection.

Identifies guaranteed profit opportunities by pairing the best home and the
best away moneyline quoted by different sportsbooks for the same game.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, Union

from loguru import logger

from ..data.schemas import Game, Line
from ..exceptions import InsufficientDataError
from .odds_converter import (
    american_to_implied_probability,
    calculate_arbitrage_stakes,
    check_arbitrage,
)


class ArbitrageStatus(str, Enum):
    """Outcome of an arbitrage check."""

    ARBITRAGE = "arbitrage"
    NO_ARBITRAGE = "no_arbitrage"
    INSUFFICIENT_DATA = "insufficient_data"
    SAME_PROVIDER = "same_provider"
    BELOW_THRESHOLD = "below_threshold"


@dataclass(frozen=True)
class BestLine:
    """Best available moneyline for one side."""

    side: str  # "home" or "away"
    team: str
    provider: str
    odds: int
    implied_probability: float


@dataclass(frozen=True)
class ArbitrageLeg:
    """One side of an arbitrage bet."""

    side: str
    team: str
    provider: str
    odds: int
    implied_probability: float
    stake_percentage: float  # Share of the total bankroll, 0-100


@dataclass(frozen=True)
class ArbitrageResult:
    """Arbitrage evaluation for one game."""

    status: ArbitrageStatus
    game_id: Optional[Union[int, str]] = None
    description: str = ""
    profit_percentage: float = 0.0
    total_implied: Optional[float] = None  # Sum of implied probs (< 1.0 = arb)
    best_home: Optional[BestLine] = None
    best_away: Optional[BestLine] = None
    home_bet: Optional[ArbitrageLeg] = None
    away_bet: Optional[ArbitrageLeg] = None
    usable_lines: int = 0

    @property
    def has_arbitrage(self) -> bool:
        return self.status is ArbitrageStatus.ARBITRAGE

    def scale_stakes(self, bankroll: float) -> tuple[float, float, float]:
        """
        Scale stakes to a bankroll.

        Args:
            bankroll: Total amount to distribute

        Returns:
            Tuple of (home_stake, away_stake, guaranteed_profit)
        """
        if not self.has_arbitrage:
            return (0.0, 0.0, 0.0)
        return (
            round(bankroll * self.home_bet.stake_percentage / 100, 2),
            round(bankroll * self.away_bet.stake_percentage / 100, 2),
            round(bankroll * self.profit_percentage / 100, 2),
        )


@dataclass
class WeekArbitrageScan:
    """Results from scanning a set of games for arbitrage."""

    results: list[ArbitrageResult] = field(default_factory=list)
    scanned_games: int = 0
    scanned_providers: int = 0
    skipped_games: int = 0  # Fewer than two lines
    scan_time: datetime = field(default_factory=datetime.now)

    @property
    def opportunities(self) -> list[ArbitrageResult]:
        """Arbitrage opportunities sorted by profit, best first."""
        found = [r for r in self.results if r.has_arbitrage]
        return sorted(found, key=lambda r: r.profit_percentage, reverse=True)

    @property
    def has_opportunities(self) -> bool:
        return any(r.has_arbitrage for r in self.results)

    def get_top_opportunities(self, n: int = 5) -> list[ArbitrageResult]:
        return self.opportunities[:n]


def _same_book(a, b) -> bool:
    return a.provider.strip().casefold() == b.provider.strip().casefold()


class ArbitrageDetector:
    """
    Detector for cross-book moneyline arbitrage.

    Arbitrage exists when the implied probabilities of the best home price
    and the best away price, taken from two different books, sum to less
    than 100%.

    Example:
        Book A: Home +150 (implied 40%)
        Book B: Away +150 (implied 40%)
        Total implied: 80% < 100% = 25% guaranteed profit

    Usage:
        >>> detector = ArbitrageDetector()
        >>> result = detector.detect(game.lines)
        >>> if result.has_arbitrage:
        ...     print(f"{result.profit_percentage:.2f}% on {result.description}")
    """

    def __init__(
        self,
        min_profit_pct: float = 0.0,
        excluded_providers: Optional[Iterable[str]] = None,
    ):
        """
        Initialize the detector.

        Args:
            min_profit_pct: Minimum profit percentage to report (0.5 = 0.5%)
            excluded_providers: Sportsbooks to ignore
        """
        self.min_profit_pct = min_profit_pct
        self.excluded_providers = {
            p.strip().casefold() for p in (excluded_providers or [])
        }

    @classmethod
    def from_settings(cls, settings) -> "ArbitrageDetector":
        arb = settings.arbitrage
        return cls(
            min_profit_pct=arb.min_profit_percent,
            excluded_providers=arb.excluded_providers,
        )

    def _usable(self, lines: Iterable[Line]) -> list[Line]:
        return [
            line
            for line in lines
            if line.has_moneylines
            and line.provider.strip().casefold() not in self.excluded_providers
        ]

    def best_lines(
        self,
        lines: Iterable[Line],
        home_team: str = "Home",
        away_team: str = "Away",
    ) -> tuple[BestLine, BestLine]:
        """
        Find the best home and away moneylines, chosen independently.

        The earliest line wins a tie, unless that leaves both sides at one
        book while an equally priced line from another book exists.

        Raises:
            InsufficientDataError: If fewer than two lines carry both moneylines
        """
        usable = self._usable(lines)
        if len(usable) < 2:
            raise InsufficientDataError(
                f"Need at least 2 lines with both moneylines, got {len(usable)}",
                usable_lines=len(usable),
            )

        best_home = max(usable, key=lambda line: line.home_moneyline)
        best_away = max(usable, key=lambda line: line.away_moneyline)

        if _same_book(best_home, best_away):
            home_alt = next(
                (
                    line for line in usable
                    if line.home_moneyline == best_home.home_moneyline
                    and not _same_book(line, best_away)
                ),
                None,
            )
            away_alt = next(
                (
                    line for line in usable
                    if line.away_moneyline == best_away.away_moneyline
                    and not _same_book(line, best_home)
                ),
                None,
            )
            if home_alt is not None:
                best_home = home_alt
            elif away_alt is not None:
                best_away = away_alt

        return (
            BestLine(
                side="home",
                team=home_team,
                provider=best_home.provider,
                odds=best_home.home_moneyline,
                implied_probability=float(
                    american_to_implied_probability(best_home.home_moneyline)
                ),
            ),
            BestLine(
                side="away",
                team=away_team,
                provider=best_away.provider,
                odds=best_away.away_moneyline,
                implied_probability=float(
                    american_to_implied_probability(best_away.away_moneyline)
                ),
            ),
        )

    def detect(
        self,
        lines: Iterable[Line],
        game_id: Optional[Union[int, str]] = None,
        home_team: str = "Home",
        away_team: str = "Away",
    ) -> ArbitrageResult:
        """
        Check one game's lines for a moneyline arbitrage.

        Args:
            lines: Lines quoted for the game
            game_id: Identifier carried into the result
            home_team: Home team name for display
            away_team: Away team name for display

        Returns:
            ArbitrageResult; never raises for missing data
        """
        lines = list(lines)
        description = f"{away_team} @ {home_team}"
        usable = len(self._usable(lines))

        try:
            best_home, best_away = self.best_lines(lines, home_team, away_team)
        except InsufficientDataError as e:
            logger.debug(f"Game {game_id}: {e}")
            return ArbitrageResult(
                status=ArbitrageStatus.INSUFFICIENT_DATA,
                game_id=game_id,
                description=description,
                usable_lines=e.usable_lines,
            )

        # Both sides at one book cannot be combined
        if _same_book(best_home, best_away):
            return ArbitrageResult(
                status=ArbitrageStatus.SAME_PROVIDER,
                game_id=game_id,
                description=description,
                best_home=best_home,
                best_away=best_away,
                usable_lines=usable,
            )

        total_implied = best_home.implied_probability + best_away.implied_probability
        exists, profit_pct = check_arbitrage(best_home.odds, best_away.odds)

        if not exists:
            return ArbitrageResult(
                status=ArbitrageStatus.NO_ARBITRAGE,
                game_id=game_id,
                description=description,
                total_implied=total_implied,
                best_home=best_home,
                best_away=best_away,
                usable_lines=usable,
            )

        if float(profit_pct) < self.min_profit_pct:
            return ArbitrageResult(
                status=ArbitrageStatus.BELOW_THRESHOLD,
                game_id=game_id,
                description=description,
                total_implied=total_implied,
                best_home=best_home,
                best_away=best_away,
                usable_lines=usable,
            )

        home_stake, away_stake, _ = calculate_arbitrage_stakes(
            best_home.odds, best_away.odds
        )

        return ArbitrageResult(
            status=ArbitrageStatus.ARBITRAGE,
            game_id=game_id,
            description=description,
            profit_percentage=float(profit_pct),
            total_implied=total_implied,
            best_home=best_home,
            best_away=best_away,
            home_bet=ArbitrageLeg(
                side="home",
                team=home_team,
                provider=best_home.provider,
                odds=best_home.odds,
                implied_probability=best_home.implied_probability,
                stake_percentage=float(home_stake),
            ),
            away_bet=ArbitrageLeg(
                side="away",
                team=away_team,
                provider=best_away.provider,
                odds=best_away.odds,
                implied_probability=best_away.implied_probability,
                stake_percentage=float(away_stake),
            ),
            usable_lines=usable,
        )

    def detect_game(self, game: Game) -> ArbitrageResult:
        return self.detect(
            game.lines,
            game_id=game.id,
            home_team=game.home_team,
            away_team=game.away_team,
        )

    def scan(self, games: Iterable[Game]) -> WeekArbitrageScan:
        """
        Scan games for arbitrage; games quoted by fewer than two books are skipped.

        Args:
            games: Games with their lines

        Returns:
            WeekArbitrageScan with one result per scanned game
        """
        results: list[ArbitrageResult] = []
        providers: set[str] = set()
        skipped = 0

        for game in games:
            if len(game.lines) < 2:
                skipped += 1
                continue
            providers.update(line.provider for line in game.lines)
            results.append(self.detect_game(game))

        scan = WeekArbitrageScan(
            results=results,
            scanned_games=len(results),
            scanned_providers=len(providers),
            skipped_games=skipped,
        )
        logger.info(
            f"Arbitrage scan: {len(scan.opportunities)} opportunities in "
            f"{scan.scanned_games} games across {scan.scanned_providers} books"
        )
        return scan
