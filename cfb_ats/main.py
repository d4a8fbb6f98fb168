#!/usr/bin/env python3
"""
CFB ATS - Command Line Entry Point.

Against-the-spread and arbitrage reports for college football:
1. Fetches games and sportsbook lines from the College Football Data API
   (or loads them from a JSON file)
2. Scores every game against the spread for a team
3. Breaks results down by location, favorite status and spread size
4. Scans a week of games for cross-book moneyline arbitrage

Usage:
    cfb-ats ats "Ohio State"                         # Current season
    cfb-ats ats "Ohio State" --seasons 2022 2023 2024
    cfb-ats ats Michigan --versus "Ohio State" --seasons 2019 2020 2021
    cfb-ats ats "Ohio State" --input games.json --csv ats.csv
    cfb-ats arbitrage --year 2024 --week 5
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from loguru import logger as loguru_logger

# Configure logging before other imports
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

from .analysis.line_selection import LineSelectionPolicy  # noqa: E402
from .analysis.season_aggregator import SeasonAggregator, head_to_head  # noqa: E402
from .betting.arbitrage_scanner import ArbitrageDetector  # noqa: E402
from .config.constants import SeasonType  # noqa: E402
from .config.settings import Settings, get_settings  # noqa: E402
from .dashboard.terminal import ATSReport  # noqa: E402
from .data.pipeline import (  # noqa: E402
    ATSDataPipeline,
    FetchResult,
    current_season,
    load_games_file,
)
from .data.sources.base import DataSourceError  # noqa: E402
from .exceptions import CFBATSError  # noqa: E402


def configure_logging(settings: Settings, debug: bool = False) -> None:
    """Apply log level to stdlib logging and the loguru sink."""
    level = "DEBUG" if debug or settings.debug else settings.log_level
    logging.getLogger().setLevel(level)

    loguru_logger.remove()
    loguru_logger.add(sys.stderr, level=level)
    if settings.log_file:
        loguru_logger.add(settings.log_file, level=level, rotation="10 MB")


async def _load_games(
    args: argparse.Namespace,
    settings: Settings,
    fetch,
) -> FetchResult:
    """Load games from ``--input`` or fetch them through the pipeline."""
    if args.input:
        return load_games_file(args.input)

    if not settings.cfbd.api_key:
        raise CFBATSError("CFBD_API_KEY is not set; use --input to analyze a local file")

    async with ATSDataPipeline.from_settings(settings) as pipeline:
        return await fetch(pipeline)


async def run_ats(args: argparse.Namespace, settings: Settings) -> int:
    """Season ATS report for one team."""
    season_type = SeasonType(args.season_type) if args.season_type else None
    seasons = args.seasons or [current_season()]

    fetched = await _load_games(
        args,
        settings,
        lambda pipeline: pipeline.fetch_team_history(
            args.team, seasons, season_type or SeasonType.REGULAR
        ),
    )
    if fetched.failed_seasons:
        logger.warning(f"Seasons not fetched: {fetched.failed_seasons}")
    if fetched.skipped_records or fetched.skipped_lines:
        logger.warning(
            f"{fetched.skipped_records} records and {fetched.skipped_lines} lines failed validation"
        )

    games = fetched.games
    if args.input and args.seasons:
        games = [g for g in games if g.season in set(args.seasons)]
    if args.versus:
        games = head_to_head(games, args.team, args.versus)

    aggregator = SeasonAggregator.from_settings(settings)
    if args.provider:
        aggregator.policy = LineSelectionPolicy(tuple(args.provider))

    summary = aggregator.aggregate(
        games,
        args.team,
        season_type=season_type,
        skipped_records=fetched.skipped_records,
        skipped_lines=fetched.skipped_lines,
    )

    if args.csv:
        summary.to_frame().write_csv(args.csv)
        logger.info(f"Wrote {summary.total_games} games to {args.csv}")

    ATSReport().render_summary(summary, show_games=not args.no_games)
    return 0


async def run_arbitrage(args: argparse.Namespace, settings: Settings) -> int:
    """Moneyline arbitrage scan for one week."""
    season_type = SeasonType(args.season_type or SeasonType.REGULAR)
    year = args.year or current_season()

    fetched = await _load_games(
        args,
        settings,
        lambda pipeline: pipeline.fetch_week_games(year, args.week, season_type),
    )
    games = fetched.games
    if args.input:
        games = [
            g for g in games
            if g.season == year and g.week == args.week and g.season_type is season_type
        ]

    detector = ArbitrageDetector.from_settings(settings)
    if args.min_profit is not None:
        detector.min_profit_pct = args.min_profit

    scan = detector.scan(games)
    bankroll = args.bankroll or settings.arbitrage.default_bankroll
    ATSReport().render_arbitrage(scan, bankroll=bankroll)
    return 0


async def main_async(args: argparse.Namespace) -> int:
    """Async main function."""
    settings = get_settings()
    configure_logging(settings, debug=args.debug)

    try:
        if args.command == "ats":
            return await run_ats(args, settings)
        return await run_arbitrage(args, settings)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    except (DataSourceError, CFBATSError, ValueError, OSError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cfb-ats",
        description="CFB ATS - Against-the-spread and arbitrage analytics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    cfb-ats ats "Ohio State" --seasons 2023 2024
    cfb-ats ats "Ohio State" --season-type postseason
    cfb-ats ats Michigan --versus "Ohio State" --seasons 2019 2020 2021
    cfb-ats ats "Ohio State" --input games.json --csv ats.csv
    cfb-ats arbitrage --year 2024 --week 5 --bankroll 500
        """,
    )
    # Options shared by every subcommand
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    common.add_argument(
        "--input",
        type=Path,
        default=None,
        help="JSON file of game records to analyze instead of calling the API",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    ats = subparsers.add_parser(
        "ats", parents=[common], help="Against-the-spread report for a team"
    )
    ats.add_argument("team", help="Team name as used by the data source")
    ats.add_argument(
        "--seasons",
        type=int,
        nargs="+",
        default=None,
        help="Season years to include (default: current season)",
    )
    ats.add_argument(
        "--season-type",
        choices=[s.value for s in SeasonType],
        default=None,
        help="Restrict to one segment (default: regular when fetching)",
    )
    ats.add_argument(
        "--versus",
        default=None,
        help="Only games against this opponent",
    )
    ats.add_argument(
        "--provider",
        nargs="+",
        default=None,
        help="Sportsbooks in order of preference (overrides config)",
    )
    ats.add_argument(
        "--csv",
        type=Path,
        default=None,
        help="Write game-by-game results to this CSV file",
    )
    ats.add_argument(
        "--no-games",
        action="store_true",
        help="Hide the game-by-game table",
    )

    arb = subparsers.add_parser(
        "arbitrage", parents=[common], help="Scan a week of games for arbitrage"
    )
    arb.add_argument("--year", type=int, default=None, help="Season year")
    arb.add_argument("--week", type=int, required=True, help="Week number")
    arb.add_argument(
        "--season-type",
        choices=[s.value for s in SeasonType],
        default=None,
        help="Segment (default: regular)",
    )
    arb.add_argument(
        "--bankroll",
        type=float,
        default=None,
        help="Total stake to distribute per opportunity (overrides config)",
    )
    arb.add_argument(
        "--min-profit",
        type=float,
        default=None,
        help="Minimum profit percentage to report (overrides config)",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for CLI."""
    args = build_parser().parse_args(argv)

    exit_code = asyncio.run(main_async(args))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
