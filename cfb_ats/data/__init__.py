"""
Data layer for CFB ATS analysis.

Provides:
- Pydantic schemas for games and sportsbook lines
- College Football Data API client (REST and GraphQL)
- Pipeline helpers that parse, group and attach lines to games
"""
from .schemas import Game, Line, same_team
from .pipeline import (
    ATSDataPipeline,
    FetchResult,
    attach_lines,
    current_season,
    group_lines_by_game,
    load_games_file,
    parse_games,
)

__all__ = [
    # Schemas
    "Game",
    "Line",
    "same_team",
    # Pipeline
    "ATSDataPipeline",
    "FetchResult",
    "attach_lines",
    "current_season",
    "group_lines_by_game",
    "load_games_file",
    "parse_games",
]
