"""Shared fixtures: Ohio State 2024 regular season lines and results."""
from datetime import datetime
from typing import Optional

import pytest

from cfb_ats.config.constants import SeasonType
from cfb_ats.data.schemas import Game, Line

TEAM = "Ohio State"

# (week, home, away, home_score, away_score, home-perspective spread)
OHIO_STATE_2024 = [
    (1, "Ohio State", "Akron", 52, 6, -48.5),
    (2, "Ohio State", "Western Michigan", 56, 0, -37.5),
    (3, "Ohio State", "Marshall", 49, 14, -38.5),
    (4, "Michigan State", "Ohio State", 7, 38, 23.5),
    (5, "Ohio State", "Iowa", 35, 7, -17.5),
    (6, "Oregon", "Ohio State", 32, 31, 3.5),
    (7, "Ohio State", "Nebraska", 21, 17, -25.5),
    (8, "Penn State", "Ohio State", 13, 20, 3.5),
    (9, "Ohio State", "Purdue", 45, 0, -37.5),
    (10, "Northwestern", "Ohio State", 7, 31, 29.5),
    (11, "Ohio State", "Indiana", 38, 15, -10.5),
    (12, "Ohio State", "Michigan", 10, 13, -20.5),
]

# Expected (ats_margin, classification) for Ohio State, in week order
OHIO_STATE_2024_EXPECTED = [
    (-2.5, "LOSS"),
    (18.5, "WIN"),
    (-3.5, "LOSS"),
    (7.5, "WIN"),
    (10.5, "WIN"),
    (-4.5, "LOSS"),
    (-21.5, "LOSS"),
    (3.5, "WIN"),
    (7.5, "WIN"),
    (-5.5, "LOSS"),
    (12.5, "WIN"),
    (-23.5, "LOSS"),
]


def build_line(
    provider: str = "ESPN Bet",
    spread: Optional[float] = None,
    home_moneyline: Optional[int] = None,
    away_moneyline: Optional[int] = None,
    game_id=None,
) -> Line:
    return Line(
        provider=provider,
        spread=spread,
        home_moneyline=home_moneyline,
        away_moneyline=away_moneyline,
        game_id=game_id,
    )


def build_game(
    game_id=1,
    home_team: str = "Home U",
    away_team: str = "Away U",
    home_score: Optional[int] = None,
    away_score: Optional[int] = None,
    lines=(),
    season: int = 2024,
    week: int = 1,
    season_type: SeasonType = SeasonType.REGULAR,
    start_date: Optional[datetime] = None,
) -> Game:
    return Game(
        id=game_id,
        season=season,
        week=week,
        season_type=season_type,
        start_date=start_date,
        home_team=home_team,
        away_team=away_team,
        home_score=home_score,
        away_score=away_score,
        lines=tuple(lines),
    )


@pytest.fixture
def make_line():
    return build_line


@pytest.fixture
def make_game():
    return build_game


@pytest.fixture
def ohio_state_2024() -> list[Game]:
    """Twelve regular season games, one ESPN Bet line each."""
    return [
        build_game(
            game_id=401628300 + week,
            home_team=home,
            away_team=away,
            home_score=home_score,
            away_score=away_score,
            lines=[build_line("ESPN Bet", spread)],
            week=week,
        )
        for week, home, away, home_score, away_score, spread in OHIO_STATE_2024
    ]
