"""
Against-the-spread classification for a single game.

All spreads arrive from the home team's perspective (negative = home
favored). They are normalized to the team being evaluated before any
arithmetic, and the ATS margin is the number of points by which that team
beat the number:

    ats_margin = actual_margin + team_spread

A favorite at -48.5 that wins by 46 has an ATS margin of -2.5 (LOSS); an
underdog at +7 that loses by 3 has an ATS margin of +4 (WIN).
"""
import math
from dataclasses import dataclass
from numbers import Real
from typing import Any, Optional

from ..betting.odds_converter import standard_win_payout_ratio
from ..config.constants import (
    DEFAULT_PUSH_THRESHOLD,
    DEFAULT_STAKE,
    FLOAT_TOLERANCE,
    ATSOutcome,
    ScoreState,
)
from ..data.schemas import Game, Line
from ..exceptions import InvalidInputError

# Profit per unit staked on a winning -110 spread bet (100/110)
STANDARD_WIN_PAYOUT_RATIO = standard_win_payout_ratio()


@dataclass(frozen=True)
class ATSResult:
    """Outcome of one team's spread bet on one game."""

    classification: ATSOutcome
    actual_margin: float  # Team score minus opponent score
    adjusted_spread: float  # Spread from the team's perspective
    ats_margin: float
    roi_delta: float  # Profit/loss on the flat stake

    @property
    def covered(self) -> bool:
        return self.classification is ATSOutcome.WIN


def _require_number(value: Any, field: str) -> float:
    if value is None:
        raise InvalidInputError(f"{field} is missing", field=field, value=value)
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidInputError(
            f"{field} must be numeric, got {value!r}", field=field, value=value
        )
    number = float(value)
    if not math.isfinite(number):
        raise InvalidInputError(f"{field} must be finite, got {value!r}", field=field, value=value)
    return number


def normalize_spread(spread: float, is_home: bool) -> float:
    """Convert a home-perspective spread to the given team's perspective."""
    return spread if is_home else -spread


def classify_margin(
    ats_margin: float,
    push_threshold: float = DEFAULT_PUSH_THRESHOLD,
) -> ATSOutcome:
    """
    Classify an ATS margin.

    Margins within ``push_threshold`` of zero are pushes; a margin of exactly
    zero is always a push, whatever the threshold.
    """
    if math.isclose(ats_margin, 0.0, abs_tol=FLOAT_TOLERANCE) or abs(ats_margin) < push_threshold:
        return ATSOutcome.PUSH
    if ats_margin > 0:
        return ATSOutcome.WIN
    return ATSOutcome.LOSS


def roi_for(
    outcome: ATSOutcome,
    stake: float = DEFAULT_STAKE,
    win_payout_ratio: float = STANDARD_WIN_PAYOUT_RATIO,
) -> float:
    """Profit or loss of a flat stake for the given outcome."""
    if outcome is ATSOutcome.WIN:
        return stake * win_payout_ratio
    if outcome is ATSOutcome.LOSS:
        return -stake
    return 0.0


def classify_ats(
    home_score: float,
    away_score: float,
    spread: float,
    is_home: bool,
    *,
    push_threshold: float = DEFAULT_PUSH_THRESHOLD,
    stake: float = DEFAULT_STAKE,
    win_payout_ratio: float = STANDARD_WIN_PAYOUT_RATIO,
) -> ATSResult:
    """
    Classify one team's result against the spread.

    Args:
        home_score: Final home team score
        away_score: Final away team score
        spread: Posted spread, home-team perspective
        is_home: Whether the evaluated team is the home team
        push_threshold: ATS margins with smaller absolute value are pushes
        stake: Flat stake used for the ROI contribution
        win_payout_ratio: Profit per unit staked on a win

    Returns:
        ATSResult with classification, margins and ROI contribution

    Raises:
        InvalidInputError: If a score or the spread is missing or non-numeric
    """
    home = _require_number(home_score, "home_score")
    away = _require_number(away_score, "away_score")
    line = _require_number(spread, "spread")
    if push_threshold < 0:
        raise InvalidInputError("push_threshold cannot be negative", field="push_threshold")

    actual_margin = home - away if is_home else away - home
    adjusted_spread = normalize_spread(line, is_home)
    ats_margin = actual_margin + adjusted_spread

    outcome = classify_margin(ats_margin, push_threshold)

    return ATSResult(
        classification=outcome,
        actual_margin=actual_margin,
        adjusted_spread=adjusted_spread,
        ats_margin=ats_margin,
        roi_delta=roi_for(outcome, stake, win_payout_ratio),
    )


def classify_game(
    game: Game,
    line: Optional[Line],
    team: str,
    *,
    push_threshold: float = DEFAULT_PUSH_THRESHOLD,
    stake: float = DEFAULT_STAKE,
    win_payout_ratio: float = STANDARD_WIN_PAYOUT_RATIO,
) -> ATSResult:
    """
    Classify a game record for the named team using the given line.

    Raises:
        InvalidInputError: If the team did not play, the score is not final,
            or the line has no spread
    """
    if not game.involves(team):
        raise InvalidInputError(
            f"{team} did not play in game {game.id}", field="team", value=team
        )
    if game.score_state is ScoreState.PARTIAL:
        raise InvalidInputError(
            f"Game {game.id} has only one score", field="score", value=game.id
        )
    if line is None:
        raise InvalidInputError(f"Game {game.id} has no line", field="line", value=game.id)

    return classify_ats(
        game.home_score,
        game.away_score,
        line.spread,
        game.is_home(team),
        push_threshold=push_threshold,
        stake=stake,
        win_payout_ratio=win_payout_ratio,
    )
