"""
Constants and enumerations for the ATS analytics system.

Contains outcome types, situational dimensions, provider priorities and
the default thresholds used by the calculations.
"""
from enum import Enum
from typing import Final


# =============================================================================
# OUTCOMES
# =============================================================================
class ATSOutcome(str, Enum):
    """Result of a bet against the spread."""

    WIN = "WIN"
    LOSS = "LOSS"
    PUSH = "PUSH"


class SeasonType(str, Enum):
    """Season segment a game belongs to."""

    REGULAR = "regular"
    POSTSEASON = "postseason"


class ScoreState(str, Enum):
    """Whether a game's final score is known."""

    COMPLETED = "completed"
    SCHEDULED = "scheduled"
    PARTIAL = "partial"  # Only one side has a score - invalid record


# =============================================================================
# SITUATIONAL DIMENSIONS
# =============================================================================
class Location(str, Enum):
    HOME = "home"
    AWAY = "away"


class FavoriteStatus(str, Enum):
    FAVORITE = "favorite"
    UNDERDOG = "underdog"


class SpreadTier(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class ExclusionReason(str, Enum):
    """Why a game could not be scored against the spread."""

    TEAM_NOT_IN_GAME = "team_not_in_game"
    NOT_PLAYED = "not_played"
    PARTIAL_SCORE = "partial_score"
    NO_LINES = "no_lines"
    NO_USABLE_SPREAD = "no_usable_spread"


# =============================================================================
# ODDS & PAYOUT
# =============================================================================
# Standard juice on a spread bet
STANDARD_SPREAD_ODDS: Final[int] = -110

# Flat stake used for ROI reporting
DEFAULT_STAKE: Final[float] = 100.0


# =============================================================================
# THRESHOLDS
# =============================================================================
# ATS margins closer to zero than this are pushes (absorbs half-point variants)
DEFAULT_PUSH_THRESHOLD: Final[float] = 0.5

# Float tolerance for "exactly zero" comparisons
FLOAT_TOLERANCE: Final[float] = 1e-9

# Spread-size tiers on |adjusted spread|: small <= 7 < medium <= 14 < large
DEFAULT_SMALL_SPREAD_MAX: Final[float] = 7.0
DEFAULT_MEDIUM_SPREAD_MAX: Final[float] = 14.0

# Covers/beats beyond this ATS margin are listed as notable games
DEFAULT_NOTABLE_MARGIN: Final[float] = 14.0
DEFAULT_NOTABLE_LIMIT: Final[int] = 5


# =============================================================================
# SPORTSBOOK PROVIDERS
# =============================================================================
# Provider names as returned by the College Football Data API, in the order
# they are preferred when a game carries several lines.
DEFAULT_PROVIDER_PRIORITY: Final[tuple[str, ...]] = (
    "ESPN Bet",
    "consensus",
    "DraftKings",
    "Bovada",
    "teamrankings",
    "numberfire",
    "William Hill (New Jersey)",
)
