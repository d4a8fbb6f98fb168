"""
Against-the-spread analysis tools.

Provides:
- Single-game ATS classification with spread normalization
- Explicit line selection when several books quote a game
- Season aggregation with situational and yearly breakdowns
"""

from .ats_classifier import (
    ATSResult,
    STANDARD_WIN_PAYOUT_RATIO,
    classify_ats,
    classify_game,
    classify_margin,
    normalize_spread,
)
from .line_selection import LineSelectionPolicy
from .season_aggregator import (
    DataQualityReport,
    ExcludedGame,
    GameATSResult,
    SeasonAggregator,
    SeasonSummary,
    SituationalBreakdown,
    SituationalBucket,
    SpreadTiers,
    YearlyATS,
    favorite_status,
    head_to_head,
)

__all__ = [
    # Classification
    "ATSResult",
    "STANDARD_WIN_PAYOUT_RATIO",
    "classify_ats",
    "classify_game",
    "classify_margin",
    "normalize_spread",
    # Line selection
    "LineSelectionPolicy",
    # Aggregation
    "DataQualityReport",
    "ExcludedGame",
    "GameATSResult",
    "SeasonAggregator",
    "SeasonSummary",
    "SituationalBreakdown",
    "SituationalBucket",
    "SpreadTiers",
    "YearlyATS",
    "favorite_status",
    "head_to_head",
]
