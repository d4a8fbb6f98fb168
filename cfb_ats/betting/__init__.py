"""
Betting math and arbitrage detection.

Provides tools for:
- American odds conversion and implied probability
- Flat-stake payout ratios
- Cross-book moneyline arbitrage detection
"""

from .odds_converter import (
    american_to_decimal,
    american_to_implied_probability,
    calculate_profit,
    standard_win_payout_ratio,
    format_american_odds,
    check_arbitrage,
    calculate_arbitrage_stakes,
)

from .arbitrage_scanner import (
    ArbitrageDetector,
    ArbitrageLeg,
    ArbitrageResult,
    ArbitrageStatus,
    BestLine,
    WeekArbitrageScan,
)

__all__ = [
    # Odds converter
    "american_to_decimal",
    "american_to_implied_probability",
    "calculate_profit",
    "standard_win_payout_ratio",
    "format_american_odds",
    "check_arbitrage",
    "calculate_arbitrage_stakes",
    # Arbitrage
    "ArbitrageDetector",
    "ArbitrageLeg",
    "ArbitrageResult",
    "ArbitrageStatus",
    "BestLine",
    "WeekArbitrageScan",
]
