"""
cfb-ats: against-the-spread and cross-book arbitrage analytics for college football.

Provides:
- ATS classification of completed games against a posted spread
- Season aggregation with situational breakdowns
- Moneyline arbitrage detection across sportsbooks
- An async client for the College Football Data API
"""

__version__ = "0.3.0"
