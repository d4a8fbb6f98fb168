"""
American odds math.

Everything here works in ``Decimal`` so that stake splits and payouts do not
pick up float noise before they are rounded for display.
"""
from decimal import Decimal
from numbers import Real

from ..config.constants import STANDARD_SPREAD_ODDS
from ..exceptions import InvalidInputError

_ONE = Decimal("1")
_HUNDRED = Decimal("100")


def _validate_american(american: int) -> int:
    """Reject values that are not valid American odds."""
    if isinstance(american, bool) or not isinstance(american, Real):
        raise InvalidInputError(
            f"American odds must be numeric, got {american!r}",
            field="odds",
            value=american,
        )
    if -100 < american < 100:
        raise InvalidInputError(
            f"American odds must be <= -100 or >= +100, got {american}",
            field="odds",
            value=american,
        )
    return int(american)


def american_to_decimal(american: int) -> Decimal:
    """
    Total return per unit staked, stake included.

        >>> american_to_decimal(150)
        Decimal('2.5')
        >>> american_to_decimal(-200)
        Decimal('1.5')
    """
    odds = Decimal(_validate_american(american))
    profit_per_unit = odds / _HUNDRED if odds > 0 else _HUNDRED / -odds
    return _ONE + profit_per_unit


def american_to_implied_probability(american: int) -> Decimal:
    """
    Break-even win probability for a price, in [0, 1].

    The book's margin is left in, so both sides of a market add up to more
    than one. ``+150`` is 100/250 = 0.4 and ``-300`` is 300/400 = 0.75.
    """
    odds = Decimal(_validate_american(american))
    risked = _HUNDRED if odds > 0 else -odds
    return risked / (abs(odds) + _HUNDRED)


def calculate_profit(stake: Decimal, american_odds: int) -> Decimal:
    """Net winnings on ``stake`` if the bet cashes (stake not included)."""
    return stake * (american_to_decimal(american_odds) - _ONE)


def standard_win_payout_ratio(american_odds: int = STANDARD_SPREAD_ODDS) -> float:
    """
    Profit per unit staked on a winning bet at the given odds.

    At the standard -110 this is 100/110, so a $100 winner returns +$90.91.
    """
    return float(calculate_profit(_ONE, american_odds))


def format_american_odds(odds: int) -> str:
    """Render odds the way a sportsbook does: ``+150``, ``-110``."""
    return f"+{odds}" if odds > 0 else str(odds)


def check_arbitrage(odds1: int, odds2: int) -> tuple[bool, Decimal]:
    """
    Test two opposing prices from different books for a risk-free split.

    Returns ``(exists, profit_percent)``. The percentage is
    ``(1 / (p1 + p2) - 1) * 100`` and goes negative when the pair carries
    vig, in which case it is the guaranteed loss.
    """
    book = american_to_implied_probability(odds1) + american_to_implied_probability(odds2)
    return book < _ONE, (_ONE / book - _ONE) * _HUNDRED


def calculate_arbitrage_stakes(
    odds1: int,
    odds2: int,
    total_stake: Decimal = _HUNDRED,
) -> tuple[Decimal, Decimal, Decimal]:
    """
    Split ``total_stake`` so both outcomes pay the same.

    Each side gets a share proportional to its implied probability; with the
    default total of 100 the stakes read as percentages of the bankroll.
    Returns ``(stake1, stake2, guaranteed_profit)``.
    """
    p1 = american_to_implied_probability(odds1)
    p2 = american_to_implied_probability(odds2)
    book = p1 + p2

    stakes = (total_stake * p1 / book, total_stake * p2 / book)
    payouts = (
        stakes[0] * american_to_decimal(odds1),
        stakes[1] * american_to_decimal(odds2),
    )
    return stakes[0], stakes[1], min(payouts) - total_stake
