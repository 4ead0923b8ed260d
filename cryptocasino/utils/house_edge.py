"""
House edge arithmetic.

Policy: the edge only ever shrinks what the house pays out on a winning
round, never a loss.

* Multiplier games (slots, roulette) pay ``bet * multiplier``; the edge scales
  the raw multiplier, so the settled net is ``bet * raw * (100 - edge) / 100 - bet``.
  A raw multiplier of 0 is a plain loss of the bet.
* Blackjack resolves directly to a net amount; the edge scales that net only
  when it is positive.

All amounts are integer cents; fractional cents round half up.
"""
from decimal import Decimal

from cryptocasino.exceptions import ValidationException
from cryptocasino.utils.money import round_cents

MIN_HOUSE_EDGE = Decimal('0')
MAX_HOUSE_EDGE = Decimal('100')
MAX_PROFIT_TARGET_EDGE = Decimal('90')
PERCENT = Decimal('0.01')


def validate_house_edge(percentage) -> Decimal:
    try:
        value = Decimal(str(percentage))
    except (ArithmeticError, ValueError, TypeError):
        raise ValidationException("House edge must be a number")
    if not value.is_finite() or value < MIN_HOUSE_EDGE or value > MAX_HOUSE_EDGE:
        raise ValidationException(
            "House edge must be between 0 and 100",
            details={'houseEdge': str(percentage)}
        )
    return value.quantize(PERCENT)


def payout_factor(house_edge) -> Decimal:
    return (Decimal('100') - Decimal(house_edge)) / Decimal('100')


def scale_multiplier(raw_multiplier, house_edge) -> Decimal:
    """Effective multiplier after the edge, e.g. 2x at 50% -> 1."""
    return Decimal(raw_multiplier) * payout_factor(house_edge)


def settle_multiplier_bet(bet_cents: int, raw_multiplier, house_edge):
    """
    Returns ``(effective_multiplier, win_amount_cents, net_win_cents)`` for a
    slots or roulette round.
    """
    if not raw_multiplier:
        return Decimal('0'), 0, -bet_cents
    effective = scale_multiplier(raw_multiplier, house_edge)
    win_amount = round_cents(Decimal(bet_cents) * effective)
    return effective, win_amount, win_amount - bet_cents


def scale_net_win(net_win_cents: int, house_edge) -> int:
    """Blackjack: only positive nets are reduced by the edge."""
    if net_win_cents <= 0:
        return net_win_cents
    return round_cents(Decimal(net_win_cents) * payout_factor(house_edge))


def profit_target_to_house_edge(target_percent) -> Decimal:
    """
    Converts a target profit margin into a per-round house edge using
    ``edge = 1 - 1 / (1 + target)`` (both as fractions), clamped to [0, 90]%.

    This is an approximation: it treats the target as a markup on the amount
    paid back to players and does not account for how the slots, roulette and
    blackjack payout tables compound the edge. It gives no guarantee that the
    long-run margin on wagered volume equals the target.
    """
    target = Decimal(str(target_percent)) / Decimal('100')
    edge = (Decimal('1') - Decimal('1') / (Decimal('1') + target)) * Decimal('100')
    edge = max(MIN_HOUSE_EDGE, min(MAX_PROFIT_TARGET_EDGE, edge))
    return edge.quantize(PERCENT)


def format_percent(value) -> str:
    return f"{Decimal(value):.2f}%"
