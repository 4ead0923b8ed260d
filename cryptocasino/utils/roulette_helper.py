import secrets

from cryptocasino.utils.house_edge import settle_multiplier_bet

# Single-zero wheel: numbers 0-36
ROULETTE_NUMBERS = list(range(37))

RED_NUMBERS = {1, 3, 5, 7, 9, 12, 14, 16, 18, 19, 21, 23, 25, 27, 30, 32, 34, 36}

BET_TYPES = ('red', 'black', 'even', 'odd', 'high', 'low', 'number')

PAYOUTS = {
    "number": 36,
    "even_money": 2,
}

_secure_random = secrets.SystemRandom()


def spin_wheel():
    """Returns a uniformly drawn winning number (0-36)."""
    return _secure_random.choice(ROULETTE_NUMBERS)


def is_red(number):
    return number in RED_NUMBERS


def is_winning_bet(bet_type, bet_number, winning_number):
    """Zero is neither red nor black, and never even, odd, high or low."""
    if winning_number not in ROULETTE_NUMBERS:
        raise ValueError(f"Invalid winning number: {winning_number}")

    if bet_type == "number":
        return bet_number is not None and winning_number == int(bet_number)
    if winning_number == 0:
        return False
    if bet_type == "red":
        return winning_number in RED_NUMBERS
    if bet_type == "black":
        return winning_number not in RED_NUMBERS
    if bet_type == "even":
        return winning_number % 2 == 0
    if bet_type == "odd":
        return winning_number % 2 == 1
    if bet_type == "high":
        return 19 <= winning_number <= 36
    if bet_type == "low":
        return 1 <= winning_number <= 18
    raise ValueError(f"Unknown bet type: {bet_type}")


def get_raw_multiplier(bet_type):
    """Total return multiplier (stake included) for a winning bet of this type."""
    return PAYOUTS["number"] if bet_type == "number" else PAYOUTS["even_money"]


def resolve_spin(bet_cents, bet_type, bet_number, house_edge, winning_number=None):
    if winning_number is None:
        winning_number = spin_wheel()

    won = is_winning_bet(bet_type, bet_number, winning_number)
    raw_multiplier = get_raw_multiplier(bet_type) if won else 0
    multiplier, win_amount, net_win = settle_multiplier_bet(bet_cents, raw_multiplier, house_edge)
    return {
        'result': winning_number,
        'is_red': is_red(winning_number),
        'won': won,
        'raw_multiplier': raw_multiplier,
        'multiplier': multiplier,
        'win_amount': win_amount,
        'net_win': net_win,
    }
