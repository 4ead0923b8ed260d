import secrets

from cryptocasino.utils.house_edge import settle_multiplier_bet

SYMBOLS = ["🍒", "🍊", "🍋", "🍇", "🍉", "7️⃣", "💰", "⭐"]
NUM_REELS = 3

TOP_SYMBOL = "7️⃣"
HIGH_SYMBOL = "💰"
MID_SYMBOL = "⭐"

TRIPLE_PAYOUTS = {
    TOP_SYMBOL: 100,
    HIGH_SYMBOL: 50,
    MID_SYMBOL: 25,
}
ANY_TRIPLE_PAYOUT = 10
PAIR_PAYOUT = 2

_secure_random = secrets.SystemRandom()


def _draw_symbol():
    return _secure_random.choice(SYMBOLS)


def spin_reels():
    """Draws one symbol per reel, uniformly and independently."""
    return [_draw_symbol() for _ in range(NUM_REELS)]


def get_raw_multiplier(reels):
    """
    Payout multiplier before house edge for a drawn triple.
    Returns one of 0, 2, 10, 25, 50, 100.
    """
    if len(reels) != NUM_REELS:
        raise ValueError(f"Expected {NUM_REELS} reels, got {len(reels)}")

    distinct = set(reels)
    if len(distinct) == 1:
        return TRIPLE_PAYOUTS.get(reels[0], ANY_TRIPLE_PAYOUT)
    if len(distinct) == 2:
        return PAIR_PAYOUT
    return 0


def resolve_spin(bet_cents, house_edge, reels=None):
    """Spins (unless reels are given) and computes the edge-scaled outcome of one slots round."""
    if reels is None:
        reels = spin_reels()
    raw_multiplier = get_raw_multiplier(reels)
    multiplier, win_amount, net_win = settle_multiplier_bet(bet_cents, raw_multiplier, house_edge)
    return {
        'reels': list(reels),
        'raw_multiplier': raw_multiplier,
        'multiplier': multiplier,
        'win_amount': win_amount,
        'net_win': net_win,
    }
