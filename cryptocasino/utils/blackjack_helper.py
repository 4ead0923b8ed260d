"""
Blackjack rules engine.

Pure functions over a plain round state dict::

    {
        "deck": [card, ...],        # remaining cards, dealt from the end
        "player_hand": [card, ...],
        "dealer_hand": [card, ...],
        "bet": int,                 # cents, doubled on double down
        "status": str,
        "is_doubled": bool,
        "actions": [str, ...],
    }

Cards are ``{"suit": "♠", "value": "A"}``. Persistence, stake holding and
settlement live in the blackjack route; nothing here touches the database.
"""
import secrets
from decimal import Decimal

from cryptocasino.exceptions import GameLogicException
from cryptocasino.utils.money import round_cents

# --- Card Constants ---
SUITS = ['♠', '♥', '♦', '♣']
VALUES = ['A', '2', '3', '4', '5', '6', '7', '8', '9', '10', 'J', 'Q', 'K']
HIDDEN_CARD = {'suit': '?', 'value': '?'}

DEALER_STANDS_ON = 17
BLACKJACK_PAYOUT = Decimal('1.5')

# --- Round statuses ---
STATUS_IN_PROGRESS = 'in_progress'
STATUS_DEALER_TURN = 'dealer_turn'
STATUS_PLAYER_BLACKJACK = 'player_blackjack'
STATUS_DEALER_BLACKJACK = 'dealer_blackjack'
STATUS_PUSH = 'push'
STATUS_PLAYER_BUST = 'player_bust'
STATUS_DEALER_BUST = 'dealer_bust'
STATUS_DEALER_WINS = 'dealer_wins'
STATUS_PLAYER_WINS = 'player_wins'

TERMINAL_STATUSES = {
    STATUS_PLAYER_BLACKJACK, STATUS_DEALER_BLACKJACK, STATUS_PUSH,
    STATUS_PLAYER_BUST, STATUS_DEALER_BUST, STATUS_DEALER_WINS, STATUS_PLAYER_WINS,
}

ACTIONS = ('hit', 'stand', 'double')


# --- Core Helper Functions ---

def _create_deck():
    """A fresh, ordered 52-card deck."""
    return [{'suit': suit, 'value': value} for suit in SUITS for value in VALUES]


def _shuffle_deck(deck):
    """Shuffles the deck in place using a cryptographically secure RNG."""
    secrets.SystemRandom().shuffle(deck)


def _deal_card(deck):
    """Deals a card from the deck. Modifies the deck."""
    if not deck:
        raise GameLogicException("Deck is empty. Cannot deal card.", status_code=500)
    return deck.pop()


def _get_card_value(card):
    """Ace counts 11 here; demotion to 1 happens in _calculate_hand_value."""
    value = card['value']
    if value == 'A':
        return 11
    if value in ('K', 'Q', 'J'):
        return 10
    return int(value)


def _calculate_hand_value(cards):
    """
    Returns ``(total, is_soft)``. Each ace counts 11 and is demoted to 1 while
    the total exceeds 21; ``is_soft`` means an ace is still counted as 11.
    """
    total = 0
    aces = 0
    for card in cards:
        value = _get_card_value(card)
        if value == 11:
            aces += 1
        total += value

    while total > 21 and aces > 0:
        total -= 10
        aces -= 1

    return total, aces > 0


def calculate_hand_value(cards):
    return _calculate_hand_value(cards)[0]


def is_natural(cards):
    return len(cards) == 2 and calculate_hand_value(cards) == 21


def is_terminal(status):
    return status in TERMINAL_STATUSES


def can_double(state):
    return (
        state['status'] == STATUS_IN_PROGRESS
        and len(state['player_hand']) == 2
        and not state['actions']
    )


# --- Round progression ---

def start_round(bet_cents, deck=None):
    """
    Deals two cards each. Naturals resolve the round immediately; otherwise
    the round is left ``in_progress``.
    """
    if deck is None:
        deck = _create_deck()
        _shuffle_deck(deck)
    deck = list(deck)

    player_hand = [_deal_card(deck), _deal_card(deck)]
    dealer_hand = [_deal_card(deck), _deal_card(deck)]

    player_natural = is_natural(player_hand)
    dealer_natural = is_natural(dealer_hand)
    if player_natural and dealer_natural:
        status = STATUS_PUSH
    elif player_natural:
        status = STATUS_PLAYER_BLACKJACK
    elif dealer_natural:
        status = STATUS_DEALER_BLACKJACK
    else:
        status = STATUS_IN_PROGRESS

    return {
        'deck': deck,
        'player_hand': player_hand,
        'dealer_hand': dealer_hand,
        'bet': bet_cents,
        'status': status,
        'is_doubled': False,
        'actions': [],
    }


def _play_dealer_turn(deck, dealer_hand):
    """Dealer draws while below 17 and stands on any 17, soft or hard."""
    while calculate_hand_value(dealer_hand) < DEALER_STANDS_ON:
        dealer_hand.append(_deal_card(deck))
    return dealer_hand


def _determine_winner(player_hand, dealer_hand):
    player_total = calculate_hand_value(player_hand)
    dealer_total = calculate_hand_value(dealer_hand)

    if dealer_total > 21:
        return STATUS_DEALER_BUST
    if player_total > dealer_total:
        return STATUS_PLAYER_WINS
    if dealer_total > player_total:
        return STATUS_DEALER_WINS
    return STATUS_PUSH


def _resolve_dealer_turn(state):
    state['status'] = STATUS_DEALER_TURN
    _play_dealer_turn(state['deck'], state['dealer_hand'])
    state['status'] = _determine_winner(state['player_hand'], state['dealer_hand'])


def apply_action(state, action):
    """
    Applies ``hit``, ``stand`` or ``double`` to an in-progress round and
    returns the new state. The input state is not modified.
    """
    if state['status'] != STATUS_IN_PROGRESS:
        raise GameLogicException(f"Round is not in progress (status: {state['status']})")
    if action not in ACTIONS:
        raise GameLogicException(f"Unknown action: {action}")
    if action == 'double' and not can_double(state):
        raise GameLogicException("Double is only allowed as the first action on two cards")

    new_state = {
        'deck': list(state['deck']),
        'player_hand': list(state['player_hand']),
        'dealer_hand': list(state['dealer_hand']),
        'bet': state['bet'],
        'status': state['status'],
        'is_doubled': state['is_doubled'],
        'actions': list(state['actions']) + [action],
    }

    if action == 'double':
        new_state['bet'] = state['bet'] * 2
        new_state['is_doubled'] = True

    if action in ('hit', 'double'):
        new_state['player_hand'].append(_deal_card(new_state['deck']))
        if calculate_hand_value(new_state['player_hand']) > 21:
            new_state['status'] = STATUS_PLAYER_BUST
            return new_state
        if action == 'hit':
            return new_state

    _resolve_dealer_turn(new_state)
    return new_state


def raw_net_win(status, bet_cents):
    """Net result in cents for a terminal status, before the house edge."""
    if status == STATUS_PLAYER_BLACKJACK:
        return round_cents(Decimal(bet_cents) * BLACKJACK_PAYOUT)
    if status in (STATUS_DEALER_BUST, STATUS_PLAYER_WINS):
        return bet_cents
    if status in (STATUS_DEALER_BLACKJACK, STATUS_PLAYER_BUST, STATUS_DEALER_WINS):
        return -bet_cents
    if status == STATUS_PUSH:
        return 0
    raise GameLogicException(f"Status {status} is not terminal", status_code=500)


# --- Client view ---

def masked_view(state):
    """
    The part of the round the client may see. While the round is open the
    dealer's hole card and the deck contents are hidden.
    """
    terminal = is_terminal(state['status'])
    dealer_hand = state['dealer_hand']
    if terminal:
        visible_dealer = list(dealer_hand)
    else:
        visible_dealer = [dealer_hand[0]] + [dict(HIDDEN_CARD) for _ in dealer_hand[1:]]

    in_progress = state['status'] == STATUS_IN_PROGRESS
    return {
        'playerHand': list(state['player_hand']),
        'dealerHand': visible_dealer,
        'playerValue': calculate_hand_value(state['player_hand']),
        'dealerValue': calculate_hand_value(dealer_hand if terminal else dealer_hand[:1]),
        'status': state['status'],
        'canHit': in_progress,
        'canStand': in_progress,
        'canDouble': can_double(state),
        'deck': [dict(HIDDEN_CARD) for _ in state['deck']],
    }
