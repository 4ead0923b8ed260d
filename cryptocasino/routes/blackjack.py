from datetime import datetime, timezone

from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, current_user
from sqlalchemy.orm.exc import StaleDataError

from cryptocasino.models import db, BlackjackRound
from cryptocasino.schemas import PlayRequestSchema, BlackjackActionSchema
from cryptocasino.services import ledger
from cryptocasino.services.settlement import settle
from cryptocasino.exceptions import GameLogicException, NotFoundException, ValidationException
from cryptocasino.error_codes import ErrorCodes
from cryptocasino.utils import blackjack_helper
from cryptocasino.utils.house_edge import scale_net_win
from cryptocasino.utils.money import to_cents, cents_to_number, format_cents

blackjack_bp = Blueprint('blackjack', __name__, url_prefix='/api/games/blackjack')


def _state_from_round(bj_round):
    return {
        'deck': list(bj_round.deck),
        'player_hand': list(bj_round.player_hand),
        'dealer_hand': list(bj_round.dealer_hand),
        'bet': bj_round.bet,
        'status': bj_round.status,
        'is_doubled': bj_round.is_doubled,
        'actions': list(bj_round.actions or []),
    }


def _store_state(bj_round, state):
    # JSON columns are replaced, never mutated in place
    bj_round.deck = list(state['deck'])
    bj_round.player_hand = list(state['player_hand'])
    bj_round.dealer_hand = list(state['dealer_hand'])
    bj_round.bet = state['bet']
    bj_round.status = state['status']
    bj_round.is_doubled = state['is_doubled']
    bj_round.actions = list(state['actions'])


def _outcome_payload(bj_round, state):
    return {
        'roundId': bj_round.id,
        'playerHand': state['player_hand'],
        'dealerHand': state['dealer_hand'],
        'playerValue': blackjack_helper.calculate_hand_value(state['player_hand']),
        'dealerValue': blackjack_helper.calculate_hand_value(state['dealer_hand']),
        'status': state['status'],
        'doubled': state['is_doubled'],
        'actions': state['actions'],
    }


def _finish_round(bj_round, game, state):
    """Applies the edge to the resolved net and settles the round. Returns ``(net_win, new_balance)``."""
    raw_net = blackjack_helper.raw_net_win(state['status'], state['bet'])
    net_win = scale_net_win(raw_net, game.house_edge)
    bj_round.completed_at = datetime.now(timezone.utc)
    held = bj_round.stake_held
    bj_round.stake_held = 0

    result = settle(
        bj_round.user_id, game, state['bet'], _outcome_payload(bj_round, state), net_win,
        round_key=bj_round.round_key, held_cents=held, round_record=bj_round,
    )
    return net_win, result.new_balance


def _round_response(game_id, bj_round, state, balance, net_win=None):
    view = blackjack_helper.masked_view(state)
    # Doubling needs the extra stake available
    can_double = view['canDouble'] and balance >= state['bet']
    response = {
        'gameId': game_id,
        'roundId': bj_round.id,
        'playerHand': view['playerHand'],
        'dealerHand': view['dealerHand'],
        'playerValue': view['playerValue'],
        'dealerValue': view['dealerValue'],
        'bet': cents_to_number(state['bet']),
        'status': view['status'],
        'canHit': view['canHit'],
        'canStand': view['canStand'],
        'canDouble': can_double,
        'deck': view['deck'],
        'balance': format_cents(balance),
    }
    if net_win is not None:
        response['win'] = cents_to_number(net_win)
    return response


@blackjack_bp.route('/deal', methods=['POST'])
@jwt_required()
def deal():
    data = PlayRequestSchema().load(request.get_json(silent=True) or {})
    game = ledger.get_playable_game(data['game_id'], 'blackjack')
    bet_cents = to_cents(data['bet'])
    ledger.validate_bet_limits(game, bet_cents)

    state = blackjack_helper.start_round(bet_cents)

    try:
        bj_round = BlackjackRound(user_id=current_user.id, game_id=game.id, stake_held=bet_cents)
        _store_state(bj_round, state)
        db.session.add(bj_round)
        ledger.apply_balance_delta(current_user.id, -bet_cents)
        db.session.flush()
    except Exception:
        db.session.rollback()
        raise

    net_win = None
    if blackjack_helper.is_terminal(state['status']):
        net_win, balance = _finish_round(bj_round, game, state)
    else:
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        balance = ledger.get_balance(current_user.id)

    current_app.logger.info(
        f"User {current_user.id} dealt blackjack round {bj_round.id} on game {game.id}: status={state['status']}"
    )
    return jsonify(_round_response(game.id, bj_round, state, balance, net_win)), 200


@blackjack_bp.route('/action', methods=['POST'])
@jwt_required()
def action():
    data = BlackjackActionSchema().load(request.get_json(silent=True) or {})
    round_id = data['game_state']['round_id']
    player_action = data['action']

    bj_round = db.session.get(BlackjackRound, round_id)
    if bj_round is None or bj_round.user_id != current_user.id:
        raise NotFoundException("Blackjack round not found", details={'roundId': round_id})
    if bj_round.game_id != data['game_id']:
        raise ValidationException("Round does not belong to this game",
                                  error_code=ErrorCodes.GAME_TYPE_MISMATCH)
    if bj_round.status != blackjack_helper.STATUS_IN_PROGRESS:
        raise GameLogicException(f"Round is already finished (status: {bj_round.status})")

    game = ledger.get_game_or_404(bj_round.game_id)
    state = _state_from_round(bj_round)

    try:
        if player_action == 'double':
            if not blackjack_helper.can_double(state):
                raise GameLogicException("Double is only allowed as the first action on two cards")
            ledger.apply_balance_delta(current_user.id, -state['bet'])
            bj_round.stake_held = bj_round.stake_held + state['bet']

        new_state = blackjack_helper.apply_action(state, player_action)
        _store_state(bj_round, new_state)
        db.session.flush()
    except StaleDataError:
        db.session.rollback()
        raise GameLogicException("Round was updated by another request", status_code=409)
    except Exception:
        db.session.rollback()
        raise

    net_win = None
    if blackjack_helper.is_terminal(new_state['status']):
        try:
            net_win, balance = _finish_round(bj_round, game, new_state)
        except StaleDataError:
            raise GameLogicException("Round was updated by another request", status_code=409)
    else:
        try:
            db.session.commit()
        except StaleDataError:
            db.session.rollback()
            raise GameLogicException("Round was updated by another request", status_code=409)
        except Exception:
            db.session.rollback()
            raise
        balance = ledger.get_balance(current_user.id)

    current_app.logger.info(
        f"User {current_user.id} blackjack round {bj_round.id}: {player_action} -> {new_state['status']}"
    )
    return jsonify(_round_response(game.id, bj_round, new_state, balance, net_win)), 200
