from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, current_user

from cryptocasino.models import db
from cryptocasino.schemas import RoulettePlayRequestSchema
from cryptocasino.services import ledger
from cryptocasino.services.settlement import settle
from cryptocasino.utils import roulette_helper
from cryptocasino.utils.money import to_cents, cents_to_number, format_cents

roulette_bp = Blueprint('roulette', __name__, url_prefix='/api/games/roulette')


@roulette_bp.route('/play', methods=['POST'])
@jwt_required()
def play():
    data = RoulettePlayRequestSchema().load(request.get_json(silent=True) or {})
    game = ledger.get_playable_game(data['game_id'], 'roulette')
    bet_cents = to_cents(data['bet'])
    ledger.validate_bet_limits(game, bet_cents)

    bet_type = data['bet_type']
    bet_number = data['bet_number'] if bet_type == 'number' else None
    outcome = roulette_helper.resolve_spin(bet_cents, bet_type, bet_number, game.house_edge)
    payload = {
        'result': outcome['result'],
        'isRed': outcome['is_red'],
        'betType': bet_type,
        'betNumber': bet_number,
        'won': outcome['won'],
        'multiplier': float(outcome['multiplier']),
        'houseEdge': float(game.house_edge),
    }

    try:
        ledger.apply_balance_delta(current_user.id, -bet_cents)
    except Exception:
        db.session.rollback()
        raise
    result = settle(current_user.id, game, bet_cents, payload, outcome['net_win'], held_cents=bet_cents)

    current_app.logger.info(
        f"User {current_user.id} played roulette game {game.id}: {bet_type} "
        f"{bet_number if bet_number is not None else ''} -> {outcome['result']} net={outcome['net_win']}"
    )
    return jsonify({
        'result': outcome['result'],
        'isRed': outcome['is_red'],
        'bet': cents_to_number(bet_cents),
        'betType': bet_type,
        'betNumber': bet_number,
        'win': cents_to_number(outcome['net_win']),
        'multiplier': float(outcome['multiplier']),
        'balance': format_cents(result.new_balance),
    }), 200
