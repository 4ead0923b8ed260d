from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, current_user

from cryptocasino.models import db
from cryptocasino.schemas import PlayRequestSchema
from cryptocasino.services import ledger
from cryptocasino.services.settlement import settle
from cryptocasino.utils import slots_helper
from cryptocasino.utils.money import to_cents, cents_to_number, format_cents

slots_bp = Blueprint('slots', __name__, url_prefix='/api/games/slots')


@slots_bp.route('/play', methods=['POST'])
@jwt_required()
def play():
    data = PlayRequestSchema().load(request.get_json(silent=True) or {})
    game = ledger.get_playable_game(data['game_id'], 'slots')
    bet_cents = to_cents(data['bet'])
    ledger.validate_bet_limits(game, bet_cents)

    outcome = slots_helper.resolve_spin(bet_cents, game.house_edge)
    payload = {
        'reels': outcome['reels'],
        'rawMultiplier': outcome['raw_multiplier'],
        'multiplier': float(outcome['multiplier']),
        'houseEdge': float(game.house_edge),
    }

    try:
        # Stake is taken first so the funds check is atomic with the debit
        ledger.apply_balance_delta(current_user.id, -bet_cents)
    except Exception:
        db.session.rollback()
        raise
    result = settle(current_user.id, game, bet_cents, payload, outcome['net_win'], held_cents=bet_cents)

    current_app.logger.info(
        f"User {current_user.id} spun slots game {game.id}: reels={outcome['reels']} net={outcome['net_win']}"
    )
    return jsonify({
        'reels': outcome['reels'],
        'bet': cents_to_number(bet_cents),
        'win': cents_to_number(outcome['net_win']),
        'multiplier': float(outcome['multiplier']),
        'balance': format_cents(result.new_balance),
    }), 200
