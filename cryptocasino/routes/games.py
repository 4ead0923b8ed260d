from flask import Blueprint, jsonify, current_app

from cryptocasino.schemas import GameSchema, RecentWinSchema
from cryptocasino.services import ledger

games_bp = Blueprint('games', __name__, url_prefix='/api')


@games_bp.route('/games', methods=['GET'])
def list_games():
    """Active games for the lobby."""
    return jsonify(GameSchema(many=True).dump(ledger.list_games(active_only=True))), 200


@games_bp.route('/recent-wins', methods=['GET'])
def recent_wins():
    limit = current_app.config.get('RECENT_WINS_LIMIT', 10)
    return jsonify(RecentWinSchema(many=True).dump(ledger.recent_wins(limit))), 200
