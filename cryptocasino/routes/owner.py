from flask import Blueprint, request, jsonify
from flask_jwt_extended import current_user

from cryptocasino.schemas import GameSchema, HouseEdgeSchema, ProfitTargetSchema
from cryptocasino.services import house_edge
from cryptocasino.utils.decorators import owner_required
from cryptocasino.utils.house_edge import format_percent
from cryptocasino.utils.security_logger import SecurityLogger

owner_bp = Blueprint('owner', __name__, url_prefix='/api/owner')


@owner_bp.route('/set-global-house-edge', methods=['POST'])
@owner_required
def set_global_house_edge():
    data = HouseEdgeSchema().load(request.get_json(silent=True) or {})
    games = house_edge.set_global_house_edge(data['house_edge'], owner_id=current_user.id)
    SecurityLogger.log_admin_event('global_house_edge_updated', current_user.id, action='set_global_house_edge',
                                   details={'house_edge': str(data['house_edge']), 'games': len(games)})
    return jsonify({
        'success': True,
        'message': f"House edge set to {format_percent(data['house_edge'])} for all active games",
        'games': GameSchema(many=True).dump(games),
    }), 200


@owner_bp.route('/set-profit-target', methods=['POST'])
@owner_required
def set_profit_target():
    data = ProfitTargetSchema().load(request.get_json(silent=True) or {})
    result = house_edge.set_profit_target(
        data['target_profit_percent'], apply_to_all=data['apply_to_all_games'], owner_id=current_user.id
    )
    if data['apply_to_all_games']:
        SecurityLogger.log_admin_event('profit_target_applied', current_user.id, action='set_profit_target',
                                       details=result)
    return jsonify(result), 200

