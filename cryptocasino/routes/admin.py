from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import current_user

from cryptocasino.schemas import AdminTransactionSchema, TransactionSchema, GameSchema, HouseEdgeSchema, \
    TransactionFilterSchema, GameStatusSchema
from cryptocasino.services import ledger, wallet, house_edge
from cryptocasino.utils.decorators import admin_required, owner_required
from cryptocasino.utils.money import format_cents
from cryptocasino.utils.security_logger import SecurityLogger

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')


@admin_bp.route('/transactions', methods=['GET'])
@admin_required
def list_transactions():
    filters = TransactionFilterSchema().load(request.args.to_dict())
    transactions = ledger.list_transactions(status=filters['status'], transaction_type=filters['type'])
    return jsonify(AdminTransactionSchema(many=True).dump(transactions)), 200


@admin_bp.route('/transactions/<int:transaction_id>/approve', methods=['POST'])
@admin_required
def approve_transaction(transaction_id):
    transaction = wallet.approve_withdrawal(transaction_id, admin_id=current_user.id)
    return jsonify({
        'success': True,
        'transaction': TransactionSchema().dump(transaction),
    }), 200


@admin_bp.route('/transactions/<int:transaction_id>/reject', methods=['POST'])
@admin_required
def reject_transaction(transaction_id):
    transaction, balance = wallet.reject_withdrawal(transaction_id, admin_id=current_user.id)
    return jsonify({
        'success': True,
        'transaction': TransactionSchema().dump(transaction),
        'balance': format_cents(balance),
    }), 200


@admin_bp.route('/games/<int:game_id>/edge', methods=['POST'])
@admin_required
def update_house_edge(game_id):
    data = HouseEdgeSchema().load(request.get_json(silent=True) or {})
    game = house_edge.set_house_edge(game_id, data['house_edge'], admin_id=current_user.id)
    SecurityLogger.log_admin_event('house_edge_updated', current_user.id, action='set_house_edge',
                                   details={'game_id': game_id, 'house_edge': str(game.house_edge)})
    current_app.logger.info(f"Admin {current_user.id} set house edge of game {game_id} to {game.house_edge}%")
    return jsonify(GameSchema().dump(game)), 200


@admin_bp.route('/games/<int:game_id>/status', methods=['POST'])
@owner_required
def set_game_status(game_id):
    data = GameStatusSchema().load(request.get_json(silent=True) or {})
    game = house_edge.set_game_status(game_id, data['is_active'], owner_id=current_user.id)
    SecurityLogger.log_admin_event('game_status_updated', current_user.id, action='set_game_status',
                                   details={'game_id': game_id, 'is_active': game.is_active})
    return jsonify(GameSchema().dump(game)), 200
