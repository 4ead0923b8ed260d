from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, current_user

from cryptocasino.schemas import DepositSchema, WithdrawSchema, TransactionSchema
from cryptocasino.services import ledger, wallet
from cryptocasino.utils.money import format_cents

transactions_bp = Blueprint('transactions', __name__, url_prefix='/api/transactions')


@transactions_bp.route('', methods=['GET'])
@jwt_required()
def list_transactions():
    transactions = ledger.list_user_transactions(current_user.id)
    return jsonify(TransactionSchema(many=True).dump(transactions)), 200


@transactions_bp.route('/deposit', methods=['POST'])
@jwt_required()
def deposit():
    data = DepositSchema().load(request.get_json(silent=True) or {})
    transaction, balance = wallet.deposit(current_user.id, data['amount'], data.get('tx_hash'))
    return jsonify({
        'transaction': TransactionSchema().dump(transaction),
        'balance': format_cents(balance),
    }), 200


@transactions_bp.route('/withdraw', methods=['POST'])
@jwt_required()
def withdraw():
    data = WithdrawSchema().load(request.get_json(silent=True) or {})
    transaction, balance = wallet.withdraw(current_user.id, data['amount'], data['address'])
    current_app.logger.info(f"Withdrawal {transaction.id} pending review for user {current_user.id}")
    return jsonify({
        'transaction': TransactionSchema().dump(transaction),
        'balance': format_cents(balance),
    }), 200
