"""
Simulated USDT wallet: deposits, withdrawals and the admin review of withdrawals.

Withdrawn funds leave the balance as soon as the request is made and are
only returned if an admin rejects the withdrawal.
"""
from flask import current_app

from cryptocasino.models import db
from cryptocasino.exceptions import ValidationException
from cryptocasino.error_codes import ErrorCodes
from cryptocasino.services import ledger
from cryptocasino.utils.money import to_cents
from cryptocasino.utils.security_logger import SecurityLogger


def _require_positive(amount_cents):
    if amount_cents <= 0:
        raise ValidationException("Amount must be positive", details={'amount': 'Amount must be positive.'})


def deposit(user_id, amount, tx_hash=None):
    """Returns ``(transaction, new_balance_cents)``."""
    amount_cents = to_cents(amount)
    _require_positive(amount_cents)

    try:
        transaction = ledger.record_transaction(
            user_id=user_id,
            amount_cents=amount_cents,
            transaction_type='deposit',
            status='completed',
            tx_hash=tx_hash,
        )
        new_balance = ledger.apply_balance_delta(user_id, amount_cents)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(f"User {user_id} deposited {amount_cents} cents (transaction {transaction.id})")
    SecurityLogger.log_financial_event('deposit', user_id, amount=amount_cents, balance_after=new_balance,
                                       transaction_id=transaction.id, details={'tx_hash': tx_hash})
    return transaction, new_balance


def withdraw(user_id, amount, address):
    """
    Debits the balance immediately and records a pending withdrawal.
    Returns ``(transaction, new_balance_cents)``.
    """
    amount_cents = to_cents(amount)
    _require_positive(amount_cents)

    try:
        new_balance = ledger.apply_balance_delta(user_id, -amount_cents)
        transaction = ledger.record_transaction(
            user_id=user_id,
            amount_cents=-amount_cents,
            transaction_type='withdrawal',
            status='pending',
            details={'address': address},
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(f"User {user_id} requested withdrawal of {amount_cents} cents to {address}")
    SecurityLogger.log_financial_event('withdrawal_requested', user_id, amount=-amount_cents,
                                       balance_after=new_balance, transaction_id=transaction.id,
                                       details={'address': address})
    return transaction, new_balance


def _review_withdrawal(transaction_id, to_status):
    transaction = ledger.get_transaction_or_404(transaction_id)
    moved = ledger.transition_transaction_status(transaction_id, 'withdrawal', 'pending', to_status)
    if not moved:
        db.session.rollback()
        raise ValidationException(
            "Only pending withdrawals can be reviewed",
            details={'transactionId': transaction_id, 'type': transaction.transaction_type,
                     'status': transaction.status},
            error_code=ErrorCodes.INVALID_TRANSACTION_STATE
        )
    return transaction


def approve_withdrawal(transaction_id, admin_id=None):
    """Marks a pending withdrawal completed. The funds were already debited at request time."""
    try:
        transaction = _review_withdrawal(transaction_id, 'completed')
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(f"Withdrawal {transaction_id} approved by admin {admin_id}")
    SecurityLogger.log_admin_event('withdrawal_approved', admin_id, target_user_id=transaction.user_id,
                                   action='approve', details={'transaction_id': transaction_id})
    return transaction


def reject_withdrawal(transaction_id, admin_id=None):
    """
    Marks a pending withdrawal rejected and refunds it. The status flip is
    conditional, so a withdrawal is refunded at most once.
    Returns ``(transaction, new_balance_cents)``.
    """
    try:
        transaction = _review_withdrawal(transaction_id, 'rejected')
        refund = abs(transaction.amount)
        new_balance = ledger.apply_balance_delta(transaction.user_id, refund)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(f"Withdrawal {transaction_id} rejected by admin {admin_id}, refunded {refund} cents")
    SecurityLogger.log_admin_event('withdrawal_rejected', admin_id, target_user_id=transaction.user_id,
                                   action='reject', details={'transaction_id': transaction_id})
    SecurityLogger.log_financial_event('withdrawal_refunded', transaction.user_id, amount=refund,
                                       balance_after=new_balance, transaction_id=transaction_id)
    return transaction, new_balance
