"""
Ledger store: balances, transactions and game sessions.

``apply_balance_delta`` is the only code path that writes ``User.balance``.
It is a single conditional UPDATE, so the sufficient-funds check and the
write happen atomically in the database rather than as a read-modify-write
in Python. Nothing in this module commits; callers own the unit of work.
"""
from sqlalchemy import select, update
from sqlalchemy.orm import joinedload

from cryptocasino.models import db, User, Game, Transaction, GameSession
from cryptocasino.exceptions import (
    NotFoundException, InsufficientFundsException, InactiveGameException, ValidationException
)
from cryptocasino.error_codes import ErrorCodes
from cryptocasino.utils.money import format_cents


def _expire_cached(model, ident, *attrs):
    cached = db.session.identity_map.get(db.session.identity_key(model, ident))
    if cached is not None:
        db.session.expire(cached, list(attrs) or None)


def get_balance(user_id):
    balance = db.session.scalar(select(User.balance).where(User.id == user_id))
    if balance is None:
        raise NotFoundException("User not found")
    return balance


def apply_balance_delta(user_id, delta_cents, floor_cents=0):
    """
    Adds ``delta_cents`` to the user's balance provided the result stays at or
    above ``floor_cents``. Returns the new balance in cents.

    Raises InsufficientFundsException when the floor would be crossed and
    NotFoundException for an unknown user.
    """
    delta_cents = int(delta_cents)
    stmt = (
        update(User)
        .where(User.id == user_id, User.balance + delta_cents >= floor_cents)
        .values(balance=User.balance + delta_cents)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    _expire_cached(User, user_id, 'balance')

    if result.rowcount == 0:
        current = get_balance(user_id)
        raise InsufficientFundsException(
            "Insufficient balance",
            details={'balance': format_cents(current), 'required': format_cents(-delta_cents)}
        )
    return get_balance(user_id)


def get_game_or_404(game_id):
    game = db.session.get(Game, game_id)
    if game is None:
        raise NotFoundException("Game not found")
    return game


def get_playable_game(game_id, game_type):
    """An active game of the expected type, or the matching error."""
    game = db.session.get(Game, game_id)
    if game is None:
        raise NotFoundException("Game not found")
    if not game.is_active:
        raise InactiveGameException()
    if game.game_type != game_type:
        raise ValidationException(
            f"Game {game_id} is not a {game_type} game",
            error_code=ErrorCodes.GAME_TYPE_MISMATCH
        )
    return game


def validate_bet_limits(game, bet_cents):
    if bet_cents < game.min_bet or bet_cents > game.max_bet:
        raise ValidationException(
            f"Bet must be between {format_cents(game.min_bet)} and {format_cents(game.max_bet)}",
            details={'minBet': format_cents(game.min_bet), 'maxBet': format_cents(game.max_bet)}
        )


def list_games(active_only=True):
    stmt = select(Game).order_by(Game.id)
    if active_only:
        stmt = stmt.where(Game.is_active.is_(True))
    return db.session.scalars(stmt).all()


def record_transaction(user_id, amount_cents, transaction_type, status, tx_hash=None,
                       game_id=None, game_session_id=None, details=None):
    transaction = Transaction(
        user_id=user_id,
        amount=amount_cents,
        transaction_type=transaction_type,
        status=status,
        tx_hash=tx_hash,
        game_id=game_id,
        game_session_id=game_session_id,
        details=details,
    )
    db.session.add(transaction)
    db.session.flush()
    return transaction


def get_transaction_or_404(transaction_id):
    transaction = db.session.get(Transaction, transaction_id)
    if transaction is None:
        raise NotFoundException("Transaction not found")
    return transaction


def transition_transaction_status(transaction_id, transaction_type, from_status, to_status):
    """
    Moves a transaction between statuses only if it is still in ``from_status``.
    Returns True when this call performed the transition.
    """
    stmt = (
        update(Transaction)
        .where(
            Transaction.id == transaction_id,
            Transaction.transaction_type == transaction_type,
            Transaction.status == from_status,
        )
        .values(status=to_status)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    _expire_cached(Transaction, transaction_id, 'status', 'updated_at')
    return result.rowcount == 1


def list_user_transactions(user_id, limit=100):
    stmt = (
        select(Transaction)
        .where(Transaction.user_id == user_id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(limit)
    )
    return db.session.scalars(stmt).all()


def list_transactions(status=None, transaction_type=None, limit=500):
    stmt = (
        select(Transaction)
        .options(joinedload(Transaction.user))
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(limit)
    )
    if status:
        stmt = stmt.where(Transaction.status == status)
    if transaction_type:
        stmt = stmt.where(Transaction.transaction_type == transaction_type)
    return db.session.scalars(stmt).all()


def session_exists(round_key):
    return db.session.scalar(select(GameSession.id).where(GameSession.round_key == round_key)) is not None


def recent_wins(limit=10):
    stmt = (
        select(GameSession)
        .options(joinedload(GameSession.user), joinedload(GameSession.game))
        .where(GameSession.win > 0)
        .order_by(GameSession.created_at.desc(), GameSession.id.desc())
        .limit(limit)
    )
    return db.session.scalars(stmt).all()
