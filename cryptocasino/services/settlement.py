"""
Settlement coordinator.

Applies a resolved round to the ledger as one database transaction:
the GameSession row, the balance delta and the derived win/loss
Transaction are committed together or not at all.
"""
import uuid
from collections import namedtuple

from flask import current_app
from sqlalchemy.exc import IntegrityError

from cryptocasino.models import db, GameSession
from cryptocasino.exceptions import DuplicateSettlementException
from cryptocasino.services import ledger
from cryptocasino.services.live_feed import publish_recent_win
from cryptocasino.utils.security_logger import SecurityLogger

SettlementResult = namedtuple('SettlementResult', ['session', 'transaction', 'new_balance'])


def new_round_key(game_type):
    return f"{game_type}:{uuid.uuid4().hex}"


def settle(user_id, game, bet_cents, outcome_payload, net_win_cents, round_key=None, held_cents=0,
           round_record=None):
    """
    Persists a resolved round and moves the money.

    ``net_win_cents`` is the round's signed result (negative includes the lost
    bet). ``held_cents`` is stake already debited while the round was open;
    it is released here so the round's total balance effect is exactly the
    net win. Any changes the caller staged on ``db.session`` beforehand are
    committed in the same transaction. ``round_record`` (a BlackjackRound) is linked to
    the new session.

    Raises DuplicateSettlementException if ``round_key`` was already settled.
    """
    round_key = round_key or new_round_key(game.game_type)

    try:
        if ledger.session_exists(round_key):
            raise DuplicateSettlementException(details={'roundKey': round_key})

        session = GameSession(
            user_id=user_id,
            game_id=game.id,
            round_key=round_key,
            bet=bet_cents,
            result=outcome_payload,
            win=net_win_cents,
        )
        db.session.add(session)
        db.session.flush()

        new_balance = ledger.apply_balance_delta(user_id, net_win_cents + held_cents)

        transaction = ledger.record_transaction(
            user_id=user_id,
            amount_cents=net_win_cents,
            transaction_type='win' if net_win_cents > 0 else 'loss',
            status='completed',
            game_id=game.id,
            game_session_id=session.id,
        )
        if round_record is not None:
            round_record.game_session_id = session.id
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        if not ledger.session_exists(round_key):
            raise
        current_app.logger.warning(f"Settlement rejected, round {round_key} already recorded for user {user_id}")
        raise DuplicateSettlementException(details={'roundKey': round_key})
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(
        f"Settled {game.game_type} round {round_key} for user {user_id}: bet={bet_cents} net={net_win_cents}"
    )
    SecurityLogger.log_game_event(
        'round_settled',
        user_id=user_id,
        game_type=game.game_type,
        bet_amount=bet_cents,
        win_amount=net_win_cents,
        game_session_id=session.id,
        details={'round_key': round_key, 'balance_after_cents': new_balance},
    )
    if net_win_cents > 0:
        publish_recent_win(session)

    return SettlementResult(session=session, transaction=transaction, new_balance=new_balance)
