"""House edge configuration for individual games and the whole catalogue."""
from flask import current_app
from sqlalchemy import select

from cryptocasino.models import db, Game
from cryptocasino.services import ledger
from cryptocasino.utils.house_edge import (
    validate_house_edge, profit_target_to_house_edge, format_percent
)
from cryptocasino.exceptions import ValidationException


def get_house_edge(game_id):
    return ledger.get_game_or_404(game_id).house_edge


def set_house_edge(game_id, percentage, admin_id=None):
    edge = validate_house_edge(percentage)
    game = ledger.get_game_or_404(game_id)
    try:
        game.house_edge = edge
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info(f"House edge for game {game_id} set to {edge}% by {admin_id}")
    return game


def _apply_to_active_games(edge):
    games = db.session.scalars(select(Game).where(Game.is_active.is_(True)).order_by(Game.id)).all()
    try:
        for game in games:
            game.house_edge = edge
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return games


def set_global_house_edge(percentage, owner_id=None):
    """Applies one edge to every active game. Returns the updated games."""
    edge = validate_house_edge(percentage)
    games = _apply_to_active_games(edge)
    current_app.logger.info(f"Global house edge set to {edge}% on {len(games)} games by {owner_id}")
    return games


def set_profit_target(target_percent, apply_to_all=False, owner_id=None):
    """
    Converts a target profit percentage into a house edge (see
    ``profit_target_to_house_edge`` for the formula and its limits) and
    optionally applies it to every active game.
    """
    try:
        target = validate_house_edge(target_percent)
    except ValidationException:
        raise ValidationException("Target profit must be between 0 and 100",
                                  details={'targetProfitPercent': str(target_percent)})
    edge = profit_target_to_house_edge(target)

    if apply_to_all:
        games = _apply_to_active_games(edge)
        current_app.logger.info(
            f"Profit target {target}% applied as house edge {edge}% to {len(games)} games by {owner_id}"
        )
        return {
            'success': True,
            'message': f"Profit target of {target.normalize():f}% applied to all games",
            'appliedHouseEdge': format_percent(edge),
        }

    return {
        'success': True,
        'message': "Calculated house edge",
        'calculatedHouseEdge': format_percent(edge),
        'targetProfitPercent': f"{target.normalize():f}%",
    }


def set_game_status(game_id, is_active, owner_id=None):
    game = ledger.get_game_or_404(game_id)
    try:
        game.is_active = bool(is_active)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info(f"Game {game_id} {'activated' if game.is_active else 'deactivated'} by {owner_id}")
    return game
