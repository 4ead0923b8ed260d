"""Idempotent bootstrap of the default game catalogue and the admin/owner accounts."""
from flask import current_app
from sqlalchemy import select, or_

from cryptocasino.models import db, Game, User
from cryptocasino.utils.money import to_cents

DEFAULT_GAMES = [
    {
        'name': 'Crypto Slots',
        'game_type': 'slots',
        'description': 'Spin three reels of crypto symbols. Match three sevens for 100x.',
        'min_bet': '1.00',
        'max_bet': '1000.00',
        'house_edge': 50,
    },
    {
        'name': 'Crypto Roulette',
        'game_type': 'roulette',
        'description': 'Single-zero roulette. Colours, parity, halves or a straight number bet.',
        'min_bet': '1.00',
        'max_bet': '500.00',
        'house_edge': 50,
    },
    {
        'name': 'Blackjack Pro',
        'game_type': 'blackjack',
        'description': 'Beat the dealer to 21. Blackjack pays 3 to 2.',
        'min_bet': '5.00',
        'max_bet': '1000.00',
        'house_edge': 50,
    },
]


def seed_default_games():
    """Creates each default game that does not exist yet (matched by name). Returns the created games."""
    created = []
    for entry in DEFAULT_GAMES:
        if db.session.scalar(select(Game.id).where(Game.name == entry['name'])) is not None:
            continue
        game = Game(
            name=entry['name'],
            game_type=entry['game_type'],
            description=entry['description'],
            min_bet=to_cents(entry['min_bet']),
            max_bet=to_cents(entry['max_bet']),
            house_edge=entry['house_edge'],
            is_active=True,
        )
        db.session.add(game)
        created.append(game)
    return created


def ensure_admin_account(username, email, password):
    """Creates an admin account unless one with that username or email exists. Returns it when created."""
    if not username or not password:
        return None
    existing = db.session.scalar(select(User).where(or_(User.username == username, User.email == email)))
    if existing is not None:
        return None
    user = User(
        username=username,
        email=email,
        password=User.hash_password(password),
        is_admin=True,
        balance=0,
    )
    db.session.add(user)
    return user


def run_seed(config=None):
    """Seeds games plus the configured admin and owner accounts in one commit."""
    config = config or current_app.config
    try:
        games = seed_default_games()
        accounts = [
            ensure_admin_account(config.get('ADMIN_USERNAME'), config.get('ADMIN_EMAIL'), config.get('ADMIN_PASSWORD')),
            ensure_admin_account(config.get('OWNER_USERNAME'), config.get('OWNER_EMAIL'), config.get('OWNER_PASSWORD')),
        ]
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    accounts = [a for a in accounts if a is not None]
    current_app.logger.info(f"Seed created {len(games)} games and {len(accounts)} accounts")
    return games, accounts
