from flask_sqlalchemy import SQLAlchemy
from datetime import datetime, timezone
from passlib.hash import pbkdf2_sha256 as sha256
from sqlalchemy import BigInteger, JSON, CheckConstraint, Index

db = SQLAlchemy()

GAME_TYPES = ('slots', 'roulette', 'blackjack')
TRANSACTION_TYPES = ('deposit', 'withdrawal', 'win', 'loss')
TRANSACTION_STATUSES = ('pending', 'completed', 'rejected')


def _utcnow():
    return datetime.now(timezone.utc)


class User(db.Model):
    __tablename__ = 'user'
    __table_args__ = (
        CheckConstraint('balance >= 0', name='ck_user_balance_non_negative'),
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password = db.Column(db.String(255), nullable=False)
    balance = db.Column(BigInteger, default=0, nullable=False) # cents
    is_admin = db.Column(db.Boolean, default=False, nullable=False, index=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    game_sessions = db.relationship('GameSession', back_populates='user', lazy=True)
    transactions = db.relationship('Transaction', back_populates='user', lazy=True)
    blackjack_rounds = db.relationship('BlackjackRound', back_populates='user', lazy=True)

    def check_password(self, password):
        return sha256.verify(password, self.password)

    @staticmethod
    def hash_password(password):
        return sha256.hash(password)

    @staticmethod
    def verify_password(hashed_password, password):
        return sha256.verify(password, hashed_password)

    def __repr__(self):
        return f"<User {self.username}>"


class Game(db.Model):
    __tablename__ = 'game'
    __table_args__ = (
        CheckConstraint('house_edge >= 0 AND house_edge <= 100', name='ck_game_house_edge_range'),
        CheckConstraint('min_bet <= max_bet', name='ck_game_bet_bounds'),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    game_type = db.Column(db.String(20), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    min_bet = db.Column(BigInteger, nullable=False) # cents
    max_bet = db.Column(BigInteger, nullable=False) # cents
    house_edge = db.Column(db.Numeric(5, 2), nullable=False, default=50) # percent
    is_active = db.Column(db.Boolean, default=True, nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    game_sessions = db.relationship('GameSession', back_populates='game', lazy=True)

    def __repr__(self):
        return f"<Game {self.name} ({self.game_type}, edge {self.house_edge}%)>"


class GameSession(db.Model):
    """One settled round. Created in the same database transaction as its balance delta."""
    __tablename__ = 'game_session'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    round_key = db.Column(db.String(64), unique=True, nullable=False)
    bet = db.Column(BigInteger, nullable=False) # cents
    result = db.Column(JSON, nullable=False)
    win = db.Column(BigInteger, nullable=False) # signed net, cents
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)

    user = db.relationship('User', back_populates='game_sessions')
    game = db.relationship('Game', back_populates='game_sessions')
    transaction = db.relationship('Transaction', back_populates='game_session', uselist=False)

    def __repr__(self):
        return f"<GameSession {self.id} (User: {self.user_id}, Game: {self.game_id}, Win: {self.win})>"


class Transaction(db.Model):
    __tablename__ = 'transaction'
    __table_args__ = (
        Index('ix_transaction_type_status', 'transaction_type', 'status'),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    amount = db.Column(BigInteger, nullable=False) # signed, cents
    transaction_type = db.Column(db.String(20), nullable=False, index=True)
    status = db.Column(db.String(20), default='pending', nullable=False, index=True)
    tx_hash = db.Column(db.String(255), nullable=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=True, index=True)
    game_session_id = db.Column(db.Integer, db.ForeignKey('game_session.id'), nullable=True, unique=True)
    details = db.Column(JSON, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    user = db.relationship('User', back_populates='transactions')
    game = db.relationship('Game')
    game_session = db.relationship('GameSession', back_populates='transaction')

    def __repr__(self):
        return f"<Transaction {self.id} (User: {self.user_id}, Type: {self.transaction_type}, Amount: {self.amount})>"


class BlackjackRound(db.Model):
    """Server-side state of a blackjack hand; the client only ever sees a masked view."""
    __tablename__ = 'blackjack_round'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    bet = db.Column(BigInteger, nullable=False) # cents, doubled on double down
    stake_held = db.Column(BigInteger, default=0, nullable=False) # cents debited while in progress
    deck = db.Column(JSON, nullable=False)
    player_hand = db.Column(JSON, nullable=False)
    dealer_hand = db.Column(JSON, nullable=False)
    actions = db.Column(JSON, nullable=False, default=list)
    status = db.Column(db.String(20), nullable=False, index=True)
    is_doubled = db.Column(db.Boolean, default=False, nullable=False)
    version = db.Column(db.Integer, nullable=False)
    game_session_id = db.Column(db.Integer, db.ForeignKey('game_session.id'), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    user = db.relationship('User', back_populates='blackjack_rounds')
    game = db.relationship('Game')
    game_session = db.relationship('GameSession')

    __mapper_args__ = {'version_id_col': version}

    @property
    def round_key(self):
        return f"blackjack:{self.id}"

    def __repr__(self):
        return f"<BlackjackRound {self.id} (User: {self.user_id}, Status: {self.status})>"


class TokenBlacklist(db.Model):
    __tablename__ = 'token_blacklist'
    id = db.Column(db.Integer, primary_key=True)
    jti = db.Column(db.String(36), nullable=False, unique=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self):
        return f"<TokenBlacklist {self.jti}>"
