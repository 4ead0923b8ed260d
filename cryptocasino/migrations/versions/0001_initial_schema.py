"""initial schema: users, games, sessions, ledger, blackjack rounds

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('balance', sa.BigInteger(), nullable=False),  # cents
        sa.Column('is_admin', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('balance >= 0', name='ck_user_balance_non_negative'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_user_username', 'user', ['username'], unique=True)
    op.create_index('ix_user_email', 'user', ['email'], unique=True)
    op.create_index('ix_user_is_admin', 'user', ['is_admin'], unique=False)

    op.create_table(
        'game',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('game_type', sa.String(length=20), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('min_bet', sa.BigInteger(), nullable=False),  # cents
        sa.Column('max_bet', sa.BigInteger(), nullable=False),  # cents
        sa.Column('house_edge', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('house_edge >= 0 AND house_edge <= 100', name='ck_game_house_edge_range'),
        sa.CheckConstraint('min_bet <= max_bet', name='ck_game_bet_bounds'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )
    op.create_index('ix_game_game_type', 'game', ['game_type'], unique=False)
    op.create_index('ix_game_is_active', 'game', ['is_active'], unique=False)

    op.create_table(
        'game_session',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('round_key', sa.String(length=64), nullable=False),
        sa.Column('bet', sa.BigInteger(), nullable=False),
        sa.Column('result', sa.JSON(), nullable=False),
        sa.Column('win', sa.BigInteger(), nullable=False),  # signed net
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ),
        sa.ForeignKeyConstraint(['game_id'], ['game.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('round_key')
    )
    op.create_index('ix_game_session_user_id', 'game_session', ['user_id'], unique=False)
    op.create_index('ix_game_session_game_id', 'game_session', ['game_id'], unique=False)

    op.create_table(
        'transaction',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False),  # signed
        sa.Column('transaction_type', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('tx_hash', sa.String(length=255), nullable=True),
        sa.Column('game_id', sa.Integer(), nullable=True),
        sa.Column('game_session_id', sa.Integer(), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ),
        sa.ForeignKeyConstraint(['game_id'], ['game.id'], ),
        sa.ForeignKeyConstraint(['game_session_id'], ['game_session.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('game_session_id')
    )
    op.create_index('ix_transaction_user_id', 'transaction', ['user_id'], unique=False)
    op.create_index('ix_transaction_transaction_type', 'transaction', ['transaction_type'], unique=False)
    op.create_index('ix_transaction_status', 'transaction', ['status'], unique=False)
    op.create_index('ix_transaction_game_id', 'transaction', ['game_id'], unique=False)
    op.create_index('ix_transaction_created_at', 'transaction', ['created_at'], unique=False)
    op.create_index('ix_transaction_type_status', 'transaction', ['transaction_type', 'status'], unique=False)

    op.create_table(
        'blackjack_round',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('bet', sa.BigInteger(), nullable=False),
        sa.Column('stake_held', sa.BigInteger(), nullable=False),
        sa.Column('deck', sa.JSON(), nullable=False),
        sa.Column('player_hand', sa.JSON(), nullable=False),
        sa.Column('dealer_hand', sa.JSON(), nullable=False),
        sa.Column('actions', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('is_doubled', sa.Boolean(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('game_session_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ),
        sa.ForeignKeyConstraint(['game_id'], ['game.id'], ),
        sa.ForeignKeyConstraint(['game_session_id'], ['game_session.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_blackjack_round_user_id', 'blackjack_round', ['user_id'], unique=False)
    op.create_index('ix_blackjack_round_game_id', 'blackjack_round', ['game_id'], unique=False)
    op.create_index('ix_blackjack_round_status', 'blackjack_round', ['status'], unique=False)

    op.create_table(
        'token_blacklist',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('jti', sa.String(length=36), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_token_blacklist_jti', 'token_blacklist', ['jti'], unique=True)
    op.create_index('ix_token_blacklist_expires_at', 'token_blacklist', ['expires_at'], unique=False)


def downgrade():
    op.drop_index('ix_token_blacklist_expires_at', table_name='token_blacklist')
    op.drop_index('ix_token_blacklist_jti', table_name='token_blacklist')
    op.drop_table('token_blacklist')
    op.drop_index('ix_blackjack_round_status', table_name='blackjack_round')
    op.drop_index('ix_blackjack_round_game_id', table_name='blackjack_round')
    op.drop_index('ix_blackjack_round_user_id', table_name='blackjack_round')
    op.drop_table('blackjack_round')
    op.drop_index('ix_transaction_type_status', table_name='transaction')
    op.drop_index('ix_transaction_created_at', table_name='transaction')
    op.drop_index('ix_transaction_game_id', table_name='transaction')
    op.drop_index('ix_transaction_status', table_name='transaction')
    op.drop_index('ix_transaction_transaction_type', table_name='transaction')
    op.drop_index('ix_transaction_user_id', table_name='transaction')
    op.drop_table('transaction')
    op.drop_index('ix_game_session_game_id', table_name='game_session')
    op.drop_index('ix_game_session_user_id', table_name='game_session')
    op.drop_table('game_session')
    op.drop_index('ix_game_is_active', table_name='game')
    op.drop_index('ix_game_game_type', table_name='game')
    op.drop_table('game')
    op.drop_index('ix_user_is_admin', table_name='user')
    op.drop_index('ix_user_email', table_name='user')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_table('user')
