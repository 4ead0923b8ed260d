from decimal import Decimal, InvalidOperation
from marshmallow import Schema, fields, ValidationError, validates_schema, EXCLUDE
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field
from marshmallow.validate import OneOf, Range, Length, Regexp
import re

from .models import User, Game, Transaction, GameSession
from .utils.money import format_cents, cents_to_number, CENT, MAX_AMOUNT
from .utils.roulette_helper import BET_TYPES
from .utils.blackjack_helper import ACTIONS
from .utils.security import validate_password_strength


# --- Validators ---

def validate_username(username):
    if not re.match(r'^[a-zA-Z0-9_]+$', username):
        raise ValidationError('Username can only contain letters, numbers, and underscores.')
    return username


def validate_password(password):
    errors = validate_password_strength(password)
    if errors:
        raise ValidationError(errors)


def validate_positive_amount(amount):
    """USDT amounts: strictly positive, at most two decimal places."""
    if amount <= 0:
        raise ValidationError('Amount must be positive.')
    try:
        quantized = amount.quantize(CENT)
    except InvalidOperation:
        raise ValidationError('Amount is too large.')
    if amount != quantized:
        raise ValidationError('Amount cannot have more than 2 decimal places.')


def _amount_field(**kwargs):
    validators = [Range(max=MAX_AMOUNT, error='Amount cannot exceed {max}.'), validate_positive_amount]
    return fields.Decimal(required=True, allow_nan=False, validate=validators, **kwargs)


# --- Model schemas ---

class UserSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = User
        load_instance = False
        fields = ('id', 'username', 'email', 'balance', 'is_admin', 'created_at')

    balance = fields.Method('get_balance', dump_only=True)
    is_admin = auto_field(data_key='isAdmin', dump_only=True)
    created_at = auto_field(data_key='createdAt', dump_only=True)

    def get_balance(self, obj):
        return format_cents(obj.balance)


class GameSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Game
        load_instance = False
        fields = ('id', 'name', 'game_type', 'description', 'min_bet', 'max_bet', 'house_edge', 'is_active')

    game_type = auto_field(data_key='type', dump_only=True)
    min_bet = fields.Method('get_min_bet', data_key='minBet', dump_only=True)
    max_bet = fields.Method('get_max_bet', data_key='maxBet', dump_only=True)
    house_edge = fields.Method('get_house_edge', data_key='houseEdge', dump_only=True)
    is_active = auto_field(data_key='isActive', dump_only=True)

    def get_min_bet(self, obj):
        return cents_to_number(obj.min_bet)

    def get_max_bet(self, obj):
        return cents_to_number(obj.max_bet)

    def get_house_edge(self, obj):
        return float(obj.house_edge)


class TransactionSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Transaction
        load_instance = False
        include_fk = True
        fields = ('id', 'user_id', 'amount', 'transaction_type', 'status', 'tx_hash',
                  'game_id', 'address', 'created_at')

    user_id = auto_field(data_key='userId', dump_only=True)
    amount = fields.Method('get_amount', dump_only=True)
    transaction_type = auto_field(data_key='type', dump_only=True)
    tx_hash = auto_field(data_key='txHash', dump_only=True)
    game_id = auto_field(data_key='gameId', dump_only=True)
    address = fields.Method('get_address', dump_only=True)
    created_at = auto_field(data_key='createdAt', dump_only=True)

    def get_amount(self, obj):
        return format_cents(obj.amount)

    def get_address(self, obj):
        return (obj.details or {}).get('address')


class AdminTransactionSchema(TransactionSchema):
    class Meta(TransactionSchema.Meta):
        fields = TransactionSchema.Meta.fields + ('username',)

    username = fields.Function(lambda obj: obj.user.username if obj.user else None, dump_only=True)


class RecentWinSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = GameSession
        load_instance = False
        fields = ('username', 'game_name', 'amount', 'created_at')

    username = fields.Function(lambda obj: obj.user.username, dump_only=True)
    game_name = fields.Function(lambda obj: obj.game.name, data_key='gameName', dump_only=True)
    amount = fields.Function(lambda obj: cents_to_number(obj.win), dump_only=True)
    created_at = auto_field(data_key='createdAt', dump_only=True)


# --- Request schemas ---

class RegisterSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    username = fields.Str(required=True, validate=[Length(min=3, max=30), validate_username])
    email = fields.Email(required=True, validate=Length(max=120))
    password = fields.Str(required=True, load_only=True, validate=[Length(max=128), validate_password])


class LoginSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    username = fields.Str(required=True)
    password = fields.Str(required=True, load_only=True)


class PlayRequestSchema(Schema):
    """Slots spin and blackjack deal."""
    class Meta:
        unknown = EXCLUDE

    game_id = fields.Int(required=True, data_key='gameId', validate=Range(min=1))
    bet = _amount_field()


class RoulettePlayRequestSchema(PlayRequestSchema):
    bet_type = fields.Str(required=True, data_key='betType', validate=OneOf(BET_TYPES))
    bet_number = fields.Int(data_key='betNumber', allow_none=True, load_default=None)

    @validates_schema
    def validate_bet_number(self, data, **kwargs):
        if data.get('bet_type') != 'number':
            return
        number = data.get('bet_number')
        if number is None:
            raise ValidationError('betNumber is required for number bets.', 'betNumber')
        if not 0 <= number <= 36:
            raise ValidationError('betNumber must be between 0 and 36.', 'betNumber')


class BlackjackGameStateSchema(Schema):
    """Client echo of the round; only the round id is used, the server holds the real state."""
    class Meta:
        unknown = EXCLUDE

    round_id = fields.Int(required=True, data_key='roundId', validate=Range(min=1))


class BlackjackActionSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    game_id = fields.Int(required=True, data_key='gameId', validate=Range(min=1))
    action = fields.Str(required=True, validate=OneOf(ACTIONS))
    game_state = fields.Nested(BlackjackGameStateSchema, required=True, data_key='gameState')


class DepositSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    amount = _amount_field()
    tx_hash = fields.Str(data_key='txHash', allow_none=True, load_default=None, validate=Length(max=255))


class WithdrawSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    amount = _amount_field()
    address = fields.Str(required=True, validate=[Length(min=1, max=255),
                                                  Regexp(r'^\S+$', error='Address cannot contain whitespace.')])


class HouseEdgeSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    house_edge = fields.Decimal(required=True, data_key='houseEdge', allow_nan=False,
                                validate=Range(min=Decimal('0'), max=Decimal('100')))


class ProfitTargetSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    target_profit_percent = fields.Decimal(required=True, data_key='targetProfitPercent', allow_nan=False,
                                           validate=Range(min=Decimal('0'), max=Decimal('100')))
    apply_to_all_games = fields.Bool(data_key='applyToAllGames', load_default=False)


class GameStatusSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    is_active = fields.Bool(required=True, data_key='isActive')


class TransactionFilterSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    status = fields.Str(load_default=None, validate=OneOf(('pending', 'completed', 'rejected')))
    type = fields.Str(load_default=None, validate=OneOf(('deposit', 'withdrawal', 'win', 'loss')))
