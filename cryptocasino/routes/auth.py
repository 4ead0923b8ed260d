from datetime import datetime, timezone

from flask import Blueprint, request, jsonify, current_app, make_response
from flask_jwt_extended import (
    create_access_token, jwt_required, get_jwt, current_user,
    set_access_cookies, unset_jwt_cookies
)
from sqlalchemy import select

from cryptocasino.models import db, User
from cryptocasino.schemas import UserSchema, RegisterSchema, LoginSchema
from cryptocasino.exceptions import AuthenticationException, ValidationException
from cryptocasino.utils.auth import revoke_token
from cryptocasino.utils.security_logger import SecurityLogger

auth_bp = Blueprint('auth', __name__, url_prefix='/api')


def _token_response(user, status_code):
    access_token = create_access_token(identity=user)
    response = make_response(jsonify({
        'status': True,
        'user': UserSchema().dump(user),
        'access_token': access_token,
    }), status_code)
    set_access_cookies(response, access_token)
    return response


@auth_bp.route('/register', methods=['POST'])
def register():
    validated_data = RegisterSchema().load(request.get_json(silent=True) or {})

    if db.session.scalar(select(User.id).filter_by(username=validated_data['username'])) is not None:
        raise ValidationException(
            status_message="Username already taken.",
            details={'username': 'Username already taken.'}
        )
    if db.session.scalar(select(User.id).filter_by(email=validated_data['email'])) is not None:
        raise ValidationException(
            status_message="Email already registered.",
            details={'email': 'Email already exists.'}
        )

    try:
        new_user = User(
            username=validated_data['username'],
            email=validated_data['email'],
            password=User.hash_password(validated_data['password']),
            balance=0,
        )
        db.session.add(new_user)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    SecurityLogger.log_authentication_event('register', user_id=new_user.id, username=new_user.username)
    current_app.logger.info(f"User registered: {new_user.username} (ID: {new_user.id})")
    return _token_response(new_user, 201)


@auth_bp.route('/login', methods=['POST'])
def login():
    validated_data = LoginSchema().load(request.get_json(silent=True) or {})

    user = db.session.scalar(select(User).filter_by(username=validated_data['username']))
    if not user or not user.is_active or not User.verify_password(user.password, validated_data['password']):
        SecurityLogger.log_authentication_event('login', username=validated_data['username'], success=False)
        raise AuthenticationException(status_message="Invalid username or password.")

    user.last_login_at = datetime.now(timezone.utc)
    db.session.commit()

    SecurityLogger.log_authentication_event('login', user_id=user.id, username=user.username)
    current_app.logger.info(f"User logged in: {user.username} (ID: {user.id})")
    return _token_response(user, 200)


@auth_bp.route('/logout', methods=['POST'])
@jwt_required()
def logout():
    token = get_jwt()
    try:
        revoke_token(token['jti'], datetime.fromtimestamp(token['exp'], tz=timezone.utc))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    SecurityLogger.log_authentication_event('logout', user_id=current_user.id, username=current_user.username)
    response = make_response(jsonify({'status': True, 'message': 'Successfully logged out'}), 200)
    unset_jwt_cookies(response)
    return response


@auth_bp.route('/user', methods=['GET'])
@jwt_required()
def get_current_user():
    return jsonify({'status': True, 'user': UserSchema().dump(current_user)}), 200
