from datetime import datetime, timezone
from sqlalchemy import select

from cryptocasino.models import db, User, TokenBlacklist


def user_identity_lookup(user):
    return str(user.id)


def user_lookup_callback(_jwt_header, jwt_data):
    identity = jwt_data["sub"]
    user = db.session.get(User, int(identity))
    if user is None or not user.is_active:
        return None
    return user


def check_if_token_in_blacklist(jwt_header, jwt_payload):
    jti = jwt_payload['jti']
    token_id = db.session.scalar(select(TokenBlacklist.id).filter_by(jti=jti))
    return token_id is not None


def revoke_token(jti, expires_at):
    """Adds a token id to the blacklist; the caller commits."""
    db.session.add(TokenBlacklist(jti=jti, created_at=datetime.now(timezone.utc), expires_at=expires_at))


def register_jwt_handlers(jwt):
    jwt.user_identity_loader(user_identity_lookup)
    jwt.user_lookup_loader(user_lookup_callback)
    jwt.token_in_blocklist_loader(check_if_token_in_blacklist)
