from functools import wraps
from flask import current_app
from flask_jwt_extended import current_user, verify_jwt_in_request

from cryptocasino.exceptions import AuthorizationException


def is_admin(user):
    return bool(user and user.is_admin)


def is_owner(user):
    """The owner is the admin account whose username matches OWNER_USERNAME."""
    return is_admin(user) and user.username == current_app.config.get('OWNER_USERNAME', 'Owner')


def admin_required(f):
    """Requires a valid JWT belonging to an admin."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        verify_jwt_in_request()
        if not is_admin(current_user):
            current_app.logger.warning(f"Non-admin user {current_user.id} denied access to admin route.")
            raise AuthorizationException("Access denied")
        return f(*args, **kwargs)
    return decorated_function


def owner_required(f):
    """Requires a valid JWT belonging to the owner account."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        verify_jwt_in_request()
        if not is_owner(current_user):
            current_app.logger.warning(f"User {current_user.id} denied access to owner route.")
            raise AuthorizationException("Owner access required")
        return f(*args, **kwargs)
    return decorated_function
