from dotenv import load_dotenv
import os

# Load environment variables from .env file
load_dotenv()

from flask import Flask, request, jsonify, g, current_app
import uuid
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_cors import CORS
from flask_socketio import SocketIO
from flask_jwt_extended import JWTManager
from flask_jwt_extended.exceptions import NoAuthorizationError
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException as WerkzeugHTTPException
from flask_talisman import Talisman
from datetime import datetime, timezone
from http import HTTPStatus
import logging
from pythonjsonlogger import jsonlogger
from marshmallow import ValidationError
from sqlalchemy import select, delete, func
import click

from .models import db, User, TokenBlacklist
from .exceptions import AppException
from .error_codes import ErrorCodes
from .utils.security import secure_headers, validate_password_strength
from .utils.auth import register_jwt_handlers
from .services.live_feed import LiveFeed
from .services.seed import run_seed
from .config import Config

from .routes.auth import auth_bp
from .routes.games import games_bp
from .routes.transactions import transactions_bp
from .routes.admin import admin_bp
from .routes.owner import owner_bp
from .routes.slots import slots_bp
from .routes.roulette import roulette_bp
from .routes.blackjack import blackjack_bp

MIGRATIONS_DIRECTORY = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'migrations')


class RequestIdFilter(logging.Filter):
    def filter(self, record):
        try:
            record.request_id = g.get('request_id', 'N/A')
        except RuntimeError:
            record.request_id = 'N/A'
        return True


def _error_response(status_code, error_code, message, details=None, action_button=None, **extra):
    body = {
        'request_id': g.get('request_id', 'N/A'),
        'status': False,
        'error_code': error_code,
        'message': message,
        'status_message': message,
        'details': details if details is not None else {},
        'action_button': action_button,
    }
    body.update(extra)
    return jsonify(body), status_code


def create_app(config_class=Config):
    """Application factory. Returns ``(app, socketio)``."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    # --- Security Headers with Talisman ---
    csp = {
        'default-src': "'self'",
        'img-src': "'self' data: https:",
        'connect-src': "'self'",
        'frame-ancestors': "'none'"
    }
    Talisman(app,
             force_https=app.config.get('FORCE_HTTPS', not app.debug),
             strict_transport_security=True,
             content_security_policy=csp)

    # --- CORS ---
    allowed_origins = list(app.config.get('CORS_ORIGINS_LIST') or [])
    if app.debug:
        allowed_origins.extend(["http://localhost:8080", "http://127.0.0.1:8080"])

    if allowed_origins:
        CORS(app,
             origins=allowed_origins,
             supports_credentials=True,
             methods=['GET', 'POST', 'OPTIONS'],
             allow_headers=['Content-Type', 'Authorization', 'X-CSRF-Token'],
             expose_headers=['X-RateLimit-Limit', 'X-RateLimit-Remaining'],
             max_age=86400)
        app.logger.info(f"CORS configured for origins: {allowed_origins}")
    else:
        app.logger.warning("No CORS origins configured - API will reject cross-origin requests")

    # --- Logging ---
    if not app.debug:
        logger = app.logger
        handler = logging.StreamHandler()
        formatter = jsonlogger.JsonFormatter(
            '%(asctime)s %(levelname)s %(request_id)s %(module)s %(funcName)s %(lineno)d %(message)s'
        )
        handler.setFormatter(formatter)
        handler.addFilter(RequestIdFilter())
        if logger.hasHandlers():
            logger.handlers.clear()
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    elif not app.logger.handlers:
        logging.basicConfig(level=logging.DEBUG)

    @app.before_request
    def assign_request_id():
        g.request_id = request.headers.get('X-Request-ID') or str(uuid.uuid4())

    @app.after_request
    def security_headers_middleware(response):
        response.headers['X-Request-ID'] = g.get('request_id', 'N/A')
        return secure_headers(response)

    log_production_warnings(app)

    # --- Rate Limiter ---
    if app.config.get("TESTING"):
        app.config['RATELIMIT_ENABLED'] = False
        app.config['RATELIMIT_DEFAULT_LIMITS_ENABLED'] = False
    else:
        app.config.setdefault('RATELIMIT_ENABLED', True)
        app.config.setdefault('RATELIMIT_DEFAULT_LIMITS_ENABLED', True)
        app.config.setdefault('RATELIMIT_DEFAULT_LIMITS', "200 per minute;5000 per hour")

    limiter = Limiter(key_func=get_remote_address)
    limiter.init_app(app)

    # --- Database ---
    db.init_app(app)
    Migrate(app, db, directory=MIGRATIONS_DIRECTORY)

    # --- WebSocket live feed ---
    socketio = SocketIO(app,
                        cors_allowed_origins=allowed_origins or None,
                        async_mode='threading',
                        logger=False,
                        engineio_logger=False)
    LiveFeed().init_app(app, socketio)
    app.socketio = socketio

    # --- JWT ---
    jwt = JWTManager(app)
    register_jwt_handlers(jwt)

    @jwt.revoked_token_loader
    def revoked_token_callback(jwt_header, jwt_payload):
        current_app.logger.warning(
            f"Request ID: {g.get('request_id', 'N/A')} - Revoked token used, jti {jwt_payload.get('jti')}"
        )
        return _error_response(HTTPStatus.UNAUTHORIZED, ErrorCodes.UNAUTHENTICATED, 'Token has been revoked.')

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return _error_response(HTTPStatus.UNAUTHORIZED, ErrorCodes.UNAUTHENTICATED, 'Token has expired.')

    @jwt.invalid_token_loader
    def invalid_token_callback(error_string):
        return _error_response(HTTPStatus.UNAUTHORIZED, ErrorCodes.UNAUTHENTICATED, 'Invalid authorization token.',
                               details={'original_error': error_string})

    @jwt.unauthorized_loader
    def missing_token_callback(error_string):
        return _error_response(HTTPStatus.UNAUTHORIZED, ErrorCodes.UNAUTHENTICATED,
                               'Missing or invalid authorization token.', details={'original_error': error_string})

    @jwt.user_lookup_error_loader
    def user_lookup_error_callback(jwt_header, jwt_payload):
        return _error_response(HTTPStatus.UNAUTHORIZED, ErrorCodes.UNAUTHENTICATED, 'User not found or inactive.')

    # --- Error Handlers ---
    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        current_app.logger.warning(
            f"Request ID: {g.get('request_id', 'N/A')} - Validation error: {e.messages} - "
            f"Error Code: {ErrorCodes.VALIDATION_ERROR}"
        )
        errors = e.normalized_messages()
        return _error_response(
            HTTPStatus.BAD_REQUEST, ErrorCodes.VALIDATION_ERROR, 'Input validation failed.',
            details={'errors': errors}, errors=errors
        )

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e):
        db.session.rollback()
        current_app.logger.error(
            f"Request ID: {g.get('request_id', 'N/A')} - Database error. Error Code: {ErrorCodes.INTERNAL_SERVER_ERROR}",
            exc_info=True
        )
        return _error_response(
            HTTPStatus.INTERNAL_SERVER_ERROR, ErrorCodes.INTERNAL_SERVER_ERROR,
            'A database error occurred. Please try again later.'
        )

    @app.errorhandler(NoAuthorizationError)
    def handle_no_auth_error(e):
        current_app.logger.warning(
            f"Request ID: {g.get('request_id', 'N/A')} - JWT NoAuthorizationError: {str(e)} - "
            f"Error Code: {ErrorCodes.UNAUTHENTICATED}"
        )
        return _error_response(
            HTTPStatus.UNAUTHORIZED, ErrorCodes.UNAUTHENTICATED, 'Missing or invalid authorization token.',
            details={'original_error': str(e)}
        )

    @app.errorhandler(WerkzeugHTTPException)
    def handle_werkzeug_http_exception(e):
        error_code = ErrorCodes.GENERIC_ERROR
        if e.code == 404:
            error_code = ErrorCodes.NOT_FOUND
        elif e.code == 405:
            error_code = ErrorCodes.METHOD_NOT_ALLOWED
        elif e.code == 401:
            error_code = ErrorCodes.UNAUTHENTICATED
        elif e.code == 403:
            error_code = ErrorCodes.FORBIDDEN
        elif e.code >= 500:
            error_code = ErrorCodes.INTERNAL_SERVER_ERROR

        current_app.logger.warning(
            f"Request ID: {g.get('request_id', 'N/A')} - HTTPException: {e.code} - {e.name}: {e.description} - "
            f"Error Code: {error_code}"
        )
        return _error_response(e.code, error_code, e.name, details={'description': e.description})

    @app.errorhandler(404)
    def handle_flask_not_found(e):
        current_app.logger.warning(
            f"Request ID: {g.get('request_id', 'N/A')} - HTTP 404 Not Found: {request.url} - "
            f"Error Code: {ErrorCodes.NOT_FOUND}"
        )
        return _error_response(
            HTTPStatus.NOT_FOUND, ErrorCodes.NOT_FOUND, 'The requested resource was not found.',
            details={'path': request.path}
        )

    @app.errorhandler(Exception)
    def handle_global_exception(e):
        request_id = g.get('request_id', 'N/A')

        if isinstance(e, AppException):
            log = current_app.logger.error if e.status_code >= 500 else current_app.logger.warning
            log(
                f"Request ID: {request_id} - AppException: {e.error_code} - {e.status_message} - Details: {e.details}",
                exc_info=e.status_code >= 500
            )
            return _error_response(e.status_code, e.error_code, e.status_message,
                                   details=e.details, action_button=e.action_button or None)

        if isinstance(e, WerkzeugHTTPException):
            return handle_werkzeug_http_exception(e)

        current_app.logger.critical(
            f"Request ID: {request_id} - Unhandled Critical Exception. Error Code: {ErrorCodes.INTERNAL_SERVER_ERROR}",
            exc_info=True
        )
        return _error_response(
            HTTPStatus.INTERNAL_SERVER_ERROR, ErrorCodes.INTERNAL_SERVER_ERROR,
            'An unexpected internal server error occurred. Please try again later.'
        )

    # --- Blueprints ---
    app.register_blueprint(auth_bp)
    app.register_blueprint(games_bp)
    app.register_blueprint(transactions_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(owner_bp)
    app.register_blueprint(slots_bp)
    app.register_blueprint(roulette_bp)
    app.register_blueprint(blackjack_bp)

    # --- CLI ---
    @app.cli.command('seed')
    def seed_command():
        """Creates the default games and the configured admin and owner accounts."""
        games, accounts = run_seed()
        click.echo(f"Created {len(games)} game(s) and {len(accounts)} account(s).")

    @app.cli.command('cleanup-expired-tokens')
    def db_cleanup_expired_tokens_command():
        now = datetime.now(timezone.utc)
        try:
            count = db.session.scalar(select(func.count(TokenBlacklist.id)).filter(TokenBlacklist.expires_at < now))
            db.session.execute(delete(TokenBlacklist).where(TokenBlacklist.expires_at < now))
            db.session.commit()
            click.echo(f"Successfully deleted {count} expired token(s).")
        except Exception as e:
            db.session.rollback()
            click.echo(f"Error during token cleanup: {str(e)}")

    @app.cli.command("create-admin")
    @click.option('-u', '--username', default=None, help='Admin username')
    @click.option('-e', '--email', default=None, help='Admin email')
    @click.option('-p', '--password', default=None, help='Admin password (will be prompted if not provided)')
    def create_admin_command(username, email, password):
        """Creates an admin user with the given credentials."""
        if not username:
            username = click.prompt("Enter admin username")
        if not email:
            email = click.prompt("Enter admin email")
        if not password:
            password = click.prompt("Enter admin password", hide_input=True, confirmation_prompt=True)

        problems = validate_password_strength(password)
        if problems:
            click.echo(f"Error: The provided password does not meet strength requirements: {'; '.join(problems)}")
            click.echo("Admin user creation aborted.")
            return

        existing_user = db.session.scalar(select(User).filter((User.username == username) | (User.email == email)))
        if existing_user:
            click.echo(f"Error: User with username '{username}' or email '{email}' already exists.")
            return

        try:
            admin_user = User(
                username=username,
                email=email,
                password=User.hash_password(password),
                is_admin=True,
                balance=0,
            )
            db.session.add(admin_user)
            db.session.commit()
            click.echo(f"Admin user '{username}' created successfully with email '{email}'.")
        except Exception as e:
            db.session.rollback()
            click.echo(f"Failed to create admin user: {e}")

    return app, socketio


def log_production_warnings(app):
    if app.debug or app.config.get('TESTING'):
        return
    if app.config.get('RATELIMIT_STORAGE_URI') == 'memory://':
        app.logger.warning(
            "PERFORMANCE/SCALABILITY WARNING: RATELIMIT_STORAGE_URI is set to 'memory://' in a production environment. "
            "Consider using a persistent store like Redis (e.g., 'redis://localhost:6379/0')."
        )
    if not app.config.get('FORCE_HTTPS', True):
        app.logger.warning("SECURITY WARNING: FORCE_HTTPS is disabled in a production environment.")


if __name__ == '__main__':
    app, socketio = create_app()
    socketio.run(app, host='0.0.0.0', port=int(os.getenv('PORT', '5000')), debug=app.debug)
