"""
Application configuration.

Values come from the environment (optionally a ``.env`` file) through the
fail-fast ``ConfigValidator``; production environments must provide every
secret explicitly.
"""
import os
from dotenv import load_dotenv

load_dotenv()

from cryptocasino.config_validator import validate_production_config


def build_engine_options(database_uri, pool_timeout, statement_timeout_ms):
    """SQLAlchemy engine options carrying the store timeout budget for the given backend."""
    if not database_uri:
        return {}
    if database_uri.startswith('sqlite'):
        # sqlite3 busy timeout, in seconds
        return {'connect_args': {'timeout': pool_timeout, 'check_same_thread': False}}
    return {
        'pool_timeout': pool_timeout,
        'pool_pre_ping': True,
        'connect_args': {'options': f'-c statement_timeout={statement_timeout_ms}'},
    }


class Config:
    """Production-ready configuration with fail-fast validation."""

    _validated_config = validate_production_config()

    # Database Configuration
    SQLALCHEMY_DATABASE_URI = _validated_config['SQLALCHEMY_DATABASE_URI']
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    DB_POOL_TIMEOUT = _validated_config['DB_POOL_TIMEOUT']
    DB_STATEMENT_TIMEOUT_MS = _validated_config['DB_STATEMENT_TIMEOUT_MS']
    SQLALCHEMY_ENGINE_OPTIONS = build_engine_options(
        SQLALCHEMY_DATABASE_URI, DB_POOL_TIMEOUT, DB_STATEMENT_TIMEOUT_MS
    )

    # JWT Configuration
    JWT_SECRET_KEY = _validated_config['JWT_SECRET_KEY']
    JWT_ACCESS_TOKEN_EXPIRES = _validated_config['JWT_ACCESS_TOKEN_EXPIRES']
    JWT_TOKEN_LOCATION = ['headers', 'cookies']
    JWT_COOKIE_SECURE = _validated_config['JWT_COOKIE_SECURE']
    JWT_COOKIE_SAMESITE = 'Strict'
    JWT_COOKIE_CSRF_PROTECT = True
    JWT_ACCESS_COOKIE_NAME = 'access_token_cookie'
    JWT_ACCESS_CSRF_HEADER_NAME = 'X-CSRF-Token'

    # Session Configuration
    SESSION_COOKIE_SECURE = JWT_COOKIE_SECURE
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Strict'

    # HTTPS redirection through Talisman
    FORCE_HTTPS = os.getenv('FORCE_HTTPS', 'True').lower() in ('true', '1', 't')

    # Rate Limiter Storage URI
    RATELIMIT_STORAGE_URI = _validated_config['RATELIMIT_STORAGE_URI']

    DEBUG = _validated_config['DEBUG']

    # Seeded accounts; the owner is the admin whose username equals OWNER_USERNAME
    ADMIN_USERNAME = _validated_config['ADMIN_USERNAME']
    ADMIN_PASSWORD = _validated_config['ADMIN_PASSWORD']
    ADMIN_EMAIL = _validated_config['ADMIN_EMAIL']
    OWNER_USERNAME = _validated_config['OWNER_USERNAME']
    OWNER_PASSWORD = _validated_config['OWNER_PASSWORD']
    OWNER_EMAIL = _validated_config['OWNER_EMAIL']

    CORS_ORIGINS_LIST = _validated_config['CORS_ORIGINS']

    RECENT_WINS_LIMIT = 10
    LIVE_FEED_ENABLED = os.getenv('LIVE_FEED_ENABLED', 'True').lower() in ('true', '1', 't')


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///./test_cryptocasino_isolated.db' # File-based for test isolation
    DATABASE_FILE_PATH = SQLALCHEMY_DATABASE_URI.replace('sqlite:///', '')
    SQLALCHEMY_ENGINE_OPTIONS = build_engine_options(SQLALCHEMY_DATABASE_URI, 5, 5000)
    JWT_SECRET_KEY = 'test-jwt-secret-key-with-enough-length-0123456789'
    JWT_COOKIE_CSRF_PROTECT = False
    JWT_COOKIE_SECURE = False
    FORCE_HTTPS = False
    RATELIMIT_ENABLED = False
    RATELIMIT_DEFAULT_LIMITS_ENABLED = False
    OWNER_USERNAME = 'Owner'
    LIVE_FEED_ENABLED = False
