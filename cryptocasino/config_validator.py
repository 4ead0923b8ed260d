"""
Configuration validation and startup checks.

Critical settings are validated before the application starts so that a
production deployment never silently runs on development fallbacks.
"""

import os
import sys
import warnings
import secrets
from typing import List, Tuple, Optional


def _env_flag(name: str, default: str = 'False') -> bool:
    return os.getenv(name, default).lower() in ('true', '1', 't')


class ConfigValidationError(Exception):
    """Raised when critical configuration is missing or invalid."""
    pass


class ConfigValidator:
    """Validates application configuration and enforces production security."""

    def __init__(self, is_production: bool = None):
        """
        Args:
            is_production: If None, auto-detect from FLASK_ENV, FLASK_DEBUG and TESTING.
        """
        self.is_testing = _env_flag('TESTING')
        if is_production is None:
            flask_env = os.getenv('FLASK_ENV', '').lower()
            is_production = (
                flask_env == 'production' or
                (flask_env not in ('development', 'testing')
                 and not _env_flag('FLASK_DEBUG')
                 and not self.is_testing)
            )

        self.is_production = is_production
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def validate_required_env_var(self, var_name: str, description: str = None) -> Optional[str]:
        value = os.getenv(var_name)
        if not value:
            desc = description or var_name
            if self.is_production:
                self.errors.append(f"CRITICAL: {desc} ({var_name}) must be set in production environment")
            elif not self.is_testing:
                self.warnings.append(f"WARNING: {desc} ({var_name}) not set - using development fallback")
        return value

    def validate_jwt_config(self) -> Tuple[str, int]:
        jwt_secret = self.validate_required_env_var('JWT_SECRET_KEY', 'JWT Secret Key')

        if not jwt_secret:
            if self.is_production:
                raise ConfigValidationError("JWT_SECRET_KEY is required in production")
            jwt_secret = secrets.token_urlsafe(64)
        elif len(jwt_secret) < 32:
            error_msg = "JWT_SECRET_KEY must be at least 32 characters long"
            if self.is_production:
                self.errors.append(f"CRITICAL: {error_msg}")
            else:
                self.warnings.append(f"WARNING: {error_msg}")

        try:
            access_expires = int(os.getenv('JWT_ACCESS_TOKEN_EXPIRES', '3600'))
        except ValueError:
            raise ConfigValidationError("JWT_ACCESS_TOKEN_EXPIRES must be an integer")

        return jwt_secret, access_expires

    def validate_database_config(self) -> Optional[str]:
        database_url = os.getenv('DATABASE_URL')

        if database_url:
            if not database_url.startswith(('postgresql://', 'postgresql+psycopg2://', 'sqlite://')):
                self.errors.append("CRITICAL: DATABASE_URL must use a supported database driver")
            return database_url

        db_components = {
            'DB_HOST': os.getenv('DB_HOST'),
            'DB_PORT': os.getenv('DB_PORT'),
            'DB_NAME': os.getenv('DB_NAME'),
            'DB_USER': os.getenv('DB_USER'),
            'DB_PASSWORD': os.getenv('DB_PASSWORD')
        }
        missing_components = [k for k, v in db_components.items() if not v]

        if missing_components and self.is_production:
            self.errors.append(
                f"CRITICAL: Database configuration incomplete. Missing: {', '.join(missing_components)}. "
                "Set DATABASE_URL or all individual DB_* variables."
            )

        if not self.is_production and not self.is_testing:
            db_host = db_components['DB_HOST'] or 'localhost'
            db_port = db_components['DB_PORT'] or '5432'
            db_name = db_components['DB_NAME'] or 'crypto_casino'
            db_user = db_components['DB_USER'] or 'casino_user'
            db_password = db_components['DB_PASSWORD'] or 'password123'

            if missing_components:
                self.warnings.append(f"Using development database defaults for: {', '.join(missing_components)}")

            return f'postgresql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}'

        if not missing_components:
            c = db_components
            return f"postgresql://{c['DB_USER']}:{c['DB_PASSWORD']}@{c['DB_HOST']}:{c['DB_PORT']}/{c['DB_NAME']}"
        return None

    def validate_database_timeouts(self) -> Tuple[int, int]:
        """Pool checkout timeout (seconds) and per-statement timeout (milliseconds)."""
        try:
            pool_timeout = int(os.getenv('DB_POOL_TIMEOUT', '30'))
            statement_timeout_ms = int(os.getenv('DB_STATEMENT_TIMEOUT_MS', '5000'))
        except ValueError:
            raise ConfigValidationError("DB_POOL_TIMEOUT and DB_STATEMENT_TIMEOUT_MS must be integers")

        if pool_timeout <= 0 or statement_timeout_ms <= 0:
            self.errors.append("CRITICAL: Database timeouts must be positive")
        return pool_timeout, statement_timeout_ms

    def validate_account_config(self, prefix: str, default_username: str) -> Tuple[str, str, str]:
        """Credentials for the seeded ADMIN_* or OWNER_* account."""
        username = os.getenv(f'{prefix}_USERNAME') or default_username
        password = self.validate_required_env_var(f'{prefix}_PASSWORD', f'{prefix.title()} Password')
        email = os.getenv(f'{prefix}_EMAIL') or f'{default_username.lower()}@cryptocasino.local'

        if not password and not self.is_production:
            password = f'{default_username}-Dev-Passw0rd!'

        return username, password, email

    def validate_rate_limiting_config(self) -> str:
        rate_limit_uri = os.getenv('RATELIMIT_STORAGE_URI', 'memory://')

        if rate_limit_uri == 'memory://' and self.is_production:
            self.errors.append(
                "CRITICAL: Rate limiting uses memory:// storage in production. "
                "Set RATELIMIT_STORAGE_URI to a Redis URL (e.g., redis://localhost:6379/0)"
            )
        return rate_limit_uri

    def validate_cors_config(self) -> List[str]:
        cors_origins = os.getenv('CORS_ORIGINS', '')

        if not cors_origins and self.is_production:
            self.errors.append(
                "CRITICAL: CORS_ORIGINS must be set in production to specify allowed frontend domains"
            )
            return []

        origins = [origin.strip() for origin in cors_origins.split(',') if origin.strip()]
        for origin in origins:
            if not origin.startswith(('http://', 'https://')):
                self.warnings.append(f"CORS origin '{origin}' should include protocol (http:// or https://)")
        return origins

    def validate_all(self) -> dict:
        """
        Validate all configuration settings.

        Returns:
            Dictionary containing validated configuration values

        Raises:
            ConfigValidationError: If critical configuration is missing in production
        """
        config = {}

        try:
            config['JWT_SECRET_KEY'], config['JWT_ACCESS_TOKEN_EXPIRES'] = self.validate_jwt_config()
            config['SQLALCHEMY_DATABASE_URI'] = self.validate_database_config()
            config['DB_POOL_TIMEOUT'], config['DB_STATEMENT_TIMEOUT_MS'] = self.validate_database_timeouts()
            config['ADMIN_USERNAME'], config['ADMIN_PASSWORD'], config['ADMIN_EMAIL'] = \
                self.validate_account_config('ADMIN', 'admin')
            config['OWNER_USERNAME'], config['OWNER_PASSWORD'], config['OWNER_EMAIL'] = \
                self.validate_account_config('OWNER', 'Owner')
            config['RATELIMIT_STORAGE_URI'] = self.validate_rate_limiting_config()
            config['CORS_ORIGINS'] = self.validate_cors_config()

            config['DEBUG'] = _env_flag('FLASK_DEBUG')
            config['JWT_COOKIE_SECURE'] = _env_flag('JWT_COOKIE_SECURE', 'True')

            if self.is_production:
                if config['DEBUG']:
                    self.errors.append("CRITICAL: DEBUG mode must be disabled in production (set FLASK_DEBUG=False)")
                if not config['JWT_COOKIE_SECURE']:
                    self.errors.append("CRITICAL: JWT cookies must be secure in production (set JWT_COOKIE_SECURE=True)")

            if self.errors:
                error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {error}" for error in self.errors)
                if self.warnings:
                    error_msg += "\n\nWarnings:\n" + "\n".join(f"  - {warning}" for warning in self.warnings)
                raise ConfigValidationError(error_msg)

            for warning in self.warnings:
                warnings.warn(warning, UserWarning)

            return config

        except ConfigValidationError:
            raise
        except Exception as e:
            raise ConfigValidationError(f"Configuration validation error: {str(e)}") from e


def validate_production_config() -> dict:
    """
    Validate configuration with fail-fast behavior.

    Exits the process when validation fails so an insecure instance never starts.
    """
    try:
        validator = ConfigValidator()
        return validator.validate_all()
    except ConfigValidationError as e:
        print("\nCONFIGURATION VALIDATION FAILED\n", file=sys.stderr)
        print(str(e), file=sys.stderr)
        print("\nHow to fix:", file=sys.stderr)
        print("1. Set required environment variables", file=sys.stderr)
        print("2. Use 'flask seed' to create the default games and accounts", file=sys.stderr)
        print("\nApplication startup ABORTED\n", file=sys.stderr)
        sys.exit(1)
