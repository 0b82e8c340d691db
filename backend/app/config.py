"""Configuration settings and environment variables.

This module loads values from environment variables (including a .env file)
and provides small helpers to safely parse integers, booleans and lists while
stripping inline comments. This avoids crashes when a .env value contains
an inline comment like:

    CORS_ORIGINS=http://localhost:3000 # React dev server

The helpers fall back to defaults and emit warnings when parsing fails.
"""

import os
import logging
from datetime import timedelta
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

_logger = logging.getLogger(__name__)


def _strip_inline_comment(val: str) -> str:
    """Strip an inline comment from a string and trim whitespace/quotes.

    Example: "1440 # Default 24 hours" -> "1440"
    """
    if val is None:
        return ''
    val = val.split('#', 1)[0]
    val = val.strip()
    if (val.startswith('"') and val.endswith('"')) or (
        val.startswith("'") and val.endswith("'")
    ):
        val = val[1:-1]
    return val


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    raw = os.environ.get(name)
    if raw is None:
        return default
    stripped = _strip_inline_comment(raw)
    return stripped if stripped != '' else default


def _get_int_env(name: str, default: int) -> int:
    raw = _get_env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except (ValueError, TypeError):
        _logger.warning("Invalid integer for %s: %r, falling back to %s", name, raw, default)
        return default


def _get_bool_env(name: str, default: bool) -> bool:
    raw = _get_env(name)
    if raw is None:
        return default
    return raw.lower() in ['true', '1', 'on', 'yes']


def _get_list_env(name: str, default: List[str]) -> List[str]:
    """Split a comma-separated variable, dropping empty entries."""
    raw = _get_env(name)
    if raw is None:
        return list(default)
    return [item.strip() for item in raw.split(',') if item.strip()]


class Config:
    """Base configuration class with default settings."""

    # Flask settings
    SECRET_KEY = _get_env('SECRET_KEY') or 'dev-secret-key-change-in-production'
    # JWT settings. Tokens are issued by the accounts service; this API only verifies them.
    JWT_SECRET_KEY = _get_env('JWT_SECRET_KEY') or SECRET_KEY
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=_get_int_env('JWT_ACCESS_TOKEN_HOURS', 1))

    # MongoDB settings
    MONGO_URI = _get_env('MONGO_URI') or 'mongodb://localhost:27017/'
    MONGO_DB = _get_env('MONGO_DB') or 'campsite_reservations'
    ENSURE_INDEXES_ON_STARTUP = _get_bool_env('ENSURE_INDEXES_ON_STARTUP', True)

    # CORS: origins allowed to issue mutating requests
    CORS_ORIGINS = _get_list_env('CORS_ORIGINS', ['http://localhost:3000', 'https://localhost:3443'])

    # Rate limiting
    RATELIMIT_ENABLED = _get_bool_env('RATELIMIT_ENABLED', True)
    RATELIMIT_STORAGE_URI = _get_env('RATELIMIT_STORAGE_URL') or 'memory://'
    RATELIMIT_DEFAULT = _get_env('RATELIMIT_DEFAULT') or '200 per day;50 per hour'
    RATELIMIT_HEADERS_ENABLED = True


class DevelopmentConfig(Config):
    """Development configuration with debug mode enabled."""
    DEBUG = True
    TESTING = False


class ProductionConfig(Config):
    """Production configuration with security settings."""
    DEBUG = False
    TESTING = False


class TestingConfig(Config):
    """Testing configuration with test database."""
    TESTING = True
    MONGO_DB = 'campsite_reservations_test'
    JWT_SECRET_KEY = 'test-secret-key'
    ENSURE_INDEXES_ON_STARTUP = False
    RATELIMIT_ENABLED = False


# Configuration mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
