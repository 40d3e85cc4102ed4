# app/core/extensions.py
from flask import current_app
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Reads RATELIMIT_DEFAULT / RATELIMIT_STORAGE_URI / RATELIMIT_ENABLED from app.config on init_app.
limiter = Limiter(key_func=get_remote_address)


def auth_rate_limit() -> str:
    """Stricter limit applied to login and register."""
    return current_app.config['AUTH_RATE_LIMIT']
