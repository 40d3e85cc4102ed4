# app/core/config.py

import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {'1', 'true', 'yes', 'on'}


def _env_list(name: str, default: str) -> list:
    return [item.strip() for item in os.getenv(name, default).split(',') if item.strip()]


class Config:
    """Settings shared by every environment. Values come from the process environment (.env supported)."""
    ENV_NAME = 'base'

    # Bearer tokens. Only the user id is encoded; the user is re-read on every request.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    JWT_ACCESS_TOKEN_EXPIRES_HOURS = int(os.getenv('JWT_ACCESS_TOKEN_EXPIRES_HOURS', 24 * 7))
    JWT_TOKEN_LOCATION = ['headers']
    JWT_HEADER_TYPE = 'Bearer'

    # Firebase: Firestore is the document store, the Storage bucket holds pet photos.
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')
    FIREBASE_STORAGE_BUCKET = os.getenv('FIREBASE_STORAGE_BUCKET')

    CORS_ORIGINS = _env_list('CORS_ORIGINS', 'http://localhost:3000')
    CLIENT_URL = os.getenv('CLIENT_URL', 'http://localhost:3000')

    # Outbound mail relay
    MAIL_HOST = os.getenv('MAIL_HOST', 'localhost')
    MAIL_PORT = int(os.getenv('MAIL_PORT', 587))
    MAIL_USERNAME = os.getenv('MAIL_USERNAME')
    MAIL_PASSWORD = os.getenv('MAIL_PASSWORD')
    MAIL_USE_TLS = _env_bool('MAIL_USE_TLS', True)
    MAIL_DEFAULT_SENDER = os.getenv('MAIL_DEFAULT_SENDER', 'Lost & Found Pet Network <no-reply@lostfoundpets.local>')
    MAIL_SUPPRESS_SEND = _env_bool('MAIL_SUPPRESS_SEND', False)
    MAIL_TIMEOUT_SECONDS = int(os.getenv('MAIL_TIMEOUT_SECONDS', 30))

    # Rate limiting (Flask-Limiter reads the RATELIMIT_* keys itself)
    RATELIMIT_ENABLED = _env_bool('RATELIMIT_ENABLED', True)
    RATELIMIT_DEFAULT = os.getenv('RATELIMIT_DEFAULT', '1000 per 15 minutes')
    RATELIMIT_STORAGE_URI = os.getenv('RATELIMIT_STORAGE_URI', 'memory://')
    RATELIMIT_HEADERS_ENABLED = True
    AUTH_RATE_LIMIT = os.getenv('AUTH_RATE_LIMIT', '5 per 15 minutes')

    # Side-effect delivery
    OUTBOX_DISPATCH_INLINE = _env_bool('OUTBOX_DISPATCH_INLINE', True)
    OUTBOX_MAX_ATTEMPTS = int(os.getenv('OUTBOX_MAX_ATTEMPTS', 5))
    NOTIFICATION_TTL_DAYS = int(os.getenv('NOTIFICATION_TTL_DAYS', 30))

    # Uploads
    MAX_PHOTO_BYTES = int(os.getenv('MAX_PHOTO_BYTES', 5 * 1024 * 1024))
    MAX_PHOTOS_PER_POST = int(os.getenv('MAX_PHOTOS_PER_POST', 10))
    MAX_CONTENT_LENGTH = int(os.getenv('MAX_CONTENT_LENGTH', 60 * 1024 * 1024))

    DEBUG = False
    TESTING = False


class DevelopmentConfig(Config):
    """Local development. Errors carry stack traces in the response envelope."""
    ENV_NAME = 'development'
    DEBUG = True


class TestingConfig(Config):
    """Used by the pytest suite: mail is captured, limits are off, secrets are fixed."""
    ENV_NAME = 'testing'
    TESTING = True
    DEBUG = False
    JWT_SECRET_KEY = 'testing-secret-key-with-enough-length-for-hs256'
    FIREBASE_STORAGE_BUCKET = 'lostfound-test.appspot.com'
    CLIENT_URL = 'http://localhost:3000'
    MAIL_SUPPRESS_SEND = True
    RATELIMIT_ENABLED = False
    OUTBOX_DISPATCH_INLINE = True


class ProductionConfig(Config):
    """Production. Internal error details are never returned to clients."""
    ENV_NAME = 'production'
    DEBUG = False


# Maps FLASK_ENV values to the settings class used by create_app.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
