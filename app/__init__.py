# app/__init__.py

# =====================================================================================
# 1. Environment variables (loaded first)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. Module imports
# =====================================================================================
import os
import logging
from datetime import timedelta
from flask import Flask, request
from flask_cors import CORS
import firebase_admin
from firebase_admin import credentials, firestore, storage

# - configuration / core
from app.core.config import config_by_name
from app.core.errors import register_error_handlers
from app.core.extensions import limiter
from app.core.security import init_jwt
from app.cli import register_cli
from app.utils.responses import api_response
from app.utils.datetime_utils import DateTimeUtils

# - repositories
from app.repositories.users import UserRepository
from app.repositories.pets import PetRepository
from app.repositories.reports import ReportRepository
from app.repositories.notifications import NotificationRepository
from app.repositories.outbox import OutboxRepository

# - shared services
from app.services.storage_service import StorageService
from app.services.email_service import EmailService
from app.services.notification_service import NotificationService
from app.services.outbox_service import OutboxService

# - API blueprints and domain services
from app.api.auth.routes import auth_bp
from app.api.pets.routes import pets_bp
from app.api.reports.routes import reports_bp
from app.api.notifications.routes import notifications_bp
from app.api.admin.routes import admin_bp
from app.api.auth.services import AuthService
from app.api.pets.services import PetService
from app.api.reports.services import ReportService
from app.api.admin.services import AdminService

SECURITY_HEADERS = {
    'X-Content-Type-Options': 'nosniff',
    'X-Frame-Options': 'SAMEORIGIN',
    'Referrer-Policy': 'no-referrer',
    'Cross-Origin-Resource-Policy': 'same-site',
    'X-XSS-Protection': '0',
}


def _init_firebase(app: Flask):
    """Returns (firestore client, storage bucket) from the configured service account."""
    if not firebase_admin._apps:
        cred_path = app.config['FIREBASE_CREDENTIALS_PATH']
        if not cred_path or not os.path.exists(cred_path):
            raise FileNotFoundError(f"Firebase credentials file not found: {cred_path}")
        cred = credentials.Certificate(cred_path)
        firebase_admin.initialize_app(cred, {
            'storageBucket': app.config['FIREBASE_STORAGE_BUCKET']
        })
    return firestore.client(), storage.bucket(app.config['FIREBASE_STORAGE_BUCKET'])


def create_app(config_name=None, db=None, bucket=None):
    """
    Flask application factory.

    `db` / `bucket` replace the Firestore client and Storage bucket (the test
    suite passes a MockFirestore and a mocked bucket).
    """
    # =====================================================================================
    # 3. Flask app and base configuration
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')
    config = config_by_name[config_name]

    app = Flask(__name__)
    app.config.from_object(config)
    app.config['JWT_ACCESS_TOKEN_EXPIRES'] = timedelta(hours=app.config['JWT_ACCESS_TOKEN_EXPIRES_HOURS'])
    app.json.ensure_ascii = False

    if not app.config.get('JWT_SECRET_KEY'):
        raise ValueError("JWT_SECRET_KEY must be set")

    # =====================================================================================
    # 4. External services
    # =====================================================================================
    if db is None:
        db, bucket = _init_firebase(app)

    # =====================================================================================
    # 5. Repositories and services in 'app.services' (dependency injection)
    # =====================================================================================
    app.services = {'db': db}

    # 5-1. repositories
    app.services['user_repository'] = UserRepository(db)
    app.services['pet_repository'] = PetRepository(db)
    app.services['report_repository'] = ReportRepository(db)
    app.services['notification_repository'] = NotificationRepository(db)
    app.services['outbox_repository'] = OutboxRepository(db)

    # 5-2. shared services
    app.services['storage'] = StorageService(
        bucket,
        max_photo_bytes=app.config['MAX_PHOTO_BYTES'],
        max_photos=app.config['MAX_PHOTOS_PER_POST']
    )
    app.services['email'] = EmailService(
        host=app.config['MAIL_HOST'],
        port=app.config['MAIL_PORT'],
        username=app.config['MAIL_USERNAME'],
        password=app.config['MAIL_PASSWORD'],
        use_tls=app.config['MAIL_USE_TLS'],
        default_sender=app.config['MAIL_DEFAULT_SENDER'],
        suppress_send=app.config['MAIL_SUPPRESS_SEND'],
        timeout=app.config['MAIL_TIMEOUT_SECONDS']
    )
    app.services['notifications'] = NotificationService(
        app.services['notification_repository'],
        ttl_days=app.config['NOTIFICATION_TTL_DAYS']
    )
    app.services['outbox'] = OutboxService(
        app.services['outbox_repository'],
        app.services['notifications'],
        app.services['email'],
        dispatch_inline=app.config['OUTBOX_DISPATCH_INLINE'],
        max_attempts=app.config['OUTBOX_MAX_ATTEMPTS']
    )

    # 5-3. domain services
    app.services['auth'] = AuthService(
        app.services['user_repository'],
        app.services['outbox'],
        app.services['email'],
        client_url=app.config['CLIENT_URL']
    )
    app.services['pets'] = PetService(
        app.services['pet_repository'],
        app.services['user_repository'],
        app.services['storage'],
        app.services['outbox'],
        app.services['email']
    )
    app.services['reports'] = ReportService(
        app.services['report_repository'],
        app.services['user_repository'],
        app.services['pet_repository'],
        app.services['outbox']
    )
    app.services['admin'] = AdminService(
        app.services['user_repository'],
        app.services['pet_repository'],
        app.services['report_repository'],
        pet_service=app.services['pets'],
        report_service=app.services['reports']
    )

    # =====================================================================================
    # 6. Extensions
    # =====================================================================================
    init_jwt(app, db, app.services['user_repository'])
    limiter.init_app(app)
    CORS(app, resources={r"/api/*": {"origins": app.config['CORS_ORIGINS']}}, supports_credentials=True)

    # =====================================================================================
    # 7. Blueprints
    # =====================================================================================
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(pets_bp, url_prefix='/api/pets')
    app.register_blueprint(reports_bp, url_prefix='/api/reports')
    app.register_blueprint(notifications_bp, url_prefix='/api/notifications')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')

    @app.route('/health', methods=['GET'])
    def health():
        return api_response({
            "status": "OK",
            "timestamp": DateTimeUtils.to_iso_string(DateTimeUtils.now()),
            "environment": app.config['ENV_NAME']
        }, "Server is running")

    @app.route('/', methods=['GET'])
    def index():
        return api_response({
            "name": "Lost & Found Pet Network API",
            "endpoints": {
                "auth": "/api/auth",
                "pets": "/api/pets",
                "reports": "/api/reports",
                "notifications": "/api/notifications",
                "admin": "/api/admin"
            }
        }, "Welcome to the Lost & Found Pet Network API")

    # =====================================================================================
    # 8. Error handlers, request hooks, CLI
    # =====================================================================================
    register_error_handlers(app)

    @app.before_request
    def log_request():
        logging.debug(f"{request.method} {request.path}")

    @app.after_request
    def set_security_headers(response):
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    register_cli(app)

    # =====================================================================================
    # 9. Logging and return
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')
    logging.getLogger('werkzeug').setLevel(logging.WARNING)

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
