# app/api/auth/services.py
import logging
import secrets
import uuid
from typing import Any, Dict, Tuple

from app.core.errors import BadRequestError, ConflictError, NotFoundError, UnauthorizedError
from app.core.security import hash_password, verify_password, issue_token
from app.models.user import User, UserRole
from app.repositories.users import UserRepository
from app.services.email_service import EmailService
from app.services.outbox_service import OutboxService
from app.utils.datetime_utils import DateTimeUtils

VERIFICATION_TOKEN_HOURS = 24
RESET_TOKEN_HOURS = 1


class AuthService:
    """Registration, login, token-based email verification and password reset, self-service profile."""

    def __init__(self, user_repository: UserRepository, outbox_service: OutboxService,
                 email_service: EmailService, client_url: str):
        self.users = user_repository
        self.outbox = outbox_service
        self.email = email_service
        self.client_url = client_url.rstrip('/')

    def _verification_link(self, token: str) -> str:
        return f"{self.client_url}/verify-email/{token}"

    def _reset_link(self, token: str) -> str:
        return f"{self.client_url}/reset-password/{token}"

    @staticmethod
    def _new_token() -> str:
        return secrets.token_hex(32)

    # --- registration / login ---

    def register(self, data: Dict[str, Any], role: UserRole = UserRole.USER) -> Tuple[User, str]:
        email = data['email'].lower()
        if self.users.get_by_email(email):
            raise ConflictError("User already exists")

        user_id = str(uuid.uuid4())
        if not self.users.reserve_email(email, user_id):
            raise ConflictError("User already exists")

        verification_token = self._new_token()
        user = User(
            user_id=user_id,
            name=data['name'],
            email=email,
            password_hash=hash_password(data['password']),
            phone=data['phone'],
            role=role,
            email_verification_token=verification_token,
            email_verification_expires=DateTimeUtils.from_now(hours=VERIFICATION_TOKEN_HOURS)
        )
        try:
            self.users.add(user)
        except Exception:
            self.users.release_email(email)
            raise
        logging.info(f"User registered: {user.user_id}")

        self.outbox.publish_email(user.email, 'welcome', {'user_name': user.name})
        self.outbox.publish_email(user.email, 'email_verification', {
            'user_name': user.name,
            'verification_link': self._verification_link(verification_token)
        })
        return user, issue_token(user.user_id)

    def login(self, email: str, password: str) -> Tuple[User, str]:
        user = self.users.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise UnauthorizedError("Invalid credentials")
        if not user.is_active:
            raise UnauthorizedError("Account is deactivated")

        user = self.users.update(user.user_id, {'last_login': DateTimeUtils.now()})
        return user, issue_token(user.user_id)

    # --- email verification ---

    def verify_email(self, token: str) -> User:
        user = self.users.get_by_verification_token(token)
        if user is None or not user.email_verification_expires \
                or user.email_verification_expires <= DateTimeUtils.now():
            raise BadRequestError("Invalid or expired verification token")

        return self.users.update(user.user_id, {
            'is_email_verified': True,
            'email_verification_token': None,
            'email_verification_expires': None
        })

    def resend_verification(self, user: User):
        """The email is the whole point of this call, so a send failure is raised (500)."""
        if user.is_email_verified:
            raise BadRequestError("Email is already verified")

        token = self._new_token()
        self.users.update(user.user_id, {
            'email_verification_token': token,
            'email_verification_expires': DateTimeUtils.from_now(hours=VERIFICATION_TOKEN_HOURS)
        })
        self.email.send(user.email, 'email_verification', {
            'user_name': user.name,
            'verification_link': self._verification_link(token)
        })

    # --- password reset ---

    def forgot_password(self, email: str):
        user = self.users.get_by_email(email)
        if user is None:
            raise NotFoundError("User not found")

        token = self._new_token()
        self.users.update(user.user_id, {
            'password_reset_token': token,
            'password_reset_expires': DateTimeUtils.from_now(hours=RESET_TOKEN_HOURS)
        })
        try:
            self.email.send(user.email, 'password_reset', {
                'user_name': user.name,
                'reset_link': self._reset_link(token)
            })
        except Exception:
            # An unusable token must not stay behind
            self.users.update(user.user_id, {'password_reset_token': None, 'password_reset_expires': None})
            raise

    def reset_password(self, token: str, password: str) -> User:
        user = self.users.get_by_reset_token(token)
        if user is None or not user.password_reset_expires or user.password_reset_expires <= DateTimeUtils.now():
            raise BadRequestError("Invalid or expired reset token")

        return self.users.update(user.user_id, {
            'password_hash': hash_password(password),
            'password_reset_token': None,
            'password_reset_expires': None
        })

    # --- self service ---

    def update_profile(self, user: User, changes: Dict[str, Any]) -> User:
        if not changes:
            return user
        return self.users.update(user.user_id, changes)

    def change_password(self, user: User, current_password: str, new_password: str):
        if not verify_password(current_password, user.password_hash):
            raise BadRequestError("Current password is incorrect")
        self.users.update(user.user_id, {'password_hash': hash_password(new_password)})

    def deactivate(self, user: User):
        self.users.update(user.user_id, {'is_active': False})
        logging.info(f"User account deactivated: {user.user_id}")
