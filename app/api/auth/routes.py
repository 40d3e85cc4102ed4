# app/api/auth/routes.py

from flask import Blueprint, request, current_app, g

from app.core.extensions import limiter, auth_rate_limit
from app.core.security import protect, issue_token, revoke_current_token
from app.utils.responses import api_response
from .schemas import (
    RegisterSchema,
    LoginSchema,
    ForgotPasswordSchema,
    ResetPasswordSchema,
    ChangePasswordSchema,
    ProfileUpdateSchema,
    UserProfileResponseSchema
)

auth_bp = Blueprint('auth_bp', __name__)


def _profile(user) -> dict:
    return UserProfileResponseSchema().dump(user.to_dict())


@auth_bp.route('/register', methods=['POST'])
@limiter.limit(auth_rate_limit)
def register():
    """Creates an account and returns its profile with a bearer token."""
    data = RegisterSchema().load(request.get_json(silent=True) or {})
    user, token = current_app.services['auth'].register(data)
    return api_response(
        {"user": _profile(user), "token": token},
        "User registered successfully. Please check your email to verify your account.",
        201
    )


@auth_bp.route('/login', methods=['POST'])
@limiter.limit(auth_rate_limit)
def login():
    data = LoginSchema().load(request.get_json(silent=True) or {})
    user, token = current_app.services['auth'].login(data['email'], data['password'])
    return api_response({"user": _profile(user), "token": token}, "Login successful")


@auth_bp.route('/verify-email/<string:token>', methods=['GET'])
def verify_email(token: str):
    current_app.services['auth'].verify_email(token)
    return api_response(message="Email verified successfully")


@auth_bp.route('/forgot-password', methods=['POST'])
def forgot_password():
    data = ForgotPasswordSchema().load(request.get_json(silent=True) or {})
    current_app.services['auth'].forgot_password(data['email'])
    return api_response(message="Password reset email sent")


@auth_bp.route('/reset-password/<string:token>', methods=['POST'])
def reset_password(token: str):
    data = ResetPasswordSchema().load(request.get_json(silent=True) or {})
    current_app.services['auth'].reset_password(token, data['password'])
    return api_response(message="Password reset successful")


# --- Authenticated routes ---

@auth_bp.route('/me', methods=['GET'])
@protect
def get_me():
    return api_response({"user": _profile(g.user)})


@auth_bp.route('/me', methods=['PUT'])
@protect
def update_me():
    changes = ProfileUpdateSchema().load(request.get_json(silent=True) or {})
    user = current_app.services['auth'].update_profile(g.user, changes)
    return api_response({"user": _profile(user)}, "Profile updated successfully")


@auth_bp.route('/change-password', methods=['PUT'])
@protect
def change_password():
    data = ChangePasswordSchema().load(request.get_json(silent=True) or {})
    current_app.services['auth'].change_password(g.user, data['current_password'], data['new_password'])
    return api_response(message="Password changed successfully")


@auth_bp.route('/logout', methods=['POST'])
@protect
def logout():
    """Revokes the presented token. Further requests with it get 401."""
    revoke_current_token()
    return api_response(message="Logged out successfully")


@auth_bp.route('/refresh', methods=['POST'])
@protect
def refresh():
    return api_response({"token": issue_token(g.user.user_id)})


@auth_bp.route('/resend-verification', methods=['POST'])
@protect
def resend_verification():
    current_app.services['auth'].resend_verification(g.user)
    return api_response(message="Verification email sent")


@auth_bp.route('/me', methods=['DELETE'])
@protect
def delete_me():
    current_app.services['auth'].deactivate(g.user)
    return api_response(message="Account deleted successfully")
