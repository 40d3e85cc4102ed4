# app/core/security.py
"""
Bearer-token authentication and the authorization gates used by the routes.

The token encodes only the user id. The user document is re-read on every
request through `user_lookup_loader`, so role and is_active changes apply on
the very next call.

Gate order on a route:

    @bp.route('/<string:pet_id>', methods=['PUT'])
    @protect
    @check_ownership(ResourceType.PET)
    def update_pet(pet_id): ...
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from functools import wraps
from typing import Callable, Dict

import bcrypt
from flask import Flask, g, current_app
from flask_jwt_extended import (
    JWTManager,
    create_access_token,
    verify_jwt_in_request,
    get_current_user,
    get_jwt
)
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt import PyJWTError

from app.core.errors import ForbiddenError, NotFoundError, error_response
from app.utils.datetime_utils import DateTimeUtils


# =====================================================================================
# Passwords
# =====================================================================================
def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # malformed stored hash
        return False


# =====================================================================================
# Tokens
# =====================================================================================
def issue_token(user_id: str) -> str:
    return create_access_token(identity=user_id)


def revoke_current_token():
    """Adds the jti of the token on this request to the 'revoked_tokens' blocklist."""
    payload = get_jwt()
    expires = datetime.fromtimestamp(payload['exp'], tz=timezone.utc)
    revoked_tokens_ref = current_app.services['db'].collection('revoked_tokens')
    revoked_tokens_ref.document(payload['jti']).set(DateTimeUtils.for_firestore({
        'revoked_at': DateTimeUtils.now(),
        'expires_at': expires
    }))
    logging.info(f"Token revoked. JTI: {payload['jti'][:8]}...")


def purge_revoked_tokens(db) -> int:
    """Deletes blocklist entries whose token has expired anyway. Returns the number removed."""
    now = DateTimeUtils.now()
    removed = 0
    for doc in db.collection('revoked_tokens').stream():
        expires_at = DateTimeUtils.from_firestore(doc.to_dict().get('expires_at'))
        if expires_at is not None and expires_at <= now:
            doc.reference.delete()
            removed += 1
    logging.info(f"Purged {removed} expired revoked tokens")
    return removed


def init_jwt(app: Flask, db, user_repository) -> JWTManager:
    """Creates the JWTManager and wires every callback to the shared envelope."""
    jwt = JWTManager(app)
    revoked_tokens_ref = db.collection('revoked_tokens')

    @jwt.user_lookup_loader
    def load_user(_jwt_header, jwt_data):
        user = user_repository.get(jwt_data['sub'])
        if user is None or not user.is_active:
            return None
        return user

    @jwt.token_in_blocklist_loader
    def is_token_revoked(_jwt_header, jwt_payload) -> bool:
        return revoked_tokens_ref.document(jwt_payload['jti']).get().exists

    @jwt.unauthorized_loader
    def missing_token(reason):
        return error_response("Not authorized, no token", 401)

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return error_response("Not authorized, token failed", 401)

    @jwt.expired_token_loader
    def expired_token(_jwt_header, _jwt_payload):
        return error_response("Not authorized, token expired", 401)

    @jwt.revoked_token_loader
    def revoked_token(_jwt_header, _jwt_payload):
        return error_response("Not authorized, token revoked", 401)

    @jwt.user_lookup_error_loader
    def unknown_user(_jwt_header, _jwt_payload):
        return error_response("Not authorized, user not found or inactive", 401)

    return jwt


# =====================================================================================
# Gates
# =====================================================================================
def protect(fn):
    """Requires a valid token for an active user; the user is placed on g.user."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        g.user = get_current_user()
        return fn(*args, **kwargs)
    return wrapper


def optional_auth(fn):
    """Like `protect` but never rejects: a missing or bad token leaves g.user = None."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        g.user = None
        try:
            if verify_jwt_in_request(optional=True):
                g.user = get_current_user()
        except (JWTExtendedException, PyJWTError) as e:
            logging.info(f"Optional auth ignored an unusable token: {e}")
        return fn(*args, **kwargs)
    return wrapper


def authorize(*roles: str):
    """Role allow-list. Must sit below `protect`."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = getattr(g, 'user', None)
            if user is None or user.role.value not in roles:
                role = user.role.value if user else 'anonymous'
                raise ForbiddenError(f"User role {role} is not authorized to access this route")
            return fn(*args, **kwargs)
        return wrapper
    return decorator


class ResourceType(Enum):
    PET = "pet"
    REPORT = "report"
    NOTIFICATION = "notification"


@dataclass(frozen=True)
class OwnershipRule:
    repository: str          # key in app.services
    id_arg: str              # route argument carrying the id
    owner_attr: str          # attribute compared with the caller's user_id
    label: str
    admin_bypass: bool = True


OWNERSHIP_RULES: Dict[ResourceType, OwnershipRule] = {
    ResourceType.PET: OwnershipRule('pet_repository', 'pet_id', 'owner_id', 'Pet'),
    ResourceType.REPORT: OwnershipRule('report_repository', 'report_id', 'reporter_id', 'Report', admin_bypass=False),
    ResourceType.NOTIFICATION: OwnershipRule(
        'notification_repository', 'notification_id', 'recipient_id', 'Notification', admin_bypass=False
    ),
}


def check_ownership(resource_type: ResourceType) -> Callable:
    """
    Loads the routed entity and requires the caller to own it (admins pass when
    the rule allows). The entity is placed on g.resource. Must sit below `protect`.
    """
    rule = OWNERSHIP_RULES[resource_type]

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            repository = current_app.services[rule.repository]
            entity = repository.get(kwargs.get(rule.id_arg))
            if entity is None:
                raise NotFoundError(f"{rule.label} not found")

            user = g.user
            is_owner = getattr(entity, rule.owner_attr) == user.user_id
            if not is_owner and not (rule.admin_bypass and user.is_admin):
                raise ForbiddenError(f"Not authorized to access this {rule.label.lower()}")

            g.resource = entity
            return fn(*args, **kwargs)
        return wrapper
    return decorator
