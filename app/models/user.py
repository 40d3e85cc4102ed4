# app/models/user.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any

from app.models.base import FirestoreModel, coerce_enum
from app.utils.datetime_utils import DateTimeUtils


class UserRole(Enum):
    USER = "user"
    ADMIN = "admin"
    SHELTER = "shelter"
    VET = "vet"


@dataclass
class User(FirestoreModel):
    """
    Document structure of the Firestore 'users' collection.
    `email` is unique and stored lower-cased. Accounts are never hard-deleted;
    deactivation flips `is_active`.
    """
    user_id: str
    name: str
    email: str
    password_hash: str
    phone: str
    address: Dict[str, Any] = field(default_factory=dict)
    role: UserRole = UserRole.USER
    is_email_verified: bool = False
    is_active: bool = True
    last_login: Optional[datetime] = None
    email_verification_token: Optional[str] = None
    email_verification_expires: Optional[datetime] = None
    password_reset_token: Optional[str] = None
    password_reset_expires: Optional[datetime] = None
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    updated_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def _prepare(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        data['role'] = coerce_enum(UserRole, data.get('role'), UserRole.USER)
        if data.get('address') is None:
            data['address'] = {}
        return data

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def summary(self) -> Dict[str, Any]:
        """Embedded reference used when populating owners and reporters."""
        return {
            "user_id": self.user_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone
        }
