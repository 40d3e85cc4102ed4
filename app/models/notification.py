# app/models/notification.py
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Any, Optional

from app.models.base import FirestoreModel, coerce_enum
from app.utils.datetime_utils import DateTimeUtils

DEFAULT_TTL_DAYS = 30


class NotificationType(Enum):
    """In-app notification kinds"""
    POST_APPROVED = "post_approved"
    POST_EDITED = "post_edited"
    POST_DELETED = "post_deleted"
    PET_FOUND_MATCH = "pet_found_match"
    CONTACT_REQUEST = "contact_request"
    ACCOUNT_LOCKED = "account_locked"
    PASSWORD_RESET = "password_reset"
    EMAIL_VERIFICATION = "email_verification"
    ADMIN_ACTION = "admin_action"
    REPORT_RECEIVED = "report_received"
    REPORT_RESOLVED = "report_resolved"


@dataclass
class Notification(FirestoreModel):
    """
    Document structure of the Firestore 'notifications' collection.
    Expired notifications stay readable by id until purged.
    """
    notification_id: str
    recipient_id: str      # user who receives the notification
    type: NotificationType
    title: str
    message: str
    sender_id: Optional[str] = None
    related_pet_id: Optional[str] = None
    related_report_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    is_read: bool = False
    read_at: Optional[datetime] = None
    is_email_sent: bool = False
    email_sent_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    updated_at: datetime = field(default_factory=DateTimeUtils.now)
    expires_at: Optional[datetime] = None

    def __post_init__(self):
        if self.expires_at is None:
            self.expires_at = self.created_at + timedelta(days=DEFAULT_TTL_DAYS)

    @classmethod
    def _prepare(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        data['type'] = coerce_enum(NotificationType, data.get('type'), NotificationType.ADMIN_ACTION)
        if data.get('metadata') is None:
            data['metadata'] = {}
        return data

    def is_expired(self, at: Optional[datetime] = None) -> bool:
        at = at or DateTimeUtils.now()
        return self.expires_at is not None and self.expires_at <= at
