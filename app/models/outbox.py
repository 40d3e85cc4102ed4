# app/models/outbox.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional

from app.models.base import FirestoreModel, coerce_enum
from app.utils.datetime_utils import DateTimeUtils


class OutboxKind(Enum):
    NOTIFICATION = "notification"   # in-app record, optionally followed by a templated email
    EMAIL = "email"                 # email only


class OutboxStatus(Enum):
    PENDING = "pending"
    DELIVERED = "delivered"
    FAILED = "failed"


@dataclass
class OutboxEvent(FirestoreModel):
    """
    Document structure of the Firestore 'outbox' collection.

    payload for NOTIFICATION: {notification: {...}, email?: {to, template, context}}
    payload for EMAIL:        {email: {to, template, context}}

    `notification_id` is recorded once the in-app record exists so a retry never
    creates it twice; `email_sent` plays the same role for the email half.
    """
    event_id: str
    kind: OutboxKind
    payload: Dict[str, Any] = field(default_factory=dict)
    status: OutboxStatus = OutboxStatus.PENDING
    attempts: int = 0
    last_error: Optional[str] = None
    notification_id: Optional[str] = None
    email_sent: bool = False
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    updated_at: datetime = field(default_factory=DateTimeUtils.now)
    delivered_at: Optional[datetime] = None

    @classmethod
    def _prepare(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        data['kind'] = coerce_enum(OutboxKind, data.get('kind'), OutboxKind.NOTIFICATION)
        data['status'] = coerce_enum(OutboxStatus, data.get('status'), OutboxStatus.PENDING)
        if data.get('payload') is None:
            data['payload'] = {}
        return data
