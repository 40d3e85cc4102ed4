# app/services/notification_service.py
import logging
import uuid
from datetime import timedelta
from typing import Any, Dict, Optional, Union

from app.models.notification import Notification, NotificationType
from app.repositories.notifications import NotificationRepository
from app.utils.datetime_utils import DateTimeUtils
from app.utils.pagination import Page, paginate


class NotificationService:
    """
    In-app notification records: creation (driven by the outbox dispatcher),
    the recipient's inbox views, and the expiry sweep.
    """

    def __init__(self, notification_repository: NotificationRepository, ttl_days: int = 30):
        self.repository = notification_repository
        self.ttl_days = ttl_days

    def create(self, recipient_id: str, type: Union[NotificationType, str], title: str, message: str,
               sender_id: Optional[str] = None, related_pet_id: Optional[str] = None,
               related_report_id: Optional[str] = None,
               metadata: Optional[Dict[str, Any]] = None) -> Notification:
        created_at = DateTimeUtils.now()
        notification = Notification(
            notification_id=str(uuid.uuid4()),
            recipient_id=recipient_id,
            type=NotificationType(type),
            title=title[:200],
            message=message[:1000],
            sender_id=sender_id,
            related_pet_id=related_pet_id,
            related_report_id=related_report_id,
            metadata=metadata or {},
            created_at=created_at,
            updated_at=created_at,
            expires_at=created_at + timedelta(days=self.ttl_days)
        )
        self.repository.add(notification)
        logging.info(f"{notification.type.value} notification created for {recipient_id}")
        return notification

    # --- recipient views ---

    def list_for(self, user_id: str, is_read: Optional[bool] = None, page: int = 1, limit: int = 20) -> Page:
        items = self.repository.for_recipient(user_id, DateTimeUtils.now(), is_read=is_read)
        return paginate(items, page, limit)

    def unread_count(self, user_id: str) -> int:
        return len(self.repository.for_recipient(user_id, DateTimeUtils.now(), is_read=False))

    def mark_read(self, notification: Notification) -> Notification:
        if notification.is_read:
            return notification
        return self.repository.update(notification.notification_id, {
            'is_read': True,
            'read_at': DateTimeUtils.now()
        })

    def mark_all_read(self, user_id: str) -> int:
        unread = self.repository.find(recipient_id=user_id, is_read=False)
        now = DateTimeUtils.now()
        for notification in unread:
            self.repository.update(notification.notification_id, {'is_read': True, 'read_at': now})
        return len(unread)

    def mark_email_sent(self, notification_id: str):
        self.repository.update(notification_id, {
            'is_email_sent': True,
            'email_sent_at': DateTimeUtils.now()
        })

    def delete(self, notification_id: str):
        self.repository.delete(notification_id)

    # --- maintenance ---

    def purge_expired(self) -> int:
        """Hard-deletes every notification past its expiry. Returns the number removed."""
        expired = self.repository.expired(DateTimeUtils.now())
        for notification in expired:
            self.repository.delete(notification.notification_id)
        logging.info(f"Purged {len(expired)} expired notifications")
        return len(expired)
