# app/repositories/notifications.py
from datetime import datetime
from typing import List, Optional

from app.models.notification import Notification
from app.repositories.base import FirestoreRepository


class NotificationRepository(FirestoreRepository[Notification]):
    collection_name = 'notifications'
    id_field = 'notification_id'
    model = Notification

    def for_recipient(self, recipient_id: str, now: datetime, is_read: Optional[bool] = None) -> List[Notification]:
        """Unexpired notifications of one recipient, newest first."""
        equals = {'recipient_id': recipient_id}
        if is_read is not None:
            equals['is_read'] = is_read
        items = [n for n in self.find(**equals) if not n.is_expired(now)]
        return sorted(items, key=lambda n: n.created_at, reverse=True)

    def expired(self, now: datetime) -> List[Notification]:
        return [n for n in self.find() if n.is_expired(now)]
