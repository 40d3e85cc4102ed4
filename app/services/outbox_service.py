# app/services/outbox_service.py
"""
Outbox for notification and email side effects.

Domain services call `publish_*` after their own write has succeeded. The
event is stored in the 'outbox' collection and, when `dispatch_inline` is on,
delivered right away in the same request. Anything that fails stays `pending`
with `attempts` and `last_error` recorded, and is retried by
`flask outbox-dispatch` until `max_attempts`, after which it is `failed`.

Neither publishing nor dispatching ever raises into the caller.
"""

import logging
import uuid
from typing import Any, Dict, Optional

from app.models.notification import NotificationType
from app.models.outbox import OutboxEvent, OutboxKind, OutboxStatus
from app.repositories.outbox import OutboxRepository
from app.services.email_service import EmailService
from app.services.notification_service import NotificationService
from app.utils.datetime_utils import DateTimeUtils


class OutboxService:

    def __init__(self, outbox_repository: OutboxRepository, notification_service: NotificationService,
                 email_service: EmailService, dispatch_inline: bool = True, max_attempts: int = 5):
        self.repository = outbox_repository
        self.notification_service = notification_service
        self.email_service = email_service
        self.dispatch_inline = dispatch_inline
        self.max_attempts = max_attempts

    # --- publishing ---

    def publish_notification(self, recipient_id: str, n_type: NotificationType, title: str, message: str,
                             email: Optional[Dict[str, Any]] = None, sender_id: Optional[str] = None,
                             related_pet_id: Optional[str] = None, related_report_id: Optional[str] = None,
                             metadata: Optional[Dict[str, Any]] = None) -> Optional[OutboxEvent]:
        """
        In-app notification plus, when `email` ({to, template, context}) is given,
        the matching email.
        """
        payload = {
            'notification': {
                'recipient_id': recipient_id,
                'type': n_type.value,
                'title': title,
                'message': message,
                'sender_id': sender_id,
                'related_pet_id': related_pet_id,
                'related_report_id': related_report_id,
                'metadata': metadata or {}
            }
        }
        if email:
            payload['email'] = email
        return self._publish(OutboxKind.NOTIFICATION, payload)

    def publish_email(self, to: str, template: str, context: Dict[str, Any]) -> Optional[OutboxEvent]:
        return self._publish(OutboxKind.EMAIL, {'email': {'to': to, 'template': template, 'context': context}})

    def _publish(self, kind: OutboxKind, payload: Dict[str, Any]) -> Optional[OutboxEvent]:
        try:
            event = self.repository.add(OutboxEvent(event_id=str(uuid.uuid4()), kind=kind, payload=payload))
        except Exception as e:
            logging.error(f"Failed to store {kind.value} outbox event: {e}", exc_info=True)
            return None

        if self.dispatch_inline:
            return self.dispatch(event)
        return event

    # --- dispatching ---

    def dispatch(self, event: OutboxEvent) -> OutboxEvent:
        """Delivers whatever part of the event is still outstanding."""
        event.attempts += 1
        changes: Dict[str, Any] = {'attempts': event.attempts}
        try:
            notification_payload = event.payload.get('notification')
            if event.kind == OutboxKind.NOTIFICATION and notification_payload and not event.notification_id:
                notification = self.notification_service.create(**notification_payload)
                event.notification_id = notification.notification_id
                changes['notification_id'] = event.notification_id

            email = event.payload.get('email')
            if email and not event.email_sent:
                self.email_service.send(email['to'], email['template'], email.get('context') or {})
                event.email_sent = True
                changes['email_sent'] = True
                if event.notification_id:
                    self.notification_service.mark_email_sent(event.notification_id)

            event.status = OutboxStatus.DELIVERED
            event.last_error = None
            changes.update({'status': event.status.value, 'last_error': None, 'delivered_at': DateTimeUtils.now()})
        except Exception as e:
            logging.error(f"Outbox event {event.event_id} failed (attempt {event.attempts}): {e}", exc_info=True)
            event.last_error = str(e)
            event.status = OutboxStatus.FAILED if event.attempts >= self.max_attempts else OutboxStatus.PENDING
            changes.update({'status': event.status.value, 'last_error': event.last_error})

        try:
            self.repository.update(event.event_id, changes)
        except Exception as e:
            logging.error(f"Failed to record outbox event {event.event_id} state: {e}", exc_info=True)
        return event

    def dispatch_pending(self, limit: int = 100) -> Dict[str, int]:
        """Retries pending events, oldest first. Returns a status -> count summary."""
        summary = {status.value: 0 for status in OutboxStatus}
        for event in self.repository.pending(limit):
            result = self.dispatch(event)
            summary[result.status.value] += 1
        logging.info(f"Outbox dispatch finished: {summary}")
        return summary
