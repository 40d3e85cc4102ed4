# app/repositories/outbox.py
from typing import List

from app.models.outbox import OutboxEvent, OutboxStatus
from app.repositories.base import FirestoreRepository


class OutboxRepository(FirestoreRepository[OutboxEvent]):
    collection_name = 'outbox'
    id_field = 'event_id'
    model = OutboxEvent

    def pending(self, limit: int = 100) -> List[OutboxEvent]:
        """Oldest pending events first."""
        events = self.find(status=OutboxStatus.PENDING.value)
        return sorted(events, key=lambda e: e.created_at)[:limit]
