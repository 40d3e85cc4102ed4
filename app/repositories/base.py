# app/repositories/base.py
import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar
from firebase_admin import firestore

from app.models.base import FirestoreModel
from app.utils.datetime_utils import DateTimeUtils

M = TypeVar("M", bound=FirestoreModel)


class FirestoreRepository(Generic[M]):
    """
    One Firestore collection mapped to one dataclass model.

    Only '==' clauses are pushed down to Firestore; range, substring and
    ordering logic lives in the concrete repositories.
    """
    collection_name: str = ""
    id_field: str = ""
    model: Type[M] = None

    def __init__(self, db):
        self.db = db
        self.collection = db.collection(self.collection_name)

    # --- reads ---

    def get(self, doc_id: str) -> Optional[M]:
        if not doc_id:
            return None
        doc = self.collection.document(doc_id).get()
        if not doc.exists:
            return None
        return self.model.from_dict(doc.to_dict())

    def find(self, **equals) -> List[M]:
        """All documents matching every field == value pair."""
        query = self.collection
        for field_name, value in equals.items():
            query = query.where(field_name, '==', value)
        return [self.model.from_dict(doc.to_dict()) for doc in query.stream()]

    def find_one(self, **equals) -> Optional[M]:
        results = self.find(**equals)
        return results[0] if results else None

    def count(self, **equals) -> int:
        return len(self.find(**equals))

    def get_many(self, doc_ids) -> Dict[str, M]:
        """id -> model for the ids that exist. Used to populate embedded references."""
        result = {}
        for doc_id in {i for i in doc_ids if i}:
            entity = self.get(doc_id)
            if entity is not None:
                result[doc_id] = entity
        return result

    # --- writes ---

    def add(self, entity: M) -> M:
        doc_id = getattr(entity, self.id_field)
        self.collection.document(doc_id).set(DateTimeUtils.for_firestore(entity.to_dict()))
        logging.info(f"{self.collection_name}: created {doc_id}")
        return entity

    def update(self, doc_id: str, changes: Dict[str, Any]) -> Optional[M]:
        """Partial update. Stamps `updated_at` and returns the re-read entity."""
        data = dict(changes)
        data['updated_at'] = DateTimeUtils.now()
        self.collection.document(doc_id).update(DateTimeUtils.for_firestore(data))
        return self.get(doc_id)

    def increment(self, doc_id: str, field_name: str, amount: int = 1):
        """Atomic counter bump through a server-side transform."""
        self.collection.document(doc_id).update({field_name: firestore.Increment(amount)})

    def delete(self, doc_id: str):
        self.collection.document(doc_id).delete()
        logging.info(f"{self.collection_name}: deleted {doc_id}")
