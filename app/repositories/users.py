# app/repositories/users.py
from typing import List, Optional

from google.api_core.exceptions import AlreadyExists

from app.models.user import User, UserRole
from app.repositories.base import FirestoreRepository
from app.utils.datetime_utils import DateTimeUtils


class UserRepository(FirestoreRepository[User]):
    """
    Users keyed by user_id. Email uniqueness is held by a second collection,
    `user_emails/<email>`, whose documents are only ever created with
    Firestore's create-if-absent semantics.
    """
    collection_name = 'users'
    id_field = 'user_id'
    model = User
    email_index_name = 'user_emails'

    def __init__(self, db):
        super().__init__(db)
        self.email_index = db.collection(self.email_index_name)

    # --- email reservations ---

    def reserve_email(self, email: str, user_id: str) -> bool:
        """Claims the email for user_id. False when another account already holds it."""
        try:
            self.email_index.add(
                DateTimeUtils.for_firestore({'user_id': user_id, 'reserved_at': DateTimeUtils.now()}),
                document_id=email.strip().lower()
            )
        except AlreadyExists:
            return False
        return True

    def release_email(self, email: str):
        self.email_index.document(email.strip().lower()).delete()

    def get_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        return self.find_one(email=email.strip().lower())

    def email_taken(self, email: str, exclude_user_id: Optional[str] = None) -> bool:
        user = self.get_by_email(email)
        return user is not None and user.user_id != exclude_user_id

    def get_by_verification_token(self, token: str) -> Optional[User]:
        return self.find_one(email_verification_token=token)

    def get_by_reset_token(self, token: str) -> Optional[User]:
        return self.find_one(password_reset_token=token)

    def search(self, role: Optional[UserRole] = None, is_active: Optional[bool] = None,
               text: Optional[str] = None) -> List[User]:
        """Admin listing: equality on role/is_active, case-insensitive substring on name or email. Newest first."""
        equals = {}
        if role is not None:
            equals['role'] = role.value
        if is_active is not None:
            equals['is_active'] = is_active
        users = self.find(**equals)
        if text:
            needle = text.strip().lower()
            users = [u for u in users if needle in (u.name or '').lower() or needle in (u.email or '').lower()]
        return sorted(users, key=lambda u: u.created_at, reverse=True)

    def recent(self, limit: int = 5) -> List[User]:
        return self.search()[:limit]
