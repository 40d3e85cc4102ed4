# app/api/pets/services.py
import logging
import uuid
from typing import Any, Dict, List, Optional

from werkzeug.datastructures import FileStorage

from app.core.errors import BadRequestError, ForbiddenError, NotFoundError
from app.models.notification import NotificationType
from app.models.pet import Pet, PetSearchFilters, PetStatus, PetType, PetGender, AgeUnit, WeightUnit
from app.models.user import User
from app.repositories.pets import PetRepository
from app.repositories.users import UserRepository
from app.services.email_service import EmailService
from app.services.outbox_service import OutboxService
from app.services.storage_service import StorageService
from app.utils.datetime_utils import DateTimeUtils
from app.utils.pagination import Page, paginate


class PetService:
    """Lost/found pet posts: creation with photos, search, edits, moderation and owner contact."""

    def __init__(self, pet_repository: PetRepository, user_repository: UserRepository,
                 storage_service: StorageService, outbox_service: OutboxService,
                 email_service: EmailService):
        self.pets = pet_repository
        self.users = user_repository
        self.storage = storage_service
        self.outbox = outbox_service
        self.email = email_service
        logging.info("PetService initialized with dependencies.")

    # =====================================================================================
    # Views
    # =====================================================================================
    def to_view(self, pet: Pet, owner: Optional[User] = None) -> Dict[str, Any]:
        """Pet dict with derived display fields and the embedded owner summary."""
        view = pet.to_dict()
        view['age_display'] = pet.age_display
        view['weight_display'] = pet.weight_display
        view['full_location'] = pet.full_location
        view['owner'] = owner.summary() if owner else None
        return view

    def to_views(self, pets: List[Pet]) -> List[Dict[str, Any]]:
        owners = self.users.get_many(p.owner_id for p in pets)
        return [self.to_view(pet, owners.get(pet.owner_id)) for pet in pets]

    def page_view(self, page: Page) -> Dict[str, Any]:
        return {"pets": self.to_views(page.items), "pagination": page.pagination}

    # =====================================================================================
    # Create
    # =====================================================================================
    @staticmethod
    def ensure_photos(files: List[FileStorage]):
        if not files:
            raise BadRequestError("At least one photo is required")

    def create(self, creator: User, data: Dict[str, Any], files: List[FileStorage]) -> Pet:
        self.ensure_photos(files)
        photos = self.storage.upload_pet_photos(creator.user_id, files)

        now = DateTimeUtils.now()
        pet = Pet(
            pet_id=str(uuid.uuid4()),
            owner_id=creator.user_id,
            name=data['name'],
            type=PetType(data['type']),
            breed=data['breed'],
            color=data['color'],
            gender=PetGender(data['gender']),
            status=PetStatus(data['status']),
            last_seen_date=data['last_seen_date'],
            photos=photos,
            last_seen_location=data['last_seen_location'],
            age=data.get('age'),
            age_unit=AgeUnit(data.get('age_unit', AgeUnit.YEARS.value)),
            weight=data.get('weight'),
            weight_unit=WeightUnit(data.get('weight_unit', WeightUnit.KG.value)),
            additional_notes=data.get('additional_notes'),
            microchip_number=data.get('microchip_number'),
            collar=data.get('collar') or {"has_collar": False},
            tags=data.get('tags') or [],
            created_at=now,
            updated_at=now
        )
        if creator.is_admin:
            pet.is_approved = True
            pet.approved_by = creator.user_id
            pet.approved_at = now

        try:
            self.pets.add(pet)
        except Exception:
            self.storage.purge_photos(photos)
            raise
        logging.info(f"Pet post {pet.pet_id} created by {creator.user_id} (approved={pet.is_approved})")
        return pet

    # =====================================================================================
    # Read
    # =====================================================================================
    def search(self, filters: PetSearchFilters, caller: Optional[User]) -> Page:
        """Public list. Non-admin callers only ever see approved posts."""
        filters.is_active = True
        if caller is None or not caller.is_admin:
            filters.is_approved = True
        return self.pets.search(filters)

    def nearby(self, filters: PetSearchFilters) -> Page:
        """Radius search over approved posts. Page and total come from two separate queries."""
        if not filters.has_geo:
            raise BadRequestError("Latitude and longitude are required")
        filters.is_active = True
        filters.is_approved = True
        page = self.pets.search(filters)
        total = self.pets.count_matching(filters)
        return Page(items=page.items, total=total, page=page.page, limit=page.limit)

    def get_or_404(self, pet_id: str) -> Pet:
        """No is_active / approval checks (moderation paths)."""
        pet = self.pets.get(pet_id)
        if pet is None:
            raise NotFoundError("Pet not found")
        return pet

    def my_pets(self, user: User, page: int, limit: int) -> Page:
        return paginate(self.pets.by_owner(user.user_id), page, limit)

    def get_detail(self, pet_id: str, caller: Optional[User]) -> Pet:
        """Every successful fetch counts as a view."""
        pet = self.pets.get(pet_id)
        if pet is None:
            raise NotFoundError("Pet not found")
        if not pet.is_active:
            raise NotFoundError("Pet post not found or has been removed")
        can_see_unapproved = caller is not None and (caller.is_admin or pet.is_owned_by(caller.user_id))
        if not pet.is_approved and not can_see_unapproved:
            raise NotFoundError("Pet not found")

        self.pets.increment(pet_id, 'views')
        pet.views += 1
        return pet

    # =====================================================================================
    # Update / delete
    # =====================================================================================
    def update(self, pet: Pet, editor: User, data: Dict[str, Any], files: List[FileStorage]) -> Pet:
        """
        Merges the provided fields over the stored post.

        - `photos` in the body is the retained subset of the current photos; new
          uploads are appended. Dropped photos are purged after the write.
        - A non-admin edit always sends the post back to moderation.
        - An admin editing someone else's post notifies the owner.
        - `is_approved` / `is_active` are only present for admin edits; a
          false -> true approval stamps the approver and notifies the owner.
        """
        data = dict(data)
        retained = data.pop('photos', None)
        retained = pet.photos if retained is None else [url for url in retained if url in pet.photos]
        files = files or []

        if len(retained) + len(files) > self.storage.max_photos:
            raise BadRequestError(f"A post can carry at most {self.storage.max_photos} photos")
        if not retained and not files:
            raise BadRequestError("At least one photo is required")

        new_photos = self.storage.upload_pet_photos(pet.owner_id, files) if files else []
        removed = [url for url in pet.photos if url not in retained]

        changes = {key: value for key, value in data.items() if key not in ('is_approved', 'is_active')}
        changes['photos'] = retained + new_photos

        approval_granted = False
        if editor.is_admin:
            if 'is_active' in data:
                changes['is_active'] = data['is_active']
            if 'is_approved' in data:
                changes['is_approved'] = data['is_approved']
                if data['is_approved'] and not pet.is_approved:
                    approval_granted = True
                    changes['approved_by'] = editor.user_id
                    changes['approved_at'] = DateTimeUtils.now()
                elif not data['is_approved']:
                    changes['approved_by'] = None
                    changes['approved_at'] = None
        else:
            changes['is_approved'] = False
            changes['approved_by'] = None
            changes['approved_at'] = None

        try:
            updated = self.pets.update(pet.pet_id, changes)
        except Exception:
            self.storage.purge_photos(new_photos)
            raise
        logging.info(f"Pet post {pet.pet_id} updated by {editor.user_id}: {sorted(changes.keys())}")

        if removed:
            self.storage.purge_photos(removed)
        if editor.is_admin and not pet.is_owned_by(editor.user_id):
            self._notify_owner_of_edit(updated, editor)
        if approval_granted:
            self._notify_owner_of_approval(updated, editor)
        return updated

    def delete(self, pet: Pet):
        """Photos are purged best-effort before the document is hard-deleted."""
        self.storage.purge_photos(pet.photos)
        self.pets.delete(pet.pet_id)

    # =====================================================================================
    # Status / moderation
    # =====================================================================================
    def approve(self, pet: Pet, admin: User, reject_if_approved: bool = False) -> Pet:
        if reject_if_approved and pet.is_approved:
            raise BadRequestError("Pet post is already approved")

        updated = self.pets.update(pet.pet_id, {
            'is_approved': True,
            'approved_by': admin.user_id,
            'approved_at': DateTimeUtils.now()
        })
        logging.info(f"Pet post {pet.pet_id} approved by {admin.user_id}")
        self._notify_owner_of_approval(updated, admin)
        return updated

    def reunite(self, pet: Pet) -> Pet:
        return self.pets.update(pet.pet_id, {'status': PetStatus.REUNITED.value})

    def deactivate_for_owner(self, owner_id: str) -> int:
        pets = self.pets.by_owner(owner_id)
        for pet in pets:
            self.pets.update(pet.pet_id, {'is_active': False})
        return len(pets)

    # =====================================================================================
    # Contact
    # =====================================================================================
    def contact_owner(self, pet_id: str, contact: Dict[str, Any]):
        """The email to the owner is the deliverable here, so its failure fails the request (500)."""
        pet = self.pets.get(pet_id)
        if pet is None or not pet.is_active:
            raise NotFoundError("Pet not found")
        if not pet.is_approved:
            raise ForbiddenError("Cannot contact owner of unapproved post")
        owner = self.users.get(pet.owner_id)
        if owner is None:
            raise NotFoundError("Pet owner not found")

        self.pets.increment(pet_id, 'contact_count')

        contact_info = {
            'name': contact['name'],
            'email': contact['email'],
            'phone': contact['phone'],
            'message': contact.get('message')
        }
        self.email.send(owner.email, 'contact_request', {
            'user_name': owner.name,
            'pet_name': pet.name,
            'contact': contact_info
        })
        self.outbox.publish_notification(
            owner.user_id,
            NotificationType.CONTACT_REQUEST,
            "New contact request",
            f"Someone is interested in your post about {pet.name}.",
            related_pet_id=pet.pet_id,
            metadata={'contactInfo': contact_info}
        )

    # =====================================================================================
    # Side effects
    # =====================================================================================
    def _notify_owner_of_approval(self, pet: Pet, admin: User):
        owner = self.users.get(pet.owner_id)
        if owner is None:
            logging.warning(f"Approval notification skipped: owner {pet.owner_id} not found")
            return
        self.outbox.publish_notification(
            owner.user_id,
            NotificationType.POST_APPROVED,
            "Your pet post has been approved",
            f"Your post about {pet.name} has been approved and is now live.",
            email={'to': owner.email, 'template': 'post_approved',
                   'context': {'user_name': owner.name, 'pet_name': pet.name}},
            sender_id=admin.user_id,
            related_pet_id=pet.pet_id
        )

    def _notify_owner_of_edit(self, pet: Pet, admin: User):
        owner = self.users.get(pet.owner_id)
        if owner is None:
            logging.warning(f"Edit notification skipped: owner {pet.owner_id} not found")
            return
        self.outbox.publish_notification(
            owner.user_id,
            NotificationType.POST_EDITED,
            "Your pet post has been edited",
            f"Your post about {pet.name} has been edited by an administrator.",
            email={'to': owner.email, 'template': 'post_edited',
                   'context': {'user_name': owner.name, 'pet_name': pet.name}},
            sender_id=admin.user_id,
            related_pet_id=pet.pet_id
        )


def build_filters(query: Dict[str, Any]) -> PetSearchFilters:
    """Loaded PetSearchQuerySchema data -> PetSearchFilters."""
    return PetSearchFilters(
        status=PetStatus(query['status']) if query.get('status') else None,
        type=PetType(query['type']) if query.get('type') else None,
        gender=PetGender(query['gender']) if query.get('gender') else None,
        breed=query.get('breed'),
        color=query.get('color'),
        date_from=query.get('date_from'),
        date_to=query.get('date_to'),
        latitude=query.get('latitude'),
        longitude=query.get('longitude'),
        radius_km=query.get('radius', 10.0),
        page=query.get('page', 1),
        limit=query.get('limit', 20)
    )
