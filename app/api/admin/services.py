# app/api/admin/services.py
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict

from app.api.pets.services import PetService
from app.api.reports.services import ReportService
from app.core.errors import BadRequestError, ConflictError, NotFoundError
from app.models.pet import PetSearchFilters, PetStatus
from app.models.report import ReportStatus, ReportPriority
from app.models.user import User, UserRole
from app.repositories.pets import PetRepository
from app.repositories.reports import ReportRepository
from app.repositories.users import UserRepository
from app.utils.pagination import Page, paginate

RECENT_LIMIT = 5
OPEN_STATUSES = (ReportStatus.PENDING, ReportStatus.UNDER_REVIEW)
HIGH_PRIORITIES = (ReportPriority.HIGH, ReportPriority.URGENT)


class AdminService:
    """Moderator views over users, pets and reports."""

    def __init__(self, user_repository: UserRepository, pet_repository: PetRepository,
                 report_repository: ReportRepository, pet_service: PetService, report_service: ReportService):
        self.users = user_repository
        self.pets = pet_repository
        self.reports = report_repository
        self.pet_service = pet_service
        self.report_service = report_service

    # =====================================================================================
    # Dashboard
    # =====================================================================================
    def _high_priority_open(self) -> int:
        return sum(
            self.reports.count(status=status.value, priority=priority.value)
            for status in OPEN_STATUSES for priority in HIGH_PRIORITIES
        )

    def dashboard(self) -> Dict[str, Any]:
        """Independent reads fanned out to a small thread pool and assembled into one view."""
        reads = {
            'total_users': lambda: self.users.count(),
            'active_users': lambda: self.users.count(is_active=True),
            'total_pets': lambda: self.pets.count(),
            'approved_pets': lambda: self.pets.count(is_approved=True),
            'pending_pets': lambda: self.pets.count(is_approved=False, is_active=True),
            'total_reports': lambda: self.reports.count(),
            'pending_reports': lambda: self.reports.count(status=ReportStatus.PENDING.value),
            'high_priority_reports': self._high_priority_open,
            'recent_users': lambda: self.users.recent(RECENT_LIMIT),
            'recent_pets': lambda: self.pets.recent(RECENT_LIMIT),
            'recent_reports': lambda: self.reports.recent(RECENT_LIMIT),
        }
        with ThreadPoolExecutor(max_workers=4) as executor:
            futures = {name: executor.submit(read) for name, read in reads.items()}
            results = {name: future.result() for name, future in futures.items()}

        stats = {name: results[name] for name in reads if not name.startswith('recent_')}
        return {
            'stats': stats,
            'recent_users': [u.to_dict() for u in results['recent_users']],
            'recent_pets': self.pet_service.to_views(results['recent_pets']),
            'recent_reports': self.report_service.to_views(results['recent_reports']),
        }

    # =====================================================================================
    # Users
    # =====================================================================================
    def get_user_or_404(self, user_id: str) -> User:
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def list_users(self, query: Dict[str, Any]) -> Page:
        role = UserRole(query['role']) if query.get('role') else None
        users = self.users.search(role=role, is_active=query.get('is_active'), text=query.get('search'))
        return paginate(users, query['page'], query['limit'])

    def user_detail(self, user_id: str) -> Dict[str, Any]:
        user = self.get_user_or_404(user_id)
        view = user.to_dict()
        view['pets'] = [pet.to_dict() for pet in self.pets.by_owner(user_id)]
        return view

    def update_user(self, user_id: str, admin: User, data: Dict[str, Any]) -> User:
        user = self.get_user_or_404(user_id)
        if 'role' in data and user.user_id == admin.user_id and data['role'] != user.role.value:
            raise BadRequestError("Cannot change your own role")
        email_changed = 'email' in data and data['email'] != user.email
        if email_changed:
            if self.users.email_taken(data['email'], exclude_user_id=user.user_id):
                raise ConflictError("Email is already in use")
            if not self.users.reserve_email(data['email'], user.user_id):
                raise ConflictError("Email is already in use")

        changes = dict(data)
        if not changes:
            return user
        try:
            updated = self.users.update(user.user_id, changes)
        except Exception:
            if email_changed:
                self.users.release_email(data['email'])
            raise
        if email_changed:
            self.users.release_email(user.email)
        logging.info(f"User {user_id} updated by admin {admin.user_id}: {sorted(changes.keys())}")
        return updated

    def delete_user(self, user_id: str, admin: User) -> int:
        """Soft delete: the account and every post it owns are deactivated."""
        if user_id == admin.user_id:
            raise BadRequestError("Cannot delete your own account")
        user = self.get_user_or_404(user_id)
        self.users.update(user.user_id, {'is_active': False})
        deactivated = self.pet_service.deactivate_for_owner(user.user_id)
        logging.info(f"User {user_id} deactivated by admin {admin.user_id} ({deactivated} posts hidden)")
        return deactivated

    # =====================================================================================
    # Pets
    # =====================================================================================
    def list_pets(self, query: Dict[str, Any]) -> Page:
        filters = PetSearchFilters(
            status=PetStatus(query['status']) if query.get('status') else None,
            owner_id=query.get('owner'),
            text=query.get('search'),
            is_active=query.get('is_active'),
            is_approved=query.get('is_approved'),
            page=query['page'],
            limit=query['limit']
        )
        return self.pets.search(filters)
