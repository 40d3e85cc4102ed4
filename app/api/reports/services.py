# app/api/reports/services.py
import logging
import uuid
from datetime import timedelta
from typing import Any, Dict, List, Optional

from app.core.errors import BadRequestError, ForbiddenError, NotFoundError
from app.models.notification import NotificationType
from app.models.report import Report, ReportType, ReportStatus, ReportPriority, ReportAction
from app.models.user import User
from app.repositories.pets import PetRepository
from app.repositories.reports import ReportRepository
from app.repositories.users import UserRepository
from app.services.outbox_service import OutboxService
from app.utils.datetime_utils import DateTimeUtils
from app.utils.pagination import Page, paginate

DUPLICATE_WINDOW = timedelta(hours=24)


class ReportService:
    """User-filed moderation reports and their admin lifecycle."""

    def __init__(self, report_repository: ReportRepository, user_repository: UserRepository,
                 pet_repository: PetRepository, outbox_service: OutboxService):
        self.reports = report_repository
        self.users = user_repository
        self.pets = pet_repository
        self.outbox = outbox_service

    # --- views ---

    def to_views(self, reports: List[Report]) -> List[Dict[str, Any]]:
        users = self.users.get_many(
            [r.reporter_id for r in reports] + [r.reported_user_id for r in reports]
        )
        pets = self.pets.get_many(r.reported_pet_id for r in reports)
        views = []
        for report in reports:
            view = report.to_dict()
            reporter = users.get(report.reporter_id)
            reported_user = users.get(report.reported_user_id)
            reported_pet = pets.get(report.reported_pet_id)
            view['reporter'] = reporter.summary() if reporter else None
            view['reported_user'] = reported_user.summary() if reported_user else None
            view['reported_pet'] = reported_pet.to_dict() if reported_pet else None
            views.append(view)
        return views

    def page_view(self, page: Page) -> Dict[str, Any]:
        return {"reports": self.to_views(page.items), "pagination": page.pagination}

    # --- reporter side ---

    def create(self, reporter: User, data: Dict[str, Any]) -> Report:
        reported_user_id = data.get('reported_user_id')
        reported_pet_id = data.get('reported_pet_id')

        if reported_user_id:
            if reported_user_id == reporter.user_id:
                raise BadRequestError("Cannot report yourself")
            if self.users.get(reported_user_id) is None:
                raise NotFoundError("Reported user not found")
        if reported_pet_id:
            pet = self.pets.get(reported_pet_id)
            if pet is None:
                raise NotFoundError("Reported pet not found")
            if pet.is_owned_by(reporter.user_id):
                raise BadRequestError("Cannot report your own pet post")

        recent = self.reports.recent_by_reporter(
            reporter.user_id, DateTimeUtils.now() - DUPLICATE_WINDOW,
            reported_user_id=reported_user_id, reported_pet_id=reported_pet_id
        )
        if recent:
            raise BadRequestError(
                "You have already reported this recently. Please wait 24 hours before reporting again."
            )

        report = Report(
            report_id=str(uuid.uuid4()),
            reporter_id=reporter.user_id,
            type=ReportType(data['type']),
            reason=data['reason'],
            description=data.get('description'),
            reported_user_id=reported_user_id,
            reported_pet_id=reported_pet_id,
            evidence=data.get('evidence') or []
        )
        self.reports.add(report)
        logging.info(f"Report {report.report_id} filed by {reporter.user_id}")

        self.outbox.publish_notification(
            reporter.user_id,
            NotificationType.REPORT_RECEIVED,
            "Report received",
            f"We have received your report about {report.type.value}. Our moderation team will review it.",
            email={'to': reporter.email, 'template': 'report_received',
                   'context': {'user_name': reporter.name, 'report_type': report.type.value}},
            related_report_id=report.report_id
        )
        return report

    def list_for(self, user: User, status: Optional[ReportStatus], page: int, limit: int) -> Page:
        return paginate(self.reports.filed_by_or_about(user.user_id, status), page, limit)

    def about_me(self, user: User, status: Optional[ReportStatus], page: int, limit: int) -> Page:
        return paginate(self.reports.about_user(user.user_id, status), page, limit)

    def about_my_pets(self, user: User, status: Optional[ReportStatus], page: int, limit: int) -> Page:
        pet_ids = [pet.pet_id for pet in self.pets.by_owner(user.user_id)]
        return paginate(self.reports.about_pets(pet_ids, status), page, limit)

    def get_visible(self, report_id: str, user: User) -> Report:
        """Reporter, reported user or admin."""
        report = self.get_or_404(report_id)
        if not report.involves(user.user_id) and not user.is_admin:
            raise ForbiddenError("Not authorized to view this report")
        return report

    def update_own(self, report: Report, changes: Dict[str, Any]) -> Report:
        if report.status != ReportStatus.PENDING:
            raise BadRequestError("Cannot update a report that has been reviewed")
        if not changes:
            return report
        return self.reports.update(report.report_id, changes)

    def delete_own(self, report: Report):
        if report.status != ReportStatus.PENDING:
            raise BadRequestError("Cannot delete a report that has been reviewed")
        self.reports.delete(report.report_id)

    # --- admin side ---

    def get_or_404(self, report_id: str) -> Report:
        report = self.reports.get(report_id)
        if report is None:
            raise NotFoundError("Report not found")
        return report

    def admin_search(self, query: Dict[str, Any]) -> Page:
        reports = self.reports.admin_search(
            status=query.get('status'),
            type=query.get('type'),
            priority=query.get('priority'),
            reporter_id=query.get('reporter'),
            reported_user_id=query.get('reported_user'),
            reported_pet_id=query.get('reported_pet')
        )
        return paginate(reports, query.get('page', 1), query.get('limit', 20))

    def admin_update(self, report: Report, admin: User, data: Dict[str, Any]) -> Report:
        """
        Status transitions:
        - under_review: reviewer stamped
        - resolved: action taker stamped, resolved; the reporter is notified when
          the report was not already resolved
        - dismissed: reviewer stamped, resolved, no notification
        - pending: reopened
        """
        now = DateTimeUtils.now()
        changes: Dict[str, Any] = {}
        for key in ('admin_notes', 'resolution_notes'):
            if key in data:
                changes[key] = data[key]
        if 'priority' in data:
            changes['priority'] = ReportPriority(data['priority']).value
        if 'action' in data:
            changes['action'] = ReportAction(data['action']).value

        new_status = ReportStatus(data['status']) if 'status' in data else None
        if new_status is not None:
            changes['status'] = new_status.value
            if new_status == ReportStatus.UNDER_REVIEW:
                changes.update(reviewed_by=admin.user_id, reviewed_at=now)
            elif new_status == ReportStatus.RESOLVED:
                changes.update(action_taken_by=admin.user_id, action_taken_at=now,
                               is_resolved=True, resolved_at=now)
                if not report.reviewed_by:
                    changes.update(reviewed_by=admin.user_id, reviewed_at=now)
            elif new_status == ReportStatus.DISMISSED:
                changes.update(reviewed_by=admin.user_id, reviewed_at=now, is_resolved=True, resolved_at=now)
            elif new_status == ReportStatus.PENDING:
                changes.update(is_resolved=False, resolved_at=None)

        updated = self.reports.update(report.report_id, changes)
        logging.info(f"Report {report.report_id} updated by admin {admin.user_id}: {sorted(changes.keys())}")

        if new_status == ReportStatus.RESOLVED and report.status != ReportStatus.RESOLVED:
            self._notify_reporter_resolved(updated, admin)
        return updated

    def _notify_reporter_resolved(self, report: Report, admin: User):
        reporter = self.users.get(report.reporter_id)
        if reporter is None:
            logging.warning(f"Resolution notification skipped: reporter {report.reporter_id} not found")
            return
        action = report.action.value
        self.outbox.publish_notification(
            reporter.user_id,
            NotificationType.REPORT_RESOLVED,
            "Your report has been resolved",
            f"Your report about {report.type.value} has been resolved. Action taken: {action}",
            email={'to': reporter.email, 'template': 'report_resolved',
                   'context': {'user_name': reporter.name, 'report_type': report.type.value, 'action': action}},
            sender_id=admin.user_id,
            related_report_id=report.report_id
        )
