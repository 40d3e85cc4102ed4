# app/repositories/reports.py
from datetime import datetime
from typing import List, Optional

from app.models.report import Report, ReportStatus
from app.repositories.base import FirestoreRepository


def _newest_first(reports: List[Report]) -> List[Report]:
    return sorted(reports, key=lambda r: r.created_at, reverse=True)


class ReportRepository(FirestoreRepository[Report]):
    collection_name = 'reports'
    id_field = 'report_id'
    model = Report

    def filed_by_or_about(self, user_id: str, status: Optional[ReportStatus] = None) -> List[Report]:
        """Reports the user filed plus reports naming the user, without duplicates."""
        extra = {'status': status.value} if status else {}
        by_id = {r.report_id: r for r in self.find(reporter_id=user_id, **extra)}
        for report in self.find(reported_user_id=user_id, **extra):
            by_id.setdefault(report.report_id, report)
        return _newest_first(list(by_id.values()))

    def about_user(self, user_id: str, status: Optional[ReportStatus] = None) -> List[Report]:
        extra = {'status': status.value} if status else {}
        return _newest_first(self.find(reported_user_id=user_id, **extra))

    def about_pets(self, pet_ids: List[str], status: Optional[ReportStatus] = None) -> List[Report]:
        extra = {'status': status.value} if status else {}
        reports = []
        for pet_id in pet_ids:
            reports.extend(self.find(reported_pet_id=pet_id, **extra))
        return _newest_first(reports)

    def recent_by_reporter(self, reporter_id: str, since: datetime,
                           reported_user_id: Optional[str] = None,
                           reported_pet_id: Optional[str] = None) -> List[Report]:
        """Reports by `reporter_id` created after `since` that target the given user or pet."""
        matches = []
        for report in self.find(reporter_id=reporter_id):
            if report.created_at < since:
                continue
            same_user = reported_user_id is not None and report.reported_user_id == reported_user_id
            same_pet = reported_pet_id is not None and report.reported_pet_id == reported_pet_id
            if same_user or same_pet:
                matches.append(report)
        return matches

    def admin_search(self, **equals) -> List[Report]:
        """Equality filters, then priority rank (urgent first) and newest first."""
        reports = self.find(**{k: v for k, v in equals.items() if v is not None})
        reports = _newest_first(reports)
        return sorted(reports, key=lambda r: r.priority.rank)

    def recent(self, limit: int = 5) -> List[Report]:
        return _newest_first(self.find())[:limit]
