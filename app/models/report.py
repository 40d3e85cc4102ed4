# app/models/report.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any

from app.models.base import FirestoreModel, coerce_enum
from app.utils.datetime_utils import DateTimeUtils


class ReportType(Enum):
    USER = "user"
    PET_POST = "pet_post"
    SPAM = "spam"
    INAPPROPRIATE = "inappropriate"
    FAKE = "fake"
    DUPLICATE = "duplicate"
    OTHER = "other"


class ReportStatus(Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class ReportPriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        return PRIORITY_RANK[self]


PRIORITY_RANK = {
    ReportPriority.URGENT: 0,
    ReportPriority.HIGH: 1,
    ReportPriority.MEDIUM: 2,
    ReportPriority.LOW: 3,
}


class ReportAction(Enum):
    NONE = "none"
    WARN_USER = "warn_user"
    DELETE_POST = "delete_post"
    DISABLE_USER = "disable_user"
    BAN_USER = "ban_user"
    OTHER = "other"


@dataclass
class Report(FirestoreModel):
    """Document structure of the Firestore 'reports' collection."""
    report_id: str
    reporter_id: str
    type: ReportType
    reason: str
    reported_user_id: Optional[str] = None
    reported_pet_id: Optional[str] = None
    description: Optional[str] = None
    evidence: List[str] = field(default_factory=list)
    status: ReportStatus = ReportStatus.PENDING
    priority: ReportPriority = ReportPriority.MEDIUM
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    admin_notes: Optional[str] = None
    action: ReportAction = ReportAction.NONE
    action_taken_by: Optional[str] = None
    action_taken_at: Optional[datetime] = None
    is_resolved: bool = False
    resolved_at: Optional[datetime] = None
    resolution_notes: Optional[str] = None
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    updated_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def _prepare(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        data['type'] = coerce_enum(ReportType, data.get('type'), ReportType.OTHER)
        data['status'] = coerce_enum(ReportStatus, data.get('status'), ReportStatus.PENDING)
        data['priority'] = coerce_enum(ReportPriority, data.get('priority'), ReportPriority.MEDIUM)
        data['action'] = coerce_enum(ReportAction, data.get('action'), ReportAction.NONE)
        if data.get('evidence') is None:
            data['evidence'] = []
        return data

    def involves(self, user_id: str) -> bool:
        return user_id in (self.reporter_id, self.reported_user_id)
