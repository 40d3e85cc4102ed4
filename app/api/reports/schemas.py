# app/api/reports/schemas.py
from marshmallow import Schema, fields, validate, validates_schema, ValidationError

from app.models.report import ReportType, ReportStatus, ReportPriority, ReportAction
from app.schemas.base import (
    CamelCaseSchema, TrimmedString, UtcDateTime, PaginationQuerySchema, PaginationSchema, UserSummarySchema
)


def _choices(enum_cls):
    return [e.value for e in enum_cls]


class ReportCreateSchema(CamelCaseSchema):
    """POST /api/reports"""
    type = fields.Str(required=True, validate=validate.OneOf(_choices(ReportType), error="Invalid report type"))
    reason = TrimmedString(required=True, validate=validate.Length(
        min=1, max=500, error="Reason must be between 1 and 500 characters"))
    description = TrimmedString(validate=validate.Length(max=1000, error="Description cannot exceed 1000 characters"))
    reported_user_id = fields.Str()
    reported_pet_id = fields.Str()
    evidence = fields.List(fields.Str(), load_default=list)

    @validates_schema
    def require_target(self, data, **kwargs):
        if not data.get('reported_user_id') and not data.get('reported_pet_id'):
            raise ValidationError("Must specify either a user or pet to report", "reportedUserId")


class ReportUpdateSchema(CamelCaseSchema):
    """PUT /api/reports/<report_id> by the reporter while still pending."""
    reason = TrimmedString(validate=validate.Length(min=1, max=500, error="Reason must be between 1 and 500 characters"))
    description = TrimmedString(validate=validate.Length(max=1000, error="Description cannot exceed 1000 characters"))
    evidence = fields.List(fields.Str())


class ReportQuerySchema(PaginationQuerySchema):
    status = fields.Str(validate=validate.OneOf(_choices(ReportStatus)))


class AdminReportUpdateSchema(CamelCaseSchema):
    """PUT /api/admin/reports/<report_id>"""
    status = fields.Str(validate=validate.OneOf(_choices(ReportStatus), error="Invalid status"))
    priority = fields.Str(validate=validate.OneOf(_choices(ReportPriority), error="Invalid priority"))
    action = fields.Str(validate=validate.OneOf(_choices(ReportAction), error="Invalid action"))
    admin_notes = TrimmedString(validate=validate.Length(max=1000, error="Admin notes cannot exceed 1000 characters"))
    resolution_notes = TrimmedString(validate=validate.Length(max=1000))


class AdminReportQuerySchema(PaginationQuerySchema):
    status = fields.Str(validate=validate.OneOf(_choices(ReportStatus)))
    type = fields.Str(validate=validate.OneOf(_choices(ReportType)))
    priority = fields.Str(validate=validate.OneOf(_choices(ReportPriority)))
    reporter = fields.Str()
    reported_user = fields.Str()
    reported_pet = fields.Str()


class ReportedPetSchema(CamelCaseSchema):
    id = fields.Str(attribute="pet_id")
    name = fields.Str()
    type = fields.Str()
    breed = fields.Str()


class ReportResponseSchema(CamelCaseSchema):
    id = fields.Str(attribute="report_id")
    reporter_id = fields.Str()
    reporter = fields.Nested(UserSummarySchema, allow_none=True)
    reported_user_id = fields.Str(allow_none=True)
    reported_user = fields.Nested(UserSummarySchema, allow_none=True)
    reported_pet_id = fields.Str(allow_none=True)
    reported_pet = fields.Nested(ReportedPetSchema, allow_none=True)
    type = fields.Str()
    reason = fields.Str()
    description = fields.Str(allow_none=True)
    evidence = fields.List(fields.Str())
    status = fields.Str()
    priority = fields.Str()
    reviewed_by = fields.Str(allow_none=True)
    reviewed_at = UtcDateTime(allow_none=True)
    admin_notes = fields.Str(allow_none=True)
    action = fields.Str()
    action_taken_by = fields.Str(allow_none=True)
    action_taken_at = UtcDateTime(allow_none=True)
    is_resolved = fields.Bool()
    resolved_at = UtcDateTime(allow_none=True)
    resolution_notes = fields.Str(allow_none=True)
    created_at = UtcDateTime()
    updated_at = UtcDateTime()


class ReportListResponseSchema(Schema):
    reports = fields.List(fields.Nested(ReportResponseSchema))
    pagination = fields.Nested(PaginationSchema)
