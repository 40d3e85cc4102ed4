# app/api/admin/schemas.py
from marshmallow import Schema, fields, validate

from app.api.auth.schemas import UserProfileResponseSchema
from app.api.pets.schemas import PetResponseSchema
from app.api.reports.schemas import ReportResponseSchema
from app.models.user import UserRole
from app.schemas.base import (
    CamelCaseSchema,
    TrimmedString,
    LowerEmail,
    PaginationQuerySchema,
    PaginationSchema,
    validate_person_name,
    validate_phone
)


class AdminUserQuerySchema(PaginationQuerySchema):
    role = fields.Str(validate=validate.OneOf([r.value for r in UserRole]))
    is_active = fields.Bool()
    search = TrimmedString()


class AdminUserUpdateSchema(CamelCaseSchema):
    """PUT /api/admin/users/<user_id>"""
    name = TrimmedString(validate=validate_person_name)
    email = LowerEmail(error_messages={"invalid": "Please provide a valid email"})
    phone = TrimmedString(validate=validate_phone)
    role = fields.Str(validate=validate.OneOf([r.value for r in UserRole], error="Invalid role"))
    is_active = fields.Bool()
    is_email_verified = fields.Bool()


class AdminUserListResponseSchema(Schema):
    users = fields.List(fields.Nested(UserProfileResponseSchema))
    pagination = fields.Nested(PaginationSchema)


class OwnedPetSummarySchema(CamelCaseSchema):
    id = fields.Str(attribute="pet_id")
    name = fields.Str()
    type = fields.Str()
    status = fields.Str()
    is_approved = fields.Bool()
    is_active = fields.Bool()


class AdminUserDetailSchema(UserProfileResponseSchema):
    pets = fields.List(fields.Nested(OwnedPetSummarySchema))


class DashboardStatsSchema(CamelCaseSchema):
    total_users = fields.Int()
    active_users = fields.Int()
    total_pets = fields.Int()
    approved_pets = fields.Int()
    pending_pets = fields.Int()
    total_reports = fields.Int()
    pending_reports = fields.Int()
    high_priority_reports = fields.Int()


class DashboardResponseSchema(CamelCaseSchema):
    stats = fields.Nested(DashboardStatsSchema)
    recent_users = fields.List(fields.Nested(UserProfileResponseSchema))
    recent_pets = fields.List(fields.Nested(PetResponseSchema))
    recent_reports = fields.List(fields.Nested(ReportResponseSchema))
