# app/api/notifications/schemas.py
from marshmallow import Schema, fields

from app.schemas.base import CamelCaseSchema, UtcDateTime, PaginationQuerySchema, PaginationSchema


class NotificationQuerySchema(PaginationQuerySchema):
    is_read = fields.Bool()


class NotificationResponseSchema(CamelCaseSchema):
    id = fields.Str(attribute="notification_id")
    recipient_id = fields.Str()
    sender_id = fields.Str(allow_none=True)
    type = fields.Str()
    title = fields.Str()
    message = fields.Str()
    related_pet_id = fields.Str(allow_none=True)
    related_report_id = fields.Str(allow_none=True)
    # metadata keys are already camelCase (e.g. contactInfo)
    metadata = fields.Dict()
    is_read = fields.Bool()
    read_at = UtcDateTime(allow_none=True)
    is_email_sent = fields.Bool()
    email_sent_at = UtcDateTime(allow_none=True)
    created_at = UtcDateTime()
    expires_at = UtcDateTime(allow_none=True)


class NotificationListResponseSchema(Schema):
    notifications = fields.List(fields.Nested(NotificationResponseSchema))
    pagination = fields.Nested(PaginationSchema)
