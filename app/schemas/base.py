# app/schemas/base.py
"""
Shared marshmallow building blocks.

Documents are stored snake_case in Firestore; every request and response body
is camelCase. `CamelCaseSchema` maps between the two so domain schemas can be
declared with the storage field names.
"""

import json
from datetime import datetime
from marshmallow import Schema, fields, validate, pre_load, EXCLUDE, ValidationError

from app.utils.datetime_utils import DateTimeUtils


def camelcase(s: str) -> str:
    parts = iter(s.split("_"))
    return next(parts) + "".join(part.title() for part in parts)


class CamelCaseSchema(Schema):
    """Schema whose data keys are the camelCase form of the attribute names."""

    class Meta:
        unknown = EXCLUDE

    def on_bind_field(self, field_name, field_obj):
        field_obj.data_key = camelcase(field_obj.data_key or field_name)


# --- Shared validators ---

NAME_PATTERN = r"^[a-zA-Z\s]+$"
PHONE_PATTERN = r"^\+?[1-9]\d{0,15}$"
PASSWORD_PATTERN = r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)"

validate_person_name = [
    validate.Length(min=2, max=50, error="Name must be between 2 and 50 characters"),
    validate.Regexp(NAME_PATTERN, error="Name can only contain letters and spaces"),
]
validate_phone = validate.Regexp(PHONE_PATTERN, error="Please provide a valid phone number")
validate_password = [
    validate.Length(min=6, error="Password must be at least 6 characters long"),
    validate.Regexp(
        PASSWORD_PATTERN,
        error="Password must contain at least one uppercase letter, one lowercase letter, and one number"
    ),
]


class TrimmedString(fields.String):
    """String field that strips surrounding whitespace on load."""

    def _deserialize(self, value, attr, data, **kwargs):
        result = super()._deserialize(value, attr, data, **kwargs)
        return result.strip() if result is not None else result


class LowerEmail(fields.Email):
    def _deserialize(self, value, attr, data, **kwargs):
        result = super()._deserialize(value.strip() if isinstance(value, str) else value, attr, data, **kwargs)
        return result.lower() if result else result


class UtcDateTime(fields.Field):
    """ISO 8601 in, ISO 8601 with 'Z' out. Values are UTC-aware datetimes."""

    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return None
        if isinstance(value, datetime):
            return DateTimeUtils.to_iso_string(value)
        return str(value)

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, datetime):
            return DateTimeUtils.ensure_utc(value)
        if not isinstance(value, str):
            raise ValidationError("Please provide a valid date")
        try:
            return DateTimeUtils.parse_iso_datetime(value)
        except ValueError:
            raise ValidationError("Please provide a valid date")


class JSONStringMixin:
    """
    Multipart forms carry nested objects and lists as JSON strings. Listed fields
    are decoded before validation; anything that is not valid JSON is left as-is
    so the nested field reports the error. Blank form values count as absent.
    """
    json_fields = ()

    @pre_load
    def decode_json_strings(self, data, **kwargs):
        if not hasattr(data, "get"):
            return data
        # MultiDict/ImmutableMultiDict -> plain dict, keeping single values
        if hasattr(data, "to_dict"):
            data = data.to_dict(flat=True)
        else:
            data = dict(data)
        data = {k: v for k, v in data.items() if not (isinstance(v, str) and v.strip() == "")}
        for key in self.json_fields:
            value = data.get(key)
            if isinstance(value, str):
                try:
                    data[key] = json.loads(value)
                except ValueError:
                    pass
        return data


class AddressSchema(CamelCaseSchema):
    street = TrimmedString(validate=validate.Length(max=100))
    city = TrimmedString(validate=validate.Length(max=50))
    state = TrimmedString(validate=validate.Length(max=50))
    zip_code = TrimmedString(validate=validate.Length(max=10))
    country = TrimmedString(validate=validate.Length(max=50))


class PaginationQuerySchema(CamelCaseSchema):
    page = fields.Int(load_default=1, validate=validate.Range(min=1, error="Page must be a positive integer"))
    limit = fields.Int(load_default=20, validate=validate.Range(min=1, max=100, error="Limit must be between 1 and 100"))


class PaginationSchema(Schema):
    page = fields.Int()
    limit = fields.Int()
    total = fields.Int()
    pages = fields.Int()


class UserSummarySchema(CamelCaseSchema):
    """Embedded user reference (owner, reporter, reviewer...)."""
    id = fields.Str(attribute="user_id")
    name = fields.Str()
    email = fields.Str()
    phone = fields.Str()
