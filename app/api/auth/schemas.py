# app/api/auth/schemas.py
from marshmallow import fields, validate, validates_schema, ValidationError

from app.schemas.base import (
    CamelCaseSchema, TrimmedString, LowerEmail, UtcDateTime, AddressSchema,
    validate_person_name, validate_phone, validate_password
)


class RegisterSchema(CamelCaseSchema):
    """POST /api/auth/register request."""
    name = TrimmedString(required=True, validate=validate_person_name)
    email = LowerEmail(required=True, error_messages={"invalid": "Please provide a valid email"})
    password = fields.Str(required=True, validate=validate_password)
    phone = TrimmedString(required=True, validate=validate_phone)


class LoginSchema(CamelCaseSchema):
    email = LowerEmail(required=True, error_messages={"invalid": "Please provide a valid email"})
    password = fields.Str(required=True, validate=validate.Length(min=1, error="Password is required"))


class ForgotPasswordSchema(CamelCaseSchema):
    email = LowerEmail(required=True, error_messages={"invalid": "Please provide a valid email"})


class ResetPasswordSchema(CamelCaseSchema):
    password = fields.Str(required=True, validate=validate_password)
    confirm_password = fields.Str(required=True)

    @validates_schema
    def passwords_match(self, data, **kwargs):
        if data.get('password') != data.get('confirm_password'):
            raise ValidationError("Password confirmation does not match password", "confirmPassword")


class ChangePasswordSchema(CamelCaseSchema):
    current_password = fields.Str(required=True, validate=validate.Length(min=1))
    new_password = fields.Str(required=True, validate=validate_password)


class ProfileUpdateSchema(CamelCaseSchema):
    """PUT /api/auth/me (partial update)."""
    name = TrimmedString(validate=validate_person_name)
    phone = TrimmedString(validate=validate_phone)
    address = fields.Nested(AddressSchema)


class UserProfileResponseSchema(CamelCaseSchema):
    """Public profile. Password hash and tokens are never dumped."""
    id = fields.Str(attribute="user_id")
    name = fields.Str()
    email = fields.Str()
    phone = fields.Str()
    address = fields.Nested(AddressSchema)
    role = fields.Str()
    is_email_verified = fields.Bool()
    is_active = fields.Bool()
    last_login = UtcDateTime(allow_none=True)
    created_at = UtcDateTime()
    updated_at = UtcDateTime()
