# app/api/pets/schemas.py
from marshmallow import Schema, fields, validate, validates, pre_load, ValidationError

from app.models.pet import PetType, PetGender, PetStatus, AgeUnit, WeightUnit
from app.schemas.base import (
    CamelCaseSchema, JSONStringMixin, TrimmedString, LowerEmail, UtcDateTime,
    PaginationQuerySchema, PaginationSchema, UserSummarySchema, validate_person_name, validate_phone
)
from app.utils.datetime_utils import DateTimeUtils
from app.utils.geo import make_point


def _choices(enum_cls):
    return [e.value for e in enum_cls]


class GeoPoint(fields.Field):
    """
    GeoJSON point. Accepts {type: "Point", coordinates: [lng, lat]} or a bare
    [lng, lat] pair; null means "no coordinates". Anything else is rejected.
    """
    default_error_messages = {
        "invalid": "Coordinates must be a [longitude, latitude] pair",
        "range": "Coordinates out of range: longitude must be within [-180, 180] and latitude within [-90, 90]",
    }

    def _serialize(self, value, attr, obj, **kwargs):
        return value

    def _deserialize(self, value, attr, data, **kwargs):
        if value is None:
            return None
        if isinstance(value, dict):
            if value.get('type', 'Point') != 'Point':
                raise self.make_error("invalid")
            value = value.get('coordinates')
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            raise self.make_error("invalid")
        if any(isinstance(v, bool) or not isinstance(v, (int, float)) for v in value):
            raise self.make_error("invalid")
        longitude, latitude = value
        if not (-180 <= longitude <= 180 and -90 <= latitude <= 90):
            raise self.make_error("range")
        return make_point(longitude, latitude)


class LocationSchema(CamelCaseSchema):
    address = TrimmedString(required=True, validate=validate.Length(
        min=1, max=200, error="Address must be between 1 and 200 characters"))
    coordinates = GeoPoint(load_default=None, allow_none=True)
    city = TrimmedString(validate=validate.Length(max=50))
    state = TrimmedString(validate=validate.Length(max=50))
    zip_code = TrimmedString(validate=validate.Length(max=10))


class CollarSchema(CamelCaseSchema):
    has_collar = fields.Bool(load_default=False)
    color = TrimmedString(validate=validate.Length(max=50))
    description = TrimmedString(validate=validate.Length(max=200))


class PetUpdateSchema(JSONStringMixin, CamelCaseSchema):
    """
    PUT /api/pets/<pet_id> (partial). Accepts JSON or multipart; in multipart,
    lastSeenLocation / collar / tags / photos arrive as JSON strings.
    `photos` is the list of existing photo URLs the client keeps.
    """
    json_fields = ('lastSeenLocation', 'collar', 'tags', 'photos')

    name = TrimmedString(validate=validate.Length(min=1, max=50, error="Pet name must be between 1 and 50 characters"))
    type = fields.Str(validate=validate.OneOf(_choices(PetType), error="Valid pet type is required"))
    breed = TrimmedString(validate=validate.Length(min=1, max=100, error="Breed must be between 1 and 100 characters"))
    color = TrimmedString(validate=validate.Length(min=1, max=100, error="Color must be between 1 and 100 characters"))
    gender = fields.Str(validate=validate.OneOf(_choices(PetGender), error="Valid gender is required"))
    age = fields.Float(allow_none=True, validate=validate.Range(min=0, max=30, error="Age must be between 0 and 30"))
    age_unit = fields.Str(validate=validate.OneOf(_choices(AgeUnit)))
    weight = fields.Float(allow_none=True, validate=validate.Range(min=0, error="Weight must be a positive number"))
    weight_unit = fields.Str(validate=validate.OneOf(_choices(WeightUnit)))
    status = fields.Str(validate=validate.OneOf(_choices(PetStatus), error="Valid status is required"))
    last_seen_location = fields.Nested(LocationSchema)
    last_seen_date = UtcDateTime()
    additional_notes = TrimmedString(allow_none=True, validate=validate.Length(max=1000))
    microchip_number = TrimmedString(allow_none=True, validate=validate.Length(max=50))
    collar = fields.Nested(CollarSchema)
    tags = fields.List(TrimmedString(validate=validate.Length(max=50)))
    photos = fields.List(fields.Str())

    @validates('last_seen_date')
    def validate_last_seen_date(self, value, **kwargs):
        if value > DateTimeUtils.now():
            raise ValidationError("Last seen date cannot be in the future")


class PetCreateSchema(PetUpdateSchema):
    """POST /api/pets (multipart). Photos travel as files, not in this body."""

    name = TrimmedString(required=True, validate=validate.Length(
        min=1, max=50, error="Pet name must be between 1 and 50 characters"))
    type = fields.Str(required=True, validate=validate.OneOf(_choices(PetType), error="Valid pet type is required"))
    breed = TrimmedString(required=True, validate=validate.Length(
        min=1, max=100, error="Breed must be between 1 and 100 characters"))
    color = TrimmedString(required=True, validate=validate.Length(
        min=1, max=100, error="Color must be between 1 and 100 characters"))
    gender = fields.Str(required=True, validate=validate.OneOf(_choices(PetGender), error="Valid gender is required"))
    age_unit = fields.Str(load_default=AgeUnit.YEARS.value, validate=validate.OneOf(_choices(AgeUnit)))
    weight_unit = fields.Str(load_default=WeightUnit.KG.value, validate=validate.OneOf(_choices(WeightUnit)))
    status = fields.Str(required=True, validate=validate.OneOf(_choices(PetStatus), error="Valid status is required"))
    last_seen_location = fields.Nested(LocationSchema, required=True)
    last_seen_date = UtcDateTime(required=True)
    collar = fields.Nested(CollarSchema, load_default=lambda: {"has_collar": False})
    tags = fields.List(TrimmedString(validate=validate.Length(max=50)), load_default=list)


class AdminPetUpdateSchema(PetUpdateSchema):
    """PUT /api/admin/pets/<pet_id>: every field plus the moderation flags."""
    is_approved = fields.Bool()
    is_active = fields.Bool()


class PetSearchQuerySchema(PaginationQuerySchema):
    """GET /api/pets and GET /api/pets/search/nearby query string."""
    status = fields.Str(validate=validate.OneOf(_choices(PetStatus)))
    type = fields.Str(validate=validate.OneOf(_choices(PetType)))
    breed = TrimmedString()
    color = TrimmedString()
    gender = fields.Str(validate=validate.OneOf(_choices(PetGender)))
    date_from = UtcDateTime()
    date_to = UtcDateTime()
    latitude = fields.Float(validate=validate.Range(min=-90, max=90, error="Latitude must be between -90 and 90"))
    longitude = fields.Float(validate=validate.Range(min=-180, max=180, error="Longitude must be between -180 and 180"))
    radius = fields.Float(load_default=10.0, validate=validate.Range(
        min=0.1, max=100, error="Radius must be between 0.1 and 100 km"))

    @pre_load
    def drop_blank(self, data, **kwargs):
        return {k: v for k, v in data.items() if v not in ('', None)}


class AdminPetQuerySchema(PaginationQuerySchema):
    status = fields.Str(validate=validate.OneOf(_choices(PetStatus)))
    is_approved = fields.Bool()
    is_active = fields.Bool()
    owner = fields.Str()
    search = TrimmedString()


class ContactOwnerSchema(CamelCaseSchema):
    """POST /api/pets/<pet_id>/contact"""
    name = TrimmedString(required=True, validate=validate_person_name)
    email = LowerEmail(required=True, error_messages={"invalid": "Please provide a valid email"})
    phone = TrimmedString(required=True, validate=validate_phone)
    message = TrimmedString(validate=validate.Length(max=1000, error="Message cannot exceed 1000 characters"))


class PetResponseSchema(CamelCaseSchema):
    id = fields.Str(attribute="pet_id")
    owner_id = fields.Str()
    owner = fields.Nested(UserSummarySchema, allow_none=True)
    name = fields.Str()
    type = fields.Str()
    breed = fields.Str()
    color = fields.Str()
    gender = fields.Str()
    age = fields.Float(allow_none=True)
    age_unit = fields.Str()
    weight = fields.Float(allow_none=True)
    weight_unit = fields.Str()
    photos = fields.List(fields.Str())
    status = fields.Str()
    last_seen_location = fields.Nested(LocationSchema)
    last_seen_date = UtcDateTime()
    additional_notes = fields.Str(allow_none=True)
    microchip_number = fields.Str(allow_none=True)
    collar = fields.Nested(CollarSchema)
    tags = fields.List(fields.Str())
    is_approved = fields.Bool()
    approved_by = fields.Str(allow_none=True)
    approved_at = UtcDateTime(allow_none=True)
    views = fields.Int()
    contact_count = fields.Int()
    is_active = fields.Bool()
    created_at = UtcDateTime()
    updated_at = UtcDateTime()
    age_display = fields.Str()
    weight_display = fields.Str()
    full_location = fields.Str()


class PetListResponseSchema(Schema):
    pets = fields.List(fields.Nested(PetResponseSchema))
    pagination = fields.Nested(PaginationSchema)
