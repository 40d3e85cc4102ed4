# app/models/pet.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any

from app.models.base import FirestoreModel, coerce_enum
from app.utils.datetime_utils import DateTimeUtils


class PetType(Enum):
    DOG = "dog"
    CAT = "cat"
    BIRD = "bird"
    RABBIT = "rabbit"
    HAMSTER = "hamster"
    FISH = "fish"
    OTHER = "other"


class PetGender(Enum):
    MALE = "male"
    FEMALE = "female"
    UNKNOWN = "unknown"


class PetStatus(Enum):
    MISSING = "missing"
    FOUND = "found"
    REUNITED = "reunited"


class AgeUnit(Enum):
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"
    YEARS = "years"


class WeightUnit(Enum):
    KG = "kg"
    LBS = "lbs"


@dataclass
class Pet(FirestoreModel):
    """
    Document structure of the Firestore 'pets' collection (a lost or found post).

    `last_seen_location.coordinates` is a GeoJSON point ({type, coordinates: [lng, lat]})
    or None when the poster gave no coordinates; such posts never match a radius search.
    """
    pet_id: str
    owner_id: str
    name: str
    type: PetType
    breed: str
    color: str
    gender: PetGender
    status: PetStatus
    last_seen_date: datetime
    photos: List[str] = field(default_factory=list)
    last_seen_location: Dict[str, Any] = field(default_factory=dict)
    age: Optional[float] = None
    age_unit: AgeUnit = AgeUnit.YEARS
    weight: Optional[float] = None
    weight_unit: WeightUnit = WeightUnit.KG
    additional_notes: Optional[str] = None
    microchip_number: Optional[str] = None
    collar: Dict[str, Any] = field(default_factory=lambda: {"has_collar": False})
    tags: List[str] = field(default_factory=list)
    is_approved: bool = False
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    views: int = 0
    contact_count: int = 0
    is_active: bool = True
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    updated_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def _prepare(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        data['type'] = coerce_enum(PetType, data.get('type'), PetType.OTHER)
        data['gender'] = coerce_enum(PetGender, data.get('gender'), PetGender.UNKNOWN)
        data['status'] = coerce_enum(PetStatus, data.get('status'), PetStatus.MISSING)
        data['age_unit'] = coerce_enum(AgeUnit, data.get('age_unit'), AgeUnit.YEARS)
        data['weight_unit'] = coerce_enum(WeightUnit, data.get('weight_unit'), WeightUnit.KG)
        for key in ('photos', 'tags'):
            if data.get(key) is None:
                data[key] = []
        if data.get('last_seen_location') is None:
            data['last_seen_location'] = {}
        if data.get('collar') is None:
            data['collar'] = {"has_collar": False}
        return data

    # --- Derived display values ---

    @property
    def age_display(self) -> str:
        if not self.age:
            return "Unknown"
        return f"{_number(self.age)} {self.age_unit.value}"

    @property
    def weight_display(self) -> str:
        if not self.weight:
            return "Unknown"
        return f"{_number(self.weight)} {self.weight_unit.value}"

    @property
    def full_location(self) -> str:
        location = self.last_seen_location or {}
        parts = [location.get('address'), location.get('city'), location.get('state'), location.get('zip_code')]
        return ", ".join(part for part in parts if part)

    def is_owned_by(self, user_id: str) -> bool:
        return self.owner_id == user_id


def _number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


@dataclass
class PetSearchFilters:
    """
    Every supported pet filter. Equality filters run in Firestore; substring,
    date range and radius filters run on the fetched candidates.

    `is_active` / `is_approved` set to None mean "either value".
    """
    status: Optional[PetStatus] = None
    type: Optional[PetType] = None
    gender: Optional[PetGender] = None
    breed: Optional[str] = None
    color: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius_km: float = 10.0
    owner_id: Optional[str] = None
    text: Optional[str] = None
    is_active: Optional[bool] = True
    is_approved: Optional[bool] = None
    page: int = 1
    limit: int = 20

    @property
    def has_geo(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def equality_filters(self) -> Dict[str, Any]:
        """Field -> value pairs pushed down to Firestore as '==' clauses."""
        filters = {}
        if self.is_active is not None:
            filters['is_active'] = self.is_active
        if self.is_approved is not None:
            filters['is_approved'] = self.is_approved
        if self.owner_id:
            filters['owner_id'] = self.owner_id
        if self.status:
            filters['status'] = self.status.value
        if self.type:
            filters['type'] = self.type.value
        if self.gender:
            filters['gender'] = self.gender.value
        return filters
