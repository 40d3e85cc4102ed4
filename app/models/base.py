# app/models/base.py
import logging
from dataclasses import asdict, fields
from enum import Enum
from typing import Any, Dict, Type, TypeVar

from app.utils.datetime_utils import DateTimeUtils

E = TypeVar("E", bound=Enum)


def coerce_enum(enum_cls: Type[E], value: Any, default: E) -> E:
    """Stored string -> Enum member. Unknown values fall back to `default` with a warning."""
    if isinstance(value, enum_cls):
        return value
    if value is None:
        return default
    try:
        return enum_cls(value)
    except ValueError:
        logging.warning(f"Invalid {enum_cls.__name__} value '{value}'. Defaulting to {default.value}.")
        return default


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


class FirestoreModel:
    """
    Mixin for the dataclass models: Firestore dict <-> instance.

    `from_dict` ignores keys the dataclass does not declare, so older documents
    with extra fields still load.
    """

    @classmethod
    def known_fields(cls):
        return {f.name for f in fields(cls)}

    @classmethod
    def _prepare(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """Per-model conversion hook (enums, nested defaults)."""
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        processed = DateTimeUtils.from_firestore(dict(data))
        processed = {k: v for k, v in processed.items() if k in cls.known_fields()}
        return cls(**cls._prepare(processed))

    def to_dict(self) -> Dict[str, Any]:
        """Enum members become their string values."""
        return _plain(asdict(self))
