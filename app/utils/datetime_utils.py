# app/utils/datetime_utils.py
"""
Central date/time helpers.

Every timestamp the API stores or compares is a timezone-aware UTC datetime:
- request strings are parsed with dateutil and normalized to UTC
- values written to Firestore are converted by `for_firestore`
- values read back (Firestore timestamps) are normalized by `from_firestore`
"""

import logging
from datetime import datetime, date, timezone, time, timedelta
from typing import Any, Optional
from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)


class DateTimeUtils:
    """Date/time handling shared by models, services and schemas."""

    @staticmethod
    def now() -> datetime:
        """Current time as a UTC-aware datetime."""
        return datetime.now(timezone.utc)

    @staticmethod
    def from_now(**delta) -> datetime:
        """`now()` shifted by a timedelta, e.g. from_now(hours=1)."""
        return DateTimeUtils.now() + timedelta(**delta)

    @staticmethod
    def parse_iso_datetime(iso_string: str) -> datetime:
        """
        Parses an ISO 8601 string into a UTC datetime.

        Accepted:
        - 2024-01-15
        - 2024-01-15T10:30:00Z
        - 2024-01-15T10:30:00+09:00
        - 2024-01-15T10:30:00.123456Z
        - 2024-01-15T10:30:00 (naive values are treated as UTC)
        """
        try:
            if not iso_string:
                raise ValueError("empty string")

            if iso_string.endswith('Z'):
                iso_string = iso_string[:-1] + '+00:00'

            dt = dateutil_parser.isoparse(iso_string)
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            return dt.astimezone(timezone.utc)

        except Exception as e:
            logger.warning(f"Failed to parse ISO datetime: {iso_string} - {e}")
            raise ValueError(f"Invalid ISO date format: {iso_string}")

    @staticmethod
    def to_iso_string(dt: datetime) -> str:
        """datetime -> ISO string with a 'Z' suffix."""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        else:
            dt = dt.astimezone(timezone.utc)
        return dt.isoformat().replace('+00:00', 'Z')

    @staticmethod
    def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @staticmethod
    def for_firestore(obj: Any) -> Any:
        """
        Prepares a value for a Firestore write.

        - date -> datetime at 00:00 UTC
        - naive datetime -> UTC-aware datetime
        - dicts and lists are converted recursively
        """
        if isinstance(obj, datetime):
            return DateTimeUtils.ensure_utc(obj)
        if isinstance(obj, date):
            return datetime.combine(obj, time.min).replace(tzinfo=timezone.utc)
        if isinstance(obj, dict):
            return {k: DateTimeUtils.for_firestore(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [DateTimeUtils.for_firestore(item) for item in obj]
        return obj

    @staticmethod
    def from_firestore(obj: Any) -> Any:
        """
        Normalizes a value read from Firestore.

        Firestore hands back DatetimeWithNanoseconds (a datetime subclass); those
        and any naive datetimes come back as plain UTC-aware datetimes.
        """
        try:
            if isinstance(obj, datetime):
                return DateTimeUtils.ensure_utc(obj)
            if isinstance(obj, dict):
                return {k: DateTimeUtils.from_firestore(v) for k, v in obj.items()}
            if isinstance(obj, list):
                return [DateTimeUtils.from_firestore(item) for item in obj]
            return obj
        except Exception as e:
            # Keep the raw value rather than failing the read
            logger.error(f"Failed to normalize Firestore value: {obj} ({type(obj)}) - {e}")
            return obj

