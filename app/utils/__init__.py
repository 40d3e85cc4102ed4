# app/utils/__init__.py
"""
Helpers shared across the API: UTC date handling, geodesic distance,
pagination and the response envelope.
"""

from .datetime_utils import DateTimeUtils
from .pagination import Page, paginate
from .responses import api_response

__all__ = ['DateTimeUtils', 'Page', 'paginate', 'api_response']
