# app/utils/geo.py
from math import radians, sin, cos, sqrt, atan2
from typing import Optional, Dict, Any, Tuple

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points, in kilometers."""
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])

    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def make_point(longitude: float, latitude: float) -> Dict[str, Any]:
    """GeoJSON point, coordinates ordered [lng, lat]."""
    return {"type": "Point", "coordinates": [float(longitude), float(latitude)]}


def point_lat_lng(point: Optional[Dict[str, Any]]) -> Optional[Tuple[float, float]]:
    """(lat, lng) of a stored point, or None when the post has no usable coordinates."""
    if not point or not isinstance(point, dict):
        return None
    coordinates = point.get("coordinates")
    if not isinstance(coordinates, (list, tuple)) or len(coordinates) != 2:
        return None
    try:
        longitude, latitude = float(coordinates[0]), float(coordinates[1])
    except (TypeError, ValueError):
        return None
    return latitude, longitude


def distance_to_point_km(point: Optional[Dict[str, Any]], latitude: float, longitude: float) -> Optional[float]:
    lat_lng = point_lat_lng(point)
    if lat_lng is None:
        return None
    return haversine_km(latitude, longitude, lat_lng[0], lat_lng[1])
