"""
Geospatial helpers.

A tiny geometry layer so the matcher and the domain models can share distance
and coordinate handling without pulling in GIS dependencies.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float


def haversine_km(a: Any, b: Any) -> float:
    """Great-circle distance in kilometers between two points exposing `lat`/`lon`."""
    lat1 = math.radians(float(a.lat))
    lon1 = math.radians(float(a.lon))
    lat2 = math.radians(float(b.lat))
    lon2 = math.radians(float(b.lon))

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    # Float error can push h a hair past 1.0 for antipodal points.
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def is_valid_latlon(lat: float, lon: float) -> bool:
    return math.isfinite(lat) and math.isfinite(lon) and -90 <= lat <= 90 and -180 <= lon <= 180


def is_unset_location(point: Any) -> bool:
    """True for a missing point or the `(0, 0)` "location not set" marker."""
    if point is None:
        return True
    try:
        return float(point.lat) == 0.0 and float(point.lon) == 0.0
    except (AttributeError, TypeError, ValueError):
        return True


def coerce_point(raw: Any) -> GeoPoint | None:
    """Best-effort conversion of the coordinate shapes found in source data.

    Accepted shapes:
    - any object with `lat`/`lon` attributes
    - `{"lat": .., "lon": ..}` or `{"latitude": .., "longitude": ..}`
    - GeoJSON-style `{"type": "Point", "coordinates": [lon, lat]}`

    Returns None when the shape is unknown or the values are not valid
    coordinates. The `(0, 0)` marker is returned as-is; callers decide what it means.
    """
    if raw is None:
        return None

    lat: Any
    lon: Any
    if isinstance(raw, Mapping):
        if "coordinates" in raw:
            coords = raw.get("coordinates")
            if not isinstance(coords, (list, tuple)) or len(coords) != 2:
                return None
            lon, lat = coords
        elif "lat" in raw or "lon" in raw:
            lat, lon = raw.get("lat"), raw.get("lon")
        else:
            lat, lon = raw.get("latitude"), raw.get("longitude")
    elif hasattr(raw, "lat") and hasattr(raw, "lon"):
        lat, lon = raw.lat, raw.lon
    else:
        return None

    if lat is None or lon is None or isinstance(lat, bool) or isinstance(lon, bool):
        return None
    try:
        lat_f = float(lat)
        lon_f = float(lon)
    except (TypeError, ValueError):
        return None
    if not is_valid_latlon(lat_f, lon_f):
        return None
    return GeoPoint(lat=lat_f, lon=lon_f)
