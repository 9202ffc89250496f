"""
Proximity matching.

Given an origin, a radius and a result limit, pick the candidates (donors, blood
banks, open requests) that lie within the radius, nearest first.

The matcher is a pure function over its inputs:
- no I/O, no shared state, safe to call from any number of threads/tasks;
- candidates whose location is missing, invalid or the `(0, 0)` "not set" marker
  are skipped, never reported as errors;
- only a malformed query (non-positive radius/limit, bad origin) raises `InvalidQuery`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, TypeVar

from bloodmatch.core.geo import GeoPoint, haversine_km, is_unset_location, is_valid_latlon

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InvalidQuery(ValueError):
    """Raised when a match query cannot be evaluated (bad radius, limit or origin)."""


@dataclass(frozen=True)
class MatchQuery:
    origin: GeoPoint
    radius_km: float
    limit: int


@dataclass(frozen=True)
class MatchResult(Generic[T]):
    """A matched candidate with its distance from the query origin."""

    candidate: T
    distance_km: float
    distance_km_raw: float


def round_km(distance_km: float) -> float:
    """Round half-up to one decimal (display precision)."""
    return math.floor(distance_km * 10 + 0.5) / 10


def _default_location(candidate: Any) -> Any:
    return getattr(candidate, "location", None)


def _locate(candidate: Any, get_location: Callable[[Any], Any]) -> GeoPoint | None:
    try:
        point = get_location(candidate)
        if is_unset_location(point):
            return None
        lat = float(point.lat)
        lon = float(point.lon)
    except (AttributeError, TypeError, ValueError):
        return None
    if not is_valid_latlon(lat, lon):
        return None
    return GeoPoint(lat=lat, lon=lon)


def validate_query(query: MatchQuery) -> None:
    """Raise `InvalidQuery` unless radius and limit are positive and the origin is a real point."""
    try:
        radius = float(query.radius_km)
    except (TypeError, ValueError) as e:
        raise InvalidQuery(f"radius_km must be a number, got {query.radius_km!r}") from e
    if not math.isfinite(radius) or radius <= 0:
        raise InvalidQuery(f"radius_km must be > 0, got {query.radius_km!r}")

    if isinstance(query.limit, bool) or not isinstance(query.limit, int) or query.limit <= 0:
        raise InvalidQuery(f"limit must be a positive integer, got {query.limit!r}")

    origin = query.origin
    try:
        lat = float(origin.lat)
        lon = float(origin.lon)
    except (AttributeError, TypeError, ValueError) as e:
        raise InvalidQuery(f"origin must be a lat/lon point, got {origin!r}") from e
    if not is_valid_latlon(lat, lon):
        raise InvalidQuery(f"origin out of range: lat={lat}, lon={lon}")


def match(
    query: MatchQuery,
    candidates: Iterable[T],
    *,
    get_location: Callable[[T], Any] = _default_location,
) -> list[MatchResult[T]]:
    """Return candidates within `query.radius_km` of `query.origin`, nearest first, at most `query.limit`.

    `get_location` maps a candidate to an object with `lat`/`lon` (or None). It
    defaults to the candidate's `location` attribute.
    """
    validate_query(query)
    radius = float(query.radius_km)

    within: list[tuple[float, T]] = []
    skipped = 0
    for candidate in candidates:
        point = _locate(candidate, get_location)
        if point is None:
            skipped += 1
            continue
        d = haversine_km(query.origin, point)
        if d <= radius:
            within.append((d, candidate))

    # list.sort is stable, so equal distances keep input order.
    within.sort(key=lambda pair: pair[0])
    if skipped:
        logger.debug("Skipped %d candidates without a usable location.", skipped)

    return [
        MatchResult(candidate=c, distance_km=round_km(d), distance_km_raw=d)
        for d, c in within[: query.limit]
    ]


class ProximityMatcher:
    """Matcher bound to default radius/limit values (typically from settings)."""

    def __init__(self, *, default_radius_km: float, default_limit: int):
        validate_query(MatchQuery(origin=GeoPoint(lat=0.0, lon=0.0), radius_km=default_radius_km, limit=default_limit))
        self._default_radius_km = float(default_radius_km)
        self._default_limit = int(default_limit)

    @property
    def default_radius_km(self) -> float:
        return self._default_radius_km

    @property
    def default_limit(self) -> int:
        return self._default_limit

    def query(self, origin: Any, *, radius_km: float | None = None, limit: int | None = None) -> MatchQuery:
        if not isinstance(origin, GeoPoint):
            try:
                origin = GeoPoint(lat=float(origin.lat), lon=float(origin.lon))
            except (AttributeError, TypeError, ValueError) as e:
                raise InvalidQuery(f"origin must be a lat/lon point, got {origin!r}") from e
        return MatchQuery(
            origin=origin,
            radius_km=self._default_radius_km if radius_km is None else radius_km,
            limit=self._default_limit if limit is None else limit,
        )

    def match(
        self,
        origin: Any,
        candidates: Iterable[T],
        *,
        radius_km: float | None = None,
        limit: int | None = None,
        get_location: Callable[[T], Any] = _default_location,
    ) -> list[MatchResult[T]]:
        return match(self.query(origin, radius_km=radius_km, limit=limit), candidates, get_location=get_location)
