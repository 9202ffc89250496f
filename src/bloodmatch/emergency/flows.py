"""
Emergency matching flows.

Each flow pulls a candidate pool from the directory (the "query" step the
database did in the web app), hands it to the proximity matcher and wraps the
result in a response model:
- `nearby_blood_banks`: where can a requester get blood right now?
- `incoming_requests`: which urgent requests should a critical-ready donor see?
- `critical_donors_near`: which opted-in donors are close to a request?
"""

from __future__ import annotations

import logging
from datetime import date
from statistics import fmean

from bloodmatch.config.settings import Settings
from bloodmatch.core.geo import GeoPoint, is_unset_location
from bloodmatch.directory.loader import Directory
from bloodmatch.domain.models import (
    CriticalDonorsResult,
    Donor,
    GeoPoint as ModelGeoPoint,
    IncomingRequest,
    IncomingRequestsResult,
    NearbyBloodBank,
    NearbyBloodBanksResult,
    NearbyDonor,
    normalize_blood_type,
)
from bloodmatch.matching.proximity import MatchQuery, match, round_km, validate_query

logger = logging.getLogger(__name__)


def _origin(point: ModelGeoPoint | GeoPoint) -> GeoPoint:
    return GeoPoint(lat=float(point.lat), lon=float(point.lon))


def nearby_blood_banks(
    origin: ModelGeoPoint | GeoPoint,
    blood_type: str,
    *,
    directory: Directory,
    settings: Settings,
    radius_km: float | None = None,
    limit: int | None = None,
    on: date | None = None,
) -> NearbyBloodBanksResult:
    """Blood banks around `origin`, annotated with whether they stock `blood_type`.

    With `prefer_in_stock`, banks stocking the requested type come first (each
    group nearest-first). When nothing is within the radius and
    `expand_when_empty` is set, the search is repeated with the expanded radius.
    """
    cfg = settings.emergency.blood_banks
    blood_type = normalize_blood_type(blood_type)
    point = _origin(origin)
    radius = cfg.radius_km if radius_km is None else radius_km
    lim = cfg.limit if limit is None else limit
    validate_query(MatchQuery(origin=point, radius_km=radius, limit=lim))

    banks = directory.blood_banks
    # Rank every bank in range first; stock preference reorders before truncating.
    pool_limit = max(len(banks), 1)
    matched = match(MatchQuery(origin=point, radius_km=radius, limit=pool_limit), banks)

    expanded = False
    if not matched and cfg.expand_when_empty and cfg.expanded_radius_km > radius:
        logger.info("No blood banks within %.1f km; expanding search to %.0f km.", radius, cfg.expanded_radius_km)
        matched = match(MatchQuery(origin=point, radius_km=cfg.expanded_radius_km, limit=pool_limit), banks)
        expanded = True

    rows = [
        NearbyBloodBank(
            blood_bank=m.candidate,
            distance_km=m.distance_km,
            has_requested_blood_type=m.candidate.has_blood_type(blood_type, on=on),
        )
        for m in matched
    ]
    if cfg.prefer_in_stock:
        rows.sort(key=lambda r: not r.has_requested_blood_type)
    rows = rows[:lim]

    mean_km = round_km(fmean(r.distance_km for r in rows)) if rows else None
    far_notice = mean_km is not None and mean_km > cfg.far_notice_km

    logger.info(
        "Nearby blood banks for %s: returned=%d in_stock=%d radius=%.1f expanded=%s",
        blood_type,
        len(rows),
        sum(1 for r in rows if r.has_requested_blood_type),
        cfg.expanded_radius_km if expanded else radius,
        expanded,
    )
    return NearbyBloodBanksResult(
        origin=ModelGeoPoint(lat=point.lat, lon=point.lon),
        blood_type=blood_type,
        radius_km=cfg.expanded_radius_km if expanded else radius,
        search_expanded=expanded,
        mean_distance_km=mean_km,
        far_notice=far_notice,
        results=rows,
    )


def incoming_requests(donor: Donor, *, directory: Directory, settings: Settings) -> IncomingRequestsResult:
    """Pending urgent requests of the donor's blood type within the donor's service radius."""
    cfg = settings.emergency.incoming_requests

    if not donor.is_critical_ready:
        return IncomingRequestsResult(donor_id=donor.id, reason="critical_service_disabled")
    if is_unset_location(donor.location):
        return IncomingRequestsResult(donor_id=donor.id, reason="location_not_set")

    radius = donor.critical_service_radius_km or cfg.default_service_radius_km
    point = _origin(donor.location)
    validate_query(MatchQuery(origin=point, radius_km=radius, limit=cfg.limit))

    pool = directory.pending_urgent_requests(donor.blood_type)
    matched = match(
        MatchQuery(origin=point, radius_km=radius, limit=max(len(pool), 1)),
        pool,
        get_location=directory.request_location,
    )

    logger.info(
        "Incoming requests for donor %s: within_radius=%d radius=%.1f km",
        donor.id,
        len(matched),
        radius,
    )
    return IncomingRequestsResult(
        donor_id=donor.id,
        service_radius_km=radius,
        donor_location=donor.location,
        total=len(matched),
        requests=[IncomingRequest(request=m.candidate, distance_km=m.distance_km) for m in matched[: cfg.limit]],
    )


def critical_donors_near(
    origin: ModelGeoPoint | GeoPoint,
    blood_type: str,
    *,
    directory: Directory,
    settings: Settings,
    radius_km: float | None = None,
    limit: int | None = None,
) -> CriticalDonorsResult:
    """Critical-ready donors of `blood_type` around `origin`, nearest first."""
    cfg = settings.emergency.critical_donors
    blood_type = normalize_blood_type(blood_type)
    point = _origin(origin)
    radius = cfg.radius_km if radius_km is None else radius_km
    lim = cfg.limit if limit is None else limit
    validate_query(MatchQuery(origin=point, radius_km=radius, limit=lim))

    pool = directory.critical_ready_donors(blood_type)
    matched = match(MatchQuery(origin=point, radius_km=radius, limit=max(len(pool), 1)), pool)

    logger.info("Critical donors for %s: within_radius=%d radius=%.1f km", blood_type, len(matched), radius)
    return CriticalDonorsResult(
        origin=ModelGeoPoint(lat=point.lat, lon=point.lon),
        blood_type=blood_type,
        radius_km=radius,
        total=len(matched),
        donors=[NearbyDonor(donor=m.candidate, distance_km=m.distance_km) for m in matched[:lim]],
    )
