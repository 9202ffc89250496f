"""
API routes.

Endpoints:
- POST `/api/match`: rank caller-supplied candidates around an origin.
- POST `/api/emergency/nearby-bloodbanks`: nearest blood banks for an emergency request.
- GET  `/api/donors/{donor_id}/incoming-requests`: urgent requests near a critical-ready donor.
- POST `/api/donors/critical-nearby`: critical-ready donors near a point.
- GET  `/api/settings`: public matching settings.
- GET  `/api/health`: liveness probe.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import APIRouter, HTTPException

from bloodmatch.config.overrides import apply_settings_overrides
from bloodmatch.config.settings import get_settings
from bloodmatch.directory.loader import Directory, NotFound, load_directory
from bloodmatch.domain.models import (
    CriticalDonorSearch,
    CriticalDonorsResult,
    EmergencySearch,
    IncomingRequestsResult,
    MatchedCandidate,
    MatchRequest,
    MatchResponse,
    NearbyBloodBanksResult,
)
from bloodmatch.emergency.flows import critical_donors_near, incoming_requests, nearby_blood_banks
from bloodmatch.matching.proximity import InvalidQuery, ProximityMatcher

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache
def _directory() -> Directory:
    return load_directory(get_settings().directory.path)


def _matcher() -> ProximityMatcher:
    cfg = get_settings().matching
    return ProximityMatcher(default_radius_km=cfg.default_radius_km, default_limit=cfg.default_limit)


def _invalid_query(e: InvalidQuery) -> HTTPException:
    return HTTPException(status_code=400, detail={"code": "INVALID_QUERY", "message": str(e)})


def _internal_error(e: Exception) -> HTTPException:
    logger.exception("Unhandled error while matching")
    return HTTPException(status_code=500, detail={"code": "INTERNAL_ERROR", "message": str(e)})


@router.get("/api/health")
def get_health() -> dict:
    return {"status": "ok"}


@router.get("/api/settings")
def get_public_settings() -> dict:
    """Return the matching knobs the web UI needs (radii, limits)."""
    settings = get_settings()
    return {
        "app": {"name": settings.app.name},
        "matching": settings.matching.model_dump(mode="json"),
        "emergency": settings.emergency.model_dump(mode="json"),
    }


@router.post("/api/match", response_model=MatchResponse)
def post_match(body: MatchRequest) -> MatchResponse:
    """Run the proximity matcher over the candidates in the request body.

    Missing `radius_km`/`limit` use the configured matching defaults.
    """
    try:
        results = _matcher().match(body.origin, body.candidates, radius_km=body.radius_km, limit=body.limit)
    except InvalidQuery as e:
        raise _invalid_query(e) from e
    return MatchResponse(
        results=[
            MatchedCandidate(candidate=r.candidate, distance_km=r.distance_km, distance_km_raw=r.distance_km_raw)
            for r in results
        ]
    )


@router.post("/api/emergency/nearby-bloodbanks", response_model=NearbyBloodBanksResult)
def post_nearby_blood_banks(body: EmergencySearch) -> NearbyBloodBanksResult:
    try:
        settings = apply_settings_overrides(get_settings(), body.settings_overrides)
        return nearby_blood_banks(
            body.origin,
            body.blood_type,
            directory=_directory(),
            settings=settings,
            radius_km=body.radius_km,
            limit=body.limit,
        )
    except InvalidQuery as e:
        raise _invalid_query(e) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "VALIDATION_ERROR", "message": str(e)}) from e
    except Exception as e:
        raise _internal_error(e) from e


@router.get("/api/donors/{donor_id}/incoming-requests", response_model=IncomingRequestsResult)
def get_incoming_requests(donor_id: str) -> IncomingRequestsResult:
    directory = _directory()
    try:
        donor = directory.get_donor(donor_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail={"code": "NOT_FOUND", "message": str(e)}) from e
    try:
        return incoming_requests(donor, directory=directory, settings=get_settings())
    except InvalidQuery as e:
        raise _invalid_query(e) from e
    except Exception as e:
        raise _internal_error(e) from e


@router.post("/api/donors/critical-nearby", response_model=CriticalDonorsResult)
def post_critical_donors(body: CriticalDonorSearch) -> CriticalDonorsResult:
    try:
        settings = apply_settings_overrides(get_settings(), body.settings_overrides)
        return critical_donors_near(
            body.origin,
            body.blood_type,
            directory=_directory(),
            settings=settings,
            radius_km=body.radius_km,
            limit=body.limit,
        )
    except InvalidQuery as e:
        raise _invalid_query(e) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "VALIDATION_ERROR", "message": str(e)}) from e
    except Exception as e:
        raise _internal_error(e) from e
