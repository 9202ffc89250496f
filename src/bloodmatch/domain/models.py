"""
Domain models (Pydantic).

These types are the contract between layers:
- API/CLI inputs (`MatchRequest`, `EmergencySearch`, `CriticalDonorSearch`)
- directory entities (`Donor`, `BloodBank`, `Hospital`, `BloodRequest`)
- matching output (`MatchedCandidate`, `NearbyBloodBanksResult`, ...)

Locations are optional everywhere: source data frequently has no coordinates
(or the `(0, 0)` marker) and the matcher simply skips those entries.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, Field, field_validator, model_validator

from bloodmatch.core.geo import coerce_point

logger = logging.getLogger(__name__)

RequestStatus = Literal["pending", "accepted", "rejected"]
RequestType = Literal["normal", "emergency"]


def normalize_blood_type(value: Any) -> Any:
    """Trim and upper-case a blood type string (`" ab+ "` -> `"AB+"`)."""
    if isinstance(value, str):
        return value.strip().upper().replace(" ", "")
    return value


BLOOD_TYPES: tuple[str, ...] = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")
BloodType = Annotated[
    Literal["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"],
    BeforeValidator(normalize_blood_type),
]


class GeoPoint(BaseModel):
    """A geographic point in decimal degrees."""

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class _Locatable(BaseModel):
    location: GeoPoint | None = None

    @model_validator(mode="before")
    @classmethod
    def _coerce_location(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        raw = data.pop("location", None)
        lat = data.pop("latitude", None)
        lon = data.pop("longitude", None)
        if raw is None and (lat is not None or lon is not None):
            raw = {"lat": lat, "lon": lon}
        point = coerce_point(raw)
        if point is None and raw is not None:
            logger.debug("Dropping unusable location %r for %s", raw, data.get("id"))
        data["location"] = None if point is None else {"lat": point.lat, "lon": point.lon}
        return data


class Candidate(_Locatable):
    """Anything the matcher can rank: an id, an optional location and an opaque payload."""

    id: str
    payload: dict[str, Any] = Field(default_factory=dict)


class Donor(_Locatable):
    id: str
    name: str
    blood_type: BloodType
    mobile_number: str | None = None
    email: str | None = None
    total_donations: int = Field(0, ge=0)
    is_critical_ready: bool = False
    critical_service_radius_km: float | None = Field(default=None, gt=0)


class InventoryEntry(BaseModel):
    blood_type: BloodType
    units_available: int = Field(..., ge=0)
    expiry_date: date | None = None

    def in_stock(self, on: date | None = None) -> bool:
        if self.units_available <= 0:
            return False
        if self.expiry_date is None:
            return True
        return self.expiry_date >= (on or date.today())


class BloodBank(_Locatable):
    id: str
    name: str
    address: str = ""
    contact_number: str | None = None
    inventory: list[InventoryEntry] = Field(default_factory=list)

    def has_blood_type(self, blood_type: str, *, on: date | None = None) -> bool:
        wanted = normalize_blood_type(blood_type)
        return any(e.blood_type == wanted and e.in_stock(on) for e in self.inventory)


class Hospital(_Locatable):
    id: str
    name: str
    address: str | None = None
    email: str | None = None


class BloodRequest(_Locatable):
    """A blood request. `location` falls back to the hospital's when the request has none."""

    id: str
    blood_type: BloodType
    units_required: int = Field(..., gt=0)
    request_type: RequestType = "emergency"
    status: RequestStatus = "pending"
    is_urgent: bool = False
    hospital_id: str | None = None
    blood_bank_id: str | None = None
    hospital_location: str | None = None
    requested_by: str | None = None
    contact_email: str | None = None
    emergency_details: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    fulfilled_at: datetime | None = None

    @field_validator("created_at", "fulfilled_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is None or value.tzinfo is not None:
            return value
        return value.replace(tzinfo=timezone.utc)


# ---- matching payloads ----


class MatchRequest(BaseModel):
    """Generic match call: rank caller-supplied candidates around `origin`.

    Radius and limit are unconstrained here so the matcher can report a bad
    query itself (`InvalidQuery`). Omitted values fall back to the `matching`
    settings.
    """

    origin: GeoPoint
    radius_km: float | None = None
    limit: int | None = None
    candidates: list[Candidate] = Field(default_factory=list)


class MatchedCandidate(BaseModel):
    candidate: Candidate
    distance_km: float = Field(..., ge=0)
    distance_km_raw: float = Field(..., ge=0)


class MatchResponse(BaseModel):
    results: list[MatchedCandidate]


class EmergencySearch(BaseModel):
    origin: GeoPoint
    blood_type: BloodType
    radius_km: float | None = None
    limit: int | None = None
    settings_overrides: dict[str, Any] | None = None


class CriticalDonorSearch(EmergencySearch):
    pass


class NearbyBloodBank(BaseModel):
    blood_bank: BloodBank
    distance_km: float = Field(..., ge=0)
    has_requested_blood_type: bool


class NearbyBloodBanksResult(BaseModel):
    origin: GeoPoint
    blood_type: BloodType
    radius_km: float
    search_expanded: bool = False
    mean_distance_km: float | None = None
    far_notice: bool = False
    results: list[NearbyBloodBank]


class IncomingRequest(BaseModel):
    request: BloodRequest
    distance_km: float = Field(..., ge=0)


class IncomingRequestsResult(BaseModel):
    donor_id: str
    reason: Literal["ok", "critical_service_disabled", "location_not_set"] = "ok"
    service_radius_km: float | None = None
    donor_location: GeoPoint | None = None
    total: int = 0
    requests: list[IncomingRequest] = Field(default_factory=list)


class NearbyDonor(BaseModel):
    donor: Donor
    distance_km: float = Field(..., ge=0)


class CriticalDonorsResult(BaseModel):
    origin: GeoPoint
    blood_type: BloodType
    radius_km: float
    total: int
    donors: list[NearbyDonor]
