"""
Candidate directory loader.

The directory is a local JSON file (default: `data/catalogs/directory.json`)
holding donors, blood banks, hospitals and open blood requests. It is the
"candidate source" for the emergency flows: a read-only stand-in for the
document-store queries that select candidates by blood type and opt-in flags.

Expected shape:

    {
      "donors": [...],
      "blood_banks": [...],
      "hospitals": [...],
      "requests": [...]
    }

Entries are validated into Pydantic models. Unusable coordinates become
`location=None` instead of failing the whole file.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter

from bloodmatch.core.env import resolve_project_path
from bloodmatch.domain.models import BloodBank, BloodRequest, Donor, GeoPoint, Hospital, normalize_blood_type

logger = logging.getLogger(__name__)


class NotFound(KeyError):
    """Raised when a directory lookup has no entry for the given id."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "not found"


class Directory(BaseModel):
    donors: list[Donor] = Field(default_factory=list)
    blood_banks: list[BloodBank] = Field(default_factory=list)
    hospitals: list[Hospital] = Field(default_factory=list)
    requests: list[BloodRequest] = Field(default_factory=list)

    def get_donor(self, donor_id: str) -> Donor:
        for d in self.donors:
            if d.id == donor_id:
                return d
        raise NotFound(f"Donor '{donor_id}' not found")

    def get_blood_bank(self, blood_bank_id: str) -> BloodBank:
        for b in self.blood_banks:
            if b.id == blood_bank_id:
                return b
        raise NotFound(f"Blood bank '{blood_bank_id}' not found")

    def get_hospital(self, hospital_id: str) -> Hospital:
        for h in self.hospitals:
            if h.id == hospital_id:
                return h
        raise NotFound(f"Hospital '{hospital_id}' not found")

    def get_request(self, request_id: str) -> BloodRequest:
        for r in self.requests:
            if r.id == request_id:
                return r
        raise NotFound(f"Blood request '{request_id}' not found")

    def critical_ready_donors(self, blood_type: str) -> list[Donor]:
        wanted = normalize_blood_type(blood_type)
        return [d for d in self.donors if d.is_critical_ready and d.blood_type == wanted]

    def pending_urgent_requests(self, blood_type: str) -> list[BloodRequest]:
        """Pending requests for `blood_type` that are urgent or emergency requests, newest first."""
        wanted = normalize_blood_type(blood_type)
        out = [
            r
            for r in self.requests
            if r.status == "pending" and r.blood_type == wanted and (r.is_urgent or r.request_type == "emergency")
        ]
        out.sort(key=lambda r: r.created_at, reverse=True)
        return out

    def request_location(self, request: BloodRequest) -> GeoPoint | None:
        """The request's own coordinates, else those of the hospital that raised it."""
        if request.location is not None:
            return request.location
        if request.hospital_id:
            try:
                return self.get_hospital(request.hospital_id).location
            except NotFound:
                logger.debug("Request %s refers to unknown hospital %s", request.id, request.hospital_id)
        return None


_DIRECTORY_ADAPTER = TypeAdapter(Directory)


def parse_directory(payload: Any) -> Directory:
    """Validate an already-decoded JSON payload into a `Directory`."""
    if not isinstance(payload, dict):
        raise ValueError("Directory payload must be a JSON object with donors/blood_banks/hospitals/requests")
    return _DIRECTORY_ADAPTER.validate_python(payload)


def load_directory(path: str | Path) -> Directory:
    """Load and validate a directory JSON file."""
    resolved = resolve_project_path(path)
    payload = json.loads(resolved.read_text(encoding="utf-8"))
    directory = parse_directory(payload)
    logger.info(
        "Loaded directory %s: donors=%d blood_banks=%d hospitals=%d requests=%d",
        resolved,
        len(directory.donors),
        len(directory.blood_banks),
        len(directory.hospitals),
        len(directory.requests),
    )
    return directory
