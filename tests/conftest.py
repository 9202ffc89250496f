import pytest

from bloodmatch.directory.loader import parse_directory

BANGALORE = {"lat": 12.9716, "lon": 77.5946}
CHENNAI = {"lat": 13.0827, "lon": 80.2707}


def sample_payload() -> dict:
    """A small Bengaluru-centred directory used across flow, API and CLI tests."""
    return {
        "donors": [
            {
                "id": "d-near",
                "name": "Asha",
                "blood_type": "O+",
                "is_critical_ready": True,
                "critical_service_radius_km": 15,
                "location": {"type": "Point", "coordinates": [77.6101, 12.9352]},
            },
            {
                "id": "d-north",
                "name": "Vikram",
                "blood_type": "o+",
                "is_critical_ready": True,
                "latitude": 13.0358,
                "longitude": 77.5970,
            },
            {
                "id": "d-off",
                "name": "Meera",
                "blood_type": "O+",
                "is_critical_ready": False,
                "location": {"lat": 12.9716, "lon": 77.5946},
            },
            {
                "id": "d-unset",
                "name": "Karthik",
                "blood_type": "O+",
                "is_critical_ready": True,
                "location": {"type": "Point", "coordinates": [0, 0]},
            },
            {
                "id": "d-ab",
                "name": "Ravi",
                "blood_type": "AB-",
                "is_critical_ready": True,
                "location": {"lat": 12.9716, "lon": 77.5946},
            },
        ],
        "blood_banks": [
            {
                "id": "bb-central",
                "name": "City Central",
                "latitude": 12.9758,
                "longitude": 77.6055,
                "inventory": [{"blood_type": "O+", "units_available": 12}],
            },
            {
                "id": "bb-jayanagar",
                "name": "Jayanagar",
                "latitude": 12.9299,
                "longitude": 77.5826,
                "inventory": [{"blood_type": "A+", "units_available": 5}],
            },
            {
                "id": "bb-chennai",
                "name": "Chennai",
                "location": CHENNAI,
                "inventory": [{"blood_type": "O+", "units_available": 30}],
            },
            {"id": "bb-nowhere", "name": "No coordinates"},
        ],
        "hospitals": [
            {"id": "h-1", "name": "St. Martha's", "latitude": 12.9667, "longitude": 77.5870},
        ],
        "requests": [
            {
                "id": "r-koramangala",
                "blood_type": "O+",
                "units_required": 2,
                "is_urgent": True,
                "location": {"lat": 12.9279, "lon": 77.6271},
                "created_at": "2026-10-18T09:30:00+05:30",
            },
            {
                "id": "r-hospital",
                "blood_type": "O+",
                "units_required": 3,
                "request_type": "normal",
                "is_urgent": True,
                "hospital_id": "h-1",
                "created_at": "2026-10-18T11:00:00+05:30",
            },
            {
                "id": "r-accepted",
                "blood_type": "O+",
                "units_required": 1,
                "status": "accepted",
                "location": {"lat": 12.9352, "lon": 77.6101},
            },
            {
                "id": "r-routine",
                "blood_type": "O+",
                "units_required": 1,
                "request_type": "normal",
                "location": {"lat": 12.9352, "lon": 77.6101},
            },
            {
                "id": "r-chennai",
                "blood_type": "O+",
                "units_required": 4,
                "is_urgent": True,
                "location": CHENNAI,
                "created_at": "2026-10-01T00:00:00+00:00",
            },
        ],
    }


@pytest.fixture
def directory():
    return parse_directory(sample_payload())


@pytest.fixture
def directory_payload():
    return sample_payload()
