import pytest

from bloodmatch.core.geo import GeoPoint, coerce_point, haversine_km, is_unset_location

POINTS = [
    GeoPoint(lat=12.9716, lon=77.5946),
    GeoPoint(lat=13.0827, lon=80.2707),
    GeoPoint(lat=-33.8688, lon=151.2093),
    GeoPoint(lat=51.5074, lon=-0.1278),
    GeoPoint(lat=89.9, lon=179.9),
]


@pytest.mark.parametrize("a", POINTS)
@pytest.mark.parametrize("b", POINTS)
def test_haversine_is_symmetric(a, b):
    assert haversine_km(a, b) == pytest.approx(haversine_km(b, a), abs=1e-9)


@pytest.mark.parametrize("p", POINTS)
def test_haversine_zero_for_same_point(p):
    assert haversine_km(p, p) == 0.0


def test_haversine_antipodes_is_half_circumference():
    d = haversine_km(GeoPoint(lat=0.0, lon=0.0), GeoPoint(lat=0.0, lon=180.0))
    assert d == pytest.approx(20015.1, abs=0.5)


def test_is_unset_location():
    assert is_unset_location(None)
    assert is_unset_location(GeoPoint(lat=0.0, lon=0.0))
    assert not is_unset_location(GeoPoint(lat=0.0, lon=1.0))


def test_coerce_point_accepts_source_shapes():
    assert coerce_point({"lat": 1, "lon": 2}) == GeoPoint(lat=1.0, lon=2.0)
    assert coerce_point({"latitude": "1.5", "longitude": "2.5"}) == GeoPoint(lat=1.5, lon=2.5)
    # GeoJSON stores [longitude, latitude].
    assert coerce_point({"type": "Point", "coordinates": [77.6, 12.9]}) == GeoPoint(lat=12.9, lon=77.6)
    assert coerce_point(GeoPoint(lat=3.0, lon=4.0)) == GeoPoint(lat=3.0, lon=4.0)


@pytest.mark.parametrize(
    "raw",
    [
        None,
        {},
        {"lat": None, "lon": 1},
        {"lat": "north", "lon": 1},
        {"lat": 91, "lon": 0},
        {"lat": 0, "lon": -181},
        {"coordinates": [1]},
        {"lat": True, "lon": 1},
        "12.9,77.6",
    ],
)
def test_coerce_point_rejects_unusable_values(raw):
    assert coerce_point(raw) is None
