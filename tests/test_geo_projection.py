import pytest

from trekscene.core.errors import MalformedInputError
from trekscene.core.geo import ORIGIN_SHIFT_M, extent_to_meters, lnglat_to_geo, to_meters
from trekscene.domain.models import GeoPoint


def test_to_meters_is_deterministic():
    p = GeoPoint(lat=45.9, lng=6.5)
    a = to_meters(p)
    b = to_meters(p)
    assert (a.x, a.y, a.z) == (b.x, b.y, b.z)
    assert to_meters({"lat": 45.9, "lng": 6.5}) == a


def test_to_meters_known_web_mercator_values():
    origin = to_meters({"lat": 0, "lng": 0})
    assert origin.x == pytest.approx(0.0)
    assert origin.z == pytest.approx(0.0, abs=1e-6)
    assert origin.y == 0.0

    east = to_meters({"lat": 0, "lng": 180})
    assert east.x == pytest.approx(ORIGIN_SHIFT_M)

    north = to_meters({"lat": 45, "lng": 0})
    assert north.z == pytest.approx(5621521.486, rel=1e-6)


def test_to_meters_ignores_extra_keys():
    # DEM centers carry the altitude next to lat/lng.
    assert to_meters({"lat": 45.9, "lng": 6.5, "z": 1500}) == to_meters({"lat": 45.9, "lng": 6.5})


@pytest.mark.parametrize(
    "raw",
    [
        {"lng": 6.5},
        {"lat": 45.9},
        {"lat": "45.9", "lng": 6.5},
        {"lat": True, "lng": 6.5},
        {"lat": 45.9, "lng": None},
        {"lat": 95.0, "lng": 6.5},
        {"lat": float("nan"), "lng": 6.5},
        "45.9,6.5",
    ],
)
def test_to_meters_rejects_malformed_points(raw):
    with pytest.raises(MalformedInputError):
        to_meters(raw)


def test_lnglat_pair_is_read_in_geojson_order():
    p = lnglat_to_geo([6.5, 45.9])
    assert (p.lat, p.lng) == (45.9, 6.5)

    with pytest.raises(MalformedInputError):
        lnglat_to_geo([6.5])


def test_extent_to_meters_projects_corners_and_keeps_altitudes():
    raw = {
        "northwest": {"lat": 45.95, "lng": 6.45},
        "northeast": {"lat": 45.95, "lng": 6.55},
        "southeast": {"lat": 45.85, "lng": 6.55},
        "southwest": {"lat": 45.85, "lng": 6.45},
        "altitudes": {"min": 1000.0, "max": 2500.0},
    }
    extent = extent_to_meters(raw)

    assert extent.northwest == to_meters(raw["northwest"])
    assert extent.southeast == to_meters(raw["southeast"])
    assert extent.northwest.z > extent.southwest.z
    assert extent.northeast.x > extent.northwest.x
    assert (extent.altitudes.min, extent.altitudes.max) == (1000.0, 2500.0)


def test_extent_to_meters_requires_all_corners():
    raw = {
        "northwest": {"lat": 45.95, "lng": 6.45},
        "northeast": {"lat": 45.95, "lng": 6.55},
        "southeast": {"lat": 45.85, "lng": 6.55},
        "altitudes": {"min": 1000.0, "max": 2500.0},
    }
    with pytest.raises(MalformedInputError, match="southwest"):
        extent_to_meters(raw)
