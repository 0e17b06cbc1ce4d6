"""
Geodetic -> metric projection.

Every point of a scene goes through `to_meters`, a spherical (web) Mercator projection
(EPSG:3857). Using the same formula everywhere is what keeps terrain, trek and POIs
in one frame; the result is deterministic and has no side effects.
"""

from __future__ import annotations

from math import log, pi, tan
from typing import Any, Mapping

from pydantic import ValidationError

from trekscene.core.errors import MalformedInputError
from trekscene.domain.models import AltitudeRange, Extent, GeoExtent, GeoPoint, MetricPoint

# Half the equatorial circumference of the EPSG:3857 sphere, in meters.
ORIGIN_SHIFT_M = 20037508.34

CORNERS = ("northwest", "northeast", "southeast", "southwest")


def as_geo_point(value: GeoPoint | Mapping[str, Any], *, what: str = "point") -> GeoPoint:
    """Validate a raw `{lat, lng}` mapping (extra keys ignored) into a `GeoPoint`."""
    if isinstance(value, GeoPoint):
        return value
    if not isinstance(value, Mapping):
        raise MalformedInputError(f"{what}: expected an object with lat/lng, got {type(value).__name__}")
    try:
        return GeoPoint.model_validate({"lat": value.get("lat"), "lng": value.get("lng")})
    except ValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        raise MalformedInputError(f"{what}: invalid or missing {fields}") from exc


def lnglat_to_geo(pair: Any, *, what: str = "coordinates") -> GeoPoint:
    """Read a GeoJSON-ordered `[lng, lat]` pair."""
    if not isinstance(pair, (list, tuple)) or len(pair) < 2:
        raise MalformedInputError(f"{what}: expected a [lng, lat] pair, got {pair!r}")
    return as_geo_point({"lat": pair[1], "lng": pair[0]}, what=what)


def to_meters(geo: GeoPoint | Mapping[str, Any]) -> MetricPoint:
    """Project a coordinate onto the metric plane (`x` east, `z` north, `y` = 0)."""
    p = as_geo_point(geo)
    x = p.lng * ORIGIN_SHIFT_M / 180
    z = log(tan((90 + p.lat) * pi / 360)) / (pi / 180)
    z = z * ORIGIN_SHIFT_M / 180
    return MetricPoint(x=x, y=0.0, z=z)


def extent_to_meters(extent: GeoExtent | Mapping[str, Any]) -> Extent:
    """Project the four corners of an extent; `altitudes` is passed through unchanged."""
    if isinstance(extent, GeoExtent):
        raw: Mapping[str, Any] = extent.model_dump()
    elif isinstance(extent, Mapping):
        raw = extent
    else:
        raise MalformedInputError(f"extent: expected an object, got {type(extent).__name__}")

    corners = {name: to_meters(as_geo_point(raw.get(name), what=f"extent.{name}")) for name in CORNERS}
    try:
        altitudes = AltitudeRange.model_validate(raw.get("altitudes"))
    except ValidationError as exc:
        raise MalformedInputError(f"extent.altitudes: expected {{min, max}}, got {raw.get('altitudes')!r}") from exc
    return Extent(**corners, altitudes=altitudes)
