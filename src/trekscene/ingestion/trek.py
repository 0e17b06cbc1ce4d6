"""
Trek profile normalizer.

The profile payload is `{"profile": [entry, ...]}` where each entry is a tuple whose
index 2 holds the GeoJSON-ordered `[lng, lat]` pair; the other fields (distance along
the path, altitude, ...) are not used here.

The output keeps the input order exactly: it is the traversal order of the path.
Points get `y = 0`; the renderer drapes them onto the terrain later.
"""

from __future__ import annotations

from typing import Any, Mapping

from trekscene.core.errors import MalformedInputError
from trekscene.core.geo import lnglat_to_geo, to_meters
from trekscene.domain.models import MetricPoint

LNGLAT_INDEX = 2


def parse_trek(raw: Any) -> list[MetricPoint]:
    """Normalize a trek profile payload into ordered metric points."""
    if not isinstance(raw, Mapping):
        raise MalformedInputError(f"trek: expected an object, got {type(raw).__name__}")
    profile = raw.get("profile")
    if not isinstance(profile, list):
        raise MalformedInputError(f"trek.profile: expected a list, got {type(profile).__name__}")

    points: list[MetricPoint] = []
    for i, entry in enumerate(profile):
        if not isinstance(entry, (list, tuple)) or len(entry) <= LNGLAT_INDEX:
            raise MalformedInputError(f"trek.profile[{i}]: expected a tuple with [lng, lat] at index {LNGLAT_INDEX}")
        projected = to_meters(lnglat_to_geo(entry[LNGLAT_INDEX], what=f"trek.profile[{i}][{LNGLAT_INDEX}]"))
        points.append(MetricPoint(x=projected.x, y=0.0, z=projected.z))
    return points
