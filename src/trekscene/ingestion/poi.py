"""
Points-of-interest normalizer.

Input is a GeoJSON FeatureCollection of points. For each feature:
- `geometry.coordinates` (`[lng, lat]`) is projected for `x`/`z`,
- `properties.elevation` gives `y` (it is not looked up in the DEM grid),
- `properties` is kept as-is for labels, categories, icons, etc.
"""

from __future__ import annotations

import copy
from numbers import Real
from typing import Any, Mapping

from trekscene.core.errors import MalformedInputError
from trekscene.core.geo import lnglat_to_geo, to_meters
from trekscene.domain.models import MetricPoint, PoiEntry


def _parse_feature(feature: Any, index: int) -> PoiEntry:
    where = f"pois.features[{index}]"
    if not isinstance(feature, Mapping):
        raise MalformedInputError(f"{where}: expected an object")

    geometry = feature.get("geometry")
    if not isinstance(geometry, Mapping):
        raise MalformedInputError(f"{where}.geometry: expected an object")
    projected = to_meters(lnglat_to_geo(geometry.get("coordinates"), what=f"{where}.geometry.coordinates"))

    properties = feature.get("properties")
    if not isinstance(properties, Mapping):
        raise MalformedInputError(f"{where}.properties: expected an object")
    elevation = properties.get("elevation")
    if isinstance(elevation, bool) or not isinstance(elevation, Real):
        raise MalformedInputError(f"{where}.properties.elevation: expected a number, got {elevation!r}")

    return PoiEntry(
        coordinates=MetricPoint(x=projected.x, y=float(elevation), z=projected.z),
        properties=copy.deepcopy(dict(properties)),
    )


def parse_pois(raw: Any) -> list[PoiEntry]:
    """Normalize a POI FeatureCollection; order is kept but carries no meaning."""
    if not isinstance(raw, Mapping):
        raise MalformedInputError(f"pois: expected an object, got {type(raw).__name__}")
    features = raw.get("features")
    if not isinstance(features, list):
        raise MalformedInputError(f"pois.features: expected a list, got {type(features).__name__}")
    return [_parse_feature(feature, i) for i, feature in enumerate(features)]
