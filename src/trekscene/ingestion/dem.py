"""
DEM normalizer.

Turns the raw elevation-model payload into `DemData` and derives the scene `Offset`.

Expected payload shape:

    {
      "center": {"lat": ..., "lng": ..., "z": <altitude m>},
      "extent": {"northwest": {...}, "northeast": {...}, "southeast": {...},
                 "southwest": {...}, "altitudes": {"min": ..., "max": ...}},
      "altitudes": [[...], ...],          # rows (resolution.y) of samples (resolution.x)
      "resolution": {"x": <cols>, "y": <rows>}
    }

Altitudes and the center altitude are already in meters and are copied verbatim.
"""

from __future__ import annotations

import logging
from numbers import Real
from typing import Any, Mapping

from pydantic import ValidationError

from trekscene.core.errors import DataIntegrityError, MalformedInputError
from trekscene.core.geo import as_geo_point, extent_to_meters, to_meters
from trekscene.domain.models import DemData, MetricPoint, Offset, Resolution

logger = logging.getLogger(__name__)


def _require_mapping(raw: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise MalformedInputError(f"{what}: expected an object, got {type(raw).__name__}")
    return raw


def _parse_resolution(raw: Any) -> Resolution:
    try:
        return Resolution.model_validate(raw)
    except ValidationError as exc:
        raise MalformedInputError(f"dem.resolution: expected {{x, y}} integers, got {raw!r}") from exc


def _check_grid(altitudes: Any, resolution: Resolution) -> list[list[float]]:
    """Validate grid shape against `resolution`, then coerce samples to floats."""
    if not isinstance(altitudes, list) or not all(isinstance(row, list) for row in altitudes):
        raise MalformedInputError("dem.altitudes: expected a list of rows")

    expected = (resolution.y, resolution.x)
    rows = len(altitudes)
    cols = len(altitudes[0]) if altitudes else 0
    if rows == 0 or cols == 0:
        raise DataIntegrityError(expected, (rows, cols), "empty altitude grid")
    if (rows, cols) != expected:
        raise DataIntegrityError(expected, (rows, cols))
    for i, row in enumerate(altitudes):
        if len(row) != cols:
            raise DataIntegrityError(expected, (rows, len(row)), f"row {i} is ragged")

    grid: list[list[float]] = []
    for i, row in enumerate(altitudes):
        for j, v in enumerate(row):
            if isinstance(v, bool) or not isinstance(v, Real):
                raise MalformedInputError(f"dem.altitudes[{i}][{j}]: expected a number, got {v!r}")
        grid.append([float(v) for v in row])
    return grid


def derive_offset(dem: DemData) -> Offset:
    """Offset placing the DEM center on the origin and its minimum altitude on zero."""
    return Offset(x=-dem.center.x, y=dem.extent.altitudes.min, z=-dem.center.z)


def parse_dem(raw: Any) -> tuple[DemData, Offset]:
    """Normalize a DEM payload.

    Raises:
        MalformedInputError: On missing/non-numeric coordinates, altitudes or resolution.
        DataIntegrityError: If the altitude grid does not match `resolution`.
    """
    payload = _require_mapping(raw, "dem")
    center_raw = _require_mapping(payload.get("center"), "dem.center")

    projected = to_meters(as_geo_point(center_raw, what="dem.center"))
    center_alt = center_raw.get("z")
    if isinstance(center_alt, bool) or not isinstance(center_alt, Real):
        raise MalformedInputError(f"dem.center.z: expected a number, got {center_alt!r}")

    extent = extent_to_meters(_require_mapping(payload.get("extent"), "dem.extent"))
    resolution = _parse_resolution(payload.get("resolution"))
    altitudes = _check_grid(payload.get("altitudes"), resolution)

    center = MetricPoint(x=projected.x, y=float(center_alt), z=projected.z)
    dem = DemData(
        extent=extent,
        o_extent=extent.model_copy(deep=True),
        altitudes=altitudes,
        resolution=resolution,
        center=center,
        o_center=center.model_copy(deep=True),
    )
    offset = derive_offset(dem)
    logger.debug(
        "Parsed DEM %sx%s, center=(%.1f, %.1f, %.1f), offset=(%.1f, %.1f, %.1f)",
        resolution.x,
        resolution.y,
        center.x,
        center.y,
        center.z,
        offset.x,
        offset.y,
        offset.z,
    )
    return dem, offset
