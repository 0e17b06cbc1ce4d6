"""
Domain models (Pydantic).

These types are the contract between the normalizers, the pipeline and the renderer:
- geographic inputs (`GeoPoint`, `GeoExtent`)
- the shared metric frame (`MetricPoint`, `Extent`)
- normalized entities (`DemData`, `PoiEntry`, trek points as `MetricPoint`)
- the scene-wide translation (`Offset`) and the aggregate handed off (`SceneData`)

Axis convention for every metric point in a scene:
- `x`: projected easting (from longitude)
- `z`: projected northing (from latitude)
- `y`: altitude in meters

All models are frozen: once a build produces them they are read-only.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class GeoPoint(BaseModel):
    """A WGS84 coordinate in decimal degrees."""

    model_config = ConfigDict(frozen=True, strict=True, allow_inf_nan=False)

    lat: float = Field(..., gt=-90, lt=90)
    lng: float = Field(..., ge=-180, le=180)


class MetricPoint(BaseModel):
    """A point in the local Cartesian frame (meters)."""

    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class AltitudeRange(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True)

    min: float
    max: float


class GeoExtent(BaseModel):
    """Bounding region in geographic form, as delivered by the DEM source."""

    model_config = ConfigDict(frozen=True)

    northwest: GeoPoint
    northeast: GeoPoint
    southeast: GeoPoint
    southwest: GeoPoint
    altitudes: AltitudeRange


class Extent(BaseModel):
    """Bounding region in metric form; corners have `y == 0`."""

    model_config = ConfigDict(frozen=True)

    northwest: MetricPoint
    northeast: MetricPoint
    southeast: MetricPoint
    southwest: MetricPoint
    altitudes: AltitudeRange


class Resolution(BaseModel):
    """Number of altitude samples per row (`x`) and number of rows (`y`)."""

    model_config = ConfigDict(frozen=True, strict=True)

    x: int = Field(..., ge=0)
    y: int = Field(..., ge=0)


class DemData(BaseModel):
    """Normalized digital elevation model.

    `o_extent` and `o_center` are deep copies taken at parse time and kept for
    downstream consumers that need the untouched values.
    """

    model_config = ConfigDict(frozen=True)

    extent: Extent
    o_extent: Extent
    altitudes: list[list[float]]
    resolution: Resolution
    center: MetricPoint
    o_center: MetricPoint


class Offset(BaseModel):
    """Translation aligning the whole scene on the DEM.

    Horizontally the DEM center lands on the world origin; vertically the DEM minimum
    altitude lands on zero.
    """

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    z: float

    def apply(self, point: MetricPoint) -> MetricPoint:
        """Return `point` expressed in world (render) space."""
        return MetricPoint(x=point.x + self.x, y=point.y - self.y, z=point.z + self.z)


class PoiEntry(BaseModel):
    """One point of interest; `properties` is passed through uninterpreted."""

    model_config = ConfigDict(frozen=True)

    coordinates: MetricPoint
    properties: dict[str, Any] = Field(default_factory=dict)


class SceneData(BaseModel):
    """Everything the renderer receives once the pipeline is READY."""

    model_config = ConfigDict(frozen=True)

    dem: DemData
    offset: Offset
    trek: list[MetricPoint] = Field(default_factory=list)
    pois: list[PoiEntry] = Field(default_factory=list)
