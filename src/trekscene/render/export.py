"""
Scene export renderer.

A `SceneRenderer` that builds no meshes: it records the handoff as a JSON-ready
document (world-space positions, raw grid, render knobs, ordered post-ready steps).
The CLI writes this document to disk and the API returns it to web viewers.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Sequence

from trekscene.config.settings import RenderSettings
from trekscene.domain.models import DemData, Extent, MetricPoint, Offset, PoiEntry

logger = logging.getLogger(__name__)


def _point(p: MetricPoint | Offset) -> dict[str, float]:
    return {"x": p.x, "y": p.y, "z": p.z}


def _world_extent(extent: Extent, offset: Offset) -> dict[str, Any]:
    corners: dict[str, Any] = {}
    for name in ("northwest", "northeast", "southeast", "southwest"):
        corner = getattr(extent, name)
        corners[name] = {"x": corner.x + offset.x, "z": corner.z + offset.z}
    corners["altitudes"] = {
        "min": extent.altitudes.min - offset.y,
        "max": extent.altitudes.max - offset.y,
    }
    return corners


class SceneExportRenderer:
    """Collects the pipeline handoff into `document`."""

    def __init__(self, render: RenderSettings | None = None):
        self._render = render or RenderSettings()
        self._offset: Offset | None = None
        self.terrain: dict[str, Any] | None = None
        self.trek: dict[str, Any] | None = None
        self.pois: list[dict[str, Any]] = []
        self.steps: list[str] = []
        self.ready = False

    def build_terrain(self, dem: DemData, offset: Offset) -> None:
        self._offset = offset
        self.terrain = {
            "resolution": {"x": dem.resolution.x, "y": dem.resolution.y},
            "center": _point(offset.apply(dem.center)),
            "extent": _world_extent(dem.extent, offset),
            "o_extent": dem.o_extent.model_dump(mode="json"),
            "altitudes": dem.altitudes,
            "textured": False,
        }
        self.steps.append("build_terrain")

    def build_trek(self, trek: Sequence[MetricPoint], offset: Offset, animate: bool) -> None:
        self.trek = {
            "animate": bool(animate),
            "points": [_point(offset.apply(p)) for p in trek],
            "draped": False,
        }
        self.steps.append("build_trek")

    def build_poi_marker(self, poi: PoiEntry, offset: Offset) -> None:
        self.pois.append(
            {
                "position": _point(offset.apply(poi.coordinates)),
                "properties": dict(poi.properties),
            }
        )
        self.steps.append("build_poi_marker")

    def on_all_assets_ready(self, callback: Callable[[], None]) -> None:
        # Nothing is loaded asynchronously here, so assets are ready as soon as they are built.
        self.ready = True
        logger.debug("Export renderer ready after %s build steps", len(self.steps))
        callback()

    def apply_terrain_textures(self) -> None:
        if self.terrain is None:
            raise RuntimeError("apply_terrain_textures called before build_terrain")
        self.terrain["textured"] = True
        self.steps.append("apply_terrain_textures")

    def drape_trek(self) -> None:
        if self.trek is None or self.terrain is None or not self.terrain["textured"]:
            raise RuntimeError("drape_trek requires a built trek and textured terrain")
        self.trek["draped"] = True
        self.steps.append("drape_trek")

    def document(self) -> dict[str, Any]:
        """Return the exported scene (JSON-serializable)."""
        return {
            "offset": _point(self._offset) if self._offset else None,
            "terrain": self.terrain,
            "trek": self.trek,
            "pois": list(self.pois),
            "render": self._render.model_dump(mode="json"),
            "steps": list(self.steps),
            "ready": self.ready,
        }

    def to_json(self, *, indent: int | None = 2) -> str:
        return json.dumps(self.document(), ensure_ascii=False, indent=indent)
