"""
Renderer contract.

The pipeline never builds meshes itself; it hands normalized data to an object with
this shape. Every placement call receives the scene `Offset` explicitly.
"""

from __future__ import annotations

from typing import Callable, Protocol, Sequence

from trekscene.domain.models import DemData, MetricPoint, Offset, PoiEntry


class SceneRenderer(Protocol):
    def build_terrain(self, dem: DemData, offset: Offset) -> None: ...

    def build_trek(self, trek: Sequence[MetricPoint], offset: Offset, animate: bool) -> None: ...

    def build_poi_marker(self, poi: PoiEntry, offset: Offset) -> None: ...

    def on_all_assets_ready(self, callback: Callable[[], None]) -> None:
        """Invoke `callback` once every built asset is loaded."""
        ...

    def apply_terrain_textures(self) -> None: ...

    def drape_trek(self) -> None:
        """Drop the trek onto the textured terrain surface."""
        ...
