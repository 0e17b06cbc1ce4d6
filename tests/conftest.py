from __future__ import annotations

from typing import Any, Callable

import pytest

from trekscene.config.settings import get_settings


def _dem_payload(rows: int = 3, cols: int = 4) -> dict[str, Any]:
    return {
        "center": {"lat": 45.9, "lng": 6.5, "z": 1500.0},
        "extent": {
            "northwest": {"lat": 45.95, "lng": 6.45},
            "northeast": {"lat": 45.95, "lng": 6.55},
            "southeast": {"lat": 45.85, "lng": 6.55},
            "southwest": {"lat": 45.85, "lng": 6.45},
            "altitudes": {"min": 1000.0, "max": 2500.0},
        },
        "altitudes": [[1000.0 + 10 * r + c for c in range(cols)] for r in range(rows)],
        "resolution": {"x": cols, "y": rows},
    }


def _trek_payload() -> dict[str, Any]:
    # [distance_m, altitude_m, [lng, lat], ...]
    return {
        "profile": [
            [0.0, 1500.0, [6.50, 45.90], 0],
            [120.0, 1512.0, [6.51, 45.91], 1],
            [260.0, 1530.0, [6.52, 45.905], 2],
        ]
    }


def _poi_payload() -> dict[str, Any]:
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [6.5, 45.9]},
                "properties": {"elevation": 1234.5, "name": "Refuge", "category": "shelter"},
            },
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [6.52, 45.91]},
                "properties": {"elevation": 1800, "name": "Col"},
            },
        ],
    }


@pytest.fixture
def dem_payload() -> dict[str, Any]:
    return _dem_payload()


@pytest.fixture
def trek_payload() -> dict[str, Any]:
    return _trek_payload()


@pytest.fixture
def poi_payload() -> dict[str, Any]:
    return _poi_payload()


@pytest.fixture
def source_payloads() -> dict[str, Any]:
    """Payloads keyed by the source URLs of the default settings."""
    sources = get_settings().sources
    return {
        sources.dem_url: _dem_payload(),
        sources.profile_url: _trek_payload(),
        sources.poi_url: _poi_payload(),
    }


class RecordingRenderer:
    """Renderer stub that records every call in order."""

    def __init__(self, *, defer_ready: bool = False):
        self.calls: list[tuple[str, Any]] = []
        self.ready_callback: Callable[[], None] | None = None
        self._defer_ready = defer_ready

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def build_terrain(self, dem, offset):
        self.calls.append(("build_terrain", (dem, offset)))

    def build_trek(self, trek, offset, animate):
        self.calls.append(("build_trek", (list(trek), offset, animate)))

    def build_poi_marker(self, poi, offset):
        self.calls.append(("build_poi_marker", (poi, offset)))

    def on_all_assets_ready(self, callback):
        self.calls.append(("on_all_assets_ready", None))
        self.ready_callback = callback
        if not self._defer_ready:
            callback()

    def apply_terrain_textures(self):
        self.calls.append(("apply_terrain_textures", None))

    def drape_trek(self):
        self.calls.append(("drape_trek", None))


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def deferred_renderer() -> RecordingRenderer:
    return RecordingRenderer(defer_ready=True)
