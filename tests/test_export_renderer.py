import asyncio
import json

import pytest

from trekscene.config.settings import RenderSettings, get_settings
from trekscene.domain.models import MetricPoint, Offset
from trekscene.ingestion.dem import parse_dem
from trekscene.pipeline.scene import SceneBuildPipeline
from trekscene.render.export import SceneExportRenderer


def test_offset_apply_maps_dem_center_to_origin(dem_payload):
    dem, offset = parse_dem(dem_payload)

    world = offset.apply(dem.center)

    assert world.x == pytest.approx(0.0)
    assert world.z == pytest.approx(0.0)
    assert world.y == pytest.approx(1500.0 - 1000.0)


def test_export_document_is_in_world_space(source_payloads):
    async def fetch(url):
        return source_payloads[url]

    renderer = SceneExportRenderer(get_settings().render)
    pipeline = SceneBuildPipeline.from_settings(get_settings(), fetch, renderer, version="1.1", demo=True)
    scene = asyncio.run(pipeline.run())

    doc = json.loads(renderer.to_json())

    assert doc["ready"] is True
    assert doc["offset"] == {"x": scene.offset.x, "y": scene.offset.y, "z": scene.offset.z}
    assert doc["terrain"]["center"]["x"] == pytest.approx(0.0)
    assert doc["terrain"]["extent"]["altitudes"] == {"min": 0.0, "max": 1500.0}
    assert doc["terrain"]["o_extent"]["northwest"]["x"] == scene.dem.o_extent.northwest.x
    assert doc["terrain"]["resolution"] == {"x": 4, "y": 3}
    assert doc["terrain"]["textured"] is True

    assert doc["trek"]["animate"] is False
    assert doc["trek"]["draped"] is True
    assert len(doc["trek"]["points"]) == 3
    first = doc["trek"]["points"][0]
    assert first["x"] == pytest.approx(scene.trek[0].x + scene.offset.x)
    assert first["y"] == pytest.approx(-scene.offset.y)

    assert [p["properties"]["name"] for p in doc["pois"]] == ["Refuge", "Col"]
    assert doc["pois"][0]["position"]["y"] == pytest.approx(1234.5 - 1000.0)

    assert doc["render"]["geometry"]["trek_width_m"] == 3
    assert doc["steps"][-2:] == ["apply_terrain_textures", "drape_trek"]


def test_drape_requires_textured_terrain(dem_payload):
    dem, offset = parse_dem(dem_payload)
    renderer = SceneExportRenderer(RenderSettings())
    renderer.build_terrain(dem, offset)
    renderer.build_trek([MetricPoint(x=1, y=0, z=2)], offset, animate=True)

    with pytest.raises(RuntimeError, match="textured terrain"):
        renderer.drape_trek()


def test_textures_require_terrain():
    renderer = SceneExportRenderer()
    with pytest.raises(RuntimeError):
        renderer.apply_terrain_textures()


def test_empty_document_before_handoff():
    doc = SceneExportRenderer().document()
    assert doc["offset"] is None
    assert doc["terrain"] is None
    assert doc["steps"] == []
    assert doc["ready"] is False
    assert Offset(x=1, y=2, z=3).apply(MetricPoint(x=1, y=2, z=3)) == MetricPoint(x=2, y=0, z=6)
