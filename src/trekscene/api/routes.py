"""
API routes.

Endpoints:
- GET  `/api/scene`: build the scene from the configured sources and return it.
- POST `/api/scene`: same, with a body carrying version/demo/settings overrides.
- GET  `/api/settings`: public settings for a web viewer (scene + render sections).
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from trekscene.config.overrides import apply_settings_overrides
from trekscene.config.settings import get_settings
from trekscene.core.errors import SceneBuildError
from trekscene.core.http import JsonFetcher
from trekscene.pipeline.scene import FetchJson, SceneBuildPipeline
from trekscene.render.export import SceneExportRenderer

logger = logging.getLogger(__name__)

router = APIRouter()


class SceneRequest(BaseModel):
    """Body of `POST /api/scene`; every field is optional."""

    version: str | None = None
    demo: bool | None = None
    settings_overrides: dict[str, Any] | None = None


@lru_cache
def _fetcher() -> FetchJson:
    return JsonFetcher.from_settings(get_settings())


async def _build(request: SceneRequest) -> dict[str, Any]:
    try:
        settings = apply_settings_overrides(get_settings(), request.settings_overrides)
        renderer = SceneExportRenderer(settings.render)
        pipeline = SceneBuildPipeline.from_settings(
            settings,
            _fetcher(),
            renderer,
            version=request.version,
            demo=request.demo,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    try:
        await pipeline.run()
    except SceneBuildError as exc:
        cause = exc.cause if exc.cause is not None else exc
        raise HTTPException(
            status_code=502,
            detail={"stage": exc.stage, "error": f"{type(cause).__name__}: {cause}"},
        ) from exc
    return renderer.document()


@router.get("/api/scene")
async def get_scene(version: str | None = None, demo: bool | None = None) -> dict[str, Any]:
    """Build the scene with the configured sources."""
    return await _build(SceneRequest(version=version, demo=demo))


@router.post("/api/scene")
async def post_scene(request: SceneRequest) -> dict[str, Any]:
    """Build the scene with per-request settings overrides."""
    return await _build(request)


@router.get("/api/settings")
def get_public_settings() -> dict[str, Any]:
    """Return the settings a web viewer needs (source URLs and HTTP knobs excluded)."""
    settings = get_settings()
    return {
        "name": settings.app.name,
        "scene": settings.scene.model_dump(mode="json"),
        "render": settings.render.model_dump(mode="json"),
    }
