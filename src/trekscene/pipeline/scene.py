"""
Scene build pipeline.

Fetches the DEM, the trek profile and (optionally) the points of interest one after the
other, normalizes each payload as soon as it arrives, then hands the assembled
`SceneData` to a renderer.

State machine:

    IDLE -> FETCHING_DEM -> FETCHING_TREK -> READY                  (version "1.0")
    IDLE -> FETCHING_DEM -> FETCHING_TREK -> FETCHING_POI -> READY  (version "1.1")

Rules:
- a stage starts only after the previous stage's payload was fetched AND normalized;
- the offset comes out of the DEM stage and is passed explicitly to every placement call;
- any failure raises one `SceneBuildError` naming the stage; the state stays where it
  failed and the renderer is never called;
- `cancel()` cancels the in-flight fetch and discards anything arriving afterwards.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

from trekscene.config.settings import Settings
from trekscene.core.errors import (
    DataIntegrityError,
    MalformedInputError,
    SceneBuildCancelled,
    SceneBuildError,
    TransportError,
)
from trekscene.domain.models import SceneData
from trekscene.ingestion.dem import parse_dem
from trekscene.ingestion.poi import parse_pois
from trekscene.ingestion.trek import parse_trek
from trekscene.render.base import SceneRenderer

logger = logging.getLogger(__name__)

FetchJson = Callable[[str], Awaitable[Any]]


class PipelineState(str, Enum):
    IDLE = "idle"
    FETCHING_DEM = "fetching_dem"
    FETCHING_TREK = "fetching_trek"
    FETCHING_POI = "fetching_poi"
    READY = "ready"


@dataclass(frozen=True)
class Stage:
    """One fetch + normalize step."""

    name: str
    state: PipelineState
    parse: Callable[[Any], Any]


DEM_STAGE = Stage("dem", PipelineState.FETCHING_DEM, parse_dem)
TREK_STAGE = Stage("trek", PipelineState.FETCHING_TREK, parse_trek)
POI_STAGE = Stage("poi", PipelineState.FETCHING_POI, parse_pois)

# Scene versions as published by the data sources.
VERSION_INCLUDES_POIS: dict[str, bool] = {"1.0": False, "1.1": True}


def build_stages(include_pois: bool) -> tuple[Stage, ...]:
    """Return the ordered stage list of a variant."""
    if include_pois:
        return (DEM_STAGE, TREK_STAGE, POI_STAGE)
    return (DEM_STAGE, TREK_STAGE)


def variant_for_version(version: str) -> bool:
    """Map a scene version to `include_pois`."""
    try:
        return VERSION_INCLUDES_POIS[str(version)]
    except KeyError:
        known = ", ".join(sorted(VERSION_INCLUDES_POIS))
        raise ValueError(f"Unknown scene version '{version}'; expected one of: {known}") from None


class SceneBuildPipeline:
    """Builds one scene; create a new pipeline per build."""

    def __init__(
        self,
        fetch_json: FetchJson,
        renderer: SceneRenderer,
        *,
        dem_url: str,
        profile_url: str,
        poi_url: str | None = None,
        include_pois: bool = False,
        demo: bool = False,
    ):
        if include_pois and not poi_url:
            raise ValueError("poi_url is required when include_pois is enabled")
        self._fetch_json = fetch_json
        self._renderer = renderer
        self._urls = {"dem": dem_url, "trek": profile_url, "poi": poi_url}
        self._stages = build_stages(include_pois)
        self._demo = demo

        self.state = PipelineState.IDLE
        self.error: SceneBuildError | None = None
        self.scene: SceneData | None = None

        self._results: dict[str, Any] = {}
        self._inflight: asyncio.Future[Any] | None = None
        self._started = False
        self._cancelled = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        fetch_json: FetchJson,
        renderer: SceneRenderer,
        *,
        version: str | None = None,
        demo: bool | None = None,
    ) -> "SceneBuildPipeline":
        """Wire URLs, variant and demo flag from the configuration record."""
        include_pois = variant_for_version(version or settings.scene.version)
        return cls(
            fetch_json,
            renderer,
            dem_url=settings.sources.dem_url,
            profile_url=settings.sources.profile_url,
            poi_url=settings.sources.poi_url,
            include_pois=include_pois,
            demo=settings.scene.demo if demo is None else demo,
        )

    @property
    def stages(self) -> tuple[Stage, ...]:
        return self._stages

    @property
    def include_pois(self) -> bool:
        return POI_STAGE in self._stages

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Tear the build down; no-op once READY or failed."""
        if self.state is PipelineState.READY or self.error is not None:
            return
        self._cancelled = True
        logger.info("Scene build cancelled in state=%s", self.state.value)
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()

    async def run(self) -> SceneData:
        """Run every stage, hand off to the renderer and return the scene.

        Raises:
            SceneBuildError: On the first fetch or normalization failure.
            SceneBuildCancelled: If `cancel()` was called before READY.
        """
        if self._started:
            raise RuntimeError("SceneBuildPipeline.run() can only be called once")
        self._started = True

        started = time.monotonic()
        for stage in self._stages:
            self._check_cancelled(self.state.value)
            self._enter(stage.state)
            raw = await self._fetch(stage)
            self._results[stage.name] = self._normalize(stage, raw)

        self._check_cancelled(self.state.value)
        dem, offset = self._results["dem"]
        scene = SceneData(
            dem=dem,
            offset=offset,
            trek=self._results["trek"],
            pois=self._results.get("poi", []),
        )
        self.scene = scene
        self._enter(PipelineState.READY)
        logger.info(
            "Scene data ready in %.0fms (trek_points=%s pois=%s)",
            (time.monotonic() - started) * 1000,
            len(scene.trek),
            len(scene.pois),
        )
        self._hand_off(scene)
        return scene

    def _enter(self, state: PipelineState) -> None:
        logger.info("Scene build: %s -> %s", self.state.value, state.value)
        self.state = state

    def _fail(self, error: SceneBuildError) -> SceneBuildError:
        self.error = error
        if isinstance(error, SceneBuildCancelled):
            logger.info("Scene build stopped: %s", error)
        else:
            logger.warning("%s", error)
        return error

    def _check_cancelled(self, where: str) -> None:
        if self._cancelled:
            raise self._fail(SceneBuildCancelled(where))

    async def _fetch(self, stage: Stage) -> Any:
        url = self._urls[stage.name]
        started = time.monotonic()
        try:
            task = asyncio.ensure_future(self._fetch_json(url))
            self._inflight = task
            raw = await task
        except asyncio.CancelledError:
            if not self._cancelled:
                raise
            raise self._fail(SceneBuildCancelled(stage.name)) from None
        except TransportError as exc:
            raise self._fail(SceneBuildError(stage.name, exc)) from exc
        except Exception as exc:
            err = TransportError(url, f"{type(exc).__name__}: {exc}")
            raise self._fail(SceneBuildError(stage.name, err)) from exc
        finally:
            self._inflight = None

        # A result that lands after cancel() is dropped.
        self._check_cancelled(stage.name)
        logger.debug("Fetched %s in %.0fms: %s", stage.name, (time.monotonic() - started) * 1000, url)
        return raw

    def _normalize(self, stage: Stage, raw: Any) -> Any:
        try:
            return stage.parse(raw)
        except (MalformedInputError, DataIntegrityError) as exc:
            raise self._fail(SceneBuildError(stage.name, exc)) from exc

    def _hand_off(self, scene: SceneData) -> None:
        renderer = self._renderer
        renderer.build_terrain(scene.dem, scene.offset)
        renderer.build_trek(scene.trek, scene.offset, animate=not self._demo)
        if self.include_pois:
            for poi in scene.pois:
                renderer.build_poi_marker(poi, scene.offset)
        renderer.on_all_assets_ready(self._on_assets_ready)

    def _on_assets_ready(self) -> None:
        # Draping samples the textured terrain geometry, so textures go first.
        logger.info("Scene assets loaded; applying terrain textures, then draping trek")
        self._renderer.apply_terrain_textures()
        self._renderer.drape_trek()


async def build_scene(
    settings: Settings,
    fetch_json: FetchJson,
    renderer: SceneRenderer,
    *,
    version: str | None = None,
    demo: bool | None = None,
) -> SceneData:
    """Convenience wrapper: build a pipeline from settings and run it."""
    pipeline = SceneBuildPipeline.from_settings(settings, fetch_json, renderer, version=version, demo=demo)
    return await pipeline.run()
