"""
TrekScene CLI entrypoint.

Builds a scene from the configured (or given) sources without a browser and prints a
summary, or writes the exported scene document as JSON. The build itself is delegated
to `trekscene.pipeline.scene.SceneBuildPipeline`.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

from trekscene.config.overrides import apply_settings_overrides, parse_override_pairs
from trekscene.config.settings import Settings, get_settings
from trekscene.core.env import resolve_project_path
from trekscene.core.errors import SceneBuildError
from trekscene.core.http import JsonFetcher
from trekscene.core.logging import configure_logging
from trekscene.pipeline.scene import VERSION_INCLUDES_POIS, SceneBuildPipeline
from trekscene.render.export import SceneExportRenderer


def _settings_from_args(args: argparse.Namespace) -> Settings:
    """Apply `--settings-override` pairs and source URL flags onto the loaded settings."""
    settings = apply_settings_overrides(get_settings(), parse_override_pairs(args.settings_override or []))

    sources: dict[str, Any] = {}
    if args.dem_url:
        sources["dem_url"] = args.dem_url
    if args.profile_url:
        sources["profile_url"] = args.profile_url
    if args.poi_url:
        sources["poi_url"] = args.poi_url
    if sources:
        settings = settings.model_copy(update={"sources": settings.sources.model_copy(update=sources)})
    return settings


def _cmd_build(args: argparse.Namespace) -> int:
    """Handle the `build` subcommand."""
    try:
        settings = _settings_from_args(args)
        renderer = SceneExportRenderer(settings.render)
        pipeline = SceneBuildPipeline.from_settings(
            settings,
            JsonFetcher.from_settings(settings),
            renderer,
            version=args.version,
            demo=True if args.demo else None,
        )
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    try:
        scene = asyncio.run(pipeline.run())
    except SceneBuildError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if args.output:
        path = resolve_project_path(args.output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(renderer.to_json(), encoding="utf-8")
        print(f"Scene written to {path}")
        return 0

    if args.json:
        print(renderer.to_json())
        return 0

    dem = scene.dem
    print(f"DEM: {dem.resolution.x}x{dem.resolution.y} samples, altitudes {dem.extent.altitudes.min:.0f}-{dem.extent.altitudes.max:.0f} m")
    print(f"Offset: x={scene.offset.x:.2f} y={scene.offset.y:.2f} z={scene.offset.z:.2f}")
    print(f"Trek: {len(scene.trek)} points")
    if pipeline.include_pois:
        print(f"POIs: {len(scene.pois)}")
    print("Steps: " + " -> ".join(renderer.steps))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the TrekScene CLI."""
    parser = argparse.ArgumentParser(prog="trekscene")
    parser.add_argument("--log-level", type=str, default=None, help="Overrides app.log_level (e.g. DEBUG)")
    sub = parser.add_subparsers(dest="command", required=True)

    b = sub.add_parser("build", help="Fetch DEM/trek/POI sources and build the scene data.")
    b.add_argument(
        "--version",
        choices=sorted(VERSION_INCLUDES_POIS),
        default=None,
        help="Scene version: 1.0 = terrain + trek, 1.1 = terrain + trek + POIs (default from config)",
    )
    b.add_argument("--dem-url", type=str, default=None)
    b.add_argument("--profile-url", type=str, default=None)
    b.add_argument("--poi-url", type=str, default=None)
    b.add_argument("--demo", action="store_true", help="Demo mode: no automatic camera fly-through")
    b.add_argument(
        "--settings-override",
        action="append",
        default=[],
        help="Repeatable. KEY=VALUE with a dotted key, e.g. render.geometry.trek_width_m=5",
    )
    b.add_argument("--output", type=str, default=None, help="Write the exported scene JSON to this path")
    b.add_argument("--json", action="store_true", help="Print the exported scene JSON")
    b.set_defaults(func=_cmd_build)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m trekscene.cli`."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
