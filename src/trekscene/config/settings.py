# src/trekscene/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/trekscene/config/defaults.yaml`, then optionally overridden by:
- an external YAML file via `TREKSCENE_CONFIG_PATH`
- environment variables (e.g., `TREKSCENE_DEM_URL`, `TREKSCENE_DEMO`)

The resulting `Settings` object is the read-only configuration record of a scene build:
source URLs, the scene version/demo flag, and the render knobs handed to the renderer.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal
from trekscene.core.env import load_dotenv_if_present

import yaml
from pydantic import BaseModel, Field, field_validator


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `trekscene.config`."""
    text = resources.files("trekscene.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "TrekScene"
    http_timeout_seconds: float = 15
    log_level: str = "INFO"


class RetrySettings(BaseModel):
    max_attempts: int = Field(2, ge=0)
    base_delay_seconds: float = Field(0.5, ge=0)
    max_delay_seconds: float = Field(8.0, ge=0)


class HttpSettings(BaseModel):
    user_agent: str = "trekscene/0.1.0 (+https://local)"
    retry: RetrySettings = Field(default_factory=RetrySettings)


class SourcesSettings(BaseModel):
    dem_url: str
    profile_url: str
    poi_url: str | None = None


class SceneSettings(BaseModel):
    version: Literal["1.0", "1.1"] = "1.1"
    demo: bool = False

    @field_validator("version", mode="before")
    @classmethod
    def _version_as_text(cls, value: Any) -> Any:
        # Unquoted YAML turns `1.0` into a float.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(float(value))
        return value


class CameraSettings(BaseModel):
    offset_m: float = 200
    speed_trek: float = Field(1.8, ge=0, le=2)
    speed_flying: float = Field(20, ge=0)


class GeometrySettings(BaseModel):
    min_thickness_m: float = 200
    trek_offset_m: float = 2
    trek_width_m: float = 3
    trek_color: tuple[float, float, float] = (0.1, 0.6, 0.2)


class TextureSettings(BaseModel):
    tile_url: str | None = None
    side_url: str | None = None
    fake_url: str | None = None
    tile_zoom: int = Field(17, ge=0, le=22)


class RenderSettings(BaseModel):
    camera: CameraSettings = Field(default_factory=CameraSettings)
    geometry: GeometrySettings = Field(default_factory=GeometrySettings)
    textures: TextureSettings = Field(default_factory=TextureSettings)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    sources: SourcesSettings
    scene: SceneSettings = Field(default_factory=SceneSettings)
    render: RenderSettings = Field(default_factory=RenderSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("TREKSCENE_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    for env_name, key in (
        ("TREKSCENE_DEM_URL", "dem_url"),
        ("TREKSCENE_PROFILE_URL", "profile_url"),
        ("TREKSCENE_POI_URL", "poi_url"),
    ):
        value = os.getenv(env_name)
        if value:
            data.setdefault("sources", {})[key] = value

    version = os.getenv("TREKSCENE_SCENE_VERSION")
    if version:
        data.setdefault("scene", {})["version"] = version

    demo = os.getenv("TREKSCENE_DEMO")
    if demo:
        data.setdefault("scene", {})["demo"] = demo.strip().lower() in {"1", "true", "yes", "y"}

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("TREKSCENE_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
