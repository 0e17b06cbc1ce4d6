from __future__ import annotations

from typing import Any, Iterable, Mapping

import yaml

from trekscene.config.settings import Settings

"""
Per-build settings overrides (safe subset).

A host page, the API or the CLI can pass settings for one scene build (the old viewer
took them as a constructor argument and merged them into its global settings). Here:
- the override payload is checked against a whitelist,
- the safe subset is deep-merged onto the current settings,
- the result is re-validated with Pydantic.

Source URLs and HTTP settings are never overridable: a caller must not be able to point
the server at arbitrary hosts.
"""

# True allows the whole subtree; a nested dict allows only the listed keys.
ALLOWED_SETTINGS_OVERRIDES_TREE: dict[str, Any] = {
    "scene": {"version": True, "demo": True},
    "render": True,
}


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    # Returns a new dict; `base` may come from a cached Settings dump.
    merged: dict[str, Any] = dict(base)
    for key, override_value in override.items():
        if isinstance(override_value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _deep_merge(dict(merged[key]), override_value)
            continue
        merged[key] = override_value
    return merged


def _filter_overrides(
    overrides: Mapping[str, Any],
    *,
    allowed_tree: Mapping[str, Any],
    path: tuple[str, ...] = (),
) -> dict[str, Any]:
    filtered: dict[str, Any] = {}
    for key, value in overrides.items():
        if key not in allowed_tree:
            dotted_path = ".".join((*path, key))
            raise ValueError(f"settings_overrides contains a disallowed key: '{dotted_path}'")

        allowed = allowed_tree[key]
        if allowed is True:
            filtered[key] = value
            continue

        if not isinstance(value, Mapping):
            dotted_path = ".".join((*path, key))
            raise ValueError(f"settings_overrides key '{dotted_path}' must be a mapping")

        filtered[key] = _filter_overrides(value, allowed_tree=allowed, path=(*path, key))
    return filtered


def parse_override_pairs(pairs: Iterable[str]) -> dict[str, Any]:
    """Turn `a.b.c=VALUE` strings (CLI style) into a nested override mapping.

    Values are read as YAML scalars, so `true`, `200` and `[0.8, 0, 0.2]` keep their types.
    """
    out: dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValueError(f"Invalid override '{pair}', expected KEY=VALUE")
        dotted, raw_value = pair.split("=", 1)
        keys = [k.strip() for k in dotted.split(".")]
        if not all(keys):
            raise ValueError(f"Invalid override key '{dotted}'")
        node = out
        for key in keys[:-1]:
            child = node.setdefault(key, {})
            if not isinstance(child, dict):
                raise ValueError(f"Override '{dotted}' conflicts with a previous value")
            node = child
        node[keys[-1]] = yaml.safe_load(raw_value)
    return out


def apply_settings_overrides(settings: Settings, overrides: Mapping[str, Any] | None) -> Settings:
    """Return `settings` with the whitelisted `overrides` applied (new object)."""
    if not overrides:
        return settings

    safe_overrides = _filter_overrides(overrides, allowed_tree=ALLOWED_SETTINGS_OVERRIDES_TREE)
    merged_payload = _deep_merge(settings.model_dump(mode="python"), safe_overrides)
    return Settings.model_validate(merged_payload)
