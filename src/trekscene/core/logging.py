"""
Logging configuration.

The packaged YAML config (`src/trekscene/config/logging.yaml`) is applied with the level
taken from, in order: the `level` argument (CLI `--log-level`), then settings
(`app.log_level`, itself overridable via `TREKSCENE_LOG_LEVEL`).
"""

from __future__ import annotations

import copy
import logging.config

from trekscene.config.settings import get_logging_config, get_settings


def configure_logging(level: str | None = None) -> None:
    """Configure the Python logging system for the CLI and the API."""
    # The cached dict is shared; dictConfig gets a private copy.
    config = copy.deepcopy(get_logging_config())
    effective = (level or get_settings().app.log_level).upper()

    config.setdefault("root", {})["level"] = effective
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict) and "level" in handler:
            handler["level"] = effective

    logging.config.dictConfig(config)
