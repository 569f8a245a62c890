"""Locate and read the knowbase TOML config."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict

from knowbase.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV = "KNOWBASE_CONFIG"
DEFAULT_CONFIG_PATH = Path("config.toml")


def resolve_config_path(path: str | Path | None = None) -> tuple[Path, bool]:
    """
    Pick the config file: ``path``, then ``$KNOWBASE_CONFIG``, then ./config.toml.

    The flag is ``True`` when the file was named explicitly and so must exist.
    """
    if path is not None:
        return Path(path), True
    env_path = os.getenv(CONFIG_ENV)
    if env_path:
        return Path(env_path), True
    return DEFAULT_CONFIG_PATH, False


def load_raw_config(path: str | Path | None = None) -> Dict[str, Any]:
    """
    Read the TOML file chosen by :func:`resolve_config_path`.

    A missing ./config.toml yields ``{}`` so settings come from the
    environment. A missing explicit file, bad TOML, or a ``knowbase`` key that
    is not a table raises :class:`ConfigError`.
    """
    target, required = resolve_config_path(path)
    if not target.is_file():
        if required:
            raise ConfigError(f"config file not found: {target}")
        return {}

    try:
        with target.open("rb") as handle:
            raw = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"invalid config file {target}: {exc}") from exc

    if not isinstance(raw.get("knowbase", {}), dict):
        raise ConfigError(f"invalid config file {target}: [knowbase] must be a table")
    logger.debug("Loaded config from %s", target)
    return raw


__all__ = ["load_raw_config", "resolve_config_path", "CONFIG_ENV", "DEFAULT_CONFIG_PATH"]
