"""Configuration loading utilities.

Loads ``BridgeConfig`` from YAML with an override chain and caches the result.
"""

from __future__ import annotations

import importlib.resources as ilr
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .config import BridgeConfig
from .errors import ChartConfigError, get_logger
from .utils import deep_merge_dicts, load_yaml_file

__all__ = ["CONFIG_ENV_VAR", "load_bridge_config", "reset_config_cache"]

CONFIG_ENV_VAR = "CHARTBRIDGE_CONFIG"

logger = get_logger()

_CONFIG_CACHE: BridgeConfig | None = None


def _merge_optional(config_dict: dict[str, Any], path: Path, label: str) -> dict[str, Any]:
    if not path.exists():
        return config_dict
    try:
        return deep_merge_dicts(config_dict, load_yaml_file(path))
    except ChartConfigError as e:
        logger.warning(f"Failed to load {label} config {path}: {e}")
        return config_dict


def load_bridge_config(
    *, force_reload: bool = False, config_path: str | Path | None = None
) -> BridgeConfig:
    """Load bridge configuration with override chain.

    Search order (later overrides earlier):
    1. Package default (chartbridge.core/bridge.yaml)
    2. ~/.chartbridge/config.yaml (User-specific)
    3. CHARTBRIDGE_CONFIG environment variable
    4. Explicitly provided config_path

    Parameters
    ----------
    force_reload : bool
        If True, ignore cache and reload
    config_path : str or Path, optional
        Path to specific config file to override everything else

    Returns
    -------
    BridgeConfig
        Loaded configuration

    Raises
    ------
    ChartConfigError
        - [503] The explicit config file is missing or unreadable.
        - [504] The merged configuration fails validation.

    """
    global _CONFIG_CACHE

    if _CONFIG_CACHE is not None and not force_reload and config_path is None:
        return _CONFIG_CACHE

    # 1. Package default
    try:
        default_path = Path(str(ilr.files("chartbridge.core").joinpath("bridge.yaml")))
        config_dict = load_yaml_file(default_path)
    except ChartConfigError:
        logger.warning("Could not load default bridge.yaml from package")
        config_dict = {}

    # 2. User config
    config_dict = _merge_optional(
        config_dict, Path.home() / ".chartbridge" / "config.yaml", "user"
    )

    # 3. Environment variable
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        config_dict = _merge_optional(config_dict, Path(env_path), "env")

    # 4. Explicit path
    if config_path:
        path = Path(config_path)
        try:
            config_dict = deep_merge_dicts(config_dict, load_yaml_file(path))
        except ChartConfigError as e:
            raise ChartConfigError(f"[503] Failed to load explicit config {path}: {e}") from e

    try:
        config = BridgeConfig(**config_dict)
    except ValidationError as e:
        raise ChartConfigError(f"[504] Invalid bridge configuration: {e}") from e
    if config_path is None:
        _CONFIG_CACHE = config
    return config


def reset_config_cache() -> None:
    global _CONFIG_CACHE
    _CONFIG_CACHE = None
