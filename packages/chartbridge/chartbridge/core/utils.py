"""chartbridge: Core Utilities
---------------------------
Shared helpers for configuration and spec-file handling.

Public API
----------
``load_yaml_data`` : Parse a YAML (or JSON) file into plain Python data
``load_yaml_file`` : Same, but the document must be a mapping
``deep_merge_dicts`` : Recursive dictionary merge, override wins
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .errors import ChartConfigError

__all__ = ["load_yaml_data", "load_yaml_file", "deep_merge_dicts"]


def load_yaml_data(path: Path) -> Any:
    """Load a YAML document; JSON files parse too since JSON is YAML.

    Raises
    ------
    ChartConfigError
        - [500] File does not exist.
        - [501] File cannot be read or parsed.
    """
    if not path.exists():
        raise ChartConfigError(f"[500] File not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ChartConfigError(f"[501] Failed to parse YAML file {path}: {e}") from e


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file whose top level is a mapping (empty file -> {}).

    Raises
    ------
    ChartConfigError
        - [500]/[501] as ``load_yaml_data``.
        - [502] Top level is not a mapping.
    """
    data = load_yaml_data(path)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ChartConfigError(
            f"[502] Expected a mapping at the top of {path}, got {type(data).__name__}"
        )
    return data


def deep_merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override values taking precedence.

    Parameters
    ----------
    base : Dict[str, Any]
        Base dictionary
    override : Dict[str, Any]
        Override dictionary

    Returns
    -------
    Dict[str, Any]
        Merged dictionary

    """
    result = dict(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge_dicts(result[key], value)
        else:
            result[key] = value
    return result
