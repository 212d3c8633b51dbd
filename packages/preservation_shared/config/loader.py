"""Layered configuration loading for preservation workers.

Sources, strongest first:

1. ``cli_params`` passed by the caller
2. ``PRESCAT_*`` environment variables, ``__`` separating nested keys
   (``PRESCAT_ZIP_ENDPOINTS__AWS_S3_WEST_2__REGION=us-west-2``)
3. the YAML file named by ``PRESCAT_CONFIG`` or ``~/.config/prescat/prescat.yaml``
4. ``BUILTIN_DEFAULTS``

Environment values are parsed as YAML scalars, so ``true``, ``42``, ``null``
and ``["a", "b"]`` arrive typed; anything unparsable stays a string.
"""

from __future__ import annotations

import copy
import os
from functools import reduce
from pathlib import Path
from typing import Any, Mapping

import yaml

from .defaults import BUILTIN_DEFAULTS
from .models import DEFAULT_CONFIG_PATH, PreservationSettings

ENV_PREFIX = "PRESCAT_"
CONFIG_PATH_VAR = f"{ENV_PREFIX}CONFIG"
_NULLS = frozenset({"null", "none", "~"})


def load_settings(
    *,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
) -> PreservationSettings:
    """Return validated root settings from every configuration layer."""
    return PreservationSettings.model_validate(
        load_config(cli_params=cli_params, environ=environ, config_path=config_path)
    )


def load_config(
    *,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
    defaults: Mapping[str, Any] | None = None,
    env_prefix: str = ENV_PREFIX,
) -> dict[str, Any]:
    """Return the merged raw configuration mapping."""
    env = os.environ if environ is None else environ
    layers = (
        BUILTIN_DEFAULTS if defaults is None else defaults,
        _read_yaml(_config_file(config_path, env)),
        _env_tree(env, env_prefix),
        cli_params or {},
    )
    return reduce(deep_merge, layers, {})


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``base`` overlaid with ``override``; nested mappings merge key by key."""
    merged = {str(key): copy.deepcopy(value) for key, value in base.items()}
    for key, value in override.items():
        current = merged.get(str(key))
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[str(key)] = deep_merge(current, value)
        else:
            merged[str(key)] = copy.deepcopy(value)
    return merged


def _config_file(config_path: str | Path | None, env: Mapping[str, str]) -> Path:
    if config_path is not None:
        return Path(config_path)
    override = env.get(CONFIG_PATH_VAR, "").strip()
    return Path(override).expanduser() if override else DEFAULT_CONFIG_PATH


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"config file must contain a top-level mapping: {path}")
    return parsed


def _env_tree(env: Mapping[str, str], prefix: str) -> dict[str, Any]:
    tree: dict[str, Any] = {}
    for name, raw in env.items():
        if not name.startswith(prefix) or name == CONFIG_PATH_VAR:
            continue
        path = [part.lower() for part in name[len(prefix) :].split("__") if part]
        if not path:
            continue
        node = tree
        for part in path[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[path[-1]] = _parse_scalar(raw)
    return tree


def _parse_scalar(raw: str) -> Any:
    text = raw.strip()
    if text.lower() in _NULLS:
        return None
    if not text:
        return raw
    try:
        value = yaml.safe_load(text)
    except yaml.YAMLError:
        return raw
    # ``a: b`` and ``#x`` stay strings; only ``{...}`` flow mappings become dicts.
    if value is None or (isinstance(value, dict) and not text.startswith("{")):
        return raw
    return value
