# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Layered JSON configuration loading with environment overrides.

Merge order, lowest to highest priority:
    1. Defaults passed to `load()`
    2. The default config file (config/default.json)
    3. Additional CONFIG_PATH_* files, sorted by variable name
    4. The CONFIG_PATH_<ENV> file for the active CONFIG_ENV
    5. The path passed to `load()`
    6. The LOCAL_CONFIG_PATH file
    7. Environment variables overriding individual leaf keys
"""

import copy
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import orjson

from perfkit.common.config.config_defaults import ConfigLoaderDefaults

logger = logging.getLogger(__name__)

__all__ = [
    "ConfigLoader",
    "load_json_config",
    "merge_configs",
    "resolve_config_value",
]

_MISSING = object()


def load_json_config(path: str | Path) -> dict[str, Any]:
    """Load a JSON object from a file.

    Unreadable or malformed files are logged and treated as empty.
    """
    try:
        data = orjson.loads(Path(path).read_bytes())
    except (OSError, orjson.JSONDecodeError) as e:
        logger.warning(f"Failed to load config from {path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Config file {path} does not contain a JSON object")
        return {}
    return data


def merge_configs(target: dict[str, Any], *sources: Mapping[str, Any] | None) -> dict[str, Any]:
    """Deep-merge sources into target, later sources winning. Mutates target."""
    for source in sources:
        if not source:
            continue
        for key, value in source.items():
            if isinstance(value, Mapping):
                existing = target.get(key)
                if not isinstance(existing, dict):
                    existing = {}
                    target[key] = existing
                merge_configs(existing, value)
            else:
                target[key] = copy.deepcopy(value)
    return target


def _coerce_env_value(raw: str) -> Any:
    if raw.startswith(("{", "[")):
        try:
            return orjson.loads(raw)
        except orjson.JSONDecodeError:
            return raw
    if raw == "true":
        return True
    if raw == "false":
        return False
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        return raw


def resolve_config_value(
    value: Any, env_key: str, environ: Mapping[str, str] | None = None
) -> Any:
    """Return the environment override for env_key, or value when none is set.

    Mapping values are resolved key by key, extending env_key with
    `_<KEY>` for each nested key.
    """
    environ = os.environ if environ is None else environ
    if isinstance(value, Mapping):
        return {
            key: resolve_config_value(sub_value, f"{env_key}_{key.upper()}", environ)
            for key, sub_value in value.items()
        }
    raw = environ.get(env_key)
    if raw:
        return _coerce_env_value(raw)
    return value


class ConfigLoader:
    """Loads and merges test configuration from JSON files and the environment."""

    def __init__(
        self,
        default_config_path: str | Path = ConfigLoaderDefaults.DEFAULT_CONFIG_PATH,
        env_prefix: str = "",
        config_env_key: str = ConfigLoaderDefaults.CONFIG_ENV_KEY,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.default_config_path = Path(default_config_path)
        self.env_prefix = env_prefix
        self.config_env_key = config_env_key
        self._environ = os.environ if environ is None else environ
        self.environment = self._environ.get(config_env_key, "default")
        self.config: dict[str, Any] = {}

    def load(
        self,
        config_path: str | Path | None = None,
        defaults: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Load, merge and environment-resolve the configuration.

        Args:
            config_path: Optional explicit config file.
            defaults: Optional in-code defaults with the lowest priority.

        Returns:
            The merged configuration, also kept on `self.config`.
        """
        prefix = ConfigLoaderDefaults.CONFIG_PATH_PREFIX
        env_config_key = f"{prefix}{self.environment.upper()}"

        default_file = (
            load_json_config(self.default_config_path)
            if self.default_config_path.exists()
            else {}
        )

        additional = [
            load_json_config(path)
            for key, path in sorted(self._environ.items())
            if key.startswith(prefix) and key != env_config_key and path
        ]

        env_config_path = self._environ.get(env_config_key)
        env_config = load_json_config(env_config_path) if env_config_path else {}

        user_config = load_json_config(config_path) if config_path else {}

        local_path = self._environ.get(ConfigLoaderDefaults.LOCAL_CONFIG_KEY)
        local_config = load_json_config(local_path) if local_path else {}

        self.config = merge_configs(
            {},
            defaults,
            default_file,
            *additional,
            env_config,
            user_config,
            local_config,
        )
        self._resolve_env_overrides()
        return self.config

    def get(self, path: str, default: Any = None) -> Any:
        """Look up a dot-separated path, returning default when any part is missing."""
        value = _get_by_path(self.config, path)
        return default if value is _MISSING else value

    def _resolve_env_overrides(self) -> None:
        for key in _leaf_paths(self.config):
            env_key = f"{self.env_prefix}{key.upper().replace('.', '_')}"
            value = _get_by_path(self.config, key)
            resolved = resolve_config_value(value, env_key, self._environ)
            if resolved != value:
                logger.debug(f"Config key '{key}' overridden by ${env_key}")
                _set_by_path(self.config, key, resolved)


def _leaf_paths(data: Mapping[str, Any], current: str = "") -> list[str]:
    paths = []
    for key, value in data.items():
        path = f"{current}.{key}" if current else key
        if isinstance(value, Mapping):
            paths.extend(_leaf_paths(value, path))
        else:
            paths.append(path)
    return paths


def _get_by_path(data: Mapping[str, Any], path: str) -> Any:
    current: Any = data
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _set_by_path(data: dict[str, Any], path: str, value: Any) -> None:
    *parents, leaf = path.split(".")
    current = data
    for part in parents:
        current = current.setdefault(part, {})
    current[leaf] = value
