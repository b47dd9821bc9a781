"""Declarative config type descriptors read from YAML.

Example descriptor file:

    name: myapp.ServerConfig
    sources:
      - file:${HOME}/.myapp/server.properties
      - classpath:myapp/ServerConfig.properties
    load_policy: merge
    hot_reload:
      interval: 500
      unit: milliseconds
      enabled: true
      mode: sync
    defaults:
      port: 80
    logging:
      level: DEBUG
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from propstore.descriptor import ConfigTypeDescriptor, HotReload, HotReloadMode, TimeUnit
from propstore.errors import DescriptorError
from propstore.load_type import LoadType
from propstore.logging import LoggingConfig, get_logger

_log = get_logger("declarative")

_KNOWN_KEYS = {"name", "sources", "load_policy", "hot_reload", "defaults", "logging"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML mapping from ``path``.

    Raises:
        FileNotFoundError: If the file does not exist.
        DescriptorError: If the YAML is invalid or not a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Descriptor file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise DescriptorError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DescriptorError(f"Top-level YAML must be a mapping, got: {type(data).__name__}")
    return data


def _hot_reload_from_dict(data: Any) -> HotReload | None:
    if data is None:
        return None
    if isinstance(data, (int, float)) and not isinstance(data, bool):
        return HotReload(value=data)
    if not isinstance(data, dict):
        raise DescriptorError(f"hot_reload must be a mapping or a number, got: {data!r}")

    interval = data.get("interval", HotReload.value)
    if isinstance(interval, bool) or not isinstance(interval, (int, float)):
        raise DescriptorError(f"hot_reload.interval must be a number, got: {interval!r}")

    mode_name = str(data.get("mode", HotReloadMode.SYNC.value)).lower()
    try:
        mode = HotReloadMode(mode_name)
    except ValueError:
        raise DescriptorError(f"Unknown hot reload mode: {mode_name!r}") from None

    return HotReload(
        value=interval,
        unit=TimeUnit.parse(str(data.get("unit", TimeUnit.SECONDS.value))),
        enabled=bool(data.get("enabled", True)),
        mode=mode,
    )


def descriptor_from_dict(data: dict[str, Any]) -> ConfigTypeDescriptor:
    """Convert a parsed descriptor mapping to a ConfigTypeDescriptor."""
    name = data.get("name")
    if not isinstance(name, str) or not name:
        raise DescriptorError("Descriptor needs a non-empty 'name'")

    sources = data.get("sources") or []
    if isinstance(sources, str):
        sources = [sources]
    if not isinstance(sources, list) or not all(isinstance(s, str) for s in sources):
        raise DescriptorError("'sources' must be a list of strings")

    defaults = data.get("defaults") or {}
    if not isinstance(defaults, dict):
        raise DescriptorError("'defaults' must be a mapping")

    load_policy = data.get("load_policy")
    load_type = LoadType.parse(str(load_policy)) if load_policy else LoadType.FIRST

    unknown = set(data) - _KNOWN_KEYS
    if unknown:
        _log.warning("Ignoring unknown descriptor keys: %s", sorted(unknown))

    return ConfigTypeDescriptor(
        name=name,
        sources=tuple(sources),
        load_type=load_type,
        hot_reload=_hot_reload_from_dict(data.get("hot_reload")),
        defaults={k: v for k, v in defaults.items() if v is not None},
    )


def load_logging_config(data: dict[str, Any]) -> LoggingConfig:
    """Read the optional ``logging`` section of a descriptor mapping."""
    log_data = data.get("logging") or {}
    if not isinstance(log_data, dict):
        raise DescriptorError("'logging' must be a mapping")
    return LoggingConfig(
        level=log_data.get("level"),
        verbose=log_data.get("verbose"),
        file=log_data.get("file"),
    )


def load_descriptor(path: str | Path) -> ConfigTypeDescriptor:
    """Read a ConfigTypeDescriptor from a YAML file."""
    path = Path(path)
    descriptor = descriptor_from_dict(load_yaml_file(path))
    _log.debug("Loaded descriptor %s from %s", descriptor.name, path)
    return descriptor
