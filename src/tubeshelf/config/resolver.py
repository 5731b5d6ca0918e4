"""Configuration resolution helpers."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Mapping

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import ShelfConfig

ENV_PREFIX = "TUBESHELF__"


def resolve_with_precedence(
    *,
    defaults: ShelfConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> ShelfConfig:
    """Layer configuration sources over the defaults and validate the result.

    Later sources win: file, then environment, then CLI. Keys may be nested
    mappings or dotted paths such as ``share.scope``.

    Args:
        defaults: Baseline configuration.
        file_overrides: Values read from the YAML file.
        env_overrides: Values derived from ``TUBESHELF__`` variables.
        cli_overrides: Values passed on the command line.

    Returns:
        ShelfConfig: Validated configuration.

    Raises:
        ConfigError: If an override is malformed or the merged values are invalid.
    """
    merged = defaults.model_dump(mode="python")
    for label, source in (
        ("file", file_overrides),
        ("environment", env_overrides),
        ("cli", cli_overrides),
    ):
        if source is not None:
            merged = deep_merge(merged, expand_dotted(source, source_name=label))

    try:
        return ShelfConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def env_to_overrides(env: Mapping[str, str]) -> Dict[str, Any]:
    """Translate ``TUBESHELF__SECTION__KEY`` variables into nested overrides.

    Values are parsed as YAML literals, so ``"true"`` becomes ``True`` and
    ``"5"`` becomes ``5``.
    """
    overrides: Dict[str, Any] = {}
    for name, raw_value in env.items():
        if not name.startswith(ENV_PREFIX):
            continue
        path = [segment.lower() for segment in name[len(ENV_PREFIX) :].split("__") if segment]
        if not path:
            continue
        try:
            value = yaml.safe_load(raw_value)
        except yaml.YAMLError:
            value = raw_value
        assign_path(overrides, path, value, source_name="environment")
    return overrides


def flatten_for_env(config: ShelfConfig) -> Dict[str, str]:
    """Render the config as ``TUBESHELF__SECTION__KEY`` variable mappings."""
    flat: Dict[str, str] = {}
    for section, values in config.model_dump(mode="python").items():
        for key, value in values.items():
            rendered = "null" if value is None else str(value)
            flat[f"{ENV_PREFIX}{section.upper()}__{key.upper()}"] = rendered
    return flat


def expand_dotted(source: Mapping[str, Any], *, source_name: str) -> Dict[str, Any]:
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{source_name.capitalize()} overrides must be a mapping.")
    result: Dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{source_name.capitalize()} override keys must be strings.")
        if isinstance(value, MappingABC):
            value = expand_dotted(value, source_name=source_name)
        assign_path(result, key.split("."), value, source_name=source_name)
    return result


def assign_path(
    target: Dict[str, Any],
    path: list[str],
    value: Any,
    *,
    source_name: str,
) -> None:
    """Set ``value`` at ``path`` inside ``target``, creating sections as needed.

    Raises:
        ConfigError: If a path segment already holds a scalar value.
    """
    node = target
    for segment in path[:-1]:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            raise ConfigError(
                f"{source_name.capitalize()} override for {'.'.join(path)} "
                "conflicts with an existing value."
            )
        node = child
    leaf = path[-1]
    if isinstance(value, dict) and isinstance(node.get(leaf), dict):
        node[leaf] = deep_merge(node[leaf], value)
    else:
        node[leaf] = value


def deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    merged = {key: deepcopy(value) for key, value in base.items()}
    for key, value in overrides.items():
        existing = merged.get(key)
        if isinstance(value, MappingABC) and isinstance(existing, MappingABC):
            merged[key] = deep_merge(existing, value)
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = [
    "ENV_PREFIX",
    "assign_path",
    "deep_merge",
    "env_to_overrides",
    "expand_dotted",
    "flatten_for_env",
    "resolve_with_precedence",
]
