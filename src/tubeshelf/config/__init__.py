"""Configuration management for TubeShelf."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import ShelfConfig
from .resolver import (
    ENV_PREFIX,
    assign_path,
    env_to_overrides,
    flatten_for_env,
    resolve_with_precedence,
)

DEFAULT_CONFIG_PATH = Path("~/.tubeshelf/config.yaml")
STAMP_PREFIX = "# Last updated: "
_HEADER = (
    "# TubeShelf configuration file\n"
    "# Edit with `tubeshelf config edit` or `tubeshelf config set KEY --value VALUE`.\n"
)


class ConfigManager:
    """Read, validate and write ``~/.tubeshelf/config.yaml``.

    The file only stores overrides; :meth:`load` layers them over the model
    defaults, then ``TUBESHELF__`` environment variables, then CLI values.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> ShelfConfig:
        """Return the effective configuration.

        Args:
            cli_overrides: Dotted-key overrides supplied on the command line.
            include_env: Whether ``TUBESHELF__`` variables are applied.
            ensure_file: Whether to create the file with defaults when missing.
            env_overrides: Environment mapping to use instead of ``os.environ``.

        Returns:
            ShelfConfig: Validated configuration.

        Raises:
            ConfigError: If the file or any override is invalid.
        """
        if ensure_file:
            self.ensure_exists()
        env_data = None
        if include_env:
            env_data = env_to_overrides(self._env if env_overrides is None else env_overrides)
        return resolve_with_precedence(
            defaults=ShelfConfig(),
            file_overrides=self.load_file_overrides(),
            env_overrides=env_data or None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the mapping stored on disk (empty when the file is missing).

        Raises:
            ConfigError: If the file is not YAML or not a top-level mapping.
        """
        return _parse_mapping(self.read_text(), context="Configuration file")

    def ensure_exists(self) -> Path:
        """Write the defaults when no configuration file exists yet."""
        if not self._config_path.exists():
            self.save(ShelfConfig())
        return self._config_path

    def save(self, config: ShelfConfig | Mapping[str, Any]) -> None:
        data = config.model_dump(mode="python") if isinstance(config, ShelfConfig) else config
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        body = yaml.safe_dump(dict(data), sort_keys=False)
        self._config_path.write_text(f"{_HEADER}{STAMP_PREFIX}{stamp}\n{body}", encoding="utf-8")

    def set_value(self, key: str, raw_value: str) -> str:
        """Validate and persist a single dotted-key assignment.

        Args:
            key: Dotted path such as ``share.scope``.
            raw_value: Value text, parsed as a YAML literal.

        Returns:
            str: Normalized dotted key that was written.

        Raises:
            ConfigError: If the key is empty, the value does not parse, or the
                resulting configuration fails validation.
        """
        segments = [segment.strip() for segment in key.split(".") if segment.strip()]
        if not segments:
            raise ConfigError("KEY must specify a dotted path such as 'share.scope'.")
        try:
            value = yaml.safe_load(raw_value)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Unable to parse value: {exc}") from exc

        data = self.load_file_overrides()
        assign_path(data, segments, value, source_name="cli")
        resolve_with_precedence(defaults=ShelfConfig(), file_overrides=data)
        self.save(data)
        return ".".join(segments)

    def replace_text(self, text: str) -> None:
        """Validate edited file content and persist it.

        Raises:
            ConfigError: If the text is not a valid configuration mapping.
        """
        data = _parse_mapping(text, context="Edited configuration")
        resolve_with_precedence(defaults=ShelfConfig(), file_overrides=data)
        self.save(data)

    def read_text(self) -> str:
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    def content_lines(self) -> list[str]:
        """Return the file lines without the ``Last updated`` stamp."""
        return [line for line in self.read_text().splitlines() if not line.startswith(STAMP_PREFIX)]


def _parse_mapping(text: str, *, context: str) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"{context} is not valid YAML: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"{context} must contain a mapping at the top level.")
    return raw


__all__ = [
    "ConfigError",
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
    "STAMP_PREFIX",
    "ShelfConfig",
    "assign_path",
    "flatten_for_env",
    "resolve_with_precedence",
]
