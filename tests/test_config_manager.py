"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from tubeshelf.config import (
    ConfigError,
    ConfigManager,
    ShelfConfig,
    assign_path,
    flatten_for_env,
    resolve_with_precedence,
)


def _fresh_manager(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ConfigManager:
    monkeypatch.setenv("HOME", str(tmp_path))
    return ConfigManager(env={})


def test_ensure_exists_creates_default_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    path = manager.ensure_exists()

    assert path == tmp_path / ".tubeshelf" / "config.yaml"
    text = path.read_text(encoding="utf-8")
    assert "TubeShelf configuration file" in text
    assert "Last updated:" in text

    config = manager.load(include_env=False)
    assert isinstance(config, ShelfConfig)
    assert config.share.max_link_length == 6000
    assert config.metadata.on_failure == "skip"


def test_resolve_with_precedence_respects_order(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.save({"share": {"scope": "selected"}, "metadata": {"timeout_seconds": 9}})

    env = {"TUBESHELF__METADATA__TIMEOUT_SECONDS": "3", "TUBESHELF__LOGGING__LEVEL": "DEBUG"}
    cli = {"metadata.timeout_seconds": 1.5}

    config = manager.load(cli_overrides=cli, env_overrides=env)

    assert config.share.scope == "selected"
    assert config.logging.level == "DEBUG"
    # CLI overrides take precedence over environment
    assert config.metadata.timeout_seconds == pytest.approx(1.5)


def test_environment_overrides_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.save({"metadata": {"enabled": True}})

    config = manager.load(env_overrides={"TUBESHELF__METADATA__ENABLED": "false"})

    assert config.metadata.enabled is False


def test_invalid_yaml_raises_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.config_path.write_text("- not-a-mapping", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()


def test_unknown_keys_are_rejected(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.save({"share": {"colour": "blue"}})

    with pytest.raises(ConfigError):
        manager.load()


def test_flatten_for_env_round_trips_defaults() -> None:
    flat = flatten_for_env(ShelfConfig())

    assert flat["TUBESHELF__SHARE__SCOPE"] == "all"
    assert flat["TUBESHELF__SHARE__MAX_LINK_LENGTH"] == "6000"
    assert flat["TUBESHELF__LOGGING__FILE"] == "null"


def test_resolve_with_precedence_invalid_value_raises() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            defaults=ShelfConfig(),
            file_overrides={"share": {"max_link_length": "not-an-int"}},
        )


def test_assign_path_rejects_scalar_conflicts() -> None:
    target = {"share": "flat"}

    with pytest.raises(ConfigError):
        assign_path(target, ["share", "scope"], "all", source_name="cli")


def test_set_value_persists_dotted_key(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    written = manager.set_value(" share . include_thumbnails ", "true")

    assert written == "share.include_thumbnails"
    assert manager.load().share.include_thumbnails is True
    assert all(not line.startswith("# Last updated:") for line in manager.content_lines())


def test_set_value_rejects_invalid_values(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()
    before = manager.content_lines()

    with pytest.raises(ConfigError):
        manager.set_value("metadata.on_failure", "retry")
    with pytest.raises(ConfigError):
        manager.set_value("...", "1")

    assert manager.content_lines() == before


def test_replace_text_validates_before_writing(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    with pytest.raises(ConfigError):
        manager.replace_text("logging: [1, 2]")
    assert not manager.config_path.exists()

    manager.replace_text("logging:\n  level: DEBUG\n")
    assert manager.load().logging.level == "DEBUG"
