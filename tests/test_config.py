"""Configuration loading tests."""

from pathlib import Path

import pytest

from pagetree.config import Config, ConfigError, _load_config, load_settings


def test_defaults_without_config_file(workspace):
    """Missing config.ini yields schema defaults."""
    settings = load_settings()

    assert settings.workspace_path == workspace
    assert settings.cache.ttl_short_seconds == 60
    assert settings.cache.ttl_medium_seconds == 300
    assert settings.cache.ttl_long_seconds == 900
    assert settings.mermaid.theme == "default"
    assert settings.mermaid.layout_direction == "TD"
    assert settings.assets_path == workspace / "design-assets"


def test_config_file_overrides_defaults(workspace):
    (workspace / "config.ini").write_text(
        "[mermaid]\ntheme = forest\nlayout_direction = LR\n\n[cache]\nttl_medium_seconds = 30\n"
    )
    load_settings.cache_clear()

    settings = load_settings()

    assert settings.mermaid.theme == "forest"
    assert settings.mermaid.layout_direction == "LR"
    assert settings.cache.ttl_medium_seconds == 30
    assert settings.cache.ttl_short_seconds == 60


def test_invalid_type_raises_config_error(tmp_path):
    config_file = tmp_path / "config.ini"
    config_file.write_text("[cache]\nttl_short_seconds = soon\n")

    with pytest.raises(ConfigError, match="expected int"):
        _load_config(config_file)


def test_out_of_range_value_raises_config_error(tmp_path):
    config_file = tmp_path / "config.ini"
    config_file.write_text("[cache]\nttl_long_seconds = 0\n")

    with pytest.raises(ConfigError, match="minimum"):
        _load_config(config_file)


def test_missing_workspace_path_raises(monkeypatch):
    monkeypatch.delenv("WORKSPACE_PATH", raising=False)
    load_settings.cache_clear()

    with pytest.raises(ValueError, match="WORKSPACE_PATH"):
        load_settings()

    load_settings.cache_clear()


def test_display_name_prefers_project_name(workspace, monkeypatch):
    assert load_settings().display_name == "workspace"

    monkeypatch.setenv("PAGETREE_PROJECT_NAME", "Storefront")
    load_settings.cache_clear()

    assert load_settings().display_name == "Storefront"


def test_config_direct_construction_fills_sections():
    config = Config(workspace_path=Path("/tmp/ws"))

    assert config.paths.assets_dir == "design-assets"
    assert config.mermaid.label_max_length == 40
    assert config.config_path == Path("/tmp/ws/config.ini")
