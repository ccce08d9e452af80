"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from config import CONFIG_ENV_VAR, ConfigurationManager, get_config


@pytest.fixture
def fresh_config():
    """Reset the singleton before and after the test."""
    ConfigurationManager.reset()
    yield
    ConfigurationManager.reset()


def test_get_config_dot_notation() -> None:
    """Test nested lookups in settings.yaml."""
    assert get_config("postprocessing.delivery.business_days") == 10
    assert get_config("extraction.defaults.warehouse") == "11"
    assert ".xlsx" in get_config("input.extensions.spreadsheet")


def test_get_config_default_for_missing_key() -> None:
    """Test that missing keys return the default."""
    assert get_config("nonexistent.key", "fallback") == "fallback"
    assert get_config("logging.level.deeper", 1) == 1


def test_configuration_manager_is_singleton() -> None:
    """Test that repeated construction returns the same instance."""
    assert ConfigurationManager() is ConfigurationManager()


def test_config_path_from_environment(fresh_config, tmp_path: Path, monkeypatch) -> None:
    """Test that the environment variable selects the settings file."""
    settings = tmp_path / "custom.yaml"
    settings.write_text("postprocessing:\n  delivery:\n    business_days: 5\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(settings))

    assert get_config("postprocessing.delivery.business_days") == 5
    assert get_config("extraction.defaults.warehouse", "11") == "11"


def test_missing_config_file_raises(fresh_config, tmp_path: Path) -> None:
    """Test that an explicit missing path is reported."""
    with pytest.raises(FileNotFoundError):
        ConfigurationManager(str(tmp_path / "missing.yaml"))
