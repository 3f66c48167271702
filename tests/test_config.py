"""Tests for the config module."""

import importlib
from pathlib import Path

import pytest

from recipe_shopper import config
from recipe_shopper.canonicalizer import IngredientCanonicalizer
from recipe_shopper.recipe_parser import ParseFailure, parse_ingredient_line


@pytest.fixture
def reload_config(monkeypatch):
    """Reload config after setting environment variables, restoring it afterwards."""
    for name in (
        "RECIPE_SHOPPER_HOME",
        "RECIPE_SHOPPER_MIN_CONFIDENCE",
        "RECIPE_SHOPPER_FUZZY_MAX_EDITS",
        "RECIPE_SHOPPER_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    def _reload(**env):
        for name, value in env.items():
            monkeypatch.setenv(name, value)
        return importlib.reload(config)

    yield _reload

    monkeypatch.undo()
    importlib.reload(config)


class TestDefaults:
    """Tests for default configuration values."""

    def test_data_files_live_in_config_dir(self):
        assert config.REGISTRY_FILE.parent == config.CONFIG_DIR
        assert config.CATEGORIES_FILE.parent == config.CONFIG_DIR
        assert config.PANTRY_FILE.parent == config.CONFIG_DIR

    def test_default_values(self, reload_config):
        cfg = reload_config()
        assert cfg.CONFIG_DIR == Path.home() / ".recipe-shopper"
        assert cfg.MIN_CONFIDENCE == 0.5
        assert cfg.FUZZY_MAX_EDITS == 2
        assert cfg.LOG_LEVEL == "WARNING"


class TestEnvironmentOverrides:
    """Tests for configuration from environment variables."""

    def test_home(self, reload_config, tmp_path):
        cfg = reload_config(RECIPE_SHOPPER_HOME=str(tmp_path))
        assert cfg.CONFIG_DIR == tmp_path
        assert cfg.REGISTRY_FILE == tmp_path / "ingredients.json"

    def test_min_confidence_applies_to_parser(self, reload_config):
        reload_config(RECIPE_SHOPPER_MIN_CONFIDENCE="0.95")
        assert isinstance(parse_ingredient_line("3 eggs"), ParseFailure)

    def test_fuzzy_max_edits_applies_to_canonicalizer(self, reload_config):
        reload_config(RECIPE_SHOPPER_FUZZY_MAX_EDITS="0")
        assert IngredientCanonicalizer().canonicalize("tomatoe").id == "tomatoe"

    def test_log_level(self, reload_config):
        assert reload_config(RECIPE_SHOPPER_LOG_LEVEL="DEBUG").LOG_LEVEL == "DEBUG"
