"""Shared fixtures for recipe-shopper tests."""

import logging
from pathlib import Path

import pytest

from recipe_shopper import cli
from recipe_shopper.canonicalizer import IngredientCanonicalizer
from recipe_shopper.categorizer import Categorizer


@pytest.fixture
def canonicalizer() -> IngredientCanonicalizer:
    """A fresh in-memory canonicalizer seeded with the curated table."""
    return IngredientCanonicalizer()


@pytest.fixture
def categorizer() -> Categorizer:
    """A categorizer with no overrides."""
    return Categorizer()


@pytest.fixture
def config_dir(tmp_path, monkeypatch) -> Path:
    """Point the CLI's data files at a temporary directory."""
    monkeypatch.setattr(cli, "REGISTRY_FILE", tmp_path / "ingredients.json")
    monkeypatch.setattr(cli, "CATEGORIES_FILE", tmp_path / "categories.json")
    monkeypatch.setattr(cli, "PANTRY_FILE", tmp_path / "pantry.json")
    return tmp_path


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo configure_logging calls made by CLI invocations."""
    logger = logging.getLogger("recipe_shopper")
    yield
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
