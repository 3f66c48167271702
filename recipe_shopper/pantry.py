"""Pantry staples: canonical ingredients the user always has at home."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from .canonicalizer import IngredientCanonicalizer, get_canonicalizer

if TYPE_CHECKING:
    from .planner import ShoppingListLine

logger = logging.getLogger(__name__)

# Canonical ids assumed in stock until the user says otherwise
DEFAULT_STAPLES: frozenset[str] = frozenset(
    {"water", "salt", "black-pepper", "olive-oil", "vegetable-oil"}
)


@dataclass
class Pantry:
    """The user's staples as changes on top of the defaults."""

    added: set[str] = field(default_factory=set)
    dropped_defaults: set[str] = field(default_factory=set)
    updated_at: datetime | None = None

    @property
    def staples(self) -> frozenset[str]:
        return frozenset((DEFAULT_STAPLES - self.dropped_defaults) | self.added)

    def __contains__(self, ingredient_id: object) -> bool:
        return ingredient_id in self.staples

    def stock(self, ingredient_ids: Iterable[str]) -> None:
        for ingredient_id in ingredient_ids:
            self.added.add(ingredient_id)
            self.dropped_defaults.discard(ingredient_id)

    def use_up(self, ingredient_ids: Iterable[str]) -> None:
        for ingredient_id in ingredient_ids:
            self.added.discard(ingredient_id)
            if ingredient_id in DEFAULT_STAPLES:
                self.dropped_defaults.add(ingredient_id)

    def to_dict(self) -> dict:
        return {
            "version": 1,
            "added": sorted(self.added),
            "dropped_defaults": sorted(self.dropped_defaults),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Pantry:
        stamp = data.get("updated_at")
        return cls(
            added=set(data.get("added", [])),
            dropped_defaults=set(data.get("dropped_defaults", [])),
            updated_at=datetime.fromisoformat(stamp) if stamp else None,
        )


def load_pantry(pantry_file: Path) -> Pantry:
    """Read the pantry file; a missing or unreadable file means the defaults."""
    if not pantry_file.exists():
        return Pantry()

    try:
        with open(pantry_file, encoding="utf-8") as f:
            return Pantry.from_dict(json.load(f))
    except (OSError, json.JSONDecodeError, ValueError) as e:
        logger.warning("Ignoring unreadable pantry file %s: %s", pantry_file, e)
        return Pantry()


def save_pantry(pantry: Pantry, pantry_file: Path) -> None:
    pantry.updated_at = datetime.now()
    pantry_file.parent.mkdir(parents=True, exist_ok=True)
    with open(pantry_file, "w", encoding="utf-8") as f:
        json.dump(pantry.to_dict(), f, indent=2)


def resolve_staples(
    names: Iterable[str], canonicalizer: IngredientCanonicalizer | None = None
) -> list[str]:
    """
    Resolve free-text names to canonical ids ("EVOO" -> "olive-oil").

    Unknown names become new registry entries flagged for review, the same
    as unknown names in a recipe.

    Raises:
        ValueError: If a name is empty
    """
    canonicalizer = canonicalizer or get_canonicalizer()
    return [canonicalizer.canonicalize(name).id for name in names]


def add_staples(
    names: Iterable[str],
    pantry_file: Path,
    canonicalizer: IngredientCanonicalizer | None = None,
) -> list[str]:
    """Add staples to the saved pantry; returns their canonical ids."""
    ids = resolve_staples(names, canonicalizer)
    pantry = load_pantry(pantry_file)
    pantry.stock(ids)
    save_pantry(pantry, pantry_file)
    return ids


def remove_staples(
    names: Iterable[str],
    pantry_file: Path,
    canonicalizer: IngredientCanonicalizer | None = None,
) -> list[str]:
    """Remove staples from the saved pantry, defaults included; returns their ids."""
    ids = resolve_staples(names, canonicalizer)
    pantry = load_pantry(pantry_file)
    pantry.use_up(ids)
    save_pantry(pantry, pantry_file)
    return ids


def reset_pantry(pantry_file: Path) -> None:
    save_pantry(Pantry(), pantry_file)


def split_pantry_lines(
    lines: list[ShoppingListLine], pantry: Pantry | None = None
) -> tuple[list[ShoppingListLine], list[ShoppingListLine]]:
    """
    Split a shopping list into lines covered by the pantry and lines to buy.

    Matching is on canonical ingredient id, so "kosher salt" (canonical
    salt) is covered while "salted butter" is not. Lines that failed to
    parse are always kept on the list to buy.

    Returns:
        Tuple of (in_pantry, to_buy), each in the original order
    """
    staples = (pantry or Pantry()).staples
    in_pantry: list[ShoppingListLine] = []
    to_buy: list[ShoppingListLine] = []

    for line in lines:
        if line.canonical_ingredient_id in staples:
            in_pantry.append(line)
        else:
            to_buy.append(line)

    return in_pantry, to_buy


def exclude_ingredients(
    lines: list[ShoppingListLine], ingredient_ids: Iterable[str]
) -> list[ShoppingListLine]:
    """Drop lines for the given canonical ids."""
    excluded = set(ingredient_ids)
    return [line for line in lines if line.canonical_ingredient_id not in excluded]
