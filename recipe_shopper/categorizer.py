"""Store-section categories for canonical ingredients."""

import json
import logging
import threading
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)


class CategoryStoreError(Exception):
    """Error reading or writing category overrides."""

    pass


class Category(str, Enum):
    """Shopping list sections, declared in display order."""

    PRODUCE = "Produce"
    DAIRY = "Dairy & Eggs"
    MEAT_SEAFOOD = "Meat & Seafood"
    PANTRY = "Pantry"
    SPICES = "Spices"
    FROZEN = "Frozen"
    OTHER = "Other"

    @property
    def order(self) -> int:
        return list(Category).index(self)

    @classmethod
    def from_label(cls, label: str) -> "Category":
        """
        Resolve a category from its name or display label, case-insensitively.

        Raises:
            ValueError: If the label matches no category
        """
        wanted = label.strip().lower()
        for category in cls:
            if wanted in (category.name.lower(), category.value.lower()):
                return category
        # Short forms: "dairy", "meat", "seafood"
        for category in cls:
            if wanted in category.value.lower().replace("&", " ").split():
                return category
        raise ValueError(f"Unknown category: {label!r}")


# Canonical ingredient id -> category
CATEGORY_TABLE: dict[str, Category] = {
    # Produce
    "onion": Category.PRODUCE,
    "red-onion": Category.PRODUCE,
    "shallot": Category.PRODUCE,
    "scallion": Category.PRODUCE,
    "leek": Category.PRODUCE,
    "garlic": Category.PRODUCE,
    "ginger": Category.PRODUCE,
    "carrot": Category.PRODUCE,
    "celery": Category.PRODUCE,
    "potato": Category.PRODUCE,
    "sweet-potato": Category.PRODUCE,
    "tomato": Category.PRODUCE,
    "cherry-tomato": Category.PRODUCE,
    "bell-pepper": Category.PRODUCE,
    "chili-pepper": Category.PRODUCE,
    "cucumber": Category.PRODUCE,
    "zucchini": Category.PRODUCE,
    "eggplant": Category.PRODUCE,
    "broccoli": Category.PRODUCE,
    "cauliflower": Category.PRODUCE,
    "spinach": Category.PRODUCE,
    "lettuce": Category.PRODUCE,
    "cabbage": Category.PRODUCE,
    "mushroom": Category.PRODUCE,
    "avocado": Category.PRODUCE,
    "lemon": Category.PRODUCE,
    "lime": Category.PRODUCE,
    "apple": Category.PRODUCE,
    "banana": Category.PRODUCE,
    "parsley": Category.PRODUCE,
    "cilantro": Category.PRODUCE,
    "basil": Category.PRODUCE,
    "mint": Category.PRODUCE,
    "thyme": Category.PRODUCE,
    "rosemary": Category.PRODUCE,
    "dill": Category.PRODUCE,
    # Dairy & eggs
    "egg": Category.DAIRY,
    "milk": Category.DAIRY,
    "butter": Category.DAIRY,
    "heavy-cream": Category.DAIRY,
    "sour-cream": Category.DAIRY,
    "yogurt": Category.DAIRY,
    "cheddar": Category.DAIRY,
    "parmesan": Category.DAIRY,
    "mozzarella": Category.DAIRY,
    "feta": Category.DAIRY,
    "cream-cheese": Category.DAIRY,
    # Meat & seafood
    "chicken-breast": Category.MEAT_SEAFOOD,
    "chicken-thigh": Category.MEAT_SEAFOOD,
    "ground-beef": Category.MEAT_SEAFOOD,
    "ground-pork": Category.MEAT_SEAFOOD,
    "bacon": Category.MEAT_SEAFOOD,
    "sausage": Category.MEAT_SEAFOOD,
    "salmon": Category.MEAT_SEAFOOD,
    "shrimp": Category.MEAT_SEAFOOD,
    "cod": Category.MEAT_SEAFOOD,
    "tuna": Category.MEAT_SEAFOOD,
    # Pantry and dry goods
    "flour": Category.PANTRY,
    "sugar": Category.PANTRY,
    "brown-sugar": Category.PANTRY,
    "baking-powder": Category.PANTRY,
    "baking-soda": Category.PANTRY,
    "olive-oil": Category.PANTRY,
    "vegetable-oil": Category.PANTRY,
    "vinegar": Category.PANTRY,
    "soy-sauce": Category.PANTRY,
    "honey": Category.PANTRY,
    "rice": Category.PANTRY,
    "pasta": Category.PANTRY,
    "oats": Category.PANTRY,
    "bread": Category.PANTRY,
    "chicken-stock": Category.PANTRY,
    "vegetable-stock": Category.PANTRY,
    "canned-tomato": Category.PANTRY,
    "tomato-paste": Category.PANTRY,
    "chickpea": Category.PANTRY,
    "black-bean": Category.PANTRY,
    "lentil": Category.PANTRY,
    "water": Category.PANTRY,
    # Spices
    "salt": Category.SPICES,
    "black-pepper": Category.SPICES,
    "cumin": Category.SPICES,
    "paprika": Category.SPICES,
    "cinnamon": Category.SPICES,
    "oregano": Category.SPICES,
    "chili-flakes": Category.SPICES,
    "turmeric": Category.SPICES,
    "nutmeg": Category.SPICES,
    "bay-leaf": Category.SPICES,
    "ground-clove": Category.SPICES,
    "vanilla-extract": Category.SPICES,
    # Frozen
    "frozen-pea": Category.FROZEN,
    "frozen-spinach": Category.FROZEN,
    "ice-cream": Category.FROZEN,
}


class Categorizer:
    """
    Assigns categories from user overrides, then the curated table.

    Overrides are read lazily and, when an overrides file is given, written
    back on every assignment.
    """

    def __init__(self, overrides_file: Path | None = None):
        self.overrides_file = overrides_file
        self._overrides: dict[str, Category] | None = None
        self._lock = threading.Lock()

    def _load(self) -> dict[str, Category]:
        if self._overrides is not None:
            return self._overrides

        overrides: dict[str, Category] = {}
        if self.overrides_file is not None and self.overrides_file.exists():
            try:
                with open(self.overrides_file, encoding="utf-8") as f:
                    data = json.load(f)
                overrides = {
                    ingredient_id: Category(label)
                    for ingredient_id, label in data.get("categories", {}).items()
                }
            except (OSError, json.JSONDecodeError, ValueError) as e:
                raise CategoryStoreError(f"Failed to load category overrides: {e}") from e

        self._overrides = overrides
        return overrides

    def _save(self) -> None:
        if self.overrides_file is None:
            return
        overrides = self._load()
        data = {
            "version": 1,
            "categories": {key: overrides[key].value for key in sorted(overrides)},
        }
        try:
            self.overrides_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.overrides_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise CategoryStoreError(f"Failed to save category overrides: {e}") from e

    def categorize(self, canonical_id: str | None) -> Category:
        """Get the store section for a canonical ingredient (OTHER when unmapped)."""
        if canonical_id is None:
            return Category.OTHER
        overrides = self._load()
        if canonical_id in overrides:
            return overrides[canonical_id]
        return CATEGORY_TABLE.get(canonical_id, Category.OTHER)

    def needs_review(self, canonical_id: str | None) -> bool:
        """True when no override or curated entry maps this ingredient."""
        if canonical_id is None:
            return True
        return canonical_id not in self._load() and canonical_id not in CATEGORY_TABLE

    def assign(self, canonical_id: str, category: Category) -> None:
        """Record a user categorization, persisting it if backed by a file."""
        with self._lock:
            self._load()[canonical_id] = category
            self._save()
        logger.info("Categorized %s as %s", canonical_id, category.value)

    def overrides(self) -> dict[str, Category]:
        return dict(self._load())


_default_categorizer = Categorizer()


def categorize(canonical_id: str | None) -> Category:
    """Categorize with the curated table only."""
    return _default_categorizer.categorize(canonical_id)
