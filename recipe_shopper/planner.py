"""Meal planning: scale, canonicalize and consolidate ingredients into a shopping list."""

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from fractions import Fraction
from pathlib import Path
from typing import Any

from .canonicalizer import CanonicalIngredient, IngredientCanonicalizer, get_canonicalizer
from .categorizer import Categorizer, Category
from .quantity import ZERO, Quantity
from .recipe_parser import (
    ParsedIngredientLine,
    ParseFailure,
    ParseResult,
    Recipe,
    parse_ingredient_line,
)
from .scaler import scale_factor
from .units import Dimension, Unit, common_unit, convert

logger = logging.getLogger(__name__)


class PlanError(ValueError):
    """A meal plan that cannot produce a shopping list."""

    pass


class EmptyPlanError(PlanError):
    """A meal plan with no meals or no ingredient lines."""

    pass


@dataclass(frozen=True)
class PlannedMeal:
    """A recipe planned at a target serving count."""

    recipe_id: str
    lines: tuple[str | ParseResult, ...]
    base_servings: int | Fraction
    target_servings: int | Fraction

    @classmethod
    def from_recipe(
        cls, recipe: Recipe, target_servings: int | None = None, recipe_id: str | None = None
    ) -> "PlannedMeal":
        """Plan a recipe, at its own serving count unless a target is given."""
        base = recipe.servings or target_servings or 1
        return cls(
            recipe_id=recipe_id or recipe.source_id or recipe.title,
            lines=tuple(recipe.lines),
            base_servings=base,
            target_servings=target_servings or base,
        )


@dataclass(frozen=True)
class ShoppingListLine:
    """
    One consolidated shopping list entry.

    Lines for unparseable input have no canonical id, unit or quantity and
    always need review; their raw text is kept in raw_texts.
    """

    canonical_ingredient_id: str | None
    display_name: str
    unit: Unit | None
    quantity: Quantity | None
    source_recipe_ids: frozenset[str]
    category: Category
    needs_review: bool
    raw_texts: tuple[str, ...] = field(default=())

    @property
    def dimension(self) -> Dimension | None:
        return self.unit.dimension if self.unit is not None else None

    def sort_key(self) -> tuple[int, str, str, str, str]:
        return (
            self.category.order,
            self.display_name.lower(),
            self.dimension.value if self.dimension is not None else "",
            self.unit.name if self.unit is not None else "",
            self.canonical_ingredient_id or "",
        )

    def __str__(self) -> str:
        if self.quantity is None or self.unit is None:
            return self.display_name
        parts = [self.quantity.format()]
        if self.unit.dimension is not Dimension.COUNT:
            parts.append(self.unit.label(self.quantity))
        parts.append(self.display_name)
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "ingredient_id": self.canonical_ingredient_id,
            "name": self.display_name,
            "quantity": self.quantity.format() if self.quantity is not None else None,
            "unit": self.unit.name if self.unit is not None else None,
            "category": self.category.value,
            "needs_review": self.needs_review,
            "sources": sorted(self.source_recipe_ids),
            "raw_texts": list(self.raw_texts),
        }


@dataclass
class _Group:
    ingredient: CanonicalIngredient
    members: list[tuple[Quantity, Unit]] = field(default_factory=list)
    sources: set[str] = field(default_factory=set)
    raw_texts: set[str] = field(default_factory=set)
    fuzzy: bool = False


def _meal_factor(meal: PlannedMeal) -> Fraction:
    try:
        return scale_factor(meal.base_servings, meal.target_servings)
    except (TypeError, ValueError) as e:
        raise PlanError(f"Invalid servings for {meal.recipe_id!r}: {e}") from e


def _name_key(line: ParsedIngredientLine) -> tuple[str, str]:
    return (line.canonical_id or "", line.ingredient_text)


def _resolve(
    name_key: tuple[str, str], canonicalizer: IngredientCanonicalizer
) -> tuple[CanonicalIngredient, bool]:
    canonical_id, ingredient_text = name_key
    if canonical_id:
        known = canonicalizer.get(canonical_id)
        if known is not None:
            return known, False
    return canonicalizer.resolve(ingredient_text)


def _category(ingredient: CanonicalIngredient, categorizer: Categorizer) -> Category:
    """Categorizer first; the registry entry's own category when it has no mapping."""
    if categorizer.needs_review(ingredient.id):
        return ingredient.category
    return categorizer.categorize(ingredient.id)


def _needs_review(group: _Group, category: Category, categorizer: Categorizer) -> bool:
    if group.fuzzy or group.ingredient.needs_review:
        return True
    return category is Category.OTHER and categorizer.needs_review(group.ingredient.id)


def _sum_group(group: _Group) -> tuple[Unit, Quantity]:
    """Sum a group's quantities in its common unit."""
    unit = common_unit(group.members)
    total = ZERO
    for quantity, member_unit in group.members:
        total = total + convert(quantity, member_unit, unit)
    return unit, total


def build_shopping_list(
    planned_meals: Sequence[PlannedMeal],
    canonicalizer: IngredientCanonicalizer | None = None,
    categorizer: Categorizer | None = None,
    min_confidence: float | None = None,
) -> list[ShoppingListLine]:
    """
    Build a consolidated shopping list from planned meals.

    Every line is parsed (if raw), scaled to the meal's target servings and
    canonicalized, then grouped by (ingredient, dimension). Lines in
    different dimensions never merge; unitless units such as "can" or
    "pinch" group only with themselves. Lines that fail to parse are kept as
    review lines. The result does not depend on the order of the meals.

    Args:
        planned_meals: Meals with their lines and serving counts
        canonicalizer: Ingredient registry (defaults to the shared one)
        categorizer: Category lookup (defaults to the curated table)
        min_confidence: Parse threshold for raw lines (defaults to config)

    Returns:
        Shopping list lines sorted by category, name, dimension and unit

    Raises:
        EmptyPlanError: If there are no meals or no ingredient lines
        PlanError: If a meal has non-positive serving counts
    """
    if not planned_meals:
        raise EmptyPlanError("Meal plan has no meals")
    if not any(meal.lines for meal in planned_meals):
        raise EmptyPlanError("Meal plan has no ingredient lines")

    canonicalizer = canonicalizer or get_canonicalizer()
    categorizer = categorizer or Categorizer()

    parsed: list[tuple[str, Fraction, ParsedIngredientLine]] = []
    failures: dict[str, tuple[set[str], set[str]]] = {}

    for meal in planned_meals:
        factor = _meal_factor(meal)

        for entry in meal.lines:
            result = (
                parse_ingredient_line(entry, min_confidence) if isinstance(entry, str) else entry
            )

            if isinstance(result, ParseFailure):
                logger.warning("Could not parse %r: %s", result.raw_text, result.reason)
                raw_texts, sources = failures.setdefault(result.raw_text.strip(), (set(), set()))
                raw_texts.add(result.raw_text)
                sources.add(meal.recipe_id)
                continue

            parsed.append((meal.recipe_id, factor, result))

    # New entries can fuzzy-match later names, so resolve in a fixed order
    resolved = {
        name_key: _resolve(name_key, canonicalizer)
        for name_key in sorted({_name_key(line) for _, _, line in parsed})
    }

    groups: dict[tuple[str, Dimension, str], _Group] = {}

    for recipe_id, factor, line in parsed:
        ingredient, fuzzy = resolved[_name_key(line)]
        unit = line.unit
        # Unitless units carry no size, so "1 can" and "2 cloves" stay apart
        unit_key = unit.name if unit.dimension is Dimension.UNITLESS else ""
        key = (ingredient.id, unit.dimension, unit_key)

        group = groups.setdefault(key, _Group(ingredient=ingredient))
        group.members.append((line.quantity * factor, unit))
        group.sources.add(recipe_id)
        group.raw_texts.add(line.raw_text)
        group.fuzzy = group.fuzzy or fuzzy

    shopping_list: list[ShoppingListLine] = []

    for (ingredient_id, _dimension, _unit_key), group in groups.items():
        unit, total = _sum_group(group)
        category = _category(group.ingredient, categorizer)
        shopping_list.append(
            ShoppingListLine(
                canonical_ingredient_id=ingredient_id,
                display_name=group.ingredient.display_name,
                unit=unit,
                quantity=total,
                source_recipe_ids=frozenset(group.sources),
                category=category,
                needs_review=_needs_review(group, category, categorizer),
                raw_texts=tuple(sorted(group.raw_texts)),
            )
        )

    for stripped, (raw_texts, sources) in failures.items():
        shopping_list.append(
            ShoppingListLine(
                canonical_ingredient_id=None,
                display_name=stripped,
                unit=None,
                quantity=None,
                source_recipe_ids=frozenset(sources),
                category=Category.OTHER,
                needs_review=True,
                raw_texts=tuple(sorted(raw_texts)),
            )
        )

    shopping_list.sort(key=ShoppingListLine.sort_key)
    logger.debug(
        "Built %d shopping list lines from %d meals", len(shopping_list), len(planned_meals)
    )
    return shopping_list


def _meal_from_dict(data: dict[str, Any], position: int) -> PlannedMeal:
    recipe_id = data.get("recipe_id") or data.get("title") or f"recipe-{position}"
    base = data.get("base_servings", data.get("servings", 1))
    target = data.get("target_servings", base)
    lines = data.get("lines", data.get("ingredients", []))
    if isinstance(lines, str):
        lines = lines.splitlines()
    if not isinstance(lines, list) or not all(isinstance(line, str) for line in lines):
        raise PlanError(f"Meal {recipe_id!r}: lines must be a list of strings")
    return PlannedMeal(
        recipe_id=str(recipe_id),
        lines=tuple(line for line in lines if line.strip()),
        base_servings=base,
        target_servings=target,
    )


def load_plan_file(path: Path) -> list[PlannedMeal]:
    """
    Load planned meals from a JSON plan file.

    Format:
        {"meals": [{"recipe_id": "pancakes", "base_servings": 4,
                    "target_servings": 8, "lines": ["2 cups flour", ...]}]}

    Raises:
        PlanError: If the file cannot be read or is malformed
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise PlanError(f"Failed to load plan {path}: {e}") from e

    meals = data.get("meals") if isinstance(data, dict) else data
    if not isinstance(meals, list) or not all(isinstance(meal, dict) for meal in meals):
        raise PlanError(f"Plan {path} must contain a list of meals")

    return [_meal_from_dict(meal, i) for i, meal in enumerate(meals, start=1)]
