"""Recipe Shopper - turn recipe ingredient lines into one consolidated shopping list."""

__version__ = "1.0.0"

from .canonicalizer import CanonicalIngredient, IngredientCanonicalizer, canonicalize
from .categorizer import Category, categorize
from .planner import (
    EmptyPlanError,
    PlanError,
    PlannedMeal,
    ShoppingListLine,
    build_shopping_list,
)
from .quantity import Quantity
from .recipe_parser import (
    ParsedIngredientLine,
    ParseFailure,
    ParseStatus,
    Recipe,
    parse_ingredient_line,
    parse_recipe_text,
)
from .scaler import scale_line, scale_quantity, scale_recipe
from .units import Dimension, IncompatibleDimension, Unit, canonical_unit, convert

__all__ = [
    "Quantity",
    "Unit",
    "Dimension",
    "IncompatibleDimension",
    "canonical_unit",
    "convert",
    "ParsedIngredientLine",
    "ParseFailure",
    "ParseStatus",
    "Recipe",
    "parse_ingredient_line",
    "parse_recipe_text",
    "CanonicalIngredient",
    "IngredientCanonicalizer",
    "canonicalize",
    "Category",
    "categorize",
    "scale_line",
    "scale_quantity",
    "scale_recipe",
    "PlannedMeal",
    "ShoppingListLine",
    "PlanError",
    "EmptyPlanError",
    "build_shopping_list",
]
