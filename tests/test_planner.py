"""Tests for shopping list consolidation."""

import itertools
import json
from fractions import Fraction

import pytest

from recipe_shopper.canonicalizer import IngredientCanonicalizer
from recipe_shopper.categorizer import Categorizer, Category
from recipe_shopper.planner import (
    EmptyPlanError,
    PlanError,
    PlannedMeal,
    ShoppingListLine,
    build_shopping_list,
    load_plan_file,
)
from recipe_shopper.quantity import Quantity
from recipe_shopper.recipe_parser import parse_ingredient_line, parse_recipe_text
from recipe_shopper.units import EACH, UNITS, Dimension


def meal(recipe_id, lines, base=4, target=None):
    return PlannedMeal(
        recipe_id=recipe_id,
        lines=tuple(lines),
        base_servings=base,
        target_servings=target if target is not None else base,
    )


def summarize(shopping_list):
    return [
        (line.canonical_ingredient_id, line.unit.name if line.unit else None, line.quantity)
        for line in shopping_list
    ]


class TestBuildShoppingList:
    """Tests for build_shopping_list function."""

    def test_scales_and_splits_dimensions(self, canonicalizer, categorizer):
        meals = [
            meal("A", ["2 cups flour"], base=4, target=8),
            meal("B", ["0.5 lb flour"], base=2, target=4),
        ]
        result = build_shopping_list(meals, canonicalizer, categorizer)

        assert summarize(result) == [
            ("flour", "cup", Quantity(4)),
            ("flour", "lb", Quantity(1)),
        ]
        assert result[0].source_recipe_ids == frozenset({"A"})
        assert result[1].source_recipe_ids == frozenset({"B"})
        assert result[0].category is Category.PANTRY

    def test_same_unit_sums(self, canonicalizer, categorizer):
        meals = [
            meal("A", ["1 cup milk"]),
            meal("B", ["1/2 cup milk"]),
        ]
        (line,) = build_shopping_list(meals, canonicalizer, categorizer)
        assert line.unit == UNITS["cup"]
        assert line.quantity == Quantity(Fraction(3, 2))
        assert line.source_recipe_ids == frozenset({"A", "B"})

    def test_mixed_units_in_one_dimension(self, canonicalizer, categorizer):
        meals = [meal("A", ["1 tsp salt", "1 tbsp salt"])]
        (line,) = build_shopping_list(meals, canonicalizer, categorizer)
        assert line.unit == UNITS["tsp"]
        assert line.quantity == Quantity(4)

    def test_count_and_weight_stay_apart(self, canonicalizer, categorizer):
        meals = [meal("A", ["1 onion"]), meal("B", ["200 g onion"])]
        result = build_shopping_list(meals, canonicalizer, categorizer)

        assert summarize(result) == [
            ("onion", "each", Quantity(1)),
            ("onion", "g", Quantity(200)),
        ]
        assert {line.dimension for line in result} == {Dimension.COUNT, Dimension.WEIGHT}

    def test_synonyms_merge(self, canonicalizer, categorizer):
        meals = [meal("A", ["2 yellow onions"]), meal("B", ["3 Onions, diced"])]
        (line,) = build_shopping_list(meals, canonicalizer, categorizer)
        assert line.canonical_ingredient_id == "onion"
        assert line.unit == EACH
        assert line.quantity == Quantity(5)
        assert line.raw_texts == ("2 yellow onions", "3 Onions, diced")

    def test_unitless_units_group_per_unit(self, canonicalizer, categorizer):
        meals = [
            meal("A", ["1 can (14 oz) diced tomatoes", "2 cans tomatoes"]),
            meal("B", ["1 jar tomatoes"]),
        ]
        result = build_shopping_list(meals, canonicalizer, categorizer)
        assert summarize(result) == [
            ("tomato", "can", Quantity(3)),
            ("tomato", "jar", Quantity(1)),
        ]

    def test_ranges_add_bounds(self, canonicalizer, categorizer):
        meals = [meal("A", ["1-2 cloves garlic"]), meal("B", ["3 cloves garlic, minced"])]
        (line,) = build_shopping_list(meals, canonicalizer, categorizer)
        assert line.quantity == Quantity(4, 5)
        assert str(line) == "4-5 cloves garlic"

    def test_unknown_ingredient_needs_review(self, canonicalizer, categorizer):
        (line,) = build_shopping_list([meal("A", ["a pinch of love"])], canonicalizer, categorizer)
        assert line.canonical_ingredient_id == "love"
        assert line.unit == UNITS["pinch"]
        assert line.category is Category.OTHER
        assert line.needs_review
        assert line.raw_texts == ("a pinch of love",)

    def test_failures_become_review_lines(self, canonicalizer, categorizer):
        meals = [meal("A", ["2 cups", "1 cup milk"]), meal("B", [" 2 cups"])]
        result = build_shopping_list(meals, canonicalizer, categorizer)

        failure = next(line for line in result if line.canonical_ingredient_id is None)
        assert failure.display_name == "2 cups"
        assert failure.unit is None
        assert failure.quantity is None
        assert failure.needs_review
        assert failure.category is Category.OTHER
        assert failure.source_recipe_ids == frozenset({"A", "B"})
        assert failure.raw_texts == (" 2 cups", "2 cups")

    def test_failure_logged(self, canonicalizer, categorizer, caplog):
        with caplog.at_level("WARNING", logger="recipe_shopper.planner"):
            build_shopping_list([meal("A", ["2 cups"])], canonicalizer, categorizer)
        assert "Could not parse" in caplog.text

    def test_accepts_parsed_lines(self, canonicalizer, categorizer):
        parsed = parse_ingredient_line("2 eggs")
        (line,) = build_shopping_list(
            [meal("A", [parsed], base=2, target=3)], canonicalizer, categorizer
        )
        assert line.canonical_ingredient_id == "egg"
        assert line.quantity == Quantity(3)

    def test_exact_fractional_scaling(self, canonicalizer, categorizer):
        (line,) = build_shopping_list(
            [meal("A", ["1 cup sugar"], base=3, target=2)], canonicalizer, categorizer
        )
        assert line.quantity == Quantity(Fraction(2, 3))

    def test_order_independent(self, canonicalizer, categorizer):
        meals = [
            meal("A", ["2 cups flour", "1 onion", "salt to taste"], base=4, target=8),
            meal("B", ["0.5 lb flour", "200 g onion", "2 cups"], base=2, target=4),
            meal("C", ["1/2 cup flour", "2 onions, sliced", "1 pinch salt"]),
        ]
        expected = build_shopping_list(meals, canonicalizer, categorizer)

        for perm in itertools.permutations(meals):
            assert build_shopping_list(list(perm), canonicalizer, categorizer) == expected

    def test_order_independent_with_new_names(self, categorizer):
        meals = [
            meal("A", ["1 cup gruyere", "1 tbsp harisa"]),
            meal("B", ["1 cup gruyère", "2 tbsp harissa"]),
            meal("C", ["1/2 cup Gruyere, grated", "1 cup flour"]),
        ]
        results = [
            build_shopping_list(list(perm), IngredientCanonicalizer(), categorizer)
            for perm in itertools.permutations(meals)
        ]

        assert all(result == results[0] for result in results)
        assert summarize(results[0]) == [
            ("flour", "cup", Quantity(1)),
            ("gruyere", "cup", Quantity(Fraction(5, 2))),
            ("harisa", "tbsp", Quantity(3)),
        ]

    def test_different_ingredients_stay_apart(self, categorizer):
        meals = [meal("A", ["1 cup white wine", "1 tbsp hot sauce"]), meal("B", ["1 cup rice"])]
        result = build_shopping_list(meals, IngredientCanonicalizer(), categorizer)

        assert summarize(result) == [
            ("rice", "cup", Quantity(1)),
            ("hot-sauce", "tbsp", Quantity(1)),
            ("white-wine", "cup", Quantity(1)),
        ]

    def test_fuzzy_match_needs_review(self, canonicalizer, categorizer):
        meals = [meal("A", ["1 cup parmesan"]), meal("B", ["1 cup parmesean"])]
        (line,) = build_shopping_list(meals, canonicalizer, categorizer)
        assert line.canonical_ingredient_id == "parmesan"
        assert line.quantity == Quantity(2)
        assert line.needs_review

    def test_registry_category_used(self, categorizer):
        canonicalizer = IngredientCanonicalizer()
        canonicalizer.canonicalize("sumac")
        canonicalizer.set_category("sumac", Category.SPICES)

        (line,) = build_shopping_list([meal("A", ["1 tsp sumac"])], canonicalizer, categorizer)
        assert line.category is Category.SPICES
        assert not line.needs_review

    def test_categorizer_override_wins(self, canonicalizer, tmp_path):
        categorizer = Categorizer(tmp_path / "categories.json")
        categorizer.assign("flour", Category.OTHER)

        (line,) = build_shopping_list([meal("A", ["1 cup flour"])], canonicalizer, categorizer)
        assert line.category is Category.OTHER
        assert not line.needs_review

    def test_sorted_by_category_then_name(self, canonicalizer, categorizer):
        meals = [meal("A", ["1 tsp salt", "2 eggs", "1 cup flour", "1 onion"])]
        result = build_shopping_list(meals, canonicalizer, categorizer)
        assert [line.category for line in result] == [
            Category.PRODUCE,
            Category.DAIRY,
            Category.PANTRY,
            Category.SPICES,
        ]

    def test_recipe_lines(self, canonicalizer, categorizer):
        recipe = parse_recipe_text("Pancakes", "2 cups flour\n2 eggs", servings=2)
        planned = PlannedMeal.from_recipe(recipe, target_servings=4)
        result = build_shopping_list([planned], canonicalizer, categorizer)
        assert summarize(result) == [
            ("egg", "each", Quantity(4)),
            ("flour", "cup", Quantity(4)),
        ]
        assert result[0].source_recipe_ids == frozenset({"Pancakes"})

    def test_creates_registry_entries_once(self, categorizer):
        canonicalizer = IngredientCanonicalizer()
        meals = [meal("A", ["1 pinch sumac"]), meal("B", ["2 pinches sumac"])]
        (line,) = build_shopping_list(meals, canonicalizer, categorizer)
        assert line.quantity == Quantity(3)
        assert [e.id for e in canonicalizer.needs_review()] == ["sumac"]


class TestPlanErrors:
    """Tests for invalid meal plans."""

    def test_no_meals(self, canonicalizer):
        with pytest.raises(EmptyPlanError):
            build_shopping_list([], canonicalizer)

    def test_no_lines(self, canonicalizer):
        with pytest.raises(EmptyPlanError, match="no ingredient lines"):
            build_shopping_list([meal("A", [])], canonicalizer)

    def test_empty_plan_is_plan_error(self):
        assert issubclass(EmptyPlanError, PlanError)

    @pytest.mark.parametrize("base,target", [(0, 4), (4, 0), (-2, 4)])
    def test_non_positive_servings(self, canonicalizer, base, target):
        with pytest.raises(PlanError, match="Invalid servings"):
            build_shopping_list([meal("A", ["1 egg"], base=base, target=target)], canonicalizer)


class TestShoppingListLine:
    """Tests for ShoppingListLine display and serialization."""

    def test_str_hides_count_unit(self, canonicalizer, categorizer):
        (line,) = build_shopping_list([meal("A", ["1 onion"])], canonicalizer, categorizer)
        assert str(line) == "1 onion"

    def test_str_pluralizes_unit(self, canonicalizer, categorizer):
        (line,) = build_shopping_list([meal("A", ["2 cups flour"])], canonicalizer, categorizer)
        assert str(line) == "2 cups flour"

    def test_to_dict(self, canonicalizer, categorizer):
        (line,) = build_shopping_list(
            [meal("A", ["1 1/2 cups milk"]), meal("B", ["1 cup milk"])],
            canonicalizer,
            categorizer,
        )
        assert line.to_dict() == {
            "ingredient_id": "milk",
            "name": "milk",
            "quantity": "2 1/2",
            "unit": "cup",
            "category": "Dairy & Eggs",
            "needs_review": False,
            "sources": ["A", "B"],
            "raw_texts": ["1 1/2 cups milk", "1 cup milk"],
        }

    def test_failure_str(self):
        line = ShoppingListLine(
            canonical_ingredient_id=None,
            display_name="2 cups",
            unit=None,
            quantity=None,
            source_recipe_ids=frozenset({"A"}),
            category=Category.OTHER,
            needs_review=True,
        )
        assert str(line) == "2 cups"


class TestLoadPlanFile:
    """Tests for load_plan_file function."""

    def test_loads_meals(self, tmp_path):
        path = tmp_path / "plan.json"
        path.write_text(
            json.dumps(
                {
                    "meals": [
                        {
                            "recipe_id": "pancakes",
                            "base_servings": 4,
                            "target_servings": 8,
                            "lines": ["2 cups flour", "", "2 eggs"],
                        },
                        {"title": "Soup", "servings": 2, "ingredients": "1 onion\n1 l water"},
                    ]
                }
            )
        )
        meals = load_plan_file(path)

        assert meals[0] == PlannedMeal("pancakes", ("2 cups flour", "2 eggs"), 4, 8)
        assert meals[1] == PlannedMeal("Soup", ("1 onion", "1 l water"), 2, 2)

    def test_bare_list(self, tmp_path):
        path = tmp_path / "plan.json"
        path.write_text(json.dumps([{"lines": ["1 egg"]}]))
        (only,) = load_plan_file(path)
        assert only.recipe_id == "recipe-1"
        assert only.base_servings == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(PlanError, match="Failed to load"):
            load_plan_file(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "plan.json"
        path.write_text("{")
        with pytest.raises(PlanError):
            load_plan_file(path)

    def test_bad_lines(self, tmp_path):
        path = tmp_path / "plan.json"
        path.write_text(json.dumps({"meals": [{"recipe_id": "x", "lines": [1, 2]}]}))
        with pytest.raises(PlanError, match="list of strings"):
            load_plan_file(path)

    def test_not_a_list_of_meals(self, tmp_path):
        path = tmp_path / "plan.json"
        path.write_text(json.dumps({"meals": "pancakes"}))
        with pytest.raises(PlanError, match="list of meals"):
            load_plan_file(path)
