"""Unit tests for the scaler module."""

from fractions import Fraction

import pytest

from recipe_shopper.quantity import Quantity
from recipe_shopper.recipe_parser import ParsedIngredientLine, parse_ingredient_line, parse_recipe_text
from recipe_shopper.scaler import (
    calculate_scale_factor,
    format_scale_info,
    scale_factor,
    scale_line,
    scale_quantity,
    scale_recipe,
)


def make_line(text: str) -> ParsedIngredientLine:
    result = parse_ingredient_line(text)
    assert isinstance(result, ParsedIngredientLine)
    return result


class TestCalculateScaleFactor:
    """Tests for calculate_scale_factor function."""

    def test_multiplier_overrides_all(self):
        factor = calculate_scale_factor(original_servings=4, target_servings=8, multiplier=3)
        assert factor == 3

    def test_target_servings_with_original(self):
        factor = calculate_scale_factor(original_servings=4, target_servings=8)
        assert factor == 2

    def test_target_servings_thirds(self):
        factor = calculate_scale_factor(original_servings=3, target_servings=2)
        assert factor == Fraction(2, 3)

    def test_float_multiplier_is_exact(self):
        assert calculate_scale_factor(4, multiplier=0.1) == Fraction(1, 10)

    def test_target_servings_without_original_raises(self):
        with pytest.raises(ValueError, match="original serving size unknown"):
            calculate_scale_factor(original_servings=None, target_servings=8)

    def test_no_scaling_returns_one(self):
        assert calculate_scale_factor(original_servings=4) == 1

    def test_non_positive_multiplier_raises(self):
        with pytest.raises(ValueError, match="must be positive"):
            calculate_scale_factor(4, multiplier=0)


class TestScaleQuantity:
    """Tests for scale_quantity function."""

    def test_double(self):
        assert scale_quantity(Quantity(2), 4, 8) == Quantity(4)

    def test_half(self):
        assert scale_quantity(Quantity(Fraction(1, 2)), 2, 1) == Quantity(Fraction(1, 4))

    def test_range_scales_both_bounds(self):
        assert scale_quantity(Quantity(1, 2), 2, 3) == Quantity(Fraction(3, 2), 3)

    def test_exact_round_trip(self):
        # 2 * 3/2 * 2/3 == 2 exactly
        up = scale_quantity(Quantity(2), 2, 3)
        assert up == Quantity(3)
        assert scale_quantity(up, 3, 2) == Quantity(2)

    def test_repeated_thirds_do_not_drift(self):
        q = Quantity(1)
        for _ in range(30):
            q = scale_quantity(q, 3, 1)
        for _ in range(30):
            q = scale_quantity(q, 1, 3)
        assert q == Quantity(1)

    def test_zero_base_raises(self):
        with pytest.raises(ValueError):
            scale_quantity(Quantity(1), 0, 4)

    def test_negative_target_raises(self):
        with pytest.raises(ValueError):
            scale_quantity(Quantity(1), 4, -2)

    def test_scale_factor(self):
        assert scale_factor(4, 6) == Fraction(3, 2)


class TestScaleLine:
    """Tests for scale_line function."""

    def test_returns_new_line(self):
        line = make_line("2 cups flour")
        scaled = scale_line(line, 4, 8)
        assert scaled.quantity == Quantity(4)
        assert line.quantity == Quantity(2)

    def test_keeps_everything_else(self):
        line = make_line("1-2 cloves garlic, minced")
        scaled = scale_line(line, 2, 4)
        assert scaled.quantity == Quantity(2, 4)
        assert scaled.unit == line.unit
        assert scaled.ingredient_text == line.ingredient_text
        assert scaled.descriptors == line.descriptors
        assert scaled.raw_text == line.raw_text


class TestScaleRecipe:
    """Tests for scale_recipe function."""

    def test_scale_by_servings(self):
        recipe = parse_recipe_text("Pancakes", "2 cups flour\n3 eggs", servings=4)
        lines, factor, new_servings = scale_recipe(recipe, target_servings=6)
        assert factor == Fraction(3, 2)
        assert new_servings == 6
        assert [line.quantity for line in lines] == [Quantity(3), Quantity(Fraction(9, 2))]

    def test_failures_pass_through(self):
        recipe = parse_recipe_text("Odd", "2 cups\n1 cup milk", servings=2)
        lines, _, _ = scale_recipe(recipe, multiplier=2)
        assert lines[0] == recipe.lines[0]
        assert lines[1].quantity == Quantity(2)

    def test_unknown_servings_with_target(self):
        recipe = parse_recipe_text("Pancakes", "2 cups flour")
        lines, factor, new_servings = scale_recipe(recipe, target_servings=4, multiplier=2)
        assert factor == 2
        assert new_servings == 4


class TestFormatScaleInfo:
    """Tests for format_scale_info function."""

    def test_original(self):
        assert format_scale_info(Fraction(1), 4, 4) == "Original recipe (4 servings)"

    def test_doubled(self):
        assert format_scale_info(Fraction(2), 4, 8) == "Doubled (4 → 8 servings)"

    def test_halved(self):
        assert format_scale_info(Fraction(1, 2), 4, 2) == "Halved (4 → 2 servings)"

    def test_other_factor(self):
        assert format_scale_info(Fraction(3, 2), 4, 6) == "Scaled 1 1/2x (4 → 6 servings)"

    def test_without_servings(self):
        assert format_scale_info(Fraction(3), None, None) == "Tripled"
