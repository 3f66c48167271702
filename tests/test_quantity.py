"""Unit tests for the quantity module."""

from fractions import Fraction

import pytest

from recipe_shopper.quantity import ONE, ZERO, Quantity, format_fraction, parse_number


class TestParseNumber:
    """Tests for parse_number function."""

    def test_integer(self):
        assert parse_number("3") == 3

    def test_decimal_point(self):
        assert parse_number("0.5") == Fraction(1, 2)

    def test_decimal_comma(self):
        assert parse_number("1,5") == Fraction(3, 2)

    def test_decimal_is_exact(self):
        assert parse_number("0.1") == Fraction(1, 10)

    def test_ascii_fraction(self):
        assert parse_number("3/4") == Fraction(3, 4)

    def test_vulgar_fraction(self):
        assert parse_number("½") == Fraction(1, 2)
        assert parse_number("⅓") == Fraction(1, 3)

    def test_zero_denominator_raises(self):
        with pytest.raises(ValueError, match="Zero denominator"):
            parse_number("1/0")

    def test_not_a_number_raises(self):
        with pytest.raises(ValueError):
            parse_number("cup")


class TestFormatFraction:
    """Tests for format_fraction function."""

    def test_whole(self):
        assert format_fraction(Fraction(4)) == "4"

    def test_proper(self):
        assert format_fraction(Fraction(3, 4)) == "3/4"

    def test_mixed(self):
        assert format_fraction(Fraction(5, 2)) == "2 1/2"

    def test_awkward_denominator_is_not_rounded(self):
        assert format_fraction(Fraction(7, 1000)) == "7/1000"


class TestQuantity:
    """Tests for the Quantity value type."""

    def test_coerces_to_fraction(self):
        q = Quantity(2)
        assert isinstance(q.value, Fraction)
        assert q.value == 2

    def test_range(self):
        q = Quantity(Fraction(1), Fraction(2))
        assert q.is_range
        assert q.high == 2
        assert q.bounds == (1, 2)

    def test_degenerate_range_collapses(self):
        q = Quantity(Fraction(2), Fraction(2))
        assert not q.is_range
        assert q == Quantity(2)

    def test_inverted_range_raises(self):
        with pytest.raises(ValueError, match="below lower bound"):
            Quantity(Fraction(3), Fraction(1))

    def test_add_points(self):
        assert Quantity(Fraction(1, 2)) + Quantity(Fraction(1, 4)) == Quantity(Fraction(3, 4))

    def test_add_range_and_point(self):
        total = Quantity(1, 2) + Quantity(1)
        assert total == Quantity(2, 3)

    def test_add_zero_is_identity(self):
        q = Quantity(1, 2)
        assert ZERO + q == q

    def test_multiply_by_fraction(self):
        assert Quantity(2) * Fraction(3, 2) == Quantity(3)

    def test_multiply_scales_both_bounds(self):
        assert Quantity(1, 2) * 2 == Quantity(2, 4)

    def test_right_multiply(self):
        assert 3 * ONE == Quantity(3)

    def test_multiply_by_float_raises(self):
        with pytest.raises(TypeError):
            Quantity(1) * 1.5

    def test_multiply_by_negative_raises(self):
        with pytest.raises(ValueError):
            Quantity(1) * -2

    def test_is_simple(self):
        assert Quantity(Fraction(3, 8)).is_simple()
        assert Quantity(Fraction(1, 3)).is_simple()
        assert not Quantity(Fraction(1, 5)).is_simple()
        assert not Quantity(Fraction(1), Fraction(7, 5)).is_simple()

    def test_format(self):
        assert Quantity(Fraction(5, 2)).format() == "2 1/2"
        assert str(Quantity(1, 2)) == "1-2"
