"""Recipe scaling with exact rational factors."""

from dataclasses import replace
from fractions import Fraction

from .quantity import Quantity, format_fraction
from .recipe_parser import ParsedIngredientLine, ParseFailure, ParseResult, Recipe

Number = int | float | Fraction


def _exact(value: Number, label: str) -> Fraction:
    """Convert a servings count or multiplier to a positive exact fraction."""
    if isinstance(value, bool) or not isinstance(value, (int, float, Fraction)):
        raise TypeError(f"{label} must be a number, got {value!r}")
    # Fraction(str(0.1)) is 1/10; Fraction(0.1) is the binary approximation
    exact = Fraction(str(value)) if isinstance(value, float) else Fraction(value)
    if exact <= 0:
        raise ValueError(f"{label} must be positive, got {value}")
    return exact


def scale_factor(base_servings: Number, target_servings: Number) -> Fraction:
    """Exact factor target/base for scaling between serving counts."""
    return _exact(target_servings, "Target servings") / _exact(base_servings, "Base servings")


def calculate_scale_factor(
    original_servings: int | None,
    target_servings: int | None = None,
    multiplier: Number | None = None,
) -> Fraction:
    """
    Calculate the scaling factor for a recipe.

    Args:
        original_servings: Original recipe serving size
        target_servings: Desired serving size
        multiplier: Direct multiplier (e.g., 2 for double)

    Returns:
        Exact scale factor to multiply quantities by

    Raises:
        ValueError: If target_servings is given without original_servings,
                   or any count is not positive
    """
    if multiplier is not None:
        return _exact(multiplier, "Multiplier")

    if target_servings is not None:
        if original_servings is None:
            raise ValueError(
                "Cannot scale by servings: original serving size unknown. "
                "Use --multiplier instead, or specify original servings."
            )
        return scale_factor(original_servings, target_servings)

    # Default: no scaling
    return Fraction(1)


def scale_quantity(quantity: Quantity, base_servings: Number, target_servings: Number) -> Quantity:
    """
    Scale a quantity from base to target servings.

    Ranges scale both bounds. The result is exact: scaling by 3/2 and then
    by 2/3 returns the original quantity.

    Raises:
        ValueError: If either serving count is not positive
    """
    return quantity * scale_factor(base_servings, target_servings)


def scale_line(
    line: ParsedIngredientLine, base_servings: Number, target_servings: Number
) -> ParsedIngredientLine:
    """Return a copy of the line with its quantity scaled; the raw text is kept."""
    return replace(line, quantity=scale_quantity(line.quantity, base_servings, target_servings))


def scale_result(result: ParseResult, factor: Fraction) -> ParseResult:
    """Scale a parse result by a factor; failures pass through unchanged."""
    if isinstance(result, ParseFailure):
        return result
    return replace(result, quantity=result.quantity * factor)


def scale_recipe(
    recipe: Recipe,
    target_servings: int | None = None,
    multiplier: Number | None = None,
) -> tuple[list[ParseResult], Fraction, int | None]:
    """
    Scale all ingredient lines in a recipe.

    Args:
        recipe: The recipe to scale
        target_servings: Desired serving size
        multiplier: Direct multiplier (overrides target_servings)

    Returns:
        Tuple of (scaled_lines, scale_factor, new_servings)
    """
    factor = calculate_scale_factor(recipe.servings, target_servings, multiplier)

    scaled_lines = [scale_result(line, factor) for line in recipe.lines]

    # Calculate new servings
    new_servings = None
    if recipe.servings is not None:
        new_servings = round(recipe.servings * factor)
    elif target_servings is not None:
        new_servings = target_servings

    return scaled_lines, factor, new_servings


def format_scale_info(
    factor: Fraction, original_servings: int | None, new_servings: int | None
) -> str:
    """
    Format scaling information for display.

    Args:
        factor: The scaling factor used
        original_servings: Original serving size
        new_servings: New serving size after scaling

    Returns:
        Human-readable scaling description
    """
    if factor == 1:
        if original_servings:
            return f"Original recipe ({original_servings} servings)"
        return "Original recipe"

    if factor == 2:
        desc = "Doubled"
    elif factor == Fraction(1, 2):
        desc = "Halved"
    elif factor == 3:
        desc = "Tripled"
    else:
        desc = f"Scaled {format_fraction(factor)}x"

    if original_servings and new_servings:
        return f"{desc} ({original_servings} → {new_servings} servings)"
    elif new_servings:
        return f"{desc} ({new_servings} servings)"

    return desc
