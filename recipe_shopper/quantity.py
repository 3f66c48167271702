"""Exact rational quantities for ingredient amounts."""

import re
from dataclasses import dataclass
from fractions import Fraction

# Denominators a cook can measure directly ("1/3 cup", "1/8 tsp")
SIMPLE_DENOMINATORS = frozenset({1, 2, 3, 4, 8})

# Unicode vulgar fractions
VULGAR_FRACTIONS: dict[str, Fraction] = {
    "½": Fraction(1, 2),
    "⅓": Fraction(1, 3),
    "⅔": Fraction(2, 3),
    "¼": Fraction(1, 4),
    "¾": Fraction(3, 4),
    "⅕": Fraction(1, 5),
    "⅖": Fraction(2, 5),
    "⅗": Fraction(3, 5),
    "⅘": Fraction(4, 5),
    "⅙": Fraction(1, 6),
    "⅚": Fraction(5, 6),
    "⅛": Fraction(1, 8),
    "⅜": Fraction(3, 8),
    "⅝": Fraction(5, 8),
    "⅞": Fraction(7, 8),
}

_DECIMAL = re.compile(r"^\d+(?:[.,]\d+)?$")
_FRACTION = re.compile(r"^(\d+)\s*[/⁄]\s*(\d+)$")


def parse_number(text: str) -> Fraction:
    """
    Parse a numeric literal into an exact fraction.

    Accepts integers, decimals with either "." or "," as separator,
    ASCII fractions ("3/4") and single Unicode vulgar fractions ("¾").

    Raises:
        ValueError: If the text is not a number or has a zero denominator
    """
    text = text.strip()

    if text in VULGAR_FRACTIONS:
        return VULGAR_FRACTIONS[text]

    if _DECIMAL.match(text):
        # Fraction("0.5") is exact, unlike Fraction(0.5) for most decimals
        return Fraction(text.replace(",", "."))

    match = _FRACTION.match(text)
    if match:
        denominator = int(match.group(2))
        if denominator == 0:
            raise ValueError(f"Zero denominator in {text!r}")
        return Fraction(int(match.group(1)), denominator)

    raise ValueError(f"Not a number: {text!r}")


def format_fraction(value: Fraction) -> str:
    """
    Format a fraction as an exact mixed number.

    Examples:
        Fraction(5, 2) -> "2 1/2"
        Fraction(3, 4) -> "3/4"
        Fraction(4) -> "4"
    """
    if value.denominator == 1:
        return str(value.numerator)

    sign = "-" if value < 0 else ""
    value = abs(value)
    whole, remainder = divmod(value.numerator, value.denominator)
    if whole == 0:
        return f"{sign}{remainder}/{value.denominator}"
    return f"{sign}{whole} {remainder}/{value.denominator}"


@dataclass(frozen=True)
class Quantity:
    """An exact amount, optionally a range ("1-2 cloves")."""

    value: Fraction
    upper: Fraction | None = None

    def __post_init__(self) -> None:
        value = Fraction(self.value)
        object.__setattr__(self, "value", value)

        if self.upper is not None:
            upper = Fraction(self.upper)
            if upper < value:
                raise ValueError(f"Range upper bound {upper} is below lower bound {value}")
            # A degenerate range is a plain amount
            object.__setattr__(self, "upper", None if upper == value else upper)

    @property
    def is_range(self) -> bool:
        return self.upper is not None

    @property
    def high(self) -> Fraction:
        """Upper bound, or the value itself for a plain amount."""
        return self.upper if self.upper is not None else self.value

    @property
    def bounds(self) -> tuple[Fraction, ...]:
        return (self.value,) if self.upper is None else (self.value, self.upper)

    def is_simple(self) -> bool:
        """True when every bound is whole or a measurable fraction."""
        return all(bound.denominator in SIMPLE_DENOMINATORS for bound in self.bounds)

    def __add__(self, other: "Quantity") -> "Quantity":
        if not isinstance(other, Quantity):
            return NotImplemented
        if self.upper is None and other.upper is None:
            return Quantity(self.value + other.value)
        return Quantity(self.value + other.value, self.high + other.high)

    def __mul__(self, factor: Fraction | int) -> "Quantity":
        if isinstance(factor, float):
            raise TypeError("Quantities scale by exact factors, not floats")
        if not isinstance(factor, (Fraction, int)):
            return NotImplemented
        factor = Fraction(factor)
        if factor < 0:
            raise ValueError(f"Cannot scale a quantity by a negative factor: {factor}")
        upper = None if self.upper is None else self.upper * factor
        return Quantity(self.value * factor, upper)

    __rmul__ = __mul__

    def format(self) -> str:
        if self.upper is None:
            return format_fraction(self.value)
        return f"{format_fraction(self.value)}-{format_fraction(self.upper)}"

    def __str__(self) -> str:
        return self.format()


ZERO = Quantity(Fraction(0))
ONE = Quantity(Fraction(1))
