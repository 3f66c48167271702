"""Unit vocabulary, alias resolution and exact in-dimension conversion."""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction

from .quantity import Quantity


class Dimension(str, Enum):
    """Unit families. Conversion only ever happens inside one family."""

    VOLUME = "volume"
    WEIGHT = "weight"
    COUNT = "count"
    UNITLESS = "unitless"


@dataclass(frozen=True)
class Unit:
    """A canonical unit with its exact factor to the dimension's base unit."""

    name: str
    dimension: Dimension
    factor: Fraction
    plural: str | None = None
    piece_like: bool = False  # "2 cloves" may name the ingredient itself

    def label(self, quantity: Quantity | None = None) -> str:
        """Unit name for display, pluralized for amounts above one."""
        if quantity is not None and quantity.high > 1 and self.plural:
            return self.plural
        return self.name

    def __str__(self) -> str:
        return self.name


class UnknownUnitError(KeyError):
    """Raised when an alias does not resolve to any known unit."""

    pass


class IncompatibleDimension(ValueError):
    """Raised when converting between units that measure different things."""

    def __init__(self, from_unit: Unit, to_unit: Unit):
        self.from_unit = from_unit
        self.to_unit = to_unit
        super().__init__(
            f"Cannot convert {from_unit.name} ({from_unit.dimension.value}) "
            f"to {to_unit.name} ({to_unit.dimension.value})"
        )


# US customary definitions, exact in metric
_TSP_ML = Fraction("4.92892159375")
_OZ_G = Fraction("28.349523125")
_LB_G = Fraction("453.59237")

# Base units
MILLILITER = Unit("ml", Dimension.VOLUME, Fraction(1), "ml")
GRAM = Unit("g", Dimension.WEIGHT, Fraction(1), "g")
EACH = Unit("each", Dimension.COUNT, Fraction(1), "each")

# Canonical unit -> accepted aliases (matched case-insensitively)
UNIT_TABLE: list[tuple[Unit, tuple[str, ...]]] = [
    # Volume -> milliliters
    (MILLILITER, ("ml", "mls", "milliliter", "milliliters", "millilitre", "millilitres")),
    (Unit("cl", Dimension.VOLUME, Fraction(10), "cl"), ("cl", "centiliter", "centiliters")),
    (Unit("dl", Dimension.VOLUME, Fraction(100), "dl"), ("dl", "deciliter", "deciliters")),
    (
        Unit("l", Dimension.VOLUME, Fraction(1000), "l"),
        ("l", "liter", "liters", "litre", "litres"),
    ),
    (
        Unit("tsp", Dimension.VOLUME, _TSP_ML, "tsp"),
        ("tsp", "tsps", "teaspoon", "teaspoons", "tsk", "teskefuld"),
    ),
    (
        Unit("tbsp", Dimension.VOLUME, _TSP_ML * 3, "tbsp"),
        ("tbsp", "tbsps", "tbs", "tbl", "tablespoon", "tablespoons", "spsk", "spiseskefuld"),
    ),
    (
        Unit("fl oz", Dimension.VOLUME, _TSP_ML * 6, "fl oz"),
        ("fl oz", "floz", "fluid ounce", "fluid ounces"),
    ),
    (Unit("cup", Dimension.VOLUME, _TSP_ML * 48, "cups"), ("cup", "cups")),
    (Unit("pint", Dimension.VOLUME, _TSP_ML * 96, "pints"), ("pint", "pints", "pt", "pts")),
    (Unit("quart", Dimension.VOLUME, _TSP_ML * 192, "quarts"), ("quart", "quarts", "qt", "qts")),
    (Unit("gallon", Dimension.VOLUME, _TSP_ML * 768, "gallons"), ("gallon", "gallons", "gal")),
    # Weight -> grams
    (Unit("mg", Dimension.WEIGHT, Fraction(1, 1000), "mg"), ("mg", "milligram", "milligrams")),
    (GRAM, ("g", "gr", "gram", "grams", "gramme", "grammes")),
    (
        Unit("kg", Dimension.WEIGHT, Fraction(1000), "kg"),
        ("kg", "kgs", "kilo", "kilos", "kilogram", "kilograms"),
    ),
    (Unit("oz", Dimension.WEIGHT, _OZ_G, "oz"), ("oz", "ounce", "ounces")),
    (Unit("lb", Dimension.WEIGHT, _LB_G, "lb"), ("lb", "lbs", "pound", "pounds")),
    # Count -> the item itself
    (EACH, ("each", "ea", "piece", "pieces", "pc", "pcs", "stk", "styk")),
    # Unitless: informal or packaging units with no fixed size
    (Unit("pinch", Dimension.UNITLESS, Fraction(1), "pinches"), ("pinch", "pinches")),
    (Unit("dash", Dimension.UNITLESS, Fraction(1), "dashes"), ("dash", "dashes")),
    (Unit("drop", Dimension.UNITLESS, Fraction(1), "drops"), ("drop", "drops")),
    (
        Unit("handful", Dimension.UNITLESS, Fraction(1), "handfuls"),
        ("handful", "handfuls", "håndfuld"),
    ),
    (Unit("can", Dimension.UNITLESS, Fraction(1), "cans"), ("can", "cans", "tin", "tins")),
    (Unit("jar", Dimension.UNITLESS, Fraction(1), "jars"), ("jar", "jars")),
    (Unit("bottle", Dimension.UNITLESS, Fraction(1), "bottles"), ("bottle", "bottles")),
    (Unit("bag", Dimension.UNITLESS, Fraction(1), "bags"), ("bag", "bags")),
    (Unit("box", Dimension.UNITLESS, Fraction(1), "boxes"), ("box", "boxes")),
    (
        Unit("package", Dimension.UNITLESS, Fraction(1), "packages"),
        ("package", "packages", "pkg", "pkgs", "packet", "packets", "pack", "packs", "pakke"),
    ),
    (
        Unit("bunch", Dimension.UNITLESS, Fraction(1), "bunches"),
        ("bunch", "bunches", "bundt"),
    ),
    (
        Unit("clove", Dimension.UNITLESS, Fraction(1), "cloves", piece_like=True),
        ("clove", "cloves", "fed"),
    ),
    (
        Unit("slice", Dimension.UNITLESS, Fraction(1), "slices", piece_like=True),
        ("slice", "slices"),
    ),
    (
        Unit("stalk", Dimension.UNITLESS, Fraction(1), "stalks", piece_like=True),
        ("stalk", "stalks"),
    ),
    (
        Unit("sprig", Dimension.UNITLESS, Fraction(1), "sprigs", piece_like=True),
        ("sprig", "sprigs"),
    ),
    (
        Unit("head", Dimension.UNITLESS, Fraction(1), "heads", piece_like=True),
        ("head", "heads"),
    ),
    (
        Unit("stick", Dimension.UNITLESS, Fraction(1), "sticks", piece_like=True),
        ("stick", "sticks"),
    ),
]

UNIT_ALIASES: dict[str, Unit] = {
    alias.lower(): unit for unit, aliases in UNIT_TABLE for alias in aliases
}

UNITS: dict[str, Unit] = {unit.name: unit for unit, _ in UNIT_TABLE}

# Longest alias in words ("fluid ounces" = 2), bounds the lexer's lookahead
MAX_ALIAS_WORDS = max(len(alias.split()) for alias in UNIT_ALIASES)

BASE_UNITS: dict[Dimension, Unit] = {
    Dimension.VOLUME: MILLILITER,
    Dimension.WEIGHT: GRAM,
    Dimension.COUNT: EACH,
}


def _normalize_alias(alias: str) -> str:
    return " ".join(alias.lower().strip().rstrip(".").split())


def lookup_unit(alias: str | None) -> Unit | None:
    """Resolve an alias ("Tbs", "tablespoons") to its unit, or None."""
    if not alias:
        return None
    return UNIT_ALIASES.get(_normalize_alias(alias))


def canonical_unit(alias: str) -> Unit:
    """
    Resolve any accepted alias to its canonical unit.

    Raises:
        UnknownUnitError: If the alias is not in the vocabulary
    """
    unit = lookup_unit(alias)
    if unit is None:
        raise UnknownUnitError(alias)
    return unit


def base_unit(dimension: Dimension) -> Unit:
    """Get the base unit for a dimension (ml, g or each)."""
    if dimension not in BASE_UNITS:
        raise ValueError(f"Dimension {dimension.value} has no base unit")
    return BASE_UNITS[dimension]


def can_convert(from_unit: Unit, to_unit: Unit) -> bool:
    """Check if a quantity in one unit can be expressed in another."""
    if from_unit == to_unit:
        return True
    if from_unit.dimension != to_unit.dimension:
        return False
    # Unitless units have no size relation to each other
    return from_unit.dimension is not Dimension.UNITLESS


def convert(quantity: Quantity, from_unit: Unit, to_unit: Unit) -> Quantity:
    """
    Convert a quantity between units of the same dimension.

    Applies quantity * from_unit.factor / to_unit.factor exactly.

    Raises:
        IncompatibleDimension: If the units cannot be converted
    """
    if from_unit == to_unit:
        return quantity
    if not can_convert(from_unit, to_unit):
        raise IncompatibleDimension(from_unit, to_unit)
    return quantity * (from_unit.factor / to_unit.factor)


def common_unit(members: Sequence[tuple[Quantity, Unit]]) -> Unit:
    """
    Pick the unit a group of same-dimension quantities is summed in.

    A shared unit is kept as is. Otherwise the member units are tried from
    finest to coarsest and the first one in which every member quantity is
    whole or a simple fraction wins; the dimension's base unit is the
    fallback.

    Raises:
        IncompatibleDimension: If the members span dimensions
        ValueError: If members is empty
    """
    if not members:
        raise ValueError("Cannot pick a unit for an empty group")

    units = {unit for _, unit in members}
    if len(units) == 1:
        return next(iter(units))

    candidates = sorted(units, key=lambda u: (u.factor, u.name))
    first = candidates[0]
    for other in candidates[1:]:
        if not can_convert(other, first):
            raise IncompatibleDimension(other, first)

    for candidate in candidates:
        if all(convert(qty, unit, candidate).is_simple() for qty, unit in members):
            return candidate

    return base_unit(first.dimension)
