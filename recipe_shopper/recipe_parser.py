"""Ingredient line and recipe text parsing module."""

import logging
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from fractions import Fraction
from typing import Any

from . import config
from .lexer import Token, TokenKind, tokenize
from .quantity import ONE, Quantity
from .units import EACH, Unit

logger = logging.getLogger(__name__)


class ParseStatus(str, Enum):
    """Lifecycle of an ingredient line: RAW -> PARSED -> NORMALIZED, or RAW -> FAILED."""

    RAW = "raw"
    PARSED = "parsed"
    NORMALIZED = "normalized"
    FAILED = "failed"


@dataclass(frozen=True)
class ParsedIngredientLine:
    """A structured ingredient line. Scaling and normalizing return new lines."""

    quantity: Quantity
    unit: Unit
    ingredient_text: str
    descriptors: tuple[str, ...]
    raw_text: str  # Verbatim input, kept for audit and manual fallback
    confidence: float
    status: ParseStatus = ParseStatus.PARSED
    canonical_id: str | None = None

    ok = True

    def normalized(self, canonical_id: str) -> "ParsedIngredientLine":
        """Return this line resolved to a canonical ingredient."""
        return replace(self, canonical_id=canonical_id, status=ParseStatus.NORMALIZED)

    def __str__(self) -> str:
        return render_line(self)


@dataclass(frozen=True)
class ParseFailure:
    """A line that could not be decomposed; surfaces for manual entry."""

    raw_text: str
    reason: str
    confidence: float = 0.0

    ok = False

    @property
    def status(self) -> ParseStatus:
        return ParseStatus.FAILED

    def __str__(self) -> str:
        return self.raw_text


ParseResult = ParsedIngredientLine | ParseFailure


# Adjectival words kept as descriptors rather than part of the name
DESCRIPTOR_WORDS = frozenset(
    {
        # Preparation
        "beaten",
        "blanched",
        "chopped",
        "cored",
        "crumbled",
        "crushed",
        "cubed",
        "deseeded",
        "diced",
        "drained",
        "grated",
        "halved",
        "julienned",
        "mashed",
        "melted",
        "minced",
        "peeled",
        "pitted",
        "quartered",
        "rinsed",
        "seeded",
        "shredded",
        "sifted",
        "sliced",
        "softened",
        "toasted",
        "trimmed",
        "zested",
        # Manner
        "coarsely",
        "finely",
        "freshly",
        "lightly",
        "roughly",
        "thinly",
        "thickly",
        # State and size
        "boneless",
        "chilled",
        "cold",
        "fresh",
        "heaping",
        "large",
        "level",
        "medium",
        "packed",
        "ripe",
        "skinless",
        "small",
        "warm",
        "optional",
        "divided",
    }
)

# Multi-word descriptors recognized anywhere in the name segment
DESCRIPTOR_PHRASES: tuple[tuple[str, ...], ...] = (
    ("at", "room", "temperature"),
    ("room", "temperature"),
    ("to", "taste"),
    ("for", "garnish"),
    ("for", "serving"),
    ("for", "frying"),
    ("as", "needed"),
    ("plus", "more"),
    ("if", "desired"),
    ("extra", "large"),
)

NUMBER_WORDS: dict[str, Fraction] = {
    "a": Fraction(1),
    "an": Fraction(1),
    "one": Fraction(1),
    "two": Fraction(2),
    "three": Fraction(3),
    "four": Fraction(4),
    "five": Fraction(5),
    "six": Fraction(6),
    "seven": Fraction(7),
    "eight": Fraction(8),
    "nine": Fraction(9),
    "ten": Fraction(10),
    "eleven": Fraction(11),
    "twelve": Fraction(12),
    "half": Fraction(1, 2),
}

ARTICLES = frozenset({"a", "an"})

CONJUNCTIONS = frozenset({"and", "or", "&", "/"})

# Punctuation that may sit inside an ingredient name ("2% milk", "salt & pepper")
NAME_PUNCTUATION = frozenset({"&", "/", "%", "'", "’", "-"})

SEGMENT_SEPARATORS = frozenset({",", ";"})

# Confidence penalties
MISSING_QUANTITY_PENALTY = 0.3
MISSING_UNIT_PENALTY = 0.1
AMBIGUOUS_UNIT_PENALTY = 0.2
MULTIPLE_SPANS_PENALTY = 0.2


def _match_phrase(tokens: list[Token], i: int) -> tuple[str, ...] | None:
    for phrase in DESCRIPTOR_PHRASES:
        window = tokens[i : i + len(phrase)]
        if len(window) == len(phrase) and all(
            t.kind in (TokenKind.WORD, TokenKind.UNIT_WORD) and t.lower == word
            for t, word in zip(window, phrase)
        ):
            return phrase
    return None


def _span_text(raw: str, tokens: list[Token]) -> str:
    return " ".join(raw[tokens[0].start : tokens[-1].end].split())


def _read_quantity(tokens: list[Token]) -> tuple[Quantity | None, int]:
    """Read a leading quantity ("2", "1 1/2", "1-2", "a", "two", "2 dozen")."""
    if not tokens:
        return None, 0

    first = tokens[0]
    if first.is_quantity and isinstance(first.value, Quantity):
        quantity, pos = first.value, 1
    elif first.kind is TokenKind.WORD and first.lower in NUMBER_WORDS and len(tokens) > 1:
        quantity, pos = Quantity(NUMBER_WORDS[first.lower]), 1
        # "half an onion"
        if len(tokens) > 2 and tokens[1].kind is TokenKind.WORD and tokens[1].lower in ARTICLES:
            pos = 2
    else:
        return None, 0

    if pos < len(tokens) and tokens[pos].kind is TokenKind.WORD and tokens[pos].lower == "dozen":
        quantity = quantity * 12
        pos += 1

    return quantity, pos


def _split_segments(
    raw: str, tokens: list[Token]
) -> tuple[list[Token], list[list[Token]], list[str]]:
    """
    Split the tokens after quantity/unit into the name segment, the
    comma-separated tail segments and parenthesized notes.
    """
    head: list[Token] = []
    tails: list[list[Token]] = []
    notes: list[str] = []
    current = head
    depth = 0
    paren_start = 0

    for tok in tokens:
        if tok.kind is TokenKind.PUNCTUATION and tok.text in "([":
            if depth == 0:
                paren_start = tok.end
            depth += 1
            continue
        if tok.kind is TokenKind.PUNCTUATION and tok.text in ")]" and depth:
            depth -= 1
            if depth == 0:
                note = " ".join(raw[paren_start : tok.start].split())
                if note:
                    notes.append(note.lower())
            continue
        if depth:
            continue
        if tok.kind is TokenKind.PUNCTUATION and tok.text in SEGMENT_SEPARATORS:
            current = []
            tails.append(current)
            continue
        current.append(tok)

    if depth:
        # Unclosed parenthesis runs to the end of the line
        note = " ".join(raw[paren_start:].split())
        if note:
            notes.append(note.lower())

    return head, tails, notes


def _name_runs(head: list[Token], descriptors: list[str]) -> list[list[Token]]:
    """Collect contiguous non-descriptor word runs; descriptors are appended in order."""
    runs: list[list[Token]] = []
    run: list[Token] = []

    def close() -> None:
        nonlocal run
        while run and run[-1].kind is TokenKind.PUNCTUATION:
            run.pop()
        if run:
            runs.append(run)
        run = []

    i = 0
    while i < len(head):
        tok = head[i]

        phrase = _match_phrase(head, i)
        if phrase:
            close()
            descriptors.append(" ".join(phrase))
            i += len(phrase)
            continue

        if tok.kind in (TokenKind.WORD, TokenKind.UNIT_WORD) and tok.lower in DESCRIPTOR_WORDS:
            close()
            descriptors.append(tok.lower)
        elif tok.kind is TokenKind.WORD and tok.lower == "of" and not run:
            pass
        elif tok.kind is TokenKind.PUNCTUATION and (not run or tok.text not in NAME_PUNCTUATION):
            close()
        else:
            run.append(tok)
        i += 1

    close()
    return runs


def _skip_size_notes(raw: str, tokens: list[Token], pos: int) -> tuple[int, list[str]]:
    """Step over size descriptors and parenthesized notes; returns (position, notes)."""
    notes: list[str] = []

    while pos < len(tokens):
        tok = tokens[pos]
        if tok.kind is TokenKind.WORD and tok.lower in DESCRIPTOR_WORDS:
            notes.append(tok.lower)
            pos += 1
        elif tok.kind is TokenKind.PUNCTUATION and tok.text == "(":
            close = next(
                (
                    j
                    for j in range(pos + 1, len(tokens))
                    if tokens[j].kind is TokenKind.PUNCTUATION and tokens[j].text == ")"
                ),
                None,
            )
            if close is None:
                break
            note = " ".join(raw[tok.end : tokens[close].start].split())
            if note:
                notes.append(note.lower())
            pos = close + 1
        else:
            break

    return pos, notes


def _is_container_word(run: list[Token]) -> bool:
    if len(run) != 1:
        return False
    unit = run[0].value
    return isinstance(unit, Unit) and not unit.piece_like


def _has_conjunction(run: list[Token]) -> bool:
    return any(tok.lower in CONJUNCTIONS for tok in run)


def parse_ingredient_line(raw_text: str, min_confidence: float | None = None) -> ParseResult:
    """
    Parse a single ingredient line into structured data.

    Grammar: [Quantity] [Unit]? [Descriptors]* IngredientName [, Descriptors]*

    Args:
        raw_text: Raw ingredient text (e.g., "2 1/2 cups diced onion, finely chopped")
        min_confidence: Lines scoring below this fail (defaults to config)

    Returns:
        ParsedIngredientLine on success, ParseFailure otherwise. Never raises
        for malformed input.
    """
    threshold = config.MIN_CONFIDENCE if min_confidence is None else min_confidence
    tokens = tokenize(raw_text)

    if not tokens:
        return ParseFailure(raw_text=raw_text, reason="empty line")

    confidence = 1.0
    descriptors: list[str] = []

    quantity, pos = _read_quantity(tokens)

    # Unit, possibly behind size notes: "2 large cloves garlic", "1 (14 oz) can tomatoes"
    unit: Unit | None = None
    unit_token: Token | None = None
    ambiguous = False
    lookahead, size_notes = _skip_size_notes(raw_text, tokens, pos)
    candidate = tokens[lookahead] if lookahead < len(tokens) else None
    if candidate is not None and isinstance(candidate.value, Unit):
        unit_token, unit = candidate, candidate.value
        descriptors.extend(size_notes)
        pos = lookahead + 1
        if pos < len(tokens) and tokens[pos].lower == "of":
            pos += 1
        if pos < len(tokens) and tokens[pos].kind is TokenKind.UNIT_WORD:
            # "1 pinch cloves": unit or ingredient?
            ambiguous = True

    head, tails, notes = _split_segments(raw_text, tokens[pos:])
    runs = _name_runs(head, descriptors)
    descriptors.extend(notes)
    for tail in tails:
        if tail:
            descriptors.append(_span_text(raw_text, tail).lower())

    # "can" or "cup" alone is never the ingredient
    for run in [r for r in runs if _is_container_word(r)]:
        runs.remove(run)
        descriptors.append(_span_text(raw_text, run).lower())

    if not runs:
        if unit_token is not None and unit is not None and unit.piece_like:
            # "3 cloves" on its own names the ingredient
            runs = [[unit_token]]
            unit = None
            ambiguous = True
        else:
            logger.debug("No ingredient name in %r", raw_text)
            return ParseFailure(raw_text=raw_text, reason="no ingredient name found")

    name_run = runs[0]
    ingredient_text = _span_text(raw_text, name_run)
    if len(runs) > 1 or _has_conjunction(name_run):
        confidence -= MULTIPLE_SPANS_PENALTY
    for extra in runs[1:]:
        descriptors.append(_span_text(raw_text, extra).lower())

    if quantity is None:
        confidence -= MISSING_QUANTITY_PENALTY
        quantity = ONE
    elif unit is None:
        confidence -= MISSING_UNIT_PENALTY
    if ambiguous:
        confidence -= AMBIGUOUS_UNIT_PENALTY

    confidence = round(min(1.0, max(0.0, confidence)), 2)

    if confidence < threshold:
        logger.debug("Low confidence %.2f for %r", confidence, raw_text)
        return ParseFailure(
            raw_text=raw_text,
            reason=f"confidence {confidence:.2f} below {threshold:.2f}",
            confidence=confidence,
        )

    return ParsedIngredientLine(
        quantity=quantity,
        unit=unit or EACH,
        ingredient_text=ingredient_text,
        descriptors=tuple(descriptors),
        raw_text=raw_text,
        confidence=confidence,
    )


def render_line(line: ParsedIngredientLine) -> str:
    """
    Render a parsed line back to ingredient text.

    The output re-parses to the same quantity, unit and ingredient name.

    Examples:
        2 1/2 cups onion, diced, finely chopped
        3 eggs
    """
    parts = [line.quantity.format()]
    if line.unit != EACH:
        parts.append(line.unit.label(line.quantity))
    parts.append(line.ingredient_text)

    text = " ".join(parts)
    if line.descriptors:
        text += ", " + ", ".join(line.descriptors)
    return text


def parse_ingredients_text(text: str) -> list[ParseResult]:
    """
    Parse multiple ingredients from text (one per line).

    Args:
        text: Multi-line text with ingredients

    Returns:
        List of parse results, one per ingredient line
    """
    results: list[ParseResult] = []

    for line in text.strip().split("\n"):
        line = line.strip()
        # Skip empty lines and headers
        if not line or line.lower().startswith(("ingredients", "for the", "---")):
            continue
        # Skip bullet points and numbers at start
        line = re.sub(r"^[\-\*•]\s*", "", line)
        line = re.sub(r"^\d+\.\s+", "", line)

        if line:
            results.append(parse_ingredient_line(line))

    return results


@dataclass
class Recipe:
    """Represents a recipe's ingredient list."""

    title: str
    lines: list[ParseResult] = field(default_factory=list)
    servings: int | None = None
    source_id: str | None = None

    @property
    def failures(self) -> list[ParseFailure]:
        return [line for line in self.lines if isinstance(line, ParseFailure)]

    def to_dict(self) -> dict[str, Any]:
        """Convert recipe to dictionary for serialization."""
        return {
            "title": self.title,
            "servings": self.servings,
            "source_id": self.source_id,
            "lines": [line.raw_text for line in self.lines],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Recipe":
        """Create recipe from dictionary, re-parsing the stored raw lines."""
        return cls(
            title=data["title"],
            servings=data.get("servings"),
            source_id=data.get("source_id"),
            lines=[parse_ingredient_line(raw) for raw in data.get("lines", [])],
        )


def parse_recipe_text(title: str, ingredients_text: str, servings: int | None = None) -> Recipe:
    """
    Create a recipe from manual text input.

    Args:
        title: Recipe name
        ingredients_text: Multi-line ingredient list
        servings: Optional serving size

    Returns:
        Recipe object
    """
    return Recipe(title=title, lines=parse_ingredients_text(ingredients_text), servings=servings)
