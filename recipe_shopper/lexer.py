"""Tokenizer for free-text ingredient lines."""

import re
from dataclasses import dataclass, replace
from enum import Enum

from .quantity import VULGAR_FRACTIONS, Quantity, parse_number
from .units import MAX_ALIAS_WORDS, Unit, lookup_unit


class TokenKind(str, Enum):
    NUMBER = "number"
    FRACTION = "fraction"
    RANGE = "range"
    UNIT_WORD = "unit_word"
    WORD = "word"
    PUNCTUATION = "punctuation"


QUANTITY_KINDS = frozenset({TokenKind.NUMBER, TokenKind.FRACTION, TokenKind.RANGE})

RANGE_DASHES = frozenset({"-", "–", "—"})
RANGE_WORDS = frozenset({"to"})


@dataclass(frozen=True)
class Token:
    """A classified span of an ingredient line."""

    kind: TokenKind
    text: str
    start: int
    end: int
    value: Quantity | Unit | None = None

    @property
    def lower(self) -> str:
        return self.text.lower()

    @property
    def is_quantity(self) -> bool:
        return self.kind in QUANTITY_KINDS


_VULGAR_CLASS = "".join(VULGAR_FRACTIONS)

_LEXEME = re.compile(
    r"(?P<fraction>\d+[/⁄]\d+)"
    r"|(?P<number>\d+(?:[.,]\d+)?)"
    rf"|(?P<vulgar>[{_VULGAR_CLASS}])"
    r"|(?P<word>[^\W\d_]+(?:['’\-][^\W\d_]+)*)"
    r"|(?P<punct>[^\w\s])"
)


def _scan(text: str) -> list[Token]:
    """Split text into number, word and punctuation lexemes."""
    tokens: list[Token] = []

    for match in _LEXEME.finditer(text):
        kind_name = match.lastgroup
        lexeme = match.group()
        start, end = match.span()

        if kind_name in ("fraction", "number", "vulgar"):
            try:
                value = parse_number(lexeme)
            except ValueError:
                # "1/0" and friends are not quantities
                tokens.append(Token(TokenKind.WORD, lexeme, start, end))
                continue
            kind = TokenKind.NUMBER if kind_name == "number" else TokenKind.FRACTION
            tokens.append(Token(kind, lexeme, start, end, Quantity(value)))
        elif kind_name == "word":
            tokens.append(Token(TokenKind.WORD, lexeme, start, end))
        else:
            tokens.append(Token(TokenKind.PUNCTUATION, lexeme, start, end))

    return tokens


def _merge_mixed_numbers(tokens: list[Token], text: str) -> list[Token]:
    """Join a whole number and a proper fraction: "2 1/2", "1½"."""
    merged: list[Token] = []
    i = 0

    while i < len(tokens):
        tok = tokens[i]
        nxt = tokens[i + 1] if i + 1 < len(tokens) else None

        if (
            nxt is not None
            and tok.kind is TokenKind.NUMBER
            and nxt.kind is TokenKind.FRACTION
            and isinstance(tok.value, Quantity)
            and isinstance(nxt.value, Quantity)
            and tok.value.value.denominator == 1
            and nxt.value.value < 1
            and not text[tok.end : nxt.start].strip()
        ):
            total = tok.value.value + nxt.value.value
            merged.append(
                Token(
                    TokenKind.FRACTION,
                    text[tok.start : nxt.end],
                    tok.start,
                    nxt.end,
                    Quantity(total),
                )
            )
            i += 2
            continue

        merged.append(tok)
        i += 1

    return merged


def _is_range_joiner(tok: Token) -> bool:
    if tok.kind is TokenKind.PUNCTUATION:
        return tok.text in RANGE_DASHES
    return tok.kind is TokenKind.WORD and tok.lower in RANGE_WORDS


def _merge_ranges(tokens: list[Token], text: str) -> list[Token]:
    """Join "1-2", "1 – 2" and "1 to 2" into a single range token."""
    merged: list[Token] = []
    i = 0

    while i < len(tokens):
        tok = tokens[i]

        if tok.kind in (TokenKind.NUMBER, TokenKind.FRACTION) and i + 2 < len(tokens):
            joiner, high = tokens[i + 1], tokens[i + 2]
            if (
                _is_range_joiner(joiner)
                and high.kind in (TokenKind.NUMBER, TokenKind.FRACTION)
                and isinstance(tok.value, Quantity)
                and isinstance(high.value, Quantity)
                and high.value.value >= tok.value.value
            ):
                merged.append(
                    Token(
                        TokenKind.RANGE,
                        text[tok.start : high.end],
                        tok.start,
                        high.end,
                        Quantity(tok.value.value, high.value.value),
                    )
                )
                i += 3
                continue

        merged.append(tok)
        i += 1

    return merged


def _match_unit(tokens: list[Token], i: int, text: str) -> tuple[Unit, int] | None:
    """Longest unit alias starting at tokens[i]; returns (unit, words used)."""
    for width in range(min(MAX_ALIAS_WORDS, len(tokens) - i), 0, -1):
        window = tokens[i : i + width]
        if any(t.kind is not TokenKind.WORD for t in window):
            continue
        # Words of a multi-word alias are separated by whitespace only
        if any(text[a.end : b.start].strip() for a, b in zip(window, window[1:])):
            continue
        unit = lookup_unit(" ".join(t.text for t in window))
        if unit is not None:
            return unit, width
    return None


def _classify_units(tokens: list[Token], text: str) -> list[Token]:
    classified: list[Token] = []
    i = 0

    while i < len(tokens):
        tok = tokens[i]
        match = _match_unit(tokens, i, text) if tok.kind is TokenKind.WORD else None

        if match is None:
            classified.append(tok)
            i += 1
            continue

        unit, width = match
        last = tokens[i + width - 1]
        unit_token = Token(
            TokenKind.UNIT_WORD, text[tok.start : last.end], tok.start, last.end, unit
        )
        i += width

        # Abbreviation period: "tbsp."
        if (
            i < len(tokens)
            and tokens[i].kind is TokenKind.PUNCTUATION
            and tokens[i].text == "."
            and tokens[i].start == unit_token.end
        ):
            unit_token = replace(unit_token, text=unit_token.text + ".", end=tokens[i].end)
            i += 1

        classified.append(unit_token)

    return classified


def tokenize(text: str) -> list[Token]:
    """
    Split a raw ingredient line into classified tokens.

    Recognizes integers, decimals, fractions ("1/2", "½"), mixed numbers
    ("2 1/2", "1½"), ranges ("1-2", "1 to 2") and unit aliases (longest
    match first, case-insensitive). Anything else is a WORD or PUNCTUATION.

    Examples:
        "2 1/2 cups flour" -> [FRACTION(5/2), UNIT_WORD(cup), WORD(flour)]
        "200g butter" -> [NUMBER(200), UNIT_WORD(g), WORD(butter)]
    """
    tokens = _scan(text)
    tokens = _merge_mixed_numbers(tokens, text)
    tokens = _merge_ranges(tokens, text)
    return _classify_units(tokens, text)
