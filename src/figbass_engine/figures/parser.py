"""Figured bass parser — authored text to structured Items.

One line reads, left to right, with every part optional:

    [paren] prefix [paren] digit [paren] suffix [paren] continuation [paren]

Each step either consumes its token class or leaves the field at its default;
there is no backtracking. Anything left over after the last step rejects the
whole line. Parentheses are not checked for matching open/close pairs.
"""

from __future__ import annotations

import re

from figbass_engine.figures.models import (
    DIGIT_NONE,
    PREFIX_MODIFIERS,
        Item,
    Modifier,
    Parenthesis,
)
from figbass_engine.figures.tokens import TokenTable, load_token_table

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class ParseFailure(ValueError):
    """A line of figured bass text does not follow the grammar.

    Attributes:
        line: The offending line, as given.
        column: Index in `line` where parsing stopped.
        reason: Short description of the failure.
    """

    def __init__(self, line: str, column: int, reason: str) -> None:
        self.line = line
        self.column = column
        self.reason = reason
        super().__init__(f"Cannot parse {line!r} at column {column}: {reason}")


class _Cursor:
    """Position in the line being parsed."""

    def __init__(self, text: str, tokens: TokenTable) -> None:
        self.text = text
        self.pos = 0
        self.tokens = tokens

    def parenthesis(self) -> Parenthesis:
        parenthesis, length = self.tokens.match_parenthesis(self.text, self.pos)
        self.pos += length
        return parenthesis

    def modifier(self, allowed: frozenset[Modifier] | None = None) -> Modifier:
        modifier, length = self.tokens.match_modifier(self.text, self.pos, allowed)
        self.pos += length
        return modifier

    def digit(self) -> int:
        if self.pos < len(self.text) and self.text[self.pos] in "123456789":
            self.pos += 1
            return int(self.text[self.pos - 1])
        return DIGIT_NONE

    def continuation(self) -> bool:
        length = self.tokens.match_continuation(self.text, self.pos)
        self.pos += length
        return length > 0

    @property
    def exhausted(self) -> bool:
        return self.pos >= len(self.text)


def parse_item(line: str, tokens: TokenTable | None = None) -> Item:
    """Parse one line of figured bass text into an Item.

    Args:
        line: A single line; surrounding whitespace is ignored.
        tokens: Token spellings (defaults to the configured table).

    Returns:
        A detached Item. A blank line gives the empty Item.

    Raises:
        ParseFailure: If the line cannot be fully consumed.
    """
    if tokens is None:
        tokens = load_token_table()

    stripped = line.strip()
    indent = len(line) - len(line.lstrip())
    cur = _Cursor(stripped, tokens)
    parens = [Parenthesis.NONE] * 5

    parens[0] = cur.parenthesis()
    prefix = cur.modifier(PREFIX_MODIFIERS)
    after_prefix = cur.pos
    parens[1] = cur.parenthesis()
    digit = cur.digit()
    parens[2] = cur.parenthesis()
    suffix = cur.modifier()
    parens[3] = cur.parenthesis()
    continuation = cur.continuation()
    parens[4] = cur.parenthesis()

    if digit == DIGIT_NONE and prefix is not Modifier.NONE and suffix is Modifier.NONE:
        # a lone accidental is a suffix; reread what follows it
        suffix, prefix = prefix, Modifier.NONE
        cur.pos = after_prefix
        parens[1] = parens[2] = Parenthesis.NONE
        parens[3] = cur.parenthesis()
        continuation = cur.continuation()
        parens[4] = cur.parenthesis()

    if not cur.exhausted:
        raise ParseFailure(
            line, indent + cur.pos, f"unexpected {cur.text[cur.pos:]!r}"
        )

    return Item(
        prefix=prefix,
        digit=digit,
        suffix=suffix,
        continuation=continuation,
        parentheses=parens,
    )


def split_lines(text: str) -> list[str]:
    """Split authored text into lines. Empty text has no lines."""
    if not text:
        return []
    return _LINE_BREAK.split(text)


def parse_lines(text: str, tokens: TokenTable | None = None) -> list[Item]:
    """Parse multi-line figured bass text, one Item per line.

    Raises:
        ParseFailure: If any line fails; no Items are returned in that case.
    """
    if tokens is None:
        tokens = load_token_table()
    return [parse_item(line, tokens) for line in split_lines(text)]
