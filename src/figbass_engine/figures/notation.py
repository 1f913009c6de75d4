"""Figured bass normalization — structured Items back to canonical text.

The normalized text is what the user edits. Every part is written with its
canonical spelling from the token table, in grammar order, so that
``parse_item(normalize_item(item))`` gives back an equal Item for every Item
the parser can produce.
"""

from __future__ import annotations

from figbass_engine.figures.models import DIGIT_NONE, Group, Item
from figbass_engine.figures.tokens import TokenTable, load_token_table

LINE_SEPARATOR = "\n"


def normalize_item(item: Item, tokens: TokenTable | None = None) -> str:
    """Return the canonical text of one Item.

    Never fails; the empty Item gives an empty string.
    """
    if tokens is None:
        tokens = load_token_table()

    p = [tokens.spell_parenthesis(x) for x in item.parentheses]
    digit = str(item.digit) if item.digit != DIGIT_NONE else ""
    continuation = tokens.continuation_mark if item.continuation else ""
    return "".join((
        p[0],
        tokens.spell_modifier(item.prefix),
        p[1],
        digit,
        p[2],
        tokens.spell_modifier(item.suffix),
        p[3],
        continuation,
        p[4],
    ))


def normalize_items(items, tokens: TokenTable | None = None) -> str:
    """Return the canonical text of a sequence of Items, one per line."""
    if tokens is None:
        tokens = load_token_table()
    return LINE_SEPARATOR.join(normalize_item(item, tokens) for item in items)


def normalize_group(group: Group, tokens: TokenTable | None = None) -> str:
    """Return the editable text of a Group.

    A freeform Group returns its authored text unchanged.
    """
    if group.is_freeform:
        return group.raw_fallback_text
    return normalize_items(group.items, tokens)


def render_group_display(group: Group) -> str:
    """Render the display text of a Group, one line per Item.

    A freeform Group is displayed as its raw authored text.
    """
    if group.is_freeform:
        return group.raw_fallback_text
    return LINE_SEPARATOR.join(item.display_text for item in group.items)
