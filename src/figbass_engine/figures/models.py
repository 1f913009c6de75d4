"""Figured bass data model — structures for one annotation event.

Provides:
- Modifier and Parenthesis vocabularies (closed enumerations)
- Item: one line of a figured bass indication
  (prefix / digit / suffix / continuation line + five parenthesis slots)
- Group: the ordered stack of Items attached to one time position,
  together with its duration and the layout outputs computed for it
"""

from __future__ import annotations

import logging
import weakref
from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from figbass_engine.figures.tokens import TokenTable

logger = logging.getLogger(__name__)

NUM_PARENTHESES = 5
DIGIT_NONE = 0


class InvariantViolation(ValueError):
    """A structural setter was given a value outside its allowed domain."""


class Modifier(Enum):
    """Accidental or diacritic written before or after the digit."""

    NONE = "none"
    DOUBLE_FLAT = "double_flat"
    FLAT = "flat"
    NATURAL = "natural"
    SHARP = "sharp"
    DOUBLE_SHARP = "double_sharp"
    PLUS = "plus"            # suffix only
    BACKSLASH = "backslash"  # suffix only, stroke through the digit
    SLASH = "slash"          # suffix only, stroke through the digit


# Modifiers allowed in prefix position.
PREFIX_MODIFIERS = frozenset({
    Modifier.NONE,
    Modifier.DOUBLE_FLAT,
    Modifier.FLAT,
    Modifier.NATURAL,
    Modifier.SHARP,
    Modifier.DOUBLE_SHARP,
})

# Suffixes drawn as a stroke combined with the digit glyph.
STROKE_MODIFIERS = frozenset({Modifier.BACKSLASH, Modifier.SLASH})


class Parenthesis(Enum):
    """Bracket that may occupy one of the five parenthesis slots."""

    NONE = "none"
    ROUND_OPEN = "round_open"
    ROUND_CLOSED = "round_closed"
    SQUARE_OPEN = "square_open"
    SQUARE_CLOSED = "square_closed"


# Renderer-agnostic display symbols used to build Item.display_text.
_DISPLAY_MODIFIERS: dict[Modifier, str] = {
    Modifier.NONE: "",
    Modifier.DOUBLE_FLAT: "\U0001D12B",
    Modifier.FLAT: "♭",
    Modifier.NATURAL: "♮",
    Modifier.SHARP: "♯",
    Modifier.DOUBLE_SHARP: "\U0001D12A",
    Modifier.PLUS: "+",
    Modifier.BACKSLASH: "\\",
    Modifier.SLASH: "/",
}

# Combining overlays applied to the digit for stroke suffixes.
_DISPLAY_STROKES: dict[Modifier, str] = {
    Modifier.BACKSLASH: "\u20e5",  # combining reverse solidus overlay
    Modifier.SLASH: "\u0338",      # combining long solidus overlay
}

_DISPLAY_PARENTHESES: dict[Parenthesis, str] = {
    Parenthesis.NONE: "",
    Parenthesis.ROUND_OPEN: "(",
    Parenthesis.ROUND_CLOSED: ")",
    Parenthesis.SQUARE_OPEN: "[",
    Parenthesis.SQUARE_CLOSED: "]",
}


def _coerce_modifier(value: Modifier | str, field: str) -> Modifier:
    if isinstance(value, Modifier):
        return value
    try:
        return Modifier(value)
    except ValueError:
        raise InvariantViolation(f"Invalid {field} modifier: {value!r}") from None


def _coerce_parenthesis(value: Parenthesis | str) -> Parenthesis:
    if isinstance(value, Parenthesis):
        return value
    try:
        return Parenthesis(value)
    except ValueError:
        raise InvariantViolation(f"Invalid parenthesis: {value!r}") from None


def _check_prefix(value: Modifier | str) -> Modifier:
    prefix = _coerce_modifier(value, "prefix")
    if prefix not in PREFIX_MODIFIERS:
        raise InvariantViolation(
            f"{prefix.name} is only allowed as a suffix, not as a prefix."
        )
    return prefix


def _check_digit(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvariantViolation(f"Digit must be an int, got {value!r}")
    if not 0 <= value <= 9:
        raise InvariantViolation(f"Digit {value} outside range 0-9.")
    return value


def _check_parenthesis_index(idx: int) -> None:
    if isinstance(idx, bool) or not isinstance(idx, int) or not 0 <= idx < NUM_PARENTHESES:
        raise InvariantViolation(
            f"Parenthesis slot {idx!r} outside range 0-{NUM_PARENTHESES - 1}."
        )


class Item:
    """One line of a figured bass indication.

    An Item is made of four parts, in this order: ``prefix`` (an accidental),
    ``digit`` (1-9, 0 meaning no digit), ``suffix`` (accidental or diacritic)
    and ``continuation`` (whether a duration line follows). Five parenthesis
    slots sit before, between and after the four parts:

        [0] prefix [1] digit [2] suffix [3] continuation [4]

    Attributes are exposed as properties whose setters validate the new
    value and raise InvariantViolation without touching the Item when it is
    rejected. ``display_text`` is derived from the structural fields and
    rebuilt on every change.

    An Item attached to a Group keeps a weak reference to it together with
    its ``ordinal`` (line index); both are managed by the Group.
    """

    __slots__ = (
        "_prefix", "_digit", "_suffix", "_continuation", "_parentheses",
        "_display_text", "_ordinal", "_group_ref", "__weakref__",
    )

    def __init__(
        self,
        prefix: Modifier | str = Modifier.NONE,
        digit: int = DIGIT_NONE,
        suffix: Modifier | str = Modifier.NONE,
        continuation: bool = False,
        parentheses: Iterable[Parenthesis | str] | None = None,
    ) -> None:
        self._prefix = _check_prefix(prefix)
        self._digit = _check_digit(digit)
        self._suffix = _coerce_modifier(suffix, "suffix")
        self._continuation = self._check_continuation(continuation)
        if parentheses is None:
            self._parentheses = [Parenthesis.NONE] * NUM_PARENTHESES
        else:
            slots = [_coerce_parenthesis(p) for p in parentheses]
            if len(slots) != NUM_PARENTHESES:
                raise InvariantViolation(
                    f"Expected {NUM_PARENTHESES} parenthesis slots, got {len(slots)}."
                )
            self._parentheses = slots
        self._ordinal = 0
        self._group_ref: weakref.ref[Group] | None = None
        self._display_text = ""
        self._refresh_display_text()

    # -- structural fields --------------------------------------------------

    @property
    def prefix(self) -> Modifier:
        return self._prefix

    @prefix.setter
    def prefix(self, value: Modifier | str) -> None:
        self._prefix = _check_prefix(value)
        self._changed()

    @property
    def digit(self) -> int:
        return self._digit

    @digit.setter
    def digit(self, value: int) -> None:
        self._digit = _check_digit(value)
        self._changed()

    @property
    def suffix(self) -> Modifier:
        return self._suffix

    @suffix.setter
    def suffix(self, value: Modifier | str) -> None:
        self._suffix = _coerce_modifier(value, "suffix")
        self._changed()

    @property
    def continuation(self) -> bool:
        return self._continuation

    @continuation.setter
    def continuation(self, value: bool) -> None:
        self._continuation = self._check_continuation(value)
        self._changed()

    @property
    def parentheses(self) -> tuple[Parenthesis, ...]:
        """The five parenthesis slots, in position order."""
        return tuple(self._parentheses)

    def parenthesis(self, idx: int) -> Parenthesis:
        _check_parenthesis_index(idx)
        return self._parentheses[idx]

    def set_parenthesis(self, idx: int, value: Parenthesis | str) -> None:
        _check_parenthesis_index(idx)
        self._parentheses[idx] = _coerce_parenthesis(value)
        self._changed()

    # -- derived / ownership ------------------------------------------------

    @property
    def ordinal(self) -> int:
        """Line index of this Item within its Group."""
        return self._ordinal

    @property
    def group(self) -> Group | None:
        """The owning Group, or None for a detached Item."""
        return self._group_ref() if self._group_ref is not None else None

    @property
    def display_text(self) -> str:
        return self._display_text

    @property
    def has_digit(self) -> bool:
        return self._digit != DIGIT_NONE

    @property
    def is_empty(self) -> bool:
        """True for the degenerate line with no part and no parenthesis."""
        return (
            self._prefix is Modifier.NONE
            and self._digit == DIGIT_NONE
            and self._suffix is Modifier.NONE
            and not self._continuation
            and all(p is Parenthesis.NONE for p in self._parentheses)
        )

    def copy(self) -> Item:
        """Return a detached copy with the same structural fields."""
        return Item(
            prefix=self._prefix,
            digit=self._digit,
            suffix=self._suffix,
            continuation=self._continuation,
            parentheses=self._parentheses,
        )

    def normalized_text(self, tokens: TokenTable | None = None) -> str:
        """Canonical textual representation (the text used during input)."""
        from figbass_engine.figures.notation import normalize_item

        return normalize_item(self, tokens)

    @staticmethod
    def _check_continuation(value: bool) -> bool:
        if not isinstance(value, bool):
            raise InvariantViolation(f"Continuation must be a bool, got {value!r}")
        return value

    def _attach(self, group: Group, ordinal: int) -> None:
        owner = self.group
        if owner is not None and owner is not group:
            raise InvariantViolation("Item already belongs to another group.")
        self._group_ref = weakref.ref(group)
        self._ordinal = ordinal

    def _detach(self) -> None:
        self._group_ref = None
        self._ordinal = 0

    def _changed(self) -> None:
        self._refresh_display_text()
        group = self.group
        if group is not None:
            group._item_changed(self)

    def _refresh_display_text(self) -> None:
        p = [_DISPLAY_PARENTHESES[x] for x in self._parentheses]
        if self.has_digit:
            body = str(self._digit)
            if self._suffix in STROKE_MODIFIERS:
                body += _DISPLAY_STROKES[self._suffix]
                suffix = ""
            else:
                suffix = _DISPLAY_MODIFIERS[self._suffix]
        else:
            body = ""
            suffix = _DISPLAY_MODIFIERS[self._suffix]
        self._display_text = (
            p[0] + _DISPLAY_MODIFIERS[self._prefix] + p[1] + body
            + p[2] + suffix + p[3] + p[4]
        )

    # -- comparison ---------------------------------------------------------

    def _key(self) -> tuple:
        return (
            self._prefix, self._digit, self._suffix,
            self._continuation, tuple(self._parentheses),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Item):
            return NotImplemented
        return self._key() == other._key()

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        parens = ", ".join(p.value for p in self._parentheses)
        return (
            f"Item(prefix={self._prefix.value}, digit={self._digit}, "
            f"suffix={self._suffix.value}, continuation={self._continuation}, "
            f"parentheses=[{parens}])"
        )


class Group:
    """A complete figured bass indication attached to one time position.

    A Group owns an ordered list of Items (top-to-bottom display order), a
    duration in ticks used for the continuation lines, and an ``on_event``
    flag telling whether it sits on a note onset or between notes.

    Editing replaces the whole text through :meth:`set_text`. When any line
    fails to parse, all Items are dropped and the text is kept verbatim in
    ``raw_fallback_text`` (freeform mode).

    ``line_lengths`` and ``item_offsets`` are written by the layout engine.
    Any change to the Items or to the duration marks them stale; reading them
    while ``layout_stale`` is True returns the last computed geometry.
    """

    def __init__(
        self,
        duration_ticks: int = 0,
        on_event: bool = True,
        items: Iterable[Item] | None = None,
    ) -> None:
        self._duration_ticks = self._check_duration(duration_ticks)
        self._on_event = self._check_on_event(on_event)
        self._items: list[Item] = []
        self._raw_fallback_text: str | None = None
        self._line_lengths: list[float] = []
        self._item_offsets: list[float] = []
        self._layout_stale = True
        if items is not None:
            self.set_items(items)

    # -- items --------------------------------------------------------------

    @property
    def items(self) -> tuple[Item, ...]:
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def append_item(self, item: Item | None = None) -> Item:
        """Append an Item (a new empty one if omitted) and return it."""
        if item is None:
            item = Item()
        elif item.group is self:
            raise InvariantViolation("The same Item cannot appear twice in a group.")
        item._attach(self, len(self._items))
        self._items.append(item)
        self._raw_fallback_text = None
        self._invalidate_layout()
        return item

    def set_items(self, items: Iterable[Item]) -> None:
        """Replace all Items. Ordinals follow the given order."""
        new_items = list(items)
        for item in new_items:
            owner = item.group
            if owner is not None and owner is not self:
                raise InvariantViolation("Item already belongs to another group.")
        if len({id(item) for item in new_items}) != len(new_items):
            raise InvariantViolation("The same Item cannot appear twice in a group.")
        self._replace_items(new_items)
        self._raw_fallback_text = None

    def clear(self) -> None:
        """Drop all Items and any fallback text."""
        self._replace_items([])
        self._raw_fallback_text = None

    def _replace_items(self, new_items: list[Item]) -> None:
        for item in self._items:
            item._detach()
        for ordinal, item in enumerate(new_items):
            item._attach(self, ordinal)
        self._items = new_items
        self._invalidate_layout()

    # -- text ---------------------------------------------------------------

    @property
    def raw_fallback_text(self) -> str | None:
        return self._raw_fallback_text

    @property
    def is_freeform(self) -> bool:
        """True when the authored text could not be parsed."""
        return self._raw_fallback_text is not None

    def set_text(self, text: str, tokens: TokenTable | None = None) -> bool:
        """Replace the Group content with the parse of ``text``.

        Every line is parsed; if any line fails the Group switches to
        freeform mode, keeping ``text`` unchanged and holding no Items.

        Returns:
            True if all lines parsed, False if the Group fell back to
            freeform text.
        """
        from figbass_engine.figures.parser import ParseFailure, parse_lines

        try:
            items = parse_lines(text, tokens)
        except ParseFailure as exc:
            logger.info("Keeping figured bass as freeform text: %s", exc)
            self._replace_items([])
            self._raw_fallback_text = text
            return False
        self._replace_items(items)
        self._raw_fallback_text = None
        return True

    @property
    def normalized_text(self) -> str:
        """Canonical text of the Items (the fallback text when freeform)."""
        from figbass_engine.figures.notation import normalize_group

        return normalize_group(self)

    @property
    def text(self) -> str:
        """The editable text of this Group."""
        return self.normalized_text

    # -- duration / placement -----------------------------------------------

    @property
    def duration_ticks(self) -> int:
        return self._duration_ticks

    @duration_ticks.setter
    def duration_ticks(self, value: int) -> None:
        self._duration_ticks = self._check_duration(value)
        self._invalidate_layout()

    @property
    def on_event(self) -> bool:
        return self._on_event

    @on_event.setter
    def on_event(self, value: bool) -> None:
        self._on_event = self._check_on_event(value)

    @staticmethod
    def _check_duration(value: int) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvariantViolation(f"Duration must be an int, got {value!r}")
        if value < 0:
            raise InvariantViolation(f"Duration must be >= 0, got {value}")
        return value

    @staticmethod
    def _check_on_event(value: bool) -> bool:
        if not isinstance(value, bool):
            raise InvariantViolation(f"on_event must be a bool, got {value!r}")
        return value

    # -- layout outputs -----------------------------------------------------

    @property
    def line_lengths(self) -> list[float]:
        """Continuation line length per Item, as of the last layout run."""
        return list(self._line_lengths)

    @property
    def item_offsets(self) -> list[float]:
        """Horizontal alignment offset per Item, as of the last layout run."""
        return list(self._item_offsets)

    @property
    def layout_stale(self) -> bool:
        return self._layout_stale

    def line_length(self, idx: int) -> float:
        if 0 <= idx < len(self._line_lengths):
            return self._line_lengths[idx]
        return 0.0

    def _store_layout(self, line_lengths: list[float], item_offsets: list[float]) -> None:
        self._line_lengths = list(line_lengths)
        self._item_offsets = list(item_offsets)
        self._layout_stale = False

    def _invalidate_layout(self) -> None:
        self._layout_stale = True

    def _item_changed(self, item: Item) -> None:
        self._invalidate_layout()

    def __repr__(self) -> str:
        return (
            f"Group(duration_ticks={self._duration_ticks}, on_event={self._on_event}, "
            f"items={len(self._items)}, freeform={self.is_freeform})"
        )
