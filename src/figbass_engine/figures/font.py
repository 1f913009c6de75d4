"""Figured bass fonts — glyph tables used by renderers.

A FiguredBassFont maps structured values (accidentals, parentheses, digits
combined with a stroke or plus) to the glyphs to draw. Fonts are read from
configs/figured_bass_fonts.json and passed explicitly to whoever renders;
parsing and layout never look at glyphs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from figbass_engine.config import load_config, load_json
from figbass_engine.figures.models import (
    DIGIT_NONE,
    PREFIX_MODIFIERS,
    Item,
    Modifier,
    Parenthesis,
)

logger = logging.getLogger(__name__)

_FONTS_CONFIG = "figured_bass_fonts.json"


class DigitStyle(Enum):
    """Digit drawing style."""

    MODERN = "modern"
    HISTORIC = "historic"


class DigitCombination(Enum):
    """How a suffix combines with the digit glyph."""

    PLAIN = "plain"
    PLUS = "plus"
    BACKSLASH = "backslash"
    SLASH = "slash"


_SUFFIX_COMBINATION = {
    Modifier.PLUS: DigitCombination.PLUS,
    Modifier.BACKSLASH: DigitCombination.BACKSLASH,
    Modifier.SLASH: DigitCombination.SLASH,
}

_SUFFIX_MARKS = frozenset(_SUFFIX_COMBINATION)


@dataclass(frozen=True)
class FiguredBassFont:
    """Glyph table of one figured bass font.

    Attributes:
        family: Font family name.
        display_name: Name shown to the user.
        default_size: Default point size.
        line_height: Distance between stacked lines, relative to the size.
        accidentals: Glyph per prefix-eligible Modifier.
        parentheses: Glyph per Parenthesis.
        suffix_marks: Glyph for plus/backslash/slash when drawn alone.
        digits: style -> combination -> 10 glyphs (index = digit).
    """

    family: str
    display_name: str
    default_size: float
    line_height: float
    accidentals: dict[Modifier, str]
    parentheses: dict[Parenthesis, str]
    suffix_marks: dict[Modifier, str]
    digits: dict[DigitStyle, dict[DigitCombination, tuple[str, ...]]]

    def accidental(self, modifier: Modifier) -> str:
        return self.accidentals[modifier]

    def parenthesis(self, parenthesis: Parenthesis) -> str:
        return self.parentheses[parenthesis]

    def digit(
        self,
        digit: int,
        combination: DigitCombination = DigitCombination.PLAIN,
        style: DigitStyle = DigitStyle.MODERN,
    ) -> str:
        return self.digits[style][combination][digit]


def font_from_dict(d: dict) -> FiguredBassFont:
    """Build a FiguredBassFont from its JSON form.

    Raises:
        KeyError: If a required entry is missing.
        ValueError: If a name is unknown or a table has the wrong size.
    """
    accidentals = {Modifier(k): v for k, v in d["accidentals"].items()}
    if set(accidentals) != PREFIX_MODIFIERS:
        raise ValueError("accidentals must cover exactly the prefix modifiers")
    parentheses = {Parenthesis(k): v for k, v in d["parentheses"].items()}
    if set(parentheses) != set(Parenthesis):
        raise ValueError("parentheses must cover every Parenthesis value")
    suffix_marks = {Modifier(k): v for k, v in d["suffix_marks"].items()}
    if set(suffix_marks) != _SUFFIX_MARKS:
        raise ValueError("suffix_marks must cover plus, backslash and slash")

    digits: dict[DigitStyle, dict[DigitCombination, tuple[str, ...]]] = {}
    for style in DigitStyle:
        table = d["digits"][style.value]
        digits[style] = {}
        for combination in DigitCombination:
            glyphs = tuple(table[combination.value])
            if len(glyphs) != 10:
                raise ValueError(
                    f"{style.value}/{combination.value} has {len(glyphs)} digits, expected 10"
                )
            digits[style][combination] = glyphs

    return FiguredBassFont(
        family=d["family"],
        display_name=d.get("display_name", d["family"]),
        default_size=float(d["default_size"]),
        line_height=float(d["line_height"]),
        accidentals=accidentals,
        parentheses=parentheses,
        suffix_marks=suffix_marks,
        digits=digits,
    )


def load_fonts(path: str | Path | None = None) -> dict[str, FiguredBassFont]:
    """Load all fonts from the fonts config, keyed by family.

    Malformed entries are logged and skipped.
    """
    data = load_json(path) if path is not None else load_config(_FONTS_CONFIG)
    fonts: dict[str, FiguredBassFont] = {}
    for idx, entry in enumerate(data.get("fonts", [])):
        try:
            font = font_from_dict(entry)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping figured bass font #%d: %s", idx, e)
            continue
        if font.family in fonts:
            logger.warning("Duplicate figured bass font %r ignored", font.family)
            continue
        fonts[font.family] = font
    return fonts


def font_names(fonts: dict[str, FiguredBassFont]) -> list[str]:
    """Display names of the given fonts, in config order."""
    return [f.display_name for f in fonts.values()]


def get_font(fonts: dict[str, FiguredBassFont], name: str) -> FiguredBassFont:
    """Look up a font by family or display name (case-insensitive).

    Raises:
        KeyError: If no font matches.
    """
    if name in fonts:
        return fonts[name]
    lowered = name.lower()
    for font in fonts.values():
        if font.family.lower() == lowered or font.display_name.lower() == lowered:
            return font
    raise KeyError(f"Figured bass font not found: {name}")


def item_glyphs(
    item: Item,
    font: FiguredBassFont,
    style: DigitStyle = DigitStyle.MODERN,
) -> list[str]:
    """Return the glyphs of one Item, left to right (empty parts omitted).

    Plus, backslash and slash suffixes are folded into the digit glyph when
    there is a digit. The continuation line is not a glyph.
    """
    p = [font.parenthesis(x) for x in item.parentheses]
    combination = DigitCombination.PLAIN
    suffix = ""
    if item.suffix in _SUFFIX_MARKS:
        if item.digit != DIGIT_NONE:
            combination = _SUFFIX_COMBINATION[item.suffix]
        else:
            suffix = font.suffix_marks[item.suffix]
    elif item.suffix is not Modifier.NONE:
        suffix = font.accidental(item.suffix)

    digit = font.digit(item.digit, combination, style) if item.digit != DIGIT_NONE else ""
    parts = [
        p[0], font.accidental(item.prefix), p[1], digit,
        p[2], suffix, p[3], p[4],
    ]
    return [g for g in parts if g]
