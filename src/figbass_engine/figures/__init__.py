"""Figured bass parsing, normalization and layout.

Provides:
- Item / Group data model with validating setters
- Parsing of authored text into Items, with freeform fallback
- Normalization of Items back to canonical text
- Layout of continuation lines and digit alignment
- Font glyph tables for renderers
- A track of Groups keyed by tick, and JSON serialization
"""

from figbass_engine.figures.font import (
    DigitStyle,
    FiguredBassFont,
    font_names,
    get_font,
    item_glyphs,
    load_fonts,
)
from figbass_engine.figures.layout import (
    LayoutConfig,
    compute_layout,
    duration_to_space,
    load_layout_config,
)
from figbass_engine.figures.models import (
    PREFIX_MODIFIERS,
    Group,
    InvariantViolation,
    Item,
    Modifier,
    Parenthesis,
)
from figbass_engine.figures.notation import (
    normalize_group,
    normalize_item,
    normalize_items,
    render_group_display,
)
from figbass_engine.figures.parser import ParseFailure, parse_item, parse_lines
from figbass_engine.figures.serializer import (
    load_track,
    save_track,
)
from figbass_engine.figures.tokens import TokenTable, load_token_table
from figbass_engine.figures.track import FiguredBassTrack

__all__ = [
    "DigitStyle",
    "FiguredBassFont",
    "FiguredBassTrack",
    "Group",
    "InvariantViolation",
    "Item",
    "LayoutConfig",
    "Modifier",
    "PREFIX_MODIFIERS",
    "Parenthesis",
    "ParseFailure",
    "TokenTable",
    "compute_layout",
    "duration_to_space",
    "font_names",
    "get_font",
    "item_glyphs",
    "load_fonts",
    "load_layout_config",
    "load_token_table",
    "load_track",
    "normalize_group",
    "normalize_item",
    "normalize_items",
    "parse_item",
    "parse_lines",
    "render_group_display",
    "save_track",
]
