"""Figured bass layout — continuation line lengths and digit alignment.

For each Item with a continuation line, the line extends for the Group's
duration converted to horizontal space, but never past the next annotation
event. Items without a continuation line get a length of 0.

Items of a Group are also aligned horizontally so that their digits sit in
one column: each Item is shifted left by the width of whatever precedes its
digit (its suffix when it has no digit).

Layout is a pure function of (items, duration_ticks, space_until_next_event)
and the LayoutConfig. Results are written back into the Group.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from figbass_engine.config import load_config, load_json
from figbass_engine.figures.models import (
    Group,
    Item,
    Modifier,
    Parenthesis,
)

_LAYOUT_CONFIG = "layout.json"


@dataclass(frozen=True)
class LayoutConfig:
    """Duration-to-space conversion and glyph metrics.

    Attributes:
        ticks_per_quarter: Tick resolution of a quarter note.
        space_per_quarter: Horizontal space (staff spaces) per quarter note.
        glyph_advance: Width of one glyph, used for digit alignment.
    """

    ticks_per_quarter: int = 480
    space_per_quarter: float = 4.0
    glyph_advance: float = 1.0

    def __post_init__(self) -> None:
        if self.ticks_per_quarter <= 0:
            raise ValueError(
                f"ticks_per_quarter must be positive, got {self.ticks_per_quarter}"
            )
        if self.space_per_quarter < 0 or self.glyph_advance < 0:
            raise ValueError("space_per_quarter and glyph_advance must be >= 0")


_LAYOUT_CONFIG_CACHE: LayoutConfig | None = None


def load_layout_config(path: str | Path | None = None) -> LayoutConfig:
    """Load the layout config (cached when read from the default location)."""
    global _LAYOUT_CONFIG_CACHE  # noqa: PLW0603
    if path is not None:
        return LayoutConfig(**load_json(path))
    if _LAYOUT_CONFIG_CACHE is None:
        _LAYOUT_CONFIG_CACHE = LayoutConfig(**load_config(_LAYOUT_CONFIG))
    return _LAYOUT_CONFIG_CACHE


def duration_to_space(duration_ticks: int, config: LayoutConfig) -> float:
    """Convert a duration in ticks to horizontal space."""
    return duration_ticks / config.ticks_per_quarter * config.space_per_quarter


def _glyphs_before_column(item: Item) -> int:
    """Number of glyphs drawn left of the alignment column of an Item."""
    p = [par is not Parenthesis.NONE for par in item.parentheses]
    count = int(p[0]) + int(item.prefix is not Modifier.NONE) + int(p[1])
    if item.has_digit:
        return count
    # no digit: the column is the suffix
    return count + int(p[2])


def compute_alignment(items: Sequence[Item], config: LayoutConfig) -> list[float]:
    """Horizontal offset of each Item so that digits line up in one column."""
    counts = np.array([_glyphs_before_column(item) for item in items], dtype=float)
    offsets = -counts * config.glyph_advance
    return [float(x) + 0.0 for x in offsets]  # -0.0 -> 0.0


def compute_line_lengths(
    items: Sequence[Item],
    duration_ticks: int,
    space_until_next_event: float,
    config: LayoutConfig,
) -> list[float]:
    """Continuation line length for each Item (0 for Items without one)."""
    if math.isnan(space_until_next_event):
        raise ValueError("space_until_next_event must be a number, got NaN")
    extent = min(
        duration_to_space(duration_ticks, config),
        max(space_until_next_event, 0.0),
    )
    flags = np.array([item.continuation for item in items], dtype=bool)
    lengths = np.where(flags, extent, 0.0)
    return [float(x) for x in lengths]


def compute_layout(
    group: Group,
    space_until_next_event: float = math.inf,
    config: LayoutConfig | None = None,
) -> list[float]:
    """Lay out a Group and store the results in it.

    Args:
        group: The Group to lay out. A freeform Group has no Items and gets
            empty results.
        space_until_next_event: Horizontal space available before the next
            annotation event; ``math.inf`` when unconstrained.
        config: Duration-to-space conversion (defaults to configs/layout.json).

    Returns:
        The line length of each Item, in Item order.
    """
    if config is None:
        config = load_layout_config()

    items = group.items
    line_lengths = compute_line_lengths(
        items, group.duration_ticks, space_until_next_event, config,
    )
    offsets = compute_alignment(items, config)
    group._store_layout(line_lengths, offsets)
    return line_lengths
