#!/usr/bin/env python3
"""Build a sample figured bass track, lay it out and save it as JSON.

Prints each Group's display text with its continuation line lengths.
Output: data/samples/figured_bass_sample.json
"""

import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from figbass_engine.figures.font import get_font, item_glyphs, load_fonts
from figbass_engine.figures.notation import render_group_display
from figbass_engine.figures.serializer import save_track
from figbass_engine.figures.track import FiguredBassTrack

OUTPUT_PATH = (
    Path(__file__).resolve().parents[1] / "data" / "samples" / "figured_bass_sample.json"
)
TICKS_PER_QUARTER = 480
SPACE_PER_TICK = 4.0 / TICKS_PER_QUARTER

# (tick, duration, on_event, text): a short cadence in 4/4
SAMPLE = [
    (0, 960, True, "5\n3"),
    (960, 480, True, "6_\n4"),
    (1440, 480, False, "#6\n4\n(3)"),
    (1920, 960, True, "6\n#4\n2"),
    (2880, 960, True, "7\n#_"),
    (3840, 960, True, "4#3!"),  # deliberately malformed
]


def _tick_to_x(tick: int) -> float:
    return tick * SPACE_PER_TICK


def build_sample_track() -> FiguredBassTrack:
    track = FiguredBassTrack()
    for tick, duration, on_event, text in SAMPLE:
        group, _ = track.add_group(tick, duration, on_event)
        group.set_text(text)
    return track


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    track = build_sample_track()
    lengths = track.layout(_tick_to_x, end_tick=4800)
    font = get_font(load_fonts(), "Unicode")

    for tick, group in track:
        print(f"--- tick {tick} ({group.duration_ticks} ticks, "
              f"{'on event' if group.on_event else 'between events'})")
        if group.is_freeform:
            print(f"  freeform: {render_group_display(group)!r}")
            continue
        for item, length in zip(group.items, lengths[tick], strict=True):
            glyphs = "".join(item_glyphs(item, font))
            line = f"  {'-' * round(length)}" if length else ""
            print(f"  {item.normalized_text():<8} {glyphs:<8}{line}")

    save_track(track, OUTPUT_PATH)
    print(f"\nSaved to {OUTPUT_PATH}")


if __name__ == "__main__":
    main()
