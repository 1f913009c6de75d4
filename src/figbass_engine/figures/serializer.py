"""Figured bass serializer — save and load tracks as JSON."""

from __future__ import annotations

import json
from pathlib import Path

from figbass_engine.figures.models import Group, Item
from figbass_engine.figures.track import FiguredBassTrack


def item_to_dict(item: Item) -> dict:
    return {
        "prefix": item.prefix.value,
        "digit": item.digit,
        "suffix": item.suffix.value,
        "continuation": item.continuation,
        "parenthesis": [p.value for p in item.parentheses],
    }


def item_from_dict(d: dict) -> Item:
    return Item(
        prefix=d.get("prefix", "none"),
        digit=d.get("digit", 0),
        suffix=d.get("suffix", "none"),
        continuation=d.get("continuation", False),
        parentheses=d.get("parenthesis"),
    )


def group_to_dict(group: Group) -> dict:
    """Convert a Group to a JSON-serializable dict."""
    return {
        "duration_ticks": group.duration_ticks,
        "on_event": group.on_event,
        "items": [item_to_dict(item) for item in group.items],
        "raw_fallback_text": group.raw_fallback_text,
    }


def group_from_dict(d: dict) -> Group:
    """Reconstruct a Group from a dict (parsed JSON).

    A freeform Group is restored by re-parsing its stored text, which keeps
    it freeform unless the token table has changed since it was saved.
    """
    group = Group(
        duration_ticks=d["duration_ticks"],
        on_event=d.get("on_event", True),
    )
    _fill_group(group, d)
    return group


def _fill_group(group: Group, d: dict) -> None:
    raw = d.get("raw_fallback_text")
    if raw is not None:
        group.set_text(raw)
    else:
        group.set_items(item_from_dict(i) for i in d.get("items", []))


def track_to_dict(track: FiguredBassTrack) -> dict:
    """Convert a FiguredBassTrack to a JSON-serializable dict."""
    return {
        "groups": [
            {"tick": tick, **group_to_dict(group)}
            for tick, group in track
        ],
    }


def track_from_dict(d: dict) -> FiguredBassTrack:
    """Reconstruct a FiguredBassTrack from a dict (parsed JSON)."""
    track = FiguredBassTrack()
    entries = sorted(d["groups"], key=lambda g: g["tick"])
    for entry in entries:
        group, created = track.add_group(
            entry["tick"], entry["duration_ticks"], entry.get("on_event", True),
        )
        if not created:
            raise ValueError(f"Duplicate figured bass at tick {entry['tick']}")
        _fill_group(group, entry)

    # add_group trims overlapping predecessors; restore the saved durations
    for entry in entries:
        track.group_at(entry["tick"]).duration_ticks = entry["duration_ticks"]
    return track


def save_track(track: FiguredBassTrack, path: str | Path) -> None:
    """Save a track to a JSON file.

    Args:
        track: The FiguredBassTrack to save.
        path: Output file path.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = track_to_dict(track)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def load_track(path: str | Path) -> FiguredBassTrack:
    """Load a track from a JSON file.

    Args:
        path: Path to the track JSON file.

    Returns:
        The reconstructed FiguredBassTrack.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Figured bass file not found: {path}")
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    return track_from_dict(data)
