"""Tests for the figured bass track and its JSON serialization."""

import json
import math
import tempfile
from pathlib import Path

import pytest

from figbass_engine.figures.layout import LayoutConfig
from figbass_engine.figures.models import InvariantViolation, Modifier
from figbass_engine.figures.serializer import (
    group_from_dict,
    group_to_dict,
    item_from_dict,
    load_track,
    save_track,
    track_from_dict,
    track_to_dict,
)
from figbass_engine.figures.track import FiguredBassTrack

DEFAULT = LayoutConfig()


def _sample_track() -> FiguredBassTrack:
    track = FiguredBassTrack()
    g0, _ = track.add_group(0, 960)
    g0.set_text("6_\n4")
    g1, _ = track.add_group(960, 480, on_event=False)
    g1.set_text("(b5)\n#_")
    g2, _ = track.add_group(1440, 480)
    g2.set_text("7!")
    return track


# ---------------------------------------------------------------------------
# Track
# ---------------------------------------------------------------------------


class TestTrack:
    def test_add_group_creates_once(self):
        track = FiguredBassTrack()
        group, created = track.add_group(480, 240)
        assert created
        again, created = track.add_group(480, 960)
        assert again is group
        assert not created
        assert group.duration_ticks == 240

    def test_ticks_sorted(self):
        track = FiguredBassTrack()
        for tick in (960, 0, 480):
            track.add_group(tick, 240)
        assert track.ticks == [0, 480, 960]
        assert [t for t, _ in track] == [0, 480, 960]
        assert len(track) == 3
        assert 480 in track

    def test_overlapping_group_is_shortened(self):
        track = FiguredBassTrack()
        first, _ = track.add_group(0, 1920)
        track.add_group(480, 480)
        assert first.duration_ticks == 480

    def test_non_overlapping_group_untouched(self):
        track = FiguredBassTrack()
        first, _ = track.add_group(0, 480)
        track.add_group(960, 480)
        assert first.duration_ticks == 480

    def test_negative_tick_rejected(self):
        with pytest.raises(InvariantViolation):
            FiguredBassTrack().add_group(-1, 480)

    def test_remove_group(self):
        track = FiguredBassTrack()
        group, _ = track.add_group(0, 480)
        assert track.remove_group(0) is group
        assert track.group_at(0) is None
        with pytest.raises(KeyError):
            track.remove_group(0)

    def test_next_event_tick(self):
        track = _sample_track()
        assert track.next_event_tick(0) == 960
        assert track.next_event_tick(500) == 960
        assert track.next_event_tick(1440) is None

    def test_space_until_next_event(self):
        track = _sample_track()
        to_x = lambda tick: tick / 120.0  # noqa: E731
        assert track.space_until_next_event(0, to_x) == 8.0
        assert track.space_until_next_event(1440, to_x) == math.inf
        assert track.space_until_next_event(1440, to_x, end_tick=1920) == 4.0

    def test_layout_caps_lines_at_next_event(self):
        track = _sample_track()
        # compressed spacing: 960 ticks only get 4.0 of space
        lengths = track.layout(lambda tick: tick / 240.0, DEFAULT)
        assert lengths[0] == [4.0, 0.0]
        assert lengths[960] == [0.0, 2.0]
        assert lengths[1440] == []
        assert all(not g.layout_stale for _, g in track)

    def test_layout_unconstrained_uses_duration(self):
        track = _sample_track()
        lengths = track.layout(lambda tick: tick / 60.0, DEFAULT)
        assert lengths[0] == [8.0, 0.0]


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


class TestSerialization:
    def test_item_dict_fields(self):
        track = _sample_track()
        d = group_to_dict(track.group_at(960))
        assert d["duration_ticks"] == 480
        assert d["on_event"] is False
        assert d["raw_fallback_text"] is None
        assert d["items"][0] == {
            "prefix": "flat",
            "digit": 5,
            "suffix": "none",
            "continuation": False,
            "parenthesis": ["round_open", "none", "round_closed", "none", "none"],
        }

    def test_round_trip_dict(self):
        track = _sample_track()
        restored = track_from_dict(track_to_dict(track))
        assert restored.ticks == track.ticks
        for (_, orig), (_, rest) in zip(track, restored, strict=True):
            assert rest.duration_ticks == orig.duration_ticks
            assert rest.on_event == orig.on_event
            assert rest.items == orig.items
            assert rest.text == orig.text

    def test_overlapping_duration_survives_round_trip(self):
        track = FiguredBassTrack()
        first, _ = track.add_group(0, 480)
        track.add_group(480, 480)
        first.duration_ticks = 960
        restored = track_from_dict(track_to_dict(track))
        assert restored.group_at(0).duration_ticks == 960
        assert restored.group_at(480).duration_ticks == 480

    def test_freeform_survives_round_trip(self):
        track = _sample_track()
        restored = track_from_dict(track_to_dict(track))
        group = restored.group_at(1440)
        assert group.is_freeform
        assert group.raw_fallback_text == "7!"

    def test_round_trip_file(self):
        track = _sample_track()
        with tempfile.NamedTemporaryFile(suffix=".json", delete=False) as f:
            path = Path(f.name)
        try:
            save_track(track, path)
            restored = load_track(path)
            assert restored.group_at(0).text == "6_\n4"
            assert restored.group_at(960).items[1].suffix == Modifier.SHARP
        finally:
            path.unlink(missing_ok=True)

    def test_json_is_valid(self):
        d = track_to_dict(_sample_track())
        parsed = json.loads(json.dumps(d, ensure_ascii=False))
        assert [g["tick"] for g in parsed["groups"]] == [0, 960, 1440]

    def test_load_nonexistent_raises(self):
        with pytest.raises(FileNotFoundError):
            load_track("/nonexistent/path.json")

    def test_invalid_digit_rejected(self):
        with pytest.raises(InvariantViolation):
            item_from_dict({"digit": 12})

    def test_invalid_modifier_rejected(self):
        with pytest.raises(ValueError):
            item_from_dict({"prefix": "plus", "digit": 6})

    def test_group_from_dict_defaults(self):
        group = group_from_dict({"duration_ticks": 240, "items": [{"digit": 6}]})
        assert group.on_event is True
        assert group.text == "6"

    def test_duplicate_tick_rejected(self):
        data = {"groups": [
            {"tick": 0, "duration_ticks": 480, "items": []},
            {"tick": 0, "duration_ticks": 480, "items": []},
        ]}
        with pytest.raises(ValueError, match="Duplicate"):
            track_from_dict(data)
