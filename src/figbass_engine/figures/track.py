"""Figured bass track — Groups attached to time positions of one staff."""

from __future__ import annotations

import bisect
import logging
import math
from collections.abc import Callable, Iterator

from figbass_engine.figures.layout import LayoutConfig, compute_layout, load_layout_config
from figbass_engine.figures.models import Group, InvariantViolation

logger = logging.getLogger(__name__)


class FiguredBassTrack:
    """Figured bass Groups of one staff, keyed by tick.

    At most one Group exists per tick. A Group lives as long as its tick is
    in the track; removing the tick destroys it.
    """

    def __init__(self) -> None:
        self._ticks: list[int] = []
        self._groups: dict[int, Group] = {}

    def __len__(self) -> int:
        return len(self._ticks)

    def __iter__(self) -> Iterator[tuple[int, Group]]:
        """Iterate (tick, group) pairs in time order."""
        for tick in self._ticks:
            yield tick, self._groups[tick]

    def __contains__(self, tick: int) -> bool:
        return tick in self._groups

    @property
    def ticks(self) -> list[int]:
        return list(self._ticks)

    def group_at(self, tick: int) -> Group | None:
        return self._groups.get(tick)

    def add_group(
        self,
        tick: int,
        duration_ticks: int,
        on_event: bool = True,
    ) -> tuple[Group, bool]:
        """Create the Group at ``tick``, or return the one already there.

        A Group starting earlier whose duration reaches past ``tick`` is
        shortened so that it ends at ``tick``.

        Returns:
            (group, created) where ``created`` is False if a Group already
            existed at this tick.
        """
        if tick < 0:
            raise InvariantViolation(f"Tick must be >= 0, got {tick}")
        existing = self._groups.get(tick)
        if existing is not None:
            return existing, False

        group = Group(duration_ticks=duration_ticks, on_event=on_event)
        idx = bisect.bisect_left(self._ticks, tick)
        if idx > 0:
            prev_tick = self._ticks[idx - 1]
            prev = self._groups[prev_tick]
            if prev_tick + prev.duration_ticks > tick:
                logger.debug(
                    "Shortening figured bass at %d to end at %d", prev_tick, tick,
                )
                prev.duration_ticks = tick - prev_tick
        self._ticks.insert(idx, tick)
        self._groups[tick] = group
        return group, True

    def remove_group(self, tick: int) -> Group:
        """Remove and return the Group at ``tick``.

        Raises:
            KeyError: If there is no Group at this tick.
        """
        if tick not in self._groups:
            raise KeyError(f"No figured bass at tick {tick}")
        self._ticks.remove(tick)
        return self._groups.pop(tick)

    def next_event_tick(self, tick: int) -> int | None:
        """Tick of the first Group strictly after ``tick``."""
        idx = bisect.bisect_right(self._ticks, tick)
        if idx < len(self._ticks):
            return self._ticks[idx]
        return None

    def space_until_next_event(
        self,
        tick: int,
        tick_to_x: Callable[[int], float],
        end_tick: int | None = None,
    ) -> float:
        """Horizontal space from ``tick`` to the next Group (or ``end_tick``).

        Returns ``math.inf`` when there is nothing after ``tick``.
        """
        next_tick = self.next_event_tick(tick)
        if next_tick is None:
            next_tick = end_tick
        if next_tick is None or next_tick <= tick:
            return math.inf
        return tick_to_x(next_tick) - tick_to_x(tick)

    def layout(
        self,
        tick_to_x: Callable[[int], float],
        config: LayoutConfig | None = None,
        end_tick: int | None = None,
    ) -> dict[int, list[float]]:
        """Lay out every Group of the track.

        Args:
            tick_to_x: Maps a tick to a horizontal position; supplied by the
                score layout.
            config: Duration-to-space conversion.
            end_tick: Tick where the last Group's space ends, if any.

        Returns:
            Line lengths per Group, keyed by tick.
        """
        if config is None:
            config = load_layout_config()
        result: dict[int, list[float]] = {}
        for tick, group in self:
            space = self.space_until_next_event(tick, tick_to_x, end_tick)
            result[tick] = compute_layout(group, space, config)
        return result
