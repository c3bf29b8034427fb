"""Ring buffer of tick queues used by the direct backend."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from .compile_graph import BlockPos

logger = logging.getLogger(__name__)


class TickPriority(enum.IntEnum):
    """Order in which ticks due on the same game tick run; lower runs first."""

    HIGHEST = 0
    HIGHER = 1
    HIGH = 2
    NORMAL = 3


@dataclass(frozen=True)
class TickEntry:
    """A pending tick of the block at ``pos``."""

    pos: BlockPos
    ticks_left: int
    tick_priority: TickPriority


class TickScheduler:
    """Schedules node ticks up to ``NUM_QUEUES - 1`` game ticks ahead."""

    NUM_PRIORITIES = 4
    NUM_QUEUES = 16

    def __init__(self) -> None:
        self._queues: list[list[list[int]]] = [self._empty() for _ in range(self.NUM_QUEUES)]
        self._pos = 0

    @classmethod
    def _empty(cls) -> list[list[int]]:
        return [[] for _ in range(cls.NUM_PRIORITIES)]

    def schedule_tick(self, node: int, delay: int, priority: TickPriority) -> None:
        slot = (self._pos + delay) % self.NUM_QUEUES
        self._queues[slot][TickPriority(priority)].append(node)

    def queues_this_tick(self) -> list[int]:
        """Advance one game tick and take the nodes due now, highest priority first."""
        self._pos = (self._pos + 1) % self.NUM_QUEUES
        taken = self._queues[self._pos]
        self._queues[self._pos] = self._empty()
        return [node for queue in taken for node in queue]

    def end_tick(self) -> None:
        """Finish the current tick; anything scheduled into its own slot is dropped."""
        self._queues[self._pos] = self._empty()

    def has_pending_ticks(self) -> bool:
        return any(queue for queues in self._queues for queue in queues)

    def reset(self, positions: Sequence[Optional[BlockPos]]) -> list[TickEntry]:
        """Turn every pending tick into a world tick entry and clear the scheduler.

        ``positions`` maps node index to block position; nodes without one are skipped.
        """
        entries: list[TickEntry] = []
        for idx, queues in enumerate(self._queues):
            delay = (idx + self.NUM_QUEUES if self._pos >= idx else idx) - self._pos
            for priority, queue in zip(TickPriority, queues):
                for node in queue:
                    pos = positions[node] if node < len(positions) else None
                    if pos is None:
                        logger.warning(
                            "Cannot schedule tick for node %s because block information is missing",
                            node,
                        )
                        continue
                    entries.append(TickEntry(pos, delay, priority))
        self._queues = [self._empty() for _ in range(self.NUM_QUEUES)]
        return entries