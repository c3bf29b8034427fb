"""Node representation used by the direct backend."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Hashable, Optional

from .compile_graph import ComparatorMode, NodeType

MAX_NODE_INDEX = 1 << 27
NUM_STRENGTHS = 16


@dataclass(frozen=True)
class ForwardLink:
    """A link from a node to one it updates, with its distance in signal strength."""

    node: int
    side: bool
    ss: int

    def __post_init__(self) -> None:
        if not 0 <= self.node < MAX_NODE_INDEX:
            raise ValueError(f"node index out of range: {self.node}")
        # Weight clamping during compile keeps every distance below 15.
        if not 0 <= self.ss < 15:
            raise ValueError(f"link distance must be between 0 and 14: {self.ss}")


def _zero_counts() -> list[int]:
    return [0] * NUM_STRENGTHS


@dataclass
class NodeInput:
    """How many inputs of a node currently arrive at each signal strength."""

    ss_counts: list[int] = field(default_factory=_zero_counts)

    def __post_init__(self) -> None:
        if len(self.ss_counts) != NUM_STRENGTHS:
            raise ValueError(
                f"expected {NUM_STRENGTHS} signal strength counts, got {len(self.ss_counts)}"
            )

    def any_powered(self) -> bool:
        """True if at least one input carries a signal above zero."""
        return any(self.ss_counts[1:])

    def highest(self) -> int:
        """The strongest signal among the inputs, or 0 if there is none."""
        for strength in range(NUM_STRENGTHS - 1, 0, -1):
            if self.ss_counts[strength]:
                return strength
        return 0

    def move(self, old_power: int, new_power: int) -> None:
        """Move one input from ``old_power`` to ``new_power``."""
        if self.ss_counts[old_power] <= 0:
            raise ValueError(f"no input at signal strength {old_power}")
        self.ss_counts[old_power] -= 1
        self.ss_counts[new_power] += 1


@dataclass
class Node:
    """A backend node with its running state."""

    ty: NodeType
    default_inputs: NodeInput = field(default_factory=NodeInput)
    side_inputs: NodeInput = field(default_factory=NodeInput)
    updates: list[ForwardLink] = field(default_factory=list)
    is_io: bool = False
    powered: bool = False
    locked: bool = False
    output_power: int = 0
    changed: bool = False
    pending_tick: bool = False
    noteblock_id: Optional[int] = None
    instrument: Hashable = None


def calculate_comparator_output(
    mode: ComparatorMode, input_strength: int, power_on_sides: int
) -> int:
    """The output of a comparator for signal strengths in the range 0 to 15."""
    difference = input_strength - power_on_sides
    if difference < 0:
        return 0
    if mode is ComparatorMode.SUBTRACT:
        return difference
    return input_strength