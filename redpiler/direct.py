"""Backend that simulates the compiled graph directly, without code generation."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Hashable, Iterable, Optional

from .compile_graph import (
    BlockPos,
    CompileGraph,
    ComparatorMode,
    LinkType,
    NodeKind,
)
from .direct_node import ForwardLink, Node, NodeInput, calculate_comparator_output
from .options import CompilerOptions
from .scheduler import TickEntry, TickPriority, TickScheduler
from .task_monitor import TaskMonitor

logger = logging.getLogger(__name__)

MAX_INPUTS = 255
DEFAULT_DOT_PATH = Path("backend_graph.dot")


@dataclass(frozen=True)
class BlockChange:
    """The state a block in the world should take.

    ``powered`` applies to every block but wire, ``power`` to wire and
    ``locked`` to repeaters.
    """

    pos: BlockPos
    block_id: int
    kind: NodeKind
    powered: bool
    power: int
    locked: bool


@dataclass(frozen=True)
class NotePlay:
    """A note block that should play its note."""

    pos: BlockPos
    instrument: Hashable
    note: int


@dataclass
class FlushResult:
    """Everything the world must apply after a flush or reset."""

    block_changes: list[BlockChange] = field(default_factory=list)
    note_plays: list[NotePlay] = field(default_factory=list)
    ticks: list[TickEntry] = field(default_factory=list)
    comparator_outputs: dict[BlockPos, int] = field(default_factory=dict)


def _compile_node(
    graph: CompileGraph,
    idx: int,
    nodes_map: dict[int, int],
    noteblocks: list[NotePlay],
) -> Node:
    node = graph[idx]
    default_inputs = NodeInput()
    side_inputs = NodeInput()
    default_count = 0
    side_count = 0
    for edge in graph.incoming(idx):
        ss = max(graph[edge.source].state.output_strength - edge.link.ss, 0)
        if edge.link.ty is LinkType.DEFAULT:
            if default_count >= MAX_INPUTS:
                raise ValueError(
                    f"Exceeded the maximum number of default inputs {MAX_INPUTS}"
                )
            default_count += 1
            default_inputs.ss_counts[ss] += 1
        else:
            if side_count >= MAX_INPUTS:
                raise ValueError(f"Exceeded the maximum number of side inputs {MAX_INPUTS}")
            side_count += 1
            side_inputs.ss_counts[ss] += 1

    updates: list[ForwardLink] = []
    if node.ty.kind is not NodeKind.CONSTANT:
        ordered = sorted(graph.outgoing(idx), key=lambda e: nodes_map[e.target])
        groups: dict[NodeKind, list] = {}
        for edge in ordered:
            groups.setdefault(graph[edge.target].ty.kind, []).append(edge)
        updates = [
            ForwardLink(nodes_map[edge.target], edge.link.ty is LinkType.SIDE, edge.link.ss)
            for group in groups.values()
            for edge in group
        ]

    noteblock_id = None
    if node.ty.kind is NodeKind.NOTE_BLOCK:
        if node.block is None:
            raise ValueError("note block node has no block position")
        noteblock_id = len(noteblocks)
        noteblocks.append(NotePlay(node.block[0], node.ty.instrument, node.ty.note))

    return Node(
        ty=node.ty,
        default_inputs=default_inputs,
        side_inputs=side_inputs,
        updates=updates,
        is_io=node.is_input or node.is_output,
        powered=node.state.powered,
        locked=node.state.repeater_locked,
        output_power=node.state.output_strength,
        noteblock_id=noteblock_id,
        instrument=node.ty.instrument,
    )


_LABELS = {
    NodeKind.TORCH: "Torch",
    NodeKind.LAMP: "Lamp",
    NodeKind.BUTTON: "Button",
    NodeKind.LEVER: "Lever",
    NodeKind.PRESSURE_PLATE: "PressurePlate",
    NodeKind.TRAPDOOR: "Trapdoor",
    NodeKind.WIRE: "Wire",
    NodeKind.NOTE_BLOCK: "NoteBlock",
}


class DirectBackend:
    """Simulates redstone on the compiled graph node by node."""

    def __init__(self, dot_path: Path | str = DEFAULT_DOT_PATH) -> None:
        self.dot_path = Path(dot_path)
        self._nodes: list[Node] = []
        self._blocks: list[Optional[BlockChange]] = []
        self._pos_map: dict[BlockPos, int] = {}
        self._scheduler = TickScheduler()
        self._events: list[int] = []
        self._noteblocks: list[NotePlay] = []

    # -- compile -----------------------------------------------------------

    def compile(
        self,
        graph: CompileGraph,
        ticks: Iterable[TickEntry] = (),
        options: Optional[CompilerOptions] = None,
        monitor: Optional[TaskMonitor] = None,
    ) -> None:
        """Lower the compile graph into backend nodes and schedule pending ticks."""
        options = options or CompilerOptions()
        indices = graph.node_indices()
        nodes_map = {idx: i for i, idx in enumerate(indices)}

        self._noteblocks = []
        self._events = []
        self._scheduler = TickScheduler()
        self._nodes = [_compile_node(graph, idx, nodes_map, self._noteblocks) for idx in indices]

        self._blocks = []
        for idx, node in zip(indices, self._nodes):
            block = graph[idx].block
            if block is None:
                self._blocks.append(None)
                continue
            pos, block_id = block
            self._blocks.append(
                BlockChange(pos, block_id, node.ty.kind, node.powered, node.output_power, node.locked)
            )
        self._pos_map = {
            block.pos: i for i, block in enumerate(self._blocks) if block is not None
        }

        for entry in ticks:
            node_id = self._pos_map.get(entry.pos)
            if node_id is not None:
                self._scheduler.schedule_tick(node_id, entry.ticks_left, entry.tick_priority)
                self._nodes[node_id].pending_tick = True

        if options.export_dot_graph:
            self.dot_path.write_text(self.to_dot())

    # -- signal propagation ------------------------------------------------

    def _schedule(self, node_id: int, delay: int, priority: TickPriority) -> None:
        self._nodes[node_id].pending_tick = True
        self._scheduler.schedule_tick(node_id, delay, priority)

    def _set_node(self, node_id: int, powered: bool, new_power: int) -> None:
        node = self._nodes[node_id]
        old_power = node.output_power
        node.changed = True
        node.powered = powered
        node.output_power = new_power
        for link in node.updates:
            old = max(old_power - link.ss, 0)
            new = max(new_power - link.ss, 0)
            if old == new:
                continue
            target = self._nodes[link.node]
            inputs = target.side_inputs if link.side else target.default_inputs
            inputs.move(old, new)
            self._update_node(link.node)

    @staticmethod
    def _comparator_output(node: Node) -> int:
        input_power = node.default_inputs.highest()
        side_power = node.side_inputs.highest()
        far_input = node.ty.far_input
        if far_input is not None and input_power < 15:
            input_power = far_input
        return calculate_comparator_output(node.ty.mode, input_power, side_power)

    def _update_node(self, node_id: int) -> None:
        node = self._nodes[node_id]
        kind = node.ty.kind
        if kind is NodeKind.REPEATER:
            should_be_locked = node.side_inputs.any_powered()
            if should_be_locked != node.locked:
                node.locked = should_be_locked
                node.changed = True
            if node.locked or node.pending_tick:
                return
            should_be_powered = node.default_inputs.any_powered()
            if should_be_powered != node.powered:
                if node.ty.facing_diode:
                    priority = TickPriority.HIGHEST
                elif not should_be_powered:
                    priority = TickPriority.HIGHER
                else:
                    priority = TickPriority.HIGH
                self._schedule(node_id, node.ty.delay, priority)
        elif kind is NodeKind.TORCH:
            if node.pending_tick:
                return
            if node.powered != (not node.default_inputs.any_powered()):
                self._schedule(node_id, 1, TickPriority.NORMAL)
        elif kind is NodeKind.COMPARATOR:
            if node.pending_tick:
                return
            if self._comparator_output(node) != node.output_power:
                priority = TickPriority.HIGH if node.ty.facing_diode else TickPriority.NORMAL
                self._schedule(node_id, 1, priority)
        elif kind is NodeKind.LAMP:
            should_be_lit = node.default_inputs.any_powered()
            if node.powered and not should_be_lit:
                self._schedule(node_id, 2, TickPriority.NORMAL)
            elif not node.powered and should_be_lit:
                node.powered = True
                node.changed = True
        elif kind is NodeKind.TRAPDOOR:
            should_be_powered = node.default_inputs.any_powered()
            if node.powered != should_be_powered:
                node.powered = should_be_powered
                node.changed = True
        elif kind is NodeKind.WIRE:
            input_power = node.default_inputs.highest()
            if node.output_power != input_power:
                node.output_power = input_power
                node.changed = True
        elif kind is NodeKind.NOTE_BLOCK:
            should_be_powered = node.default_inputs.any_powered()
            if node.powered != should_be_powered:
                node.powered = should_be_powered
                node.changed = True
                if should_be_powered:
                    self._events.append(node.noteblock_id)

    def _tick_node(self, node_id: int) -> None:
        node = self._nodes[node_id]
        node.pending_tick = False
        kind = node.ty.kind
        if kind is NodeKind.REPEATER:
            if node.locked:
                return
            should_be_powered = node.default_inputs.any_powered()
            if node.powered and not should_be_powered:
                self._set_node(node_id, False, 0)
            elif not node.powered:
                if not should_be_powered:
                    self._schedule(node_id, node.ty.delay, TickPriority.HIGHER)
                self._set_node(node_id, True, 15)
        elif kind is NodeKind.TORCH:
            should_be_powered = not node.default_inputs.any_powered()
            if node.powered != should_be_powered:
                self._set_node(node_id, should_be_powered, 15 if should_be_powered else 0)
        elif kind is NodeKind.COMPARATOR:
            new_strength = self._comparator_output(node)
            if new_strength != node.output_power:
                self._set_node(node_id, new_strength > 0, new_strength)
        elif kind is NodeKind.LAMP:
            if node.powered and not node.default_inputs.any_powered():
                self._set_node(node_id, False, 0)
        elif kind is NodeKind.BUTTON:
            if node.powered:
                self._set_node(node_id, False, 0)

    # -- public interface ----------------------------------------------------

    def tick(self) -> None:
        """Advance the simulation by one game tick."""
        for node_id in self._scheduler.queues_this_tick():
            self._tick_node(node_id)
        self._scheduler.end_tick()

    def on_use_block(self, pos: BlockPos) -> None:
        """Press a button or flip a lever at ``pos``."""
        node_id = self._pos_map[pos]
        node = self._nodes[node_id]
        if node.ty.kind is NodeKind.BUTTON:
            if node.powered:
                return
            self._scheduler.schedule_tick(node_id, 10, TickPriority.NORMAL)
            self._set_node(node_id, True, 15)
        elif node.ty.kind is NodeKind.LEVER:
            powered = not node.powered
            self._set_node(node_id, powered, 15 if powered else 0)
        else:
            logger.warning("Tried to use a %s redpiler node", node.ty.kind.value)

    def set_pressure_plate(self, pos: BlockPos, powered: bool) -> None:
        node_id = self._pos_map[pos]
        node = self._nodes[node_id]
        if node.ty.kind is NodeKind.PRESSURE_PLATE:
            self._set_node(node_id, powered, 15 if powered else 0)
        else:
            logger.warning("Tried to set pressure plate state for a %s", node.ty.kind.value)

    def flush(self, io_only: bool = False) -> FlushResult:
        """Collect note plays and changed blocks since the last flush."""
        result = FlushResult()
        for noteblock_id in self._events:
            result.note_plays.append(self._noteblocks[noteblock_id])
        self._events.clear()

        for i, node in enumerate(self._nodes):
            cached = self._blocks[i]
            if cached is None:
                continue
            if node.changed and (not io_only or node.is_io):
                kind = cached.kind
                updated = dataclasses.replace(
                    cached,
                    powered=node.powered if kind is not NodeKind.WIRE else cached.powered,
                    power=node.output_power if kind is NodeKind.WIRE else cached.power,
                    locked=node.locked if kind is NodeKind.REPEATER else cached.locked,
                )
                self._blocks[i] = updated
                result.block_changes.append(updated)
            node.changed = False
        return result

    def reset(self, io_only: bool = False) -> FlushResult:
        """Hand pending ticks and final state back to the world and clear the backend."""
        result = FlushResult()
        result.ticks = self._scheduler.reset(
            [block.pos if block is not None else None for block in self._blocks]
        )
        for node, cached in zip(self._nodes, self._blocks):
            if cached is None:
                continue
            if node.ty.kind is NodeKind.COMPARATOR:
                result.comparator_outputs[cached.pos] = node.output_power
            if io_only and not node.is_io:
                result.block_changes.append(cached)

        self._nodes = []
        self._blocks = []
        self._pos_map.clear()
        self._noteblocks.clear()
        self._events.clear()
        return result

    def has_pending_ticks(self) -> bool:
        return self._scheduler.has_pending_ticks()

    def inspect(self, pos: BlockPos) -> Optional[Node]:
        """The node at ``pos`` for debugging, or None if there is none."""
        node_id = self._pos_map.get(pos)
        if node_id is None:
            logger.debug("could not find node at pos %s", pos)
            return None
        node = self._nodes[node_id]
        logger.debug("Node %d: %r", node_id, node)
        return node

    def to_dot(self) -> str:
        """A Graphviz description of the backend graph; wire nodes are left out."""
        lines = ["digraph {"]
        for node_id, node in enumerate(self._nodes):
            kind = node.ty.kind
            if kind is NodeKind.WIRE:
                continue
            if kind is NodeKind.REPEATER:
                label = f"Repeater({node.ty.delay})"
            elif kind is NodeKind.COMPARATOR:
                mode = "Cmp" if node.ty.mode is ComparatorMode.COMPARE else "Sub"
                label = f"Comparator({mode})"
            elif kind is NodeKind.CONSTANT:
                label = f"Constant({node.output_power})"
            else:
                label = _LABELS[kind]
            block = self._blocks[node_id] if node_id < len(self._blocks) else None
            pos = (
                f"{block.pos.x}, {block.pos.y}, {block.pos.z}"
                if block is not None
                else "No Pos"
            )
            lines.append(f'    n{node_id} [ label = "{label}\\n({pos})" ];')
            for link in node.updates:
                color = ',color="blue"' if link.side else ""
                lines.append(f'    n{node_id} -> n{link.node} [ label = "{link.ss}"{color} ];')
        lines.append("}")
        return "\n".join(lines) + "\n"