"""The intermediate graph that compile passes read and rewrite."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Callable, Hashable, Optional


@dataclass(frozen=True)
class BlockPos:
    """A block position in the world."""

    x: int
    y: int
    z: int


class ComparatorMode(enum.Enum):
    COMPARE = "compare"
    SUBTRACT = "subtract"


class NodeKind(enum.Enum):
    REPEATER = "repeater"
    TORCH = "torch"
    COMPARATOR = "comparator"
    LAMP = "lamp"
    BUTTON = "button"
    LEVER = "lever"
    PRESSURE_PLATE = "pressure_plate"
    TRAPDOOR = "trapdoor"
    WIRE = "wire"
    CONSTANT = "constant"
    NOTE_BLOCK = "note_block"


@dataclass(frozen=True)
class NodeType:
    """The kind of a node together with the data that kind carries."""

    kind: NodeKind
    delay: int = 0
    facing_diode: bool = False
    mode: Optional[ComparatorMode] = None
    far_input: Optional[int] = None
    instrument: Hashable = None
    note: int = 0

    @classmethod
    def repeater(cls, delay: int, facing_diode: bool) -> NodeType:
        return cls(NodeKind.REPEATER, delay=delay, facing_diode=facing_diode)

    @classmethod
    def comparator(
        cls, mode: ComparatorMode, far_input: Optional[int], facing_diode: bool
    ) -> NodeType:
        return cls(
            NodeKind.COMPARATOR,
            mode=mode,
            far_input=far_input,
            facing_diode=facing_diode,
        )

    @classmethod
    def note_block(cls, instrument: Hashable, note: int) -> NodeType:
        return cls(NodeKind.NOTE_BLOCK, instrument=instrument, note=note)


@dataclass
class NodeState:
    powered: bool = False
    repeater_locked: bool = False
    output_strength: int = 0

    @classmethod
    def simple(cls, powered: bool) -> NodeState:
        return cls(powered=powered, output_strength=15 if powered else 0)

    @classmethod
    def repeater(cls, powered: bool, locked: bool) -> NodeState:
        return cls(
            powered=powered,
            repeater_locked=locked,
            output_strength=15 if powered else 0,
        )

    @classmethod
    def ss(cls, ss: int) -> NodeState:
        return cls(output_strength=ss)

    @classmethod
    def comparator(cls, powered: bool, ss: int) -> NodeState:
        return cls(powered=powered, output_strength=ss)


@dataclass
class CompileNode:
    ty: NodeType
    block: Optional[tuple[BlockPos, int]] = None
    state: NodeState = field(default_factory=NodeState)
    is_input: bool = False
    is_output: bool = False

    def is_removable(self) -> bool:
        """A node may be removed when it is neither an input nor an output."""
        return not self.is_input and not self.is_output


class LinkType(enum.Enum):
    DEFAULT = "default"
    SIDE = "side"


@dataclass
class CompileLink:
    ty: LinkType
    ss: int

    @classmethod
    def default(cls, ss: int) -> CompileLink:
        return cls(LinkType.DEFAULT, ss)

    @classmethod
    def side(cls, ss: int) -> CompileLink:
        return cls(LinkType.SIDE, ss)


@dataclass(frozen=True)
class Edge:
    """A directed edge of the graph; ``link`` is its mutable weight."""

    id: int
    source: int
    target: int
    link: CompileLink


class CompileGraph:
    """A directed multigraph whose node and edge indices stay stable on removal.

    Freed indices are reused most-recently-freed first, and the edges of a
    node are reported newest first.
    """

    def __init__(self) -> None:
        self._nodes: list[Optional[CompileNode]] = []
        self._free_nodes: list[int] = []
        self._edges: list[Optional[Edge]] = []
        self._free_edges: list[int] = []
        self._incoming: list[list[int]] = []
        self._outgoing: list[list[int]] = []
        self._node_count = 0
        self._edge_count = 0

    def add_node(self, node: CompileNode) -> int:
        if self._free_nodes:
            idx = self._free_nodes.pop()
            self._nodes[idx] = node
            self._incoming[idx] = []
            self._outgoing[idx] = []
        else:
            idx = len(self._nodes)
            self._nodes.append(node)
            self._incoming.append([])
            self._outgoing.append([])
        self._node_count += 1
        return idx

    def add_edge(self, source: int, target: int, link: CompileLink) -> int:
        for idx in (source, target):
            if not self.contains_node(idx):
                raise IndexError(f"node index {idx} is not in the graph")
        if self._free_edges:
            edge_id = self._free_edges.pop()
            self._edges[edge_id] = Edge(edge_id, source, target, link)
        else:
            edge_id = len(self._edges)
            self._edges.append(Edge(edge_id, source, target, link))
        self._outgoing[source].append(edge_id)
        self._incoming[target].append(edge_id)
        self._edge_count += 1
        return edge_id

    def remove_edge(self, edge_id: int) -> Optional[CompileLink]:
        edge = self.edge(edge_id)
        if edge is None:
            return None
        self._outgoing[edge.source].remove(edge_id)
        self._incoming[edge.target].remove(edge_id)
        self._edges[edge_id] = None
        self._free_edges.append(edge_id)
        self._edge_count -= 1
        return edge.link

    def remove_node(self, idx: int) -> Optional[CompileNode]:
        if not self.contains_node(idx):
            return None
        for edge_id in reversed(list(self._outgoing[idx])):
            self.remove_edge(edge_id)
        for edge_id in reversed(list(self._incoming[idx])):
            self.remove_edge(edge_id)
        node = self._nodes[idx]
        self._nodes[idx] = None
        self._free_nodes.append(idx)
        self._node_count -= 1
        return node

    def contains_node(self, idx: int) -> bool:
        return 0 <= idx < len(self._nodes) and self._nodes[idx] is not None

    def node_bound(self) -> int:
        """One more than the highest index in use, or 0 for an empty graph."""
        for idx in range(len(self._nodes) - 1, -1, -1):
            if self._nodes[idx] is not None:
                return idx + 1
        return 0

    def node_indices(self) -> list[int]:
        return [idx for idx, node in enumerate(self._nodes) if node is not None]

    def node_count(self) -> int:
        return self._node_count

    def edge_count(self) -> int:
        return self._edge_count

    def edge(self, edge_id: int) -> Optional[Edge]:
        """The edge with this id, or None if there is none."""
        if 0 <= edge_id < len(self._edges):
            return self._edges[edge_id]
        return None

    def edge_endpoints(self, edge_id: int) -> Optional[tuple[int, int]]:
        edge = self.edge(edge_id)
        return None if edge is None else (edge.source, edge.target)

    def edges(self) -> list[Edge]:
        return [edge for edge in self._edges if edge is not None]

    def _checked(self, idx: int) -> int:
        if not self.contains_node(idx):
            raise IndexError(f"node index {idx} is not in the graph")
        return idx

    def incoming(self, idx: int) -> list[Edge]:
        return [self._edges[e] for e in reversed(self._incoming[self._checked(idx)])]

    def outgoing(self, idx: int) -> list[Edge]:
        return [self._edges[e] for e in reversed(self._outgoing[self._checked(idx)])]

    def incoming_neighbors(self, idx: int) -> list[int]:
        return [edge.source for edge in self.incoming(idx)]

    def outgoing_neighbors(self, idx: int) -> list[int]:
        return [edge.target for edge in self.outgoing(idx)]

    def retain_edges(self, keep: Callable[[Edge], bool]) -> None:
        """Remove every edge for which ``keep(edge)`` is false."""
        for edge in self.edges():
            if not keep(edge):
                self.remove_edge(edge.id)

    def retain_nodes(self, keep: Callable[[int], bool]) -> None:
        """Remove every node whose index fails ``keep(idx)``."""
        for idx in self.node_indices():
            if not keep(idx):
                self.remove_node(idx)

    def __getitem__(self, idx: int) -> CompileNode:
        if not self.contains_node(idx):
            raise IndexError(f"node index {idx} is not in the graph")
        return self._nodes[idx]