"""Binary exchange format for compiled redstone graphs.

All integers are little-endian with fixed widths; sequence lengths and node
ids are 64-bit, enum variants 32-bit, options and booleans one byte.
"""

from __future__ import annotations

import io
import struct
from dataclasses import dataclass, field
from typing import BinaryIO, Callable, Optional, Sequence

from .compile_graph import BlockPos, ComparatorMode, LinkType, NodeKind


class GraphFormatError(ValueError):
    """Raised when graph data cannot be encoded or decoded."""


_KINDS = list(NodeKind)
_MODES = [ComparatorMode.COMPARE, ComparatorMode.SUBTRACT]
_LINK_TYPES = [LinkType.DEFAULT, LinkType.SIDE]


@dataclass(frozen=True)
class NodeType:
    """A node kind; repeaters carry a delay and comparators a mode."""

    kind: NodeKind
    delay: int = 0
    mode: Optional[ComparatorMode] = None


@dataclass(frozen=True)
class NodeState:
    powered: bool = False
    repeater_locked: bool = False
    output_strength: int = 0


@dataclass(frozen=True)
class Link:
    ty: LinkType
    weight: int
    to: int


@dataclass
class Node:
    ty: NodeType
    block: Optional[tuple[BlockPos, int]] = None
    state: NodeState = field(default_factory=NodeState)
    facing_diode: bool = False
    comparator_far_input: Optional[int] = None
    inputs: list[Link] = field(default_factory=list)
    updates: list[int] = field(default_factory=list)


def _pack(fmt: str, value: object, what: str) -> bytes:
    try:
        return struct.pack(fmt, value)
    except struct.error as exc:
        raise GraphFormatError(f"{what} cannot be encoded: {value!r}") from exc


def _bool(value: bool) -> bytes:
    return b"\x01" if value else b"\x00"


def _index(choices: list, value: object, what: str) -> int:
    try:
        return choices.index(value)
    except ValueError as exc:
        raise GraphFormatError(f"invalid {what}: {value!r}") from exc


def _encode_node(out: bytearray, node: Node) -> None:
    kind = node.ty.kind
    out += _pack("<I", _index(_KINDS, kind, "node kind"), "node kind")
    if kind is NodeKind.REPEATER:
        out += _pack("<B", node.ty.delay, "repeater delay")
    elif kind is NodeKind.COMPARATOR:
        out += _pack("<I", _index(_MODES, node.ty.mode, "comparator mode"), "mode")

    if node.block is None:
        out += b"\x00"
    else:
        pos, block_id = node.block
        out += b"\x01"
        out += _pack("<iii", pos.x, "x") if False else b""
        out += _pack("<i", pos.x, "block x")
        out += _pack("<i", pos.y, "block y")
        out += _pack("<i", pos.z, "block z")
        out += _pack("<I", block_id, "block id")

    out += _bool(node.state.powered)
    out += _bool(node.state.repeater_locked)
    out += _pack("<B", node.state.output_strength, "output strength")
    out += _bool(node.facing_diode)

    if node.comparator_far_input is None:
        out += b"\x00"
    else:
        out += b"\x01" + _pack("<B", node.comparator_far_input, "far input")

    out += _pack("<Q", len(node.inputs), "input count")
    for link in node.inputs:
        out += _pack("<I", _index(_LINK_TYPES, link.ty, "link type"), "link type")
        out += _pack("<B", link.weight, "link weight")
        out += _pack("<Q", link.to, "link target")

    out += _pack("<Q", len(node.updates), "update count")
    for update in node.updates:
        out += _pack("<Q", update, "update target")


def serialize(nodes: Sequence[Node]) -> bytes:
    """Encode a list of nodes."""
    out = bytearray(_pack("<Q", len(nodes), "node count"))
    for node in nodes:
        _encode_node(out, node)
    return bytes(out)


def serialize_into(writer: BinaryIO, nodes: Sequence[Node]) -> None:
    """Encode a list of nodes and write it to a binary stream."""
    writer.write(serialize(nodes))


class _Decoder:
    def __init__(self, read: Callable[[int], bytes]) -> None:
        self._read = read

    def take(self, n: int) -> bytes:
        chunks = []
        remaining = n
        while remaining:
            chunk = self._read(remaining)
            if not chunk:
                raise GraphFormatError("unexpected end of data")
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def unpack(self, fmt: str) -> int:
        return struct.unpack(fmt, self.take(struct.calcsize(fmt)))[0]

    def flag(self, what: str) -> bool:
        value = self.unpack("<B")
        if value > 1:
            raise GraphFormatError(f"invalid {what} byte: {value}")
        return value == 1

    def variant(self, choices: list, what: str):
        idx = self.unpack("<I")
        if idx >= len(choices):
            raise GraphFormatError(f"invalid {what} variant: {idx}")
        return choices[idx]

    def node(self) -> Node:
        kind = self.variant(_KINDS, "node type")
        if kind is NodeKind.REPEATER:
            ty = NodeType(kind, delay=self.unpack("<B"))
        elif kind is NodeKind.COMPARATOR:
            ty = NodeType(kind, mode=self.variant(_MODES, "comparator mode"))
        else:
            ty = NodeType(kind)

        block = None
        if self.flag("option tag"):
            x, y, z = self.unpack("<i"), self.unpack("<i"), self.unpack("<i")
            block = (BlockPos(x, y, z), self.unpack("<I"))

        state = NodeState(
            powered=self.flag("bool"),
            repeater_locked=self.flag("bool"),
            output_strength=self.unpack("<B"),
        )
        facing_diode = self.flag("bool")
        far_input = self.unpack("<B") if self.flag("option tag") else None

        inputs = []
        for _ in range(self.unpack("<Q")):
            link_ty = self.variant(_LINK_TYPES, "link type")
            weight = self.unpack("<B")
            inputs.append(Link(link_ty, weight, self.unpack("<Q")))
        updates = [self.unpack("<Q") for _ in range(self.unpack("<Q"))]

        return Node(
            ty=ty,
            block=block,
            state=state,
            facing_diode=facing_diode,
            comparator_far_input=far_input,
            inputs=inputs,
            updates=updates,
        )

    def nodes(self) -> list[Node]:
        return [self.node() for _ in range(self.unpack("<Q"))]


def deserialize(data: bytes) -> list[Node]:
    """Decode a list of nodes; bytes after the encoded list are ignored."""
    return _Decoder(io.BytesIO(bytes(data)).read).nodes()


def deserialize_from(reader: BinaryIO) -> list[Node]:
    """Decode a list of nodes, reading only as many bytes as it takes."""
    return _Decoder(reader.read).nodes()