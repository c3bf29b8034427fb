"""Passes that evaluate and merge logic whose inputs are all constant."""

from __future__ import annotations

import logging
from typing import Optional

from .compile_graph import (
    CompileGraph,
    CompileNode,
    ComparatorMode,
    LinkType,
    NodeKind,
    NodeState,
    NodeType,
)
from .options import CompilerOptions
from .pass_base import Pass

logger = logging.getLogger(__name__)


def _folded_power(node: CompileNode, default_power: int, side_power: int) -> Optional[int]:
    """The constant output of ``node`` for the given inputs, or None if it cannot fold."""
    ty = node.ty
    if ty.kind is NodeKind.COMPARATOR:
        if ty.far_input is not None and default_power < 15:
            default_power = ty.far_input
        if ty.mode is ComparatorMode.SUBTRACT:
            return max(default_power - side_power, 0)
        return default_power if default_power >= side_power else 0
    if ty.kind is NodeKind.REPEATER:
        if node.state.repeater_locked:
            return node.state.output_strength
        return 15 if default_power > 0 else 0
    if ty.kind is NodeKind.TORCH:
        return 0 if default_power > 0 else 15
    return None


def _fold(graph: CompileGraph) -> int:
    folded = 0
    for idx in range(graph.node_bound()):
        if not graph.contains_node(idx):
            continue

        incoming = graph.incoming(idx)
        if any(graph[edge.source].ty.kind is not NodeKind.CONSTANT for edge in incoming):
            continue

        default_power = 0
        side_power = 0
        for edge in incoming:
            power = max(graph[edge.source].state.output_strength - edge.link.ss, 0)
            if edge.link.ty is LinkType.DEFAULT:
                default_power = max(default_power, power)
            else:
                side_power = max(side_power, power)

        node = graph[idx]
        new_power = _folded_power(node, default_power, side_power)
        if new_power is None:
            continue

        node.ty = NodeType(NodeKind.CONSTANT)
        node.state.output_strength = new_power
        for edge in incoming:
            graph.remove_edge(edge.id)
        folded += 1
    return folded


class ConstantFold(Pass):
    """Replace diodes and torches driven only by constants with constants."""

    def run_pass(self, graph: CompileGraph, options: CompilerOptions) -> None:
        while True:
            folded = _fold(graph)
            if folded == 0:
                break
            logger.debug("Fold iteration: %d nodes", folded)

    def status_message(self) -> str:
        return "Constant folding"


class _UnionFind:
    def __init__(self, size: int) -> None:
        self._parent = list(range(size))

    def find(self, x: int) -> int:
        root = x
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[x] != root:
            self._parent[x], x = root, self._parent[x]
        return root

    def union(self, a: int, b: int) -> None:
        ra, rb = self.find(a), self.find(b)
        if ra != rb:
            self._parent[rb] = ra


def _is_removable_constant(node: CompileNode) -> bool:
    return node.ty.kind is NodeKind.CONSTANT and node.is_removable()


class ConstantCoalesce(Pass):
    """Share one constant node per signal strength within each connected subgraph."""

    def run_pass(self, graph: CompileGraph, options: CompilerOptions) -> None:
        bound = graph.node_bound()
        components = _UnionFind(bound)
        for edge in graph.edges():
            if not _is_removable_constant(graph[edge.source]):
                components.union(edge.source, edge.target)

        constants: dict[tuple[int, int], int] = {}
        created: set[int] = set()
        for idx in range(bound):
            if idx in created or not graph.contains_node(idx):
                continue
            node = graph[idx]
            if not _is_removable_constant(node):
                continue
            ss = node.state.output_strength

            for edge in graph.outgoing(idx):
                link = graph.remove_edge(edge.id)
                key = (components.find(edge.target), ss)
                shared = constants.get(key)
                if shared is None:
                    shared = graph.add_node(
                        CompileNode(NodeType(NodeKind.CONSTANT), state=NodeState.ss(ss))
                    )
                    constants[key] = shared
                    created.add(shared)
                graph.add_edge(shared, edge.target, link)
            graph.remove_node(idx)

    def status_message(self) -> str:
        return "Coalescing constants"