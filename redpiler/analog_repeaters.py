"""Pass that replaces "analog repeater" structures with one comparator.

An analog repeater is a comparator feeding exactly 15 delay-1 repeaters at
distances 0 through 14, all merging into a single comparator at distances
14 through 0.
"""

from __future__ import annotations

import copy
from typing import Optional

from .compile_graph import (
    CompileGraph,
    CompileLink,
    CompileNode,
    ComparatorMode,
    LinkType,
    NodeKind,
    NodeType,
)
from .options import CompilerOptions
from .pass_base import Pass

_REPEATER_COUNT = 15


def _is_plain_repeater(node: CompileNode) -> bool:
    return (
        node.is_removable()
        and node.ty.kind is NodeKind.REPEATER
        and node.ty.delay == 1
        and not node.ty.facing_diode
    )


def _analog_end(graph: CompileGraph, start: int) -> Optional[tuple[list[int], int]]:
    """The repeaters and end comparator of an analog repeater starting at ``start``."""
    if graph[start].ty.kind is not NodeKind.COMPARATOR:
        return None
    repeaters = graph.outgoing_neighbors(start)
    if len(repeaters) != _REPEATER_COUNT:
        return None
    if not all(_is_plain_repeater(graph[idx]) for idx in repeaters):
        return None

    first_out = graph.outgoing_neighbors(repeaters[0])
    if len(first_out) != 1:
        return None
    end = first_out[0]
    if graph[end].ty.kind is not NodeKind.COMPARATOR:
        return None

    incoming_seen = [False] * _REPEATER_COUNT
    outgoing_seen = [False] * _REPEATER_COUNT
    for repeater in repeaters:
        inc = graph.incoming(repeater)
        out = graph.outgoing(repeater)
        if len(inc) != 1 or len(out) != 1:
            return None
        inc_link, out_link = inc[0].link, out[0].link
        if out[0].target != end:
            return None
        if inc_link.ty is not LinkType.DEFAULT:
            return None
        if inc_link.ss + out_link.ss != _REPEATER_COUNT - 1:
            return None
        incoming_seen[inc_link.ss] = True
        outgoing_seen[out_link.ss] = True
    if not (all(incoming_seen) and all(outgoing_seen)):
        return None
    return repeaters, end


class AnalogRepeaters(Pass):
    """Combine analog repeaters into an equivalent comparator."""

    def run_pass(self, graph: CompileGraph, options: CompilerOptions) -> None:
        for start in range(graph.node_bound()):
            if not graph.contains_node(start):
                continue
            found = _analog_end(graph, start)
            if found is None:
                continue
            repeaters, end = found

            for idx in repeaters:
                graph.remove_node(idx)

            comparator = graph.add_node(
                CompileNode(
                    NodeType.comparator(ComparatorMode.COMPARE, None, False),
                    state=copy.copy(graph[start].state),
                )
            )
            graph.add_edge(start, comparator, CompileLink.default(0))
            graph.add_edge(comparator, end, CompileLink.default(0))

    def status_message(self) -> str:
        return "Combining analog repeaters"