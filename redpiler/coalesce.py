"""Pass that merges identical nodes driven by the same single source."""

from __future__ import annotations

import logging

from .compile_graph import CompileGraph, LinkType, NodeKind
from .options import CompilerOptions
from .pass_base import Pass

logger = logging.getLogger(__name__)


def _coalesce(graph: CompileGraph, node: int, into: int) -> None:
    for edge in graph.outgoing(node):
        link = graph.remove_edge(edge.id)
        graph.add_edge(into, edge.target, link)
    graph.remove_node(node)


def _coalesce_outgoing(graph: CompileGraph, source: int, into: int) -> int:
    coalesced = 0
    for edge in graph.outgoing(source):
        if graph.edge(edge.id) is not edge:
            continue
        dest = edge.target
        if dest == into:
            continue
        dest_node = graph[dest]
        if (
            dest_node.ty == graph[into].ty
            and dest_node.is_removable()
            and len(graph.incoming(dest)) == 1
        ):
            _coalesce(graph, dest, into)
            coalesced += 1
    return coalesced


def _run_iteration(graph: CompileGraph) -> int:
    coalesced = 0
    for idx in range(graph.node_bound()):
        if not graph.contains_node(idx):
            continue
        node = graph[idx]
        # Comparators depend on the link weight as well as the type.
        if node.ty.kind is NodeKind.COMPARATOR or not node.is_removable():
            continue

        incoming = graph.incoming(idx)
        if len(incoming) != 1:
            continue
        edge = incoming[0]
        if edge.link.ty is not LinkType.DEFAULT:
            continue
        # Comparators might output less than full strength.
        if graph[edge.source].ty.kind is NodeKind.COMPARATOR:
            continue
        coalesced += _coalesce_outgoing(graph, edge.source, idx)
    return coalesced


class Coalesce(Pass):
    """Combine duplicate logic until nothing more can be merged."""

    def run_pass(self, graph: CompileGraph, options: CompilerOptions) -> None:
        while True:
            coalesced = _run_iteration(graph)
            logger.debug("Iteration combined %d nodes", coalesced)
            if coalesced == 0:
                break

    def status_message(self) -> str:
        return "Combining duplicate logic"