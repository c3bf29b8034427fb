"""Passes that drop links and nodes which cannot affect the outputs."""

from __future__ import annotations

from .compile_graph import (
    CompileGraph,
    ComparatorMode,
    LinkType,
    NodeKind,
)
from .options import CompilerOptions
from .pass_base import Pass


class ClampWeights(Pass):
    """Remove links whose distance leaves no signal at all. Mandatory."""

    def run_pass(self, graph: CompileGraph, options: CompilerOptions) -> None:
        graph.retain_edges(lambda edge: edge.link.ss < 15)

    def should_run(self, options: CompilerOptions) -> bool:
        return True

    def status_message(self) -> str:
        return "Clamping weights"


class DedupLinks(Pass):
    """Remove duplicate parallel links, keeping the one with the lowest weight."""

    def run_pass(self, graph: CompileGraph, options: CompilerOptions) -> None:
        for idx in range(graph.node_bound()):
            if not graph.contains_node(idx):
                continue
            for edge in graph.incoming(idx):
                redundant = any(
                    other.id != edge.id
                    and other.source == edge.source
                    and other.link.ty == edge.link.ty
                    and other.link.ss <= edge.link.ss
                    for other in graph.incoming(idx)
                )
                if redundant:
                    graph.remove_edge(edge.id)

    def status_message(self) -> str:
        return "Deduplicating links"


class PruneOrphans(Pass):
    """Remove nodes that do not transitively feed an input or output node."""

    def run_pass(self, graph: CompileGraph, options: CompilerOptions) -> None:
        to_visit = [idx for idx in graph.node_indices() if not graph[idx].is_removable()]
        visited: set[int] = set()
        while to_visit:
            idx = to_visit.pop()
            if idx not in visited:
                visited.add(idx)
                to_visit.extend(graph.incoming_neighbors(idx))
        graph.retain_nodes(lambda idx: idx in visited)

    def should_run(self, options: CompilerOptions) -> bool:
        return options.io_only and options.optimize

    def status_message(self) -> str:
        return "Pruning orphans"


class UnreachableOutput(Pass):
    """Drop links from subtracting comparators that can never carry a signal.

    With a single constant side input the comparator output is at most
    15 minus that constant; outgoing links at least that long are removed.
    """

    def run_pass(self, graph: CompileGraph, options: CompilerOptions) -> None:
        max_input = 15
        for idx in range(graph.node_bound()):
            if not graph.contains_node(idx):
                continue
            ty = graph[idx].ty
            if ty.kind is not NodeKind.COMPARATOR or ty.mode is not ComparatorMode.SUBTRACT:
                continue

            side_inputs = [e for e in graph.incoming(idx) if e.link.ty is LinkType.SIDE]
            if len(side_inputs) != 1:
                continue
            constant = graph[side_inputs[0].source]
            if constant.ty.kind is not NodeKind.CONSTANT:
                continue

            max_output = max(max_input - constant.state.output_strength, 0)
            for edge in graph.outgoing(idx):
                if edge.link.ss >= max_output:
                    graph.remove_edge(edge.id)

    def status_message(self) -> str:
        return "Pruning unreachable comparator outputs"