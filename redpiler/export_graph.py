"""Pass that writes the compile graph to a file in the exchange format."""

from __future__ import annotations

from pathlib import Path
from typing import Union

from . import graph_format as gf
from .compile_graph import CompileGraph, CompileNode, NodeKind
from .options import CompilerOptions
from .pass_base import Pass

DEFAULT_EXPORT_PATH = Path("redpiler_graph.bc")


def _convert_type(node: CompileNode) -> gf.NodeType:
    ty = node.ty
    if ty.kind is NodeKind.REPEATER:
        return gf.NodeType(ty.kind, delay=ty.delay)
    if ty.kind is NodeKind.COMPARATOR:
        return gf.NodeType(ty.kind, mode=ty.mode)
    return gf.NodeType(ty.kind)


def export_nodes(graph: CompileGraph) -> list[gf.Node]:
    """Convert the graph to exchange nodes, renumbering indices densely."""
    nodes_map = {idx: i for i, idx in enumerate(graph.node_indices())}
    result = []
    for idx in graph.node_indices():
        node = graph[idx]
        inputs = [
            gf.Link(edge.link.ty, edge.link.ss, nodes_map[edge.source])
            for edge in graph.incoming(idx)
        ]
        updates = [nodes_map[target] for target in graph.outgoing_neighbors(idx)]
        kind = node.ty.kind
        facing_diode = (
            node.ty.facing_diode
            if kind in (NodeKind.REPEATER, NodeKind.COMPARATOR)
            else False
        )
        far_input = node.ty.far_input if kind is NodeKind.COMPARATOR else None
        result.append(
            gf.Node(
                ty=_convert_type(node),
                block=node.block,
                state=gf.NodeState(
                    powered=node.state.powered,
                    repeater_locked=node.state.repeater_locked,
                    output_strength=node.state.output_strength,
                ),
                facing_diode=facing_diode,
                comparator_far_input=far_input,
                inputs=inputs,
                updates=updates,
            )
        )
    return result


class ExportGraph(Pass):
    """Write the graph to ``path`` when exporting is enabled."""

    def __init__(self, path: Union[str, Path] = DEFAULT_EXPORT_PATH) -> None:
        self.path = Path(path)

    def run_pass(self, graph: CompileGraph, options: CompilerOptions) -> None:
        self.path.write_bytes(gf.serialize(export_nodes(graph)))

    def should_run(self, options: CompilerOptions) -> bool:
        return options.export

    def status_message(self) -> str:
        return "Exporting graph"