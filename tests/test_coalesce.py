from redpiler.coalesce import Coalesce
from redpiler.compile_graph import (
    CompileGraph,
    CompileLink,
    CompileNode,
    ComparatorMode,
    NodeKind,
    NodeType,
)
from redpiler.options import CompilerOptions

TORCH = NodeType(NodeKind.TORCH)
LAMP = NodeType(NodeKind.LAMP)
LEVER = NodeType(NodeKind.LEVER)


def run(graph):
    Coalesce().run_pass(graph, CompilerOptions(optimize=True))


def fan_out(first, second, link=CompileLink.default, source_ty=LEVER, second_kwargs=None):
    g = CompileGraph()
    src = g.add_node(CompileNode(source_ty, is_input=True))
    a = g.add_node(CompileNode(first))
    b = g.add_node(CompileNode(second, **(second_kwargs or {})))
    lamp1 = g.add_node(CompileNode(LAMP, is_output=True))
    lamp2 = g.add_node(CompileNode(LAMP, is_output=True))
    g.add_edge(src, a, link(0))
    g.add_edge(src, b, link(0))
    g.add_edge(a, lamp1, CompileLink.default(0))
    g.add_edge(b, lamp2, CompileLink.default(1))
    return g, src, a, b, lamp1, lamp2


def test_identical_torches_are_merged():
    g, src, a, b, lamp1, lamp2 = fan_out(TORCH, TORCH)
    run(g)
    assert not g.contains_node(b)
    assert g.outgoing_neighbors(src) == [a]
    assert sorted(g.outgoing_neighbors(a)) == sorted([lamp1, lamp2])
    assert [(e.source, e.link.ss) for e in g.incoming(lamp2)] == [(a, 1)]


def test_different_types_are_not_merged():
    g, src, a, b, _, _ = fan_out(TORCH, NodeType.repeater(1, False))
    before = g.node_count()
    run(g)
    assert g.node_count() == before
    assert sorted(g.outgoing_neighbors(src)) == sorted([a, b])


def test_repeaters_with_different_delays_are_not_merged():
    g, _, _, b, _, _ = fan_out(NodeType.repeater(1, False), NodeType.repeater(2, False))
    run(g)
    assert g.contains_node(b)


def test_equal_repeaters_are_merged():
    g, _, a, b, _, _ = fan_out(NodeType.repeater(2, False), NodeType.repeater(2, False))
    run(g)
    assert g.contains_node(a)
    assert not g.contains_node(b)


def test_comparators_are_not_merged():
    comp = NodeType.comparator(ComparatorMode.COMPARE, None, False)
    g, _, a, b, _, _ = fan_out(comp, comp)
    run(g)
    assert g.contains_node(a) and g.contains_node(b)


def test_nodes_fed_by_comparator_are_not_merged():
    comp = NodeType.comparator(ComparatorMode.COMPARE, None, False)
    g, _, _, b, _, _ = fan_out(TORCH, TORCH, source_ty=comp)
    run(g)
    assert g.contains_node(b)


def test_side_links_are_not_merged():
    g, _, _, b, _, _ = fan_out(
        NodeType.repeater(1, False), NodeType.repeater(1, False), link=CompileLink.side
    )
    run(g)
    assert g.contains_node(b)


def test_output_nodes_are_not_merged():
    g, _, _, b, _, _ = fan_out(TORCH, TORCH, second_kwargs={"is_output": True})
    run(g)
    assert g.contains_node(b)
    assert g[b].is_output


def test_node_with_several_inputs_is_not_merged():
    g, src, a, b, _, _ = fan_out(TORCH, TORCH)
    other = g.add_node(CompileNode(LEVER, is_input=True))
    g.add_edge(other, b, CompileLink.default(0))
    run(g)
    assert g.contains_node(b)
    assert sorted(g.incoming_neighbors(b)) == sorted([src, other])


def test_runs_only_when_optimizing():
    assert Coalesce().should_run(CompilerOptions()) is False
    assert Coalesce().status_message() == "Combining duplicate logic"