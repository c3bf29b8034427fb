import pytest

from redpiler.compile_graph import CompileGraph, CompileNode, NodeKind, NodeType
from redpiler.options import CompilerOptions
from redpiler.pass_base import Pass


class _AddTorch(Pass):
    def run_pass(self, graph, options):
        graph.add_node(CompileNode(NodeType(NodeKind.TORCH)))

    def status_message(self):
        return "Adding a torch"


class _Mandatory(_AddTorch):
    def should_run(self, options):
        return True


class _Incomplete(Pass):
    def run_pass(self, graph, options):
        pass


def test_pass_and_incomplete_subclass_cannot_be_instantiated():
    with pytest.raises(TypeError):
        Pass()
    with pytest.raises(TypeError):
        _Incomplete()


def test_default_should_run_follows_optimize():
    p = _AddTorch()
    assert Pass.should_run(p, CompilerOptions(optimize=True)) is True
    assert Pass.should_run(p, CompilerOptions()) is False


def test_should_run_can_be_overridden():
    assert _Mandatory().should_run(CompilerOptions()) is True
    assert Pass.should_run(_Mandatory(), CompilerOptions()) is False


def test_name_names_the_class():
    name = Pass.name(_AddTorch())
    assert name.endswith("_AddTorch")
    assert name.startswith(__name__)
    assert Pass.name(_Mandatory()).endswith("_Mandatory")


def test_run_pass_changes_graph():
    graph = CompileGraph()
    _AddTorch().run_pass(graph, CompilerOptions())
    assert graph.node_count() == 1
    assert graph[0].ty.kind is NodeKind.TORCH