import pytest

from redpiler.compile_graph import (
    BlockPos,
    CompileGraph,
    CompileLink,
    CompileNode,
    NodeKind,
    NodeState,
    NodeType,
)
from redpiler.compiler import Compiler
from redpiler.direct import DirectBackend
from redpiler.options import CompilerOptions
from redpiler.pass_manager import make_default_pass_manager
from redpiler.scheduler import TickEntry, TickPriority
from redpiler.task_monitor import TaskMonitor

LEVER = BlockPos(0, 0, 0)
WIRE = BlockPos(0, 0, 1)
LAMP = BlockPos(0, 0, 2)


def make_graph(with_wire=False):
    graph = CompileGraph()
    lever = graph.add_node(
        CompileNode(NodeType(NodeKind.LEVER), block=(LEVER, 1), is_input=True)
    )
    lamp = graph.add_node(
        CompileNode(NodeType(NodeKind.LAMP), block=(LAMP, 2), is_output=True)
    )
    if with_wire:
        wire = graph.add_node(CompileNode(NodeType(NodeKind.WIRE), block=(WIRE, 3)))
        graph.add_edge(lever, wire, CompileLink.default(0))
        graph.add_edge(wire, lamp, CompileLink.default(0))
    else:
        graph.add_edge(lever, lamp, CompileLink.default(0))
    return graph


def changes_by_pos(result):
    return {change.pos: change for change in result.block_changes}


def test_new_compiler_is_inactive():
    compiler = Compiler()
    assert compiler.is_active() is False
    assert compiler.current_flags() is None


def test_backend_calls_fail_when_inactive():
    compiler = Compiler()
    with pytest.raises(RuntimeError):
        compiler.tick()
    with pytest.raises(RuntimeError):
        compiler.flush()
    with pytest.raises(RuntimeError):
        compiler.has_pending_ticks()


def test_inspect_without_backend_returns_none():
    assert Compiler().inspect(LEVER) is None


def test_compile_activates_with_options():
    compiler = Compiler()
    options = CompilerOptions(update=True)
    compiler.compile(make_graph(), options)
    assert compiler.is_active() is True
    assert compiler.current_flags() == options


def test_compile_reports_progress():
    compiler = Compiler()
    monitor = TaskMonitor()
    compiler.compile(make_graph(), CompilerOptions(), monitor=monitor)
    expected = len(make_default_pass_manager().passes) + 1
    assert monitor.max_progress == expected
    assert monitor.progress == expected
    assert monitor.message == "Compiling backend"


def test_cancelled_compile_stays_inactive():
    compiler = Compiler()
    monitor = TaskMonitor()
    monitor.cancel()
    compiler.compile(make_graph(), CompilerOptions(), monitor=monitor)
    assert compiler.is_active() is False
    with pytest.raises(RuntimeError):
        compiler.tick()


def test_lever_lights_lamp_immediately():
    compiler = Compiler()
    compiler.compile(make_graph())
    compiler.on_use_block(LEVER)
    changes = changes_by_pos(compiler.flush())
    assert changes[LEVER].powered is True
    assert changes[LAMP].powered is True


def test_lamp_turns_off_after_two_ticks():
    compiler = Compiler()
    compiler.compile(make_graph())
    compiler.on_use_block(LEVER)
    compiler.flush()
    compiler.on_use_block(LEVER)
    assert compiler.has_pending_ticks() is True
    compiler.tick()
    assert LAMP not in changes_by_pos(compiler.flush())
    compiler.tick()
    changes = changes_by_pos(compiler.flush())
    assert changes[LAMP].powered is False
    assert compiler.has_pending_ticks() is False


def test_given_backend_is_kept():
    compiler = Compiler()
    backend = DirectBackend()
    compiler.use_jit(backend)
    compiler.compile(make_graph())
    compiler.on_use_block(LEVER)
    node = backend.inspect(LAMP)
    assert node.powered is True
    assert compiler.inspect(LAMP) is node


def test_compile_schedules_given_ticks():
    compiler = Compiler()
    compiler.compile(make_graph(), ticks=[TickEntry(LAMP, 1, TickPriority.NORMAL)])
    assert compiler.has_pending_ticks() is True
    compiler.tick()
    assert compiler.has_pending_ticks() is False


def test_reset_returns_pending_ticks_and_deactivates():
    compiler = Compiler()
    compiler.compile(make_graph())
    compiler.on_use_block(LEVER)
    compiler.on_use_block(LEVER)
    result = compiler.reset()
    assert result.ticks == [TickEntry(LAMP, 2, TickPriority.NORMAL)]
    assert compiler.is_active() is False
    assert compiler.current_flags() is None


def test_reset_when_inactive_returns_empty_result():
    result = Compiler().reset()
    assert result.ticks == []
    assert result.block_changes == []


def test_full_flush_includes_wire_power():
    compiler = Compiler()
    compiler.compile(make_graph(with_wire=True))
    compiler.on_use_block(LEVER)
    changes = changes_by_pos(compiler.flush())
    assert changes[WIRE].power == 15


def test_io_only_reset_restores_non_io_blocks():
    compiler = Compiler()
    compiler.compile(make_graph(with_wire=True), CompilerOptions(io_only=True))
    compiler.on_use_block(LEVER)
    result = compiler.reset()
    assert [change.pos for change in result.block_changes] == [WIRE]
    assert compiler.is_active() is False


def test_pressure_plate_powers_lamp():
    graph = CompileGraph()
    plate_pos = BlockPos(5, 0, 0)
    plate = graph.add_node(
        CompileNode(NodeType(NodeKind.PRESSURE_PLATE), block=(plate_pos, 4), is_input=True)
    )
    lamp = graph.add_node(
        CompileNode(
            NodeType(NodeKind.LAMP),
            block=(LAMP, 2),
            state=NodeState.simple(False),
            is_output=True,
        )
    )
    graph.add_edge(plate, lamp, CompileLink.default(0))
    compiler = Compiler()
    compiler.compile(graph)
    compiler.set_pressure_plate(plate_pos, True)
    changes = changes_by_pos(compiler.flush())
    assert changes[plate_pos].powered is True
    assert changes[LAMP].powered is True