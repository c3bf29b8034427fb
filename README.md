# redpiler

Optimizes a graph of redstone components and simulates it tick by tick,
node by node, instead of updating blocks one at a time.

## Install

    pip install .

For running the tests:

    pip install ".[test]"
    pytest

## Modules

- `redpiler.compile_graph`: the graph model. `CompileGraph` is a directed
  multigraph with stable node and edge indices; its nodes are `CompileNode`s
  (a `NodeType`, an optional `(BlockPos, block_id)`, a `NodeState`, and
  `is_input` / `is_output` flags) and its edges carry a `CompileLink`
  (`LinkType.DEFAULT` or `LinkType.SIDE` plus a distance `ss`).
- `redpiler.options`: `CompilerOptions` and `CompilerOptions.parse`, which reads
  flags such as `"-io -u --export"`: `--optimize`/`-o`, `--export`/`-e`,
  `--io-only`/`-i`, `--update`/`-u`, `--export-dot`, `--wire-dot-out`/`-d`.
  Unknown flags are logged as warnings and ignored.
- `redpiler.task_monitor.TaskMonitor`: thread-safe progress, status message and
  cancellation for a running compile.
- Passes, each a `redpiler.pass_base.Pass`:
  - `redpiler.pruning`: `ClampWeights` (always runs), `DedupLinks`,
    `UnreachableOutput`, `PruneOrphans` (only with both optimize and io-only).
  - `redpiler.analog_repeaters.AnalogRepeaters`
  - `redpiler.folding`: `ConstantFold`, `ConstantCoalesce`
  - `redpiler.coalesce.Coalesce`
  - `redpiler.export_graph.ExportGraph`: with `export` set, writes the graph to
    `redpiler_graph.bc` (or the path it is given). `export_nodes` converts a
    graph to exchange nodes without writing anything.
  
  Apart from `ClampWeights`, `PruneOrphans` and `ExportGraph`, passes run only
  when `optimize` is set.
- `redpiler.pass_manager`: `PassManager` and `make_default_pass_manager()`,
  which runs the passes above in order and reports progress to a `TaskMonitor`.
- `redpiler.graph_format`: `serialize`, `serialize_into`, `deserialize` and
  `deserialize_from` for the binary graph format; bad data raises
  `GraphFormatError`.
- `redpiler.direct.DirectBackend`: lowers a graph into backend nodes
  (`redpiler.direct_node`) and simulates them with a `TickScheduler`
  (`redpiler.scheduler`). `flush` and `reset` return a `FlushResult` listing
  `BlockChange`s, `NotePlay`s, pending `TickEntry`s and comparator outputs.
  `to_dot` describes the graph for Graphviz; with `export_dot_graph` set,
  `compile` writes it to `backend_graph.dot`.
- `redpiler.compiler.Compiler`: runs the default passes, loads the result into
  the backend, and forwards `tick`, `on_use_block`, `set_pressure_plate`,
  `flush`, `has_pending_ticks`, `inspect` and `reset` to it.
- `redpiler.text`: `TextComponent.from_legacy_text` splits chat text with `&`
  codes and `#rrggbb` colors into components, turning URLs into click events;
  `encode_json` gives their JSON form. `TextComponentBuilder` builds one
  component.

## Example

    from redpiler.compile_graph import (
        BlockPos, CompileGraph, CompileLink, CompileNode, NodeKind, NodeType,
    )
    from redpiler.compiler import Compiler
    from redpiler.options import CompilerOptions

    graph = CompileGraph()
    lever_pos = BlockPos(0, 64, 0)
    lamp_pos = BlockPos(1, 64, 0)
    lever = graph.add_node(
        CompileNode(NodeType(NodeKind.LEVER), block=(lever_pos, 0), is_input=True)
    )
    lamp = graph.add_node(
        CompileNode(NodeType(NodeKind.LAMP), block=(lamp_pos, 0), is_output=True)
    )
    graph.add_edge(lever, lamp, CompileLink.default(0))

    compiler = Compiler()
    compiler.compile(graph, CompilerOptions.parse("-o"))
    compiler.on_use_block(lever_pos)
    compiler.tick()
    for change in compiler.flush().block_changes:
        print(change.pos, change.kind, change.powered)
    leftovers = compiler.reset()

Text components:

    from redpiler.text import TextComponent

    [part] = TextComponent.from_legacy_text("&cHello")
    part.encode_json()   # '{"text":"Hello","color":"red"}'

## What it does not do

- It does not read a world. The caller builds the `CompileGraph`, with its
  nodes, block positions and links, before compiling.
- It does not write to a world. `flush` and `reset` return `FlushResult`s that
  the caller applies; note block sounds are returned as `NotePlay`s.
- The `update` option is only recorded: `reset` does not update blocks in a
  region. A caller that wants that reads `current_flags()` before resetting.
- There is no command-line program.