"""Runs compile passes over a graph in order, reporting progress."""

from __future__ import annotations

import logging
import time
from typing import Iterable, Optional

from .analog_repeaters import AnalogRepeaters
from .coalesce import Coalesce
from .compile_graph import CompileGraph
from .export_graph import ExportGraph
from .folding import ConstantCoalesce, ConstantFold
from .options import CompilerOptions
from .pass_base import Pass
from .pruning import ClampWeights, DedupLinks, PruneOrphans, UnreachableOutput
from .task_monitor import TaskMonitor

logger = logging.getLogger(__name__)


class PassManager:
    """An ordered list of passes applied to a compile graph."""

    def __init__(self, passes: Iterable[Pass]) -> None:
        self.passes: tuple[Pass, ...] = tuple(passes)

    def run_passes(
        self,
        options: CompilerOptions,
        graph: CompileGraph,
        monitor: Optional[TaskMonitor] = None,
    ) -> CompileGraph:
        """Apply every pass that should run; stop early if the monitor is cancelled."""
        if monitor is None:
            monitor = TaskMonitor()
        # One extra step for the backend compile.
        monitor.max_progress = len(self.passes) + 1

        for compile_pass in self.passes:
            if not compile_pass.should_run(options):
                logger.debug("Skipping pass: %s", compile_pass.name())
                monitor.inc_progress()
                continue

            if monitor.cancelled:
                return graph

            logger.debug("Running pass: %s", compile_pass.name())
            monitor.message = compile_pass.status_message()
            start = time.perf_counter()

            compile_pass.run_pass(graph, options)

            logger.debug("Completed pass in %.6fs", time.perf_counter() - start)
            logger.debug("node_count: %d", graph.node_count())
            logger.debug("edge_count: %d", graph.edge_count())
            monitor.inc_progress()

        return graph


def make_default_pass_manager() -> PassManager:
    """The standard pass pipeline for a graph whose nodes and links are built."""
    return PassManager(
        [
            ClampWeights(),
            DedupLinks(),
            AnalogRepeaters(),
            ConstantFold(),
            UnreachableOutput(),
            ConstantCoalesce(),
            Coalesce(),
            PruneOrphans(),
            ExportGraph(),
        ]
    )