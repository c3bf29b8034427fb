"""Front end that runs the compile passes and drives the selected backend."""

from __future__ import annotations

import logging
import time
from typing import Iterable, Optional

from .compile_graph import BlockPos, CompileGraph
from .direct import DirectBackend, FlushResult
from .direct_node import Node
from .options import BackendVariant, CompilerOptions
from .pass_manager import make_default_pass_manager
from .scheduler import TickEntry
from .task_monitor import TaskMonitor

logger = logging.getLogger(__name__)


def _backend_for(variant: BackendVariant) -> DirectBackend:
    if variant is BackendVariant.DIRECT:
        return DirectBackend()
    raise ValueError(f"unsupported backend variant: {variant!r}")


class Compiler:
    """Compiles a redstone graph and simulates it with a backend.

    While active, the world is driven through ``tick``, ``on_use_block``,
    ``set_pressure_plate`` and ``flush``; ``reset`` hands control back.
    """

    def __init__(self) -> None:
        self._active = False
        self._jit: Optional[DirectBackend] = None
        self._options = CompilerOptions()

    def is_active(self) -> bool:
        return self._active

    def current_flags(self) -> Optional[CompilerOptions]:
        """The options of the running compile, or None when inactive."""
        return self._options if self._active else None

    def use_jit(self, jit: DirectBackend) -> None:
        """Use this backend from the next compile on."""
        self._jit = jit

    def compile(
        self,
        graph: CompileGraph,
        options: Optional[CompilerOptions] = None,
        ticks: Iterable[TickEntry] = (),
        monitor: Optional[TaskMonitor] = None,
    ) -> None:
        """Optimize ``graph`` and load it into the backend, with its pending ticks."""
        options = options if options is not None else CompilerOptions()
        monitor = monitor if monitor is not None else TaskMonitor()
        logger.debug("Starting compile")
        start = time.perf_counter()

        graph = make_default_pass_manager().run_passes(options, graph, monitor)
        if monitor.cancelled:
            return

        keep_jit = (
            isinstance(self._jit, DirectBackend)
            and options.backend_variant is BackendVariant.DIRECT
        )
        if not keep_jit:
            logger.debug("Switching jit backend to %s", options.backend_variant)
            self.use_jit(_backend_for(options.backend_variant))

        monitor.message = "Compiling backend"
        backend_start = time.perf_counter()
        self._jit.compile(graph, list(ticks), options, monitor)
        monitor.inc_progress()
        logger.debug("Backend compiled in %.6fs", time.perf_counter() - backend_start)

        self._options = options
        self._active = True
        logger.debug("Compile completed in %.6fs", time.perf_counter() - start)

    def reset(self) -> FlushResult:
        """Stop simulating and return what the world must apply.

        The result holds the pending ticks, comparator outputs and, for an
        io-only compile, the blocks to restore. A caller that compiled with
        ``update`` should read ``current_flags`` first and update the region.
        """
        result = FlushResult()
        if self._active:
            self._active = False
            if self._jit is not None:
                result = self._jit.reset(self._options.io_only)
        self._options = CompilerOptions()
        return result

    def _backend(self) -> DirectBackend:
        if not self._active:
            raise RuntimeError("tried to get redpiler backend when inactive")
        if self._jit is None:
            raise RuntimeError("redpiler is active but is missing jit backend")
        return self._jit

    def tick(self) -> None:
        self._backend().tick()

    def on_use_block(self, pos: BlockPos) -> None:
        self._backend().on_use_block(pos)

    def set_pressure_plate(self, pos: BlockPos, powered: bool) -> None:
        self._backend().set_pressure_plate(pos, powered)

    def flush(self) -> FlushResult:
        return self._backend().flush(self._options.io_only)

    def inspect(self, pos: BlockPos) -> Optional[Node]:
        """The backend node at ``pos``, or None if there is no backend or node."""
        if self._jit is None:
            logger.debug("cannot inspect when backend is not running")
            return None
        return self._jit.inspect(pos)

    def has_pending_ticks(self) -> bool:
        return self._backend().has_pending_ticks()