"""The interface every compile pass implements."""

from __future__ import annotations

import abc

from .compile_graph import CompileGraph
from .options import CompilerOptions


class Pass(abc.ABC):
    """A single transformation applied to the compile graph."""

    @abc.abstractmethod
    def run_pass(self, graph: CompileGraph, options: CompilerOptions) -> None:
        """Rewrite ``graph`` in place."""

    def name(self) -> str:
        """A name for debugging output; not a stable identifier of the pass."""
        cls = type(self)
        return f"{cls.__module__}.{cls.__qualname__}"

    def should_run(self, options: CompilerOptions) -> bool:
        """Passes run for optimized builds unless they say otherwise."""
        return options.optimize

    @abc.abstractmethod
    def status_message(self) -> str:
        """A short description shown while the pass is running."""