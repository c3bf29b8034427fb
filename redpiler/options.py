"""Compiler options and their command-line style parser."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class BackendVariant(enum.Enum):
    DIRECT = "direct"


_LONG_FLAGS = {
    "--optimize": "optimize",
    "--export": "export",
    "--io-only": "io_only",
    "--update": "update",
    "--export-dot": "export_dot_graph",
    "--wire-dot-out": "wire_dot_out",
}

_SHORT_FLAGS = {
    "o": "optimize",
    "e": "export",
    "i": "io_only",
    "u": "update",
    "d": "wire_dot_out",
}


@dataclass
class CompilerOptions:
    """Flags controlling a compile.

    optimize: run optimization passes that may increase compile times.
    export: export the graph to the binary graph format.
    io_only: only flush lamp, button, lever, pressure plate or trapdoor updates.
    update: update all blocks in the input region after reset.
    export_dot_graph: write a dot file of the graph after backend compile.
    wire_dot_out: treat a redstone dot as an output block.
    backend_variant: the backend used after compilation.
    """

    optimize: bool = False
    export: bool = False
    io_only: bool = False
    update: bool = False
    export_dot_graph: bool = False
    wire_dot_out: bool = False
    backend_variant: BackendVariant = BackendVariant.DIRECT

    @classmethod
    def parse(cls, text: str) -> CompilerOptions:
        """Parse whitespace-separated flags; unknown flags are logged and ignored."""
        options = cls()
        for option in text.split():
            if option.startswith("--"):
                name = _LONG_FLAGS.get(option)
                if name is None:
                    logger.warning("Unrecognized option: %s", option)
                else:
                    setattr(options, name, True)
            elif option.startswith("-"):
                for char in option[1:]:
                    name = _SHORT_FLAGS.get(char.lower())
                    if name is None:
                        logger.warning("Unrecognized option: -%s", char)
                    else:
                        setattr(options, name, True)
            else:
                logger.warning("Unrecognized option: %s", option)
        return options