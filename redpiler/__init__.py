"""Redstone graph model, optimization passes, direct simulation backend and chat text components."""

__version__ = "0.1.0"

__all__ = [
    "compile_graph",
    "task_monitor",
    "options",
    "text",
    "pass_base",
    "graph_format",
    "export_graph",
    "pruning",
    "folding",
    "coalesce",
    "analog_repeaters",
    "pass_manager",
    "direct_node",
    "scheduler",
    "direct",
    "compiler",
]