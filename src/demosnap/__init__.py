"""
demosnap - Per-second CS2 demo exporter

Replays a CS2 demo and writes one row per player per second of game time:
position, velocity, view direction, cumulative K/D/A, plus the kills,
damage and bomb actions that happened in that second.

Usage:
    from demosnap import process_demo

    result = process_demo("match.dem", "Outputs")
    print(result.rows_written)
"""

__version__ = "0.1.0"
__author__ = "demosnap Contributors"


def __getattr__(name):
    """Lazy import for heavy dependencies."""
    if name == "process_demo":
        from demosnap.pipeline import process_demo
        return process_demo
    elif name == "DemoparserDecoder":
        from demosnap.decoder import DemoparserDecoder
        return DemoparserDecoder
    elif name == "SecondAggregator":
        from demosnap.aggregation import SecondAggregator
        return SecondAggregator
    elif name == "ParallelDemoExporter":
        from demosnap.parallel import ParallelDemoExporter
        return ParallelDemoExporter
    elif name == "load_config":
        from demosnap.core.config import load_config
        return load_config
    raise AttributeError(f"module 'demosnap' has no attribute '{name}'")


__all__ = [
    "__version__",
    "process_demo",
    "DemoparserDecoder",
    "SecondAggregator",
    "ParallelDemoExporter",
    "load_config",
]
