"""
Per-second aggregation engine.

- clock: tick to seconds, window boundaries, round countdown
- buffer: per-window event buffer
- rounds: round counter and round-scoped bomb flags
- snapshot: PlayerSnapshot rows and the builder that assembles them
- emitter: writes rows to the sink and closes the window
- engine: SecondAggregator, the decoder-facing facade
"""

from demosnap.aggregation.buffer import DamageTally, EventBuffer
from demosnap.aggregation.clock import Clock
from demosnap.aggregation.emitter import Emitter
from demosnap.aggregation.engine import SecondAggregator
from demosnap.aggregation.rounds import RoundContext, RoundTracker
from demosnap.aggregation.snapshot import PlayerSnapshot, SnapshotBuilder, WindowStamp

__all__ = [
    "Clock",
    "DamageTally",
    "Emitter",
    "EventBuffer",
    "PlayerSnapshot",
    "RoundContext",
    "RoundTracker",
    "SecondAggregator",
    "SnapshotBuilder",
    "WindowStamp",
]
