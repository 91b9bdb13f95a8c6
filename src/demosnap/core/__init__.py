"""
demosnap Core - Foundation modules shared by the engine and the decoder.

- constants: team numbering, export columns, timing defaults
- config: application configuration and logging setup
- errors: exception hierarchy
- events: typed event stream and live player state
"""

from demosnap.core.constants import (
    CS2_TICK_RATE,
    DEFAULT_ROUND_DURATION,
    SNAPSHOT_COLUMNS,
    Team,
)
from demosnap.core.errors import (
    DemoInputError,
    DemosnapError,
    OutputError,
    RowWriteError,
    SinkUnavailableError,
)
from demosnap.core.events import LivePlayer, PlayerIdentity, TeamState, Vector

__all__ = [
    "CS2_TICK_RATE",
    "DEFAULT_ROUND_DURATION",
    "SNAPSHOT_COLUMNS",
    "Team",
    "DemoInputError",
    "DemosnapError",
    "OutputError",
    "RowWriteError",
    "SinkUnavailableError",
    "LivePlayer",
    "PlayerIdentity",
    "TeamState",
    "Vector",
]
