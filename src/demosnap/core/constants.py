"""
demosnap - Constants

Team numbering, export column order and timing defaults shared by the
aggregation engine, the decoder adapter and the CSV sink.
"""

from enum import Enum


class Team(int, Enum):
    """CS2 team numbers (``team_num`` on the player pawn/controller)."""

    UNASSIGNED = 0
    SPECTATOR = 1
    TERRORIST = 2
    CT = 3


# Rendered values of the Team column
TEAM_DISPLAY_NAMES = {
    Team.UNASSIGNED: "Unassigned",
    Team.SPECTATOR: "Spectators",
    Team.TERRORIST: "Terrorists",
    Team.CT: "CounterTerrorists",
}

UNKNOWN_TEAM_NAME = "Unknown"

# Teams whose members are considered "playing"
PLAYING_TEAMS = frozenset({Team.TERRORIST, Team.CT})

# NOTE: CS2 uses 64 tick universally (subtick system)
CS2_TICK_RATE = 64

# Round timer in the reference deployment (1:55)
DEFAULT_ROUND_DURATION = 115.0

DEMO_FILE_SUFFIX = ".dem"

# Sentinel for "no window flushed yet"
NO_WINDOW = -1

# Output schema, in column order
SNAPSHOT_COLUMNS = [
    "Name",
    "IsBot",
    "PlayerID",
    "Team",
    "TeamID",
    "TeamScore",
    "RoundNumber",
    "Tick",
    "Time",
    "ClockTime",
    "PosX",
    "PosY",
    "PosZ",
    "VelX",
    "VelY",
    "VelZ",
    "ViewDirectionX",
    "ViewDirectionY",
    "KillEvent",
    "KilledBy",
    "Killed",
    "Assisters",
    "Kills",
    "Deaths",
    "Assists",
    "Attacked",
    "AttackedBy",
    "Attacking",
    "AttackingTarget",
    "Health",
    "HealthDamageTaken",
    "Armor",
    "ArmorDamageTaken",
    "BombPlantBegin",
    "BombPlanted",
    "BombDefuseStarted",
    "BombDefused",
    "BombPlantSite",
    "BombDefuseSite",
    "FlashDuration",
]
