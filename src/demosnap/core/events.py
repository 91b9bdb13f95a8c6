"""
Typed event stream and live game state delivered by the demo decoder.

Players are referenced by ``PlayerIdentity``: a stable per-match key (the
SteamID64, or a synthetic key for bots) plus a display name that is carried
for output only and takes no part in equality or hashing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple

from demosnap.core.constants import Team


@dataclass(frozen=True)
class PlayerIdentity:
    """Stable player key. Two identities are equal iff their keys match."""

    key: int
    name: str = field(default="", compare=False)

    def __str__(self) -> str:
        return self.name


# ============================================================================
# Events
# ============================================================================


@dataclass(frozen=True)
class RoundStart:
    pass


@dataclass(frozen=True)
class Kill:
    """A player_death event. Any role may be missing (world kills, no assist)."""

    killer: PlayerIdentity | None
    victim: PlayerIdentity | None
    assister: PlayerIdentity | None = None


@dataclass(frozen=True)
class Damage:
    """A player_hurt event."""

    victim: PlayerIdentity | None
    attacker: PlayerIdentity | None
    health_damage: int
    armor_damage: int


@dataclass(frozen=True)
class BombPlanted:
    actor: PlayerIdentity | None
    site: str


@dataclass(frozen=True)
class BombDefused:
    actor: PlayerIdentity | None
    site: str


@dataclass(frozen=True)
class BombPlantBegin:
    actor: PlayerIdentity | None


@dataclass(frozen=True)
class BombPlantAbort:
    actor: PlayerIdentity | None


@dataclass(frozen=True)
class BombDefuseBegin:
    actor: PlayerIdentity | None


@dataclass(frozen=True)
class BombDefuseAbort:
    actor: PlayerIdentity | None


@dataclass(frozen=True)
class FrameDone:
    """Emitted once per decoded tick with player state, after all events of that tick."""

    tick: int


# ============================================================================
# Live state
# ============================================================================


class Vector(NamedTuple):
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class TeamState:
    """Team entity state. Absent for players that have not fully joined."""

    team_id: int
    score: int


@dataclass
class LivePlayer:
    """Authoritative player attributes at the current tick (read-only to the engine)."""

    identity: PlayerIdentity
    is_bot: bool
    user_id: int | None
    team: Team
    team_state: TeamState | None
    position: Vector | None
    velocity: Vector | None
    view_direction_x: float | None  # yaw
    view_direction_y: float | None  # pitch
    kills: int | None
    deaths: int | None
    assists: int | None
    health: int | None
    armor: int | None
    flash_duration: float | None = 0.0

    @property
    def name(self) -> str:
        return self.identity.name
