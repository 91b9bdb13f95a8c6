"""
Snapshot building: merges live player state, round-scoped flags and the
window's buffered events into one PlayerSnapshot per active player.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from demosnap.aggregation.buffer import EventBuffer
from demosnap.aggregation.rounds import RoundTracker
from demosnap.core.constants import Team
from demosnap.core.events import LivePlayer, PlayerIdentity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayerSnapshot:
    """One output row: a player at one window boundary."""

    name: str
    is_bot: bool
    player_id: int
    team: Team
    team_id: int
    team_score: int
    round_number: int
    tick: int
    time: float
    clock_time: float

    pos_x: float
    pos_y: float
    pos_z: float
    vel_x: float
    vel_y: float
    vel_z: float
    view_direction_x: float
    view_direction_y: float

    kill_event: bool = False
    killed_by: str = ""
    killed: str = ""
    assisters: str = ""
    kills: int = 0
    deaths: int = 0
    assists: int = 0

    attacked: bool = False
    attacked_by: tuple[str, ...] = ()
    attacking: bool = False
    attacking_target: tuple[str, ...] = ()
    health: int = 0
    health_damage_taken: int = 0
    armor: int = 0
    armor_damage_taken: int = 0

    bomb_plant_begin: bool = False
    bomb_planted: bool = False
    bomb_defuse_started: bool = False
    bomb_defused: bool = False
    bomb_plant_site: str = ""
    bomb_defuse_site: str = ""
    flash_duration: float = 0.0


@dataclass(frozen=True)
class WindowStamp:
    """Timing shared by every row of one flush."""

    tick: int
    time: float
    clock_time: float
    round_number: int


def _join_names(players: Iterable[PlayerIdentity]) -> str:
    return ",".join(p.name for p in players)


class SnapshotBuilder:
    """Builds the rows of one window. Never mutates the buffer or the round state."""

    def __init__(self, buffer: EventBuffer, rounds: RoundTracker):
        self.buffer = buffer
        self.rounds = rounds

    def build(self, players: Iterable[LivePlayer | None], stamp: WindowStamp) -> list[PlayerSnapshot]:
        """Build rows in participant order, skipping players without usable live state."""
        rows = []
        for player in players:
            if player is None:
                continue
            if player.team_state is None:
                logger.debug(f"Skipping {player.name}: no team state")
                continue
            row = self.build_player(player, stamp)
            if row is not None:
                rows.append(row)
        return rows

    def build_player(self, player: LivePlayer, stamp: WindowStamp) -> PlayerSnapshot | None:
        live = (
            player.user_id,
            player.team_state,
            player.position,
            player.velocity,
            player.view_direction_x,
            player.view_direction_y,
            player.kills,
            player.deaths,
            player.assists,
            player.health,
            player.armor,
        )
        if any(value is None for value in live):
            logger.debug(f"Skipping {player.name} at tick {stamp.tick}: incomplete live state")
            return None

        identity = player.identity
        kill_fields = self._kill_fields(identity)
        damage_fields = self._damage_fields(identity)
        bomb_fields = self._bomb_fields(identity)

        return PlayerSnapshot(
            name=player.name,
            is_bot=player.is_bot,
            player_id=player.user_id,
            team=player.team,
            team_id=player.team_state.team_id,
            team_score=player.team_state.score,
            round_number=stamp.round_number,
            tick=stamp.tick,
            time=stamp.time,
            clock_time=stamp.clock_time,
            pos_x=player.position.x,
            pos_y=player.position.y,
            pos_z=player.position.z,
            vel_x=player.velocity.x,
            vel_y=player.velocity.y,
            vel_z=player.velocity.z,
            view_direction_x=player.view_direction_x,
            view_direction_y=player.view_direction_y,
            kills=player.kills,
            deaths=player.deaths,
            assists=player.assists,
            health=player.health,
            armor=player.armor,
            flash_duration=player.flash_duration or 0.0,
            **kill_fields,
            **damage_fields,
            **bomb_fields,
        )

    def _kill_fields(self, identity: PlayerIdentity) -> dict:
        killed: list[PlayerIdentity] = []
        killed_by: list[PlayerIdentity] = []
        kill_event = False

        for kill in self.buffer.kills_for(identity):
            if kill.killer == identity:
                kill_event = True
                if kill.victim is not None:
                    killed.append(kill.victim)
            if kill.victim == identity:
                kill_event = True
                if kill.killer is not None:
                    killed_by.append(kill.killer)

        return {
            "kill_event": kill_event,
            "killed": _join_names(killed),
            "killed_by": _join_names(killed_by),
            "assisters": _join_names(self.buffer.assists_for(identity)),
        }

    def _damage_fields(self, identity: PlayerIdentity) -> dict:
        attacked_by: list[str] = []
        attacking_target: list[str] = []
        health_taken = 0
        armor_taken = 0

        for other, tally in self.buffer.damage_for(identity).items():
            if tally.health_taken or tally.armor_taken:
                attacked_by.append(other.name)
                health_taken += tally.health_taken
                armor_taken += tally.armor_taken
            if tally.health_dealt or tally.armor_dealt:
                attacking_target.append(other.name)

        return {
            "attacked": bool(attacked_by),
            "attacked_by": tuple(attacked_by),
            "attacking": bool(attacking_target),
            "attacking_target": tuple(attacking_target),
            "health_damage_taken": health_taken,
            "armor_damage_taken": armor_taken,
        }

    def _bomb_fields(self, identity: PlayerIdentity) -> dict:
        planted = self.buffer.bomb_planted
        defused = self.buffer.bomb_defused
        did_plant = planted is not None and planted.actor == identity
        did_defuse = defused is not None and defused.actor == identity

        return {
            "bomb_plant_begin": self.rounds.is_planting(identity),
            "bomb_planted": did_plant,
            "bomb_plant_site": planted.site if did_plant else "",
            "bomb_defuse_started": self.rounds.is_defusing(identity),
            "bomb_defused": did_defuse,
            "bomb_defuse_site": defused.site if did_defuse else "",
        }
