"""
Per-window event buffer.

Holds every kill, assist, damage and bomb event seen since the last flush,
keyed by PlayerIdentity. Entries are created lazily on first write; reads
never create entries. ``clear()`` is the only reset path.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass

from demosnap.core.events import Kill, PlayerIdentity

logger = logging.getLogger(__name__)


@dataclass
class DamageTally:
    """Damage exchanged between one player and one counterpart in a window.

    ``*_taken`` is what the owning player received from the counterpart,
    ``*_dealt`` is what the owning player inflicted on the counterpart.
    """

    health_taken: int = 0
    armor_taken: int = 0
    health_dealt: int = 0
    armor_dealt: int = 0


@dataclass(frozen=True)
class BombRecord:
    actor: PlayerIdentity | None
    site: str


class EventBuffer:
    """WindowState: everything observed since the previous flush."""

    def __init__(self):
        self.kills: defaultdict[PlayerIdentity, list[Kill]] = defaultdict(list)
        self.assists: defaultdict[PlayerIdentity, list[PlayerIdentity]] = defaultdict(list)
        self.damage: defaultdict[PlayerIdentity, defaultdict[PlayerIdentity, DamageTally]] = (
            defaultdict(lambda: defaultdict(DamageTally))
        )
        self.bomb_planted: BombRecord | None = None
        self.bomb_defused: BombRecord | None = None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def record_kill(
        self,
        killer: PlayerIdentity | None,
        victim: PlayerIdentity | None,
        assister: PlayerIdentity | None = None,
    ) -> None:
        """Append the kill to the killer's and the victim's sequences."""
        event = Kill(killer=killer, victim=victim, assister=assister)
        if killer is not None:
            self.kills[killer].append(event)
        # Self-elimination: one entry, rendered in both roles
        if victim is not None and victim != killer:
            self.kills[victim].append(event)
        if assister is not None and victim is not None:
            self.record_assist(assister, victim)

    def record_assist(self, assister: PlayerIdentity, victim: PlayerIdentity) -> None:
        self.assists[assister].append(victim)

    def record_damage(
        self,
        victim: PlayerIdentity | None,
        attacker: PlayerIdentity | None,
        health_delta: int,
        armor_delta: int,
    ) -> None:
        """Accumulate damage under [victim][attacker] and the mirrored [attacker][victim]."""
        if victim is None or attacker is None:
            logger.debug("Ignoring damage without both victim and attacker")
            return

        taken = self.damage[victim][attacker]
        taken.health_taken += health_delta
        taken.armor_taken += armor_delta

        dealt = self.damage[attacker][victim]
        dealt.health_dealt += health_delta
        dealt.armor_dealt += armor_delta

    def record_bomb_planted(self, actor: PlayerIdentity | None, site: str) -> None:
        self.bomb_planted = BombRecord(actor=actor, site=site)

    def record_bomb_defused(self, actor: PlayerIdentity | None, site: str) -> None:
        self.bomb_defused = BombRecord(actor=actor, site=site)

    def clear_bomb_records(self) -> None:
        self.bomb_planted = None
        self.bomb_defused = None

    def clear(self) -> None:
        self.kills.clear()
        self.assists.clear()
        self.damage.clear()
        self.clear_bomb_records()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def kills_for(self, player: PlayerIdentity) -> list[Kill]:
        return list(self.kills.get(player, ()))

    def assists_for(self, player: PlayerIdentity) -> list[PlayerIdentity]:
        return list(self.assists.get(player, ()))

    def damage_for(self, player: PlayerIdentity) -> dict[PlayerIdentity, DamageTally]:
        return dict(self.damage.get(player, {}))

    def health_damage(self, victim: PlayerIdentity, attacker: PlayerIdentity) -> int:
        """Health damage the victim took from the attacker in this window."""
        tally = self.damage.get(victim, {}).get(attacker)
        return tally.health_taken if tally else 0

    @property
    def is_empty(self) -> bool:
        return not (
            self.kills
            or self.assists
            or self.damage
            or self.bomb_planted
            or self.bomb_defused
        )
