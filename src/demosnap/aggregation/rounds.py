"""
Round bookkeeping: round counter, round start time and the round-scoped
bomb plant/defuse progress flags.
"""

import logging
from dataclasses import dataclass, field

from demosnap.core.events import PlayerIdentity

logger = logging.getLogger(__name__)


@dataclass
class RoundContext:
    """State scoped to the current round."""

    round_number: int = 0
    round_start_time: float = 0.0
    bomb_plant_begun: dict[PlayerIdentity, bool] = field(default_factory=dict)
    bomb_defuse_started: dict[PlayerIdentity, bool] = field(default_factory=dict)


class RoundTracker:
    """
    Tracks rounds. The bomb progress flags outlive per-second flushes and are
    only reset when a new round starts.
    """

    def __init__(self):
        self.context = RoundContext()

    @property
    def round_number(self) -> int:
        return self.context.round_number

    @property
    def round_start_time(self) -> float:
        return self.context.round_start_time

    def on_round_start(self, current_elapsed: float) -> None:
        self.context.round_number += 1
        self.context.round_start_time = current_elapsed
        self.context.bomb_plant_begun.clear()
        self.context.bomb_defuse_started.clear()
        logger.debug(f"Round {self.context.round_number} started at {current_elapsed:.2f}s")

    def on_bomb_plant_begin(self, actor: PlayerIdentity | None) -> None:
        if actor is not None:
            self.context.bomb_plant_begun[actor] = True

    def on_bomb_plant_abort(self, actor: PlayerIdentity | None) -> None:
        if actor is not None:
            self.context.bomb_plant_begun[actor] = False

    def on_bomb_defuse_begin(self, actor: PlayerIdentity | None) -> None:
        if actor is not None:
            self.context.bomb_defuse_started[actor] = True

    def on_bomb_defuse_abort(self, actor: PlayerIdentity | None) -> None:
        if actor is not None:
            self.context.bomb_defuse_started[actor] = False

    def is_planting(self, player: PlayerIdentity) -> bool:
        return self.context.bomb_plant_begun.get(player, False)

    def is_defusing(self, player: PlayerIdentity) -> bool:
        return self.context.bomb_defuse_started.get(player, False)
