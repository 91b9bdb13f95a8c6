"""
SecondAggregator: wires Clock, EventBuffer, RoundTracker, SnapshotBuilder and
Emitter to a decoder's handler-registration API.

All aggregation state for one demo lives on this object; the registered
handlers are thin adapters over its methods.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from demosnap.aggregation.buffer import EventBuffer
from demosnap.aggregation.clock import Clock
from demosnap.aggregation.emitter import Emitter, SnapshotSink
from demosnap.aggregation.rounds import RoundTracker
from demosnap.aggregation.snapshot import SnapshotBuilder, WindowStamp
from demosnap.core.config import AggregationConfig
from demosnap.core.constants import CS2_TICK_RATE
from demosnap.core.events import (
    BombDefuseAbort,
    BombDefuseBegin,
    BombDefused,
    BombPlantAbort,
    BombPlantBegin,
    BombPlanted,
    Damage,
    FrameDone,
    Kill,
    RoundStart,
)

if TYPE_CHECKING:
    from demosnap.decoder import Decoder

logger = logging.getLogger(__name__)


class SecondAggregator:
    """Per-demo aggregation state plus the handlers that feed it."""

    def __init__(
        self,
        decoder: Decoder,
        sink: SnapshotSink,
        config: AggregationConfig | None = None,
    ):
        self.config = config or AggregationConfig()
        self.decoder = decoder

        tick_rate = self.config.tick_rate or decoder.tick_rate or CS2_TICK_RATE
        self.clock = Clock(tick_rate, self.config.round_duration)
        self.buffer = EventBuffer()
        self.rounds = RoundTracker()
        self.builder = SnapshotBuilder(self.buffer, self.rounds)
        self.emitter = Emitter(sink, self.buffer)
        self.flushed_seconds: list[int] = []

    def attach(self) -> SecondAggregator:
        """Register every handler on the decoder."""
        handlers = {
            RoundStart: self.on_round_start,
            Kill: self.on_kill,
            Damage: self.on_damage,
            BombPlanted: self.on_bomb_planted,
            BombDefused: self.on_bomb_defused,
            BombPlantBegin: self.on_bomb_plant_begin,
            BombPlantAbort: self.on_bomb_plant_abort,
            BombDefuseBegin: self.on_bomb_defuse_begin,
            BombDefuseAbort: self.on_bomb_defuse_abort,
            FrameDone: self.on_frame_done,
        }
        for event_type, handler in handlers.items():
            self.decoder.register_handler(event_type, handler)
        return self

    @property
    def rows_written(self) -> int:
        return self.emitter.rows_written

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_round_start(self, event: RoundStart) -> None:
        elapsed = self.clock.elapsed(self.decoder.current_tick)
        self.rounds.on_round_start(elapsed)
        # A new round never inherits the previous round's bomb outcome
        self.buffer.clear_bomb_records()

    def on_kill(self, event: Kill) -> None:
        self.buffer.record_kill(event.killer, event.victim, event.assister)

    def on_damage(self, event: Damage) -> None:
        self.buffer.record_damage(
            event.victim, event.attacker, event.health_damage, event.armor_damage
        )

    def on_bomb_planted(self, event: BombPlanted) -> None:
        self.buffer.record_bomb_planted(event.actor, event.site)

    def on_bomb_defused(self, event: BombDefused) -> None:
        self.buffer.record_bomb_defused(event.actor, event.site)

    def on_bomb_plant_begin(self, event: BombPlantBegin) -> None:
        self.rounds.on_bomb_plant_begin(event.actor)

    def on_bomb_plant_abort(self, event: BombPlantAbort) -> None:
        self.rounds.on_bomb_plant_abort(event.actor)

    def on_bomb_defuse_begin(self, event: BombDefuseBegin) -> None:
        self.rounds.on_bomb_defuse_begin(event.actor)

    def on_bomb_defuse_abort(self, event: BombDefuseAbort) -> None:
        self.rounds.on_bomb_defuse_abort(event.actor)

    def on_frame_done(self, event: FrameDone) -> None:
        second = self.clock.advance(event.tick)
        if second is None:
            return
        self.flush(event.tick)
        self.flushed_seconds.append(second)

    # ------------------------------------------------------------------

    def flush(self, tick: int) -> int:
        """Emit one row per active player and clear the window."""
        elapsed = self.clock.elapsed(tick)
        stamp = WindowStamp(
            tick=tick,
            time=elapsed,
            clock_time=self.clock.countdown(elapsed, self.rounds.round_start_time),
            round_number=self.rounds.round_number,
        )
        rows = self.builder.build(self.decoder.participants(), stamp)
        return self.emitter.emit(rows)
