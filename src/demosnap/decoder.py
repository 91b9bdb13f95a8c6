"""
Demo Decoder for CS2 Replay Files

Wraps demoparser2 and replays what it extracts as a callback stream:
typed events are delivered to registered handlers in tick order, each tick
closed by a FrameDone, while the live player state of the current tick can
be queried through ``participants()``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

import numpy as np
import pandas as pd
from demoparser2 import DemoParser as Demoparser2

from demosnap.core.constants import CS2_TICK_RATE, PLAYING_TEAMS, Team
from demosnap.core.errors import DemoInputError
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
    LivePlayer,
    PlayerIdentity,
    RoundStart,
    TeamState,
    Vector,
)

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class Decoder(Protocol):
    """What the aggregation engine needs from a demo decoder."""

    tick_rate: float
    current_tick: int

    def register_handler(self, event_type: type, handler: Handler) -> None: ...

    def participants(self) -> list[LivePlayer]: ...

    def parse_header(self) -> dict[str, Any]: ...

    def parse_to_end(self) -> None: ...


class HandlerRegistry:
    """Synchronous event dispatch keyed by event type."""

    def __init__(self):
        self._handlers: defaultdict[type, list[Handler]] = defaultdict(list)

    def register_handler(self, event_type: type, handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def dispatch(self, event: Any) -> None:
        for handler in self._handlers.get(type(event), ()):
            handler(event)


# Safe type conversion helpers
def safe_int(value: Any, default: int | None = None) -> int | None:
    """Safely convert a value to int."""
    if value is None:
        return default
    try:
        if pd.isna(value):
            return default
        return int(value)
    except (ValueError, TypeError):
        return default


def safe_float(value: Any, default: float | None = None) -> float | None:
    """Safely convert a value to float."""
    if value is None:
        return default
    try:
        if pd.isna(value):
            return default
        return float(value)
    except (ValueError, TypeError):
        return default


def safe_str(value: Any, default: str = "") -> str:
    """Safely convert a value to string."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return default
    return str(value)


class DemoparserDecoder(HandlerRegistry):
    """
    Decoder backed by demoparser2.

    demoparser2 returns whole-demo DataFrames rather than streaming, so
    ``parse_to_end`` extracts them once and then walks the ticks in order,
    dispatching that tick's events followed by a FrameDone on every tick
    that has player state.
    """

    # Per-tick player properties
    PLAYER_PROPS = [
        "X",
        "Y",
        "Z",  # Position
        "velocity_X",
        "velocity_Y",
        "velocity_Z",  # Movement
        "pitch",
        "yaw",  # View angles
        "health",
        "armor_value",
        "team_num",
        "team_rounds_total",
        "kills_total",
        "deaths_total",
        "assists_total",
        "flash_duration",
        "user_id",
    ]

    # demoparser2 events, in intra-tick delivery order
    EVENTS_TO_PARSE = [
        "round_start",
        "player_hurt",
        "player_death",
        "bomb_beginplant",
        "bomb_abortplant",
        "bomb_planted",
        "bomb_begindefuse",
        "bomb_abortdefuse",
        "bomb_defused",
    ]

    def __init__(self, demo_path: str | Path, tick_rate: float | None = None):
        super().__init__()
        self.demo_path = Path(demo_path)
        if not self.demo_path.exists():
            raise DemoInputError(f"Demo file not found: {demo_path}")
        self.tick_rate = float(tick_rate or CS2_TICK_RATE)
        self.current_tick = 0
        self.header: dict[str, Any] = {}

        self._parser: Demoparser2 | None = None
        self._ticks_df: pd.DataFrame | None = None
        self._frame: tuple[int, int] | None = None  # row bounds of the current tick
        self._bot_keys: dict[str, int] = {}

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def parse_header(self) -> dict[str, Any]:
        try:
            self._parser = Demoparser2(str(self.demo_path))
            header = self._parser.parse_header()
        except Exception as e:
            raise DemoInputError(f"Error parsing header of {self.demo_path}: {e}") from e

        self.header = header if isinstance(header, dict) else {}
        logger.info(
            f"Map: {self.header.get('map_name', 'unknown')}, "
            f"Server: {self.header.get('server_name', '')}"
        )
        return self.header

    def parse_to_end(self) -> None:
        if self._parser is None:
            self.parse_header()

        try:
            events = self._collect_events()
            ticks_df = self._parser.parse_ticks(self.PLAYER_PROPS)
        except DemoInputError:
            raise
        except Exception as e:
            raise DemoInputError(f"Error parsing demo {self.demo_path}: {e}") from e

        if ticks_df is None:
            ticks_df = pd.DataFrame(columns=["tick", "steamid", "name"])
        self._ticks_df = ticks_df.sort_values("tick", kind="stable").reset_index(drop=True)
        frames = self._frame_bounds(self._ticks_df)

        all_ticks = sorted(set(frames) | set(events))
        logger.debug(f"Replaying {len(all_ticks)} ticks from {self.demo_path.name}")

        for tick in all_ticks:
            self.current_tick = tick
            self._frame = frames.get(tick)
            for event in events.get(tick, ()):
                self.dispatch(event)
            # Ticks without player state carry their events into the next frame
            if self._frame is not None:
                self.dispatch(FrameDone(tick=tick))

    def _parse_event_safe(self, event_name: str) -> pd.DataFrame:
        """Parse one event type, returning an empty DataFrame when the demo has none."""
        try:
            df = self._parser.parse_event(event_name)
        except Exception as e:
            logger.debug(f"Could not parse {event_name}: {e}")
            return pd.DataFrame()
        if df is None:
            return pd.DataFrame()
        if not df.empty:
            logger.debug(f"Parsed {len(df)} {event_name} events")
        return df

    def _collect_events(self) -> dict[int, list[Any]]:
        """Convert every event DataFrame into typed events grouped by tick."""
        builders: dict[str, Callable[[dict], Any]] = {
            "round_start": lambda r: RoundStart(),
            "player_hurt": lambda r: Damage(
                victim=self._identity(r, "user"),
                attacker=self._identity(r, "attacker"),
                health_damage=safe_int(r.get("dmg_health"), 0),
                armor_damage=safe_int(r.get("dmg_armor"), 0),
            ),
            "player_death": lambda r: Kill(
                killer=self._identity(r, "attacker"),
                victim=self._identity(r, "user"),
                assister=self._identity(r, "assister"),
            ),
            "bomb_beginplant": lambda r: BombPlantBegin(actor=self._identity(r, "user")),
            "bomb_abortplant": lambda r: BombPlantAbort(actor=self._identity(r, "user")),
            "bomb_planted": lambda r: BombPlanted(
                actor=self._identity(r, "user"), site=safe_str(r.get("site"))
            ),
            "bomb_begindefuse": lambda r: BombDefuseBegin(actor=self._identity(r, "user")),
            "bomb_abortdefuse": lambda r: BombDefuseAbort(actor=self._identity(r, "user")),
            "bomb_defused": lambda r: BombDefused(
                actor=self._identity(r, "user"), site=safe_str(r.get("site"))
            ),
        }

        events: defaultdict[int, list[Any]] = defaultdict(list)
        for event_name in self.EVENTS_TO_PARSE:
            df = self._parse_event_safe(event_name)
            if df.empty or "tick" not in df.columns:
                continue
            build = builders[event_name]
            for record in df.sort_values("tick", kind="stable").to_dict("records"):
                tick = safe_int(record.get("tick"))
                if tick is None:
                    continue
                events[tick].append(build(record))

        # Within a tick, events follow EVENTS_TO_PARSE order
        return dict(events)

    @staticmethod
    def _frame_bounds(ticks_df: pd.DataFrame) -> dict[int, tuple[int, int]]:
        """Map each tick to its [start, end) row range in the sorted tick DataFrame."""
        if ticks_df.empty:
            return {}
        ticks = ticks_df["tick"].to_numpy()
        starts = np.concatenate(([0], np.flatnonzero(np.diff(ticks)) + 1))
        ends = np.append(starts[1:], len(ticks))
        return {int(ticks[s]): (int(s), int(e)) for s, e in zip(starts, ends)}

    # ------------------------------------------------------------------
    # Identity and live state
    # ------------------------------------------------------------------

    def _identity(self, record: dict, prefix: str) -> PlayerIdentity | None:
        steam_id = safe_int(record.get(f"{prefix}_steamid"))
        name = safe_str(record.get(f"{prefix}_name"))
        return self._make_identity(steam_id, name)

    def _make_identity(self, steam_id: int | None, name: str) -> PlayerIdentity | None:
        if steam_id:
            return PlayerIdentity(key=steam_id, name=name)
        if not name:
            return None
        # Bots share SteamID 0: give each bot name its own key for this demo
        key = self._bot_keys.setdefault(name, -(len(self._bot_keys) + 1))
        return PlayerIdentity(key=key, name=name)

    def participants(self) -> list[LivePlayer]:
        """Players on a playing team at the current tick, in decoder row order."""
        if self._frame is None or self._ticks_df is None:
            return []
        start, end = self._frame
        players = []
        for record in self._ticks_df.iloc[start:end].to_dict("records"):
            player = self._live_player(record)
            if player is not None and player.team in PLAYING_TEAMS:
                players.append(player)
        return players

    def _live_player(self, record: dict) -> LivePlayer | None:
        steam_id = safe_int(record.get("steamid"))
        identity = self._make_identity(steam_id, safe_str(record.get("name")))
        if identity is None:
            return None

        team_num = safe_int(record.get("team_num"), 0)
        try:
            team = Team(team_num)
        except ValueError:
            team = Team.UNASSIGNED

        team_state = None
        if team in PLAYING_TEAMS:
            team_state = TeamState(
                team_id=team_num, score=safe_int(record.get("team_rounds_total"), 0)
            )

        return LivePlayer(
            identity=identity,
            is_bot=not steam_id,
            user_id=safe_int(record.get("user_id")),
            team=team,
            team_state=team_state,
            position=self._vector(record, "X", "Y", "Z"),
            velocity=self._vector(record, "velocity_X", "velocity_Y", "velocity_Z"),
            view_direction_x=safe_float(record.get("yaw")),
            view_direction_y=safe_float(record.get("pitch")),
            kills=safe_int(record.get("kills_total"), 0),
            deaths=safe_int(record.get("deaths_total"), 0),
            assists=safe_int(record.get("assists_total"), 0),
            health=safe_int(record.get("health")),
            armor=safe_int(record.get("armor_value")),
            flash_duration=safe_float(record.get("flash_duration"), 0.0),
        )

    @staticmethod
    def _vector(record: dict, x: str, y: str, z: str) -> Vector | None:
        values = [safe_float(record.get(key)) for key in (x, y, z)]
        if any(v is None for v in values):
            return None
        return Vector(*values)
