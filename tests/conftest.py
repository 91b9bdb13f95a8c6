"""Shared fixtures: a scripted decoder and a recording sink."""

from __future__ import annotations

import pytest

from demosnap.core.constants import Team
from demosnap.core.events import FrameDone, LivePlayer, PlayerIdentity, TeamState, Vector
from demosnap.decoder import HandlerRegistry


def make_player(
    identity: PlayerIdentity,
    team: Team = Team.TERRORIST,
    user_id: int = 1,
    kills: int = 0,
    deaths: int = 0,
    assists: int = 0,
    health: int = 100,
    armor: int = 100,
    team_state: TeamState | None = None,
    **overrides,
) -> LivePlayer:
    fields = dict(
        identity=identity,
        is_bot=False,
        user_id=user_id,
        team=team,
        team_state=team_state or TeamState(team_id=int(team), score=0),
        position=Vector(100.0, 200.0, 10.0),
        velocity=Vector(0.0, 0.0, 0.0),
        view_direction_x=90.0,
        view_direction_y=0.0,
        kills=kills,
        deaths=deaths,
        assists=assists,
        health=health,
        armor=armor,
        flash_duration=0.0,
    )
    fields.update(overrides)
    return LivePlayer(**fields)


class FakeDecoder(HandlerRegistry):
    """
    Replays a script of ``(tick, events)`` pairs. Each tick dispatches its
    events, then a FrameDone. ``players`` is what participants() returns.
    """

    def __init__(self, script=None, players=None, tick_rate: float = 64.0):
        super().__init__()
        self.script = script or []
        self.players = players or []
        self.tick_rate = tick_rate
        self.current_tick = 0
        self.header_parsed = False

    def parse_header(self):
        self.header_parsed = True
        return {"map_name": "de_test"}

    def participants(self):
        return list(self.players)

    def step(self, tick: int, *events) -> None:
        self.current_tick = tick
        for event in events:
            self.dispatch(event)
        self.dispatch(FrameDone(tick=tick))

    def parse_to_end(self) -> None:
        for tick, events in self.script:
            self.step(tick, *events)


class RecordingSink:
    """Collects rows in memory."""

    def __init__(self):
        self.rows = []

    def write_row(self, snapshot) -> None:
        self.rows.append(snapshot)


@pytest.fixture
def alice():
    return PlayerIdentity(key=76561198000000001, name="A")


@pytest.fixture
def bob():
    return PlayerIdentity(key=76561198000000002, name="B")


@pytest.fixture
def carol():
    return PlayerIdentity(key=76561198000000003, name="C")


@pytest.fixture
def dave():
    return PlayerIdentity(key=76561198000000004, name="D")


@pytest.fixture
def sink():
    return RecordingSink()
