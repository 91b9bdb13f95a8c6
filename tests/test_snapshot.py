"""Tests for SnapshotBuilder."""

import pytest

from demosnap.aggregation.buffer import EventBuffer
from demosnap.aggregation.rounds import RoundTracker
from demosnap.aggregation.snapshot import SnapshotBuilder, WindowStamp
from demosnap.core.constants import Team
from demosnap.core.events import Vector

from conftest import make_player

STAMP = WindowStamp(tick=640, time=10.0, clock_time=105.0, round_number=1)


@pytest.fixture
def buffer():
    return EventBuffer()


@pytest.fixture
def rounds():
    return RoundTracker()


@pytest.fixture
def builder(buffer, rounds):
    return SnapshotBuilder(buffer, rounds)


def rows_by_name(rows):
    return {row.name: row for row in rows}


class TestKillFields:
    """Kill attribution scenarios."""

    def test_kill_with_assist(self, builder, buffer, alice, bob, carol, dave):
        buffer.record_kill(alice, bob, carol)
        players = [make_player(p) for p in (alice, bob, carol, dave)]

        rows = rows_by_name(builder.build(players, STAMP))

        assert rows["A"].kill_event is True
        assert rows["A"].killed == "B"
        assert rows["B"].kill_event is True
        assert rows["B"].killed_by == "A"
        assert "B" in rows["C"].assisters
        assert rows["D"].kill_event is False
        assert rows["D"].killed == ""
        assert rows["D"].killed_by == ""
        assert rows["D"].assisters == ""

    def test_double_kill_lists_both_victims(self, builder, buffer, alice, bob, carol):
        buffer.record_kill(alice, bob)
        buffer.record_kill(alice, carol)

        rows = rows_by_name(builder.build([make_player(alice)], STAMP))
        assert rows["A"].killed == "B,C"

    def test_self_elimination(self, builder, buffer, alice):
        buffer.record_kill(alice, alice)

        row = builder.build([make_player(alice)], STAMP)[0]
        assert row.kill_event is True
        assert row.killed == "A"
        assert row.killed_by == "A"

    def test_world_death(self, builder, buffer, bob):
        buffer.record_kill(None, bob)

        row = builder.build([make_player(bob)], STAMP)[0]
        assert row.kill_event is True
        assert row.killed_by == ""

    def test_assists_on_multiple_kills(self, builder, buffer, alice, bob, carol, dave):
        buffer.record_kill(alice, bob, carol)
        buffer.record_kill(alice, dave, carol)

        row = builder.build([make_player(carol)], STAMP)[0]
        assert row.assisters == "B,D"


class TestDamageFields:
    """Damage attribution scenarios."""

    def test_two_hits_same_attacker(self, builder, buffer, alice, bob):
        buffer.record_damage(bob, alice, 10, 5)
        buffer.record_damage(bob, alice, 7, 0)

        rows = rows_by_name(builder.build([make_player(alice), make_player(bob)], STAMP))

        assert rows["B"].health_damage_taken == 17
        assert rows["B"].armor_damage_taken == 5
        assert rows["B"].attacked_by == ("A",)
        assert rows["B"].attacked is True
        assert rows["A"].attacking is True
        assert rows["A"].attacking_target == ("B",)
        assert rows["A"].attacked is False
        assert rows["A"].health_damage_taken == 0

    def test_multiple_attackers_summed(self, builder, buffer, alice, bob, carol):
        buffer.record_damage(bob, alice, 20, 0)
        buffer.record_damage(bob, carol, 30, 10)

        row = builder.build([make_player(bob)], STAMP)[0]
        assert row.health_damage_taken == 50
        assert row.armor_damage_taken == 10
        assert set(row.attacked_by) == {"A", "C"}


class TestBombFields:
    def test_planter_only(self, builder, buffer, alice, bob):
        buffer.record_bomb_planted(alice, "A")

        rows = rows_by_name(builder.build([make_player(alice), make_player(bob)], STAMP))
        assert rows["A"].bomb_planted is True
        assert rows["A"].bomb_plant_site == "A"
        assert rows["B"].bomb_planted is False
        assert rows["B"].bomb_plant_site == ""

    def test_defuser(self, builder, buffer, bob):
        buffer.record_bomb_defused(bob, "B")

        row = builder.build([make_player(bob, team=Team.CT)], STAMP)[0]
        assert row.bomb_defused is True
        assert row.bomb_defuse_site == "B"

    def test_round_scoped_flags(self, builder, rounds, alice, bob):
        rounds.on_bomb_plant_begin(alice)
        rounds.on_bomb_defuse_begin(bob)

        rows = rows_by_name(builder.build([make_player(alice), make_player(bob)], STAMP))
        assert rows["A"].bomb_plant_begin is True
        assert rows["A"].bomb_defuse_started is False
        assert rows["B"].bomb_defuse_started is True


class TestLiveState:
    """Live state merge and skip policy."""

    def test_live_fields_copied(self, builder, alice):
        player = make_player(
            alice,
            user_id=7,
            kills=3,
            deaths=1,
            assists=2,
            health=64,
            armor=20,
            position=Vector(1.5, -2.5, 3.0),
            velocity=Vector(250.0, 0.0, 0.0),
            flash_duration=1.25,
        )

        row = builder.build([player], STAMP)[0]
        assert row.player_id == 7
        assert (row.kills, row.deaths, row.assists) == (3, 1, 2)
        assert (row.health, row.armor) == (64, 20)
        assert (row.pos_x, row.pos_y, row.pos_z) == (1.5, -2.5, 3.0)
        assert row.vel_x == 250.0
        assert row.flash_duration == 1.25
        assert row.tick == 640
        assert row.round_number == 1
        assert row.clock_time == 105.0

    def test_player_without_team_state_skipped(self, builder, alice, bob):
        joining = make_player(bob)
        joining.team_state = None

        rows = builder.build([make_player(alice), joining], STAMP)
        assert [r.name for r in rows] == ["A"]

    def test_incomplete_live_state_skipped(self, builder, alice, bob):
        rows = builder.build(
            [make_player(alice, position=None), make_player(bob), None], STAMP
        )
        assert [r.name for r in rows] == ["B"]

    def test_participant_order_preserved(self, builder, alice, bob, carol):
        rows = builder.build([make_player(p) for p in (carol, alice, bob)], STAMP)
        assert [r.name for r in rows] == ["C", "A", "B"]

    def test_build_does_not_mutate_buffer(self, builder, buffer, alice, bob):
        buffer.record_kill(alice, bob)
        builder.build([make_player(alice)], STAMP)
        assert len(buffer.kills_for(alice)) == 1
