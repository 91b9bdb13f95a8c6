"""Tests for the per-demo pipeline and its failure boundary."""

import csv
from pathlib import Path
from unittest.mock import patch

import pytest

from demosnap.core.config import DemosnapConfig
from demosnap.core.constants import SNAPSHOT_COLUMNS
from demosnap.core.errors import DemoInputError
from demosnap.core.events import Kill, RoundStart
from demosnap.export import CsvSnapshotWriter
from demosnap.pipeline import discover_demos, output_path_for, process_demo

from conftest import FakeDecoder, make_player


@pytest.fixture
def demo_file(tmp_path):
    path = tmp_path / "demos" / "match_01.dem"
    path.parent.mkdir()
    path.write_bytes(b"PBDEMS2\x00")
    return path


def factory_for(decoder):
    def factory(path, tick_rate=None):
        return decoder

    return factory


class TestOutputNaming:
    def test_named_after_demo(self, tmp_path):
        assert output_path_for(Path("/x/match_01.dem"), tmp_path) == tmp_path / "match_01.csv"

    def test_custom_suffix(self, tmp_path):
        assert output_path_for(Path("a.b.dem"), tmp_path, ".tsv") == tmp_path / "a.b.tsv"


class TestDiscovery:
    def test_finds_demos_sorted(self, tmp_path):
        for name in ["b.dem", "a.dem", "notes.txt"]:
            (tmp_path / name).write_text("")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "c.dem").write_text("")

        assert [p.name for p in discover_demos(tmp_path)] == ["a.dem", "b.dem"]
        assert [p.name for p in discover_demos(tmp_path, recursive=True)] == [
            "a.dem",
            "b.dem",
            "c.dem",
        ]


class TestProcessDemo:
    def test_successful_export(self, tmp_path, demo_file, alice, bob):
        decoder = FakeDecoder(
            script=[(0, [RoundStart()]), (32, [Kill(killer=alice, victim=bob)]), (64, [])],
            players=[make_player(alice), make_player(bob)],
        )
        out_dir = tmp_path / "Outputs"

        result = process_demo(demo_file, out_dir, decoder_factory=factory_for(decoder))

        assert result.success
        assert result.rows_written == 4
        assert result.windows == 2
        assert decoder.header_parsed

        with open(out_dir / "match_01.csv", newline="") as f:
            rows = list(csv.DictReader(f))
        assert list(rows[0].keys()) == SNAPSHOT_COLUMNS
        second_window = [r for r in rows if r["Tick"] == "64"]
        assert {r["Name"]: r["Killed"] for r in second_window} == {"A": "B", "B": ""}

    def test_header_failure_contained(self, tmp_path, demo_file):
        def factory(path, tick_rate=None):
            raise DemoInputError("bad header")

        result = process_demo(demo_file, tmp_path / "Outputs", decoder_factory=factory)

        assert not result.success
        assert "bad header" in result.error_message
        assert not (tmp_path / "Outputs" / "match_01.csv").exists()

    def test_decode_crash_keeps_rows_already_written(self, tmp_path, demo_file, alice):
        class CrashingDecoder(FakeDecoder):
            def parse_to_end(self):
                self.step(0)
                self.step(64)
                raise RuntimeError("corrupt packet")

        decoder = CrashingDecoder(players=[make_player(alice)])
        result = process_demo(demo_file, tmp_path, decoder_factory=factory_for(decoder))

        assert not result.success
        assert result.rows_written == 2
        assert "corrupt packet" in result.error_message
        lines = (tmp_path / "match_01.csv").read_text().splitlines()
        assert len(lines) == 3

    def test_failure_before_any_row_removes_output(self, tmp_path, demo_file):
        class FailingDecoder(FakeDecoder):
            def parse_to_end(self):
                raise DemoInputError("truncated")

        result = process_demo(demo_file, tmp_path, decoder_factory=factory_for(FailingDecoder()))

        assert not result.success
        assert not (tmp_path / "match_01.csv").exists()

    def test_config_passed_to_decoder_and_engine(self, tmp_path, demo_file, alice):
        seen = {}
        decoder = FakeDecoder(script=[(0, [RoundStart()]), (640, [])], players=[make_player(alice)])

        def factory(path, tick_rate=None):
            seen["tick_rate"] = tick_rate
            return decoder

        config = DemosnapConfig()
        config.aggregation.tick_rate = 64
        config.aggregation.round_duration = 30

        process_demo(demo_file, tmp_path, config, decoder_factory=factory)

        assert seen["tick_rate"] == 64
        with open(tmp_path / "match_01.csv", newline="") as f:
            rows = list(csv.DictReader(f))
        assert rows[-1]["ClockTime"] == "20.00"

    def test_sink_failure_keeps_partial_output(self, tmp_path, demo_file, alice, bob):
        class DiskFullWriter(CsvSnapshotWriter):
            def write_row(self, snapshot):
                if self.rows_written == 3:
                    raise OSError(28, "No space left on device")
                super().write_row(snapshot)

        decoder = FakeDecoder(
            script=[(0, [RoundStart()]), (64, [Kill(killer=alice, victim=bob)]), (128, [])],
            players=[make_player(alice), make_player(bob)],
        )

        with patch("demosnap.pipeline.CsvSnapshotWriter", DiskFullWriter):
            result = process_demo(demo_file, tmp_path, decoder_factory=factory_for(decoder))

        assert not result.success
        assert "No space left on device" in result.error_message
        assert result.rows_written == 3
        assert result.windows == 1

        with open(tmp_path / "match_01.csv", newline="") as f:
            rows = list(csv.DictReader(f))
        assert [(r["Tick"], r["Name"]) for r in rows] == [("0", "A"), ("0", "B"), ("64", "A")]
