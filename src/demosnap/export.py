"""
CSV Export for demosnap

Serializes PlayerSnapshot rows to a delimited text file, one file per demo.

Formatting:
- position, velocity and view direction: 6 decimals
- Time, ClockTime and FlashDuration: 2 decimals
- booleans: literal true/false
- list fields (AttackedBy, AttackingTarget): comma-joined names
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any, TextIO

from demosnap.aggregation.snapshot import PlayerSnapshot
from demosnap.core.config import ExportConfig
from demosnap.core.constants import SNAPSHOT_COLUMNS, TEAM_DISPLAY_NAMES, UNKNOWN_TEAM_NAME, Team
from demosnap.core.errors import OutputError, RowWriteError, SinkUnavailableError

logger = logging.getLogger(__name__)


# ============================================================================
# Value Formatting
# ============================================================================


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def format_float(value: float, decimals: int) -> str:
    return f"{float(value):.{decimals}f}"


def team_to_string(team: Team | int | None) -> str:
    """Render a team number as Unassigned/Spectators/Terrorists/CounterTerrorists/Unknown."""
    try:
        return TEAM_DISPLAY_NAMES[Team(team)]
    except (ValueError, KeyError, TypeError):
        return UNKNOWN_TEAM_NAME


def format_snapshot_row(snapshot: PlayerSnapshot) -> list[str]:
    """Format a snapshot as a list of strings in SNAPSHOT_COLUMNS order."""
    s = snapshot
    return [
        s.name,
        format_bool(s.is_bot),
        str(s.player_id),
        team_to_string(s.team),
        str(s.team_id),
        str(s.team_score),
        str(s.round_number),
        str(s.tick),
        format_float(s.time, 2),
        format_float(s.clock_time, 2),
        format_float(s.pos_x, 6),
        format_float(s.pos_y, 6),
        format_float(s.pos_z, 6),
        format_float(s.vel_x, 6),
        format_float(s.vel_y, 6),
        format_float(s.vel_z, 6),
        format_float(s.view_direction_x, 6),
        format_float(s.view_direction_y, 6),
        format_bool(s.kill_event),
        s.killed_by,
        s.killed,
        s.assisters,
        str(s.kills),
        str(s.deaths),
        str(s.assists),
        format_bool(s.attacked),
        ",".join(s.attacked_by),
        format_bool(s.attacking),
        ",".join(s.attacking_target),
        str(s.health),
        str(s.health_damage_taken),
        str(s.armor),
        str(s.armor_damage_taken),
        format_bool(s.bomb_plant_begin),
        format_bool(s.bomb_planted),
        format_bool(s.bomb_defuse_started),
        format_bool(s.bomb_defused),
        s.bomb_plant_site,
        s.bomb_defuse_site,
        format_float(s.flash_duration, 2),
    ]


# ============================================================================
# CSV Sink
# ============================================================================


class CsvSnapshotWriter:
    """
    Output sink writing one CSV file.

    Usage:
        with CsvSnapshotWriter(Path("Outputs/match.csv")) as writer:
            writer.write_row(snapshot)
    """

    def __init__(self, output_path: Path, config: ExportConfig | None = None):
        self.output_path = Path(output_path)
        self.config = config or ExportConfig()
        self.rows_written = 0
        self._file: TextIO | None = None
        self._writer: Any = None

    def open(self) -> CsvSnapshotWriter:
        try:
            self._file = open(self.output_path, "w", newline="", encoding="utf-8")
            self._writer = csv.writer(self._file, delimiter=self.config.csv_delimiter)
            if self.config.include_header:
                self._writer.writerow(SNAPSHOT_COLUMNS)
        except (OSError, csv.Error, TypeError) as e:
            self.close()
            raise OutputError(f"Error creating output file {self.output_path}: {e}") from e
        return self

    def write_row(self, snapshot: PlayerSnapshot) -> None:
        if self._file is None or self._file.closed:
            raise SinkUnavailableError(f"Output file {self.output_path} is not open")

        try:
            record = format_snapshot_row(snapshot)
        except (ValueError, TypeError) as e:
            raise RowWriteError(snapshot.name, str(e), e) from e

        try:
            self._writer.writerow(record)
        except csv.Error as e:
            raise RowWriteError(snapshot.name, str(e), e) from e
        except OSError as e:
            raise SinkUnavailableError(f"Error writing to {self.output_path}: {e}") from e
        self.rows_written += 1

    def close(self) -> None:
        if self._file is not None and not self._file.closed:
            self._file.close()
        self._file = None

    def __enter__(self) -> CsvSnapshotWriter:
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
