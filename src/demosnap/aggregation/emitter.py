"""
Hands finished rows to the output sink, then closes the window.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from demosnap.aggregation.buffer import EventBuffer
from demosnap.aggregation.snapshot import PlayerSnapshot
from demosnap.core.errors import RowWriteError, SinkUnavailableError

logger = logging.getLogger(__name__)


class SnapshotSink(Protocol):
    def write_row(self, snapshot: PlayerSnapshot) -> None: ...


class Emitter:
    """
    Writes rows in the order they were built. A bad row is logged and skipped;
    an unusable sink aborts the file with ``SinkUnavailableError``.
    """

    def __init__(self, sink: SnapshotSink, buffer: EventBuffer):
        self.sink = sink
        self.buffer = buffer
        self.rows_written = 0
        self.rows_failed = 0

    def emit(self, rows: Sequence[PlayerSnapshot]) -> int:
        written = 0
        for row in rows:
            try:
                self.sink.write_row(row)
            except SinkUnavailableError:
                raise
            except OSError as e:
                raise SinkUnavailableError(f"Output sink unusable: {e}") from e
            except (RowWriteError, ValueError, TypeError) as e:
                self.rows_failed += 1
                logger.warning(f"Dropped row for {row.name} at tick {row.tick}: {e}")
                continue
            written += 1
            self.rows_written += 1

        self.buffer.clear()
        return written
