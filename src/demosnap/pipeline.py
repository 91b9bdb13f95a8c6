"""
Per-demo export pipeline.

``process_demo`` is the failure boundary for one file: decode errors, output
errors and unexpected faults are logged and returned as a failed
DemoExportResult, never raised to the batch loop.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass
from pathlib import Path

from demosnap.aggregation.engine import SecondAggregator
from demosnap.core.config import DemosnapConfig
from demosnap.core.constants import DEMO_FILE_SUFFIX
from demosnap.decoder import Decoder, DemoparserDecoder
from demosnap.export import CsvSnapshotWriter

logger = logging.getLogger(__name__)

DecoderFactory = Callable[..., Decoder]


@dataclass
class DemoExportResult:
    """Result of exporting a single demo."""

    demo_path: str
    output_path: str
    success: bool
    duration_seconds: float
    rows_written: int = 0
    windows: int = 0
    error_message: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def discover_demos(directory: Path, pattern: str = "*.dem", recursive: bool = False) -> list[Path]:
    """Find demo files in a directory, sorted by path."""
    directory = Path(directory)
    found = directory.rglob(pattern) if recursive else directory.glob(pattern)
    demos = sorted(p for p in found if p.is_file())
    logger.info(f"Found {len(demos)} demo files in {directory}")
    return demos


def output_path_for(demo_path: Path, output_dir: Path, suffix: str = ".csv") -> Path:
    """Output file named after the demo's base name."""
    name = Path(demo_path).name
    if name.lower().endswith(DEMO_FILE_SUFFIX):
        name = name[: -len(DEMO_FILE_SUFFIX)]
    return Path(output_dir) / f"{name}{suffix}"


def process_demo(
    demo_path: Path,
    output_dir: Path,
    config: DemosnapConfig | None = None,
    decoder_factory: DecoderFactory = DemoparserDecoder,
) -> DemoExportResult:
    """
    Export one demo to a per-second CSV.

    Args:
        demo_path: Path to the .dem file
        output_dir: Directory receiving the CSV (created if missing)
        config: Configuration; defaults when omitted
        decoder_factory: Callable building a Decoder from (path, tick_rate=...)

    Returns:
        DemoExportResult; ``success`` is False on any failure
    """
    config = config or DemosnapConfig()
    demo_path = Path(demo_path)
    output_path = output_path_for(demo_path, output_dir, config.export.output_suffix)
    start_time = time.time()
    logger.info(f"Processing file: {demo_path}")

    writer: CsvSnapshotWriter | None = None
    aggregator: SecondAggregator | None = None
    error_message = None

    try:
        decoder = decoder_factory(demo_path, tick_rate=config.aggregation.tick_rate)
        decoder.parse_header()

        Path(output_dir).mkdir(parents=True, exist_ok=True)
        writer = CsvSnapshotWriter(output_path, config.export).open()

        aggregator = SecondAggregator(decoder, writer, config.aggregation).attach()
        decoder.parse_to_end()
    except Exception as e:
        error_message = str(e) or type(e).__name__
        logger.exception(f"Error processing {demo_path}: {error_message}")
    finally:
        if writer is not None:
            writer.close()

    rows_written = aggregator.rows_written if aggregator else 0
    if error_message and writer is not None and rows_written == 0:
        # Nothing but a header was written; don't leave it behind
        output_path.unlink(missing_ok=True)

    duration = time.time() - start_time
    if error_message is None:
        logger.info(
            f"Finished processing file: {demo_path} "
            f"({rows_written} rows, {len(aggregator.flushed_seconds)} windows, {duration:.1f}s)"
        )

    return DemoExportResult(
        demo_path=str(demo_path),
        output_path=str(output_path),
        success=error_message is None,
        duration_seconds=duration,
        rows_written=rows_written,
        windows=len(aggregator.flushed_seconds) if aggregator else 0,
        error_message=error_message,
    )
