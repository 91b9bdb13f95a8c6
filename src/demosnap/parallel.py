"""
Parallel Processing Module for Batch Demo Export

Implements:
- A process pool exporting one demo per worker slot
- Per-file fault isolation (a failed demo never aborts the batch)
- Progress tracking and result aggregation
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

from demosnap.core.config import DemosnapConfig, setup_logging
from demosnap.pipeline import DemoExportResult, discover_demos, output_path_for, process_demo

logger = logging.getLogger(__name__)

MAX_WORKERS = os.cpu_count() or 8


@dataclass
class BatchExportProgress:
    """Progress tracking for batch export."""

    total_tasks: int
    completed_tasks: int = 0
    failed_tasks: int = 0
    current_task: str = ""

    @property
    def progress_percent(self) -> float:
        if self.total_tasks == 0:
            return 100.0
        return round((self.completed_tasks / self.total_tasks) * 100, 1)


@dataclass
class BatchExportResult:
    """Result of batch export."""

    total_demos: int
    successful: int
    failed: int
    total_duration_seconds: float
    results: list[DemoExportResult] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        if self.total_demos == 0:
            return 0.0
        return round((self.successful / self.total_demos) * 100, 1)

    @property
    def rows_written(self) -> int:
        return sum(r.rows_written for r in self.results)

    def to_dict(self) -> dict:
        return {
            "total_demos": self.total_demos,
            "successful": self.successful,
            "failed": self.failed,
            "success_rate": self.success_rate,
            "rows_written": self.rows_written,
            "total_duration_seconds": round(self.total_duration_seconds, 2),
            "results": [r.to_dict() for r in self.results],
        }


def _export_single_demo(demo_path: Path, output_dir: Path, config: DemosnapConfig) -> DemoExportResult:
    """
    Worker function to export a single demo.
    This runs in a separate process.
    """
    return process_demo(demo_path, output_dir, config)


class ParallelDemoExporter:
    """
    Parallel demo exporter using multiprocessing.

    Usage:
        exporter = ParallelDemoExporter(config)
        results = exporter.export_batch([Path("demo1.dem"), Path("demo2.dem")], Path("Outputs"))
    """

    def __init__(
        self,
        config: DemosnapConfig | None = None,
        use_processes: bool = True,
        progress_callback: Callable[[BatchExportProgress], None] | None = None,
    ):
        """
        Initialize the parallel exporter.

        Args:
            config: Configuration shipped to every worker
            use_processes: If True, use ProcessPoolExecutor; if False, use ThreadPoolExecutor
            progress_callback: Optional callback for progress updates
        """
        self.config = config or DemosnapConfig()
        self.workers = max(1, min(self.config.batch.workers, MAX_WORKERS))
        self.use_processes = use_processes
        self.progress_callback = progress_callback

        logger.info(f"ParallelDemoExporter initialized with {self.workers} workers")

    def export_batch(self, demo_paths: list[Path], output_dir: Path) -> BatchExportResult:
        """
        Export multiple demos in parallel.

        Args:
            demo_paths: List of paths to demo files
            output_dir: Directory receiving one CSV per demo

        Returns:
            BatchExportResult with all results
        """
        if not demo_paths:
            return BatchExportResult(
                total_demos=0,
                successful=0,
                failed=0,
                total_duration_seconds=0.0,
            )

        progress = BatchExportProgress(total_tasks=len(demo_paths))
        start_time = time.time()
        results: list[DemoExportResult] = []

        if self.use_processes:
            executor = ProcessPoolExecutor(
                max_workers=self.workers,
                initializer=setup_logging,
                initargs=(self.config.logging,),
            )
        else:
            executor = ThreadPoolExecutor(max_workers=self.workers)

        logger.info(f"Starting batch export of {len(demo_paths)} demos with {self.workers} workers")

        with executor:
            future_to_path = {
                executor.submit(_export_single_demo, path, output_dir, self.config): path
                for path in demo_paths
            }

            for future in as_completed(future_to_path):
                path = future_to_path[future]
                progress.current_task = str(path)

                try:
                    result = future.result()
                except Exception as e:
                    # Worker process died (e.g. crashed inside the native decoder)
                    logger.error(f"Export of {path} failed: {e}")
                    result = DemoExportResult(
                        demo_path=str(path),
                        output_path=str(
                            output_path_for(path, output_dir, self.config.export.output_suffix)
                        ),
                        success=False,
                        duration_seconds=0.0,
                        error_message=str(e),
                    )

                results.append(result)
                progress.completed_tasks += 1
                if not result.success:
                    progress.failed_tasks += 1

                if self.progress_callback:
                    self.progress_callback(progress)

        total_duration = time.time() - start_time
        successful = sum(1 for r in results if r.success)
        failed = len(results) - successful

        logger.info(
            f"Batch export complete: {successful}/{len(results)} successful in {total_duration:.1f}s"
        )

        return BatchExportResult(
            total_demos=len(results),
            successful=successful,
            failed=failed,
            total_duration_seconds=total_duration,
            results=results,
        )

    def export_directory(self, directory: Path, output_dir: Path) -> BatchExportResult:
        """Export every demo found in a directory."""
        demo_paths = discover_demos(
            directory,
            pattern=self.config.batch.demo_glob,
            recursive=self.config.batch.recursive,
        )
        return self.export_batch(demo_paths, output_dir)
