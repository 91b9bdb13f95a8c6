"""Tests for batch export."""

from pathlib import Path
from unittest.mock import patch

from demosnap.core.config import DemosnapConfig
from demosnap.parallel import BatchExportProgress, BatchExportResult, ParallelDemoExporter
from demosnap.pipeline import DemoExportResult


def fake_process_demo(demo_path, output_dir, config):
    demo_path = Path(demo_path)
    if "broken" in demo_path.name:
        return DemoExportResult(
            demo_path=str(demo_path),
            output_path="",
            success=False,
            duration_seconds=0.0,
            error_message="Error parsing header",
        )
    if "crash" in demo_path.name:
        raise RuntimeError("worker died")
    return DemoExportResult(
        demo_path=str(demo_path),
        output_path=str(Path(output_dir) / f"{demo_path.stem}.csv"),
        success=True,
        duration_seconds=0.1,
        rows_written=10,
        windows=1,
    )


def make_exporter(workers=2, callback=None):
    config = DemosnapConfig()
    config.batch.workers = workers
    return ParallelDemoExporter(config, use_processes=False, progress_callback=callback)


class TestParallelDemoExporter:
    def test_empty_batch(self, tmp_path):
        result = make_exporter().export_batch([], tmp_path)
        assert result.total_demos == 0
        assert result.success_rate == 0.0

    @patch("demosnap.parallel.process_demo", side_effect=fake_process_demo)
    def test_failures_do_not_abort_batch(self, mock_process, tmp_path):
        paths = [Path(n) for n in ["a.dem", "broken.dem", "crash.dem", "b.dem"]]

        result = make_exporter().export_batch(paths, tmp_path)

        assert result.total_demos == 4
        assert result.successful == 2
        assert result.failed == 2
        assert result.rows_written == 20
        assert mock_process.call_count == 4
        crashed = next(r for r in result.results if "crash" in r.demo_path)
        assert crashed.error_message == "worker died"
        assert crashed.output_path.endswith("crash.csv")

    @patch("demosnap.parallel.process_demo", side_effect=fake_process_demo)
    def test_progress_callback(self, mock_process, tmp_path):
        updates = []
        exporter = make_exporter(
            callback=lambda p: updates.append((p.completed_tasks, p.progress_percent))
        )

        exporter.export_batch([Path("a.dem"), Path("b.dem"), Path("broken.dem")], tmp_path)

        assert sorted(updates) == [(1, 33.3), (2, 66.7), (3, 100.0)]

    @patch("demosnap.parallel.process_demo", side_effect=fake_process_demo)
    def test_export_directory(self, mock_process, tmp_path):
        demos = tmp_path / "demos"
        demos.mkdir()
        (demos / "x.dem").write_text("")
        (demos / "y.dem").write_text("")

        result = make_exporter().export_directory(demos, tmp_path / "out")

        assert result.successful == 2

    def test_workers_clamped(self):
        assert make_exporter(workers=0).workers == 1


class TestBatchExportResult:
    def test_to_dict(self):
        result = BatchExportResult(
            total_demos=2, successful=1, failed=1, total_duration_seconds=1.234
        )
        data = result.to_dict()
        assert data["success_rate"] == 50.0
        assert data["total_duration_seconds"] == 1.23


class TestBatchExportProgress:
    def test_percent_of_empty_batch_is_complete(self):
        assert BatchExportProgress(total_tasks=0).progress_percent == 100.0

    def test_percent_rounded(self):
        assert BatchExportProgress(total_tasks=8, completed_tasks=3).progress_percent == 37.5
