"""
demosnap CLI - Command Line Interface

Provides commands for:
- Exporting demos (a single file or a whole directory) to per-second CSVs
- Showing a demo's header
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from demosnap import __version__
from demosnap.core.config import load_config, setup_logging
from demosnap.core.errors import DemoInputError
from demosnap.decoder import DemoparserDecoder
from demosnap.parallel import BatchExportProgress, ParallelDemoExporter
from demosnap.pipeline import discover_demos

app = typer.Typer(
    name="demosnap",
    help="Export CS2 demos to one-row-per-player-per-second CSV files",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]demosnap[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """demosnap - per-second CS2 demo exporter"""


@app.command()
def export(
    input_path: Path = typer.Argument(
        ...,
        help="A .dem file or a directory containing .dem files",
        exists=True,
        resolve_path=True,
    ),
    output_dir: Path = typer.Option(
        Path("Outputs"),
        "--output",
        "-o",
        help="Directory receiving one CSV per demo",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (.yaml, .toml or .json)",
        exists=True,
        dir_okay=False,
    ),
    workers: Optional[int] = typer.Option(
        None, "--workers", "-w", help="Number of demos processed concurrently"
    ),
    round_duration: Optional[float] = typer.Option(
        None, "--round-duration", help="Round timer length in seconds for ClockTime"
    ),
    tick_rate: Optional[float] = typer.Option(
        None, "--tick-rate", help="Override the demo tick rate"
    ),
    recursive: bool = typer.Option(
        False, "--recursive", "-r", help="Scan subdirectories for demos"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable verbose output"),
) -> None:
    """
    Export demos to per-second player snapshots.

    Each demo produces <output>/<demo name>.csv. A demo that fails to decode
    is reported and skipped; the remaining demos are still exported.
    """
    config = load_config(config_file)
    if workers is not None:
        config.batch.workers = workers
    if round_duration is not None:
        config.aggregation.round_duration = round_duration
    if tick_rate is not None:
        config.aggregation.tick_rate = tick_rate
    if recursive:
        config.batch.recursive = True
    if verbose:
        config.logging.level = "DEBUG"
    setup_logging(config.logging)

    if input_path.is_dir():
        demo_paths = discover_demos(
            input_path, pattern=config.batch.demo_glob, recursive=config.batch.recursive
        )
    else:
        demo_paths = [input_path]

    if not demo_paths:
        console.print(f"[yellow]No demo files found in {input_path}[/yellow]")
        raise typer.Exit(1)

    console.print(f"\n[bold blue]demosnap[/bold blue] - Exporting {len(demo_paths)} demo(s)...\n")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        console=console,
    ) as progress:
        task = progress.add_task("Exporting demos...", total=len(demo_paths))

        def on_progress(state: BatchExportProgress) -> None:
            progress.update(
                task,
                completed=state.completed_tasks,
                description=(
                    f"Exported {Path(state.current_task).name} ({state.progress_percent:.0f}%)"
                ),
            )

        exporter = ParallelDemoExporter(config, progress_callback=on_progress)
        result = exporter.export_batch(demo_paths, output_dir)

    table = Table(title="Export Results")
    table.add_column("Demo", style="cyan")
    table.add_column("Status")
    table.add_column("Rows", justify="right")
    table.add_column("Windows", justify="right")
    table.add_column("Output / Error", style="dim")

    for r in sorted(result.results, key=lambda r: r.demo_path):
        status = "[green]ok[/green]" if r.success else "[red]failed[/red]"
        detail = r.output_path if r.success else (r.error_message or "")
        table.add_row(
            Path(r.demo_path).name, status, str(r.rows_written), str(r.windows), detail
        )

    console.print(table)
    console.print(
        f"\n[bold]{result.successful}/{result.total_demos}[/bold] demos exported "
        f"({result.success_rate}%) in {result.total_duration_seconds:.1f}s\n"
    )

    if result.failed:
        raise typer.Exit(1)


@app.command()
def info(
    demo_path: Path = typer.Argument(
        ...,
        help="Path to the .dem file",
        exists=True,
        dir_okay=False,
        resolve_path=True,
    ),
) -> None:
    """Show a demo's header."""
    try:
        decoder = DemoparserDecoder(demo_path)
        header = decoder.parse_header()
    except DemoInputError as e:
        console.print(f"[red]Error reading demo:[/red] {e}")
        raise typer.Exit(1)

    info_table = Table(title="Demo Information", show_header=False)
    info_table.add_column("Property", style="cyan")
    info_table.add_column("Value", style="green")
    info_table.add_row("File", demo_path.name)
    info_table.add_row("Tick Rate", f"{decoder.tick_rate:g}")
    for key, value in sorted(header.items()):
        info_table.add_row(str(key), str(value))
    console.print(info_table)


if __name__ == "__main__":
    app()
