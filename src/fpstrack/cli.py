"""
fpstrack CLI - Command Line Interface for FPS log analysis

Provides commands for:
- Listing the players found in a log
- Analyzing per-player frame rates, trends and the running average
- Exporting results to JSON or CSV
- Creating and inspecting configuration files
"""

import logging
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.syntax import Syntax
from rich.table import Table

from fpstrack import __version__
from fpstrack.analysis import LogAnalysis, reference_lines
from fpstrack.core.config import (
    FpstrackConfig,
    config_to_dict,
    generate_default_config,
    get_config,
    load_config,
    set_config,
)
from fpstrack.core.constants import WINDOW_PRESETS_SECONDS
from fpstrack.core.errors import LogDecodeError
from fpstrack.core.schemas import AggregateResult, ParsedLog
from fpstrack.core.utils import PerformanceMonitor, format_clock, format_duration
from fpstrack.export import export_analysis
from fpstrack.parser import LogParser, ParseStats, read_log_file
from fpstrack.trend import trend_slope_per_minute

app = typer.Typer(
    name="fpstrack",
    help="Frame-rate analytics for game client logs - per-player series, trends and running averages",
    add_completion=False,
)
config_app = typer.Typer(help="Create and inspect configuration files")
app.add_typer(config_app, name="config")

console = Console()
logger = logging.getLogger(__name__)


def _configure_logging(config: FpstrackConfig, verbose: bool) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.logging.file:
        handlers.append(logging.FileHandler(config.logging.file))

    logging.basicConfig(
        level=config.logging.level.upper(),
        format=config.logging.format,
        handlers=handlers,
    )
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]fpstrack[/bold blue] v{__version__}")
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
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Enable verbose output",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (.yaml, .toml or .json)",
        exists=True,
        dir_okay=False,
    ),
) -> None:
    """fpstrack - FPS log analytics"""
    if config_file is not None:
        set_config(load_config(config_file))

    _configure_logging(get_config(), verbose)


# ============================================================================
# Helpers
# ============================================================================


def _load_log(log_path: Path, prefix: Optional[str]) -> tuple[ParsedLog, ParseStats]:
    """Read and parse a log, exiting with a red message if it cannot be read."""
    config = get_config()
    base_prefix = prefix if prefix is not None else config.parser.base_prefix

    try:
        text = read_log_file(log_path, config.parser.encoding)
    except (FileNotFoundError, LogDecodeError) as e:
        console.print(f"[red]Error reading log:[/red] {e}")
        raise typer.Exit(1)

    return LogParser(base_prefix).parse_with_stats(text)


def _print_log_info(log_path: Path, parsed: ParsedLog, stats: ParseStats, elapsed: float) -> None:
    timestamps = [e.timestamp for e in parsed.events]

    info_table = Table(title="Log Information", show_header=False)
    info_table.add_column("Property", style="cyan")
    info_table.add_column("Value", style="green")
    info_table.add_row("File", log_path.name)
    info_table.add_row("Lines", str(stats.lines_total))
    info_table.add_row("FPS Samples", str(stats.fps_samples))
    info_table.add_row("Player Count Samples", str(stats.player_count_samples))
    info_table.add_row("Players", str(len(parsed.players)))
    if timestamps:
        span_seconds = (timestamps[-1] - timestamps[0]) / 1000.0
        info_table.add_row(
            "Time Range",
            f"{format_clock(timestamps[0])} - {format_clock(timestamps[-1])} "
            f"({format_duration(span_seconds)})",
        )
    info_table.add_row("Parse Time", format_duration(elapsed))
    console.print(info_table)
    console.print()


def _print_aggregate(result: AggregateResult, window_ms: float, smoothing_radius: int) -> None:
    if result.is_empty:
        console.print("[yellow]No samples to average for the selected players.[/yellow]")
        return

    values = [p.average_value for p in result.points]
    lowest = min(result.points, key=lambda p: p.average_value)

    lines = [
        f"Window: {window_ms / 1000:g}s, smoothing radius: {smoothing_radius}",
        f"Samples pooled: {result.pooled_point_count}, average points: {len(result.points)}",
        f"Average FPS range: {min(values):.1f} - {max(values):.1f}",
        f"Lowest average: {lowest.average_value:.1f} at {format_clock(lowest.time_center)}",
    ]

    slope = trend_slope_per_minute(result.trend)
    if slope is not None:
        start, end = result.trend
        lines.append(f"Trend: {start.value:.1f} -> {end.value:.1f} ({slope:+.2f} FPS/min)")

    if result.counter_series:
        lines.append(f"Max players in instance: {result.counter_max}")

    guides = reference_lines(result.domain)
    if guides:
        below = {
            level: sum(1 for v in values if v < level) / len(values) * 100.0 for level in guides
        }
        lines.append(
            "Time below: " + ", ".join(f"{level:g} FPS {pct:.0f}%" for level, pct in below.items())
        )

    console.print(Panel("\n".join(lines), title="Running Average", border_style="blue"))


# ============================================================================
# Commands
# ============================================================================


@app.command()
def players(
    log_path: Path = typer.Argument(..., help="Path to the client log file"),
    prefix: Optional[str] = typer.Option(
        None,
        "--prefix",
        help="Base tag prefix (tags are <prefix>FPS and <prefix>PlayerCount)",
    ),
) -> None:
    """
    List the players that reported FPS in a log.
    """
    parsed, _ = _load_log(log_path, prefix)

    if not parsed.players:
        console.print("[yellow]No FPS samples found.[/yellow]")
        return

    analysis = LogAnalysis(parsed)
    table = Table(title="Players")
    table.add_column("Player", style="cyan")
    table.add_column("Samples", justify="right")
    table.add_column("Avg FPS", justify="right", style="green")

    for stats in analysis.player_stats():
        table.add_row(stats.player, str(stats.sample_count), f"{stats.average_fps:.1f}")

    console.print(table)


@app.command()
def analyze(
    log_path: Path = typer.Argument(..., help="Path to the client log file"),
    prefix: Optional[str] = typer.Option(
        None,
        "--prefix",
        help="Base tag prefix (tags are <prefix>FPS and <prefix>PlayerCount)",
    ),
    player: Optional[list[str]] = typer.Option(
        None,
        "--player",
        "-p",
        help="Player to include (repeatable, defaults to all players)",
    ),
    window: Optional[float] = typer.Option(
        None,
        "--window",
        "-w",
        help=(
            "Running average window in seconds "
            f"(common: {', '.join(str(s) for s in WINDOW_PRESETS_SECONDS)})"
        ),
    ),
    smoothing: Optional[int] = typer.Option(
        None,
        "--smoothing",
        "-s",
        help="Smoothing radius for the running average (0 disables smoothing)",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file for results (format detected from extension: .json, .csv)",
    ),
) -> None:
    """
    Analyze the frame rates in a client log.

    Shows per-player statistics with a least-squares trend, and the
    running average across the selected players.
    """
    config = get_config()
    window_ms = window * 1000.0 if window is not None else config.aggregation.window_ms
    smoothing_radius = smoothing if smoothing is not None else config.aggregation.smoothing_radius

    console.print("\n[bold blue]fpstrack[/bold blue] - Analyzing log...\n")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Parsing log file...", total=None)
        with PerformanceMonitor("cli parse") as monitor:
            parsed, stats = _load_log(log_path, prefix)
        progress.update(task, description="Log parsed successfully!")

    _print_log_info(log_path, parsed, stats, monitor.elapsed)

    if not parsed.players:
        console.print("[yellow]No FPS samples found. Check the --prefix option.[/yellow]")
        return

    selected = list(dict.fromkeys(player)) if player else list(parsed.players)
    for name in selected:
        if name not in parsed.players:
            console.print(f"[yellow]Warning:[/yellow] Player '{name}' not found")

    analysis = LogAnalysis(parsed)

    table = Table(title="Players")
    table.add_column("Player", style="cyan")
    table.add_column("Samples", justify="right")
    table.add_column("Avg FPS", justify="right", style="green")
    table.add_column("Min", justify="right")
    table.add_column("Max", justify="right")
    table.add_column("Trend", justify="right")

    for stats_row in analysis.player_stats(selected):
        slope = trend_slope_per_minute(analysis.get_player_data(stats_row.player).trend)
        table.add_row(
            stats_row.player,
            str(stats_row.sample_count),
            f"{stats_row.average_fps:.1f}",
            str(stats_row.min_fps),
            str(stats_row.max_fps),
            f"{slope:+.2f}/min" if slope is not None else "-",
        )
    console.print(table)
    console.print()

    try:
        result = analysis.aggregate(
            selected,
            window_ms=window_ms,
            smoothing_radius=smoothing_radius,
            max_samples=config.aggregation.max_samples,
            max_step_ms=config.aggregation.max_step_ms,
        )
    except ValueError as e:
        console.print(f"[red]Invalid option:[/red] {e}")
        raise typer.Exit(1)

    _print_aggregate(result, window_ms, smoothing_radius)

    if output:
        try:
            written = export_analysis(
                parsed,
                output,
                players=selected,
                window_ms=window_ms,
                smoothing_radius=smoothing_radius,
                source=str(log_path),
                max_samples=config.aggregation.max_samples,
                max_step_ms=config.aggregation.max_step_ms,
            )
        except ValueError as e:
            console.print(f"[red]Export failed:[/red] {e}")
            raise typer.Exit(1)

        for path in written:
            console.print(f"[green]Results saved to:[/green] {path}")


@config_app.command("init")
def config_init(
    path: Path = typer.Argument(Path("fpstrack.yaml"), help="Where to write the config file"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
) -> None:
    """
    Write a configuration file with the default settings.
    """
    if path.exists() and not force:
        console.print(f"[red]Error:[/red] {path} already exists (use --force to overwrite)")
        raise typer.Exit(1)

    try:
        generate_default_config(path)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]Config written to:[/green] {path}")


@config_app.command("show")
def config_show() -> None:
    """
    Print the effective configuration (file, environment and defaults merged).
    """
    text = yaml.dump(config_to_dict(get_config()), default_flow_style=False, sort_keys=False)
    console.print(Syntax(text, "yaml"))


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
