"""
Rich-based terminal output for libreprobe results.

All formatting helpers live in ``libreprobe.stats`` -- this module only does
presentation via the ``rich`` library.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from libreprobe.grading import format_delta
from libreprobe.models import HistoryRecord, ServerStats, SpeedTestResult
from libreprobe.stats import format_latency, format_speed

console = Console()


# ---------------------------------------------------------------------------
# Histogram helper
# ---------------------------------------------------------------------------

_BARS = "▁▂▃▄▅▆▇█"


def create_histogram(values: List[float]) -> str:
    """Return a single-line Unicode bar-chart."""
    if not values:
        return "No data"

    lo, hi = min(values), max(values)
    span = hi - lo if hi > lo else 1.0
    return "".join(
        _BARS[min(int((v - lo) / span * (len(_BARS) - 1)), len(_BARS) - 1)]
        for v in values
    )


# ---------------------------------------------------------------------------
# Print helpers
# ---------------------------------------------------------------------------

def print_header(server_count: int) -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]LibreSpeed Monitor[/bold cyan]\n"
            f"[dim]Testing {server_count} server(s)[/dim]",
            border_style="cyan",
        )
    )
    console.print()


def print_server_result(
    result: SpeedTestResult,
    delta: Optional[Dict[str, Optional[float]]] = None,
) -> None:
    """Print one server's result panel, with the change since last run."""
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column(style="dim")
    table.add_column(style="bold", justify="right")
    table.add_column()

    def _d(metric: str, unit: str, invert: bool = False) -> str:
        if not delta:
            return ""
        return format_delta(delta.get(metric), unit, invert=invert)

    table.add_row("Download", f"[green]{format_speed(result.download_speed)}[/green]",
                  _d("download_speed", "Mbps"))
    table.add_row("Upload", f"[blue]{format_speed(result.upload_speed)}[/blue]",
                  _d("upload_speed", "Mbps"))
    table.add_row("Ping", f"[yellow]{format_latency(result.ping)}[/yellow]",
                  _d("ping", "ms", invert=True))
    table.add_row("Jitter", format_latency(result.jitter), _d("jitter", "ms", invert=True))

    for note in result.notes:
        table.add_row("Note", f"[yellow]{note}[/yellow]", "")
    for error in result.errors:
        table.add_row("Error", f"[red]{error}[/red]", "")

    border = "red" if not result.has_measurements else ("yellow" if result.errors else "cyan")
    console.print(
        Panel(table, title=f"[bold]{result.server_name}[/bold]", border_style=border)
    )


def print_campaign_summary(results: Sequence[SpeedTestResult]) -> None:
    table = Table(title="Summary", box=box.ROUNDED)
    table.add_column("Server", style="bold")
    table.add_column("Download", justify="right")
    table.add_column("Upload", justify="right")
    table.add_column("Ping", justify="right")
    table.add_column("Jitter", justify="right")
    table.add_column("Errors", justify="right")

    for r in results:
        table.add_row(
            r.server_name,
            format_speed(r.download_speed),
            format_speed(r.upload_speed),
            format_latency(r.ping),
            format_latency(r.jitter),
            str(len(r.errors)) if r.errors else "-",
            style="red" if not r.has_measurements else None,
        )
    console.print(table)


def print_history(records: Sequence[HistoryRecord]) -> None:
    """Tabular view of stored results, newest first."""
    if not records:
        console.print("[dim]No history yet.[/dim]")
        return

    table = Table(title="Test History", box=box.ROUNDED)
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Time")
    table.add_column("Server", style="bold")
    table.add_column("Download", justify="right")
    table.add_column("Upload", justify="right")
    table.add_column("Ping", justify="right")
    table.add_column("Jitter", justify="right")

    for rec in records:
        table.add_row(
            str(rec.id),
            rec.test_timestamp.strftime("%Y-%m-%d %H:%M"),
            rec.server_name,
            format_speed(rec.download_speed),
            format_speed(rec.upload_speed),
            format_latency(rec.ping),
            format_latency(rec.jitter),
        )
    console.print(table)

    # Oldest to newest for the trend line.
    downloads = [r.download_speed for r in reversed(records) if r.download_speed is not None]
    if len(downloads) > 1:
        console.print(
            Panel(
                f"[green]{create_histogram(downloads)}[/green]\n"
                f"[dim]Min: {min(downloads):.1f} Mbps  Max: {max(downloads):.1f} Mbps[/dim]",
                title="Download Trend",
            )
        )


def print_stats(stats: ServerStats) -> None:
    table = Table(title=f"Statistics for {stats.server_url}", box=box.ROUNDED)
    table.add_column("Metric", style="bold")
    table.add_column("Average", justify="right")

    table.add_row("Download", format_speed(stats.avg_download))
    table.add_row("Upload", format_speed(stats.avg_upload))
    table.add_row("Ping", format_latency(stats.avg_ping))
    table.add_row("Jitter", format_latency(stats.avg_jitter))
    table.add_row("Tests", str(stats.count))
    console.print(table)
