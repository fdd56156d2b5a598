from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from indexbench.domain.models import AccessPath, BenchmarkEntry, IndexConfiguration
from indexbench.runner import fastest_entry

_ACCESS_PATH_STYLES = {
    AccessPath.FULL_SCAN: "red",
    AccessPath.NON_COVERING_INDEX: "yellow",
    AccessPath.COVERING_INDEX: "bold green",
    AccessPath.OTHER: "white",
}


def _describe_indexes(configuration: IndexConfiguration) -> str:
    if not configuration.indexes:
        return "-"
    return "; ".join(f"({', '.join(index.columns)})" for index in configuration.indexes)


def _format_rows(value: float) -> str:
    return f"{value:,.0f}"


def build_results_table(entries: Sequence[BenchmarkEntry], title: Optional[str] = None) -> Table:
    """
    Render benchmark entries as a rich table, in the order they were measured.

    The lowest-cost configuration is marked but never moved.
    """
    best = fastest_entry(entries)
    table = Table(
        title=title or "Index Impact Results",
        box=box.ROUNDED,
        caption="In measurement order; * marks the lowest estimated cost",
    )

    table.add_column("Configuration", style="cyan", no_wrap=True)
    table.add_column("Indexes", style="blue")
    table.add_column("Access Path")
    table.add_column("Plan Node", style="dim")
    table.add_column("Est. Cost", justify="right", style="magenta")
    table.add_column("Est. Rows", justify="right")
    table.add_column("Actual Rows", justify="right")
    table.add_column("Rows Examined", justify="right", style="yellow")
    table.add_column("Time (ms)", justify="right", style="green")

    for entry in entries:
        name = escape(entry.configuration.name)
        if best is not None and entry is best:
            name = f"{name} *"
        indexes = _describe_indexes(entry.configuration)

        if entry.metric is None:
            table.add_row(
                name,
                indexes,
                f"[bold red]ERROR[/bold red] {entry.error_type or ''}".rstrip(),
                escape(entry.error or ""),
                "N/A",
                "N/A",
                "N/A",
                "N/A",
                "N/A",
            )
            continue

        metric = entry.metric
        style = _ACCESS_PATH_STYLES[metric.access_path]
        node = metric.node_type + (f" using {metric.index_name}" if metric.index_name else "")
        table.add_row(
            name,
            indexes,
            f"[{style}]{metric.access_path.value}[/{style}]",
            node,
            f"{metric.estimated_cost:,.2f}",
            _format_rows(metric.estimated_rows),
            _format_rows(metric.actual_rows),
            _format_rows(metric.rows_examined),
            f"{metric.execution_time_ms:,.3f}",
        )

    return table


def print_results(entries: Sequence[BenchmarkEntry], console: Optional[Console] = None) -> None:
    """Print the benchmark comparison table."""
    console = console or Console()
    if not entries:
        console.print("[yellow]No results to display.[/yellow]")
        return
    console.print(build_results_table(entries))


def print_configurations(
    configurations: Sequence[IndexConfiguration], console: Optional[Console] = None
) -> None:
    """List configurations with their index definitions."""
    console = console or Console()
    table = Table(title="Index Configurations", box=box.ROUNDED)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Configuration", style="cyan", no_wrap=True)
    table.add_column("Indexes", style="blue")
    table.add_column("Description")
    for position, configuration in enumerate(configurations, start=1):
        table.add_row(
            str(position),
            escape(configuration.name),
            _describe_indexes(configuration),
            configuration.description,
        )
    console.print(table)


def print_seed_summary(summary: Dict[str, Any], console: Optional[Console] = None) -> None:
    """Render the seed summary returned by `orchestrator.seed_table`."""
    console = console or Console()
    table = Table(title="Seed Summary", box=box.ROUNDED, show_header=False)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right")

    peak_rss = summary.get("peak_rss_bytes") or 0
    cpu = summary.get("cpu_percent")
    table.add_row("Table", str(summary.get("table", "")))
    table.add_row("Mode", str(summary.get("mode", "")))
    table.add_row("Rows inserted", f"{summary.get('rows', 0):,}")
    table.add_row("Batch size", f"{summary.get('batch_size', 0):,}")
    offsets = f"[{summary.get('start_offset', 0):,}, {summary.get('next_offset', 0):,})"
    table.add_row("Offsets", escape(offsets))
    table.add_row("Duration (s)", f"{summary.get('duration_seconds', 0.0):.2f}")
    table.add_row("Throughput (rows/s)", f"{summary.get('throughput_rows_per_sec', 0.0):,.2f}")
    table.add_row("Peak Memory (MB)", f"{peak_rss / (1024 * 1024):.2f}")
    table.add_row("CPU %", f"{cpu:.1f}" if cpu is not None else "N/A")
    console.print(table)


__all__ = [
    "build_results_table",
    "print_configurations",
    "print_results",
    "print_seed_summary",
]
