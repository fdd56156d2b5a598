from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn

from indexbench.config import get_settings
from indexbench.errors import IndexMutationError, InsertionError, ValidationError
from indexbench.infrastructure.db_factory import sync_connection
from indexbench.orchestrator import build_payload, run_benchmark, seed_table
from indexbench.reporter import print_configurations, print_results, print_seed_summary
from indexbench.schema import count_rows, create_table, truncate_table
from indexbench.sinks import SINKS
from indexbench.utils.logging import configure_logging
from indexbench.workload import (
    DEFAULT_PARAMS,
    DEFAULT_QUERY_TEMPLATE,
    default_configurations,
    load_configurations,
)

app = typer.Typer(help="Synthetic dataset generator and index-impact benchmark CLI.")


def _setup_logging() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=1)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"table={settings.table_name} rows={settings.seed_rows} "
        f"batch={settings.seed_batch_size} results={settings.results_dir}"
    )


@app.command()
def init() -> None:
    """
    Create the target table if it does not exist.
    """
    _setup_logging()
    table = get_settings().table_name
    with sync_connection() as conn:
        create_table(conn, table)
        rows = count_rows(conn, table)
    typer.echo(f"Table '{table}' ready ({rows:,} rows).")


@app.command()
def reset() -> None:
    """
    Truncate the target table. The generator never does this on its own.
    """
    _setup_logging()
    table = get_settings().table_name
    with sync_connection() as conn:
        truncate_table(conn, table)
    typer.echo(f"Table '{table}' truncated.")


@app.command()
def seed(
    rows: Optional[int] = typer.Option(
        None,
        "--rows",
        "-r",
        help="Number of rows to generate (default from settings).",
    ),
    batch_size: Optional[int] = typer.Option(
        None,
        "--batch-size",
        "-b",
        help="Rows per committed batch, 1-10000 (default from settings).",
    ),
    start_offset: int = typer.Option(
        0,
        "--start-offset",
        help="First offset to generate; use the committed count to resume a failed run.",
    ),
    mode: str = typer.Option(
        "copy",
        "--mode",
        "-m",
        help=f"Bulk sink: {', '.join(sorted(SINKS))}.",
    ),
    truncate: bool = typer.Option(
        False,
        "--truncate",
        help="Truncate the table before seeding.",
    ),
    vacuum: bool = typer.Option(
        True,
        "--vacuum/--no-vacuum",
        help="Run VACUUM (ANALYZE) after seeding.",
    ),
) -> None:
    """
    Populate the target table with deterministic synthetic users.
    """
    _setup_logging()
    settings = get_settings()
    total_rows = settings.seed_rows if rows is None else rows
    if mode not in SINKS:
        _fail(f"unknown mode '{mode}'. Available: {', '.join(sorted(SINKS))}")

    typer.echo(
        f"Seeding {total_rows:,} rows into '{settings.table_name}' "
        f"(batch={batch_size or settings.seed_batch_size}, mode={mode}, start={start_offset})."
    )
    progress = Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        transient=True,
    )
    try:
        with progress:
            task = progress.add_task("seeding", total=max(total_rows, 0))
            summary = seed_table(
                rows=total_rows,
                batch_size=batch_size,
                start_offset=start_offset,
                mode=mode,
                truncate=truncate,
                vacuum=vacuum,
                on_batch=lambda done, total: progress.update(task, completed=done),
            )
    except ValidationError as exc:
        _fail(str(exc))
    except InsertionError as exc:
        _fail(
            f"{exc}\n{exc.committed_rows:,} rows were committed; "
            f"resume with --start-offset {exc.next_offset}."
        )
    print_seed_summary(summary)


@app.command()
def configs(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="JSON file with index configurations (default: built-in four).",
    ),
) -> None:
    """
    List the index configurations a benchmark would measure.
    """
    try:
        configurations = load_configurations(config) if config else default_configurations()
    except ValidationError as exc:
        _fail(str(exc))
    print_configurations(configurations)


@app.command()
def bench(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="JSON file with index configurations (default: built-in four).",
    ),
    name: str = typer.Option(
        DEFAULT_PARAMS["name"],
        "--name",
        help="Value for the name predicate.",
    ),
    state_id: int = typer.Option(
        DEFAULT_PARAMS["state_id"],
        "--state-id",
        help="Value for the state_id predicate.",
    ),
    warmup: bool = typer.Option(
        False,
        "--warmup",
        help="Execute the query once before each measurement.",
    ),
    keep_indexes: bool = typer.Option(
        False,
        "--keep-indexes",
        help="Leave the last configuration's indexes in place.",
    ),
    persist: bool = typer.Option(
        True,
        "--persist/--no-persist",
        help="Write results/latest.json and a timestamped archive.",
    ),
    results_dir: Optional[Path] = typer.Option(
        None,
        "--results-dir",
        help="Directory for JSON results (default from settings).",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print results as JSON instead of a table.",
    ),
) -> None:
    """
    Measure the workload query under each index configuration, in order.
    """
    _setup_logging()
    params = {"name": name, "state_id": state_id}
    try:
        configurations = load_configurations(config) if config else default_configurations()
        entries = run_benchmark(
            configurations=configurations,
            params=params,
            warmup=warmup,
            cleanup=not keep_indexes,
            results_dir=results_dir,
            persist=persist,
        )
    except (ValidationError, IndexMutationError) as exc:
        _fail(str(exc))

    if as_json:
        payload = build_payload(
            entries, get_settings().table_name, DEFAULT_QUERY_TEMPLATE, params
        )
        typer.echo(json.dumps(payload, indent=2))
    else:
        print_results(entries)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
