"""
Orchestration of seeding and benchmark runs: settings, connections, profiling, persistence.

Usage (example from CLI):
    from indexbench.orchestrator import run_benchmark, seed_table

    summary = seed_table(rows=100_000, batch_size=10_000)
    entries = run_benchmark()

Benchmark outputs are saved to `results/` by default:
- `results/latest.json` (last run)
- `results/run-<timestamp>.json` (timestamped archive)
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from indexbench.backend import PostgresIndexBackend
from indexbench.config import get_settings
from indexbench.domain.models import BenchmarkEntry, IndexConfiguration
from indexbench.generator import DatasetGenerator, ProgressCallback, validate_request
from indexbench.infrastructure.db_factory import sync_connection
from indexbench.runner import IndexBenchmarkRunner, fastest_entry
from indexbench.schema import create_table, truncate_table, vacuum_analyze
from indexbench.sinks import build_sink
from indexbench.utils.logging import get_logger
from indexbench.utils.profiler import ProfileStats, profile_block
from indexbench.workload import DEFAULT_PARAMS, DEFAULT_QUERY_TEMPLATE, default_configurations

log = get_logger(__name__)


def _round_float(value: float, decimals: int = 2) -> float:
    """Round a float to specified decimal places for human-readable output."""
    return round(value, decimals)


def _seed_summary(inserted: int, stats: ProfileStats, mode: str, start_offset: int) -> dict:
    return {
        "rows": inserted,
        "mode": mode,
        "start_offset": start_offset,
        "next_offset": start_offset + inserted,
        "duration_seconds": _round_float(stats.duration_seconds),
        "throughput_rows_per_sec": _round_float(stats.rate(inserted)),
        "peak_rss_bytes": stats.peak_rss_bytes,
        "cpu_percent": _round_float(stats.cpu_percent, 1) if stats.cpu_percent else None,
    }


def seed_table(
    rows: Optional[int] = None,
    batch_size: Optional[int] = None,
    start_offset: int = 0,
    mode: str = "copy",
    truncate: bool = False,
    vacuum: bool = True,
    dsn: Optional[str] = None,
    on_batch: Optional[ProgressCallback] = None,
) -> dict:
    """
    Ensure the table exists and populate it with the dataset generator.

    Parameters
    ----------
    rows, batch_size : int | None
        Generator request; default to settings.seed_rows / settings.seed_batch_size.
    start_offset : int
        First offset to generate (resume point).
    mode : str
        Sink name: "copy" (client-side COPY) or "series" (server-side generate_series).
    truncate : bool
        Clear the table before seeding.
    vacuum : bool
        Run VACUUM (ANALYZE) after seeding.

    Returns
    -------
    dict
        Seed summary with row count, timing and resource usage.
    """
    settings = get_settings()
    table = settings.table_name
    total_rows = settings.seed_rows if rows is None else rows
    size = settings.seed_batch_size if batch_size is None else batch_size
    # Reject bad requests before connecting or creating anything.
    validate_request(total_rows, size, start_offset)

    with sync_connection(dsn) as conn:
        create_table(conn, table)
        if truncate:
            truncate_table(conn, table)
        generator = DatasetGenerator(build_sink(mode, conn, table), on_batch=on_batch)
        with profile_block(f"seed:{mode}") as stats:
            inserted = generator.generate(total_rows, size, start_offset)
        if vacuum:
            vacuum_analyze(conn, table)

    summary = _seed_summary(inserted, stats, mode, start_offset)
    summary["table"] = table
    summary["batch_size"] = size
    log.info("[SEED SUMMARY]", extra=summary)
    return summary


def entry_to_dict(entry: BenchmarkEntry) -> Dict[str, Any]:
    """JSON-ready rendering of one benchmark entry."""
    return entry.model_dump(mode="json")


def _persist_results(payload: dict, results_dir: Path) -> Path:
    results_dir.mkdir(parents=True, exist_ok=True)
    latest_path = results_dir / "latest.json"
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    archive_path = results_dir / f"run-{timestamp}.json"

    for path in (latest_path, archive_path):
        with path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)

    log.info("Results persisted", extra={"latest": str(latest_path), "archive": str(archive_path)})
    return latest_path


def build_payload(
    entries: Sequence[BenchmarkEntry],
    table: str,
    query_template: str,
    params: Optional[Mapping[str, Any]],
) -> dict:
    best = fastest_entry(entries)
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "table": table,
        "query_template": query_template,
        "params": dict(DEFAULT_PARAMS if params is None else params),
        "lowest_cost_configuration": best.configuration.name if best else None,
        "results": [entry_to_dict(entry) for entry in entries],
    }


def run_benchmark(
    configurations: Optional[Sequence[IndexConfiguration]] = None,
    query_template: str = DEFAULT_QUERY_TEMPLATE,
    params: Optional[Mapping[str, Any]] = None,
    warmup: bool = False,
    cleanup: bool = True,
    vacuum: bool = True,
    results_dir: Path | str | None = None,
    persist: bool = True,
    dsn: Optional[str] = None,
) -> List[BenchmarkEntry]:
    """
    Run the index benchmark against the populated table and optionally persist it.

    Parameters
    ----------
    configurations : sequence[IndexConfiguration] | None
        Ordered configurations; defaults to `workload.default_configurations()`.
    query_template, params
        Workload query and its literal parameters.
    warmup : bool
        Execute the query once before each measurement.
    cleanup : bool
        Drop the last configuration's indexes at the end.
    vacuum : bool
        Refresh statistics with VACUUM (ANALYZE) instead of plain ANALYZE.
    results_dir : Path | str | None
        Directory for JSON artifacts; defaults to settings.results_dir.
    persist : bool
        Whether to write results to disk.

    Returns
    -------
    List[BenchmarkEntry]
        One entry per configuration, in input order.
    """
    settings = get_settings()
    table = settings.table_name
    configs = list(configurations) if configurations is not None else default_configurations()

    log.info(f"{'=' * 60}")
    log.info(
        f"[BENCHMARK] {len(configs)} configuration(s) on {table}",
        extra={"configurations": [c.name for c in configs], "table": table},
    )
    log.info(f"{'=' * 60}")

    with sync_connection(dsn) as conn:
        backend = PostgresIndexBackend(conn, table, vacuum=vacuum)
        runner = IndexBenchmarkRunner(backend, warmup=warmup, cleanup=cleanup)
        entries = runner.run(query_template, configs, params)

    if persist:
        payload = build_payload(entries, table, query_template, params)
        _persist_results(payload, Path(results_dir or settings.results_dir))

    return entries


__all__ = [
    "build_payload",
    "entry_to_dict",
    "run_benchmark",
    "seed_table",
]
