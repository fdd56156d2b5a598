"""
Index benchmark runner: measure one query under a sequence of index configurations.

Secondary indexes left on the table by an earlier run are dropped first.
For each configuration, strictly in order:
1. drop the indexes left by the previous configuration,
2. create the configuration's indexes,
3. refresh planner statistics,
4. optionally run the query once to warm caches,
5. capture `EXPLAIN ANALYZE` and parse it into a `PlanMetric`.

Failures are isolated per configuration: index, query and plan errors become
error entries and the run moves on. Results keep the input order.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional

from indexbench.backend import IndexBackend
from indexbench.domain.models import BenchmarkEntry, IndexConfiguration
from indexbench.errors import (
    IndexMutationError,
    PlanParseError,
    QueryExecutionError,
    ValidationError,
)
from indexbench.plan import parse_plan
from indexbench.utils.logging import get_logger
from indexbench.workload import render_query

log = get_logger(__name__)

_ISOLATED_ERRORS = (IndexMutationError, PlanParseError, QueryExecutionError)


class IndexBenchmarkRunner:
    """
    Apply configurations one at a time against a single backend and record plans.

    Parameters
    ----------
    backend : IndexBackend
        Database operations on the target table.
    warmup : bool
        Execute the query once before measuring each configuration.
    cleanup : bool
        Drop the last configuration's indexes when the run ends.
    """

    def __init__(self, backend: IndexBackend, warmup: bool = False, cleanup: bool = True) -> None:
        self.backend = backend
        self.warmup = warmup
        self.cleanup = cleanup
        self._active: List[str] = []

    @property
    def active_indexes(self) -> List[str]:
        """Indexes currently created by this runner."""
        return list(self._active)

    def run(
        self,
        query_template: str,
        configurations: Iterable[IndexConfiguration],
        params: Optional[Mapping[str, Any]] = None,
    ) -> List[BenchmarkEntry]:
        """
        Measure `query_template` under every configuration, in order.

        Returns
        -------
        List[BenchmarkEntry]
            One entry per configuration, in input order, each holding either a
            metric or an error.

        Raises
        ------
        ValidationError
            If the query template cannot be rendered, or the table carries
            secondary indexes this tool does not manage; raised before any
            index is touched.
        IndexMutationError
            If indexes left by an earlier run cannot be dropped.
        """
        query = render_query(query_template, self.backend.table, params)
        configurations = list(configurations)
        self._drop_stale(configurations)
        total = len(configurations)

        entries: List[BenchmarkEntry] = []
        try:
            for position, configuration in enumerate(configurations, start=1):
                log.info(
                    f"[CONFIG {position}/{total}] {configuration.name}",
                    extra={"configuration": configuration.name, "indexes": len(configuration.indexes)},
                )
                entries.append(self._measure(configuration, query))
        finally:
            if self.cleanup:
                self._drop_active(quiet=True)

        failed = sum(1 for entry in entries if not entry.ok)
        log.info(
            f"[BENCHMARK COMPLETE] {total - failed}/{total} configurations measured",
            extra={"configurations": total, "failed": failed},
        )
        return entries

    def _drop_stale(self, configurations: List[IndexConfiguration]) -> None:
        table = self.backend.table
        existing = self.backend.existing_indexes()
        if not existing:
            return
        planned = {
            index.resolved_name(table)
            for configuration in configurations
            for index in configuration.indexes
        }
        stale = [name for name in existing if name in planned or name.startswith(f"idx_{table}_")]
        foreign = [name for name in existing if name not in stale]
        if foreign:
            raise ValidationError(
                f"table {table!r} has secondary indexes not created by indexbench: "
                f"{', '.join(foreign)}; drop them before benchmarking"
            )
        log.warning("[STALE INDEXES]", extra={"indexes": stale, "table": table})
        self.backend.drop_indexes(stale)
        self._active = [name for name in self._active if name not in stale]

    def _measure(self, configuration: IndexConfiguration, query: Any) -> BenchmarkEntry:
        try:
            self._drop_active()
            self._active = self.backend.create_indexes(configuration)
            self.backend.refresh_statistics()
            if self.warmup:
                self.backend.execute(query)
            metric = parse_plan(self.backend.explain(query), relation=self.backend.table)
        except _ISOLATED_ERRORS as exc:
            log.warning(
                f"[CONFIG FAILED] {configuration.name}",
                extra={
                    "configuration": configuration.name,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            return BenchmarkEntry(
                configuration=configuration,
                error=str(exc),
                error_type=type(exc).__name__,
            )

        log.info(
            f"[CONFIG MEASURED] {configuration.name}: {metric.access_path.value}",
            extra={
                "configuration": configuration.name,
                "node_type": metric.node_type,
                "cost": metric.estimated_cost,
                "rows_examined": metric.rows_examined,
                "execution_time_ms": metric.execution_time_ms,
            },
        )
        return BenchmarkEntry(configuration=configuration, metric=metric)

    def _drop_active(self, quiet: bool = False) -> None:
        if not self._active:
            return
        try:
            self.backend.drop_indexes(self._active)
        except IndexMutationError:
            if not quiet:
                raise
            log.exception("[CLEANUP FAILED]", extra={"indexes": self._active})
            return
        self._active = []


def fastest_entry(entries: Iterable[BenchmarkEntry]) -> Optional[BenchmarkEntry]:
    """
    The successful entry with the lowest estimated cost, or None.

    Used for highlighting only; reports always keep input order.
    """
    measured = [entry for entry in entries if entry.ok and entry.metric is not None]
    if not measured:
        return None
    return min(measured, key=lambda entry: entry.metric.estimated_cost)  # type: ignore[union-attr]


__all__ = ["IndexBenchmarkRunner", "fastest_entry"]
