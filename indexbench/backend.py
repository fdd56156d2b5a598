"""
Index backends: the database operations the benchmark runner needs.

`IndexBackend` is the seam the runner depends on; `PostgresIndexBackend`
implements it over a psycopg autocommit connection. Index creation for a
configuration happens in one transaction, so a configuration is applied
completely or not at all.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable

import psycopg
from psycopg import Connection, sql

from indexbench.domain.models import IndexConfiguration
from indexbench.errors import IndexMutationError, QueryExecutionError
from indexbench.schema import vacuum_analyze
from indexbench.utils.logging import get_logger

log = get_logger(__name__)


@runtime_checkable
class IndexBackend(Protocol):
    """
    Operations on the target table used by `IndexBenchmarkRunner`.

    Attributes
    ----------
    table : str
        Name of the target table.
    """

    table: str

    def existing_indexes(self) -> list[str]:
        """Names of secondary indexes on the table that back no constraint."""
        ...

    def create_indexes(self, configuration: IndexConfiguration) -> list[str]:
        """Create every index of the configuration; return their names."""
        ...

    def drop_indexes(self, names: Sequence[str]) -> None:
        """Drop the named indexes."""
        ...

    def refresh_statistics(self) -> None:
        """Update planner statistics after index changes."""
        ...

    def execute(self, query: Any) -> None:
        """Run the query once and discard the result."""
        ...

    def explain(self, query: Any) -> Any:
        """Return the EXPLAIN ANALYZE JSON document for the query."""
        ...


class PostgresIndexBackend:
    """
    PostgreSQL implementation of `IndexBackend`.

    The connection must be in autocommit mode: `VACUUM` cannot run inside a
    transaction block.
    """

    def __init__(self, conn: Connection, table: str, vacuum: bool = True) -> None:
        self.conn = conn
        self.table = table
        self.vacuum = vacuum

    def existing_indexes(self) -> list[str]:
        # Primary key and unique constraints own their indexes; skip them.
        query = sql.SQL(
            "SELECT i.relname FROM pg_index x "
            "JOIN pg_class i ON i.oid = x.indexrelid "
            "LEFT JOIN pg_constraint c ON c.conindid = x.indexrelid "
            "WHERE x.indrelid = {table}::regclass AND c.oid IS NULL "
            "ORDER BY i.relname"
        ).format(table=sql.Literal(sql.Identifier(self.table).as_string(self.conn)))
        try:
            with self.conn.cursor() as cur:
                cur.execute(query)
                return [row[0] for row in cur.fetchall()]
        except psycopg.Error as exc:
            raise IndexMutationError(f"listing indexes of {self.table!r} failed: {exc}") from exc

    def create_indexes(self, configuration: IndexConfiguration) -> list[str]:
        names = [index.resolved_name(self.table) for index in configuration.indexes]
        if not names:
            return names
        try:
            with self.conn.transaction():
                for index, name in zip(configuration.indexes, names):
                    self.conn.execute(
                        sql.SQL("CREATE INDEX {name} ON {table} ({columns})").format(
                            name=sql.Identifier(name),
                            table=sql.Identifier(self.table),
                            columns=sql.SQL(", ").join(sql.Identifier(c) for c in index.columns),
                        )
                    )
                    log.debug(
                        "[INDEX CREATED]",
                        extra={"index": name, "columns": index.columns, "table": self.table},
                    )
        except psycopg.Error as exc:
            raise IndexMutationError(
                f"creating indexes for configuration {configuration.name!r} failed: {exc}",
                configuration=configuration.name,
            ) from exc
        return names

    def drop_indexes(self, names: Sequence[str]) -> None:
        if not names:
            return
        try:
            with self.conn.transaction():
                for name in names:
                    self.conn.execute(
                        sql.SQL("DROP INDEX IF EXISTS {}").format(sql.Identifier(name))
                    )
        except psycopg.Error as exc:
            raise IndexMutationError(f"dropping indexes {list(names)} failed: {exc}") from exc
        log.debug("[INDEXES DROPPED]", extra={"indexes": list(names), "table": self.table})

    def refresh_statistics(self) -> None:
        try:
            if self.vacuum:
                vacuum_analyze(self.conn, self.table)
            else:
                self.conn.execute(sql.SQL("ANALYZE {}").format(sql.Identifier(self.table)))
        except psycopg.Error as exc:
            raise IndexMutationError(f"refreshing statistics of {self.table!r} failed: {exc}") from exc

    def execute(self, query: sql.Composable) -> None:
        try:
            with self.conn.cursor() as cur:
                cur.execute(query)
                if cur.description is not None:
                    cur.fetchall()
        except psycopg.Error as exc:
            raise QueryExecutionError(f"query failed: {exc}") from exc

    def explain(self, query: sql.Composable) -> Any:
        statement = sql.SQL("EXPLAIN (ANALYZE, FORMAT JSON) {}").format(query)
        try:
            with self.conn.cursor() as cur:
                cur.execute(statement)
                row = cur.fetchone()
        except psycopg.Error as exc:
            raise QueryExecutionError(f"EXPLAIN ANALYZE failed: {exc}") from exc
        return row[0] if row else None


__all__ = ["IndexBackend", "PostgresIndexBackend"]
