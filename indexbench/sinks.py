"""
Bulk sinks: where generated batches land.

The generator only depends on the `BulkSink` protocol: a transaction scope
plus a set-based `write` of one `RecordBatch`. Two PostgreSQL sinks are
provided:

- `CopySink` materializes the batch client-side and streams it with COPY.
- `SeriesSink` lets the server materialize the batch from `generate_series`
  using the SQL renditions of the derivation functions.

Both expect an autocommit connection; each batch is committed by its own
`Connection.transaction()` block.
"""

from __future__ import annotations

import abc
from contextlib import AbstractContextManager, contextmanager
from typing import Iterator, Protocol, runtime_checkable

import psycopg
from psycopg import Connection, sql

from indexbench.domain.derivation import COLUMNS, SQL_EXPRESSIONS, RecordBatch
from indexbench.errors import InsertionError


@runtime_checkable
class BulkSink(Protocol):
    """
    Destination for generated batches.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier.
    """

    name: str

    def transaction(self) -> AbstractContextManager[object]:
        """Scope that commits on clean exit and rolls back on error."""
        ...

    def write(self, batch: RecordBatch) -> int:
        """
        Insert the whole batch in one bulk operation.

        Returns
        -------
        int
            Number of rows inserted.

        Raises
        ------
        InsertionError
            If the bulk operation fails.
        """
        ...


class PostgresSink(abc.ABC):
    """
    Shared plumbing for PostgreSQL sinks bound to one connection and table.
    """

    name: str

    def __init__(self, conn: Connection, table: str) -> None:
        self.conn = conn
        self.table = table

    @contextmanager
    def transaction(self) -> Iterator[None]:
        # BEGIN and COMMIT can fail too, e.g. when the connection is lost.
        try:
            with self.conn.transaction():
                yield
        except psycopg.Error as exc:
            raise InsertionError(f"batch transaction on {self.table!r} failed: {exc}") from exc

    def write(self, batch: RecordBatch) -> int:
        try:
            return self._write(batch)
        except psycopg.Error as exc:
            raise InsertionError(
                f"bulk insert of offsets [{batch.start}, {batch.stop}) into "
                f"{self.table!r} failed: {exc}"
            ) from exc

    def _column_list(self) -> sql.Composable:
        return sql.SQL(", ").join(sql.Identifier(c) for c in COLUMNS)

    @abc.abstractmethod
    def _write(self, batch: RecordBatch) -> int:  # pragma: no cover - interface only
        raise NotImplementedError


class CopySink(PostgresSink):
    """Client-side generation streamed through `COPY ... FROM STDIN`."""

    name: str = "copy"

    def _write(self, batch: RecordBatch) -> int:
        statement = sql.SQL("COPY {table} ({columns}) FROM STDIN").format(
            table=sql.Identifier(self.table),
            columns=self._column_list(),
        )
        written = 0
        with self.conn.cursor() as cur:
            with cur.copy(statement) as copy:
                for row in batch.rows():
                    copy.write_row(row)
                    written += 1
        return written


class SeriesSink(PostgresSink):
    """Server-side generation: `INSERT ... SELECT` over `generate_series`."""

    name: str = "series"

    def insert_statement(self, batch: RecordBatch) -> sql.Composed:
        # Bounds are bound as literals: the expressions contain `%` operators,
        # so the statement is executed without client-side placeholders.
        expressions = sql.SQL(", ").join(sql.SQL(SQL_EXPRESSIONS[c]) for c in COLUMNS)
        return sql.SQL(
            "INSERT INTO {table} ({columns}) "
            "SELECT {expressions} "
            "FROM generate_series({first}::bigint, {last}::bigint) AS s(n)"
        ).format(
            table=sql.Identifier(self.table),
            columns=self._column_list(),
            expressions=expressions,
            first=sql.Literal(batch.start),
            # generate_series bounds are inclusive; the batch is half-open.
            last=sql.Literal(batch.stop - 1),
        )

    def _write(self, batch: RecordBatch) -> int:
        if not len(batch):
            return 0
        with self.conn.cursor() as cur:
            cur.execute(self.insert_statement(batch))
            return cur.rowcount


SINKS = {
    CopySink.name: CopySink,
    SeriesSink.name: SeriesSink,
}


def build_sink(mode: str, conn: Connection, table: str) -> PostgresSink:
    """Instantiate a sink by name (`copy` or `series`)."""
    if mode not in SINKS:
        raise ValueError(f"Unknown sink '{mode}'. Available: {', '.join(sorted(SINKS))}")
    return SINKS[mode](conn, table)


__all__ = [
    "BulkSink",
    "PostgresSink",
    "CopySink",
    "SeriesSink",
    "SINKS",
    "build_sink",
]
