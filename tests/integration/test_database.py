"""
Integration tests for indexbench against a real PostgreSQL instance.

These tests verify that:
1. Both sinks insert exactly the requested rows with unique emails
2. Server-side and client-side generation produce identical rows
3. A re-run without truncation fails with an InsertionError and keeps prior batches
4. The benchmark runner reports the expected access paths for the workload

Run with: RUN_INTEGRATION_TESTS=1 pytest tests/integration/
"""

from __future__ import annotations

import os

import psycopg
import pytest
from psycopg import sql

from indexbench.backend import PostgresIndexBackend
from indexbench.domain.derivation import COLUMNS, derive_row
from indexbench.domain.models import AccessPath
from indexbench.errors import InsertionError
from indexbench.generator import DatasetGenerator
from indexbench.runner import IndexBenchmarkRunner, fastest_entry
from indexbench.schema import count_rows, vacuum_analyze
from indexbench.sinks import CopySink, SeriesSink
from indexbench.workload import DEFAULT_QUERY_TEMPLATE, default_configurations

# Test configuration constants
SMALL_ROWS = 1_000
SMALL_BATCH = 128
BENCH_ROWS = 50_000
BENCH_BATCH = 10_000

pytestmark = pytest.mark.skipif(
    os.getenv("RUN_INTEGRATION_TESTS", "0") != "1",
    reason="Integration tests require RUN_INTEGRATION_TESTS=1 and reachable Postgres",
)


def _fetch_rows(conn: psycopg.Connection, table: str) -> list:
    query = sql.SQL("SELECT {columns} FROM {table} ORDER BY id").format(
        columns=sql.SQL(", ").join(sql.Identifier(c) for c in COLUMNS),
        table=sql.Identifier(table),
    )
    return conn.execute(query).fetchall()


class TestGenerator:
    """Dataset generator against a live table."""

    @pytest.mark.parametrize("sink_class", [CopySink, SeriesSink])
    def test_inserts_exact_row_count_with_unique_emails(
        self, db_connection, clean_users_table, sink_class
    ):
        sink = sink_class(db_connection, clean_users_table)

        inserted = DatasetGenerator(sink).generate(SMALL_ROWS, SMALL_BATCH)

        assert inserted == SMALL_ROWS
        assert count_rows(db_connection, clean_users_table) == SMALL_ROWS
        emails = db_connection.execute(
            sql.SQL("SELECT count(DISTINCT email) FROM {}").format(
                sql.Identifier(clean_users_table)
            )
        ).fetchone()[0]
        assert emails == SMALL_ROWS

    def test_sinks_produce_identical_rows(self, db_connection, clean_users_table):
        DatasetGenerator(CopySink(db_connection, clean_users_table)).generate(300, 64)
        copied = _fetch_rows(db_connection, clean_users_table)

        db_connection.execute(
            sql.SQL("TRUNCATE {} RESTART IDENTITY").format(sql.Identifier(clean_users_table))
        )
        DatasetGenerator(SeriesSink(db_connection, clean_users_table)).generate(300, 64)
        generated = _fetch_rows(db_connection, clean_users_table)

        assert copied == generated
        assert copied[0] == derive_row(0)
        assert copied[-1] == derive_row(299)

    def test_rerun_without_truncate_fails_and_keeps_committed_batches(
        self, db_connection, clean_users_table
    ):
        DatasetGenerator(SeriesSink(db_connection, clean_users_table)).generate(100, 50)

        with pytest.raises(InsertionError) as excinfo:
            DatasetGenerator(SeriesSink(db_connection, clean_users_table)).generate(
                100, 50, start_offset=0
            )

        assert excinfo.value.committed_rows == 0
        assert excinfo.value.next_offset == 0
        assert count_rows(db_connection, clean_users_table) == 100

    def test_resume_after_partial_failure(self, db_connection, clean_users_table):
        DatasetGenerator(CopySink(db_connection, clean_users_table)).generate(50, 50, start_offset=100)

        with pytest.raises(InsertionError) as excinfo:
            DatasetGenerator(CopySink(db_connection, clean_users_table)).generate(200, 50)

        error = excinfo.value
        assert error.committed_rows == 100
        assert error.next_offset == 100
        assert count_rows(db_connection, clean_users_table) == 150


class TestBenchmarkRunner:
    """Index benchmark runner against a seeded table."""

    @pytest.fixture
    def seeded_table(self, db_connection, clean_users_table):
        DatasetGenerator(SeriesSink(db_connection, clean_users_table)).generate(
            BENCH_ROWS, BENCH_BATCH
        )
        vacuum_analyze(db_connection, clean_users_table)
        return clean_users_table

    def test_default_workload(self, db_connection, seeded_table):
        backend = PostgresIndexBackend(db_connection, seeded_table)
        entries = IndexBenchmarkRunner(backend).run(
            DEFAULT_QUERY_TEMPLATE, default_configurations()
        )

        assert [e.configuration.name for e in entries] == [
            c.name for c in default_configurations()
        ]
        assert all(e.ok for e in entries), [e.error for e in entries]
        no_index, state_id_index, name_index, composite = (e.metric for e in entries)
        assert no_index.access_path is AccessPath.FULL_SCAN
        assert no_index.rows_examined == pytest.approx(BENCH_ROWS, rel=0.01)
        assert state_id_index.access_path is AccessPath.NON_COVERING_INDEX
        assert 1 < state_id_index.rows_examined < BENCH_ROWS
        assert name_index.access_path is AccessPath.NON_COVERING_INDEX
        assert name_index.rows_examined == 1
        assert composite.access_path is AccessPath.COVERING_INDEX
        assert composite.actual_rows == 1
        assert fastest_entry(entries).configuration.name == "composite_name_state_id"

    def test_indexes_are_cleaned_up(self, db_connection, seeded_table):
        backend = PostgresIndexBackend(db_connection, seeded_table)
        IndexBenchmarkRunner(backend).run(DEFAULT_QUERY_TEMPLATE, default_configurations())

        remaining = db_connection.execute(
            "SELECT indexname FROM pg_indexes WHERE tablename = %s AND indexname LIKE 'idx_%%'",
            (seeded_table,),
        ).fetchall()
        assert remaining == []

    def test_kept_indexes_do_not_leak_into_next_run(self, db_connection, seeded_table):
        backend = PostgresIndexBackend(db_connection, seeded_table)
        IndexBenchmarkRunner(backend, cleanup=False).run(
            DEFAULT_QUERY_TEMPLATE, default_configurations()
        )
        assert backend.existing_indexes() == [f"idx_{seeded_table}_name_state_id"]

        entries = IndexBenchmarkRunner(backend).run(
            DEFAULT_QUERY_TEMPLATE, default_configurations()
        )

        assert all(e.ok for e in entries), [e.error for e in entries]
        assert entries[0].metric.access_path is AccessPath.FULL_SCAN
        assert backend.existing_indexes() == []
