"""
Pytest configuration for indexbench.

Provides fixtures for:
- Canned EXPLAIN (ANALYZE, FORMAT JSON) documents for unit tests
- Database connection management
- Target table setup and cleanup for integration tests
"""

from __future__ import annotations

import os
from typing import Any, Callable, Dict, Generator, List, Optional

import psycopg
import pytest

from indexbench.config import Settings
from indexbench.schema import create_table, truncate_table

TEST_TABLE = "users_test"

PlanFactory = Callable[..., List[Dict[str, Any]]]


def build_plan(
    node_type: str = "Seq Scan",
    relation: str = "users",
    total_cost: float = 100.0,
    plan_rows: float = 1.0,
    actual_rows: float = 1.0,
    loops: float = 1.0,
    removed_by_filter: Optional[float] = None,
    index_name: Optional[str] = None,
    execution_time: float = 1.5,
    planning_time: Optional[float] = 0.1,
    wrap_gather: bool = False,
) -> List[Dict[str, Any]]:
    """Build a minimal EXPLAIN ANALYZE JSON document around one scan node."""
    scan: Dict[str, Any] = {
        "Node Type": node_type,
        "Relation Name": relation,
        "Alias": relation,
        "Startup Cost": 0.0,
        "Total Cost": total_cost,
        "Plan Rows": plan_rows,
        "Plan Width": 16,
        "Actual Startup Time": 0.01,
        "Actual Total Time": execution_time,
        "Actual Rows": actual_rows,
        "Actual Loops": loops,
    }
    if wrap_gather:
        scan["Parallel Aware"] = True
    if removed_by_filter is not None:
        scan["Rows Removed by Filter"] = removed_by_filter
    if index_name is not None:
        scan["Index Name"] = index_name

    root = scan
    if wrap_gather:
        root = {
            "Node Type": "Gather",
            "Startup Cost": 1000.0,
            "Total Cost": total_cost,
            "Plan Rows": plan_rows,
            "Actual Rows": actual_rows,
            "Actual Loops": 1,
            "Workers Planned": 2,
            "Workers Launched": 2,
            "Plans": [dict(scan, **{"Parent Relationship": "Outer"})],
        }

    top: Dict[str, Any] = {"Plan": root, "Triggers": [], "Execution Time": execution_time}
    if planning_time is not None:
        top["Planning Time"] = planning_time
    return [top]


@pytest.fixture
def make_plan() -> PlanFactory:
    """Factory for canned EXPLAIN ANALYZE documents."""
    return build_plan


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "indexbench"),
        table_name=TEST_TABLE,
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped autocommit connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn, autocommit=True)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def users_table(db_connection: psycopg.Connection) -> str:
    """
    Ensure the test table exists; returns its name.
    """
    create_table(db_connection, TEST_TABLE)
    return TEST_TABLE


@pytest.fixture(scope="function")
def clean_users_table(db_connection: psycopg.Connection, users_table: str):
    """
    Truncate the test table before and after each test function.
    """
    truncate_table(db_connection, users_table)
    yield users_table
    truncate_table(db_connection, users_table)
