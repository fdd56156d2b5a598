"""
Database connection factory utilities for indexbench.

Centralizes DSN composition and PostgreSQL connection acquisition. Both the
generator and the benchmark runner work over a single autocommit connection;
transaction boundaries are opened explicitly with `Connection.transaction()`.

Includes retry logic for transient connection failures using tenacity.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Generator, Optional

import psycopg
from psycopg import Connection, sql
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from indexbench.config import Settings, get_settings
from indexbench.utils.logging import get_logger

log = get_logger(__name__)


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_sync_connection(dsn: Optional[str] = None, autocommit: bool = True) -> Connection:
    """
    Acquire a dedicated synchronous connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.

    Parameters
    ----------
    dsn : str | None
        Explicit DSN; defaults to the one composed from settings.
    autocommit : bool
        Connection mode. Callers scope their own transactions with
        `conn.transaction()`, so autocommit is the default.

    Returns
    -------
    Connection
        A new psycopg connection instance.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    return psycopg.connect(dsn or build_dsn(), autocommit=autocommit)


def apply_statement_timeout(cur: psycopg.Cursor, timeout_ms: int) -> None:
    """
    Set `statement_timeout` for the session; 0 leaves the server default.
    """
    if timeout_ms and timeout_ms > 0:
        cur.execute(
            sql.SQL("SET statement_timeout = {}").format(sql.Literal(f"{int(timeout_ms)}ms"))
        )


@contextmanager
def sync_connection(dsn: Optional[str] = None) -> Generator[Connection, None, None]:
    """
    Context manager yielding a configured autocommit connection, closed on exit.

    Example
    -------
        with sync_connection() as conn:
            DatasetGenerator(CopySink(conn, "users")).generate(1_000, 100)
    """
    settings = get_settings()
    conn = get_sync_connection(dsn)
    try:
        with conn.cursor() as cur:
            apply_statement_timeout(cur, settings.db_statement_timeout_ms)
        log.debug("Connection opened", extra={"db": settings.db_name, "host": settings.db_host})
        yield conn
    finally:
        conn.close()


__all__ = [
    "build_dsn",
    "get_sync_connection",
    "apply_statement_timeout",
    "sync_connection",
]
