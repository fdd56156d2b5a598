"""
DDL and maintenance statements for the benchmark target table.

The table carries an identity primary key, a unique email key and the derived
user columns. Clearing the table is always an explicit caller action; the
generator never truncates.
"""

from __future__ import annotations

from psycopg import Connection, sql

from indexbench.utils.logging import get_logger

log = get_logger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS {table} (
    id              BIGINT GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
    name            VARCHAR(64)  NOT NULL,
    email           VARCHAR(128) NOT NULL,
    password        CHAR(32)     NOT NULL,
    date_of_birth   DATE         NOT NULL,
    address         VARCHAR(128) NOT NULL,
    city            VARCHAR(64)  NOT NULL,
    state_id        INTEGER      NOT NULL,
    zip             CHAR(5)      NOT NULL,
    country_id      INTEGER      NOT NULL,
    account_type    VARCHAR(16)  NOT NULL,
    nearest_airport CHAR(3)      NOT NULL,
    CONSTRAINT {email_key} UNIQUE (email)
)
"""


def create_table(conn: Connection, table: str) -> None:
    """Create the target table if it does not exist."""
    statement = sql.SQL(_CREATE_TABLE).format(
        table=sql.Identifier(table),
        email_key=sql.Identifier(f"{table}_email_key"),
    )
    with conn.transaction():
        conn.execute(statement)
    log.info("[SCHEMA] Table ensured", extra={"table": table})


def truncate_table(conn: Connection, table: str) -> None:
    """Remove every row and restart the identity sequence."""
    with conn.transaction():
        conn.execute(
            sql.SQL("TRUNCATE TABLE {} RESTART IDENTITY").format(sql.Identifier(table))
        )
    log.info("[SCHEMA] Table truncated", extra={"table": table})


def vacuum_analyze(conn: Connection, table: str) -> None:
    """
    Refresh planner statistics and the visibility map.

    Must run outside a transaction block, i.e. on an autocommit connection.
    """
    conn.execute(sql.SQL("VACUUM (ANALYZE) {}").format(sql.Identifier(table)))
    log.debug("[SCHEMA] Vacuum analyze complete", extra={"table": table})


def count_rows(conn: Connection, table: str) -> int:
    row = conn.execute(sql.SQL("SELECT count(*) FROM {}").format(sql.Identifier(table))).fetchone()
    return int(row[0]) if row else 0


__all__ = ["create_table", "truncate_table", "vacuum_analyze", "count_rows"]
