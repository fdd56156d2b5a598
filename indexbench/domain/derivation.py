"""
Deterministic derivation of synthetic `users` rows from an integer offset.

Every field is a pure function of the offset, so regenerating offset N always
yields identical values. Each derivation also has a SQL rendition over a
`generate_series` column `s.n` (see `SQL_EXPRESSIONS`) that produces the same
values server-side; keep the two in step when changing either.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterator, List, Tuple

from indexbench.domain.models import SyntheticRecord

EPOCH = date(1970, 1, 1)
DOB_SPAN_DAYS = 18_250
STATE_COUNT = 50
CITY_COUNT = 1_000
COUNTRY_COUNT = 200
ACCOUNT_TYPES: Tuple[str, ...] = ("free", "premium", "business")
AIRPORT_CODES: Tuple[str, ...] = (
    "ATL",
    "LAX",
    "ORD",
    "DFW",
    "DEN",
    "JFK",
    "SFO",
    "SEA",
    "LAS",
    "MCO",
)

# Column order used for COPY and INSERT ... SELECT.
COLUMNS: Tuple[str, ...] = (
    "name",
    "email",
    "password",
    "date_of_birth",
    "address",
    "city",
    "state_id",
    "zip",
    "country_id",
    "account_type",
    "nearest_airport",
)

Row = Tuple[str, str, str, date, str, str, int, str, int, str, str]


def _sql_array(values: Tuple[str, ...]) -> str:
    return "ARRAY[" + ", ".join(f"'{v}'" for v in values) + "]"


SQL_EXPRESSIONS: Dict[str, str] = {
    "name": "'User_' || s.n",
    "email": "'user' || s.n || '@example.com'",
    "password": "md5('pass' || s.n)",
    "date_of_birth": f"DATE '{EPOCH.isoformat()}' + (s.n % {DOB_SPAN_DAYS})::int",
    "address": "((s.n % 9999) + 1) || ' Main St'",
    "city": f"'City_' || (s.n % {CITY_COUNT})",
    "state_id": f"(s.n % {STATE_COUNT})::int",
    "zip": "lpad((s.n % 100000)::text, 5, '0')",
    "country_id": f"(s.n % {COUNTRY_COUNT})::int",
    "account_type": f"({_sql_array(ACCOUNT_TYPES)})[(s.n % {len(ACCOUNT_TYPES)}) + 1]",
    "nearest_airport": f"({_sql_array(AIRPORT_CODES)})[(s.n % {len(AIRPORT_CODES)}) + 1]",
}


def derive_row(offset: int) -> Row:
    """Derive the column tuple (in `COLUMNS` order) for one offset."""
    if offset < 0:
        raise ValueError(f"offset must be non-negative, got {offset}")
    return (
        f"User_{offset}",
        f"user{offset}@example.com",
        hashlib.md5(f"pass{offset}".encode("utf-8")).hexdigest(),
        EPOCH + timedelta(days=offset % DOB_SPAN_DAYS),
        f"{offset % 9999 + 1} Main St",
        f"City_{offset % CITY_COUNT}",
        offset % STATE_COUNT,
        f"{offset % 100000:05d}",
        offset % COUNTRY_COUNT,
        ACCOUNT_TYPES[offset % len(ACCOUNT_TYPES)],
        AIRPORT_CODES[offset % len(AIRPORT_CODES)],
    )


def derive_record(offset: int) -> SyntheticRecord:
    """Derive the full `SyntheticRecord` for one offset."""
    return SyntheticRecord(offset=offset, **dict(zip(COLUMNS, derive_row(offset))))


@dataclass(frozen=True)
class RecordBatch:
    """
    Half-open offset range `[start, stop)` materializable as a set of rows.

    The batch is pure data: sinks decide whether to materialize it client-side
    (`rows()`) or hand the bounds to the database (`start`/`stop`).
    """

    start: int
    stop: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.stop < self.start:
            raise ValueError(f"invalid batch range [{self.start}, {self.stop})")

    def __len__(self) -> int:
        return self.stop - self.start

    def offsets(self) -> range:
        return range(self.start, self.stop)

    def rows(self) -> Iterator[Row]:
        return (derive_row(offset) for offset in self.offsets())

    def records(self) -> List[SyntheticRecord]:
        return [derive_record(offset) for offset in self.offsets()]


def iter_batches(total_rows: int, batch_size: int, start_offset: int = 0) -> Iterator[RecordBatch]:
    """
    Split `total_rows` offsets starting at `start_offset` into consecutive batches.

    Each batch takes `min(batch_size, remaining)` offsets; ranges never overlap.
    """
    inserted = 0
    while inserted < total_rows:
        take = min(batch_size, total_rows - inserted)
        start = start_offset + inserted
        yield RecordBatch(start=start, stop=start + take)
        inserted += take


__all__ = [
    "ACCOUNT_TYPES",
    "AIRPORT_CODES",
    "COLUMNS",
    "SQL_EXPRESSIONS",
    "RecordBatch",
    "derive_record",
    "derive_row",
    "iter_batches",
]
