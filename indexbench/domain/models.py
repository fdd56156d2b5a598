"""
Domain models for indexbench.

Defines the generated row schema aligned with the `users` table, the batch
request contract of the generator, and the index configuration / plan metric
records exchanged between the benchmark runner, orchestrator and reporter.
All models are frozen so results stay immutable once produced.
"""
from __future__ import annotations

import re
from datetime import date
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

MAX_BATCH_SIZE = 10_000

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class SyntheticRecord(BaseModel):
    """
    Representation of a single generated row in the `users` table.
    """

    offset: int = Field(..., ge=0, description="Position in the generated sequence.")
    name: str = Field(..., description="Display name, unique per offset.")
    email: str = Field(..., description="Unique email address.")
    password: str = Field(..., description="Password hash (md5 hex).")
    date_of_birth: date = Field(..., description="Date of birth.")
    address: str = Field(..., description="Street address.")
    city: str = Field(..., description="City name.")
    state_id: int = Field(..., description="State identifier (0-49).")
    zip: str = Field(..., description="Five-digit zip code.")
    country_id: int = Field(..., description="Country identifier.")
    account_type: str = Field(..., description="Account tier.")
    nearest_airport: str = Field(..., description="IATA code of the nearest airport.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "arbitrary_types_allowed": False,
    }


class BatchRequest(BaseModel):
    """
    Parameters of one generator run.

    Use `indexbench.generator.validate_request` to build one; it converts
    pydantic validation failures into `indexbench.errors.ValidationError`.
    """

    total_rows: int = Field(..., gt=0)
    batch_size: int = Field(..., ge=1, le=MAX_BATCH_SIZE)
    start_offset: int = Field(0, ge=0)

    model_config = {"frozen": True}


class IndexDefinition(BaseModel):
    """
    A single secondary index: ordered column list plus optional explicit name.
    """

    columns: List[str] = Field(..., min_length=1)
    name: Optional[str] = None

    model_config = {"frozen": True}

    @field_validator("columns")
    @classmethod
    def _columns_are_identifiers(cls, value: List[str]) -> List[str]:
        for column in value:
            if not _IDENTIFIER_RE.match(column):
                raise ValueError(f"invalid column name {column!r}")
        return value

    @field_validator("name")
    @classmethod
    def _name_is_identifier(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not _IDENTIFIER_RE.match(value):
            raise ValueError(f"invalid index name {value!r}")
        return value

    def resolved_name(self, table: str) -> str:
        """Return the explicit name or the default `idx_<table>_<columns>`."""
        if self.name:
            return self.name
        return f"idx_{table}_{'_'.join(self.columns)}"


class IndexConfiguration(BaseModel):
    """
    A named set of zero or more indexes applied before one measurement.
    """

    name: str = Field(..., min_length=1)
    indexes: List[IndexDefinition] = Field(default_factory=list)
    description: str = ""

    model_config = {"frozen": True}


class AccessPath(str, Enum):
    """Access path label of the scan on the target table."""

    FULL_SCAN = "full scan"
    NON_COVERING_INDEX = "non-covering index lookup"
    COVERING_INDEX = "covering index lookup"
    OTHER = "other"


class PlanMetric(BaseModel):
    """
    Measured result of running the workload query under one configuration.
    """

    access_path: AccessPath
    node_type: str = Field(..., description="Engine plan node type of the table scan.")
    index_name: Optional[str] = None
    estimated_cost: float
    estimated_rows: float
    actual_rows: float
    rows_examined: float
    execution_time_ms: float
    planning_time_ms: Optional[float] = None

    model_config = {"frozen": True}


class BenchmarkEntry(BaseModel):
    """
    One row of the comparison report: a configuration and either its metric or an error.
    """

    configuration: IndexConfiguration
    metric: Optional[PlanMetric] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def ok(self) -> bool:
        return self.metric is not None and self.error is None


__all__ = [
    "MAX_BATCH_SIZE",
    "SyntheticRecord",
    "BatchRequest",
    "IndexDefinition",
    "IndexConfiguration",
    "AccessPath",
    "PlanMetric",
    "BenchmarkEntry",
]
