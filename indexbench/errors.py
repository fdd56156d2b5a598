"""
Error taxonomy for indexbench.

Validation errors surface before any side effect. Insertion errors are fatal
to a generator run but carry enough context to resume. Index, plan and query
errors are isolated to a single benchmark configuration by the runner.
"""

from __future__ import annotations

from typing import Optional


class IndexBenchError(Exception):
    """Base class for all indexbench errors."""


class ValidationError(IndexBenchError, ValueError):
    """Malformed request parameters (batch request, configuration files)."""


class InsertionError(IndexBenchError):
    """
    A bulk insert batch failed.

    Attributes
    ----------
    committed_rows : int
        Rows committed by the failing ``generate`` call before the failure.
    next_offset : int | None
        First offset of the batch that failed; pass it as ``start_offset`` to resume.
    """

    def __init__(
        self,
        message: str,
        committed_rows: int = 0,
        next_offset: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.committed_rows = committed_rows
        self.next_offset = next_offset


class IndexMutationError(IndexBenchError):
    """Creating or dropping an index for a configuration failed."""

    def __init__(self, message: str, configuration: Optional[str] = None) -> None:
        super().__init__(message)
        self.configuration = configuration


class PlanParseError(IndexBenchError):
    """An execution plan could not be parsed into a PlanMetric."""


class QueryExecutionError(IndexBenchError):
    """The benchmark query itself failed for one configuration."""


__all__ = [
    "IndexBenchError",
    "ValidationError",
    "InsertionError",
    "IndexMutationError",
    "PlanParseError",
    "QueryExecutionError",
]
