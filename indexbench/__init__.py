"""
indexbench - deterministic synthetic data seeding and index-impact benchmarking.

This package provides two sequential components:

- A dataset generator that bulk-loads deterministic synthetic users into a
  PostgreSQL table in committed batches
- An index benchmark runner that applies named index configurations one at a
  time and records the execution plan of a fixed equality-filter query

Results are rendered as an ordered comparison table and persisted as JSON.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from indexbench.config import Settings, get_settings
from indexbench.domain.models import (
    AccessPath,
    BenchmarkEntry,
    IndexConfiguration,
    IndexDefinition,
    PlanMetric,
    SyntheticRecord,
)
from indexbench.errors import (
    IndexBenchError,
    IndexMutationError,
    InsertionError,
    PlanParseError,
    QueryExecutionError,
    ValidationError,
)
from indexbench.generator import DatasetGenerator
from indexbench.orchestrator import run_benchmark, seed_table
from indexbench.plan import parse_plan
from indexbench.runner import IndexBenchmarkRunner, fastest_entry
from indexbench.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "AccessPath",
    "BenchmarkEntry",
    "IndexConfiguration",
    "IndexDefinition",
    "PlanMetric",
    "SyntheticRecord",
    # Errors
    "IndexBenchError",
    "IndexMutationError",
    "InsertionError",
    "PlanParseError",
    "QueryExecutionError",
    "ValidationError",
    # Components
    "DatasetGenerator",
    "IndexBenchmarkRunner",
    "fastest_entry",
    "parse_plan",
    # Orchestration
    "run_benchmark",
    "seed_table",
    # Logging
    "configure_logging",
    "get_logger",
]
