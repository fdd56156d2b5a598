"""
Domain package for indexbench.

Exports the core domain models and the pure row derivation used by the
generator, sinks, runner and reporter. Keep this package focused on data
definitions and validation concerns.
"""

from indexbench.domain.derivation import (
    COLUMNS,
    RecordBatch,
    derive_record,
    derive_row,
    iter_batches,
)
from indexbench.domain.models import (
    AccessPath,
    BatchRequest,
    BenchmarkEntry,
    IndexConfiguration,
    IndexDefinition,
    PlanMetric,
    SyntheticRecord,
)

__all__ = [
    "COLUMNS",
    "RecordBatch",
    "derive_record",
    "derive_row",
    "iter_batches",
    "AccessPath",
    "BatchRequest",
    "BenchmarkEntry",
    "IndexConfiguration",
    "IndexDefinition",
    "PlanMetric",
    "SyntheticRecord",
]
