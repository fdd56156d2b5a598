"""
Dataset generator: deterministic, batched bulk population of the target table.

Usage:
    from indexbench.generator import DatasetGenerator
    from indexbench.sinks import CopySink

    inserted = DatasetGenerator(CopySink(conn, "users")).generate(5_000_000, 10_000)

Batches are produced in increasing offset order and each one is committed in
its own transaction before the next starts, so a failure loses at most the
batch in flight. The generator never truncates; clearing the table is the
caller's job.
"""

from __future__ import annotations

from typing import Callable, Optional

import pydantic

from indexbench.domain.derivation import iter_batches
from indexbench.domain.models import BatchRequest
from indexbench.errors import InsertionError, ValidationError
from indexbench.sinks import BulkSink
from indexbench.utils.logging import get_logger

log = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


def validate_request(total_rows: int, batch_size: int, start_offset: int = 0) -> BatchRequest:
    """
    Build a `BatchRequest`, raising `ValidationError` for out-of-range values.
    """
    try:
        return BatchRequest(
            total_rows=total_rows, batch_size=batch_size, start_offset=start_offset
        )
    except pydantic.ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ValidationError(f"invalid batch request: {problems}") from exc


class DatasetGenerator:
    """
    Drive a `BulkSink` over consecutive half-open offset ranges.
    """

    def __init__(self, sink: BulkSink, on_batch: Optional[ProgressCallback] = None) -> None:
        self.sink = sink
        self.on_batch = on_batch

    def generate(self, total_rows: int, batch_size: int, start_offset: int = 0) -> int:
        """
        Insert `total_rows` generated rows in batches of at most `batch_size`.

        Parameters
        ----------
        total_rows : int
            Rows to insert; must be positive.
        batch_size : int
            Rows per batch, within [1, 10000].
        start_offset : int
            First offset to generate. Pass the committed count of a failed run
            to resume it.

        Returns
        -------
        int
            Number of rows inserted (always `total_rows` on success).

        Raises
        ------
        ValidationError
            Before any insertion, for invalid parameters.
        InsertionError
            When a batch fails; `committed_rows` and `next_offset` describe
            what this call managed to commit.
        """
        request = validate_request(total_rows, batch_size, start_offset)
        log.info(
            f"[SEED START] {request.total_rows:,} rows via {self.sink.name}",
            extra={
                "rows": request.total_rows,
                "batch_size": request.batch_size,
                "start_offset": request.start_offset,
                "sink": self.sink.name,
            },
        )

        inserted = 0
        for batch in iter_batches(request.total_rows, request.batch_size, request.start_offset):
            try:
                with self.sink.transaction():
                    written = self.sink.write(batch)
                    if written != len(batch):
                        raise InsertionError(
                            f"batch [{batch.start}, {batch.stop}) wrote {written} rows, "
                            f"expected {len(batch)}"
                        )
            except InsertionError as exc:
                exc.committed_rows = inserted
                exc.next_offset = batch.start
                log.error(
                    f"[SEED FAILED] batch at offset {batch.start}",
                    extra={"offset": batch.start, "committed_rows": inserted, "error": str(exc)},
                )
                raise

            inserted += written
            log.debug(
                "[BATCH COMMITTED]",
                extra={"offset": batch.start, "rows": written, "inserted": inserted},
            )
            if self.on_batch is not None:
                self.on_batch(inserted, request.total_rows)

        log.info(
            f"[SEED COMPLETE] {inserted:,} rows inserted",
            extra={"rows": inserted, "next_offset": request.start_offset + inserted},
        )
        return inserted


def generate(
    sink: BulkSink, total_rows: int, batch_size: int, start_offset: int = 0
) -> int:
    """Functional shorthand for `DatasetGenerator(sink).generate(...)`."""
    return DatasetGenerator(sink).generate(total_rows, batch_size, start_offset)


__all__ = ["DatasetGenerator", "generate", "validate_request"]
