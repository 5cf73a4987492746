from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..config.loader import ImportConfig
from ..excel.reader import SheetNotFoundError, read_sheet_rows
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.document import PreparedWrite, RawRow
from ..models.processing_result import BatchStatsAccumulator, RunSummary
from ..store.firestore_batch import BatchMetrics, BatchWriteError, write_batch
from .documents import DocumentIdError, build_document, find_rename_collisions, resolve_document_id
from .progress import ProgressTracker

"""Batch upload orchestration.

Run states: reading source -> (build chunk -> commit chunk)* -> done.
A missing sheet or a failed commit aborts the run with ProcessingError;
chunks committed before the failure stay committed, later ones are never
attempted. A row that cannot get its derived id only fails that row.
"""

logger = logging.getLogger(__name__)

RowReader = Callable[[Path, int], Sequence[RawRow]]


class ProcessingError(Exception):
    """Run-level (fatal) failure."""


def iter_chunks(rows: Sequence[RawRow], batch_size: int):
    """Yield (start_index, chunk) slices of at most batch_size rows, in order."""
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    for start in range(0, len(rows), batch_size):
        yield start, rows[start:start + batch_size]


def prepare_chunk(
    chunk: Sequence[RawRow],
    first_row_number: int,
    config: ImportConfig,
    error_log: ErrorLogBuffer,
) -> tuple[list[PreparedWrite], int]:
    """Build documents for one chunk.

    Returns the staged writes and the number of rows rejected. Rejected rows
    are logged with their content and recorded in error_log.
    """
    writes: list[PreparedWrite] = []
    failed = 0
    for offset, raw_row in enumerate(chunk):
        row_number = first_row_number + offset
        doc = build_document(raw_row, config.rename_table, config.date_fields)
        try:
            doc_id = resolve_document_id(doc, config.custom_id_field)
        except DocumentIdError as e:
            failed += 1
            logger.error("row=%d skipped: %s row=%r", row_number, e, raw_row)
            error_log.append(
                ErrorRecord.create(
                    file=config.excel_path.name,
                    sheet=str(config.sheet_index),
                    row=row_number,
                    error_type="DOCUMENT_ID_ERROR",
                    message=str(e),
                    row_values=raw_row,
                )
            )
            continue
        writes.append(PreparedWrite(document_id=doc_id, data=doc, row_number=row_number))
    return writes, failed


def _warn_rename_collisions(rows: Sequence[RawRow], config: ImportConfig) -> None:
    if not rows:
        return
    collisions = find_rename_collisions(rows[0].keys(), config.rename_table)
    for target, columns in collisions.items():
        # Later column wins; kept as-is so existing imports don't change shape
        logger.warning(
            "columns %s all map to field '%s'; the last one overwrites the others",
            columns,
            target,
        )


def process_workbook(
    config: ImportConfig,
    client: Any = None,
    *,
    reader: RowReader = read_sheet_rows,
    error_log: ErrorLogBuffer | None = None,
) -> RunSummary:
    """Import every row of the configured sheet into the collection.

    Args:
        config: run configuration
        client: Firestore client; None = dry run (documents are built and
            counted, nothing is written)
        reader: tabular reader (path, sheet_index) -> rows
        error_log: buffer for row/run errors (a fresh one by default)

    Returns:
        RunSummary with succeeded/failed counts and commit statistics

    Raises:
        ProcessingError: sheet missing or a batch commit failed
    """
    start_time = datetime.now(UTC)
    if error_log is None:
        error_log = ErrorLogBuffer()
    dry_run = client is None
    batch_stats = BatchStatsAccumulator()

    def on_metrics(metrics: BatchMetrics) -> None:
        batch_stats.add_batch_time(metrics.elapsed_seconds)
        logger.debug("batch committed size=%d elapsed=%.3fs", metrics.batch_size, metrics.elapsed_seconds)

    logger.info("reading %s (sheet %d)", config.excel_path, config.sheet_index)
    try:
        rows = reader(config.excel_path, config.sheet_index)
    except SheetNotFoundError as e:
        raise ProcessingError(str(e)) from e
    total = len(rows)
    logger.info("rows found: %d", total)
    _warn_rename_collisions(rows, config)

    succeeded = 0
    failed = 0
    committed = 0

    try:
        with ProgressTracker(total) as progress:
            for start, chunk in iter_chunks(rows, config.batch_size):
                writes, chunk_failed = prepare_chunk(chunk, start + 1, config, error_log)
                failed += chunk_failed

                if not dry_run:
                    try:
                        write_batch(
                            client, config.collection_name, writes, metrics_callback=on_metrics
                        )
                    except BatchWriteError as e:
                        error_log.append(
                            ErrorRecord.create(
                                file=config.excel_path.name,
                                sheet=str(config.sheet_index),
                                row=-1,
                                error_type="BATCH_COMMIT_ERROR",
                                message=f"rows {start + 1}-{start + len(chunk)}: {e}",
                            )
                        )
                        raise ProcessingError(
                            f"batch commit failed for rows {start + 1}-{start + len(chunk)} "
                            f"({succeeded} documents committed before): {e}"
                        ) from e
                    committed += 1
                succeeded += len(writes)

                done = start + len(chunk)
                progress.advance(len(chunk))
                progress.set_postfix(ok=succeeded, failed=failed)
                logger.info("uploaded: %d/%d", done, total)
    finally:
        try:
            log_path = error_log.flush()
        except OSError as e:
            logger.warning("could not write error log: %s", e)
        else:
            if log_path is not None:
                logger.info("error log written: %s", log_path)

    end_time = datetime.now(UTC)
    elapsed_seconds = (end_time - start_time).total_seconds()
    throughput = succeeded / elapsed_seconds if elapsed_seconds > 0 else 0.0

    return RunSummary(
        collection=config.collection_name,
        total_rows=total,
        succeeded=succeeded,
        failed=failed,
        committed_batches=committed,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed_seconds,
        throughput_rows_per_sec=throughput,
        dry_run=dry_run,
        batch_stats=batch_stats.get_stats() if not dry_run else None,
    )
