from __future__ import annotations

import statistics
from dataclasses import dataclass
from datetime import datetime

"""Run result models for the spreadsheet -> Firestore importer.

RunSummary only lives for the duration of one run; it feeds the SUMMARY line
and the CLI exit code and is never persisted.
"""


@dataclass(frozen=True)
class BatchStats:
    """Commit timing statistics over all batches of one run."""
    total_batches: int
    avg_batch_seconds: float
    p95_batch_seconds: float


@dataclass(frozen=True)
class RunSummary:
    """Aggregated counters for one import run."""
    collection: str  # target collection
    total_rows: int  # rows read from the sheet
    succeeded: int  # documents staged (and committed unless dry run)
    failed: int  # rows rejected at row level
    committed_batches: int  # batch commits issued
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_rows_per_sec: float  # succeeded / elapsed
    dry_run: bool = False
    batch_stats: BatchStats | None = None


class BatchStatsAccumulator:
    """Collects per-commit timings and summarizes them into BatchStats."""

    def __init__(self) -> None:
        self.batch_times: list[float] = []

    def add_batch_time(self, elapsed_seconds: float) -> None:
        self.batch_times.append(elapsed_seconds)

    def get_stats(self) -> BatchStats:
        if not self.batch_times:
            return BatchStats(0, 0.0, 0.0)

        total_batches = len(self.batch_times)
        avg_batch_seconds = statistics.mean(self.batch_times)

        if total_batches == 1:
            p95_batch_seconds = self.batch_times[0]
        else:
            # 19th of 20 cut points = 95th percentile
            p95_batch_seconds = statistics.quantiles(
                self.batch_times, n=20, method='inclusive'
            )[18]

        return BatchStats(total_batches, avg_batch_seconds, p95_batch_seconds)
