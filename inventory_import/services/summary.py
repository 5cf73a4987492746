from __future__ import annotations

from ..models.processing_result import RunSummary

"""SUMMARY line rendering.

Format:
SUMMARY collection={name} rows={total} success={ok} failed={failed}
batches={commits} elapsed_sec={elapsed} throughput_rps={throughput} [dry_run=1]
"""


def _format_number(value: float) -> str:
    # integers without decimals, tiny values without scientific notation
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip('0').rstrip('.')
    return str(round(value, 3))


def render_summary_line(result: RunSummary) -> str:
    """Render the SUMMARY line for a finished run.

    >>> from datetime import datetime, timezone
    >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
    >>> render_summary_line(RunSummary(
    ...     collection="inventory", total_rows=3, succeeded=3, failed=0,
    ...     committed_batches=1, start_time=t, end_time=t, elapsed_seconds=2.0,
    ...     throughput_rows_per_sec=1.5))
    'SUMMARY collection=inventory rows=3 success=3 failed=0 batches=1 elapsed_sec=2 throughput_rps=1.5'
    """
    line = (
        f"SUMMARY collection={result.collection} "
        f"rows={result.total_rows} "
        f"success={result.succeeded} "
        f"failed={result.failed} "
        f"batches={result.committed_batches} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)} "
        f"throughput_rps={_format_number(result.throughput_rows_per_sec)}"
    )
    if result.dry_run:
        line += " dry_run=1"
    return line
