from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for error logging.

Row-level failures (and the run-level error that aborted a run, if any) are
written as JSON Lines so operators can fix the sheet and re-run. row=-1 marks
errors that do not belong to a specific data row.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Spreadsheet filename being imported
        sheet: Sheet name (or index as text) within the file
        row: Data row number (1-based). Use -1 for run-level errors
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Error description
        row_values: Offending row content, None for run-level errors
    """
    timestamp: str  # ISO8601 UTC
    file: str
    sheet: str
    row: int
    error_type: str  # UPPER_SNAKE
    message: str
    row_values: dict[str, str] | None = None

    @staticmethod
    def create(
        file: str,
        sheet: str,
        row: int,
        error_type: str,
        message: str,
        row_values: dict[str, object] | None = None,
    ) -> ErrorRecord:
        """Create a new ErrorRecord with current UTC timestamp.

        Row values are stringified so that dates/numbers from the sheet always
        serialize.
        """
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        values = None
        if row_values is not None:
            values = {str(k): str(v) for k, v in row_values.items()}
        return ErrorRecord(
            timestamp=ts,
            file=file,
            sheet=sheet,
            row=row,
            error_type=error_type,
            message=message,
            row_values=values,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
