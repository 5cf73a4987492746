"""Domain models for the spreadsheet -> Firestore importer."""

from .cell import CellKind, RawCell, is_missing
from .document import CanonicalDocument, PreparedWrite, RawRow
from .error_record import ErrorRecord
from .processing_result import BatchStats, BatchStatsAccumulator, RunSummary

__all__ = [
    # Cell values
    "CellKind",
    "RawCell",
    "is_missing",
    # Documents
    "CanonicalDocument",
    "PreparedWrite",
    "RawRow",
    # Results
    "BatchStats",
    "BatchStatsAccumulator",
    "ErrorRecord",
    "RunSummary",
]
