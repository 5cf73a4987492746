from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""Document models for the spreadsheet -> Firestore importer.

A RawRow is what the reader yields for one sheet row; a CanonicalDocument is
the renamed/normalized mapping written to Firestore. PreparedWrite pairs a
document with its identifier assignment inside one batch chunk.
"""

__all__ = [
    "CanonicalDocument",
    "PreparedWrite",
    "RawRow",
]

RawRow = dict[str, Any]
CanonicalDocument = dict[str, Any]


@dataclass(frozen=True)
class PreparedWrite:
    """One document staged for a batch commit.

    document_id is None for store-generated identifiers (plain create); a
    string means upsert at that id with merge semantics.
    """
    document_id: str | None
    data: CanonicalDocument
    row_number: int  # 1-based data row (sheet row 2 = data row 1)

    @property
    def merge(self) -> bool:
        return self.document_id is not None
