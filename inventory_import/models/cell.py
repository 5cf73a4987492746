from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

import pandas as pd

"""Tagged cell values for the spreadsheet -> Firestore importer.

Spreadsheet cells arrive as whatever the reader produced (None, NaN, int,
float, datetime, str, ...). RawCell.classify() folds them into one CellKind
so date handling can dispatch on the kind instead of chaining isinstance
checks.
"""

__all__ = [
    "CellKind",
    "RawCell",
    "is_missing",
]


class CellKind(Enum):
    """Kind of a raw spreadsheet cell.

    - EMPTY: None, NaN, NaT or the reader's empty marker ""
    - NUMBER: finite real number (bool excluded)
    - DATE: datetime.datetime / datetime.date (pandas Timestamp included)
    - TEXT: str
    - OTHER: anything else (bool, inf, time, ...)
    """
    EMPTY = "empty"
    NUMBER = "number"
    DATE = "date"
    TEXT = "text"
    OTHER = "other"


def is_missing(value: Any) -> bool:
    """True for None and pandas/numpy missing scalars (NaN, NaT, NA)."""
    if value is None:
        return True
    if isinstance(value, (str, bytes, list, tuple, dict, set)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


@dataclass(frozen=True)
class RawCell:
    kind: CellKind
    value: Any

    @staticmethod
    def classify(value: Any) -> RawCell:
        if isinstance(value, RawCell):
            return value
        if is_missing(value) or (isinstance(value, str) and value == ""):
            return RawCell(CellKind.EMPTY, value)
        if isinstance(value, bool):
            return RawCell(CellKind.OTHER, value)
        if isinstance(value, (datetime, date)):
            return RawCell(CellKind.DATE, value)
        if isinstance(value, numbers.Real):
            if math.isfinite(value):
                return RawCell(CellKind.NUMBER, value)
            return RawCell(CellKind.OTHER, value)
        if isinstance(value, str):
            return RawCell(CellKind.TEXT, value)
        return RawCell(CellKind.OTHER, value)
