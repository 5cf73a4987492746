from __future__ import annotations

from datetime import time
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.cell import is_missing
from ..models.document import RawRow

"""Spreadsheet reader.

Row 1 of the sheet is the header, every following row is data. Rows are
returned as plain dicts (header -> cell value) in sheet column order. Empty
cells are kept with the empty marker "" so every row carries every header.
"""

EMPTY_CELL = ""


class SheetNotFoundError(Exception):
    """Raised when the workbook has no sheet at the requested index."""


def list_sheet_names(path: Path) -> list[str]:
    with pd.ExcelFile(path) as xls:
        return [str(name) for name in xls.sheet_names]


def _cell_value(val: Any) -> Any:
    if is_missing(val):
        return EMPTY_CELL
    if isinstance(val, time):
        # time-only cells have no calendar day; keep them as text
        return val.isoformat()
    if hasattr(val, "item") and not isinstance(val, pd.Timestamp):
        # numpy scalar -> Python scalar (Firestore can't encode numpy types)
        return val.item()
    return val


def read_sheet_rows(path: Path, sheet_index: int = 0) -> list[RawRow]:
    """Read one sheet of an .xlsx workbook into a list of row dicts.

    Parameters
    ----------
    path: workbook path
    sheet_index: 0-based sheet position

    Text cells are never turned into missing values (pandas would otherwise
    read "N/A", "NULL", ... as NaN); only genuinely empty cells become "".
    Rows with no value at all are skipped.
    """
    with pd.ExcelFile(path) as xls:
        names = xls.sheet_names
        if sheet_index < 0 or sheet_index >= len(names):
            raise SheetNotFoundError(
                f"no sheet with index {sheet_index} in {Path(path).name} ({len(names)} sheets)"
            )
        df = xls.parse(
            names[sheet_index], header=0, dtype=object, keep_default_na=False, na_values=[]
        )

    columns = [str(c).strip() for c in df.columns]
    rows: list[RawRow] = []
    for values in df.itertuples(index=False, name=None):
        cells = [_cell_value(v) for v in values]
        if all(isinstance(c, str) and c == EMPTY_CELL for c in cells):
            continue
        rows.append(dict(zip(columns, cells, strict=False)))
    return rows
