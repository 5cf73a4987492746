from __future__ import annotations

import re
from datetime import UTC, date, datetime, timedelta
from typing import Any

from dateutil import parser as dtp

from ..config.constants import UNIX_EPOCH_SERIAL
from ..models.cell import CellKind, RawCell

"""Date normalization for date-valued inventory fields.

normalize_date() turns whatever the sheet holds for a date column (serial
number, native datetime, free text in several layouts, empty cell) into a
YYYY-MM-DD string. It never raises: text that cannot be read as a date is kept
verbatim so nothing typed by the operator is lost.
"""

__all__ = [
    "normalize_date",
    "parse_date_text",
    "serial_to_date",
]

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_MS_PER_DAY = 86_400_000

# D/M/Y or D-M-Y, 2 or 4 digit year
_DAY_FIRST_RE = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{2}|\d{4})$")
_ISO_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# dateutil fills missing fields from `default`; parsing against two defaults
# that differ in year, month and day exposes text without a full date ("12").
_FILL_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def _utc_day(value: date) -> str:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.date().isoformat()
    return value.isoformat()


def serial_to_date(serial: float) -> date | None:
    """Convert a spreadsheet serial day count to a calendar date.

    Fractional days (time of day) are kept to the millisecond before the date
    is taken, so 45366.99999 still lands on the same day. Returns None when the
    result falls outside the representable date range.
    """
    ms = round((serial - UNIX_EPOCH_SERIAL) * _MS_PER_DAY)
    try:
        return (_UNIX_EPOCH + timedelta(milliseconds=ms)).date()
    except OverflowError:
        return None


def parse_date_text(text: str) -> datetime | None:
    """Read free text as a full calendar date, or return None.

    ISO-8601 forms go through dateutil's strict isoparse. Anything else goes
    through the general dateutil parser ("2024/03/15", "March 15, 2024",
    "Fri, 15 Mar 2024 10:00:00 GMT"), and the result is discarded when the
    text lacks the year, month or day. Purely numeric D/M/Y text is left to
    the day-first rule, where two digit years always mean 20YY.
    """
    try:
        return dtp.isoparse(text)
    except (ValueError, OverflowError):
        pass
    if _DAY_FIRST_RE.match(text):
        return None
    try:
        first, second = (dtp.parse(text, default=d) for d in _FILL_DEFAULTS)
    except (ValueError, OverflowError):
        return None
    if first.date() != second.date():
        return None
    return first


def _normalize_date_text(text: str) -> str:
    trimmed = text.strip()
    if not trimmed:
        return ""

    parsed = parse_date_text(trimmed)
    if parsed is not None:
        return _utc_day(parsed)

    m = _DAY_FIRST_RE.match(trimmed)
    if m:
        day, month, year = m.groups()
        if len(year) == 2:
            year = f"20{year}"
        try:
            return date(int(year), int(month), int(day)).isoformat()
        except ValueError:
            pass  # 31/02/2024 and friends

    # "2024-03-15 10:30 approx" -> keep the date part
    head = trimmed.split()[0]
    if _ISO_DAY_RE.match(head):
        return head

    return trimmed


def normalize_date(value: Any) -> str:
    """Normalize a raw cell value to ``YYYY-MM-DD``.

    Rules (first match wins):

    1. empty cell -> ""
    2. datetime/date -> its UTC calendar day
    3. finite number -> spreadsheet serial (25569 == 1970-01-01); str(value)
       if the serial is out of range
    4. text -> trimmed; parse_date_text() (ISO-8601 and other complete
       date text); D/M/Y (2 digit years mean 20YY); leading YYYY-MM-DD token;
       otherwise the trimmed text itself
    5. anything else -> str(value)

    >>> normalize_date(25569)
    '1970-01-01'
    >>> normalize_date("15/03/24")
    '2024-03-15'
    """
    cell = RawCell.classify(value)
    if cell.kind is CellKind.EMPTY:
        return ""
    if cell.kind is CellKind.DATE:
        return _utc_day(cell.value)
    if cell.kind is CellKind.NUMBER:
        day = serial_to_date(cell.value)
        if day is not None:
            return day.isoformat()
        return str(cell.value)
    if cell.kind is CellKind.TEXT:
        return _normalize_date_text(cell.value)
    return str(cell.value)
