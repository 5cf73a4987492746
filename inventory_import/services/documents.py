from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from ..config.constants import DEFAULT_DATE_FIELDS
from ..models.cell import is_missing
from ..models.document import CanonicalDocument
from .dates import normalize_date

"""Row -> document building and identifier policy.

build_document() is pure: the same row and rename table always give the same
document, and malformed cells degrade to "" instead of raising.
"""

__all__ = [
    "DocumentIdError",
    "build_document",
    "clean_value",
    "find_rename_collisions",
    "resolve_document_id",
]


class DocumentIdError(ValueError):
    """Row cannot be given the derived document identifier."""


def clean_value(value: Any) -> Any:
    """None / NaN / NaT -> "", everything else unchanged."""
    if is_missing(value):
        return ""
    return value


def _canonical_name(header: str, rename_table: Mapping[str, str]) -> str:
    # Unmapped headers (or an empty mapping target) keep their own name
    return rename_table.get(header) or header


def build_document(
    raw_row: Mapping[str, Any],
    rename_table: Mapping[str, str],
    date_fields: Iterable[str] = DEFAULT_DATE_FIELDS,
) -> CanonicalDocument:
    """Build the canonical document for one sheet row.

    Headers are renamed by exact match against rename_table. Fields whose
    canonical name matches one of date_fields (case-insensitive) go through
    normalize_date(); every other value is only cleaned of missing markers.

    When two headers rename to the same canonical name, the later column wins.
    Use find_rename_collisions() to report such mappings.
    """
    wanted = {f.lower() for f in date_fields}
    doc: CanonicalDocument = {}
    for header, raw in raw_row.items():
        target = _canonical_name(header, rename_table)
        if str(target).lower() in wanted:
            doc[target] = normalize_date(raw)
        else:
            doc[target] = clean_value(raw)
    return doc


def find_rename_collisions(
    columns: Iterable[str], rename_table: Mapping[str, str]
) -> dict[str, list[str]]:
    """Return canonical names that more than one header maps onto.

    >>> find_rename_collisions(["Caducidad", "caducidad"], {"Caducidad": "caducidad"})
    {'caducidad': ['Caducidad', 'caducidad']}
    """
    sources: dict[str, list[str]] = {}
    for column in columns:
        sources.setdefault(_canonical_name(column, rename_table), []).append(column)
    return {target: cols for target, cols in sources.items() if len(cols) > 1}


def resolve_document_id(document: Mapping[str, Any], id_field: str | None) -> str | None:
    """Identifier policy for one document.

    No id_field -> None (Firestore generates the id). Otherwise the trimmed
    text of document[id_field]; integral floats (123.0 from a numeric column
    with gaps) are rendered as 123.

    Raises:
        DocumentIdError: the field is missing/empty, or its value cannot
            address a Firestore document ('/' inside, '.' or '..').
    """
    if not id_field:
        return None
    raw = clean_value(document.get(id_field, ""))
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    doc_id = str(raw).strip()
    if not doc_id:
        raise DocumentIdError(f"empty id in field '{id_field}'")
    if "/" in doc_id or doc_id in (".", ".."):
        raise DocumentIdError(f"invalid document id {doc_id!r} in field '{id_field}'")
    return doc_id
