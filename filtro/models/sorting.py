from __future__ import annotations

from functools import cmp_to_key
from typing import Any, Optional

from filtro.errors import ValidationError
from filtro.models.records import RecordSet
from filtro.util import _parse_number, _to_text

ASC = "asc"
DESC = "desc"


def compare_cells(a: Any, b: Any) -> int:
    """Numeric comparison when both cells read as numbers, else case-insensitive text."""
    an = _parse_number(a)
    bn = _parse_number(b)
    if an is not None and bn is not None:
        return (an > bn) - (an < bn)
    at = _to_text(a).lower()
    bt = _to_text(b).lower()
    return (at > bt) - (at < bt)


def sort_records(record_set: RecordSet, column: Optional[str] = None, direction: str = ASC) -> RecordSet:
    """Reorder rows by one column; columns are never reordered. No column: identity."""
    if not column:
        return record_set
    if direction not in (ASC, DESC):
        raise ValidationError(
            "E_SORT_DIRECTION",
            f"Unsupported sort direction {direction!r}.",
            hint="Use 'asc' or 'desc'.",
        )
    idx = record_set.require_index(column, code="E_SORT_UNKNOWN_COL")
    key = cmp_to_key(lambda r1, r2: compare_cells(r1[idx], r2[idx]))
    return record_set.with_rows(sorted(record_set.rows, key=key, reverse=direction == DESC))
