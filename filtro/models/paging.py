from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict

import petl as etl

from filtro.errors import ValidationError
from filtro.models.records import RecordSet


@dataclass(frozen=True)
class Page:
    records: RecordSet
    current_page: int
    page_size: int
    total_rows: int
    total_pages: int
    has_more: bool

    def meta(self) -> Dict[str, Any]:
        return {
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            "hasMore": self.has_more,
        }


def page_records(record_set: RecordSet, page: int = 1, page_size: int = 50) -> Page:
    """Slice rows [(page-1)*page_size, page*page_size), clipped to the record set."""
    for name, v in (("page", page), ("page_size", page_size)):
        if isinstance(v, bool) or not isinstance(v, int) or v < 1:
            raise ValidationError(
                "E_PAGE_PARAMS",
                f"{name} must be a positive integer, got {v!r}.",
                hint="Pages are numbered from 1; page_size is the number of rows per page.",
            )
    total = len(record_set)
    start = (page - 1) * page_size
    stop = start + page_size
    sliced = etl.rowslice(record_set.table(), start, stop)
    return Page(
        records=record_set.with_rows(etl.data(sliced)),
        current_page=page,
        page_size=page_size,
        total_rows=total,
        total_pages=math.ceil(total / page_size),
        has_more=stop < total,
    )
