from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import petl as etl

from filtro.config import EngineConfig, get_engine_config
from filtro.errors import ValidationError
from filtro.models.records import RecordSet
from filtro.util import _suggest, _to_text


@dataclass(frozen=True)
class ExportTable:
    """Header-ordered string rows ready for a spreadsheet or document renderer."""
    header: Tuple[str, ...]
    rows: List[Tuple[str, ...]] = field(default_factory=list)
    total_rows: int = 0

    @property
    def exported_rows(self) -> int:
        return len(self.rows)

    @property
    def truncated(self) -> bool:
        return self.exported_rows < self.total_rows

    def table(self):
        return etl.wrap([self.header, *self.rows])


def prepare_export(
    record_set: RecordSet,
    headers: Optional[Sequence[str]] = None,
    *,
    max_rows: Optional[int] = None,
    max_cell_chars: Optional[int] = None,
    pdf: bool = False,
    config: Optional[EngineConfig] = None,
) -> ExportTable:
    """Render cells as text in the requested column order.

    None becomes "", long cells are cut to max_cell_chars, and at most
    max_rows rows are kept. Limits left unset come from the config;
    a PDF export is capped at config.pdf_max_rows rows.
    """
    config = config or get_engine_config()
    limit = config.max_cell_chars if max_cell_chars is None else max_cell_chars
    if max_rows is None and pdf:
        max_rows = config.pdf_max_rows
    if headers is None:
        headers = record_set.header
    headers = list(headers)
    if not headers:
        raise ValidationError(
            "E_EXPORT_HEADERS",
            "Export requires at least one column.",
            hint="Pass headers=None to export every column.",
        )
    for h in headers:
        if record_set.index_of(h) is None:
            raise ValidationError(
                "E_EXPORT_HEADERS",
                f"Export column {h!r} not found.",
                hint=_suggest(h, record_set.header),
            )
    if max_rows is not None and (isinstance(max_rows, bool) or not isinstance(max_rows, int) or max_rows < 0):
        raise ValidationError(
            "E_EXPORT_PARAMS",
            f"max_rows must be a non-negative integer, got {max_rows!r}.",
            hint="Use None to export every row.",
        )
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValidationError(
            "E_EXPORT_PARAMS",
            f"max_cell_chars must be a positive integer, got {limit!r}.",
            hint=f"Use None for the default of {config.max_cell_chars}.",
        )

    tbl = etl.cut(record_set.table(), *[record_set.index_of(h) for h in headers])
    if max_rows is not None:
        tbl = etl.head(tbl, max_rows)
    rows = [tuple(_to_text(v)[:limit] for v in r) for r in etl.data(tbl)]

    return ExportTable(tuple(headers), rows, total_rows=len(record_set))
