from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

import petl as etl
from petl.util.base import Table

from filtro.errors import ValidationError
from filtro.util import _suggest


class _RowsView(Table):
    """Re-iterable petl table over a header and an existing row list, without copying."""

    def __init__(self, header: Tuple[str, ...], rows: List[Tuple[Any, ...]]):
        self._header = header
        self._rows = rows

    def __iter__(self):
        yield self._header
        yield from self._rows


@dataclass(frozen=True)
class RecordSet:
    """An ordered header plus positional rows aligned to it.

    Rows are tuples (the petl row shape), so a header may repeat a column
    name without one cell shadowing another. Column order is display order.
    """
    header: Tuple[str, ...]
    rows: List[Tuple[Any, ...]] = field(default_factory=list)

    def __post_init__(self) -> None:
        header = tuple(self.header)
        if not all(isinstance(h, str) for h in header):
            raise ValidationError(
                "E_RECORDS_HEADER",
                "Record set header must contain only column name strings.",
                hint=f"Got header={list(header)!r}",
            )
        width = len(header)
        rows: List[Tuple[Any, ...]] = []
        for i, r in enumerate(self.rows):
            r = tuple(r)
            if len(r) != width:
                raise ValidationError(
                    "E_RECORDS_SHAPE",
                    f"Row #{i} has {len(r)} cells but the header has {width} columns.",
                    hint="Every row must carry one cell (possibly None) per header column.",
                )
            rows.append(r)
        object.__setattr__(self, "header", header)
        object.__setattr__(self, "rows", rows)

    # ---------- constructors ----------
    @classmethod
    def from_dicts(cls, rows: Any, header: Optional[Sequence[str]] = None) -> "RecordSet":
        """Build a record set from a sequence of row mappings.

        The header defaults to the union of keys in order of first appearance;
        cells a row does not carry are filled with None.
        """
        if isinstance(rows, (str, bytes, Mapping)) or not isinstance(rows, Iterable):
            raise ValidationError(
                "E_RECORDS_TYPE",
                "Records must be provided as a sequence of row mappings.",
                hint="Example: [{'id': 'A1', 'amount': 150}, {'id': 'B2', 'amount': 90}]",
            )
        rows = list(rows)
        for i, r in enumerate(rows):
            if not isinstance(r, Mapping):
                raise ValidationError(
                    "E_RECORDS_ROW",
                    f"Row #{i} is not a mapping of column name to value.",
                    hint=repr(r)[:200],
                )

        if header is None:
            seen: Dict[str, None] = {}
            for r in rows:
                for k in r:
                    seen.setdefault(k, None)
            header = list(seen)

        header = list(header)
        if not rows:
            return cls(tuple(header), [])
        tbl = etl.fromdicts(rows, header=header)
        return cls(tuple(header), list(etl.data(tbl)))

    @classmethod
    def from_table(cls, table) -> "RecordSet":
        """Materialize any petl table (header row followed by data rows)."""
        return cls(tuple(etl.header(table)), list(etl.data(table)))

    # ---------- views ----------
    def table(self):
        """A petl view of this record set."""
        return _RowsView(self.header, self.rows)

    def dicts(self) -> List[Dict[str, Any]]:
        return list(etl.dicts(self.table()))

    def index_of(self, column: str) -> Optional[int]:
        try:
            return self.header.index(column)
        except ValueError:
            return None

    def require_index(self, column: str, *, code: str = "E_RECORDS_UNKNOWN_COL") -> int:
        idx = self.index_of(column)
        if idx is None:
            raise ValidationError(
                code,
                f"Column {column!r} not found.",
                hint=_suggest(column, self.header),
            )
        return idx

    def column(self, name: str) -> List[Any]:
        idx = self.require_index(name)
        return [r[idx] for r in self.rows]

    def with_rows(self, rows: Iterable[Tuple[Any, ...]]) -> "RecordSet":
        return RecordSet(self.header, list(rows))

    def __len__(self) -> int:
        return len(self.rows)

    def __str__(self) -> str:
        return f"RecordSet(columns={list(self.header)}, rows={len(self.rows)})\n" + str(etl.look(self.table(), limit=5))
