from __future__ import annotations

from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

import petl as etl

from filtro.models.conditions import AND, FilterCondition, normalize_operator
from filtro.models.predicates import check_conditions, evaluate, match_cell
from filtro.models.records import RecordSet


def combine(row: Mapping[str, Any], conditions: Sequence[FilterCondition], operator: Optional[str] = AND) -> bool:
    """AND: every condition holds. OR: at least one does. No conditions: True."""
    if not conditions:
        return True
    if normalize_operator(operator) == AND:
        return all(evaluate(row, c) for c in conditions)
    return any(evaluate(row, c) for c in conditions)


def _compile(
    header: Sequence[str],
    conditions: Sequence[FilterCondition],
    operator: str,
) -> Callable[[Sequence[Any]], bool]:
    # resolve column positions once; an absent column reads as None
    idx_map = {}
    for i, name in enumerate(header):
        idx_map.setdefault(name, i)
    bound: List[Tuple[Optional[int], FilterCondition]] = [(idx_map.get(c.column), c) for c in conditions]

    def _cell(row: Sequence[Any], idx: Optional[int]) -> Any:
        return None if idx is None else row[idx]

    if operator == AND:
        return lambda row: all(match_cell(_cell(row, i), c) for i, c in bound)
    return lambda row: any(match_cell(_cell(row, i), c) for i, c in bound)


def filter_records(
    record_set: RecordSet,
    conditions: Sequence[FilterCondition],
    operator: Optional[str] = AND,
    *,
    strict: bool = False,
) -> RecordSet:
    """Keep the rows the combined conditions accept, in their original order."""
    op = normalize_operator(operator)
    conditions = [FilterCondition.from_ir(c) for c in conditions or []]
    check_conditions(conditions, record_set.header, strict=strict)
    if not conditions:
        return record_set.with_rows(record_set.rows)

    where = _compile(record_set.header, conditions, op)
    selected = etl.select(record_set.table(), where)
    return record_set.with_rows(etl.data(selected))
