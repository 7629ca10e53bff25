from __future__ import annotations

import operator
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from filtro.errors import ValidationError
from filtro.models.conditions import RANGE_CONDITIONS, FilterCondition
from filtro.util import _is_empty, _parse_date, _parse_number, _suggest, _to_text

CellTest = Callable[[Any, FilterCondition], bool]


@dataclass(frozen=True)
class ConditionImpl:
    name: str
    family: str
    test: CellTest


CONDITION_REGISTRY: Dict[str, ConditionImpl] = {}


def register_condition(name: str, family: str) -> Callable[[CellTest], CellTest]:
    """Decorator to register a cell test under a condition name."""

    def deco(fn: CellTest) -> CellTest:
        CONDITION_REGISTRY[name] = ConditionImpl(name, family, fn)
        return fn

    return deco


# ---------------- numeric family ----------------

def _numeric(cmp: Callable[[float, float], bool]) -> CellTest:
    def test(cell: Any, c: FilterCondition) -> bool:
        a = _parse_number(cell)
        b = _parse_number(c.value)
        return a is not None and b is not None and cmp(a, b)

    return test


for _name, _cmp in (
    ("equals", operator.eq),
    ("greaterThan", operator.gt),
    ("lessThan", operator.lt),
    ("greaterThanOrEqual", operator.ge),
    ("lessThanOrEqual", operator.le),
):
    register_condition(_name, "number")(_numeric(_cmp))


@register_condition("notEquals", "number")
def _not_equals(cell: Any, c: FilterCondition) -> bool:
    # unparseable operands count as "not equal"
    a = _parse_number(cell)
    b = _parse_number(c.value)
    return a is None or b is None or a != b


@register_condition("between", "number")
def _between(cell: Any, c: FilterCondition) -> bool:
    v = _parse_number(cell)
    lo = _parse_number(c.value)
    hi = _parse_number(c.value2)
    if v is None or lo is None or hi is None:
        return False
    return lo <= v <= hi


# ---------------- text family ----------------

@register_condition("contains", "text")
def _contains(cell: Any, c: FilterCondition) -> bool:
    return c.value.lower() in _to_text(cell).lower()


@register_condition("doesNotContain", "text")
def _does_not_contain(cell: Any, c: FilterCondition) -> bool:
    return c.value.lower() not in _to_text(cell).lower()


@register_condition("startsWith", "text")
def _starts_with(cell: Any, c: FilterCondition) -> bool:
    return _to_text(cell).lower().startswith(c.value.lower())


@register_condition("endsWith", "text")
def _ends_with(cell: Any, c: FilterCondition) -> bool:
    return _to_text(cell).lower().endswith(c.value.lower())


@register_condition("exactMatch", "text")
def _exact_match(cell: Any, c: FilterCondition) -> bool:
    # case-sensitive, unlike the rest of the text family
    return _to_text(cell) == c.value


# ---------------- date family ----------------

def _dated(cmp: Callable[[datetime, datetime], bool]) -> CellTest:
    def test(cell: Any, c: FilterCondition) -> bool:
        a = _parse_date(cell)
        b = _parse_date(c.value)
        return a is not None and b is not None and cmp(a, b)

    return test


register_condition("before", "date")(_dated(operator.lt))
register_condition("after", "date")(_dated(operator.gt))
register_condition("on", "date")(_dated(lambda a, b: a.date() == b.date()))


@register_condition("betweenDates", "date")
def _between_dates(cell: Any, c: FilterCondition) -> bool:
    v = _parse_date(cell)
    lo = _parse_date(c.value)
    hi = _parse_date(c.value2)
    if v is None or lo is None or hi is None:
        return False
    return lo <= v <= hi


# ---------------- emptiness family ----------------

@register_condition("isEmpty", "empty")
def _is_empty_cond(cell: Any, c: FilterCondition) -> bool:
    return _is_empty(cell)


@register_condition("isNotEmpty", "empty")
def _is_not_empty_cond(cell: Any, c: FilterCondition) -> bool:
    return not _is_empty(cell)


def match_cell(cell: Any, condition: FilterCondition) -> bool:
    """Evaluate one condition against one cell value.

    An unknown condition name passes every cell. Callers that prefer a hard
    failure validate with `check_conditions(..., strict=True)` first.
    """
    impl = CONDITION_REGISTRY.get(condition.condition)
    if impl is None:
        return True
    return impl.test(cell, condition)


def evaluate(row: Mapping[str, Any], condition: FilterCondition) -> bool:
    """Evaluate one condition against a row mapping; a missing column reads as None."""
    return match_cell(row.get(condition.column), condition)


def check_conditions(
    conditions: Sequence[FilterCondition],
    header: Optional[Sequence[str]] = None,
    *,
    strict: bool = False,
) -> None:
    """Reject unknown condition names, unknown columns and open ranges (strict mode only)."""
    if not strict:
        return
    for c in conditions:
        if c.condition not in CONDITION_REGISTRY:
            raise ValidationError(
                "E_FILTER_UNKNOWN_CONDITION",
                f"Unknown filter condition {c.condition!r} on column {c.column!r}.",
                hint=_suggest(c.condition, sorted(CONDITION_REGISTRY), label="conditions"),
            )
        if header is not None and c.column not in header:
            raise ValidationError(
                "E_FILTER_UNKNOWN_COL",
                f"Unknown column {c.column!r} in filter condition.",
                hint=_suggest(c.column, list(header)),
            )
        if c.condition in RANGE_CONDITIONS and c.value2 is None:
            raise ValidationError(
                "E_FILTER_VALUE2",
                f"Condition {c.condition!r} on column {c.column!r} requires 'value2' (upper bound).",
                hint="Example: {'condition': 'between', 'value': '10', 'value2': '20'}",
            )
