from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from filtro.errors import ValidationError

AND = "AND"
OR = "OR"
LOGIC_OPERATORS = (AND, OR)

INNER = "inner"
LEFT = "left"
JOIN_TYPES = (INNER, LEFT)

TEXT = "text"
NUMBER = "number"
DATE = "date"
COLUMN_TYPES = (TEXT, NUMBER, DATE)

NUMERIC_CONDITIONS = (
    "equals",
    "notEquals",
    "greaterThan",
    "lessThan",
    "greaterThanOrEqual",
    "lessThanOrEqual",
    "between",
)
TEXT_CONDITIONS = ("contains", "doesNotContain", "startsWith", "endsWith", "exactMatch")
EMPTINESS_CONDITIONS = ("isEmpty", "isNotEmpty")
DATE_CONDITIONS = ("before", "after", "on", "betweenDates")

# Conditions that read value2 as the upper bound.
RANGE_CONDITIONS = ("between", "betweenDates")


def conditions_for_type(column_type: str) -> List[str]:
    """Condition names offered for a column of the given inferred type."""
    if column_type == NUMBER:
        return list(NUMERIC_CONDITIONS)
    if column_type == DATE:
        return list(DATE_CONDITIONS)
    if column_type == TEXT:
        return [*TEXT_CONDITIONS, *EMPTINESS_CONDITIONS]
    raise ValidationError(
        "E_COLUMN_TYPE",
        f"Unknown column type {column_type!r}.",
        hint="Column types are: " + ", ".join(COLUMN_TYPES),
    )


def normalize_operator(operator: Optional[str]) -> str:
    if operator is None:
        return AND
    if isinstance(operator, str) and operator.strip().upper() in LOGIC_OPERATORS:
        return operator.strip().upper()
    raise ValidationError(
        "E_FILTER_OPERATOR",
        f"Unsupported logic operator {operator!r}.",
        hint="Use 'AND' (every condition must hold) or 'OR' (any condition may hold).",
    )


def _as_text(v: Any) -> str:
    if v is None:
        return ""
    return v if isinstance(v, str) else str(v)


@dataclass(frozen=True)
class FilterCondition:
    """One filter predicate. Operands stay text and are parsed at evaluation time."""
    column: str
    condition: str
    value: str = ""
    value2: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.column, str) or not self.column:
            raise ValidationError(
                "E_FILTER_PARAMS",
                "A filter condition requires a non-empty 'column' string.",
                hint="Example: {'column': 'amount', 'condition': 'greaterThan', 'value': '100'}",
            )
        if not isinstance(self.condition, str) or not self.condition:
            raise ValidationError(
                "E_FILTER_PARAMS",
                f"Filter on column {self.column!r} requires a non-empty 'condition' string.",
                hint="Example: {'column': 'amount', 'condition': 'greaterThan', 'value': '100'}",
            )
        object.__setattr__(self, "value", _as_text(self.value))
        if self.value2 is not None:
            object.__setattr__(self, "value2", _as_text(self.value2))

    def to_ir(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"column": self.column, "condition": self.condition, "value": self.value}
        if self.value2 is not None:
            d["value2"] = self.value2
        return d

    @classmethod
    def from_ir(cls, d: Any) -> "FilterCondition":
        if isinstance(d, FilterCondition):
            return d
        if not isinstance(d, dict):
            raise ValidationError(
                "E_IR_FILTER",
                "A filter condition must be a mapping.",
                hint="Example: {column: amount, condition: greaterThan, value: '100'}",
            )
        return cls(
            column=d.get("column"),
            condition=d.get("condition"),
            value=d.get("value"),
            value2=d.get("value2"),
        )

    def __str__(self) -> str:
        if self.value2 is not None:
            return f"{self.column} {self.condition} {self.value!r}..{self.value2!r}"
        return f"{self.column} {self.condition} {self.value!r}"


@dataclass(frozen=True)
class KeyColumnPair:
    """Match reference_column on the reference side with primary_column on the primary side."""
    reference_column: str
    primary_column: str

    def __post_init__(self) -> None:
        for side, name in (("reference", self.reference_column), ("primary", self.primary_column)):
            if not isinstance(name, str) or not name:
                raise ValidationError(
                    "E_JOIN_KEYS",
                    f"Key column pair requires a non-empty {side} column name.",
                    hint="Example: {'referenceColumn': 'id', 'primaryColumn': 'customer_id'}",
                )

    def to_ir(self) -> Dict[str, Any]:
        return {"referenceColumn": self.reference_column, "primaryColumn": self.primary_column}

    @classmethod
    def from_ir(cls, d: Any) -> "KeyColumnPair":
        if isinstance(d, KeyColumnPair):
            return d
        if not isinstance(d, dict):
            raise ValidationError(
                "E_IR_KEYS",
                "A key column pair must be a mapping.",
                hint="Example: {referenceColumn: id, primaryColumn: id}",
            )
        ref = d.get("referenceColumn", d.get("refColumn"))
        return cls(reference_column=ref, primary_column=d.get("primaryColumn"))
