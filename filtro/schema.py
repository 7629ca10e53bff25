from __future__ import annotations

from typing import Any, Dict, List, Optional

from filtro.errors import ValidationError
from filtro.models.conditions import FilterCondition, KeyColumnPair

IR_VERSION = 0

FILTER_KIND = "filter"
REFERENCE_FILTER_KIND = "reference_filter"
REQUEST_KINDS = (FILTER_KIND, REFERENCE_FILTER_KIND)


def _conditions_to_ir(conditions: List[FilterCondition]) -> List[Dict[str, Any]]:
    return [c.to_ir() for c in conditions]


def _conditions_from_ir(items: Any, *, key: str) -> List[FilterCondition]:
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValidationError(
            "E_IR_FILTERS",
            f"IR request.{key} must be a list.",
            hint=f"Example: {key}: [{{column: amount, condition: greaterThan, value: '100'}}]",
        )
    return [FilterCondition.from_ir(d) for d in items]


def _key_pairs_from_ir(items: Any) -> List[KeyColumnPair]:
    if not isinstance(items, list) or not items:
        raise ValidationError(
            "E_IR_KEYS",
            "IR request.keyColumns must be a non-empty list.",
            hint="Example: keyColumns: [{referenceColumn: id, primaryColumn: id}]",
        )
    return [KeyColumnPair.from_ir(d) for d in items]


def _optional_int(req: Dict[str, Any], key: str) -> Optional[int]:
    v = req.get(key)
    if v is None:
        return None
    if isinstance(v, bool) or not isinstance(v, int) or v < 1:
        raise ValidationError(
            "E_IR_PAGE",
            f"IR request.{key} must be a positive integer when provided.",
            hint=f"Got {v!r}.",
        )
    return v


def _normalize_request_ir(ir: Any) -> Dict[str, Any]:
    """Normalize request IR structure.

    Guarantees:
      - returns a dict with keys: filtro, request
      - request.kind is one of the known kinds
      - missing/None condition lists become []
      - missing logicOperator becomes AND; missing joinType becomes inner
    """
    if not isinstance(ir, dict):
        raise ValidationError(
            "E_IR_ROOT",
            "IR must be a mapping at the root.",
            hint="Expected keys: filtro, request.",
        )

    version = ir.get("filtro", IR_VERSION)
    if version != IR_VERSION:
        raise ValidationError(
            "E_IR_VERSION",
            f"Unsupported IR version: {version!r}.",
            hint=f"Supported: filtro: {IR_VERSION}",
        )

    req = ir.get("request")
    if not isinstance(req, dict):
        raise ValidationError(
            "E_IR_REQUEST",
            "IR requires a 'request' mapping.",
            hint="Example: {filtro: 0, request: {kind: filter, filters: [...]}}",
        )
    req2: Dict[str, Any] = dict(req)

    kind = req2.get("kind")
    if kind not in REQUEST_KINDS:
        raise ValidationError(
            "E_IR_KIND",
            f"IR request.kind must be one of: {', '.join(REQUEST_KINDS)}.",
            hint=f"Got {kind!r}.",
        )

    req2["logicOperator"] = req2.get("logicOperator") or "AND"
    if kind == FILTER_KIND:
        req2["filters"] = req2.get("filters") or []
    else:
        req2["filterConditions"] = req2.get("filterConditions") or []
        req2["joinType"] = req2.get("joinType") or "inner"

    return {"filtro": IR_VERSION, "request": req2}
