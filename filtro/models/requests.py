from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from filtro.errors import ValidationError
from filtro.models import operations
from filtro.models.conditions import AND, INNER, JOIN_TYPES, FilterCondition, KeyColumnPair, normalize_operator
from filtro.models.operations import FilterResponse, OperationContext, Records, ReferenceJoinResponse
from filtro.schema import (
    FILTER_KIND,
    IR_VERSION,
    REFERENCE_FILTER_KIND,
    _conditions_from_ir,
    _conditions_to_ir,
    _key_pairs_from_ir,
    _normalize_request_ir,
    _optional_int,
)


def _paging_ir(d: Dict[str, Any], page: Optional[int], page_size: Optional[int]) -> Dict[str, Any]:
    if page is not None:
        d["page"] = page
    if page_size is not None:
        d["pageSize"] = page_size
    return d


@dataclass(frozen=True)
class FilterRequest:
    """A serializable filter request over one record set."""
    filters: List[FilterCondition] = field(default_factory=list)
    logic_operator: str = AND
    page: Optional[int] = None
    page_size: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "filters", [FilterCondition.from_ir(c) for c in self.filters])
        object.__setattr__(self, "logic_operator", normalize_operator(self.logic_operator))

    def run(self, data: Records, *, context: Optional[OperationContext] = None) -> FilterResponse:
        return operations.apply_filters(
            data,
            self.filters,
            self.logic_operator,
            page=self.page,
            page_size=self.page_size,
            context=context,
        )

    def to_ir(self) -> Dict[str, Any]:
        req = {
            "kind": FILTER_KIND,
            "filters": _conditions_to_ir(self.filters),
            "logicOperator": self.logic_operator,
        }
        return {"filtro": IR_VERSION, "request": _paging_ir(req, self.page, self.page_size)}

    @classmethod
    def from_ir(cls, ir: Dict[str, Any]) -> "FilterRequest":
        req = _normalize_request_ir(ir)["request"]
        if req["kind"] != FILTER_KIND:
            raise ValidationError(
                "E_IR_KIND",
                f"Expected a {FILTER_KIND!r} request, got {req['kind']!r}.",
                hint="Use load_request() to accept any request kind.",
            )
        return cls(
            filters=_conditions_from_ir(req["filters"], key="filters"),
            logic_operator=req["logicOperator"],
            page=_optional_int(req, "page"),
            page_size=_optional_int(req, "pageSize"),
        )

    def to_yaml(self, path: Optional[Union[str, Path]] = None) -> str:
        return _dump_yaml(self.to_ir(), path)

    @classmethod
    def from_yaml(cls, text_or_path: Union[str, Path]) -> "FilterRequest":
        return cls.from_ir(_load_yaml(text_or_path))


@dataclass(frozen=True)
class ReferenceFilterRequest:
    """A serializable request: filter a reference set, then join a primary set against it."""
    key_columns: List[KeyColumnPair]
    filter_conditions: List[FilterCondition] = field(default_factory=list)
    logic_operator: str = AND
    join_type: str = INNER
    page: Optional[int] = None
    page_size: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "key_columns", [KeyColumnPair.from_ir(k) for k in self.key_columns])
        object.__setattr__(self, "filter_conditions", [FilterCondition.from_ir(c) for c in self.filter_conditions])
        object.__setattr__(self, "logic_operator", normalize_operator(self.logic_operator))
        if self.join_type not in JOIN_TYPES:
            raise ValidationError(
                "E_JOIN_TYPE",
                f"Unsupported join type {self.join_type!r}.",
                hint="Use 'inner' (matched rows only) or 'left' (keep unmatched primary rows).",
            )

    def run(
        self,
        reference: Records,
        primary: Records,
        *,
        context: Optional[OperationContext] = None,
    ) -> ReferenceJoinResponse:
        return operations.reference_join(
            reference,
            primary,
            self.key_columns,
            self.filter_conditions,
            self.logic_operator,
            self.join_type,
            page=self.page,
            page_size=self.page_size,
            context=context,
        )

    def to_ir(self) -> Dict[str, Any]:
        req = {
            "kind": REFERENCE_FILTER_KIND,
            "keyColumns": [k.to_ir() for k in self.key_columns],
            "filterConditions": _conditions_to_ir(self.filter_conditions),
            "logicOperator": self.logic_operator,
            "joinType": self.join_type,
        }
        return {"filtro": IR_VERSION, "request": _paging_ir(req, self.page, self.page_size)}

    @classmethod
    def from_ir(cls, ir: Dict[str, Any]) -> "ReferenceFilterRequest":
        req = _normalize_request_ir(ir)["request"]
        if req["kind"] != REFERENCE_FILTER_KIND:
            raise ValidationError(
                "E_IR_KIND",
                f"Expected a {REFERENCE_FILTER_KIND!r} request, got {req['kind']!r}.",
                hint="Use load_request() to accept any request kind.",
            )
        return cls(
            key_columns=_key_pairs_from_ir(req.get("keyColumns")),
            filter_conditions=_conditions_from_ir(req["filterConditions"], key="filterConditions"),
            logic_operator=req["logicOperator"],
            join_type=req["joinType"],
            page=_optional_int(req, "page"),
            page_size=_optional_int(req, "pageSize"),
        )

    def to_yaml(self, path: Optional[Union[str, Path]] = None) -> str:
        return _dump_yaml(self.to_ir(), path)

    @classmethod
    def from_yaml(cls, text_or_path: Union[str, Path]) -> "ReferenceFilterRequest":
        return cls.from_ir(_load_yaml(text_or_path))


Request = Union[FilterRequest, ReferenceFilterRequest]


def load_request(ir_or_yaml: Union[Dict[str, Any], str, Path]) -> Request:
    """Build whichever request kind the IR (or YAML text/file) describes."""
    ir = _load_yaml(ir_or_yaml) if isinstance(ir_or_yaml, (str, Path)) else ir_or_yaml
    kind = _normalize_request_ir(ir)["request"]["kind"]
    if kind == FILTER_KIND:
        return FilterRequest.from_ir(ir)
    return ReferenceFilterRequest.from_ir(ir)


def _dump_yaml(ir: Dict[str, Any], path: Optional[Union[str, Path]]) -> str:
    text = yaml.safe_dump(ir, sort_keys=False)
    if path is not None:
        Path(path).write_text(text, encoding="utf-8")
    return text


def _load_yaml(text_or_path: Union[str, Path]) -> Any:
    # accept a path for convenience
    if isinstance(text_or_path, Path) or (
        isinstance(text_or_path, str) and "\n" not in text_or_path and text_or_path.endswith((".yml", ".yaml"))
    ):
        p = Path(text_or_path)
        if not p.exists():
            raise ValidationError(
                "E_YAML_PATH",
                f"Request file not found: '{p}'.",
                hint="Pass YAML text directly or an existing .yml/.yaml path.",
            )
        text = p.read_text(encoding="utf-8")
    else:
        text = text_or_path
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValidationError(
            "E_YAML_PARSE",
            f"Failed to parse YAML: {e}",
            hint="Check indentation and quoting.",
        ) from e
