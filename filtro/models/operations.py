from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from filtro.config import EngineConfig, get_engine_config
from filtro.errors import ResourceExhaustion, ValidationError
from filtro.log import get_logger, log_event, log_timing
from filtro.models import filters, inference, joins, paging, sorting
from filtro.models.conditions import AND, INNER, FilterCondition, KeyColumnPair
from filtro.models.inference import ColumnTypeMap
from filtro.models.paging import Page
from filtro.models.records import RecordSet

logger = get_logger(__name__)

Records = Union[RecordSet, Sequence[Mapping[str, Any]]]


@dataclass
class OperationContext:
    """Per-operation state: configuration plus a record of each engine stage."""
    config: EngineConfig = field(default_factory=get_engine_config)
    checkpoints: List[Tuple[str, Dict[str, Any]]] = field(default_factory=list)

    def checkpoint(self, stage: str, **info: Any) -> None:
        self.checkpoints.append(("stage", {"stage": stage, **info}))


@dataclass(frozen=True)
class FilterResponse:
    records: RecordSet
    total_rows: int
    original_rows: int
    page: Optional[Page] = None

    def to_dict(self) -> Dict[str, Any]:
        data = self.page.records if self.page is not None else self.records
        out: Dict[str, Any] = {
            "data": data.dicts(),
            "totalRows": self.total_rows,
            "originalRows": self.original_rows,
        }
        if self.page is not None:
            out.update(self.page.meta())
        return out


@dataclass(frozen=True)
class ReferenceJoinResponse:
    records: RecordSet
    total_rows: int
    original_primary_rows: int
    filtered_ref_rows: int
    matched_rows: int
    page: Optional[Page] = None

    @property
    def headers(self) -> Tuple[str, ...]:
        return self.records.header

    def to_dict(self) -> Dict[str, Any]:
        data = self.page.records if self.page is not None else self.records
        out: Dict[str, Any] = {
            "data": data.dicts(),
            "headers": list(self.headers),
            "totalRows": self.total_rows,
            "originalPrimaryRows": self.original_primary_rows,
            "filteredRefRows": self.filtered_ref_rows,
            "matchedRows": self.matched_rows,
        }
        if self.page is not None:
            out.update(self.page.meta())
        return out


@dataclass(frozen=True)
class PageResponse:
    page: Page

    @property
    def records(self) -> RecordSet:
        return self.page.records

    def to_dict(self) -> Dict[str, Any]:
        return {"data": self.page.records.dicts(), "totalRows": self.page.total_rows, **self.page.meta()}


def _as_record_set(data: Any, name: str) -> RecordSet:
    if isinstance(data, RecordSet):
        return data
    if not isinstance(data, (list, tuple)):
        raise ValidationError(
            "E_RECORDS_TYPE",
            f"{name} must be provided as a sequence of row mappings.",
            hint=f"Got {type(data).__name__}.",
        )
    return RecordSet.from_dicts(data)


def _conditions(items: Optional[Sequence[Any]], name: str) -> List[FilterCondition]:
    if items is None:
        return []
    if not isinstance(items, (list, tuple)):
        raise ValidationError(
            "E_FILTER_PARAMS",
            f"{name} must be a list of filter conditions.",
            hint="Example: [{'column': 'amount', 'condition': 'greaterThan', 'value': '100'}]",
        )
    return [FilterCondition.from_ir(c) for c in items]


def _maybe_page(records: RecordSet, page: Optional[int], page_size: Optional[int]) -> Optional[Page]:
    # paginate only when both are given
    if page is None or page_size is None:
        return None
    return paging.page_records(records, page, page_size)


@contextmanager
def _resource_guard(operation: str, hint: str) -> Iterator[None]:
    try:
        yield
    except MemoryError as e:
        raise ResourceExhaustion(
            "E_RESOURCE_EXHAUSTED",
            f"Dataset too large to process during {operation}.",
            hint=hint,
        ) from e


def infer_types(data: Records, *, context: Optional[OperationContext] = None) -> ColumnTypeMap:
    ctx = context or OperationContext()
    records = _as_record_set(data, "data")
    with _resource_guard("type inference", "Upload a smaller file or split it into parts."):
        with log_timing(logger, "infer_types", rows=len(records), columns=len(records.header)):
            types = inference.infer_types(records, ctx.config)
    ctx.checkpoint("infer_types", sample_rows=inference.sample_size(len(records), ctx.config), types=dict(types))
    return types


def apply_filters(
    data: Records,
    conditions: Optional[Sequence[Any]] = None,
    operator: Optional[str] = AND,
    *,
    page: Optional[int] = None,
    page_size: Optional[int] = None,
    strict: Optional[bool] = None,
    context: Optional[OperationContext] = None,
) -> FilterResponse:
    """Filter one record set, optionally returning a single page of the result."""
    ctx = context or OperationContext()
    records = _as_record_set(data, "data")
    conds = _conditions(conditions, "filters")
    strict = ctx.config.strict_conditions if strict is None else strict

    with _resource_guard("filtering", "Use pagination or reduce the data size."):
        with log_timing(logger, "filter", rows=len(records), conditions=len(conds), operator=operator):
            filtered = filters.filter_records(records, conds, operator, strict=strict)
        ctx.checkpoint("filter", rows_in=len(records), rows_out=len(filtered))
        pg = _maybe_page(filtered, page, page_size)

    log_event(logger, "filter.result", total_rows=len(filtered), original_rows=len(records))
    return FilterResponse(filtered, total_rows=len(filtered), original_rows=len(records), page=pg)


def reference_join(
    reference: Records,
    primary: Records,
    key_pairs: Sequence[Any],
    filter_conditions: Optional[Sequence[Any]] = None,
    operator: Optional[str] = AND,
    join_type: str = INNER,
    *,
    page: Optional[int] = None,
    page_size: Optional[int] = None,
    strict: Optional[bool] = None,
    context: Optional[OperationContext] = None,
) -> ReferenceJoinResponse:
    """Filter the reference set, then join the primary set against it.

    Both sets must be non-empty before filtering; a filter that leaves no
    reference rows yields no matches rather than an error.
    """
    ctx = context or OperationContext()
    ref = _as_record_set(reference, "referenceData")
    prim = _as_record_set(primary, "primaryData")
    if not isinstance(key_pairs, (list, tuple)):
        raise ValidationError(
            "E_JOIN_KEYS",
            "keyColumns must be a list of key column pairs.",
            hint="Example: [{'referenceColumn': 'id', 'primaryColumn': 'id'}]",
        )
    pairs = [KeyColumnPair.from_ir(kp) for kp in key_pairs]
    conds = _conditions(filter_conditions, "filterConditions")
    strict = ctx.config.strict_conditions if strict is None else strict

    prim_idx, ref_idx = joins.validate_join(prim, ref, pairs, join_type)
    log_event(
        logger,
        "reference_join.request",
        reference_rows=len(ref),
        primary_rows=len(prim),
        keys=len(pairs),
        join_type=join_type,
    )

    with _resource_guard("reference join", "Use pagination, filter the reference data first, or reduce data size."):
        with log_timing(logger, "reference_join"):
            filtered_ref = filters.filter_records(ref, conds, operator, strict=strict)
            ctx.checkpoint("filter_reference", rows_in=len(ref), rows_out=len(filtered_ref))
            result = joins.merge(prim, filtered_ref, prim_idx, ref_idx, join_type)
            ctx.checkpoint("join", rows_out=len(result.records), matched_rows=result.matched_rows)
        pg = _maybe_page(result.records, page, page_size)

    log_event(logger, "reference_join.result", total_rows=len(result.records), join_type=join_type)
    return ReferenceJoinResponse(
        result.records,
        total_rows=len(result.records),
        original_primary_rows=len(prim),
        filtered_ref_rows=len(filtered_ref),
        matched_rows=result.matched_rows,
        page=pg,
    )


def sort_and_page(
    data: Records,
    column: Optional[str] = None,
    direction: str = sorting.ASC,
    page: int = 1,
    page_size: Optional[int] = None,
    *,
    context: Optional[OperationContext] = None,
) -> PageResponse:
    ctx = context or OperationContext()
    records = _as_record_set(data, "data")
    size = ctx.config.default_page_size if page_size is None else page_size
    with _resource_guard("sorting", "Filter the data first or reduce its size."):
        with log_timing(logger, "sort_and_page", rows=len(records), column=column, direction=direction):
            ordered = sorting.sort_records(records, column, direction)
            pg = paging.page_records(ordered, page, size)
    ctx.checkpoint("sort_and_page", column=column, direction=direction, page=page, page_size=size)
    log_event(logger, "sort_and_page.result", total_rows=pg.total_rows, page=page, total_pages=pg.total_pages)
    return PageResponse(pg)
