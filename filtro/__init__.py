from filtro.errors import FiltroUserError, ResourceExhaustion, ValidationError
from filtro.models.conditions import FilterCondition, KeyColumnPair, conditions_for_type
from filtro.models.operations import (
    OperationContext,
    apply_filters,
    infer_types,
    reference_join,
    sort_and_page,
)
from filtro.models.records import RecordSet
from filtro.models.requests import FilterRequest, ReferenceFilterRequest, load_request

__all__ = [
    "FilterCondition",
    "FilterRequest",
    "FiltroUserError",
    "KeyColumnPair",
    "OperationContext",
    "RecordSet",
    "ReferenceFilterRequest",
    "ResourceExhaustion",
    "ValidationError",
    "apply_filters",
    "conditions_for_type",
    "infer_types",
    "load_request",
    "reference_join",
    "sort_and_page",
]
