from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Set, Tuple

from filtro.errors import ValidationError
from filtro.models.conditions import INNER, JOIN_TYPES, LEFT, KeyColumnPair
from filtro.models.records import RecordSet
from filtro.util import _suggest, _to_text

REF_PREFIX = "ref_"

# Column-name fragments that usually mark a linking column.
KEY_NAME_HINTS = ("id", "code", "key", "name", "number", "no", "ref", "reference")

CompositeKey = Tuple[str, ...]


@dataclass(frozen=True)
class JoinResult:
    records: RecordSet
    # distinct composite keys that matched at least one primary row
    matched_rows: int

    @property
    def header(self) -> Tuple[str, ...]:
        return self.records.header


def _key_part(v: Any) -> str:
    return _to_text(v).lower().strip()


def _key_indices(record_set: RecordSet, columns: Sequence[str], side: str) -> List[int]:
    out: List[int] = []
    for col in columns:
        idx = record_set.index_of(col)
        if idx is None:
            raise ValidationError(
                "E_JOIN_UNKNOWN_COL",
                f"{side.capitalize()} column {col!r} not found.",
                hint=f"Key columns must exist in the {side} data. " + _suggest(col, record_set.header),
            )
        out.append(idx)
    return out


def _validate(primary: RecordSet, reference: RecordSet, key_pairs: Sequence[KeyColumnPair], join_type: str) -> None:
    if join_type not in JOIN_TYPES:
        raise ValidationError(
            "E_JOIN_TYPE",
            f"Unsupported join type {join_type!r}.",
            hint="Use 'inner' (matched rows only) or 'left' (keep unmatched primary rows).",
        )
    if len(reference) == 0:
        raise ValidationError(
            "E_JOIN_EMPTY_REFERENCE",
            "Reference data must be provided as a non-empty sequence of rows.",
            hint="Upload a reference file with at least one data row.",
        )
    if len(primary) == 0:
        raise ValidationError(
            "E_JOIN_EMPTY_PRIMARY",
            "Primary data must be provided as a non-empty sequence of rows.",
            hint="Upload a primary file with at least one data row.",
        )
    if not key_pairs:
        raise ValidationError(
            "E_JOIN_KEYS",
            "At least one key column pair must be specified.",
            hint="Example: [{'referenceColumn': 'id', 'primaryColumn': 'id'}]",
        )


def build_index(reference: RecordSet, key_indices: Sequence[int]) -> Dict[CompositeKey, List[Tuple[Any, ...]]]:
    """Bucket reference rows by composite key, keeping reference order inside a bucket."""
    index: Dict[CompositeKey, List[Tuple[Any, ...]]] = {}
    for row in reference.rows:
        key = tuple(_key_part(row[i]) for i in key_indices)
        index.setdefault(key, []).append(row)
    return index


def validate_join(
    primary: RecordSet,
    reference: RecordSet,
    key_pairs: Sequence[Any],
    join_type: str = INNER,
) -> Tuple[List[int], List[int]]:
    """Check a join request; return (primary key positions, reference key positions)."""
    key_pairs = [KeyColumnPair.from_ir(kp) for kp in key_pairs or []]
    _validate(primary, reference, key_pairs, join_type)
    ref_idx = _key_indices(reference, [kp.reference_column for kp in key_pairs], "reference")
    prim_idx = _key_indices(primary, [kp.primary_column for kp in key_pairs], "primary")
    return prim_idx, ref_idx


def reference_join(
    primary: RecordSet,
    reference: RecordSet,
    key_pairs: Sequence[KeyColumnPair],
    join_type: str = INNER,
) -> JoinResult:
    """Merge each primary row with every reference row sharing its composite key.

    Keys compare case-insensitively after trimming. The output keeps primary
    order; reference columns follow the primary ones under a `ref_` prefix.
    A left join keeps unmatched primary rows with every `ref_` cell None.
    """
    prim_idx, ref_idx = validate_join(primary, reference, key_pairs, join_type)
    return merge(primary, reference, prim_idx, ref_idx, join_type)


def merge(
    primary: RecordSet,
    reference: RecordSet,
    prim_idx: Sequence[int],
    ref_idx: Sequence[int],
    join_type: str = INNER,
) -> JoinResult:
    """Hash-join already validated inputs; the reference side may be empty."""
    index = build_index(reference, ref_idx)
    header = primary.header + tuple(REF_PREFIX + h for h in reference.header)
    padding = (None,) * len(reference.header)

    rows: List[Tuple[Any, ...]] = []
    matched: Set[CompositeKey] = set()
    for prow in primary.rows:
        key = tuple(_key_part(prow[i]) for i in prim_idx)
        bucket = index.get(key)
        if bucket:
            rows.extend(prow + rrow for rrow in bucket)
            matched.add(key)
        elif join_type == LEFT:
            rows.append(prow + padding)

    return JoinResult(RecordSet(header, rows), matched_rows=len(matched))


def suggest_key_pairs(reference_header: Sequence[str], primary_header: Sequence[str]) -> List[KeyColumnPair]:
    """Propose a linking column shared by both headers, judged by its name."""
    common = [h for h in reference_header if h in primary_header]
    for h in common:
        low = h.lower()
        if any(hint in low for hint in KEY_NAME_HINTS):
            return [KeyColumnPair(h, h)]
    return []
