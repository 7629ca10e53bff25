from __future__ import annotations

import math
import re
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

import petl as etl

from filtro.config import EngineConfig
from filtro.models.conditions import DATE, NUMBER, TEXT
from filtro.models.records import RecordSet
from filtro.util import _is_empty, _is_native_date, _is_native_number, _parse_full_number

ColumnTypeMap = Mapping[str, str]

# Textual calendar dates recognised during inference, with the format that validates them.
_DATE_PATTERNS = (
    (re.compile(r"\d{4}-\d{2}-\d{2}"), "%Y-%m-%d"),
    (re.compile(r"\d{2}/\d{2}/\d{4}"), "%m/%d/%Y"),
    (re.compile(r"\d{2}-\d{2}-\d{4}"), "%m-%d-%Y"),
    (re.compile(r"\d{4}/\d{2}/\d{2}"), "%Y/%m/%d"),
)


def _looks_date(s: str) -> bool:
    for pattern, fmt in _DATE_PATTERNS:
        if pattern.fullmatch(s):
            try:
                datetime.strptime(s, fmt)
            except ValueError:
                return False
            return True
    return False


def classify_value(value: Any) -> str:
    """Classify one non-empty cell as number, date or text.

    Native dates win over native numbers; strings are tried as calendar
    dates before numbers. Booleans are text.
    """
    if _is_native_date(value):
        return DATE
    if _is_native_number(value):
        return NUMBER
    s = str(value).strip()
    if _looks_date(s):
        return DATE
    if _parse_full_number(s) is not None:
        return NUMBER
    return TEXT


def sample_size(total_rows: int, config: Optional[EngineConfig] = None) -> int:
    cfg = config or EngineConfig()
    by_fraction = math.floor(total_rows * cfg.sample_fraction)
    return min(cfg.sample_max_rows, max(by_fraction, cfg.sample_min_rows))


def _plurality(counts: Dict[str, int]) -> str:
    if not any(counts.values()):
        return TEXT
    # ties resolve toward number, then date, then text
    if counts[NUMBER] >= counts[DATE] and counts[NUMBER] >= counts[TEXT]:
        return NUMBER
    if counts[DATE] >= counts[TEXT]:
        return DATE
    return TEXT


def infer_types(record_set: RecordSet, config: Optional[EngineConfig] = None) -> ColumnTypeMap:
    """Infer one column type per header column from a bounded head sample."""
    n = sample_size(len(record_set), config)
    sample = etl.head(record_set.table(), n)

    out: Dict[str, str] = {}
    for idx, name in enumerate(record_set.header):
        if name in out:
            continue
        counts = {NUMBER: 0, DATE: 0, TEXT: 0}
        for v in etl.values(sample, idx):
            if _is_empty(v):
                continue
            counts[classify_value(v)] += 1
        out[name] = _plurality(counts)
    return MappingProxyType(out)
