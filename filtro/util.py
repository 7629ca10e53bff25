from __future__ import annotations

import difflib
import math
import re
from datetime import date, datetime, time, timezone
from typing import Any, Optional, Sequence

from dateutil import parser as dateparser

# Spreadsheet-style leading number: "150", "-1.5e3", "150 USD" (-> 150).
_re_leading_number = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_re_full_number = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

# Fields missing from a textual date ("2024-05") are filled from this default.
_DATE_DEFAULT = datetime(1970, 1, 1)


def _is_native_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _is_native_date(v: Any) -> bool:
    return isinstance(v, (date, datetime))


def _to_text(v: Any) -> str:
    """String form of a cell, the way it reads in a spreadsheet."""
    if v is None:
        return ""
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, float) and math.isfinite(v) and v.is_integer():
        return str(int(v))
    if isinstance(v, (date, datetime)):
        return v.isoformat()
    return str(v)


def _is_empty(v: Any) -> bool:
    return v is None or _to_text(v).strip() == ""


def _parse_number(v: Any) -> Optional[float]:
    """Lenient numeric parse of a cell or operand.

    Reads the leading number of a string ("150 USD" -> 150.0).
    Returns None for anything that does not yield a finite real.
    """
    if v is None or isinstance(v, bool) or _is_native_date(v):
        return None
    if _is_native_number(v):
        f = float(v)
        return f if math.isfinite(f) else None
    m = _re_leading_number.match(str(v))
    if not m:
        return None
    f = float(m.group(1))
    return f if math.isfinite(f) else None


def _parse_full_number(s: str) -> Optional[float]:
    """Strict numeric parse: the whole (trimmed) string must be a finite real."""
    s = s.strip()
    if not _re_full_number.fullmatch(s):
        return None
    f = float(s)
    return f if math.isfinite(f) else None


def _parse_date(v: Any) -> Optional[datetime]:
    """General date parse of a cell or operand; None when it is not a date."""
    if v is None or isinstance(v, bool) or _is_native_number(v):
        return None
    if isinstance(v, datetime):
        dt = v
    elif isinstance(v, date):
        return datetime.combine(v, time())
    else:
        s = str(v).strip()
        if not s:
            return None
        try:
            dt = dateparser.parse(s, default=_DATE_DEFAULT)
        except (ValueError, OverflowError):
            return None
    if dt.tzinfo is not None:
        # out-of-range offsets and years fail here, not in the parser
        try:
            dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
        except (ValueError, OverflowError):
            return None
    return dt


def _suggest(name: str, candidates: Sequence[str], *, label: str = "columns") -> str:
    matches = difflib.get_close_matches(name, list(candidates), n=3, cutoff=0.6)
    if matches:
        return f"Did you mean {matches[0]!r}?"
    return f"Available {label}: " + ", ".join(candidates)
