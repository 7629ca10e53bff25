from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, TypeVar

from filtro.errors import ValidationError

SAMPLE_MAX_ROWS_ENV = "FILTRO_SAMPLE_MAX_ROWS"
SAMPLE_FRACTION_ENV = "FILTRO_SAMPLE_FRACTION"
SAMPLE_MIN_ROWS_ENV = "FILTRO_SAMPLE_MIN_ROWS"
PAGE_SIZE_ENV = "FILTRO_PAGE_SIZE"
MAX_CELL_CHARS_ENV = "FILTRO_MAX_CELL_CHARS"
PDF_MAX_ROWS_ENV = "FILTRO_PDF_MAX_ROWS"
STRICT_CONDITIONS_ENV = "FILTRO_STRICT_CONDITIONS"

T = TypeVar("T")


@dataclass(frozen=True)
class EngineConfig:
    sample_max_rows: int = 100
    sample_fraction: float = 0.1
    sample_min_rows: int = 10
    default_page_size: int = 50
    # Excel cell limit
    max_cell_chars: int = 32_767
    pdf_max_rows: int = 1_000
    strict_conditions: bool = False


def _parse_bool(raw: str) -> bool:
    low = raw.strip().lower()
    if low in {"1", "true", "yes", "on"}:
        return True
    if low in {"0", "false", "no", "off", ""}:
        return False
    raise ValueError(raw)


def _env(name: str, default: T, parse: Callable[[str], T]) -> T:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = parse(raw)
    except ValueError:
        raise ValidationError(
            "E_CONFIG",
            f"Invalid value for {name}: {raw!r}.",
            hint=f"Unset {name} or provide a value like {default!r}.",
        ) from None
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value <= 0:
        raise ValidationError(
            "E_CONFIG",
            f"{name} must be positive, got {raw!r}.",
            hint=f"Default is {default!r}.",
        )
    return value


def get_engine_config() -> EngineConfig:
    """Build an EngineConfig from FILTRO_* environment overrides."""
    d = EngineConfig()
    return EngineConfig(
        sample_max_rows=_env(SAMPLE_MAX_ROWS_ENV, d.sample_max_rows, int),
        sample_fraction=_env(SAMPLE_FRACTION_ENV, d.sample_fraction, float),
        sample_min_rows=_env(SAMPLE_MIN_ROWS_ENV, d.sample_min_rows, int),
        default_page_size=_env(PAGE_SIZE_ENV, d.default_page_size, int),
        max_cell_chars=_env(MAX_CELL_CHARS_ENV, d.max_cell_chars, int),
        pdf_max_rows=_env(PDF_MAX_ROWS_ENV, d.pdf_max_rows, int),
        strict_conditions=_env(STRICT_CONDITIONS_ENV, d.strict_conditions, _parse_bool),
    )
