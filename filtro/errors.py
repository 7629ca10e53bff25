from __future__ import annotations

from typing import Optional


class FiltroUserError(Exception):
    """An instructional error intended for the caller of an operation.

    It carries a short error code and an optional hint to guide the user.
    Engines raise it; presenting it is the caller's job.
    """

    def __init__(self, code: str, message: str, *, hint: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.hint = hint

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.hint:
            return base + f"\nHint: {self.hint}"
        return base


class ValidationError(FiltroUserError):
    """Malformed or missing input (absent key column, empty dataset, bad payload shape)."""


class ResourceExhaustion(FiltroUserError):
    """An operation ran out of memory and was aborted."""
