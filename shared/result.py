"""
Result type returned by every credential operation.

Components never raise across their public boundary. Each operation hands
back a ``Result`` holding either the produced value or the ``EpicAuthError``
that stopped it, and callers branch on ``ok`` before moving to the next step.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from shared.errors import EpicAuthError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Success value or tagged error."""

    value: Optional[T] = None
    error: Optional[EpicAuthError] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: EpicAuthError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, raising the carried error on failure."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
