"""
Lookup result for collaborator reads.

Each external read in a derivation returns a Lookup: either a value or
"unavailable" with a reason. The orchestrator branches on it explicitly
instead of relying on exceptions to fall back to defaults.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

from carebook.attendance.errors import LookupUnavailable

T = TypeVar("T")


@dataclass(frozen=True)
class Lookup(Generic[T]):
    """Value-or-unavailable result of a collaborator read."""

    value: T | None = None
    available: bool = False
    reason: str | None = None

    @classmethod
    def ok(cls, value: T) -> "Lookup[T]":
        return cls(value=value, available=True)

    @classmethod
    def unavailable(cls, reason: str) -> "Lookup[T]":
        return cls(value=None, available=False, reason=reason)

    def unwrap(self) -> T:
        if not self.available:
            raise LookupUnavailable(self.reason or "lookup unavailable")
        return self.value

    def value_or(self, default: T) -> T:
        return self.value if self.available else default
