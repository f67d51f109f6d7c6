"""Registry error taxonomy and the typed result returned by every operation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Machine-readable reason an operation was rejected."""

    DUPLICATE_ID = "DuplicateId"
    DUPLICATE_CAPABILITY = "DuplicateCapability"
    NOT_FOUND = "NotFound"
    INVALID_CATEGORY = "InvalidCategory"
    INVALID_TRANSITION = "InvalidTransition"
    MISSING_USAGE_BLOCK = "MissingUsageBlock"
    MISSING_FIELD = "MissingField"
    INVALID_RECORD = "InvalidRecord"


class RegistryError(Exception):
    """A validation failure raised inside the registry.

    Never escapes a public Registry operation; it is caught at the boundary
    and returned inside an ``OperationResult``.
    """

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind.value, "message": self.message}


class StoreError(Exception):
    """The underlying document store could not be read or written."""


@dataclass
class OperationResult(Generic[T]):
    """Outcome of a registry operation: either a value or a typed error."""

    value: Optional[T] = None
    error: Optional[RegistryError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error else None

    def unwrap(self) -> T:
        """Return the value, re-raising the error for exception-style callers."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return {"ok": False, "error": self.error.to_dict()}
        value = self.value
        if hasattr(value, "to_dict"):
            value = value.to_dict()
        return {"ok": True, "value": value}
