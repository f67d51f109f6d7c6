"""Mapping of registry error kinds onto HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException

from capreg.registry.errors import ErrorKind, OperationResult

STATUS_FOR_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.DUPLICATE_ID: 409,
    ErrorKind.DUPLICATE_CAPABILITY: 409,
    ErrorKind.INVALID_TRANSITION: 409,
}


def unwrap_or_raise(result: OperationResult):
    """Return the result's value, or raise an HTTPException carrying the error kind."""
    if result.ok:
        return result.value
    status = STATUS_FOR_KIND.get(result.error.kind, 422)
    raise HTTPException(status_code=status, detail=result.error.to_dict())
