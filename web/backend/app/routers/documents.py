"""Documents router -- validation and JSON Schemas for wishlist.json / catalog.json."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from capreg.registry.registry import Registry
from capreg.registry.schema import get_schemas

from web.backend.app.dependencies import get_registry
from web.backend.app.models.api import ValidateResponse

router = APIRouter(tags=["documents"])


@router.get("/api/validate", response_model=ValidateResponse, summary="Validate the stored documents")
def validate_documents(registry: Registry = Depends(get_registry)):
    """Check the persisted documents for schema and lifecycle-invariant violations."""
    issues = registry.validate_documents()
    return ValidateResponse(valid=not issues, issues=issues)


@router.get("/api/schema/{document}", summary="JSON Schema for a document")
async def get_schema(document: str):
    schemas = get_schemas()
    key = f"{document}.json"
    if key not in schemas:
        raise HTTPException(status_code=404, detail=f"No schema for '{document}'")
    return schemas[key]
