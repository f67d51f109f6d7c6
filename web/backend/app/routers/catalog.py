"""Catalog router -- publish, update, browse and remove capabilities."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from capreg.registry.registry import Registry

from web.backend.app.dependencies import get_agent, get_registry
from web.backend.app.errors import unwrap_or_raise
from web.backend.app.models.api import CapabilityResponse, CatalogEntryModel, CatalogResponse

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


def _capability(name: str, entry) -> CapabilityResponse:
    return CapabilityResponse(name=name, entry=CatalogEntryModel.from_entry(entry))


@router.get("", response_model=CatalogResponse, summary="The whole catalog")
def get_catalog(registry: Registry = Depends(get_registry)):
    """Return catalog.json as published: update time and capabilities by name."""
    return CatalogResponse(
        updated=registry.catalog_updated(),
        capabilities={n: CatalogEntryModel.from_entry(e) for n, e in registry.list_catalog().items()},
    )


@router.get("/{name}", response_model=CapabilityResponse, summary="Get a capability")
def get_capability(name: str, registry: Registry = Depends(get_registry)):
    return _capability(name, unwrap_or_raise(registry.get_catalog_entry(name)))


@router.post("/{name}", response_model=CapabilityResponse, status_code=201, summary="Publish a capability")
def publish_capability(
    name: str,
    body: CatalogEntryModel,
    registry: Registry = Depends(get_registry),
    agent: str = Depends(get_agent),
):
    """Publish a new capability. 422 without a complete usage block, 409 if it exists."""
    record = body.to_record()
    record["added_by"] = record["added_by"] or agent
    entry = unwrap_or_raise(registry.publish_catalog_entry(name, record, actor=agent))
    return _capability(name, entry)


@router.put("/{name}", response_model=CapabilityResponse, summary="Replace a capability")
def update_capability(
    name: str,
    body: CatalogEntryModel,
    registry: Registry = Depends(get_registry),
    agent: str = Depends(get_agent),
):
    """Replace the full record of an existing capability and bump its version."""
    entry = unwrap_or_raise(registry.update_catalog_entry(name, body.to_record(), actor=agent))
    return _capability(name, entry)


@router.delete("/{name}", response_model=CapabilityResponse, summary="Remove a capability")
def remove_capability(
    name: str,
    registry: Registry = Depends(get_registry),
    agent: str = Depends(get_agent),
):
    return _capability(name, unwrap_or_raise(registry.remove_catalog_entry(name, actor=agent)))
