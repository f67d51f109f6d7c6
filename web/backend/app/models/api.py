"""Pydantic models for API request/response serialization.

These models mirror the capreg dataclasses and provide JSON validation and
serialization for the FastAPI endpoints.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from capreg.conformance.models import ClientDescriptor, ConformanceReport
from capreg.registry.models import CatalogEntry, WishlistItem


# ---------------------------------------------------------------------------
# Wishlist models
# ---------------------------------------------------------------------------


class WishlistDraftRequest(BaseModel):
    """Body for creating or requesting a wishlist item."""

    id: str
    name: str = ""
    description: str = ""
    reason: str = ""
    category: str
    requested_by: str = ""


class TransitionRequest(BaseModel):
    """Body for a status transition."""

    status: str
    actor: str = ""  # Falls back to the X-Agent-Id header
    assigned: Optional[str] = None
    completed_at: Optional[str] = None
    reason_declined: Optional[str] = None

    def extra(self) -> dict[str, str]:
        fields = {
            "assigned": self.assigned,
            "completed_at": self.completed_at,
            "reason_declined": self.reason_declined,
        }
        return {k: v for k, v in fields.items() if v is not None}


class WishlistItemResponse(BaseModel):
    """Mirrors capreg.registry.models.WishlistItem."""

    id: str
    name: str = ""
    description: str = ""
    reason: str = ""
    category: str
    requested_by: str = ""
    votes: int = 1
    status: str = "pending"
    assigned: Optional[str] = None
    completed_at: Optional[str] = None
    reason_declined: Optional[str] = None

    @classmethod
    def from_item(cls, item: WishlistItem) -> WishlistItemResponse:
        return cls(**item.to_dict())


# ---------------------------------------------------------------------------
# Catalog models
# ---------------------------------------------------------------------------


class UsageModel(BaseModel):
    """The usage block; ``import`` is a Python keyword, hence the alias."""

    model_config = {"populate_by_name": True}

    import_: str = Field("", alias="import")
    init: str = ""
    example: str = ""
    returns: str = ""


class CatalogEntryModel(BaseModel):
    """Mirrors capreg.registry.models.CatalogEntry (request and response)."""

    type: str = "service"
    description: str = ""
    host: str = ""
    endpoints: list[str] = Field(default_factory=list)
    client_sdk: str = ""
    service_repo: str = ""
    api_docs: str = ""
    version: str = ""
    added_by: str = ""
    added_at: str = ""
    usage: Optional[UsageModel] = None

    def to_record(self) -> dict[str, Any]:
        """The registry's dict shape, with the usage block under its JSON keys."""
        data = self.model_dump(exclude={"usage"})
        data["usage"] = self.usage.model_dump(by_alias=True) if self.usage else None
        return data

    @classmethod
    def from_entry(cls, entry: CatalogEntry) -> CatalogEntryModel:
        return cls.model_validate(entry.to_dict())


class CapabilityResponse(BaseModel):
    name: str
    entry: CatalogEntryModel


class CatalogResponse(BaseModel):
    updated: Optional[str] = None
    capabilities: dict[str, CatalogEntryModel] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Conformance models
# ---------------------------------------------------------------------------


class ParameterModel(BaseModel):
    name: str
    default: Optional[str] = None
    required: Optional[bool] = None  # Inferred from ``default`` when omitted


class MethodModel(BaseModel):
    name: str
    parameters: list[ParameterModel] = Field(default_factory=list)
    docstring: str = ""


class DescriptorRequest(BaseModel):
    """Mirrors capreg.conformance.models.ClientDescriptor."""

    class_name: str = ""
    imports: list[str] = Field(default_factory=list)
    constructor: list[ParameterModel] = Field(default_factory=list)
    methods: list[MethodModel] = Field(default_factory=list)
    module_docstring: str = ""
    declared_types: list[str] = Field(default_factory=list)

    def to_descriptor(self) -> ClientDescriptor:
        return ClientDescriptor.from_dict(self.model_dump(exclude_none=True))


class SourceCheckRequest(BaseModel):
    """Raw client module source to inspect and check."""

    source: str
    filename: str = "<client>"


class CheckResultResponse(BaseModel):
    check: str
    passed: bool
    detail: str = ""


class ConformanceResponse(BaseModel):
    """Mirrors capreg.conformance.models.ConformanceReport."""

    passed: bool
    summary: str
    results: list[CheckResultResponse] = Field(default_factory=list)
    descriptor: Optional[dict[str, Any]] = None

    @classmethod
    def from_report(
        cls, report: ConformanceReport, descriptor: Optional[ClientDescriptor] = None
    ) -> ConformanceResponse:
        return cls(
            passed=report.passed,
            summary=report.summary(),
            results=[CheckResultResponse(**r) for r in report.to_dict()["results"]],
            descriptor=descriptor.to_dict() if descriptor else None,
        )


# ---------------------------------------------------------------------------
# Document validation
# ---------------------------------------------------------------------------


class ValidateResponse(BaseModel):
    valid: bool
    issues: list[str] = Field(default_factory=list)
