"""Registry data models: wishlist items, catalog entries, and their JSON shapes.

The dict encodings produced here are the on-disk format of ``wishlist.json``
and ``catalog.json``. Every record always carries its full field set, with
unset values written as ``null``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Category(str, Enum):
    """What kind of capability a wishlist item asks for."""

    api = "api"
    sdk = "sdk"
    model = "model"
    service = "service"
    infra = "infra"


class WishlistStatus(str, Enum):
    """Wishlist item lifecycle status."""

    pending = "pending"
    building = "building"
    done = "done"
    wontfix = "wontfix"


class CapabilityType(str, Enum):
    """Catalog capability type."""

    model = "model"
    service = "service"


TERMINAL_STATUSES = {WishlistStatus.done, WishlistStatus.wontfix}

USAGE_FIELDS = ("import", "init", "example", "returns")


# --- Wishlist ---


@dataclass
class WishlistDraft:
    """What a requester submits to create a wishlist item."""

    id: str
    name: str = ""
    description: str = ""
    reason: str = ""
    category: str = ""
    requested_by: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WishlistDraft:
        return cls(
            id=str(data.get("id") or ""),
            name=data.get("name") or "",
            description=data.get("description") or "",
            reason=data.get("reason") or "",
            category=str(data.get("category") or ""),
            requested_by=data.get("requested_by") or "",
        )


@dataclass
class WishlistItem:
    """A tracked request for a capability that is not available yet."""

    id: str
    name: str = ""
    description: str = ""
    reason: str = ""
    category: Category = Category.api
    requested_by: str = ""
    votes: int = 1
    status: WishlistStatus = WishlistStatus.pending
    assigned: Optional[str] = None
    completed_at: Optional[str] = None
    reason_declined: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.category, str):
            self.category = Category(self.category)
        if isinstance(self.status, str):
            self.status = WishlistStatus(self.status)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self) -> dict[str, Any]:
        return item_to_dict(self)


def item_to_dict(item: WishlistItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "description": item.description,
        "reason": item.reason,
        "category": item.category.value,
        "requested_by": item.requested_by,
        "votes": item.votes,
        "status": item.status.value,
        "assigned": item.assigned,
        "completed_at": item.completed_at,
        "reason_declined": item.reason_declined,
    }


def dict_to_item(data: dict[str, Any]) -> WishlistItem:
    return WishlistItem(
        id=data["id"],
        name=data.get("name") or "",
        description=data.get("description") or "",
        reason=data.get("reason") or "",
        category=data.get("category", Category.api.value),
        requested_by=data.get("requested_by") or "",
        votes=data.get("votes", 1),
        status=data.get("status", WishlistStatus.pending.value),
        assigned=data.get("assigned"),
        completed_at=data.get("completed_at"),
        reason_declined=data.get("reason_declined"),
    )


# --- Catalog ---


@dataclass
class Usage:
    """How to consume a capability: the snippet a skill agent copies."""

    import_line: str = ""
    init: str = ""
    example: str = ""
    returns: str = ""

    @property
    def is_complete(self) -> bool:
        return all(v.strip() for v in (self.import_line, self.init, self.example, self.returns))

    @property
    def missing_fields(self) -> list[str]:
        values = dict(zip(USAGE_FIELDS, (self.import_line, self.init, self.example, self.returns)))
        return [name for name, value in values.items() if not value.strip()]


@dataclass
class CatalogEntry:
    """A published capability (model or service) and how to use it."""

    type: CapabilityType = CapabilityType.service
    description: str = ""
    host: str = ""
    endpoints: list[str] = field(default_factory=list)
    client_sdk: str = ""
    service_repo: str = ""
    api_docs: str = ""
    version: str = ""
    added_by: str = ""
    added_at: str = ""  # ISO date
    usage: Optional[Usage] = None

    def __post_init__(self) -> None:
        if isinstance(self.type, str):
            self.type = CapabilityType(self.type)

    def to_dict(self) -> dict[str, Any]:
        return entry_to_dict(self)


def usage_to_dict(usage: Usage) -> dict[str, str]:
    return {
        "import": usage.import_line,
        "init": usage.init,
        "example": usage.example,
        "returns": usage.returns,
    }


def dict_to_usage(data: Optional[dict[str, Any]]) -> Optional[Usage]:
    if not data:
        return None
    return Usage(
        import_line=data.get("import") or "",
        init=data.get("init") or "",
        example=data.get("example") or "",
        returns=data.get("returns") or "",
    )


def entry_to_dict(entry: CatalogEntry) -> dict[str, Any]:
    return {
        "type": entry.type.value,
        "description": entry.description,
        "host": entry.host,
        "endpoints": list(entry.endpoints),
        "client_sdk": entry.client_sdk,
        "service_repo": entry.service_repo,
        "api_docs": entry.api_docs,
        "version": entry.version,
        "added_by": entry.added_by,
        "added_at": entry.added_at,
        "usage": usage_to_dict(entry.usage) if entry.usage else None,
    }


def dict_to_entry(data: dict[str, Any]) -> CatalogEntry:
    return CatalogEntry(
        type=data.get("type", CapabilityType.service.value),
        description=data.get("description") or "",
        host=data.get("host") or "",
        endpoints=list(data.get("endpoints") or []),
        client_sdk=data.get("client_sdk") or "",
        service_repo=data.get("service_repo") or "",
        api_docs=data.get("api_docs") or "",
        version=data.get("version") or "",
        added_by=data.get("added_by") or "",
        added_at=data.get("added_at") or "",
        usage=dict_to_usage(data.get("usage")),
    )
