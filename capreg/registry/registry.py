"""The registry: atomic operations over the wishlist and the catalog.

Each mutating operation is a read-modify-write of one collection, done under
that collection's thread lock and the store's process lock with a fresh
read of the store. Two concurrent calls on the same record serialize, even
from different processes, and the second one is validated against the first
one's result.

Validation failures never escape a public method: they come back inside an
``OperationResult`` carrying an ``ErrorKind``.
"""

from __future__ import annotations

import logging
import re
import threading
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Any, Callable, Iterator, Optional, TypeVar

from capreg.audit import AuditLogger
from capreg.config import Settings
from capreg.registry.errors import ErrorKind, OperationResult, RegistryError, StoreError
from capreg.registry.models import (
    USAGE_FIELDS,
    CatalogEntry,
    Category,
    CapabilityType,
    WishlistDraft,
    WishlistItem,
    WishlistStatus,
    dict_to_entry,
    dict_to_item,
    entry_to_dict,
    item_to_dict,
)
from capreg.registry.schema import ENDPOINT_PATTERN, SEMVER_PATTERN, SLUG_PATTERN
from capreg.registry.store import DocumentStore, JsonFileStore
from capreg.registry.validator import validate_catalog, validate_wishlist

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Legal status moves and the ``extra`` field each one requires.
TRANSITIONS: dict[tuple[WishlistStatus, WishlistStatus], Optional[str]] = {
    (WishlistStatus.pending, WishlistStatus.building): "assigned",
    (WishlistStatus.building, WishlistStatus.done): "completed_at",
    (WishlistStatus.building, WishlistStatus.pending): None,
    (WishlistStatus.pending, WishlistStatus.wontfix): "reason_declined",
    (WishlistStatus.building, WishlistStatus.wontfix): "reason_declined",
}


class Registry:
    """Wishlist and catalog registry backed by a document store."""

    def __init__(self, store: DocumentStore, audit: Optional[AuditLogger] = None):
        self.store = store
        self.audit = audit
        self._wishlist_lock = threading.RLock()
        self._catalog_lock = threading.RLock()

    @classmethod
    def from_settings(cls, settings: Settings, audit: bool = True) -> Registry:
        store = JsonFileStore(settings.wishlist_path, settings.catalog_path)
        return cls(store, AuditLogger(settings.audit_dir) if audit else None)

    # ------------------------------------------------------------------
    # Boundary helpers
    # ------------------------------------------------------------------

    def _run(
        self,
        action: str,
        resource_type: str,
        resource_id: str,
        actor: str,
        fn: Callable[[], T],
        details: Optional[dict[str, Any]] = None,
    ) -> OperationResult[T]:
        """Run a mutation, turning RegistryError into a failed result and auditing both outcomes."""
        try:
            value = fn()
        except RegistryError as e:
            logger.warning("%s %s/%s rejected: [%s] %s", action, resource_type, resource_id, e.kind.value, e.message)
            self._audit(actor, action, resource_type, resource_id, {**(details or {}), **e.to_dict()}, success=False)
            return OperationResult(error=e)

        logger.info("%s %s/%s by %s", action, resource_type, resource_id, actor or "-")
        self._audit(actor, action, resource_type, resource_id, details, success=True)
        return OperationResult(value=value)

    def _audit(self, actor, action, resource_type, resource_id, details, success) -> None:
        if self.audit is not None:
            self.audit.log_event(
                actor=actor or "",
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                details=details,
                success=success,
            )

    @staticmethod
    def _lookup(fn: Callable[[], T]) -> OperationResult[T]:
        try:
            return OperationResult(value=fn())
        except RegistryError as e:
            return OperationResult(error=e)

    @contextmanager
    def _locked(self, collection: str) -> Iterator[None]:
        """Hold this registry's thread lock and the store's process lock for one collection."""
        thread_lock = self._wishlist_lock if collection == "wishlist" else self._catalog_lock
        with thread_lock, self.store.lock(collection):
            yield

    # ------------------------------------------------------------------
    # Wishlist internals
    # ------------------------------------------------------------------

    def _load_items(self) -> list[dict[str, Any]]:
        return self.store.load_wishlist()

    @staticmethod
    def _index_of(items: list[dict[str, Any]], item_id: str) -> int:
        for i, data in enumerate(items):
            if data.get("id") == item_id:
                return i
        raise RegistryError(ErrorKind.NOT_FOUND, f"Wishlist item '{item_id}' not found")

    @staticmethod
    def _decode_item(data: dict[str, Any]) -> WishlistItem:
        try:
            return dict_to_item(data)
        except (KeyError, ValueError) as e:
            raise StoreError(f"Malformed wishlist record {data.get('id')!r}: {e}") from e

    def _create(self, draft: WishlistDraft) -> WishlistItem:
        if not draft.id.strip():
            raise RegistryError(ErrorKind.INVALID_RECORD, "Wishlist item 'id' must be non-empty")
        if not re.match(SLUG_PATTERN, draft.id):
            raise RegistryError(ErrorKind.INVALID_RECORD, f"Wishlist item id '{draft.id}' is not a slug")
        try:
            category = Category(draft.category)
        except ValueError:
            allowed = ", ".join(c.value for c in Category)
            raise RegistryError(
                ErrorKind.INVALID_CATEGORY, f"Category '{draft.category}' not in allowed values: {allowed}"
            ) from None

        with self._locked("wishlist"):
            items = self._load_items()
            if any(d.get("id") == draft.id for d in items):
                raise RegistryError(
                    ErrorKind.DUPLICATE_ID, f"Wishlist item '{draft.id}' already exists; upvote it instead"
                )
            item = WishlistItem(
                id=draft.id,
                name=draft.name,
                description=draft.description,
                reason=draft.reason,
                category=category,
                requested_by=draft.requested_by,
            )
            items.append(item_to_dict(item))
            self.store.save_wishlist(items)
        return item

    def _upvote(self, item_id: str) -> WishlistItem:
        with self._locked("wishlist"):
            items = self._load_items()
            i = self._index_of(items, item_id)
            item = self._decode_item(items[i])
            item.votes += 1
            items[i] = item_to_dict(item)
            self.store.save_wishlist(items)
        return item

    def _request(self, draft: WishlistDraft) -> WishlistItem:
        with self._locked("wishlist"):
            if any(d.get("id") == draft.id for d in self._load_items()):
                return self._upvote(draft.id)
            return self._create(draft)

    def _transition(
        self, item_id: str, new_status: str, actor: str, extra: dict[str, Any]
    ) -> WishlistItem:
        if not (actor or "").strip():
            raise RegistryError(ErrorKind.MISSING_FIELD, "Transitions require a non-empty actor")
        try:
            target = WishlistStatus(new_status)
        except ValueError:
            raise RegistryError(ErrorKind.INVALID_TRANSITION, f"Unknown status '{new_status}'") from None

        with self._locked("wishlist"):
            items = self._load_items()
            i = self._index_of(items, item_id)
            item = self._decode_item(items[i])

            move = (item.status, target)
            if move not in TRANSITIONS:
                reason = " (terminal state)" if item.is_terminal else ""
                raise RegistryError(
                    ErrorKind.INVALID_TRANSITION,
                    f"Cannot move '{item_id}' from {item.status.value} to {target.value}{reason}",
                )

            required = TRANSITIONS[move]
            value = None
            if required:
                value = extra.get(required)
                if not isinstance(value, str) or not value.strip():
                    raise RegistryError(
                        ErrorKind.MISSING_FIELD,
                        f"Moving to {target.value} requires a non-empty '{required}'",
                    )

            if target == WishlistStatus.building:
                item.assigned = value
            elif target == WishlistStatus.pending:
                item.assigned = None
            elif target == WishlistStatus.done:
                item.completed_at = _check_timestamp(value)
            elif target == WishlistStatus.wontfix:
                item.reason_declined = value
            item.status = target

            items[i] = item_to_dict(item)
            self.store.save_wishlist(items)
        return item

    def _remove_item(self, item_id: str) -> WishlistItem:
        with self._locked("wishlist"):
            items = self._load_items()
            i = self._index_of(items, item_id)
            removed = self._decode_item(items.pop(i))
            self.store.save_wishlist(items)
        return removed

    # ------------------------------------------------------------------
    # Wishlist operations
    # ------------------------------------------------------------------

    def create_wishlist_item(self, draft: WishlistDraft | dict[str, Any]) -> OperationResult[WishlistItem]:
        """Create a pending item with one vote. Fails on duplicate id or unknown category."""
        draft = _as_draft(draft)
        return self._run("create", "wishlist", draft.id, draft.requested_by, lambda: self._create(draft))

    def request_item(self, draft: WishlistDraft | dict[str, Any]) -> OperationResult[WishlistItem]:
        """Create the item, or upvote it when the same id was already requested."""
        draft = _as_draft(draft)
        return self._run("request", "wishlist", draft.id, draft.requested_by, lambda: self._request(draft))

    def upvote(self, item_id: str, actor: str = "") -> OperationResult[WishlistItem]:
        return self._run("upvote", "wishlist", item_id, actor, lambda: self._upvote(item_id))

    def transition(
        self,
        item_id: str,
        new_status: str | WishlistStatus,
        actor: str,
        extra: Optional[dict[str, Any]] = None,
    ) -> OperationResult[WishlistItem]:
        """Move an item through the status lifecycle.

        ``extra`` carries the field the move requires: ``assigned`` when
        claiming, ``completed_at`` when finishing, ``reason_declined`` when
        declining. ``done`` and ``wontfix`` are terminal.
        """
        status = new_status.value if isinstance(new_status, WishlistStatus) else str(new_status)
        return self._run(
            "transition",
            "wishlist",
            item_id,
            actor,
            lambda: self._transition(item_id, status, actor, dict(extra or {})),
            details={"to": status},
        )

    def remove_wishlist_item(self, item_id: str, actor: str = "") -> OperationResult[WishlistItem]:
        return self._run("remove", "wishlist", item_id, actor, lambda: self._remove_item(item_id))

    def get_wishlist_item(self, item_id: str) -> OperationResult[WishlistItem]:
        def fetch() -> WishlistItem:
            items = self._load_items()
            return self._decode_item(items[self._index_of(items, item_id)])

        return self._lookup(fetch)

    def list_wishlist(
        self, status: Optional[str] = None, category: Optional[str] = None
    ) -> list[WishlistItem]:
        """All items in submission order, optionally filtered."""
        items = [self._decode_item(d) for d in self._load_items()]
        if status:
            items = [i for i in items if i.status.value == status]
        if category:
            items = [i for i in items if i.category.value == category]
        return items

    def list_pending(self, sort_by_votes: bool = True) -> list[WishlistItem]:
        """Pending items, most-voted first; ties keep submission order."""
        pending = self.list_wishlist(status=WishlistStatus.pending.value)
        if sort_by_votes:
            pending.sort(key=lambda i: i.votes, reverse=True)  # list.sort is stable
        return pending

    # ------------------------------------------------------------------
    # Catalog internals
    # ------------------------------------------------------------------

    def _load_catalog(self) -> dict[str, Any]:
        return self.store.load_catalog()

    def _save_catalog(self, catalog: dict[str, Any]) -> None:
        catalog["updated"] = _now()
        self.store.save_catalog(catalog)

    @staticmethod
    def _check_name(name: str) -> None:
        if not (name or "").strip():
            raise RegistryError(ErrorKind.INVALID_RECORD, "Capability name must be non-empty")
        if not re.match(SLUG_PATTERN, name):
            raise RegistryError(ErrorKind.INVALID_RECORD, f"Capability name '{name}' is not a slug")

    def _publish(self, name: str, entry: CatalogEntry | dict[str, Any]) -> CatalogEntry:
        self._check_name(name)
        entry = _validated_entry(entry)
        if not entry.added_at:
            entry.added_at = date.today().isoformat()

        with self._locked("catalog"):
            catalog = self._load_catalog()
            if name in catalog["capabilities"]:
                raise RegistryError(
                    ErrorKind.DUPLICATE_CAPABILITY,
                    f"Capability '{name}' is already published; use update instead",
                )
            catalog["capabilities"][name] = entry_to_dict(entry)
            self._save_catalog(catalog)
        return entry

    def _update(self, name: str, entry: CatalogEntry | dict[str, Any]) -> CatalogEntry:
        self._check_name(name)
        entry = _validated_entry(entry)

        with self._locked("catalog"):
            catalog = self._load_catalog()
            stored = catalog["capabilities"].get(name)
            if stored is None:
                raise RegistryError(ErrorKind.NOT_FOUND, f"Capability '{name}' not found")
            entry.version = _next_version(stored.get("version", ""), entry.version)
            if not entry.added_at:
                entry.added_at = stored.get("added_at", "")
            if not entry.added_by:
                entry.added_by = stored.get("added_by", "")
            catalog["capabilities"][name] = entry_to_dict(entry)
            self._save_catalog(catalog)
        return entry

    def _remove_entry(self, name: str) -> CatalogEntry:
        with self._locked("catalog"):
            catalog = self._load_catalog()
            if name not in catalog["capabilities"]:
                raise RegistryError(ErrorKind.NOT_FOUND, f"Capability '{name}' not found")
            removed = dict_to_entry(catalog["capabilities"].pop(name))
            self._save_catalog(catalog)
        return removed

    # ------------------------------------------------------------------
    # Catalog operations
    # ------------------------------------------------------------------

    def publish_catalog_entry(
        self, name: str, entry: CatalogEntry | dict[str, Any], actor: str = ""
    ) -> OperationResult[CatalogEntry]:
        """Publish a new capability. Requires a complete usage block; names are unique."""
        actor = actor or _added_by(entry)
        return self._run("publish", "catalog", name, actor, lambda: self._publish(name, entry))

    def update_catalog_entry(
        self, name: str, entry: CatalogEntry | dict[str, Any], actor: str = ""
    ) -> OperationResult[CatalogEntry]:
        """Replace an existing capability's record and bump its version."""
        actor = actor or _added_by(entry)
        return self._run("update", "catalog", name, actor, lambda: self._update(name, entry))

    def remove_catalog_entry(self, name: str, actor: str = "") -> OperationResult[CatalogEntry]:
        return self._run("remove", "catalog", name, actor, lambda: self._remove_entry(name))

    def get_catalog_entry(self, name: str) -> OperationResult[CatalogEntry]:
        def fetch() -> CatalogEntry:
            data = self._load_catalog()["capabilities"].get(name)
            if data is None:
                raise RegistryError(ErrorKind.NOT_FOUND, f"Capability '{name}' not found")
            return dict_to_entry(data)

        return self._lookup(fetch)

    def list_catalog(self) -> dict[str, CatalogEntry]:
        """All published capabilities, in the order they appear in the document."""
        return {name: dict_to_entry(d) for name, d in self._load_catalog()["capabilities"].items()}

    def catalog_updated(self) -> Optional[str]:
        return self._load_catalog().get("updated")

    # ------------------------------------------------------------------
    # Document validation
    # ------------------------------------------------------------------

    def validate_documents(self) -> list[str]:
        """Lint the persisted documents (schema + lifecycle invariants)."""
        issues: list[str] = []
        try:
            issues.extend(f"wishlist: {i}" for i in validate_wishlist(self.store.load_wishlist()))
        except StoreError as e:
            issues.append(f"wishlist: {e}")
        try:
            issues.extend(f"catalog: {i}" for i in validate_catalog(self.store.load_catalog()))
        except StoreError as e:
            issues.append(f"catalog: {e}")
        return issues


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _as_draft(draft: WishlistDraft | dict[str, Any]) -> WishlistDraft:
    if isinstance(draft, WishlistDraft):
        return draft
    return WishlistDraft.from_dict(draft)


def _added_by(entry: CatalogEntry | dict[str, Any]) -> str:
    if isinstance(entry, CatalogEntry):
        return entry.added_by
    return entry.get("added_by") or ""


def _check_timestamp(value: str) -> str:
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise RegistryError(
            ErrorKind.INVALID_RECORD, f"completed_at '{value}' is not an ISO 8601 timestamp"
        ) from None
    return value


# Free-text fields of a catalog entry; YAML may hand these over as dates or numbers.
_ENTRY_TEXT_FIELDS = (
    "description",
    "host",
    "client_sdk",
    "service_repo",
    "api_docs",
    "version",
    "added_by",
    "added_at",
)


def _text(value: Any, field_name: str) -> str:
    """A string field as submitted. Dates become ISO strings and null becomes empty."""
    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        raise RegistryError(
            ErrorKind.INVALID_RECORD, f"'{field_name}' must be a string, got {type(value).__name__} {value!r}"
        )
    return value


def _validated_entry(entry: CatalogEntry | dict[str, Any]) -> CatalogEntry:
    """Coerce and check a submitted catalog entry. Usage problems are reported first."""
    data = dict(entry_to_dict(entry) if isinstance(entry, CatalogEntry) else entry)

    usage = data.get("usage")
    if not isinstance(usage, dict) or not usage:
        raise RegistryError(ErrorKind.MISSING_USAGE_BLOCK, "Catalog entry has no 'usage' block")
    data["usage"] = {key: _text(usage.get(key), f"usage.{key}") for key in USAGE_FIELDS}

    entry_type = data.get("type", CapabilityType.service.value)
    if not isinstance(entry_type, str) or entry_type not in {t.value for t in CapabilityType}:
        raise RegistryError(ErrorKind.INVALID_RECORD, f"Capability type '{entry_type}' must be model or service")
    if not isinstance(data.get("endpoints") or [], list):
        raise RegistryError(ErrorKind.INVALID_RECORD, "'endpoints' must be a list of \"METHOD /path\" strings")
    for key in _ENTRY_TEXT_FIELDS:
        data[key] = _text(data.get(key), key)
    entry = dict_to_entry(data)

    if not entry.usage.is_complete:
        missing = ", ".join(entry.usage.missing_fields)
        raise RegistryError(ErrorKind.MISSING_USAGE_BLOCK, f"Usage block is missing: {missing}")
    if not re.match(SEMVER_PATTERN, entry.version):
        raise RegistryError(ErrorKind.INVALID_RECORD, f"Version '{entry.version}' is not a semantic version")
    for endpoint in entry.endpoints:
        if not isinstance(endpoint, str) or not re.match(ENDPOINT_PATTERN, endpoint):
            raise RegistryError(ErrorKind.INVALID_RECORD, f"Endpoint '{endpoint}' is not \"METHOD /path\"")
    return entry


def _semver_key(version: str) -> tuple[int, int, int]:
    major, minor, patch = re.match(r"^(\d+)\.(\d+)\.(\d+)", version).groups()
    return int(major), int(minor), int(patch)


def _next_version(stored: str, submitted: str) -> str:
    """Keep a submitted version that moves forward, otherwise bump the stored patch."""
    if not re.match(SEMVER_PATTERN, stored or ""):
        return submitted
    if _semver_key(submitted) > _semver_key(stored):
        return submitted
    major, minor, patch = _semver_key(stored)
    return f"{major}.{minor}.{patch + 1}"
