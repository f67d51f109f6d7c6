"""Document stores backing the registry.

The registry only needs get/put per collection:
- the wishlist is a JSON array of item dicts
- the catalog is a JSON object ``{"updated": ..., "capabilities": {...}}``

``JsonFileStore`` keeps the two documents as files on disk (the same files
agents edit by hand); ``MemoryStore`` keeps them in process.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, ContextManager, Optional, Protocol

from filelock import FileLock

from capreg.registry.errors import StoreError

logger = logging.getLogger(__name__)


def empty_catalog() -> dict[str, Any]:
    return {"updated": None, "capabilities": {}}


class DocumentStore(Protocol):
    def load_wishlist(self) -> list[dict[str, Any]]: ...

    def save_wishlist(self, items: list[dict[str, Any]]) -> None: ...

    def load_catalog(self) -> dict[str, Any]: ...

    def save_catalog(self, catalog: dict[str, Any]) -> None: ...

    def lock(self, collection: str) -> ContextManager[Any]: ...


class MemoryStore:
    """In-process store. Hands out deep copies so callers cannot alias state."""

    def __init__(
        self,
        wishlist: Optional[list[dict[str, Any]]] = None,
        catalog: Optional[dict[str, Any]] = None,
    ) -> None:
        self._wishlist = copy.deepcopy(wishlist or [])
        self._catalog = copy.deepcopy(catalog or empty_catalog())
        self._locks = {"wishlist": threading.RLock(), "catalog": threading.RLock()}

    def lock(self, collection: str) -> ContextManager[Any]:
        """Shared by every Registry holding this store."""
        return self._locks[collection]

    def load_wishlist(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._wishlist)

    def save_wishlist(self, items: list[dict[str, Any]]) -> None:
        self._wishlist = copy.deepcopy(items)

    def load_catalog(self) -> dict[str, Any]:
        return copy.deepcopy(self._catalog)

    def save_catalog(self, catalog: dict[str, Any]) -> None:
        self._catalog = copy.deepcopy(catalog)


class JsonFileStore:
    """File-based store for ``wishlist.json`` and ``catalog.json``.

    Missing files read as empty documents. Writes go to a temp file in the
    same directory and are moved into place with ``os.replace`` so a reader
    never sees a half-written document.

    ``lock(collection)`` is an OS-level lock on ``<document>.lock``, so
    registries in different processes (CLI invocations, the API service)
    serialize their read-modify-write cycles on the same files.
    """

    def __init__(self, wishlist_path: str | Path, catalog_path: str | Path) -> None:
        self.wishlist_path = Path(wishlist_path)
        self.catalog_path = Path(catalog_path)
        self._locks = {
            "wishlist": FileLock(f"{self.wishlist_path}.lock"),
            "catalog": FileLock(f"{self.catalog_path}.lock"),
        }

    def lock(self, collection: str) -> ContextManager[Any]:
        path = self.wishlist_path if collection == "wishlist" else self.catalog_path
        path.parent.mkdir(parents=True, exist_ok=True)
        return self._locks[collection]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_json(self, path: Path) -> Any:
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StoreError(f"{path}: invalid JSON ({e})") from e
        except OSError as e:
            raise StoreError(f"{path}: cannot read ({e})") from e

    def _write_json(self, path: Path, data: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
                fh.write("\n")
            os.replace(tmp_name, path)
        except (OSError, TypeError, ValueError) as e:
            raise StoreError(f"{path}: cannot write ({e})") from e
        finally:
            Path(tmp_name).unlink(missing_ok=True)
        logger.debug("Wrote %s", path)

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def load_wishlist(self) -> list[dict[str, Any]]:
        data = self._read_json(self.wishlist_path)
        if data is None:
            return []
        if not isinstance(data, list):
            raise StoreError(f"{self.wishlist_path}: expected a JSON array of items")
        return data

    def save_wishlist(self, items: list[dict[str, Any]]) -> None:
        self._write_json(self.wishlist_path, items)

    def load_catalog(self) -> dict[str, Any]:
        data = self._read_json(self.catalog_path)
        if data is None:
            return empty_catalog()
        if not isinstance(data, dict):
            raise StoreError(f"{self.catalog_path}: expected a JSON object")
        data.setdefault("updated", None)
        data.setdefault("capabilities", {})
        return data

    def save_catalog(self, catalog: dict[str, Any]) -> None:
        self._write_json(self.catalog_path, catalog)
