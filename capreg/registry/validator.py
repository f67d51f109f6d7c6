"""Validator: check wishlist and catalog documents for correctness.

Agents still edit ``wishlist.json`` and ``catalog.json`` by hand, so the
documents on disk can drift from what the registry operations would ever
produce. These checks combine the JSON Schema pass with the lifecycle
invariants a schema cannot express.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from capreg.registry.schema import CATALOG_SCHEMA, WISHLIST_SCHEMA
from capreg.registry.schema_validator import validate_against


def validate_wishlist(data: Any) -> list[str]:
    """Validate a parsed wishlist document. Empty list means valid."""
    issues = validate_against(data, WISHLIST_SCHEMA)
    if not isinstance(data, list):
        return issues

    seen: set[str] = set()
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            continue
        item_id = item.get("id")
        where = f"[{i}] ({item_id})"
        if item_id in seen:
            issues.append(f"{where}: duplicate id '{item_id}'")
        seen.add(item_id)

        status = item.get("status")
        if status == "pending" and item.get("assigned"):
            issues.append(f"{where}: 'assigned' must be unset while status is pending")
        if status == "building" and not item.get("assigned"):
            issues.append(f"{where}: status building requires 'assigned'")
        if status != "done" and item.get("completed_at"):
            issues.append(f"{where}: 'completed_at' is only allowed when status is done")
        if status == "done" and not item.get("completed_at"):
            issues.append(f"{where}: status done requires 'completed_at'")
        if status == "wontfix" and not (item.get("reason_declined") or "").strip():
            issues.append(f"{where}: status wontfix requires 'reason_declined'")

    return issues


def validate_catalog(data: Any) -> list[str]:
    """Validate a parsed catalog document. Empty list means valid."""
    # Usage completeness is part of the schema: a null or partial block fails it.
    return validate_against(data, CATALOG_SCHEMA)


def validate_document_files(wishlist_path: str | Path, catalog_path: str | Path) -> list[str]:
    """Validate both documents on disk. Missing files count as empty documents."""
    issues: list[str] = []
    for path, check in ((Path(wishlist_path), validate_wishlist), (Path(catalog_path), validate_catalog)):
        if not path.exists():
            continue
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            issues.append(f"{path.name}: invalid JSON: {e}")
            continue
        issues.extend(f"{path.name}: {issue}" for issue in check(data))
    return issues
