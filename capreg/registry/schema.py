"""JSON Schema for ``wishlist.json`` and ``catalog.json``.

This is the structural definition other tooling (hand edits, sync scripts)
must keep to. Lifecycle invariants that a schema cannot express live in
``capreg.registry.validator``.
"""

SCHEMA_VERSION = "1.0.0"

SLUG_PATTERN = r"^[a-z0-9][a-z0-9-]*$"
SEMVER_PATTERN = r"^\d+\.\d+\.\d+(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?$"
ENDPOINT_PATTERN = r"^(GET|POST|PUT|PATCH|DELETE|HEAD|OPTIONS|WS) /\S*$"

WISHLIST_ITEM_SCHEMA: dict = {
    "type": "object",
    "required": [
        "id",
        "name",
        "description",
        "reason",
        "category",
        "requested_by",
        "votes",
        "status",
    ],
    "properties": {
        "id": {"type": "string", "pattern": SLUG_PATTERN},
        "name": {"type": "string"},
        "description": {"type": "string"},
        "reason": {"type": "string"},
        "category": {"type": "string", "enum": ["api", "sdk", "model", "service", "infra"]},
        "requested_by": {"type": "string"},
        "votes": {"type": "integer", "minimum": 0},
        "status": {"type": "string", "enum": ["pending", "building", "done", "wontfix"]},
        "assigned": {"type": ["string", "null"]},
        "completed_at": {"type": ["string", "null"]},
        "reason_declined": {"type": ["string", "null"]},
    },
}

USAGE_SCHEMA: dict = {
    "type": "object",
    "required": ["import", "init", "example", "returns"],
    "properties": {
        "import": {"type": "string", "minLength": 1},
        "init": {"type": "string", "minLength": 1},
        "example": {"type": "string", "minLength": 1},
        "returns": {"type": "string", "minLength": 1},
    },
}

CATALOG_ENTRY_SCHEMA: dict = {
    "type": "object",
    "required": [
        "type",
        "description",
        "host",
        "endpoints",
        "version",
        "usage",
    ],
    "properties": {
        "type": {"type": "string", "enum": ["model", "service"]},
        "description": {"type": "string"},
        "host": {"type": "string"},
        "endpoints": {
            "type": "array",
            "items": {"type": "string", "pattern": ENDPOINT_PATTERN},
        },
        "client_sdk": {"type": "string"},
        "service_repo": {"type": "string"},
        "api_docs": {"type": "string"},
        "version": {"type": "string", "pattern": SEMVER_PATTERN},
        "added_by": {"type": "string"},
        "added_at": {"type": "string"},
        "usage": USAGE_SCHEMA,
    },
}

WISHLIST_SCHEMA: dict = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Wishlist",
    "description": "Requests for capabilities that are not available yet.",
    "type": "array",
    "items": WISHLIST_ITEM_SCHEMA,
}

CATALOG_SCHEMA: dict = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Capability Catalog",
    "description": "Published models and services, keyed by capability name.",
    "type": "object",
    "required": ["capabilities"],
    "properties": {
        "updated": {"type": ["string", "null"]},
        "capabilities": {
            "type": "object",
            "additionalProperties": CATALOG_ENTRY_SCHEMA,
        },
    },
}


def get_schemas() -> dict[str, dict]:
    """Return the JSON Schemas keyed by document file name."""
    return {"wishlist.json": WISHLIST_SCHEMA, "catalog.json": CATALOG_SCHEMA}
