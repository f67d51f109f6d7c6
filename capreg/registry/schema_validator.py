"""Schema validator: structural validation of registry documents.

Walks a JSON Schema node by node and collects human-readable issues. Covers
the subset of JSON Schema the registry schemas use: type (single or union),
enum, minLength, pattern, minimum, required, properties,
additionalProperties and items.
"""

from __future__ import annotations

import re


def validate_against(data, schema: dict, path: str = "") -> list[str]:
    """Validate ``data`` against a JSON Schema dict.

    Returns:
        List of error messages. Empty list means valid.
    """
    issues: list[str] = []
    _validate_node(data, schema, path, issues)
    return issues


def _validate_node(data, schema: dict, path: str, issues: list[str]):
    """Recursively validate data against a JSON Schema node."""
    schema_type = schema.get("type")
    where = path or "/"

    if schema_type and not _type_matches(data, schema_type):
        issues.append(f"{where}: expected type '{_type_label(schema_type)}', got {type(data).__name__}")
        return  # Don't recurse into wrong types

    if "enum" in schema and data not in schema["enum"]:
        issues.append(f"{where}: value '{data}' not in allowed values {schema['enum']}")

    if isinstance(data, str):
        min_len = schema.get("minLength", 0)
        if len(data.strip()) < min_len:
            issues.append(f"{where}: string too short (min {min_len}, got {len(data.strip())})")
        if "pattern" in schema and not re.match(schema["pattern"], data):
            issues.append(f"{where}: string '{data}' does not match pattern '{schema['pattern']}'")

    if isinstance(data, int) and not isinstance(data, bool) and "minimum" in schema:
        if data < schema["minimum"]:
            issues.append(f"{where}: value {data} is below minimum {schema['minimum']}")

    if isinstance(data, dict):
        for req in schema.get("required", []):
            if req not in data:
                issues.append(f"{where}: missing required property '{req}'")

        props = schema.get("properties", {})
        extra = schema.get("additionalProperties")
        for key, value in data.items():
            if key in props:
                _validate_node(value, props[key], f"{path}.{key}", issues)
            elif isinstance(extra, dict):
                _validate_node(value, extra, f"{path}.{key}", issues)

    if isinstance(data, list):
        items_schema = schema.get("items")
        if items_schema:
            for i, item in enumerate(data):
                _validate_node(item, items_schema, f"{path}[{i}]", issues)


def _type_label(schema_type) -> str:
    if isinstance(schema_type, list):
        return "|".join(schema_type)
    return schema_type


def _type_matches(data, schema_type) -> bool:
    """Check if data matches the expected JSON Schema type (or any of a union)."""
    if isinstance(schema_type, list):
        return any(_type_matches(data, t) for t in schema_type)

    type_map = {
        "string": str,
        "integer": int,
        "number": (int, float),
        "boolean": bool,
        "array": list,
        "object": dict,
        "null": type(None),
    }
    expected = type_map.get(schema_type)
    if expected is None:
        return True  # Unknown type, don't block
    if schema_type in ("integer", "number") and isinstance(data, bool):
        return False
    return isinstance(data, expected)
