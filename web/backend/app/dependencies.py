"""Shared dependencies: the registry singleton and the calling agent's identity.

The service is the single writer for a store shared by many agents, so every
request goes through one Registry instance (and therefore one set of locks).
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header

from capreg.config import Settings
from capreg.registry.registry import Registry

_registry: Optional[Registry] = None


def get_registry() -> Registry:
    """Return the singleton Registry for the configured documents."""
    global _registry
    if _registry is None:
        _registry = Registry.from_settings(Settings.from_env())
    return _registry


def set_registry(registry: Optional[Registry]) -> None:
    """Install a specific Registry (or reset to lazy construction with None)."""
    global _registry
    _registry = registry


async def get_agent(x_agent_id: Optional[str] = Header(None)) -> str:
    """The opaque agent identity supplied by the identity layer in front of the service."""
    return (x_agent_id or "").strip()
