"""Wishlist router -- request, vote on, and move wishlist items through their lifecycle."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from capreg.registry.registry import Registry

from web.backend.app.dependencies import get_agent, get_registry
from web.backend.app.errors import unwrap_or_raise
from web.backend.app.models.api import (
    TransitionRequest,
    WishlistDraftRequest,
    WishlistItemResponse,
)

router = APIRouter(prefix="/api/wishlist", tags=["wishlist"])


def _draft(body: WishlistDraftRequest, agent: str) -> dict:
    draft = body.model_dump()
    draft["requested_by"] = draft["requested_by"] or agent
    return draft


@router.get("", response_model=list[WishlistItemResponse], summary="List wishlist items")
def list_items(
    status: Optional[str] = Query(None, description="Filter by status"),
    category: Optional[str] = Query(None, description="Filter by category"),
    registry: Registry = Depends(get_registry),
):
    """List items in submission order."""
    return [WishlistItemResponse.from_item(i) for i in registry.list_wishlist(status, category)]


@router.get("/pending", response_model=list[WishlistItemResponse], summary="Build queue")
def list_pending(
    sort_by_votes: bool = Query(True, description="Most-voted first"),
    registry: Registry = Depends(get_registry),
):
    """Pending items, most-voted first; ties keep submission order."""
    return [WishlistItemResponse.from_item(i) for i in registry.list_pending(sort_by_votes)]


@router.post("", response_model=WishlistItemResponse, status_code=201, summary="Create an item")
def create_item(
    body: WishlistDraftRequest,
    registry: Registry = Depends(get_registry),
    agent: str = Depends(get_agent),
):
    """Create a new pending item. 409 if the id already exists."""
    item = unwrap_or_raise(registry.create_wishlist_item(_draft(body, agent)))
    return WishlistItemResponse.from_item(item)


@router.post("/request", response_model=WishlistItemResponse, summary="Request or upvote an item")
def request_item(
    body: WishlistDraftRequest,
    registry: Registry = Depends(get_registry),
    agent: str = Depends(get_agent),
):
    """Create the item, or upvote it when the id was already requested."""
    item = unwrap_or_raise(registry.request_item(_draft(body, agent)))
    return WishlistItemResponse.from_item(item)


@router.get("/{item_id}", response_model=WishlistItemResponse, summary="Get an item")
def get_item(item_id: str, registry: Registry = Depends(get_registry)):
    return WishlistItemResponse.from_item(unwrap_or_raise(registry.get_wishlist_item(item_id)))


@router.post("/{item_id}/upvote", response_model=WishlistItemResponse, summary="Upvote an item")
def upvote_item(
    item_id: str,
    registry: Registry = Depends(get_registry),
    agent: str = Depends(get_agent),
):
    return WishlistItemResponse.from_item(unwrap_or_raise(registry.upvote(item_id, actor=agent)))


@router.post("/{item_id}/transition", response_model=WishlistItemResponse, summary="Change status")
def transition_item(
    item_id: str,
    body: TransitionRequest,
    registry: Registry = Depends(get_registry),
    agent: str = Depends(get_agent),
):
    """Apply a lifecycle transition (claim, unclaim, complete, decline)."""
    actor = body.actor or agent
    item = unwrap_or_raise(registry.transition(item_id, body.status, actor, body.extra()))
    return WishlistItemResponse.from_item(item)


@router.delete("/{item_id}", response_model=WishlistItemResponse, summary="Remove an item")
def remove_item(
    item_id: str,
    registry: Registry = Depends(get_registry),
    agent: str = Depends(get_agent),
):
    return WishlistItemResponse.from_item(unwrap_or_raise(registry.remove_wishlist_item(item_id, actor=agent)))
