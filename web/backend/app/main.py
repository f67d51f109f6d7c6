"""FastAPI application for the capreg service.

Provides REST API endpoints wrapping the capreg package for:
- Wishlist requests, votes and lifecycle transitions
- Catalog publication and browsing
- Client SDK conformance checks
- Validation of the stored documents

Run one instance per store: it is the single writer that serializes the
agents' concurrent updates.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from capreg import __version__
from capreg.logger import setup_logging
from web.backend.app.routers import catalog, conformance, documents, wishlist

setup_logging()

app = FastAPI(
    title="capreg API",
    description=(
        "REST API for the wishlist/catalog registry. "
        "Provides endpoints for wishlist management, catalog publication, "
        "client SDK conformance checks, and document validation."
    ),
    version=__version__,
)

# ---------------------------------------------------------------------------
# CORS middleware (allow all origins for development)
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(wishlist.router)
app.include_router(catalog.router)
app.include_router(conformance.router)
app.include_router(documents.router)


# ---------------------------------------------------------------------------
# Root and health-check endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "capreg API",
        "version": __version__,
        "description": "Wishlist/catalog registry REST API",
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
