"""Conformance router -- check client SDKs against the sandbox SDK rules."""

from __future__ import annotations

from fastapi import APIRouter

from capreg.conformance.checker import check
from capreg.conformance.inspector import inspect_source

from web.backend.app.models.api import ConformanceResponse, DescriptorRequest, SourceCheckRequest

router = APIRouter(prefix="/api/conformance", tags=["conformance"])


@router.post("/check", response_model=ConformanceResponse, summary="Check a client descriptor")
async def check_descriptor(body: DescriptorRequest):
    """Run every conformance check against an already-extracted descriptor.

    Failed checks are part of a normal 200 response; only a malformed body
    is an error.
    """
    return ConformanceResponse.from_report(check(body.to_descriptor()))


@router.post("/inspect", response_model=ConformanceResponse, summary="Inspect and check client source")
async def check_source(body: SourceCheckRequest):
    """Extract a descriptor from Python client source, then check it."""
    descriptor = inspect_source(body.source, filename=body.filename)
    return ConformanceResponse.from_report(check(descriptor), descriptor)
