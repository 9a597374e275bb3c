"""
Health check endpoints.

Provides liveness and readiness probes. Readiness reports the state of the
catalog index but never fails on it: the seed table keeps pricing usable.
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from cardscan.services.catalog_index import CatalogIndex, get_catalog_index

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str


class ReadyResponse(BaseModel):
    """Readiness response with catalog index state."""

    status: str
    indexed_sets: int
    seed_only: bool
    last_refreshed: datetime | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """
    Liveness probe.

    Returns healthy if the service is running.
    Does not check dependencies.
    """
    return HealthResponse(status="healthy")


@router.get("/ready", response_model=ReadyResponse)
async def ready(
    index: Annotated[CatalogIndex, Depends(get_catalog_index)],
) -> ReadyResponse:
    """
    Readiness probe.

    Reports how many set totals are indexed and whether the index is still
    running on its seed table (no successful catalog refresh yet).
    """
    index_status = index.status()
    return ReadyResponse(
        status="ready",
        indexed_sets=index_status.indexed_sets,
        seed_only=index_status.seed_only,
        last_refreshed=index_status.last_refreshed,
    )
