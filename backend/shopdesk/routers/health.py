"""
Health check endpoints. ``/health`` is what the backend locator probes.
"""
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends

from shopdesk.core.config import settings
from shopdesk.core.errors import PersistenceError
from shopdesk.routers.deps import get_store
from shopdesk.schemas.state import CollectionName
from shopdesk.services.store import ShopStore

router = APIRouter(tags=["health"])


@router.get("/")
async def root() -> dict:
    """API root endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@router.get("/health")
async def health_check() -> dict:
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.app_version,
    }


@router.get("/health/ready")
async def readiness_check(
    store: Annotated[ShopStore, Depends(get_store)],
) -> dict:
    """
    Readiness probe - checks if the service can handle requests.
    Verifies the document store answers a read.
    """
    try:
        await store.repository.get_collection(CollectionName.CATALOGS)
        storage_status = "connected"
    except PersistenceError as e:
        storage_status = f"error: {e.message}"

    is_ready = storage_status == "connected"

    return {
        "status": "ready" if is_ready else "not_ready",
        "checks": {
            "storage": storage_status,
            "setup_required": not store.state.users,
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/health/live")
async def liveness_check() -> dict:
    """
    Liveness probe - checks if the service is alive.
    Simple check that doesn't verify dependencies.
    """
    return {
        "status": "alive",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
