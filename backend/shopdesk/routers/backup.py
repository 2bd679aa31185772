"""
Backup API routes: export, import and factory reset.
"""
from typing import Any

from fastapi import APIRouter, Body

from shopdesk.core.logging import get_logger
from shopdesk.routers.deps import StoreDep

logger = get_logger(__name__)

router = APIRouter(prefix="/backup", tags=["backup"])


@router.get("/export")
async def export_data(store: StoreDep) -> dict:
    """Full backup document, including the export timestamp."""
    return await store.export_data()


@router.post("/import")
async def import_data(
    store: StoreDep,
    document: Any = Body(...),
) -> dict:
    """
    Replace collections from a backup document.

    The whole document is validated first; a bad key rejects the import
    with 422 and nothing is replaced.
    """
    replaced = await store.import_data(document)
    return {"success": True, "replaced": replaced}


@router.post("/reset")
async def factory_reset(store: StoreDep) -> dict:
    """Wipe all shop data. Staff accounts are kept."""
    await store.factory_reset()
    logger.warning("Factory reset requested over HTTP")
    return {"success": True}
