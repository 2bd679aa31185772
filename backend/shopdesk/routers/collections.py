"""
Document store API routes.

These back ``RemoteCollectionRepository``: a desktop client that found this
backend through the health probe reads and writes whole collections here.
"""
from typing import Any, Optional

from fastapi import APIRouter, Body, Response, status
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from shopdesk.core.errors import NotFoundError, ValidationError
from shopdesk.core.logging import get_logger
from shopdesk.core.security import require_role
from shopdesk.routers.deps import SessionDep, StoreDep
from shopdesk.schemas.settings import ShopSettings
from shopdesk.schemas.state import COLLECTION_FIELDS, SETTINGS_DOCUMENT, CollectionName
from shopdesk.schemas.user import Session, UserRole

logger = get_logger(__name__)

router = APIRouter(tags=["collections"])

STAFF = (UserRole.ADMIN, UserRole.ORDER_ENTRY)

# Collections order-entry staff may replace; the rest are admin-only
STAFF_COLLECTIONS = (CollectionName.CLIENTS, CollectionName.ORDERS, CollectionName.PAYMENTS)

# Collections that survive a remote clear so staff can still sign in
KEPT_ON_CLEAR = (CollectionName.USERS, CollectionName.AUTH_LOGS)

RECORD_ADAPTERS: dict[CollectionName, TypeAdapter] = {
    name: TypeAdapter(list[record_type]) for name, record_type in COLLECTION_FIELDS.values()
}
SETTINGS_ADAPTER = TypeAdapter(ShopSettings)

# Only admins see credentials
REDACTED_USER_FIELDS = ("passwordHash", "resetToken", "resetTokenExpiry")


def _collection(name: str) -> CollectionName:
    try:
        return CollectionName(name)
    except ValueError:
        raise NotFoundError("Collection", name) from None


def _document(name: str) -> str:
    if name != SETTINGS_DOCUMENT:
        raise NotFoundError("Document", name)
    return name


def _validated(name: str, adapter: TypeAdapter, payload: Any) -> Any:
    """Validate an incoming payload before anything is written."""
    try:
        return adapter.validate_python(payload)
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ValidationError(
            f"Invalid '{name}' at {location or name}: {first['msg']}",
            field=name,
        ) from e


def _required_roles(collection: CollectionName) -> tuple[UserRole, ...]:
    return STAFF if collection in STAFF_COLLECTIONS else (UserRole.ADMIN,)


@router.get("/session", response_model=Session)
async def current_session(session: SessionDep) -> Session:
    """Who the supplied credentials belong to."""
    return session


@router.get("/collections/{name}")
async def get_collection(name: str, store: StoreDep) -> list[dict[str, Any]]:
    collection = _collection(name)
    records = await store.repository.get_collection(collection)
    if collection == CollectionName.USERS and not store.session.is_admin:
        records = [
            {k: v for k, v in record.items() if k not in REDACTED_USER_FIELDS}
            for record in records
        ]
    return records


@router.put("/collections/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def set_collection(
    name: str,
    store: StoreDep,
    records: list[dict[str, Any]] = Body(...),
) -> Response:
    """
    Replace a whole collection, then reload the server's own state.

    Records are validated before the write, so a rejected payload leaves the
    stored collection as it was.
    """
    collection = _collection(name)
    require_role(store.session, *_required_roles(collection))
    parsed = _validated(collection.value, RECORD_ADAPTERS[collection], records)

    await store.repository.set_collection(collection, [r.to_document() for r in parsed])
    await store.load()
    logger.info("Collection replaced remotely", collection=collection.value, records=len(parsed))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/documents/{name}")
async def get_document(name: str, store: StoreDep) -> Optional[dict[str, Any]]:
    document = await store.repository.get_document(_document(name))
    if document is None:
        raise NotFoundError("Document", name)
    return document


@router.put("/documents/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def set_document(
    name: str,
    store: StoreDep,
    document: dict[str, Any] = Body(...),
) -> Response:
    require_role(store.session, UserRole.ADMIN)
    key = _document(name)
    shop_settings = _validated(key, SETTINGS_ADAPTER, document)

    await store.repository.set_document(key, shop_settings.to_document())
    await store.load()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/collections", status_code=status.HTTP_204_NO_CONTENT)
async def clear_collections(store: StoreDep) -> Response:
    """Drop every collection. Staff accounts and the auth log survive."""
    require_role(store.session, UserRole.ADMIN)
    kept = {name: await store.repository.get_collection(name) for name in KEPT_ON_CLEAR}
    await store.repository.clear()
    for name, records in kept.items():
        await store.repository.set_collection(name, records)
    await store.load()
    logger.warning("Document store cleared remotely")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
