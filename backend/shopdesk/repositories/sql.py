"""
SQL-backed document store.
"""
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shopdesk.core.database import async_session_factory, get_db_context
from shopdesk.core.errors import PersistenceError
from shopdesk.core.logging import get_logger
from shopdesk.models.snapshot import CollectionSnapshot
from shopdesk.repositories.base import CollectionRepository, collection_key
from shopdesk.schemas.state import CollectionName

logger = get_logger(__name__)


class SqlCollectionRepository(CollectionRepository):
    """Repository storing each collection as one JSON row."""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    ) -> None:
        self.session_factory = session_factory or async_session_factory

    async def _read(self, key: str) -> Any:
        try:
            async with get_db_context(self.session_factory) as session:
                snapshot = await session.get(CollectionSnapshot, key)
                return snapshot.documents if snapshot else None
        except SQLAlchemyError as e:
            logger.error("Failed to read collection", collection=key, error=str(e))
            raise PersistenceError(f"Database read failed: {e}", collection=key) from e

    async def _write(self, key: str, documents: Any) -> None:
        try:
            async with get_db_context(self.session_factory) as session:
                await session.merge(CollectionSnapshot(name=key, documents=documents))
        except SQLAlchemyError as e:
            logger.error("Failed to write collection", collection=key, error=str(e))
            raise PersistenceError(f"Database write failed: {e}", collection=key) from e

    async def get_collection(self, name: CollectionName | str) -> list[dict[str, Any]]:
        return await self._read(collection_key(name)) or []

    async def set_collection(
        self,
        name: CollectionName | str,
        records: list[dict[str, Any]],
    ) -> None:
        key = collection_key(name)
        await self._write(key, records)
        logger.debug("Collection saved", collection=key, count=len(records))

    async def get_document(self, name: str) -> Optional[dict[str, Any]]:
        return await self._read(name)

    async def set_document(self, name: str, document: dict[str, Any]) -> None:
        await self._write(name, document)

    async def clear(self) -> None:
        from sqlalchemy import delete

        try:
            async with get_db_context(self.session_factory) as session:
                await session.execute(delete(CollectionSnapshot))
        except SQLAlchemyError as e:
            logger.error("Failed to clear document store", error=str(e))
            raise PersistenceError(f"Database reset failed: {e}") from e
        logger.info("Document store cleared")
