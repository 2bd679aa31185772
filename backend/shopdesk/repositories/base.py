"""
Base repository for the document store.
Implements the Repository pattern over whole-collection snapshots.
"""
from abc import ABC, abstractmethod
from typing import Any, Optional

from shopdesk.schemas.state import SETTINGS_DOCUMENT, CollectionName


class CollectionRepository(ABC):
    """
    Persistence collaborator keyed by collection name.

    Collections are read and written whole; a write replaces whatever was
    stored before (last write wins). Implementations raise
    ``PersistenceError`` when the backing store fails.
    """

    @abstractmethod
    async def get_collection(self, name: CollectionName | str) -> list[dict[str, Any]]:
        """Get every record of a collection, or an empty list."""

    @abstractmethod
    async def set_collection(
        self,
        name: CollectionName | str,
        records: list[dict[str, Any]],
    ) -> None:
        """Replace a collection with the given records."""

    @abstractmethod
    async def get_document(self, name: str) -> Optional[dict[str, Any]]:
        """Get a singleton document, or None if it was never written."""

    @abstractmethod
    async def set_document(self, name: str, document: dict[str, Any]) -> None:
        """Replace a singleton document."""

    @abstractmethod
    async def clear(self) -> None:
        """Drop every collection and document."""

    async def get_settings(self) -> Optional[dict[str, Any]]:
        return await self.get_document(SETTINGS_DOCUMENT)

    async def set_settings(self, document: dict[str, Any]) -> None:
        await self.set_document(SETTINGS_DOCUMENT, document)


def collection_key(name: CollectionName | str) -> str:
    """Normalize a collection name to its storage key."""
    return name.value if isinstance(name, CollectionName) else str(name)
