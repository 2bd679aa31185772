"""
In-memory document store, used by tests and demos.
"""
import copy
from typing import Any, Optional

from shopdesk.repositories.base import CollectionRepository, collection_key
from shopdesk.schemas.state import CollectionName


class MemoryCollectionRepository(CollectionRepository):
    """Dict-backed repository. Records are deep-copied in and out, like a real store."""

    def __init__(self, initial: Optional[dict[str, Any]] = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial or {})
        self.writes: list[str] = []

    async def get_collection(self, name: CollectionName | str) -> list[dict[str, Any]]:
        return copy.deepcopy(self._data.get(collection_key(name), []))

    async def set_collection(
        self,
        name: CollectionName | str,
        records: list[dict[str, Any]],
    ) -> None:
        key = collection_key(name)
        self._data[key] = copy.deepcopy(records)
        self.writes.append(key)

    async def get_document(self, name: str) -> Optional[dict[str, Any]]:
        document = self._data.get(name)
        return copy.deepcopy(document) if document is not None else None

    async def set_document(self, name: str, document: dict[str, Any]) -> None:
        self._data[name] = copy.deepcopy(document)
        self.writes.append(name)

    async def clear(self) -> None:
        self._data.clear()
        self.writes.append("*")
