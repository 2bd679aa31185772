"""
Repository package for data access layer.
"""
from shopdesk.repositories.base import CollectionRepository
from shopdesk.repositories.memory import MemoryCollectionRepository
from shopdesk.repositories.remote import RemoteCollectionRepository, find_active_backend
from shopdesk.repositories.sql import SqlCollectionRepository

__all__ = [
    "CollectionRepository",
    "MemoryCollectionRepository",
    "RemoteCollectionRepository",
    "SqlCollectionRepository",
    "find_active_backend",
]
