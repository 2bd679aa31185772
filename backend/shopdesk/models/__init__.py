"""
SQLAlchemy models package.
All models are imported here for easy access and Alembic discovery.
"""
from shopdesk.models.snapshot import CollectionSnapshot

__all__ = [
    "CollectionSnapshot",
]
