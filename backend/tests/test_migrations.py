"""
Tests for the alembic revision behind the document store table.
"""
import importlib.util
from pathlib import Path

import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations

from shopdesk.models import CollectionSnapshot

VERSIONS = Path(__file__).resolve().parents[1] / "alembic" / "versions"


def load_revision(filename: str):
    spec = importlib.util.spec_from_file_location(filename.removesuffix(".py"), VERSIONS / filename)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_upgrade_matches_model():
    revision = load_revision("001_collection_snapshots.py")
    engine = sa.create_engine("sqlite://")

    with engine.begin() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            revision.upgrade()
        columns = {c["name"] for c in sa.inspect(conn).get_columns("collection_snapshots")}

    assert columns == {c.name for c in CollectionSnapshot.__table__.columns}


def test_downgrade_drops_table():
    revision = load_revision("001_collection_snapshots.py")
    engine = sa.create_engine("sqlite://")

    with engine.begin() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            revision.upgrade()
            revision.downgrade()
        assert not sa.inspect(conn).has_table("collection_snapshots")
