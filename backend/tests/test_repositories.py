"""
Tests for the document store repositories.
"""
import json

import httpx
import pytest

from shopdesk.core.errors import PersistenceError
from shopdesk.repositories import (
    MemoryCollectionRepository,
    RemoteCollectionRepository,
    find_active_backend,
)
from shopdesk.schemas import CollectionName, UserRole
from shopdesk.services.store import ShopStore


class TestMemoryRepository:
    """Dict-backed store."""

    async def test_records_are_copied(self):
        repository = MemoryCollectionRepository()
        records = [{"id": "cli-1", "name": "Jane"}]
        await repository.set_collection(CollectionName.CLIENTS, records)
        records[0]["name"] = "Changed"

        stored = await repository.get_collection("clients")
        assert stored == [{"id": "cli-1", "name": "Jane"}]

    async def test_missing_collection_is_empty(self):
        repository = MemoryCollectionRepository()
        assert await repository.get_collection(CollectionName.ORDERS) == []
        assert await repository.get_settings() is None


class TestSqlRepository:
    """One JSON row per collection."""

    async def test_round_trip(self, sqlite_repository):
        records = [{"id": "cat-1", "name": "August"}]
        await sqlite_repository.set_collection(CollectionName.CATALOGS, records)

        assert await sqlite_repository.get_collection("catalogs") == records

    async def test_write_replaces(self, sqlite_repository):
        await sqlite_repository.set_collection("clients", [{"id": "a"}, {"id": "b"}])
        await sqlite_repository.set_collection("clients", [{"id": "c"}])

        assert await sqlite_repository.get_collection("clients") == [{"id": "c"}]

    async def test_settings_document(self, sqlite_repository):
        await sqlite_repository.set_settings({"shopName": "Imani"})
        assert await sqlite_repository.get_settings() == {"shopName": "Imani"}

    async def test_clear(self, sqlite_repository):
        await sqlite_repository.set_collection("orders", [{"id": "ord-1"}])
        await sqlite_repository.clear()

        assert await sqlite_repository.get_collection("orders") == []

    async def test_store_state_survives_reload(self, sqlite_repository, seed, admin_session):
        for name, records in seed.items():
            await sqlite_repository.set_collection(name, records)
        store = ShopStore(sqlite_repository, session=admin_session)
        await store.load()
        await store.add_client("Mary Achieng", "+254733000000")

        reloaded = ShopStore(sqlite_repository)
        await reloaded.load()

        assert [c.name for c in reloaded.state.clients][-1] == "Mary Achieng"
        assert reloaded.state.shop_settings.fob_paybill == "247247"


def remote(handler) -> RemoteCollectionRepository:
    return RemoteCollectionRepository(
        "http://backend.test/",
        auth=("admin@shop.test", "secret123"),
        transport=httpx.MockTransport(handler),
    )


class TestRemoteRepository:
    """HTTP client for a running backend."""

    async def test_get_collection(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/collections/orders"
            assert request.headers["authorization"].startswith("Basic ")
            return httpx.Response(200, json=[{"id": "ord-1"}])

        async with remote(handler) as repository:
            assert await repository.get_collection(CollectionName.ORDERS) == [{"id": "ord-1"}]

    async def test_set_collection_sends_records(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(204)

        async with remote(handler) as repository:
            await repository.set_collection("clients", [{"id": "cli-1"}])

        assert seen == {"method": "PUT", "body": [{"id": "cli-1"}]}

    async def test_missing_document_is_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"detail": "Document not found: settings"})

        async with remote(handler) as repository:
            assert await repository.get_settings() is None

    async def test_server_message_kept_verbatim(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"detail": "Access Denied: role 'ORDER_ENTRY'"})

        async with remote(handler) as repository:
            with pytest.raises(PersistenceError, match="Access Denied: role 'ORDER_ENTRY'"):
                await repository.set_collection("users", [])

    async def test_plain_text_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="disk full")

        async with remote(handler) as repository:
            with pytest.raises(PersistenceError, match="disk full"):
                await repository.set_collection("orders", [])

    async def test_unreachable_backend(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with remote(handler) as repository:
            with pytest.raises(PersistenceError, match="NETWORK_ERROR"):
                await repository.get_collection("orders")

    async def test_fetch_session(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "userId": "usr-clerk",
                    "name": "Tom Clerk",
                    "email": "clerk@shop.test",
                    "role": "ORDER_ENTRY",
                },
            )

        async with remote(handler) as repository:
            session = await repository.fetch_session()

        assert session.role == UserRole.ORDER_ENTRY


class TestFindActiveBackend:
    """Backend discovery."""

    async def test_first_healthy_candidate_wins(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "down.test":
                raise httpx.ConnectError("refused", request=request)
            if request.url.host == "sick.test":
                return httpx.Response(503)
            return httpx.Response(200, json={"status": "healthy"})

        url = await find_active_backend(
            ["http://down.test", "http://sick.test", "http://up.test/", "http://later.test"],
            transport=httpx.MockTransport(handler),
        )
        assert url == "http://up.test"

    async def test_none_when_nothing_answers(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        url = await find_active_backend(
            ["http://a.test", "http://b.test"],
            transport=httpx.MockTransport(handler),
        )
        assert url is None
