"""
Shared fixtures: a small sample shop, stores over in-memory and SQLite
repositories, and an API client.
"""
import os

# Cheap hashes and a throwaway database before shopdesk reads its settings
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "development")

from datetime import datetime, timezone
from typing import Any, AsyncGenerator

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from shopdesk.core.database import close_db, create_engine, create_session_factory, init_db
from shopdesk.core.security import hash_password
from shopdesk.main import create_app
from shopdesk.repositories import MemoryCollectionRepository, SqlCollectionRepository
from shopdesk.schemas import (
    Catalog,
    Client,
    DynamicAttribute,
    Order,
    OrderItem,
    OrderStatus,
    Product,
    Session,
    User,
    UserRole,
)
from shopdesk.services.store import ShopStore

ADMIN_EMAIL = "admin@shop.test"
ADMIN_PASSWORD = "secret123"
CLERK_EMAIL = "clerk@shop.test"
CLERK_PASSWORD = "clerk123"


def make_order(
    order_id: str,
    client_id: str,
    lines: list[tuple[str, int, float, float]],
    **fields: Any,
) -> Order:
    """Order with (product_id, quantity, fob_total, freight_total) lines."""
    items = [
        OrderItem(
            id=f"{order_id}-item-{index}",
            product_id=product_id,
            quantity=quantity,
            fob_total=fob_total,
            freight_total=freight_total,
        )
        for index, (product_id, quantity, fob_total, freight_total) in enumerate(lines)
    ]
    return Order(id=order_id, client_id=client_id, items=items, **fields)


@pytest.fixture
def catalog() -> Catalog:
    return Catalog(
        id="cat-aug",
        name="August Shipment",
        closing_date=datetime(2024, 8, 9, tzinfo=timezone.utc),
    )


@pytest.fixture
def products() -> list[Product]:
    return [
        Product(
            id="prod-mixer",
            catalog_id="cat-aug",
            name="Industrial Stand Mixer",
            fob_price=15000,
            attributes=[DynamicAttribute(key="Voltage", value="220V, 110V")],
        ),
        Product(
            id="prod-shoe",
            catalog_id="cat-aug",
            name="Sneakers",
            fob_price=2500,
            freight_charge=300,
            attributes=[
                DynamicAttribute(key="Color", value="Black, White"),
                DynamicAttribute(key="Size", value="40, 41"),
            ],
        ),
    ]


@pytest.fixture
def clients() -> list[Client]:
    return [
        Client(id="cli-jane", name="Jane Wanjiku", phone="+254712345678"),
        Client(id="cli-ann", name="Ann Otieno", phone="+254722000111"),
    ]


@pytest.fixture
def orders() -> list[Order]:
    mixer = make_order("ord-jane", "cli-jane", [("prod-mixer", 1, 15000, 0)])
    mixer.items[0].selected_attributes = [DynamicAttribute(key="Voltage", value="220V")]

    shoes = make_order(
        "ord-ann",
        "cli-ann",
        [("prod-shoe", 2, 5000, 600)],
        status=OrderStatus.SHIPPED,
    )
    shoes.items[0].selected_attributes = [
        DynamicAttribute(key="Color", value="Black"),
        DynamicAttribute(key="Size", value="40"),
    ]
    return [mixer, shoes]


@pytest.fixture
def users() -> list[User]:
    return [
        User(
            id="usr-admin",
            name="Grace Admin",
            email=ADMIN_EMAIL,
            role=UserRole.ADMIN,
            password_hash=hash_password(ADMIN_PASSWORD),
        ),
        User(
            id="usr-clerk",
            name="Tom Clerk",
            email=CLERK_EMAIL,
            role=UserRole.ORDER_ENTRY,
            password_hash=hash_password(CLERK_PASSWORD),
        ),
    ]


@pytest.fixture
def admin_session() -> Session:
    return Session(user_id="usr-admin", name="Grace Admin", email=ADMIN_EMAIL, role=UserRole.ADMIN)


@pytest.fixture
def clerk_session() -> Session:
    return Session(
        user_id="usr-clerk",
        name="Tom Clerk",
        email=CLERK_EMAIL,
        role=UserRole.ORDER_ENTRY,
    )


@pytest.fixture
def seed(catalog, products, clients, orders, users) -> dict[str, Any]:
    """Stored documents for the sample shop."""
    return {
        "catalogs": [catalog.to_document()],
        "products": [p.to_document() for p in products],
        "clients": [c.to_document() for c in clients],
        "orders": [o.to_document() for o in orders],
        "payments": [],
        "users": [u.to_document() for u in users],
    }


@pytest.fixture
def repository(seed) -> MemoryCollectionRepository:
    return MemoryCollectionRepository(seed)


@pytest.fixture
async def store(repository, admin_session) -> ShopStore:
    """A loaded store acting as the admin."""
    shop = ShopStore(repository, session=admin_session)
    await shop.load()
    return shop


@pytest.fixture
async def sqlite_repository(tmp_path) -> AsyncGenerator[SqlCollectionRepository, None]:
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'shopdesk.db'}")
    await init_db(engine)
    yield SqlCollectionRepository(create_session_factory(engine))
    await close_db(engine)


@pytest.fixture
def app(repository):
    return create_app(repository)


@pytest.fixture
def client(app) -> TestClient:
    """API client signed in as the admin."""
    with TestClient(app) as test_client:
        test_client.auth = (ADMIN_EMAIL, ADMIN_PASSWORD)
        yield test_client


@pytest.fixture
async def async_client(app, store) -> AsyncGenerator[AsyncClient, None]:
    """Async API client; the app state is seeded directly since no lifespan runs."""
    app.state.store = store
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        auth=(ADMIN_EMAIL, ADMIN_PASSWORD),
    ) as ac:
        yield ac
