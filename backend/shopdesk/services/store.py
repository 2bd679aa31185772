"""
ShopStore - the explicit state container behind every mutation.

The store keeps an immutable ``ShopState`` snapshot. A mutation builds a new
snapshot, writes each touched collection to the repository in turn and swaps
that collection into the live state as soon as its write succeeds. A failed
write stops the sequence: collections already written stay written, nothing
is rolled back.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from shopdesk.core.errors import (
    DuplicateTransactionError,
    NotFoundError,
    PersistenceError,
    ShopDeskError,
    ValidationError,
)
from shopdesk.core.logging import bind_actor, get_logger
from shopdesk.core.security import generate_id, require_role
from shopdesk.repositories.base import CollectionRepository
from shopdesk.schemas.catalog import Catalog, CatalogStatus
from shopdesk.schemas.client import Client
from shopdesk.schemas.ledger import (
    AllocationResult,
    CascadeResult,
    DashboardStats,
    OperationResult,
    ProductSummary,
    StockReconciliation,
)
from shopdesk.schemas.order import Order, OrderItem, OrderStatus
from shopdesk.schemas.payment import PaymentTransaction
from shopdesk.schemas.product import Product, StockStatus
from shopdesk.schemas.settings import ShopSettings
from shopdesk.schemas.state import COLLECTION_FIELDS, SETTINGS_DOCUMENT, ShopState
from shopdesk.schemas.user import Session, UserRole
from shopdesk.services import backup, invoice, order_entry, reports, stock
from shopdesk.services.cascade import apply_fob_price_change, apply_freight_rate_change
from shopdesk.services.mpesa import parse_mpesa_message
from shopdesk.services.payments import apply_payment

logger = get_logger(__name__)

R = TypeVar("R", bound=BaseModel)

ADMIN = (UserRole.ADMIN,)
STAFF = (UserRole.ADMIN, UserRole.ORDER_ENTRY)

NAME_COLUMNS = ("Name", "name", "Client Name")
PHONE_COLUMNS = ("Phone", "phone", "Phone Number")

# Order fields a lock freezes
LOCKED_FIELDS = (
    "items",
    "total_fob_paid",
    "total_freight_paid",
    "fob_payment_status",
    "freight_payment_status",
)


@dataclass
class _StateRef:
    """Shared holder so per-session views of a store see one state."""

    state: ShopState


def _build(model: type[R], **data: Any) -> R:
    """Construct a record, turning pydantic errors into ``ValidationError``."""
    try:
        return model(**data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = str(first["loc"][0]) if first["loc"] else None
        raise ValidationError(f"Invalid {field or 'record'}: {first['msg']}", field=field) from e


def _apply_changes(record: R, changes: Mapping[str, Any]) -> R:
    """Return a validated copy of ``record`` with snake_case field changes applied."""
    if "id" in changes:
        raise ValidationError("Record id cannot be changed", field="id")
    unknown = set(changes) - set(type(record).model_fields)
    if unknown:
        raise ValidationError(f"Unknown field(s): {', '.join(sorted(unknown))}")
    return _build(type(record), **{**record.model_dump(), **changes})


def _find(records: Iterable[R], record_id: str, entity: str) -> R:
    found = next((r for r in records if getattr(r, "id", None) == record_id), None)
    if found is None:
        raise NotFoundError(entity, record_id)
    return found


def _replace(records: list[R], updated: R) -> list[R]:
    return [updated if getattr(r, "id", None) == getattr(updated, "id", None) else r for r in records]


def _column(row: Mapping[str, Any], names: tuple[str, ...]) -> Optional[str]:
    for name in names:
        value = row.get(name)
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


class ShopStore:
    """
    Entry points for every state change in the shop.

    Mutations check the session's role first, then validate, and only then
    touch state. Services raise; ``run()`` folds any ``ShopDeskError`` into an
    ``OperationResult`` for callers that want a success flag and a message.
    """

    def __init__(
        self,
        repository: CollectionRepository,
        session: Optional[Session] = None,
        _ref: Optional[_StateRef] = None,
    ) -> None:
        self.repository = repository
        self.session = session
        self._ref = _ref or _StateRef(ShopState())

    def for_session(self, session: Optional[Session]) -> "ShopStore":
        """A view of this store acting as another user, sharing its state."""
        return ShopStore(self.repository, session, _ref=self._ref)

    @property
    def state(self) -> ShopState:
        return self._ref.state

    def _require(self, *roles: UserRole) -> Session:
        session = require_role(self.session, *roles)
        bind_actor(session.user_id, session.role.value)
        return session

    async def run(
        self,
        operation: Callable[..., Awaitable[Any]],
        *args: Any,
        **kwargs: Any,
    ) -> OperationResult:
        """Await a store operation and report its outcome instead of raising."""
        try:
            data = await operation(*args, **kwargs)
        except ShopDeskError as e:
            logger.warning(
                "Operation failed",
                operation=getattr(operation, "__name__", str(operation)),
                error=e.message,
                error_type=type(e).__name__,
            )
            return OperationResult(success=False, message=e.message)
        return OperationResult(success=True, message="OK", data=data)

    # ------------------------------------------------------------------
    # Loading and persistence
    # ------------------------------------------------------------------

    async def load(self) -> ShopState:
        """Read every collection from the repository into a fresh state."""
        data: dict[str, Any] = {}
        for attr, (name, record_type) in COLLECTION_FIELDS.items():
            documents = await self.repository.get_collection(name)
            try:
                data[attr] = [record_type.model_validate(doc) for doc in documents]
            except PydanticValidationError as e:
                logger.error("Stored collection is unreadable", collection=name.value, error=str(e))
                raise PersistenceError(
                    f"Stored collection '{name.value}' is unreadable",
                    collection=name.value,
                ) from e

        self._ref.state = ShopState(**data, shop_settings=self.state.shop_settings)
        await self.get_shop_settings()
        logger.info(
            "Shop state loaded",
            catalogs=len(self.state.catalogs),
            products=len(self.state.products),
            clients=len(self.state.clients),
            orders=len(self.state.orders),
            payments=len(self.state.payments),
        )
        return self.state

    async def commit(self, new_state: ShopState, *fields: str) -> ShopState:
        """
        Persist the given state fields in order, swapping each into the live
        state once its write succeeds.
        """
        for attr in fields:
            value = getattr(new_state, attr)
            try:
                if attr == "shop_settings":
                    await self.repository.set_settings(value.to_document())
                else:
                    name, _ = COLLECTION_FIELDS[attr]
                    await self.repository.set_collection(
                        name, [record.to_document() for record in value]
                    )
            except PersistenceError as e:
                logger.error(
                    "Persisting collection failed",
                    collection=attr,
                    written_before_failure=list(fields[: fields.index(attr)]),
                    error=e.message,
                )
                raise
            self._ref.state = self.state.model_copy(update={attr: value})
        return self.state

    # ------------------------------------------------------------------
    # Catalogs
    # ------------------------------------------------------------------

    async def add_catalog(
        self,
        name: str,
        closing_date: Union[datetime, str, None],
        status: CatalogStatus = CatalogStatus.OPEN,
    ) -> Catalog:
        self._require(*ADMIN)
        if not name or not name.strip():
            raise ValidationError("Catalog name is required", field="name")
        if not closing_date:
            raise ValidationError("Closing date is required", field="closingDate")

        catalog = _build(
            Catalog,
            id=generate_id("cat"),
            name=name.strip(),
            closing_date=closing_date,
            status=status,
        )
        state = self.state
        await self.commit(state.model_copy(update={"catalogs": [*state.catalogs, catalog]}), "catalogs")
        logger.info("Catalog created", catalog_id=catalog.id, name=catalog.name)
        return catalog

    async def update_catalog(self, catalog_id: str, **changes: Any) -> Catalog:
        """Edit a catalog. Closing it locks every order holding its products."""
        self._require(*ADMIN)
        state = self.state
        catalog = _find(state.catalogs, catalog_id, "Catalog")
        updated = _apply_changes(catalog, changes)

        new_state = state.model_copy(update={"catalogs": _replace(state.catalogs, updated)})
        fields = ["catalogs"]
        if catalog.status != CatalogStatus.CLOSED and updated.status == CatalogStatus.CLOSED:
            orders, locked = self._lock_for_catalog(new_state, catalog_id)
            if locked:
                new_state = new_state.model_copy(update={"orders": orders})
                fields.append("orders")

        await self.commit(new_state, *fields)
        logger.info("Catalog updated", catalog_id=catalog_id, fields=sorted(changes))
        return updated

    async def delete_catalog(self, catalog_id: str) -> None:
        self._require(*ADMIN)
        state = self.state
        _find(state.catalogs, catalog_id, "Catalog")
        if any(p.catalog_id == catalog_id for p in state.products):
            raise ValidationError("Catalog still has products; delete or move them first")

        catalogs = [c for c in state.catalogs if c.id != catalog_id]
        await self.commit(state.model_copy(update={"catalogs": catalogs}), "catalogs")
        logger.info("Catalog deleted", catalog_id=catalog_id)

    def _lock_for_catalog(self, state: ShopState, catalog_id: str) -> tuple[list[Order], list[str]]:
        product_ids = {p.id for p in state.products if p.catalog_id == catalog_id}
        return order_entry.lock_orders(state.orders, product_ids)

    async def lock_catalog_orders(self, catalog_id: str) -> list[str]:
        """Lock every order holding a product of the catalog; returns the newly locked ids."""
        self._require(*ADMIN)
        state = self.state
        _find(state.catalogs, catalog_id, "Catalog")
        orders, locked = self._lock_for_catalog(state, catalog_id)
        if locked:
            await self.commit(state.model_copy(update={"orders": orders}), "orders")
        logger.info("Catalog orders locked", catalog_id=catalog_id, orders=len(locked))
        return locked

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def add_product(
        self,
        catalog_id: str,
        name: str,
        fob_price: float,
        **fields: Any,
    ) -> Product:
        self._require(*ADMIN)
        state = self.state
        if not catalog_id:
            raise ValidationError("Catalog is required", field="catalogId")
        _find(state.catalogs, catalog_id, "Catalog")
        if not name or not name.strip():
            raise ValidationError("Product name is required", field="name")
        if fob_price is None or fob_price <= 0:
            raise ValidationError("FOB price must be greater than 0", field="fobPrice")

        product = _build(
            Product,
            id=generate_id("prod"),
            catalog_id=catalog_id,
            name=name.strip(),
            fob_price=fob_price,
            **fields,
        )
        await self.commit(state.model_copy(update={"products": [*state.products, product]}), "products")
        logger.info("Product created", product_id=product.id, catalog_id=catalog_id)
        return product

    async def update_product(self, product_id: str, **changes: Any) -> Product:
        """
        Edit a product. A changed FOB price or freight rate is pushed onto the
        lines of every open order holding the product.
        """
        self._require(*ADMIN)
        state = self.state
        product = _find(state.products, product_id, "Product")

        new_price = changes.pop("fob_price", None)
        new_rate = changes.pop("freight_charge", None)
        if "catalog_id" in changes:
            _find(state.catalogs, changes["catalog_id"], "Catalog")
        updated = _apply_changes(product, changes)
        orders = state.orders
        touched_orders = False

        if new_price is not None and new_price != product.fob_price:
            if new_price <= 0:
                raise ValidationError("FOB price must be greater than 0", field="fobPrice")
            result = apply_fob_price_change(updated, new_price, orders)
            updated, orders = result.product, result.orders
            touched_orders = touched_orders or bool(result.updated_order_ids)

        if new_rate is not None and new_rate != product.freight_charge:
            result = apply_freight_rate_change(updated, new_rate, orders)
            updated, orders = result.product, result.orders
            touched_orders = touched_orders or bool(result.updated_order_ids)

        new_state = state.model_copy(
            update={"products": _replace(state.products, updated), "orders": orders}
        )
        fields = ["products", "orders"] if touched_orders else ["products"]
        await self.commit(new_state, *fields)
        logger.info("Product updated", product_id=product_id, orders_repriced=touched_orders)
        return updated

    async def import_product(self, product_id: str, catalog_id: str) -> Product:
        """Copy a product from an earlier catalog into another one, with fresh stock."""
        self._require(*ADMIN)
        state = self.state
        source = _find(state.products, product_id, "Product")
        _find(state.catalogs, catalog_id, "Catalog")

        copy = source.model_copy(
            update={
                "id": generate_id("prod"),
                "catalog_id": catalog_id,
                "stock_status": StockStatus.PENDING,
                "stock_counts": {},
                "stock_sold": {},
            }
        )
        await self.commit(state.model_copy(update={"products": [*state.products, copy]}), "products")
        logger.info("Product imported", source_id=product_id, product_id=copy.id, catalog_id=catalog_id)
        return copy

    async def delete_product(self, product_id: str) -> None:
        self._require(*ADMIN)
        state = self.state
        _find(state.products, product_id, "Product")
        products = [p for p in state.products if p.id != product_id]
        await self.commit(state.model_copy(update={"products": products}), "products")
        logger.info("Product deleted", product_id=product_id)

    async def _save_product(self, product: Product) -> Product:
        state = self.state
        await self.commit(
            state.model_copy(update={"products": _replace(state.products, product)}),
            "products",
        )
        return product

    async def update_product_stock(
        self,
        product_id: str,
        stock_counts: Optional[dict[str, int]] = None,
        stock_sold: Optional[dict[str, int]] = None,
        stock_status: Optional[StockStatus] = None,
    ) -> Product:
        self._require(*STAFF)
        product = _find(self.state.products, product_id, "Product")
        update: dict[str, Any] = {}
        if stock_counts is not None:
            update["stock_counts"] = stock.validate_counts(stock_counts, "stockCounts")
        if stock_sold is not None:
            update["stock_sold"] = stock.validate_counts(stock_sold, "stockSold")
        if stock_status is not None:
            update["stock_status"] = StockStatus(stock_status)

        updated = await self._save_product(product.model_copy(update=update))
        logger.info("Product stock updated", product_id=product_id, fields=sorted(update))
        return updated

    async def record_stock_arrival(self, product_id: str, counts: dict[str, int]) -> Product:
        self._require(*STAFF)
        product = _find(self.state.products, product_id, "Product")
        return await self._save_product(stock.record_arrival(product, counts))

    async def sell_extra(self, product_id: str, variant: str, quantity: int) -> Product:
        self._require(*STAFF)
        product = _find(self.state.products, product_id, "Product")
        return await self._save_product(
            stock.sell_extra(product, variant, quantity, self.state.orders)
        )

    async def set_freight_rate(self, product_id: str, freight_charge: float) -> CascadeResult:
        """
        Change a product's freight rate and reprice open orders.

        The product is written before the orders; if the order write fails
        the new rate stays saved.
        """
        self._require(*ADMIN)
        state = self.state
        product = _find(state.products, product_id, "Product")
        result = apply_freight_rate_change(product, freight_charge, state.orders)

        new_state = state.model_copy(
            update={
                "products": _replace(state.products, result.product),
                "orders": result.orders,
            }
        )
        await self.commit(new_state, "products", "orders")
        return result

    def reconcile_stock(self, product_id: str) -> StockReconciliation:
        product = _find(self.state.products, product_id, "Product")
        return stock.reconcile(product, self.state.orders)

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------

    async def add_client(self, name: str, phone: str, email: Optional[str] = None) -> Client:
        self._require(*STAFF)
        if not name or not name.strip():
            raise ValidationError("Client name is required", field="name")
        if not phone or not phone.strip():
            raise ValidationError("Phone number is required", field="phone")

        client = _build(
            Client,
            id=generate_id("cli"),
            name=name.strip(),
            phone=phone.strip(),
            email=email or None,
        )
        state = self.state
        await self.commit(state.model_copy(update={"clients": [*state.clients, client]}), "clients")
        logger.info("Client created", client_id=client.id)
        return client

    async def add_clients_bulk(self, rows: Iterable[Mapping[str, Any]]) -> int:
        """
        Import clients from spreadsheet rows.

        Rows missing a name or phone are skipped, as are phones already on
        file or seen earlier in the same batch. Returns how many were added.
        """
        self._require(*STAFF)
        state = self.state
        known = {c.phone for c in state.clients}
        added: list[Client] = []
        for row in rows:
            name = _column(row, NAME_COLUMNS)
            phone = _column(row, PHONE_COLUMNS)
            if not name or not phone or phone in known:
                continue
            known.add(phone)
            added.append(Client(id=generate_id("cli"), name=name, phone=phone))

        if added:
            await self.commit(
                state.model_copy(update={"clients": [*state.clients, *added]}),
                "clients",
            )
        logger.info("Clients imported", added=len(added))
        return len(added)

    async def update_client(self, client_id: str, **changes: Any) -> Client:
        self._require(*STAFF)
        state = self.state
        client = _find(state.clients, client_id, "Client")
        updated = _apply_changes(client, changes)
        await self.commit(
            state.model_copy(update={"clients": _replace(state.clients, updated)}),
            "clients",
        )
        logger.info("Client updated", client_id=client_id)
        return updated

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def _check_order_refs(self, order: Order) -> None:
        state = self.state
        _find(state.clients, order.client_id, "Client")
        for item in order.items:
            _find(state.products, item.product_id, "Product")

    async def add_order(self, order: Union[Order, Mapping[str, Any]]) -> Order:
        self._require(*STAFF)
        if not isinstance(order, Order):
            order = _build(Order, **{"id": generate_id("ord"), **order})
        state = self.state
        if state.find_order(order.id) is not None:
            raise ValidationError(f"Order already exists: {order.id}", field="id")
        self._check_order_refs(order)

        await self.commit(state.model_copy(update={"orders": [*state.orders, order]}), "orders")
        logger.info("Order created", order_id=order.id, client_id=order.client_id)
        return order

    async def update_order(self, order: Order) -> Order:
        """
        Replace an order.

        A locked order keeps its lines, paid totals and payment statuses, and
        only an admin may unlock it. The status may still move forward.
        """
        session = self._require(*STAFF)
        state = self.state
        existing = _find(state.orders, order.id, "Order")
        if existing.is_locked and not session.is_admin:
            changed = [
                f for f in (*LOCKED_FIELDS, "is_locked") if getattr(existing, f) != getattr(order, f)
            ]
            if changed:
                raise ValidationError(f"Order {order.id} is locked", field=changed[0])
        if order.status != existing.status:
            order_entry.advance_status(existing, order.status)
        self._check_order_refs(order)

        await self.commit(state.model_copy(update={"orders": _replace(state.orders, order)}), "orders")
        logger.info("Order updated", order_id=order.id)
        return order

    async def finalize_cart(self, client_id: str, cart: list[OrderItem]) -> Order:
        self._require(*STAFF)
        state = self.state
        if client_id:
            _find(state.clients, client_id, "Client")
        for item in cart:
            _find(state.products, item.product_id, "Product")

        orders, order = order_entry.finalize_cart(state.orders, client_id, cart)
        await self.commit(state.model_copy(update={"orders": orders}), "orders")
        return order

    async def set_order_status(self, order_id: str, status: OrderStatus) -> Order:
        self._require(*STAFF)
        state = self.state
        order = order_entry.advance_status(_find(state.orders, order_id, "Order"), status)
        await self.commit(state.model_copy(update={"orders": _replace(state.orders, order)}), "orders")
        logger.info("Order status changed", order_id=order_id, status=order.status.value)
        return order

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    async def record_payment(
        self,
        payment: Union[PaymentTransaction, Mapping[str, Any]],
    ) -> AllocationResult:
        """
        Store a payment and allocate it over the payer's open orders.

        The payment is written before the orders it pays down.
        """
        self._require(*STAFF)
        if not isinstance(payment, PaymentTransaction):
            payment = _build(PaymentTransaction, **{"id": generate_id("pay"), **payment})

        state = self.state
        code = payment.transaction_code.strip().upper()
        if any(p.transaction_code.strip().upper() == code for p in state.payments):
            raise DuplicateTransactionError(payment.transaction_code)

        result = apply_payment(payment, state.orders, state.clients)
        if result.client_id and not payment.client_id:
            payment = payment.model_copy(update={"client_id": result.client_id})

        new_state = state.model_copy(
            update={"payments": [*state.payments, payment], "orders": result.orders}
        )
        fields = ["payments", "orders"] if result.updated_order_ids else ["payments"]
        await self.commit(new_state, *fields)
        logger.info(
            "Payment recorded",
            payment_id=payment.id,
            transaction_code=payment.transaction_code,
            attributed=result.attributed,
        )
        return result

    async def record_mpesa_message(
        self,
        client_id: Optional[str],
        message: str,
    ) -> AllocationResult:
        self._require(*STAFF)
        client = _find(self.state.clients, client_id, "Client") if client_id else None
        return await self.record_payment(parse_mpesa_message(message, client))

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def get_shop_settings(self) -> ShopSettings:
        """Read the settings document, creating it with defaults on first read."""
        document = await self.repository.get_settings()
        if document is None:
            shop_settings = ShopSettings()
            await self.repository.set_settings(shop_settings.to_document())
            logger.info("Default shop settings created")
        else:
            try:
                shop_settings = ShopSettings.model_validate(document)
            except PydanticValidationError as e:
                raise PersistenceError(
                    "Stored shop settings are unreadable",
                    collection=SETTINGS_DOCUMENT,
                ) from e

        self._ref.state = self.state.model_copy(update={"shop_settings": shop_settings})
        return shop_settings

    async def update_shop_settings(self, **changes: Any) -> ShopSettings:
        self._require(*ADMIN)
        state = self.state
        updated = _apply_changes(state.shop_settings, changes)
        await self.commit(state.model_copy(update={"shop_settings": updated}), "shop_settings")
        logger.info("Shop settings updated", fields=sorted(changes))
        return updated

    # ------------------------------------------------------------------
    # Backup
    # ------------------------------------------------------------------

    async def export_data(self) -> dict[str, Any]:
        self._require(*ADMIN)
        document = backup.export_document(self.state)
        logger.info("Data exported", orders=len(document["orders"]))
        return document

    async def import_data(self, payload: Union[str, bytes, Mapping[str, Any]]) -> list[str]:
        """
        Replace collections from a backup document.

        Nothing is written unless every present key validates. Returns the
        state fields that were replaced.
        """
        self._require(*ADMIN)
        parsed = backup.parse_backup(payload)
        fields = list(parsed)
        await self.commit(self.state.model_copy(update=parsed), *fields)
        logger.info("Data imported", collections=fields)
        return fields

    async def factory_reset(self) -> ShopState:
        """Wipe every business collection and the settings; staff accounts are kept."""
        self._require(*ADMIN)
        users, auth_logs = self.state.users, self.state.auth_logs
        await self.repository.clear()
        self._ref.state = ShopState()
        await self.commit(ShopState(users=users, auth_logs=auth_logs), "users", "auth_logs")
        await self.get_shop_settings()
        logger.warning("Factory reset performed")
        return self.state

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def consolidated_summary(self, catalog_id: Optional[str] = None) -> list[ProductSummary]:
        return reports.consolidated_summary(self.state.orders, self.state.products, catalog_id)

    def dashboard_stats(self) -> DashboardStats:
        return reports.dashboard_stats(self.state.orders, self.state.payments)

    def catalog_payments(self, catalog_id: str) -> list[PaymentTransaction]:
        state = self.state
        return reports.catalog_payments(catalog_id, state.orders, state.products, state.payments)

    def invoice_message(
        self,
        order_id: str,
        kind: invoice.InvoiceKind,
        now: Optional[datetime] = None,
    ) -> str:
        state = self.state
        order = _find(state.orders, order_id, "Order")
        client = _find(state.clients, order.client_id, "Client")
        deadline = reports.product_catalog_deadline(order, state.products, state.catalogs, now)
        return invoice.render_invoice_message(
            order,
            client,
            state.products,
            kind,
            deadline,
            state.shop_settings,
            now,
        )
