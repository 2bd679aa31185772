"""
Backup documents: export the whole shop and validate a document for import.
"""
import json
from datetime import datetime, timezone
from typing import Any, Mapping, Union

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from shopdesk.core.errors import ImportPayloadError
from shopdesk.core.logging import get_logger
from shopdesk.schemas.catalog import Catalog
from shopdesk.schemas.client import Client
from shopdesk.schemas.order import Order
from shopdesk.schemas.payment import PaymentTransaction
from shopdesk.schemas.product import Product
from shopdesk.schemas.settings import ShopSettings
from shopdesk.schemas.state import ShopState

logger = get_logger(__name__)

# Document key -> (state attribute, validator)
BACKUP_KEYS: dict[str, tuple[str, TypeAdapter]] = {
    "catalogs": ("catalogs", TypeAdapter(list[Catalog])),
    "products": ("products", TypeAdapter(list[Product])),
    "clients": ("clients", TypeAdapter(list[Client])),
    "orders": ("orders", TypeAdapter(list[Order])),
    "payments": ("payments", TypeAdapter(list[PaymentTransaction])),
    "shopSettings": ("shop_settings", TypeAdapter(ShopSettings)),
}


def export_document(state: ShopState, now: datetime | None = None) -> dict[str, Any]:
    """Serialize every backed-up collection plus the settings object."""
    document: dict[str, Any] = {}
    for key, (attr, _) in BACKUP_KEYS.items():
        value = getattr(state, attr)
        if isinstance(value, list):
            document[key] = [record.to_document() for record in value]
        else:
            document[key] = value.to_document()
    document["exportedAt"] = (now or datetime.now(timezone.utc)).isoformat()
    return document


def parse_backup(payload: Union[str, bytes, Mapping[str, Any]]) -> dict[str, Any]:
    """
    Validate a backup document.

    Every recognised key present in the document is validated before
    anything is returned, so a single bad key rejects the whole import.
    Returns state attribute -> parsed value for the present keys only.

    Raises:
        ImportPayloadError: If the payload is not JSON, not an object, or any
            present key holds malformed records.
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as e:
            raise ImportPayloadError(f"Backup is not valid JSON: {e}") from e

    if not isinstance(payload, Mapping):
        raise ImportPayloadError("Backup must be a JSON object")

    parsed: dict[str, Any] = {}
    for key, (attr, adapter) in BACKUP_KEYS.items():
        if key not in payload:
            continue
        try:
            parsed[attr] = adapter.validate_python(payload[key])
        except PydanticValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            raise ImportPayloadError(
                f"Invalid '{key}' in backup at {location or key}: {first['msg']}"
            ) from e

    logger.debug("Backup document validated", keys=sorted(parsed))
    return parsed
