"""Exception taxonomy for shopdesk.

Every failure the store reports upward is one of these; none of them is
fatal to the process.
"""


class ShopDeskError(Exception):
    """Base exception for all shopdesk errors."""

    status_code: int = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(ShopDeskError):
    """Raised when a required field is missing or invalid, before any mutation."""

    status_code = 400

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class NotFoundError(ShopDeskError):
    """Raised when a referenced entity id is absent."""

    status_code = 404

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class PersistenceError(ShopDeskError):
    """Raised when the persistence collaborator is unreachable or refuses a write.

    The collaborator's own message is kept verbatim.
    """

    status_code = 502

    def __init__(self, message: str, collection: str | None = None):
        self.collection = collection
        super().__init__(message)


class ImportPayloadError(ShopDeskError):
    """Raised when a backup document cannot be parsed or has the wrong shape."""

    status_code = 422


class AuthenticationError(ShopDeskError):
    """Raised on bad credentials or a role mismatch at login."""

    status_code = 401


class PermissionDeniedError(ShopDeskError):
    """Raised when the session's role may not perform a mutation."""

    status_code = 403

    def __init__(self, role: str | None, required: str):
        self.role = role
        self.required = required
        super().__init__(
            f"Access Denied: role '{role or 'No User'}' cannot perform this action, "
            f"'{required}' is required."
        )


class DuplicateTransactionError(ShopDeskError):
    """Raised when a payment's transaction code was already recorded."""

    status_code = 409

    def __init__(self, transaction_code: str):
        self.transaction_code = transaction_code
        super().__init__(f"Transaction code already used: {transaction_code}")
