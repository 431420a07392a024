"""
Cart Errors

Exception types raised by the cart store plus shared error messages,
kept in one place to avoid string duplication.
"""

# Usage errors
ERROR_NO_PROVIDER = "use_cart must be used within a CartProvider"
ERROR_NOT_READY = "Cart store is not initialized yet; await initialize() first"
ERROR_ASYNC_OBSERVER = "Cart observers must be plain callables; coroutine observers are never awaited"

# Storage errors
ERROR_STORAGE_UNAVAILABLE = "Cart storage unavailable"
ERROR_SNAPSHOT_CORRUPTED = "Cart snapshot is corrupted"

# Config errors
ERROR_INVALID_LAYOUT = "CART_STORAGE_LAYOUT must be one of: {choices}"


class CartError(Exception):
    """Base class for cart store errors."""


class CartContextError(CartError):
    """The cart surface was accessed outside of a CartProvider."""

    def __init__(self, message: str = ERROR_NO_PROVIDER):
        super().__init__(message)


class CartNotReadyError(CartError):
    """A mutation was issued before the initial load completed."""

    def __init__(self, message: str = ERROR_NOT_READY):
        super().__init__(message)


class PersistenceError(CartError):
    """A key-value store operation failed."""

    def __init__(self, operation: str, key: str, cause: Exception | None = None):
        self.operation = operation
        self.key = key
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{ERROR_STORAGE_UNAVAILABLE} ({operation} {key}){detail}")


class SnapshotDecodeError(CartError):
    """Stored cart data could not be decoded into line items."""

    def __init__(self, detail: str):
        super().__init__(f"{ERROR_SNAPSHOT_CORRUPTED}: {detail}")


__all__ = [
    "ERROR_NO_PROVIDER",
    "ERROR_NOT_READY",
    "ERROR_ASYNC_OBSERVER",
    "ERROR_STORAGE_UNAVAILABLE",
    "ERROR_SNAPSHOT_CORRUPTED",
    "ERROR_INVALID_LAYOUT",
    "CartError",
    "CartContextError",
    "CartNotReadyError",
    "PersistenceError",
    "SnapshotDecodeError",
]
