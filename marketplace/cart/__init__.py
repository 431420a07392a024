"""Cart package: models, snapshot codec, storage, store and context."""
from .models import LineItem, Cart
from .service import CartStore
from .storage import (
    Persistence,
    InMemoryPersistence,
    RedisPersistence,
    SingleKeyLayout,
    PerItemLayout,
    get_persistence,
    get_layout,
)
from .context import CartProvider, use_cart

__all__ = [
    "LineItem",
    "Cart",
    "CartStore",
    "Persistence",
    "InMemoryPersistence",
    "RedisPersistence",
    "SingleKeyLayout",
    "PerItemLayout",
    "get_persistence",
    "get_layout",
    "CartProvider",
    "use_cart",
]
