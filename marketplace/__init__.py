"""
GoMarketplace cart store

This package contains:
- cart: line items, snapshot codec, storage layouts, CartStore, CartProvider
- db: Upstash Redis client
- config: environment settings
- logging: logger setup

Note: Imports are lazy so importing the package does not pull in the
Redis client until it is needed.
"""

__all__ = [
    "CartStore",
    "CartProvider",
    "use_cart",
    "get_redis",
]


def __getattr__(name):
    """Lazy attribute access."""
    if name == "CartStore":
        from marketplace.cart import CartStore
        return CartStore
    elif name == "CartProvider":
        from marketplace.cart import CartProvider
        return CartProvider
    elif name == "use_cart":
        from marketplace.cart import use_cart
        return use_cart
    elif name == "get_redis":
        from marketplace.db import get_redis
        return get_redis
    raise AttributeError(f"module 'marketplace' has no attribute '{name}'")
