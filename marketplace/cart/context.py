"""
Explicit cart handle for presentation code.

    async with CartProvider() as cart:
        await cart.add_to_cart(product)
        ...
        use_cart().products  # anywhere below, in the same context
"""
from contextvars import ContextVar, Token
from typing import Optional

from marketplace.errors import CartContextError

from .service import CartStore
from .storage import Persistence

_current_store: ContextVar[Optional[CartStore]] = ContextVar("cart_store", default=None)


class CartProvider:
    """Initializes a CartStore and binds it to the current context."""

    def __init__(self, store: Optional[CartStore] = None, persistence: Optional[Persistence] = None):
        self.store = store if store is not None else CartStore(persistence=persistence)
        self._token: Optional[Token] = None

    async def __aenter__(self) -> CartStore:
        await self.store.initialize()
        self._token = _current_store.set(self.store)
        return self.store

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._token is not None:
            _current_store.reset(self._token)
            self._token = None


def use_cart() -> CartStore:
    """
    Get the cart bound by the enclosing CartProvider.

    Raises:
        CartContextError: If no provider is active
    """
    store = _current_store.get()
    if store is None:
        raise CartContextError()
    return store
