"""Cart store: in-memory cart kept in sync with a key-value store."""
import asyncio
import inspect
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple

from marketplace.errors import CartNotReadyError, ERROR_ASYNC_OBSERVER, PersistenceError
from marketplace.logging import get_logger, safe_for_log
from marketplace.money import to_number

from .models import Cart, LineItem
from .storage import Persistence, get_layout, get_persistence

logger = get_logger(__name__)

Observer = Callable[[Cart], None]


class CartStore:
    """
    Holds the session cart and persists every change.

    Flow for each mutation:
    1. Build a new Cart from the current one (carts are immutable)
    2. Swap it in and notify observers
    3. Write it to persistence, together with any ids a previous write missed

    Steps 1-2 run without awaiting, so the swap is atomic for the event loop.
    A failed write is not retried on its own and the in-memory cart is not
    rolled back; ``dirty`` stays True until every id that missed a write has
    been written again. Writes from overlapping calls may land out of order,
    so callers should await each mutation before issuing the next.

    Usage:
        store = CartStore()
        await store.initialize()
        await store.add_to_cart({"id": "a", "title": "T", "image_url": "u", "price": 10})
        await store.increment("a")
    """

    def __init__(self, persistence: Optional[Persistence] = None, layout=None):
        self.persistence = persistence if persistence is not None else get_persistence()
        self.layout = layout if layout is not None else get_layout()
        self._cart = Cart()
        self._observers: List[Observer] = []
        self._ready = False
        self._loading: Optional[asyncio.Future] = None
        self._pending: FrozenSet[str] = frozenset()
        self.last_persist_error: Optional[Exception] = None

    @property
    def cart(self) -> Cart:
        return self._cart

    @property
    def products(self) -> Tuple[LineItem, ...]:
        """Current line items, in cart order."""
        return self._cart.items

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def dirty(self) -> bool:
        """True while some change failed to reach the store and memory is ahead of it."""
        return self.last_persist_error is not None

    @property
    def pending_ids(self) -> FrozenSet[str]:
        """Product ids whose stored state may lag behind memory."""
        return self._pending

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """
        Register a callback that receives every new cart.

        Observers are called synchronously; coroutine functions are refused
        because nothing would await them.

        Returns:
            Function that removes the observer again

        Raises:
            TypeError: If observer is a coroutine function
        """
        if inspect.iscoroutinefunction(observer):
            raise TypeError(ERROR_ASYNC_OBSERVER)
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _publish(self, cart: Cart) -> None:
        self._cart = cart
        for observer in list(self._observers):
            try:
                result = observer(cart)
            except Exception as e:
                logger.warning(f"Cart observer {observer!r} failed: {e}", exc_info=True)
                continue
            if inspect.iscoroutine(result):
                result.close()
                logger.warning(f"Cart observer {observer!r} returned a coroutine; {ERROR_ASYNC_OBSERVER}")

    async def initialize(self) -> None:
        """
        Load the persisted cart once.

        Concurrent callers share a single load. A missing, corrupted or
        unreadable snapshot leaves the cart empty; load problems are logged
        and never raised.
        """
        if self._ready:
            return
        if self._loading is None:
            self._loading = asyncio.ensure_future(self._load())
        # One cancelled caller must not cancel the load for the others
        await asyncio.shield(self._loading)

    async def _load(self) -> None:
        try:
            cart = await self.layout.load(self.persistence)
        except PersistenceError as e:
            logger.warning(f"Could not load cart, starting empty: {e}")
            cart = Cart()

        self._ready = True
        logger.info(f"Cart loaded with {len(cart)} item(s)")
        self._publish(cart)

    def _ensure_ready(self) -> None:
        if not self._ready:
            raise CartNotReadyError()

    async def _write(self, ids: FrozenSet[str], write) -> None:
        # Registered before the await so overlapping calls carry these ids too
        self._pending = self._pending | ids
        try:
            await write()
        except PersistenceError as e:
            self.last_persist_error = e
            logger.error(
                f"Cart not persisted, {len(self._pending)} item(s) ahead of storage: {e}"
            )
            raise
        self._pending = self._pending - ids
        if not self._pending:
            self.last_persist_error = None

    async def _persist(self, cart: Cart, product_id: str) -> None:
        ids = self._pending | {product_id}
        await self._write(ids, lambda: self.layout.save(self.persistence, cart, ids))

    async def _apply(self, cart: Cart, product_id: str) -> None:
        if cart is self._cart:
            logger.debug(f"Cart item {safe_for_log(product_id)} not found, nothing to do")
            return
        self._publish(cart)
        await self._persist(cart, product_id)

    async def add_to_cart(self, product: Mapping[str, Any]) -> None:
        """
        Add one unit of a product to the cart.

        Args:
            product: Mapping with id, title, image_url and price

        Raises:
            CartNotReadyError: If called before initialize()
            PersistenceError: If the write fails (cart stays updated in memory)
        """
        self._ensure_ready()
        await self._apply(self._cart.add(product), product["id"])

    async def increment(self, product_id: str) -> None:
        """Add one unit of an item already in the cart. Unknown ids are ignored."""
        self._ensure_ready()
        await self._apply(self._cart.increment(product_id), product_id)

    async def decrement(self, product_id: str) -> None:
        """Remove one unit; the item leaves the cart at zero. Unknown ids are ignored."""
        self._ensure_ready()
        await self._apply(self._cart.decrement(product_id), product_id)

    async def clear(self) -> None:
        """Empty the cart and drop its persisted snapshot."""
        self._ensure_ready()
        removed = frozenset(item.id for item in self._cart)
        self._publish(Cart())
        await self._write(removed, lambda: self.layout.clear(self.persistence))

    def summary(self) -> Dict[str, Any]:
        """Plain-dict view of the cart for presentation code."""
        cart = self._cart
        if cart.is_empty:
            return {
                "is_empty": True,
                "total_items": 0,
                "subtotal": 0,
                "items": [],
            }
        return {
            "is_empty": False,
            "total_items": cart.total_items,
            "subtotal": to_number(cart.subtotal),
            "items": [
                {**item.to_dict(), "total": to_number(item.total_price)}
                for item in cart.items
            ],
        }
