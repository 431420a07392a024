"""Key-value storage for the cart: store backends and key layouts."""
from typing import Dict, Iterable, Optional, Protocol, Set, runtime_checkable

from marketplace.config import CartSettings, StorageLayout, get_settings
from marketplace.db import get_redis, RedisKeys
from marketplace.errors import PersistenceError, SnapshotDecodeError
from marketplace.logging import get_logger, safe_for_log

from .models import Cart
from .snapshot import cart_from_items, decode_cart, decode_item, encode_cart, encode_item

logger = get_logger(__name__)


@runtime_checkable
class Persistence(Protocol):
    """Async key-value store the cart is persisted to."""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...

    async def list_keys(self, prefix: str) -> Set[str]: ...


class InMemoryPersistence:
    """Dict-backed store for tests and local runs without Redis."""

    def __init__(self, data: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(data or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def remove(self, key: str) -> None:
        self.data.pop(key, None)

    async def list_keys(self, prefix: str) -> Set[str]:
        return {key for key in self.data if key.startswith(prefix)}


class RedisPersistence:
    """
    Cart store backed by Upstash Redis.

    Every client failure is re-raised as PersistenceError with the original
    exception chained; nothing is retried here.
    """

    def __init__(self, redis=None, ttl_seconds: int = 0):
        self._redis = redis  # Lazy initialization
        self.ttl_seconds = ttl_seconds

    @property
    def redis(self):
        """Get Redis client (lazy initialization)."""
        if self._redis is None:
            try:
                self._redis = get_redis()
            except ValueError as e:
                raise PersistenceError("connect", "redis", e) from e
        return self._redis

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.redis.get(key)
        except PersistenceError:
            raise
        except Exception as e:
            logger.error(f"Failed to read {safe_for_log(key)} from Redis: {e}")
            raise PersistenceError("get", key, e) from e

    async def set(self, key: str, value: str) -> None:
        try:
            if self.ttl_seconds > 0:
                await self.redis.set(key, value, ex=self.ttl_seconds)
            else:
                await self.redis.set(key, value)
        except PersistenceError:
            raise
        except Exception as e:
            logger.error(f"Failed to write {safe_for_log(key)} to Redis: {e}")
            raise PersistenceError("set", key, e) from e

    async def remove(self, key: str) -> None:
        try:
            await self.redis.delete(key)
        except PersistenceError:
            raise
        except Exception as e:
            logger.error(f"Failed to delete {safe_for_log(key)} from Redis: {e}")
            raise PersistenceError("remove", key, e) from e

    async def list_keys(self, prefix: str) -> Set[str]:
        try:
            keys = await self.redis.keys(RedisKeys.item_pattern(prefix))
        except PersistenceError:
            raise
        except Exception as e:
            logger.error(f"Failed to list {safe_for_log(prefix)}* in Redis: {e}")
            raise PersistenceError("list_keys", prefix, e) from e
        return {key for key in keys if key.startswith(prefix)}


def get_persistence(settings: Optional[CartSettings] = None) -> Persistence:
    """Redis when Upstash credentials are configured, otherwise in-memory."""
    settings = settings or get_settings()
    if settings.redis_configured:
        return RedisPersistence(ttl_seconds=settings.ttl_seconds)
    logger.warning("Upstash Redis not configured, cart will only live in memory")
    return InMemoryPersistence()


async def _discard(persistence: Persistence, key: str) -> None:
    """Remove a corrupted entry; a failure here only gets logged."""
    try:
        await persistence.remove(key)
    except PersistenceError as e:
        logger.warning(f"Could not remove corrupted cart entry: {e}")


class SingleKeyLayout:
    """Whole cart as one JSON array under ``key``."""

    def __init__(self, key: str):
        self.key = key

    async def load(self, persistence: Persistence) -> Cart:
        raw = await persistence.get(self.key)
        try:
            return decode_cart(raw)
        except SnapshotDecodeError as e:
            logger.warning(f"Discarding cart snapshot: {e}")
            await _discard(persistence, self.key)
            return Cart()

    async def save(self, persistence: Persistence, cart: Cart, product_ids: Iterable[str]) -> None:
        # The whole cart is one value, so every pending id is covered by this write
        await persistence.set(self.key, encode_cart(cart))

    async def clear(self, persistence: Persistence) -> None:
        await persistence.remove(self.key)


class PerItemLayout:
    """One JSON object per line item under ``prefix + id``."""

    def __init__(self, prefix: str):
        self.prefix = prefix

    def key_for(self, product_id: str) -> str:
        return RedisKeys.item_key(self.prefix, product_id)

    async def load(self, persistence: Persistence) -> Cart:
        items = []
        # Stores don't keep insertion order; sort for a stable cart
        for key in sorted(await persistence.list_keys(self.prefix)):
            raw = await persistence.get(key)
            if raw is None:
                continue
            try:
                item = decode_item(raw)
            except SnapshotDecodeError as e:
                logger.warning(f"Discarding cart entry {safe_for_log(key)}: {e}")
                await _discard(persistence, key)
                continue
            if key != self.key_for(item.id):
                logger.warning(f"Discarding cart entry {safe_for_log(key)}: id mismatch")
                await _discard(persistence, key)
                continue
            items.append(item)
        return cart_from_items(items)

    async def save(self, persistence: Persistence, cart: Cart, product_ids: Iterable[str]) -> None:
        """Write each listed item's key, or delete it when the item left the cart."""
        for product_id in dict.fromkeys(product_ids):
            item = cart.find(product_id)
            if item is None:
                await persistence.remove(self.key_for(product_id))
            else:
                await persistence.set(self.key_for(product_id), encode_item(item))

    async def clear(self, persistence: Persistence) -> None:
        for key in await persistence.list_keys(self.prefix):
            await persistence.remove(key)


def get_layout(settings: Optional[CartSettings] = None):
    """Key layout selected by CART_STORAGE_LAYOUT."""
    settings = settings or get_settings()
    if settings.layout == StorageLayout.PER_ITEM:
        return PerItemLayout(settings.key_prefix)
    return SingleKeyLayout(settings.storage_key)
