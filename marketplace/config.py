"""Cart store configuration read from the environment."""
import os
from dataclasses import dataclass
from enum import Enum

from marketplace.errors import ERROR_INVALID_LAYOUT


DEFAULT_STORAGE_KEY = "@GoMarketplace:cart"
DEFAULT_KEY_PREFIX = "@GoMarketplace:item:"


class StorageLayout(str, Enum):
    """How the cart is laid out in the key-value store."""
    SINGLE = "single"  # One key holding the whole cart
    PER_ITEM = "per_item"  # One key per product id


def parse_layout(value: str) -> StorageLayout:
    """Normalize a layout name, raising ValueError for unknown values."""
    try:
        return StorageLayout(value.strip().lower())
    except ValueError:
        choices = ", ".join(layout.value for layout in StorageLayout)
        raise ValueError(ERROR_INVALID_LAYOUT.format(choices=choices)) from None


@dataclass(frozen=True)
class CartSettings:
    """Settings for the cart store and its Redis backend."""
    redis_url: str = ""
    redis_token: str = ""
    storage_key: str = DEFAULT_STORAGE_KEY
    key_prefix: str = DEFAULT_KEY_PREFIX
    layout: StorageLayout = StorageLayout.SINGLE
    ttl_seconds: int = 0  # 0 keeps the cart until it is cleared

    @property
    def redis_configured(self) -> bool:
        return bool(self.redis_url and self.redis_token)


def get_settings() -> CartSettings:
    """
    Build settings from environment variables.

    Read on every call so tests and long-running processes pick up changes.

    Raises:
        ValueError: If CART_STORAGE_LAYOUT or CART_TTL_SECONDS is invalid
    """
    ttl_raw = os.environ.get("CART_TTL_SECONDS", "0") or "0"
    try:
        ttl_seconds = int(ttl_raw)
    except ValueError:
        raise ValueError(f"CART_TTL_SECONDS must be an integer, got {ttl_raw!r}") from None
    if ttl_seconds < 0:
        raise ValueError("CART_TTL_SECONDS must be >= 0")

    return CartSettings(
        redis_url=os.environ.get("UPSTASH_REDIS_REST_URL", ""),
        redis_token=os.environ.get("UPSTASH_REDIS_REST_TOKEN", ""),
        storage_key=os.environ.get("CART_STORAGE_KEY") or DEFAULT_STORAGE_KEY,
        key_prefix=os.environ.get("CART_KEY_PREFIX") or DEFAULT_KEY_PREFIX,
        layout=parse_layout(os.environ.get("CART_STORAGE_LAYOUT") or StorageLayout.SINGLE.value),
        ttl_seconds=ttl_seconds,
    )
