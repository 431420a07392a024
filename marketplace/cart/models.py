"""Cart models: immutable line items and cart values with Decimal pricing."""
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Iterator, Mapping, Optional, Tuple

from marketplace.money import as_price, line_total, to_cents, to_number


@dataclass(frozen=True)
class LineItem:
    """Single product entry in the cart."""
    id: str
    title: str
    image_url: str
    price: Decimal
    quantity: int = 1

    def __post_init__(self):
        # Normalize numeric fields
        object.__setattr__(self, "price", as_price(self.price))
        object.__setattr__(self, "quantity", int(self.quantity))

    @property
    def total_price(self) -> Decimal:
        """Total price for all units."""
        return line_total(self.price, self.quantity)

    def with_quantity(self, quantity: int) -> "LineItem":
        return replace(self, quantity=quantity)

    def to_dict(self) -> dict:
        """Convert to the serialized item format."""
        return {
            "id": self.id,
            "title": self.title,
            "image_url": self.image_url,
            "price": to_number(self.price),
            "quantity": self.quantity,
        }

    @classmethod
    def from_product(cls, product: Mapping[str, Any]) -> "LineItem":
        """New line item with quantity 1 from a catalog product."""
        return cls(
            id=product["id"],
            title=product["title"],
            image_url=product["image_url"],
            price=product["price"],
            quantity=1,
        )


@dataclass(frozen=True)
class Cart:
    """
    Ordered collection of line items, unique by id.

    Every update returns a new Cart; instances are never modified in place,
    so a published cart stays valid after later mutations.
    """
    items: Tuple[LineItem, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))

    def __iter__(self) -> Iterator[LineItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __contains__(self, product_id: object) -> bool:
        return self.find(product_id) is not None

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def total_items(self) -> int:
        """Total number of units in cart."""
        return sum(item.quantity for item in self.items)

    @property
    def subtotal(self) -> Decimal:
        """Sum of line totals."""
        return to_cents(sum((item.total_price for item in self.items), Decimal("0")))

    def find(self, product_id: object) -> Optional[LineItem]:
        return next((item for item in self.items if item.id == product_id), None)

    def _index(self, product_id: str) -> int:
        for index, item in enumerate(self.items):
            if item.id == product_id:
                return index
        return -1

    def _replace_at(self, index: int, item: Optional[LineItem]) -> "Cart":
        head, tail = self.items[:index], self.items[index + 1:]
        if item is None:
            return Cart(head + tail)
        return Cart(head + (item,) + tail)

    def add(self, product: Mapping[str, Any]) -> "Cart":
        """
        Add one unit of a product.

        An existing entry keeps its stored title, image and price and only
        gains a unit; a new product is appended with quantity 1.
        """
        index = self._index(product["id"])
        if index < 0:
            return Cart(self.items + (LineItem.from_product(product),))
        existing = self.items[index]
        return self._replace_at(index, existing.with_quantity(existing.quantity + 1))

    def increment(self, product_id: str) -> "Cart":
        """One more unit of an item. Unknown ids return the cart unchanged."""
        index = self._index(product_id)
        if index < 0:
            return self
        item = self.items[index]
        return self._replace_at(index, item.with_quantity(item.quantity + 1))

    def decrement(self, product_id: str) -> "Cart":
        """One less unit of an item; the item is dropped when it reaches zero."""
        index = self._index(product_id)
        if index < 0:
            return self
        item = self.items[index]
        quantity = item.quantity - 1
        if quantity <= 0:
            return self._replace_at(index, None)
        return self._replace_at(index, item.with_quantity(quantity))

    def to_list(self) -> list:
        """Convert to the serialized snapshot list."""
        return [item.to_dict() for item in self.items]
