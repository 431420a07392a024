"""
Cart snapshot codec.

A snapshot is the JSON form of the cart kept in the key-value store:
either one array of items under a single key, or one item object per key.
Each item carries exactly ``id``, ``title``, ``image_url``, ``price`` and
``quantity``.

Decoding is per record: an item that fails validation (or repeats an id
already seen) is dropped and logged, the rest of the cart survives. Only a
value that is not a JSON array at all is treated as a corrupted snapshot.
"""
import json
from typing import Any, Iterable, List, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from .models import Cart, LineItem
from marketplace.errors import SnapshotDecodeError
from marketplace.logging import get_logger, safe_for_log

logger = get_logger(__name__)

RawValue = Union[str, bytes]


class LineItemRecord(BaseModel):
    """Stored form of a line item, validated on load."""
    id: str = Field(min_length=1)
    title: str
    image_url: str
    price: float = Field(ge=0)
    quantity: int = Field(ge=1)

    def to_line_item(self) -> LineItem:
        return LineItem(
            id=self.id,
            title=self.title,
            image_url=self.image_url,
            price=self.price,
            quantity=self.quantity,
        )


_ARRAY_ADAPTER = TypeAdapter(List[Any])


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))


def _build_cart(items: Iterable[LineItem]) -> Cart:
    seen = set()
    ordered = []
    for item in items:
        if item.id in seen:
            logger.warning(f"Dropping duplicate cart item {safe_for_log(item.id)}")
            continue
        seen.add(item.id)
        ordered.append(item)
    return Cart(tuple(ordered))


def _valid_items(records: List[Any]) -> Iterable[LineItem]:
    for position, record in enumerate(records):
        try:
            yield LineItemRecord.model_validate(record).to_line_item()
        except ValidationError as e:
            logger.warning(f"Dropping stored cart item #{position}: {_first_error(e)}")


def encode_cart(cart: Cart) -> str:
    """Serialize the whole cart into a single snapshot value."""
    return json.dumps(cart.to_list())


def decode_cart(raw: Optional[RawValue]) -> Cart:
    """
    Decode a single-key snapshot.

    Args:
        raw: Stored value, or None when the key is absent

    Returns:
        Cart of every valid item, in stored order (empty when nothing is stored)

    Raises:
        SnapshotDecodeError: If the value is not a JSON array
    """
    if raw is None or raw in ("", b""):
        return Cart()
    try:
        records = _ARRAY_ADAPTER.validate_json(raw)
    except ValidationError as e:
        raise SnapshotDecodeError(_first_error(e)) from e
    return _build_cart(_valid_items(records))


def encode_item(item: LineItem) -> str:
    """Serialize one line item for the per-item layout."""
    return json.dumps(item.to_dict())


def decode_item(raw: RawValue) -> LineItem:
    """
    Decode one per-item value.

    Raises:
        SnapshotDecodeError: If the value is not a valid item object
    """
    try:
        record = LineItemRecord.model_validate_json(raw)
    except ValidationError as e:
        raise SnapshotDecodeError(_first_error(e)) from e
    return record.to_line_item()


def cart_from_items(items: Iterable[LineItem]) -> Cart:
    """Assemble decoded per-item values into a cart, keeping the first of any repeated id."""
    return _build_cart(items)
