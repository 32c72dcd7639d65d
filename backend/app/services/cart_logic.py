"""
Pure cart operations.

Every function here takes a Cart value and returns a new one; nothing is
mutated in place and nothing touches storage or the product source.
"""
from typing import List, Optional, Union
from pydantic import ValidationError

from app.core.exceptions import InsufficientStock, OutOfStock, StorageCorrupt
from app.models.cart import Cart, CartItem, CartRecord
from app.models.product import StockSnapshot
from app.schemas.cart import CartSummary


def empty_cart() -> Cart:
    """Canonical empty cart."""
    return Cart(items=[])


def find_item(cart: Cart, product_id: str) -> Optional[CartItem]:
    for item in cart.items:
        if item.product_id == product_id:
            return item
    return None


def quantity_in_cart(cart: Cart, product_id: str) -> int:
    item = find_item(cart, product_id)
    return item.quantity if item else 0


def merge_item(cart: Cart, item: CartItem) -> Cart:
    """Increment an existing entry or append a new one."""
    items: List[CartItem] = []
    merged = False
    for existing in cart.items:
        if existing.product_id == item.product_id:
            existing = existing.model_copy(
                update={"quantity": existing.quantity + item.quantity}
            )
            merged = True
        items.append(existing)
    if not merged:
        items.append(item.model_copy())
    return Cart(items=items)


def without_item(cart: Cart, product_id: str) -> Cart:
    return Cart(items=[i for i in cart.items if i.product_id != product_id])


def with_quantity(cart: Cart, product_id: str, quantity: int) -> Cart:
    """Set an absolute quantity on an existing entry."""
    items = [
        i.model_copy(update={"quantity": quantity}) if i.product_id == product_id else i
        for i in cart.items
    ]
    return Cart(items=items)


def check_add(snapshot: StockSnapshot, in_cart: int, requested: int) -> None:
    """
    Stock gate for adding `requested` units on top of `in_cart`.

    Raises:
        OutOfStock: tracked product with no units left
        InsufficientStock: the combined quantity exceeds available units
    """
    if not snapshot.track_stock:
        return
    available = snapshot.available_stock
    if available <= 0:
        raise OutOfStock(snapshot.product_id)
    if in_cart + requested > available:
        raise InsufficientStock(snapshot.product_id, max(0, available - in_cart))


def check_set(snapshot: StockSnapshot, requested: int) -> None:
    """Stock gate for setting an absolute quantity."""
    if not snapshot.track_stock:
        return
    available = snapshot.available_stock
    if available <= 0:
        raise OutOfStock(snapshot.product_id)
    if requested > available:
        raise InsufficientStock(snapshot.product_id, available, incremental=False)


def stock_problem(name: str, snapshot: Optional[StockSnapshot], quantity: int) -> Optional[str]:
    """Human-readable checkout problem for one cart line, or None if it is fine."""
    if snapshot is None:
        return name
    if not snapshot.track_stock:
        return None
    if snapshot.available_stock <= 0:
        return f"{name} (Out of stock)"
    if quantity > snapshot.available_stock:
        return f"{name} (Only {snapshot.available_stock} available)"
    return None


def serialize_cart(cart: Cart) -> dict:
    return {
        "items": [item.model_dump(by_alias=True) for item in cart.items],
        "total": cart.total,
    }


def deserialize_cart(raw: Union[dict, str, bytes], key: str = "") -> Cart:
    """
    Rebuild a cart from a persisted record.

    Extra fields are ignored. Missing or invalid required fields, unparsable
    JSON, and duplicate product ids raise StorageCorrupt.
    """
    try:
        if isinstance(raw, (str, bytes)):
            record = CartRecord.model_validate_json(raw)
        elif isinstance(raw, dict):
            record = CartRecord.model_validate(raw)
        else:
            raise StorageCorrupt(key, f"unexpected record type {type(raw).__name__}")
    except ValidationError as e:
        raise StorageCorrupt(key, f"{e.error_count()} validation error(s)") from e

    product_ids = [item.product_id for item in record.items]
    if len(set(product_ids)) != len(product_ids):
        raise StorageCorrupt(key, "duplicate product ids")

    return Cart(items=record.items)


def summarize_cart(cart: Cart, shipping_fee: float) -> CartSummary:
    """Checkout totals; shipping is only charged on a non-empty cart."""
    shipping = shipping_fee if cart.items else 0.0
    return CartSummary(
        subtotal=cart.total,
        shipping=shipping,
        total=cart.total + shipping,
        item_count=sum(item.quantity for item in cart.items),
        line_count=len(cart.items)
    )
