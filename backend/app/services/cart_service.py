"""
Cart manager: stock-aware cart mutations with per-user persistence.
"""
import inspect
import logging
from typing import Awaitable, Callable, List, Optional, Union

from app.core.config import settings
from app.core.exceptions import OutOfStock, ProductNotFound, StorageCorrupt
from app.models.cart import Cart, CartItem
from app.models.product import StockSnapshot
from app.schemas.cart import CartLineStock, CartSummary, CartValidation
from app.services.cart_logic import (
    check_add,
    check_set,
    deserialize_cart,
    empty_cart,
    find_item,
    merge_item,
    quantity_in_cart,
    serialize_cart,
    stock_problem,
    summarize_cart,
    with_quantity,
    without_item
)
from app.services.cart_storage import CartStorage, cart_key
from app.services.stock_service import StockLookup, snapshot_status

logger = logging.getLogger(__name__)

CartListener = Callable[[Optional[str], Cart], Union[None, Awaitable[None]]]


class CartManager:
    """
    Owns the cart of the active user and keeps it in sync with storage.

    Every operation reads the persisted cart, applies one change, and writes
    the whole cart back before returning. Stock is checked with a fresh lookup
    at call time and is not re-checked at write time, so a concurrent stock
    change between the two can slip through.

    Subscribers are called with ``(user_id, cart)`` after each committed
    change to the active user's cart and after every user switch.
    """

    def __init__(self, storage: CartStorage, stock_lookup: StockLookup):
        self.storage = storage
        self.stock_lookup = stock_lookup
        self._active_user_id: Optional[str] = None
        self._current: Cart = empty_cart()
        self._switch_target: Optional[str] = None
        self._listeners: List[CartListener] = []

    @property
    def active_user_id(self) -> Optional[str]:
        return self._active_user_id

    @property
    def current_cart(self) -> Cart:
        """Latest committed cart of the active user."""
        return self._current

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Register a listener and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _notify(self, user_id: Optional[str], cart: Cart) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(user_id, cart)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Cart listener failed for user {user_id}")

    async def switch_user(self, user_id: Optional[str]) -> Cart:
        """
        Make `user_id` the active user.

        The previous in-memory cart is dropped without being written anywhere.
        Passing None signs out and leaves an empty cart. Until the new user's
        cart has loaded, the previous user and cart stay observable.
        """
        self._switch_target = user_id
        cart = await self.load(user_id) if user_id else empty_cart()
        if self._switch_target != user_id:
            # Another switch happened while this load was pending
            return cart
        self._active_user_id = user_id
        self._current = cart
        logger.info(f"Active cart user switched to {user_id}")
        await self._notify(user_id, cart)
        return cart

    async def _commit(self, user_id: str, cart: Cart) -> Cart:
        await self.storage.write(cart_key(user_id), serialize_cart(cart))
        if user_id == self._active_user_id:
            self._current = cart
            await self._notify(user_id, cart)
        return cart

    async def _lookup(self, product_id: str) -> StockSnapshot:
        snapshot = await self.stock_lookup.get_stock(product_id)
        if snapshot is None:
            raise ProductNotFound(product_id)
        return snapshot

    async def load(self, user_id: str) -> Cart:
        """Persisted cart for a user, or an empty cart if none is readable."""
        key = cart_key(user_id)
        raw = await self.storage.read(key)
        if raw is None:
            return empty_cart()
        try:
            return deserialize_cart(raw, key)
        except StorageCorrupt as e:
            logger.warning(f"Discarding unreadable cart for user {user_id}: {e.message}")
            return empty_cart()

    async def add_item(self, user_id: str, item: CartItem) -> Cart:
        """
        Add an item, merging with an existing line for the same product.

        The unit price comes from the product source when it reports one.

        Raises:
            ProductNotFound: product is not in the catalog
            OutOfStock: tracked product has no units left
            InsufficientStock: combined quantity exceeds available stock
        """
        snapshot = await self._lookup(item.product_id)
        if snapshot.price is not None and snapshot.price != item.price:
            # The catalog price wins over whatever the caller sent
            item = item.model_copy(update={"price": snapshot.price})
        cart = await self.load(user_id)
        check_add(snapshot, quantity_in_cart(cart, item.product_id), item.quantity)

        updated = await self._commit(user_id, merge_item(cart, item))
        logger.info(f"Added {item.quantity} x {item.product_id} to cart of user {user_id}")
        return updated

    async def remove_item(self, user_id: str, product_id: str) -> Cart:
        """Remove a product's line. Removing an absent product is a no-op."""
        cart = await self.load(user_id)
        updated = await self._commit(user_id, without_item(cart, product_id))
        logger.info(f"Removed {product_id} from cart of user {user_id}")
        return updated

    async def update_quantity(self, user_id: str, product_id: str, quantity: int) -> Cart:
        """
        Set the absolute quantity of a line.

        A quantity below 1 removes the line. When the product turns out to have
        no stock left the line is removed as well and OutOfStock is raised with
        the committed cart attached.

        Raises:
            ProductNotFound: product is not in the catalog
            OutOfStock: tracked product has no units left
            InsufficientStock: requested quantity exceeds available stock
        """
        if quantity < 1:
            return await self.remove_item(user_id, product_id)

        cart = await self.load(user_id)
        if find_item(cart, product_id) is None:
            return cart

        snapshot = await self._lookup(product_id)
        try:
            check_set(snapshot, quantity)
        except OutOfStock as e:
            e.cart = await self._commit(user_id, without_item(cart, product_id))
            logger.info(f"Removed sold-out {product_id} from cart of user {user_id}")
            raise

        updated = await self._commit(user_id, with_quantity(cart, product_id, quantity))
        logger.info(f"Set {product_id} quantity to {quantity} in cart of user {user_id}")
        return updated

    async def clear(self, user_id: str) -> Cart:
        """Erase the persisted cart and return the empty cart."""
        await self.storage.delete(cart_key(user_id))
        cart = empty_cart()
        if user_id == self._active_user_id:
            self._current = cart
            await self._notify(user_id, cart)
        logger.info(f"Cleared cart of user {user_id}")
        return cart

    async def validate_all(self, user_id: str) -> CartValidation:
        """Re-check every line against current stock without writing anything."""
        cart = await self.load(user_id)
        problems: List[str] = []

        for item in cart.items:
            try:
                snapshot = await self.stock_lookup.get_stock(item.product_id)
            except Exception as e:
                logger.warning(f"Stock lookup failed for {item.product_id}: {e}")
                snapshot = None

            problem = stock_problem(item.name, snapshot, item.quantity)
            if problem:
                problems.append(problem)

        return CartValidation(valid=not problems, problems=problems)

    async def summary(self, user_id: str) -> CartSummary:
        cart = await self.load(user_id)
        return summarize_cart(cart, settings.SHIPPING_FEE)

    async def stock_report(self, user_id: str) -> List[CartLineStock]:
        """Current stock status of every cart line, in cart order."""
        cart = await self.load(user_id)
        report: List[CartLineStock] = []

        for item in cart.items:
            snapshot = await self.stock_lookup.get_stock(item.product_id)
            if snapshot is None:
                status, available = "not_found", None
            else:
                status = snapshot_status(snapshot)
                available = snapshot.available_stock if snapshot.track_stock else None
            report.append(CartLineStock(
                product_id=item.product_id,
                name=item.name,
                quantity=item.quantity,
                status=status,
                available_stock=available
            ))

        return report
