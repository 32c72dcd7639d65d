"""
Shared fakes for cart tests.
"""
import pytest
from typing import Dict, Optional

from app.models.cart import CartItem
from app.models.product import StockSnapshot
from app.services.cart_service import CartManager
from app.services.cart_storage import MemoryCartStorage


class FakeStockLookup:
    """Product source backed by a dict; counts lookups per product."""
    
    def __init__(self, products: Optional[Dict[str, StockSnapshot]] = None):
        self.products = products or {}
        self.calls = []
    
    def set_stock(self, product_id: str, stock: int, track_stock: bool = True, price: float = None, min_stock: int = 5):
        self.products[product_id] = StockSnapshot(
            product_id=product_id,
            track_stock=track_stock,
            available_stock=stock,
            min_stock=min_stock,
            price=price
        )
    
    async def get_stock(self, product_id: str) -> Optional[StockSnapshot]:
        self.calls.append(product_id)
        return self.products.get(product_id)


class RecordingStorage(MemoryCartStorage):
    """Memory storage that records every write and delete."""
    
    def __init__(self):
        super().__init__()
        self.writes = []
        self.deletes = []
    
    async def write(self, key: str, record: dict) -> None:
        self.writes.append(key)
        await super().write(key, record)
    
    async def delete(self, key: str) -> None:
        self.deletes.append(key)
        await super().delete(key)


def make_item(product_id: str = "mug", quantity: int = 1, price: float = 10.0, name: str = None) -> CartItem:
    return CartItem(
        product_id=product_id,
        name=name or product_id.title(),
        price=price,
        quantity=quantity,
        image=f"img_{product_id}"
    )


@pytest.fixture
def stock():
    return FakeStockLookup()


@pytest.fixture
def storage():
    return RecordingStorage()


@pytest.fixture
def manager(storage, stock):
    return CartManager(storage=storage, stock_lookup=stock)


@pytest.fixture
def new_item():
    return make_item
