"""
Product stock lookups.

Stock is read fresh on every call; nothing is cached, so two reads for the
same product may disagree if the catalog changes in between.
"""
import logging
from typing import Optional, Protocol
from motor.motor_asyncio import AsyncIOMotorDatabase
from bson import ObjectId

from app.core.config import settings
from app.models.product import StockSnapshot

logger = logging.getLogger(__name__)


def stock_status(stock: int, min_stock: Optional[int] = None) -> str:
    """Classify a stock level as out_of_stock, low_stock or in_stock."""
    if min_stock is None:
        min_stock = settings.LOW_STOCK_THRESHOLD
    if stock <= 0:
        return "out_of_stock"
    if stock <= min_stock:
        return "low_stock"
    return "in_stock"


def snapshot_status(snapshot: StockSnapshot) -> str:
    if not snapshot.track_stock:
        return "not_tracked"
    return stock_status(snapshot.available_stock, snapshot.min_stock)


class StockLookup(Protocol):
    async def get_stock(self, product_id: str) -> Optional[StockSnapshot]:
        ...


class MongoStockLookup:
    """Reads stock fields from the products collection."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    @staticmethod
    def _product_filter(product_id: str) -> dict:
        if ObjectId.is_valid(product_id):
            return {"_id": ObjectId(product_id)}
        return {"_id": product_id}

    async def get_stock(self, product_id: str) -> Optional[StockSnapshot]:
        product = await self.db.products.find_one(self._product_filter(product_id))
        if not product:
            logger.info(f"Stock lookup: product {product_id} not found")
            return None

        # Null fields fall back the same way as missing ones
        price = product.get("price")
        return StockSnapshot(
            product_id=product_id,
            track_stock=bool(product.get("track_stock", True)),
            available_stock=max(0, int(product.get("stock") or 0)),
            min_stock=max(0, int(product.get("min_stock") or settings.LOW_STOCK_THRESHOLD)),
            price=float(price) if price is not None and price >= 0 else None
        )
