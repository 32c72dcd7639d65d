"""
Durable per-user cart slots.

A slot is addressed by a string key and holds one serialized cart. Writes
overwrite the whole slot.
"""
import json
import logging
from datetime import datetime
from typing import Dict, Optional, Protocol, Union
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.config import settings

logger = logging.getLogger(__name__)


def cart_key(user_id: str) -> str:
    """Storage key for a user's cart."""
    return f"{settings.CART_KEY_PREFIX}{user_id}"


class CartStorage(Protocol):
    async def read(self, key: str) -> Optional[Union[dict, str]]:
        ...

    async def write(self, key: str, record: dict) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


class MongoCartStorage:
    """Cart slots stored as one MongoDB document per key."""

    def __init__(self, db: AsyncIOMotorDatabase, collection: Optional[str] = None):
        self.collection = db[collection or settings.CART_COLLECTION]

    async def read(self, key: str) -> Optional[dict]:
        document = await self.collection.find_one({"_id": key})
        if not document:
            return None
        # A slot without a cart field is handed on as-is and rejected on decode
        return document.get("cart", document)

    async def write(self, key: str, record: dict) -> None:
        await self.collection.replace_one(
            {"_id": key},
            {"_id": key, "cart": record, "updated_at": datetime.utcnow()},
            upsert=True
        )
        logger.debug(f"Wrote cart slot {key}")

    async def delete(self, key: str) -> None:
        await self.collection.delete_one({"_id": key})
        logger.debug(f"Deleted cart slot {key}")


class MemoryCartStorage:
    """In-memory slots for local development and tests."""

    def __init__(self):
        self._slots: Dict[str, str] = {}

    async def read(self, key: str) -> Optional[str]:
        return self._slots.get(key)

    async def write(self, key: str, record: dict) -> None:
        self._slots[key] = json.dumps(record)

    async def delete(self, key: str) -> None:
        self._slots.pop(key, None)

    def put_raw(self, key: str, raw: str) -> None:
        """Store an arbitrary payload, bypassing serialization."""
        self._slots[key] = raw

    def __contains__(self, key: str) -> bool:
        return key in self._slots
