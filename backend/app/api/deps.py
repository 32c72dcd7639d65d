from typing import Optional
from fastapi import Depends, Header, HTTPException, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.database import get_database
from app.services.cart_service import CartManager
from app.services.cart_storage import MongoCartStorage
from app.services.stock_service import MongoStockLookup


async def get_db() -> AsyncIOMotorDatabase:
    """Dependency to get database instance."""
    return get_database()


async def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None)
) -> str:
    """
    Dependency to get the id of the authenticated user.
    
    Authentication happens upstream; the auth layer forwards the user id
    in the X-User-Id header.
    
    Raises:
        HTTPException: If no user id was forwarded
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials"
        )
    return x_user_id


async def get_cart_manager(
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> CartManager:
    """Dependency to get a cart manager bound to the database."""
    return CartManager(
        storage=MongoCartStorage(db),
        stock_lookup=MongoStockLookup(db)
    )
