from typing import Optional
from pydantic import BaseModel, Field


class StockSnapshot(BaseModel):
    """Point-in-time read of a product's stock tracking flag and quantity."""
    product_id: str
    track_stock: bool = True
    available_stock: int = Field(default=0, ge=0)
    min_stock: int = Field(default=5, ge=0)
    price: Optional[float] = Field(default=None, ge=0)  # Catalog price, when the source has one
    
    class Config:
        json_schema_extra = {
            "example": {
                "product_id": "prod123",
                "track_stock": True,
                "available_stock": 3,
                "min_stock": 5,
                "price": 12.5
            }
        }
