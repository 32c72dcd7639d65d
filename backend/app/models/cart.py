from typing import List
from pydantic import BaseModel, Field, model_validator


class CartItem(BaseModel):
    """Item in a shopping cart."""
    product_id: str = Field(alias="productId", min_length=1)
    name: str
    price: float = Field(ge=0)
    quantity: int = Field(ge=1)
    image: str = ""
    
    class Config:
        populate_by_name = True
        extra = "ignore"
        json_schema_extra = {
            "example": {
                "productId": "prod123",
                "name": "Ceramic Mug",
                "price": 12.5,
                "quantity": 2,
                "image": "img_abc123"
            }
        }
    
    @property
    def line_total(self) -> float:
        return self.price * self.quantity


def calculate_total(items: List[CartItem]) -> float:
    """Sum of unit price times quantity over all items."""
    return sum(item.line_total for item in items)


class Cart(BaseModel):
    """
    Shopping cart owned by a single user.
    
    `total` is derived from `items` every time the model is built, so a
    value passed in (or read back from storage) is never trusted.
    """
    items: List[CartItem] = Field(default_factory=list)
    total: float = 0.0
    
    class Config:
        populate_by_name = True
        extra = "ignore"
    
    @model_validator(mode="after")
    def _recompute_total(self):
        self.total = calculate_total(self.items)
        return self


class CartRecord(BaseModel):
    """Shape of a persisted cart. Both fields are required."""
    items: List[CartItem]
    total: float
    
    class Config:
        extra = "ignore"
