from typing import List, Optional
from pydantic import BaseModel, Field

from app.models.cart import CartItem


class AddToCartRequest(BaseModel):
    """Schema for adding a product to cart."""
    product_id: str = Field(alias="productId", min_length=1)
    name: str
    price: float = Field(ge=0)
    quantity: int = Field(gt=0)
    image: str = ""
    
    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "productId": "prod123",
                "name": "Ceramic Mug",
                "price": 12.5,
                "quantity": 2,
                "image": "img_abc123"
            }
        }
    
    def to_item(self) -> CartItem:
        return CartItem(
            product_id=self.product_id,
            name=self.name,
            price=self.price,
            quantity=self.quantity,
            image=self.image
        )


class UpdateCartItemRequest(BaseModel):
    """Schema for updating cart item quantity. Zero or less removes the item."""
    quantity: int
    
    class Config:
        json_schema_extra = {
            "example": {
                "quantity": 3
            }
        }


class CartSummary(BaseModel):
    """Checkout totals for a cart."""
    subtotal: float
    shipping: float
    total: float
    item_count: int
    line_count: int


class CartResponse(BaseModel):
    """Schema for cart response."""
    items: List[CartItem]
    total: float
    summary: CartSummary
    
    class Config:
        from_attributes = True


class CartValidation(BaseModel):
    """Result of re-checking every cart line against current stock."""
    valid: bool
    problems: List[str] = Field(default_factory=list)


class CartLineStock(BaseModel):
    """Stock status of one cart line: in_stock, low_stock, out_of_stock, not_tracked or not_found."""
    product_id: str = Field(alias="productId")
    name: str
    quantity: int
    status: str
    available_stock: Optional[int] = None
    
    class Config:
        populate_by_name = True
