"""
Cart error taxonomy.

Every error is reported to the caller; none of them is fatal to the process.
`StorageCorrupt` is the only one the cart manager recovers from by itself.
"""
from typing import Optional


class CartError(Exception):
    """Base class for cart errors."""
    
    code = "cart_error"
    
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
    
    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.message}


class ProductNotFound(CartError):
    """Referenced product does not exist in the product source."""
    
    code = "product_not_found"
    
    def __init__(self, product_id: str):
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id


class OutOfStock(CartError):
    """
    Product is stock-tracked and has zero available units.
    
    When raised from a quantity update the item has already been removed;
    `cart` then holds the committed cart after that removal.
    """
    
    code = "out_of_stock"
    
    def __init__(self, product_id: str, cart=None):
        super().__init__(f"Product {product_id} is out of stock")
        self.product_id = product_id
        self.cart = cart


class InsufficientStock(CartError):
    """
    Requested quantity exceeds available units.

    `remaining` is how many more units can be added when `incremental` is
    set, and the total number of units available otherwise.
    """

    code = "insufficient_stock"

    def __init__(self, product_id: str, remaining: int, incremental: bool = True):
        if incremental:
            message = f"Insufficient stock for product {product_id}. You can add {remaining} more"
        else:
            message = f"Insufficient stock for product {product_id}. Only {remaining} available"
        super().__init__(message)
        self.incremental = incremental
        self.product_id = product_id
        self.remaining = remaining
    
    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["remaining"] = self.remaining
        return detail


class StorageCorrupt(CartError):
    """Persisted cart record is unreadable."""
    
    code = "storage_corrupt"
    
    def __init__(self, key: str, reason: Optional[str] = None):
        message = f"Corrupt cart record at {key}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.key = key
        self.reason = reason
