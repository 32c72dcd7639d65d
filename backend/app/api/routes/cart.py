from typing import List
from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_cart_manager, get_current_user_id
from app.core.config import settings
from app.core.exceptions import CartError, ProductNotFound
from app.models.cart import Cart
from app.schemas.cart import (
    AddToCartRequest,
    UpdateCartItemRequest,
    CartResponse,
    CartLineStock,
    CartValidation
)
from app.services.cart_logic import summarize_cart
from app.services.cart_service import CartManager

router = APIRouter()


def _cart_response(cart: Cart) -> CartResponse:
    return CartResponse(
        items=cart.items,
        total=cart.total,
        summary=summarize_cart(cart, settings.SHIPPING_FEE)
    )


def _http_error(error: CartError) -> HTTPException:
    if isinstance(error, ProductNotFound):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error.to_detail()
        )
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=error.to_detail()
    )


@router.get("", response_model=CartResponse)
async def get_cart(
    user_id: str = Depends(get_current_user_id),
    manager: CartManager = Depends(get_cart_manager)
):
    """
    Get the current user's cart.

    Returns the items, the item total and the checkout summary
    (subtotal, shipping, total, item count).
    """
    return _cart_response(await manager.load(user_id))


@router.post("/items", response_model=CartResponse, status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    request: AddToCartRequest,
    user_id: str = Depends(get_current_user_id),
    manager: CartManager = Depends(get_cart_manager)
):
    """
    Add a product to the cart.

    Validates:
    - Product exists
    - Sufficient stock available for the combined quantity

    If product already in cart, increases quantity.
    """
    try:
        cart = await manager.add_item(user_id, request.to_item())
    except CartError as e:
        raise _http_error(e)
    return _cart_response(cart)


@router.put("/items/{product_id}", response_model=CartResponse)
async def update_cart_item(
    product_id: str,
    request: UpdateCartItemRequest,
    user_id: str = Depends(get_current_user_id),
    manager: CartManager = Depends(get_cart_manager)
):
    """
    Update the quantity of an item in the cart.

    A quantity below 1 removes the item. A sold-out product is removed
    from the cart and reported as out of stock.
    """
    try:
        cart = await manager.update_quantity(user_id, product_id, request.quantity)
    except CartError as e:
        raise _http_error(e)
    return _cart_response(cart)


@router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_from_cart(
    product_id: str,
    user_id: str = Depends(get_current_user_id),
    manager: CartManager = Depends(get_cart_manager)
):
    """
    Remove an item from the cart.
    """
    return _cart_response(await manager.remove_item(user_id, product_id))


@router.delete("", response_model=CartResponse)
async def clear_cart(
    user_id: str = Depends(get_current_user_id),
    manager: CartManager = Depends(get_cart_manager)
):
    """
    Clear all items from the cart.
    """
    return _cart_response(await manager.clear(user_id))


@router.post("/validate", response_model=CartValidation)
async def validate_cart(
    user_id: str = Depends(get_current_user_id),
    manager: CartManager = Depends(get_cart_manager)
):
    """
    Check every cart item against current stock before checkout.

    Does not modify the cart.
    """
    return await manager.validate_all(user_id)


@router.get("/stock", response_model=List[CartLineStock])
async def get_cart_stock(
    user_id: str = Depends(get_current_user_id),
    manager: CartManager = Depends(get_cart_manager)
):
    """
    Get the stock status of every item in the cart.

    Status is one of in_stock, low_stock, out_of_stock, not_tracked
    or not_found.
    """
    return await manager.stock_report(user_id)
