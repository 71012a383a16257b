"""Cart API routes"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.database import get_db
from storefront.core.security import get_current_user
from .schemas import CartItemCreate, CartItemUpdate, CartEnvelope, CartResponse
from .services import CartService

router = APIRouter()


def _envelope(cart, message: str) -> CartEnvelope:
    return CartEnvelope(cart=CartResponse.model_validate(cart), message=message)


@router.get("", response_model=CartEnvelope)
async def get_cart(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the current user's cart"""
    service = CartService(db)
    cart = await service.get_cart(current_user["id"])
    return _envelope(cart, "Cart retrieved")


@router.post("/items", response_model=CartEnvelope, status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    item_data: CartItemCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Add item to cart"""
    service = CartService(db)
    cart = await service.add_item(
        user_id=current_user["id"],
        product_id=item_data.product_id,
        quantity=item_data.quantity
    )
    return _envelope(cart, "Item added to cart")


@router.put("/items/{item_id}", response_model=CartEnvelope)
async def update_cart_item(
    item_id: int,
    update_data: CartItemUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update cart item quantity"""
    service = CartService(db)
    cart = await service.update_item_quantity(
        user_id=current_user["id"],
        item_id=item_id,
        quantity=update_data.quantity
    )
    return _envelope(cart, "Cart item updated")


@router.delete("/items/{item_id}", response_model=CartEnvelope)
async def remove_from_cart(
    item_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Remove item from cart"""
    service = CartService(db)
    cart = await service.remove_item(current_user["id"], item_id)
    return _envelope(cart, "Item removed from cart")


@router.delete("", response_model=CartEnvelope)
async def clear_cart(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Clear entire cart"""
    service = CartService(db)
    cart = await service.clear(current_user["id"])
    return _envelope(cart, "Cart cleared")
