"""
Cart service layer
Handles shopping cart business logic
"""

from typing import Iterable, Optional
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.attributes import set_committed_value
from sqlalchemy import select, update
import logging

from storefront.models import Cart, CartItem
from storefront.core.exceptions import (
    NotFoundException,
    ConflictException,
    InsufficientStockException
)
from storefront.services.catalog import ProductCatalog

logger = logging.getLogger(__name__)


def calculate_cart_total(items: Iterable[CartItem]) -> Decimal:
    """Sum of snapshot price times quantity over all lines"""
    return sum((item.price * item.quantity for item in items), Decimal("0.00"))


class CartService:
    """Shopping cart service"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.catalog = ProductCatalog(db)

    async def find_cart(self, user_id: int) -> Optional[Cart]:
        result = await self.db.execute(
            select(Cart)
            .options(selectinload(Cart.items).selectinload(CartItem.product))
            .where(Cart.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def claim(self, cart: Cart) -> None:
        """
        Bump the cart version if nobody else has since we read it.

        Raises:
            ConflictException: If another writer got there first
        """
        result = await self.db.execute(
            update(Cart)
            .where(Cart.id == cart.id, Cart.version == cart.version)
            .values(version=Cart.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.db.rollback()
            logger.warning(f"Concurrent modification of cart {cart.id}")
            raise ConflictException("Cart was modified by another request, please retry")
        set_committed_value(cart, "version", cart.version + 1)

    async def _commit(self, cart: Cart) -> Cart:
        cart.total_amount = calculate_cart_total(cart.items)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning(f"Integrity conflict while saving cart for user {cart.user_id}")
            raise ConflictException("Cart was modified by another request, please retry")
        return await self.find_cart(cart.user_id)

    async def get_cart(self, user_id: int) -> Cart:
        """
        Get the user's cart with items and product summaries

        Raises:
            NotFoundException: If the user has no cart
        """
        cart = await self.find_cart(user_id)
        if not cart:
            raise NotFoundException("Cart not found")
        return cart

    async def get_or_create_cart(self, user_id: int) -> Cart:
        cart = await self.find_cart(user_id)
        if cart:
            return cart

        self.db.add(Cart(user_id=user_id, total_amount=Decimal("0.00"), version=1))
        try:
            await self.db.commit()
        except IntegrityError:
            # Created concurrently by another request
            await self.db.rollback()
        return await self.get_cart(user_id)

    async def add_item(self, user_id: int, product_id: int, quantity: int) -> Cart:
        """
        Add item to cart, merging with an existing line for the same product

        Raises:
            NotFoundException: If product not found
            InsufficientStockException: If not enough stock
        """
        product = await self.catalog.get_by_id(product_id)
        if not product:
            raise NotFoundException("Product not found")

        if product.stock < quantity:
            raise InsufficientStockException(product.name, product.stock)

        cart = await self.get_or_create_cart(user_id)
        existing_item = next((item for item in cart.items if item.product_id == product_id), None)

        if existing_item:
            new_quantity = existing_item.quantity + quantity
            if new_quantity > product.stock:
                raise InsufficientStockException(product.name, product.stock)

            await self.claim(cart)
            existing_item.quantity = new_quantity
        else:
            await self.claim(cart)
            cart.items.append(
                CartItem(
                    product_id=product.id,
                    product=product,
                    quantity=quantity,
                    price=product.effective_price,
                )
            )

        logger.info(f"Added {quantity} x product {product_id} to cart of user {user_id}")
        return await self._commit(cart)

    async def update_item_quantity(self, user_id: int, item_id: int, quantity: int) -> Cart:
        """
        Overwrite the quantity of a cart line

        Raises:
            NotFoundException: If the line or its product is gone
            InsufficientStockException: If quantity exceeds stock
        """
        cart = await self.find_cart(user_id)
        if not cart:
            raise NotFoundException("Cart not found")

        cart_item = next((item for item in cart.items if item.id == item_id), None)
        if not cart_item:
            raise NotFoundException("Cart item not found")

        product = await self.catalog.get_by_id(cart_item.product_id)
        if not product:
            raise NotFoundException("Product not found")

        if quantity > product.stock:
            raise InsufficientStockException(product.name, product.stock)

        await self.claim(cart)
        cart_item.quantity = quantity

        return await self._commit(cart)

    async def remove_item(self, user_id: int, item_id: int) -> Cart:
        """Remove a line from the cart"""
        cart = await self.find_cart(user_id)
        if not cart:
            raise NotFoundException("Cart not found")

        cart_item = next((item for item in cart.items if item.id == item_id), None)
        if not cart_item:
            raise NotFoundException("Cart item not found")

        await self.claim(cart)
        cart.items.remove(cart_item)

        return await self._commit(cart)

    async def clear(self, user_id: int) -> Cart:
        """Remove every line and reset the total"""
        cart = await self.find_cart(user_id)
        if not cart:
            raise NotFoundException("Cart not found")

        await self.claim(cart)
        cart.items.clear()

        logger.info(f"Cart cleared for user {user_id}")
        return await self._commit(cart)
