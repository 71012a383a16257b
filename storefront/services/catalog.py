"""
Product catalog service
Owns every write to product stock so the stock/status invariant holds
"""

from typing import Any, Dict, List, Optional
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, update, func
import logging

from storefront.models import Cart, CartItem, Category, Product, ProductStatus, resolve_stock_status
from storefront.core.exceptions import BadRequestException, NotFoundException, DuplicateResourceException

logger = logging.getLogger(__name__)


class ProductCatalog:
    """
    Product lookups and atomic stock adjustments.

    Stock is only changed through conditional UPDATE statements, so a
    concurrent writer can never drive it below zero. The caller owns the
    transaction; nothing here commits except the create_* helpers.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, product_id: int) -> Optional[Product]:
        """Fetch a product with its current database state"""
        result = await self.db.execute(
            select(Product)
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_or_404(self, product_id: int) -> Product:
        product = await self.get_by_id(product_id)
        if not product:
            raise NotFoundException("Product not found")
        return product

    async def reserve_stock(self, product_id: int, quantity: int) -> bool:
        """
        Take quantity units off an ACTIVE product and count them as sold.

        Returns False when the product no longer has enough stock or is not
        on sale; nothing is written in that case.
        """
        result = await self.db.execute(
            update(Product)
            .where(
                Product.id == product_id,
                Product.stock >= quantity,
                Product.status == ProductStatus.ACTIVE,
            )
            .values(
                stock=Product.stock - quantity,
                sold_count=Product.sold_count + quantity,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return False

        await self.sync_stock_status(product_id)
        return True

    async def release_stock(self, product_id: int, quantity: int) -> bool:
        """Return quantity units to stock and take them off the sold count"""
        result = await self.db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(
                stock=Product.stock + quantity,
                sold_count=Product.sold_count - quantity,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return False

        await self.sync_stock_status(product_id)
        return True

    async def adjust_stock(self, product_id: int, delta: int) -> bool:
        """
        Add delta (possibly negative) to stock.

        Returns False if the product is missing or the result would be
        negative.
        """
        result = await self.db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock + delta >= 0)
            .values(stock=Product.stock + delta)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.info(f"Stock adjustment of {delta} rejected for product {product_id}")
            return False

        await self.sync_stock_status(product_id)
        return True

    async def sync_stock_status(self, product_id: int) -> None:
        """Re-derive status from stock after a stock write"""
        await self.db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock == 0)
            .values(status=ProductStatus.OUT_OF_STOCK)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(
            update(Product)
            .where(
                Product.id == product_id,
                Product.stock > 0,
                Product.status == ProductStatus.OUT_OF_STOCK,
            )
            .values(status=ProductStatus.ACTIVE)
            .execution_options(synchronize_session=False)
        )

    async def create_category(self, name: str, description: Optional[str] = None) -> Category:
        existing = await self.db.execute(select(Category).where(Category.name == name))
        if existing.scalar_one_or_none():
            raise DuplicateResourceException("Category", "name", name)

        category = Category(name=name, description=description)
        self.db.add(category)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateResourceException("Category", "name", name)

        logger.info(f"Category created: {name}")
        return category

    async def create_product(
        self,
        category_id: int,
        name: str,
        price: Decimal,
        stock: int = 0,
        description: str = "",
        discount_price: Optional[Decimal] = None,
        status: ProductStatus = ProductStatus.ACTIVE,
    ) -> Product:
        """Create a product whose status already agrees with its stock"""
        if discount_price is not None and discount_price > price:
            raise BadRequestException("Discount price cannot exceed price")

        category = await self.db.get(Category, category_id)
        if not category:
            raise NotFoundException("Category not found")

        product = Product(
            category_id=category_id,
            name=name,
            description=description,
            price=price,
            discount_price=discount_price,
            stock=stock,
            status=resolve_stock_status(stock, status),
            sold_count=0,
            view_count=0,
        )
        self.db.add(product)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateResourceException("Product", "name", name)

        logger.info(f"Product created: {name} (stock {stock})")
        return await self.get_by_id(product.id)

    async def list_products(self) -> List[Product]:
        """Products currently on sale"""
        result = await self.db.execute(
            select(Product)
            .where(Product.status == ProductStatus.ACTIVE)
            .order_by(Product.id)
        )
        return list(result.scalars().all())

    async def update_product(self, product_id: int, changes: Dict[str, Any]) -> Product:
        """
        Apply a partial update, re-deriving status from the resulting stock

        Raises:
            NotFoundException: If the product or the new category is missing
            BadRequestException: If the discount would exceed the price
            DuplicateResourceException: If the name is taken in the category
        """
        product = await self.get_or_404(product_id)

        price = changes.get("price", product.price)
        discount_price = changes.get("discount_price", product.discount_price)
        if discount_price is not None and discount_price > price:
            raise BadRequestException("Discount price cannot exceed price")

        category_id = changes.get("category_id")
        if category_id is not None and not await self.db.get(Category, category_id):
            raise NotFoundException("Category not found")

        for field, value in changes.items():
            setattr(product, field, value)
        product.status = resolve_stock_status(product.stock, product.status)

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateResourceException("Product", "name", changes.get("name", product.name))

        logger.info(f"Product {product_id} updated: {', '.join(sorted(changes))}")
        return await self.get_by_id(product_id)

    async def delete_product(self, product_id: int) -> None:
        """
        Delete a product for good

        Cart lines for it go with it and the affected carts are re-totalled.
        Order items keep their snapshot with product_id set to NULL.
        """
        product = await self.get_or_404(product_id)

        cart_ids = (
            await self.db.execute(
                select(CartItem.cart_id).where(CartItem.product_id == product_id)
            )
        ).scalars().all()

        await self.db.delete(product)
        await self.db.flush()

        for cart_id in set(cart_ids):
            total = (
                await self.db.execute(
                    select(func.coalesce(func.sum(CartItem.price * CartItem.quantity), 0))
                    .where(CartItem.cart_id == cart_id)
                )
            ).scalar_one()
            await self.db.execute(
                update(Cart)
                .where(Cart.id == cart_id)
                .values(total_amount=total, version=Cart.version + 1)
                .execution_options(synchronize_session=False)
            )

        await self.db.commit()
        logger.info(f"Product {product_id} deleted, {len(set(cart_ids))} carts re-totalled")

    async def list_categories(self) -> List[Category]:
        result = await self.db.execute(select(Category).order_by(Category.name))
        return list(result.scalars().all())

    async def update_category(
        self,
        category_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None
    ) -> Category:
        category = await self.db.get(Category, category_id)
        if not category:
            raise NotFoundException("Category not found")

        if name and name != category.name:
            existing = await self.db.execute(select(Category).where(Category.name == name))
            if existing.scalar_one_or_none():
                raise DuplicateResourceException("Category", "name", name)
            category.name = name
        if description is not None:
            category.description = description

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateResourceException("Category", "name", name)

        return category

    async def delete_category(self, category_id: int) -> None:
        """
        Raises:
            NotFoundException: If the category is missing
            BadRequestException: If products still belong to it
        """
        category = await self.db.get(Category, category_id)
        if not category:
            raise NotFoundException("Category not found")

        products = (
            await self.db.execute(
                select(func.count(Product.id)).where(Product.category_id == category_id)
            )
        ).scalar_one()
        if products:
            raise BadRequestException("Category still has products", error_code="CATEGORY_NOT_EMPTY")

        await self.db.delete(category)
        await self.db.commit()
        logger.info(f"Category {category.name} deleted")
