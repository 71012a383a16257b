"""Product model and the stock/status invariant"""

from sqlalchemy import Column, String, Text, Numeric, Integer, Enum, ForeignKey, Index, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship
from decimal import Decimal
import enum

from .base import BaseModel, TimestampedModel


class ProductStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    OUT_OF_STOCK = "out_of_stock"


def resolve_stock_status(stock: int, status: ProductStatus) -> ProductStatus:
    """
    Status a product must carry for the given stock level.

    Zero stock always means OUT_OF_STOCK. Positive stock lifts an
    OUT_OF_STOCK product back to ACTIVE and leaves any other status alone.
    """
    if stock == 0:
        return ProductStatus.OUT_OF_STOCK
    if status == ProductStatus.OUT_OF_STOCK:
        return ProductStatus.ACTIVE
    return status


class Product(BaseModel, TimestampedModel):
    """Catalog product"""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)

    # Basic info
    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")

    # Pricing
    price = Column(Numeric(10, 2), nullable=False)
    discount_price = Column(Numeric(10, 2), nullable=True)

    # Inventory
    stock = Column(Integer, default=0, nullable=False)
    status = Column(Enum(ProductStatus), default=ProductStatus.ACTIVE, nullable=False, index=True)

    # Stats
    view_count = Column(Integer, default=0, nullable=False)
    sold_count = Column(Integer, default=0, nullable=False)

    # Relationships
    category = relationship("Category", back_populates="products")
    cart_items = relationship("CartItem", back_populates="product", cascade="all, delete-orphan")
    order_items = relationship("OrderItem", back_populates="product", passive_deletes=True)

    # Constraints
    __table_args__ = (
        CheckConstraint("price >= 0", name="check_non_negative_price"),
        CheckConstraint("stock >= 0", name="check_non_negative_stock"),
        CheckConstraint(
            "discount_price IS NULL OR (discount_price >= 0 AND discount_price <= price)",
            name="check_discount_not_above_price",
        ),
        UniqueConstraint("category_id", "name", name="uq_product_category_name"),
        Index("idx_products_category_status", "category_id", "status"),
    )

    @property
    def effective_price(self) -> Decimal:
        """Price charged right now: discount price when set, else list price"""
        if self.discount_price is not None:
            return self.discount_price
        return self.price

    @property
    def is_purchasable(self) -> bool:
        return self.status == ProductStatus.ACTIVE and self.stock > 0
