"""
Shopping cart models
One cart per user, items snapshot the price at the time they were added
"""

from sqlalchemy import Column, Integer, Numeric, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from decimal import Decimal

from .base import BaseModel, TimestampedModel, VersionedModel


class Cart(BaseModel, TimestampedModel, VersionedModel):
    """Per-user shopping cart"""

    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    # Cached sum of item price * quantity
    total_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    # Relationships
    user = relationship("User", back_populates="cart")
    items = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.id",
    )

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="check_non_negative_cart_total"),
    )


class CartItem(BaseModel, TimestampedModel):
    """Shopping cart items"""

    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)

    # Quantity and price
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Numeric(10, 2), nullable=False)  # Price at time of adding

    # Relationships
    cart = relationship("Cart", back_populates="items")
    product = relationship("Product", back_populates="cart_items")

    # Constraints
    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="uq_cart_product"),
        CheckConstraint("quantity > 0", name="check_positive_cart_quantity"),
    )

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity
