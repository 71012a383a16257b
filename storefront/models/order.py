"""Order models"""

from sqlalchemy import Column, String, Numeric, Integer, Enum, ForeignKey, Index, Text, Boolean, CheckConstraint
from sqlalchemy.orm import relationship
import enum

from .base import BaseModel, TimestampedModel


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    ALIPAY = "alipay"
    WECHAT_PAY = "wechat_pay"
    CREDIT_CARD = "credit_card"
    BANK_TRANSFER = "bank_transfer"
    CASH_ON_DELIVERY = "cash_on_delivery"


class Order(BaseModel, TimestampedModel):
    """
    Completed checkout.

    Everything except status, payment_status and tracking_number is frozen
    at creation.
    """

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)

    # Order identification
    order_number = Column(String(50), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # Status
    status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False, index=True)
    payment_status = Column(Boolean, default=False, nullable=False)

    # Amounts
    total_amount = Column(Numeric(10, 2), nullable=False)

    # Payment
    payment_method = Column(Enum(PaymentMethod), nullable=False)

    # Delivery
    shipping_address = Column(Text, nullable=False)
    shipping_phone = Column(String(20), nullable=False)
    tracking_number = Column(String(100), nullable=True)

    # Additional info
    notes = Column(Text, nullable=True)

    # Relationships
    user = relationship("User", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="check_non_negative_order_total"),
        Index("idx_orders_user_status", "user_id", "status"),
    )


class OrderItem(BaseModel, TimestampedModel):
    """Individual items within an order, snapshotted at time of order"""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)

    product_name = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)

    # Relationships
    order = relationship("Order", back_populates="items")
    product = relationship("Product", back_populates="order_items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="check_positive_order_quantity"),
    )
