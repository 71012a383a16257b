"""
Order schemas for request/response validation
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime
from decimal import Decimal

from storefront.models.order import OrderStatus, PaymentMethod


class OrderCreate(BaseModel):
    """Checkout request: the cart contents become the order"""
    payment_method: PaymentMethod
    shipping_address: str = Field(..., min_length=1, max_length=500)
    shipping_phone: str = Field(..., min_length=5, max_length=20)
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator('shipping_address', 'shipping_phone')
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('must not be blank')
        return v.strip()


class OrderStatusUpdate(BaseModel):
    """Admin status change"""
    status: OrderStatus
    tracking_number: Optional[str] = Field(None, max_length=100)


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: Optional[int] = None
    product_name: str
    quantity: int
    price: Decimal
    total_price: Decimal


class OrderResponse(BaseModel):
    """Order response schema"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    user_id: int
    status: OrderStatus
    payment_status: bool
    payment_method: PaymentMethod
    total_amount: Decimal
    shipping_address: str
    shipping_phone: str
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemResponse] = []


class OrderEnvelope(BaseModel):
    order: OrderResponse
    message: str


class OrderListResponse(BaseModel):
    orders: List[OrderResponse]
    total: int


class OrderStatsResponse(BaseModel):
    """Order statistics"""
    total_orders: int
    by_status: Dict[str, int]
    total_sales: Decimal
