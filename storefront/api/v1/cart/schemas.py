"""
Cart schemas for request/response validation
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from decimal import Decimal

from storefront.models.product import ProductStatus


class CartItemCreate(BaseModel):
    """Schema for adding item to cart"""
    product_id: int = Field(..., gt=0)
    quantity: int = Field(1, gt=0)


class CartItemUpdate(BaseModel):
    """Schema for updating cart item"""
    quantity: int = Field(..., gt=0)


class CartProductSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price: Decimal
    discount_price: Optional[Decimal] = None
    stock: int
    status: ProductStatus


class CartItemResponse(BaseModel):
    """Schema for cart item response"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    quantity: int
    price: Decimal
    line_total: Decimal
    product: Optional[CartProductSummary] = None


class CartResponse(BaseModel):
    """Schema for complete cart response"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    total_amount: Decimal
    version: int
    items: List[CartItemResponse] = []


class CartEnvelope(BaseModel):
    cart: CartResponse
    message: str
