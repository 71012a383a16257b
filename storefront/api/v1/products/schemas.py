"""
Product and category schemas
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional
from decimal import Decimal

from storefront.models.product import ProductStatus


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None


class ProductCreate(BaseModel):
    """Schema for creating a product"""
    category_id: int = Field(..., gt=0)
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    discount_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(0, ge=0)
    status: ProductStatus = ProductStatus.ACTIVE

    @model_validator(mode='after')
    def validate_discount(self):
        if self.discount_price is not None and self.discount_price > self.price:
            raise ValueError("discount_price must not exceed price")
        return self


class ProductUpdate(BaseModel):
    """Partial product update; only fields sent are changed"""
    category_id: Optional[int] = Field(None, gt=0)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    discount_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    stock: Optional[int] = Field(None, ge=0)
    status: Optional[ProductStatus] = None

    @model_validator(mode='after')
    def validate_discount(self):
        if (
            self.price is not None
            and self.discount_price is not None
            and self.discount_price > self.price
        ):
            raise ValueError("discount_price must not exceed price")
        return self

    def changes(self) -> dict:
        """Fields the client sent; null only clears the discount"""
        return {
            field: value
            for field, value in self.model_dump(exclude_unset=True).items()
            if value is not None or field == "discount_price"
        }


class ProductResponse(BaseModel):
    """Product response schema"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    category_id: int
    name: str
    description: str
    price: Decimal
    discount_price: Optional[Decimal] = None
    effective_price: Decimal
    stock: int
    status: ProductStatus
    sold_count: int
    view_count: int


class ProductEnvelope(BaseModel):
    product: ProductResponse
    message: str


class CategoryEnvelope(BaseModel):
    category: CategoryResponse
    message: str


class ProductListResponse(BaseModel):
    products: List[ProductResponse]
    total: int


class CategoryListResponse(BaseModel):
    categories: List[CategoryResponse]


class MessageResponse(BaseModel):
    message: str
