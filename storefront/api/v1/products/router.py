"""
Product catalog routes
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.database import get_db
from storefront.core.security import require_admin
from storefront.services.catalog import ProductCatalog
from .schemas import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductEnvelope,
    ProductListResponse,
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategoryEnvelope,
    CategoryListResponse,
    MessageResponse
)

router = APIRouter()
category_router = APIRouter()


@router.get("", response_model=ProductListResponse)
async def list_products(db: AsyncSession = Depends(get_db)):
    """List products on sale"""
    catalog = ProductCatalog(db)
    products = await catalog.list_products()
    return ProductListResponse(
        products=[ProductResponse.model_validate(p) for p in products],
        total=len(products)
    )


@router.get("/{product_id}", response_model=ProductEnvelope)
async def get_product(
    product_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Get product details"""
    catalog = ProductCatalog(db)
    product = await catalog.get_or_404(product_id)
    return ProductEnvelope(product=ProductResponse.model_validate(product), message="Product retrieved")


@router.post("", response_model=ProductEnvelope, status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create product (admin only)"""
    catalog = ProductCatalog(db)
    product = await catalog.create_product(**product_data.model_dump())
    return ProductEnvelope(product=ProductResponse.model_validate(product), message="Product created")


@router.put("/{product_id}", response_model=ProductEnvelope)
async def update_product(
    product_id: int,
    product_data: ProductUpdate,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Update product (admin only)"""
    catalog = ProductCatalog(db)
    product = await catalog.update_product(product_id, product_data.changes())
    return ProductEnvelope(product=ProductResponse.model_validate(product), message="Product updated")


@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(
    product_id: int,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delete product (admin only)"""
    catalog = ProductCatalog(db)
    await catalog.delete_product(product_id)
    return MessageResponse(message="Product deleted")


@category_router.get("", response_model=CategoryListResponse)
async def list_categories(db: AsyncSession = Depends(get_db)):
    """List categories"""
    catalog = ProductCatalog(db)
    categories = await catalog.list_categories()
    return CategoryListResponse(categories=[CategoryResponse.model_validate(c) for c in categories])


@category_router.post("", response_model=CategoryEnvelope, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create category (admin only)"""
    catalog = ProductCatalog(db)
    category = await catalog.create_category(category_data.name, category_data.description)
    return CategoryEnvelope(category=CategoryResponse.model_validate(category), message="Category created")


@category_router.put("/{category_id}", response_model=CategoryEnvelope)
async def update_category(
    category_id: int,
    category_data: CategoryUpdate,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Update category (admin only)"""
    catalog = ProductCatalog(db)
    category = await catalog.update_category(category_id, category_data.name, category_data.description)
    return CategoryEnvelope(category=CategoryResponse.model_validate(category), message="Category updated")


@category_router.delete("/{category_id}", response_model=MessageResponse)
async def delete_category(
    category_id: int,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delete category (admin only)"""
    catalog = ProductCatalog(db)
    await catalog.delete_category(category_id)
    return MessageResponse(message="Category deleted")
