"""Models package initialization"""

from .base import Base
from .user import User, UserRole
from .category import Category
from .product import Product, ProductStatus, resolve_stock_status
from .cart import Cart, CartItem
from .order import Order, OrderItem, OrderStatus, PaymentMethod

# Export all models
__all__ = [
    "Base",
    "User",
    "UserRole",
    "Category",
    "Product",
    "ProductStatus",
    "resolve_stock_status",
    "Cart",
    "CartItem",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentMethod",
]
