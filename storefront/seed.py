"""
Seed the database with an admin account, categories and sample products

Safe to run repeatedly: every row is looked up by its unique key first.
"""

from decimal import Decimal
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import asyncio
import logging

from storefront.core.config import Settings, get_settings
from storefront.core.database import Database
from storefront.core.security import SecurityUtils
from storefront.models import User, UserRole, Cart, Category, Product, ProductStatus, resolve_stock_status

logger = logging.getLogger(__name__)

CATEGORIES = [
    {"name": "Electronics", "description": "Phones, laptops and accessories"},
    {"name": "Home", "description": "Furniture and household goods"},
    {"name": "Books", "description": "Printed and digital books"},
]

PRODUCTS = [
    {
        "category": "Electronics",
        "name": "Wireless Headphones",
        "description": "Over-ear noise cancelling headphones",
        "price": Decimal("199.00"),
        "discount_price": Decimal("159.00"),
        "stock": 25,
    },
    {
        "category": "Electronics",
        "name": "USB-C Charger",
        "description": "65W fast charger",
        "price": Decimal("39.90"),
        "discount_price": None,
        "stock": 100,
    },
    {
        "category": "Home",
        "name": "Desk Lamp",
        "description": "Adjustable LED desk lamp",
        "price": Decimal("45.00"),
        "discount_price": None,
        "stock": 0,
    },
    {
        "category": "Books",
        "name": "Practical SQL",
        "description": "A beginner's guide to storytelling with data",
        "price": Decimal("32.50"),
        "discount_price": Decimal("28.00"),
        "stock": 40,
    },
]


async def seed_admin(db: AsyncSession, username: str, email: str, password: str) -> User:
    result = await db.execute(select(User).where(User.username == username))
    admin = result.scalar_one_or_none()
    if admin:
        logger.info(f"Admin user {username} already exists")
        return admin

    admin = User(
        username=username,
        email=email,
        hashed_password=SecurityUtils.hash_password(password),
        role=UserRole.ADMIN,
        is_active=True,
    )
    admin.cart = Cart(total_amount=Decimal("0.00"), version=1)
    db.add(admin)
    await db.flush()
    logger.info(f"Created admin user {username}")
    return admin


async def seed_catalog(db: AsyncSession) -> int:
    """Insert missing categories and products, returning how many products were added"""
    categories = {}
    for data in CATEGORIES:
        result = await db.execute(select(Category).where(Category.name == data["name"]))
        category = result.scalar_one_or_none()
        if not category:
            category = Category(**data)
            db.add(category)
            await db.flush()
            logger.info(f"Created category {category.name}")
        categories[category.name] = category

    created = 0
    for data in PRODUCTS:
        category = categories[data["category"]]
        result = await db.execute(
            select(Product).where(Product.category_id == category.id, Product.name == data["name"])
        )
        if result.scalar_one_or_none():
            continue

        db.add(
            Product(
                category_id=category.id,
                name=data["name"],
                description=data["description"],
                price=data["price"],
                discount_price=data["discount_price"],
                stock=data["stock"],
                status=resolve_stock_status(data["stock"], ProductStatus.ACTIVE),
                sold_count=0,
                view_count=0,
            )
        )
        created += 1

    logger.info(f"Seeded {created} new products")
    return created


async def seed(
    settings: Settings,
    admin_username: str = "admin",
    admin_email: str = "admin@storefront.local",
    admin_password: str = "admin12345",
) -> None:
    database = Database(settings)
    database.connect()
    try:
        await database.create_all()
        async with database.session() as db:
            await seed_admin(db, admin_username, admin_email, admin_password)
            await seed_catalog(db)
    finally:
        await database.disconnect()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed(get_settings()))


if __name__ == "__main__":
    main()
