import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("EMAILS_ENABLED", "false")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "true")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")

from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from storefront.core.config import Settings
from storefront.core.database import Database
from storefront.core.security import SecurityUtils
from storefront.main import create_app
from storefront.models import (
    Cart,
    Category,
    Order,
    OrderItem,
    Product,
    ProductStatus,
    User,
    UserRole,
    resolve_stock_status,
)
from storefront.services.notification import NotificationService


class RecordingNotifier(NotificationService):
    """Notifier that keeps dispatched events in memory instead of queueing email"""

    def __init__(self):
        self.events = []
        super().__init__(dispatcher=self._record)

    def _record(self, user_id, event, payload):
        self.events.append((user_id, event, payload))

    def names(self):
        return [event for _, event, _ in self.events]


@pytest.fixture
def settings(tmp_path):
    return Settings(DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}")


@pytest.fixture
async def database(settings):
    db = Database(settings)
    db.connect()
    await db.create_all()
    yield db
    await db.disconnect()


@pytest.fixture
async def session(database):
    async with database.session_factory() as session:
        yield session


@pytest.fixture
async def notifier():
    recorder = RecordingNotifier()
    yield recorder
    await recorder.drain()


@pytest.fixture
def make_user(session):
    async def _make(username="alice", role=UserRole.USER, with_cart=True):
        user = User(
            username=username,
            email=f"{username}@example.com",
            hashed_password="not-a-real-hash",
            role=role,
            is_active=True,
        )
        if with_cart:
            user.cart = Cart(total_amount=Decimal("0.00"), version=1)
        session.add(user)
        await session.commit()
        return user

    return _make


@pytest.fixture
async def category(session):
    category = Category(name="General", description="Everything")
    session.add(category)
    await session.commit()
    return category


@pytest.fixture
def make_product(session, category):
    async def _make(
        name="Widget",
        price="100.00",
        stock=5,
        discount_price=None,
        status=ProductStatus.ACTIVE,
        product_id=None,
    ):
        product = Product(
            id=product_id,
            category_id=category.id,
            name=name,
            description="",
            price=Decimal(price),
            discount_price=Decimal(discount_price) if discount_price is not None else None,
            stock=stock,
            status=resolve_stock_status(stock, status),
            sold_count=0,
            view_count=0,
        )
        session.add(product)
        await session.commit()
        return product

    return _make


@pytest.fixture
def fetch_product(database):
    """Read a product through a fresh session"""
    async def _fetch(product_id):
        async with database.session() as s:
            return await s.get(Product, product_id)

    return _fetch


@pytest.fixture
def fetch_cart(database):
    """Return (total_amount, version, {product_id: quantity}) for a user's cart"""
    async def _fetch(user_id):
        async with database.session() as s:
            result = await s.execute(
                select(Cart).options(selectinload(Cart.items)).where(Cart.user_id == user_id)
            )
            cart = result.scalar_one_or_none()
            if cart is None:
                return None
            return (
                cart.total_amount,
                cart.version,
                {item.product_id: item.quantity for item in cart.items},
            )

    return _fetch


@pytest.fixture
def count_orders(database):
    async def _count():
        async with database.session() as s:
            orders = (await s.execute(select(func.count(Order.id)))).scalar_one()
            items = (await s.execute(select(func.count(OrderItem.id)))).scalar_one()
            return orders, items

    return _count


@pytest.fixture
async def app(settings, database, notifier):
    application = create_app(settings=settings, database=database, notifier=notifier)
    yield application


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def headers_for():
    """Bearer headers for a user, minted without going through login"""
    def _headers(user):
        token = SecurityUtils.create_access_token({"sub": str(user.id), "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
async def admin(make_user):
    return await make_user("admin", role=UserRole.ADMIN)


@pytest.fixture
def admin_headers(admin, headers_for):
    return headers_for(admin)
