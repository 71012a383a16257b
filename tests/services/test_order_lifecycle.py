import logging
from decimal import Decimal

import pytest
from sqlalchemy import select

from storefront.api.v1.cart.services import CartService
from storefront.api.v1.orders.services import OrderService
from storefront.services.catalog import ProductCatalog
from storefront.core.exceptions import (
    ForbiddenException,
    InvalidOrderStateException,
    NotFoundException,
)
from storefront.models import OrderItem, OrderStatus, PaymentMethod, ProductStatus, UserRole


@pytest.fixture
def order_service(session, notifier, settings):
    return OrderService(session, notifier=notifier, settings=settings)


@pytest.fixture
def placed_order(session, order_service, make_user, make_product):
    """Place an order of 2 x product 7 (price 100.00, stock 5) for alice"""
    async def _place(stock=5, quantity=2):
        user = await make_user("alice")
        await make_product(price="100.00", stock=stock, product_id=7)
        await CartService(session).add_item(user.id, 7, quantity)
        order = await order_service.place_order(
            user.id, PaymentMethod.CREDIT_CARD, "1 Main Street", "13800000000"
        )
        return user, order

    return _place


class TestCancelOrder:
    async def test_restores_stock_and_sold_count(self, order_service, placed_order, fetch_product):
        user, order = await placed_order()
        assert (await fetch_product(7)).stock == 3

        cancelled = await order_service.cancel_order(user.id, "user", order.id)

        assert cancelled.status == OrderStatus.CANCELLED
        product = await fetch_product(7)
        assert product.stock == 5
        assert product.sold_count == 0
        assert product.status == ProductStatus.ACTIVE

    async def test_sold_out_product_becomes_active_again(self, order_service, placed_order, fetch_product):
        user, order = await placed_order(stock=2, quantity=2)
        assert (await fetch_product(7)).status == ProductStatus.OUT_OF_STOCK

        await order_service.cancel_order(user.id, "user", order.id)

        product = await fetch_product(7)
        assert product.stock == 2
        assert product.status == ProductStatus.ACTIVE

    async def test_only_pending_orders(self, order_service, placed_order, fetch_product):
        user, order = await placed_order()
        await order_service.pay_order(user.id, order.id)

        with pytest.raises(InvalidOrderStateException):
            await order_service.cancel_order(user.id, "user", order.id)

        assert (await fetch_product(7)).stock == 3

    async def test_cancelling_twice_restores_once(self, order_service, placed_order, fetch_product):
        user, order = await placed_order()
        await order_service.cancel_order(user.id, "user", order.id)

        with pytest.raises(InvalidOrderStateException):
            await order_service.cancel_order(user.id, "user", order.id)

        assert (await fetch_product(7)).stock == 5

    async def test_other_user_forbidden(self, order_service, placed_order, make_user):
        _, order = await placed_order()
        mallory = await make_user("mallory")

        with pytest.raises(ForbiddenException):
            await order_service.cancel_order(mallory.id, "user", order.id)

    async def test_admin_may_cancel(self, order_service, placed_order, admin):
        _, order = await placed_order()

        cancelled = await order_service.cancel_order(admin.id, "admin", order.id)

        assert cancelled.status == OrderStatus.CANCELLED

    async def test_deleted_product_leaves_reused_id_alone(
        self, session, database, order_service, placed_order, make_product, fetch_product
    ):
        user, order = await placed_order()
        await ProductCatalog(session).delete_product(7)

        async with database.session() as s:
            kept = (
                await s.execute(select(OrderItem.product_id).where(OrderItem.order_id == order.id))
            ).scalars().all()
        assert kept == [None]

        # A new product may be handed the same id
        newcomer = await make_product(name="Gadget", stock=10, product_id=7)

        cancelled = await order_service.cancel_order(user.id, "user", order.id)

        assert cancelled.status == OrderStatus.CANCELLED
        assert cancelled.items[0].product_id is None
        assert cancelled.items[0].product_name == "Widget"
        stored = await fetch_product(newcomer.id)
        assert stored.stock == 10
        assert stored.sold_count == 0

    async def test_missing_order(self, order_service, make_user):
        user = await make_user()

        with pytest.raises(NotFoundException):
            await order_service.cancel_order(user.id, "user", 404)


class TestPayOrder:
    async def test_marks_paid(self, order_service, placed_order, notifier):
        user, order = await placed_order()

        paid = await order_service.pay_order(user.id, order.id)
        await notifier.drain()

        assert paid.status == OrderStatus.PAID
        assert paid.payment_status is True
        assert sorted(notifier.names()) == ["order_paid", "order_placed"]

    async def test_only_pending_orders(self, order_service, placed_order):
        user, order = await placed_order()
        await order_service.pay_order(user.id, order.id)

        with pytest.raises(InvalidOrderStateException):
            await order_service.pay_order(user.id, order.id)

    async def test_cancelled_order_cannot_be_paid(self, order_service, placed_order):
        user, order = await placed_order()
        await order_service.cancel_order(user.id, "user", order.id)

        with pytest.raises(InvalidOrderStateException):
            await order_service.pay_order(user.id, order.id)

    async def test_only_owner_may_pay(self, order_service, placed_order, admin):
        _, order = await placed_order()

        with pytest.raises(ForbiddenException):
            await order_service.pay_order(admin.id, order.id)

    async def test_missing_order(self, order_service, make_user):
        user = await make_user()

        with pytest.raises(NotFoundException):
            await order_service.pay_order(user.id, 404)

    async def test_notification_failure_does_not_fail_payment(
        self, session, settings, placed_order, caplog
    ):
        from storefront.services.notification import NotificationService

        def broken_dispatch(user_id, event, payload):
            raise ConnectionError("broker unreachable")

        user, order = await placed_order()
        notifier = NotificationService(dispatcher=broken_dispatch)
        service = OrderService(session, notifier=notifier, settings=settings)

        with caplog.at_level(logging.ERROR):
            paid = await service.pay_order(user.id, order.id)
            await notifier.drain()

        assert paid.status == OrderStatus.PAID
        assert "broker unreachable" in caplog.text


class TestAdminStatusUpdate:
    async def test_legal_transition_with_tracking_number(self, order_service, placed_order):
        user, order = await placed_order()
        await order_service.pay_order(user.id, order.id)

        shipped = await order_service.update_order_status(order.id, OrderStatus.SHIPPED, "SF123456")

        assert shipped.status == OrderStatus.SHIPPED
        assert shipped.tracking_number == "SF123456"

    async def test_setting_paid_sets_payment_status(self, order_service, placed_order):
        _, order = await placed_order()

        paid = await order_service.update_order_status(order.id, OrderStatus.PAID)

        assert paid.payment_status is True

    async def test_illegal_transition_allowed_with_warning(self, order_service, placed_order, caplog):
        _, order = await placed_order()

        with caplog.at_level(logging.WARNING):
            delivered = await order_service.update_order_status(order.id, OrderStatus.DELIVERED)

        assert delivered.status == OrderStatus.DELIVERED
        assert "outside the transition table" in caplog.text

    async def test_illegal_transition_rejected_when_enforced(
        self, session, notifier, settings, placed_order
    ):
        _, order = await placed_order()
        strict = settings.model_copy(update={"ENFORCE_ADMIN_STATUS_TRANSITIONS": True})
        service = OrderService(session, notifier=notifier, settings=strict)

        with pytest.raises(InvalidOrderStateException):
            await service.update_order_status(order.id, OrderStatus.DELIVERED)

    async def test_status_change_does_not_touch_stock(self, order_service, placed_order, fetch_product):
        _, order = await placed_order()

        await order_service.update_order_status(order.id, OrderStatus.CANCELLED)

        assert (await fetch_product(7)).stock == 3

    async def test_missing_order(self, order_service):
        with pytest.raises(NotFoundException):
            await order_service.update_order_status(404, OrderStatus.SHIPPED)


class TestQueries:
    async def test_get_order_owner_or_admin(self, order_service, placed_order, admin, make_user):
        user, order = await placed_order()
        mallory = await make_user("mallory")

        assert (await order_service.get_order(user.id, "user", order.id)).id == order.id
        assert (await order_service.get_order(admin.id, "admin", order.id)).id == order.id
        with pytest.raises(ForbiddenException):
            await order_service.get_order(mallory.id, "user", order.id)

    async def test_list_orders_scoped_to_user(self, order_service, placed_order, admin, make_user):
        user, order = await placed_order()
        bob = await make_user("bob")

        assert [o.id for o in await order_service.list_orders(user.id, "user")] == [order.id]
        assert await order_service.list_orders(bob.id, "user") == []
        assert [o.id for o in await order_service.list_orders(admin.id, UserRole.ADMIN.value)] == [order.id]

    async def test_stats(self, order_service, placed_order):
        user, order = await placed_order()
        await order_service.pay_order(user.id, order.id)

        stats = await order_service.get_order_stats()

        assert stats["total_orders"] == 1
        assert stats["by_status"]["paid"] == 1
        assert stats["by_status"]["pending"] == 0
        assert stats["total_sales"] == Decimal("200.00")
