"""
Order service layer
Handles order placement and the order lifecycle
"""

from typing import List, Optional, Dict, Any
from datetime import datetime, timezone
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select, update, func
from sqlalchemy.orm import selectinload
import uuid
import logging

from storefront.models import Order, OrderItem, OrderStatus, PaymentMethod, User
from storefront.core.config import Settings, get_settings
from storefront.core.exceptions import (
    StorefrontException,
    NotFoundException,
    ForbiddenException,
    EmptyCartException,
    InsufficientStockException,
    ProductUnavailableException,
    InvalidOrderStateException,
    InternalServerException
)
from storefront.api.v1.cart.services import CartService
from storefront.services.catalog import ProductCatalog
from storefront.services.notification import NotificationService
from .state_machine import OrderStateMachine, apply_status, status_values

logger = logging.getLogger(__name__)

SALES_STATUSES = (OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.DELIVERED)


def generate_order_number(prefix: str = "ORD") -> str:
    """Generate unique order number"""
    timestamp = datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S')
    suffix = uuid.uuid4().hex[:12].upper()
    return f"{prefix}-{timestamp}-{suffix}"


class OrderService:
    """Order service for business logic"""

    def __init__(
        self,
        db: AsyncSession,
        notifier: Optional[NotificationService] = None,
        settings: Optional[Settings] = None
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.cart_service = CartService(db)
        self.catalog = ProductCatalog(db)
        self.notifier = notifier or NotificationService()
        self.state_machine = OrderStateMachine()

    async def _load_order(self, order_id: int) -> Optional[Order]:
        result = await self.db.execute(
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _transition(
        self,
        order_id: int,
        expected: OrderStatus,
        new_status: OrderStatus
    ) -> bool:
        """Move an order from expected to new_status unless someone else moved it first"""
        result = await self.db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == expected)
            .values(**status_values(new_status))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def _notification_payload(self, order: Order, user: Optional[User]) -> Dict[str, Any]:
        return {
            "order_id": order.id,
            "order_number": order.order_number,
            "total_amount": str(order.total_amount),
            "status": order.status.value,
            "tracking_number": order.tracking_number,
            "email": user.email if user else None,
            "username": user.username if user else "",
        }

    async def place_order(
        self,
        user_id: int,
        payment_method: PaymentMethod,
        shipping_address: str,
        shipping_phone: str,
        notes: Optional[str] = None
    ) -> Order:
        """
        Convert the user's cart into a PENDING order

        All lines are validated before anything is written. The order, its
        items, the stock decrements and the cart reset commit together or
        not at all.

        Raises:
            EmptyCartException: If there is no cart or it has no items
            InsufficientStockException: If a line exceeds current stock
            ProductUnavailableException: If a product is no longer on sale
            ConflictException: If the cart changed concurrently
            InternalServerException: If the database write fails
        """
        cart = await self.cart_service.find_cart(user_id)
        if not cart or not cart.items:
            raise EmptyCartException()

        # Validate every line before any write
        for item in cart.items:
            product = item.product
            if product is None or product.stock < item.quantity:
                raise InsufficientStockException(
                    product.name if product else "unknown product",
                    product.stock if product else 0
                )
            if not product.is_purchasable:
                raise ProductUnavailableException(product.name)

        user = await self.db.get(User, user_id)

        try:
            await self.cart_service.claim(cart)

            order = Order(
                order_number=generate_order_number(self.settings.ORDER_NUMBER_PREFIX),
                user_id=user_id,
                status=OrderStatus.PENDING,
                payment_status=False,
                payment_method=payment_method,
                total_amount=cart.total_amount,
                shipping_address=shipping_address,
                shipping_phone=shipping_phone,
                notes=notes
            )
            self.db.add(order)

            for item in cart.items:
                order.items.append(
                    OrderItem(
                        product_id=item.product_id,
                        product_name=item.product.name,
                        quantity=item.quantity,
                        price=item.price,
                        total_price=item.price * item.quantity
                    )
                )

                if not await self.catalog.reserve_stock(item.product_id, item.quantity):
                    current = await self.catalog.get_by_id(item.product_id)
                    logger.warning(
                        f"Lost stock race on product {item.product_id} for user {user_id}"
                    )
                    if current is None or current.stock < item.quantity:
                        raise InsufficientStockException(
                            item.product.name,
                            current.stock if current else 0
                        )
                    raise ProductUnavailableException(item.product.name)

            cart.items.clear()
            cart.total_amount = Decimal("0.00")

            await self.db.commit()

        except StorefrontException:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Order placement failed for user {user_id}: {str(e)}")
            raise InternalServerException("Failed to place order")

        order = await self._load_order(order.id)
        logger.info(f"Order {order.order_number} placed by user {user_id} for {order.total_amount}")

        self.notifier.notify(user_id, "order_placed", self._notification_payload(order, user))
        return order

    async def get_order(self, user_id: int, role: str, order_id: int) -> Order:
        """
        Get order details

        Raises:
            NotFoundException: If order not found
            ForbiddenException: If the caller is neither owner nor admin
        """
        order = await self._load_order(order_id)
        if not order:
            raise NotFoundException("Order not found")

        if order.user_id != user_id and role != "admin":
            raise ForbiddenException("Not authorized to view this order")

        return order

    async def list_orders(self, user_id: int, role: str) -> List[Order]:
        """Own orders, or every order for admins, newest first"""
        query = select(Order).options(selectinload(Order.items))
        if role != "admin":
            query = query.where(Order.user_id == user_id)

        result = await self.db.execute(query.order_by(Order.created_at.desc(), Order.id.desc()))
        return list(result.scalars().all())

    async def pay_order(self, user_id: int, order_id: int) -> Order:
        """
        Mark a PENDING order as paid

        Raises:
            NotFoundException: If order or user not found
            ForbiddenException: If the caller does not own the order
            InvalidOrderStateException: If the order is not PENDING
        """
        order = await self._load_order(order_id)
        if not order:
            raise NotFoundException("Order not found")

        if order.user_id != user_id:
            raise ForbiddenException("Not authorized to pay for this order")

        user = await self.db.get(User, user_id)
        if not user:
            raise NotFoundException("User not found")

        if not self.state_machine.is_payable(order.status):
            raise InvalidOrderStateException("Only pending orders can be paid")

        try:
            if not await self._transition(order.id, OrderStatus.PENDING, OrderStatus.PAID):
                raise InvalidOrderStateException("Only pending orders can be paid")
            await self.db.commit()
        except StorefrontException:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Payment of order {order_id} failed: {str(e)}")
            raise InternalServerException("Failed to update payment status")

        order = await self._load_order(order_id)
        logger.info(f"Order {order.order_number} paid by user {user_id}")

        self.notifier.notify(user_id, "order_paid", self._notification_payload(order, user))
        return order

    async def cancel_order(self, user_id: int, role: str, order_id: int) -> Order:
        """
        Cancel a PENDING order and put its stock back

        Raises:
            NotFoundException: If order not found
            ForbiddenException: If the caller is neither owner nor admin
            InvalidOrderStateException: If the order is not PENDING
        """
        order = await self._load_order(order_id)
        if not order:
            raise NotFoundException("Order not found")

        if order.user_id != user_id and role != "admin":
            raise ForbiddenException("Not authorized to cancel this order")

        if not self.state_machine.is_cancellable(order.status):
            raise InvalidOrderStateException("Only pending orders can be cancelled")

        try:
            if not await self._transition(order.id, OrderStatus.PENDING, OrderStatus.CANCELLED):
                raise InvalidOrderStateException("Only pending orders can be cancelled")

            for item in order.items:
                # Product may have been deleted since the order was placed
                if item.product_id is not None:
                    await self.catalog.release_stock(item.product_id, item.quantity)

            await self.db.commit()
        except StorefrontException:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Cancellation of order {order_id} failed: {str(e)}")
            raise InternalServerException("Failed to cancel order")

        order = await self._load_order(order_id)
        logger.info(f"Order {order.order_number} cancelled by user {user_id}")

        owner = await self.db.get(User, order.user_id)
        self.notifier.notify(order.user_id, "order_status_changed", self._notification_payload(order, owner))
        return order

    async def update_order_status(
        self,
        order_id: int,
        new_status: OrderStatus,
        tracking_number: Optional[str] = None
    ) -> Order:
        """
        Admin status override

        Stock is not touched here; use cancel_order to return stock.

        Raises:
            NotFoundException: If order not found
            InvalidOrderStateException: If transition checks are enforced
                and the move is not in the transition table
        """
        order = await self._load_order(order_id)
        if not order:
            raise NotFoundException("Order not found")

        old_status = order.status
        if old_status != new_status and not self.state_machine.can_transition(old_status, new_status):
            if self.settings.ENFORCE_ADMIN_STATUS_TRANSITIONS:
                raise InvalidOrderStateException(
                    f"Cannot transition from {old_status.value} to {new_status.value}"
                )
            logger.warning(
                f"Admin override on order {order.order_number}: "
                f"{old_status.value} -> {new_status.value} is outside the transition table"
            )

        apply_status(order, new_status)
        if tracking_number is not None:
            order.tracking_number = tracking_number

        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Status update of order {order_id} failed: {str(e)}")
            raise InternalServerException("Failed to update order status")

        order = await self._load_order(order_id)
        logger.info(f"Order {order.order_number} status {old_status.value} -> {new_status.value}")

        if old_status != new_status:
            owner = await self.db.get(User, order.user_id)
            self.notifier.notify(
                order.user_id,
                "order_status_changed",
                self._notification_payload(order, owner)
            )
        return order

    async def get_order_stats(self) -> Dict[str, Any]:
        """Order counts per status and sales over paid orders"""
        result = await self.db.execute(
            select(Order.status, func.count(Order.id)).group_by(Order.status)
        )
        by_status = {status.value: 0 for status in OrderStatus}
        for status, count in result.all():
            by_status[status.value] = count

        sales = await self.db.execute(
            select(func.coalesce(func.sum(Order.total_amount), 0))
            .where(Order.status.in_(SALES_STATUSES))
        )
        total_sales = Decimal(str(sales.scalar_one())).quantize(Decimal("0.01"))

        return {
            "total_orders": sum(by_status.values()),
            "by_status": by_status,
            "total_sales": total_sales
        }
