"""
Order API routes
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.database import get_db
from storefront.core.security import get_current_user, require_admin
from storefront.services.notification import NotificationService
from .schemas import (
    OrderCreate,
    OrderStatusUpdate,
    OrderResponse,
    OrderEnvelope,
    OrderListResponse,
    OrderStatsResponse
)
from .services import OrderService

router = APIRouter()


def get_notifier(request: Request) -> NotificationService:
    """Return the NotificationService attached to the running application"""
    return request.app.state.notifier


def get_order_service(
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier)
) -> OrderService:
    return OrderService(db, notifier=notifier)


def _envelope(order, message: str) -> OrderEnvelope:
    return OrderEnvelope(order=OrderResponse.model_validate(order), message=message)


@router.post(
    "",
    response_model=OrderEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Place order",
    description="Convert the current cart into a pending order"
)
async def create_order(
    order_data: OrderCreate,
    current_user: dict = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """Create new order from cart"""
    order = await service.place_order(
        user_id=current_user["id"],
        payment_method=order_data.payment_method,
        shipping_address=order_data.shipping_address,
        shipping_phone=order_data.shipping_phone,
        notes=order_data.notes
    )
    return _envelope(order, "Order created")


@router.get(
    "",
    response_model=OrderListResponse,
    summary="List orders"
)
async def list_orders(
    current_user: dict = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """List own orders, or all orders for admins"""
    orders = await service.list_orders(current_user["id"], current_user["role"])
    return OrderListResponse(
        orders=[OrderResponse.model_validate(order) for order in orders],
        total=len(orders)
    )


@router.get(
    "/stats",
    response_model=OrderStatsResponse,
    summary="Order statistics",
    description="Order counts per status and total sales (admin only)"
)
async def get_order_stats(
    current_user: dict = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    stats = await service.get_order_stats()
    return OrderStatsResponse(**stats)


@router.get(
    "/{order_id}",
    response_model=OrderEnvelope,
    summary="Get order details"
)
async def get_order(
    order_id: int,
    current_user: dict = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """Get order details"""
    order = await service.get_order(current_user["id"], current_user["role"], order_id)
    return _envelope(order, "Order retrieved")


@router.put(
    "/{order_id}/pay",
    response_model=OrderEnvelope,
    summary="Pay order"
)
async def pay_order(
    order_id: int,
    current_user: dict = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """Mark a pending order as paid"""
    order = await service.pay_order(current_user["id"], order_id)
    return _envelope(order, "Payment successful")


@router.put(
    "/{order_id}/cancel",
    response_model=OrderEnvelope,
    summary="Cancel order"
)
async def cancel_order(
    order_id: int,
    current_user: dict = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """Cancel a pending order"""
    order = await service.cancel_order(current_user["id"], current_user["role"], order_id)
    return _envelope(order, "Order cancelled")


@router.put(
    "/{order_id}/status",
    response_model=OrderEnvelope,
    summary="Update order status",
    description="Update order status (admin only)"
)
async def update_order_status(
    order_id: int,
    status_update: OrderStatusUpdate,
    current_user: dict = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    """Update order status"""
    order = await service.update_order_status(
        order_id,
        status_update.status,
        tracking_number=status_update.tracking_number
    )
    return _envelope(order, "Order status updated")
