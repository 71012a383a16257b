"""
Order state machine for managing order status transitions
"""

from typing import Any, Dict, List, Set
from storefront.models.order import Order, OrderStatus


class OrderStateMachine:
    """
    Manages valid order status transitions
    """

    def __init__(self):
        # Define valid transitions
        self.transitions: Dict[OrderStatus, Set[OrderStatus]] = {
            OrderStatus.PENDING: {
                OrderStatus.PAID,
                OrderStatus.CANCELLED
            },
            OrderStatus.PAID: {
                OrderStatus.SHIPPED
            },
            OrderStatus.SHIPPED: {
                OrderStatus.DELIVERED
            },
            OrderStatus.DELIVERED: set(),  # Terminal state
            OrderStatus.CANCELLED: set()  # Terminal state
        }

    def can_transition(
        self,
        current_status: OrderStatus,
        new_status: OrderStatus
    ) -> bool:
        """
        Check if transition is valid

        Args:
            current_status: Current order status
            new_status: Desired new status

        Returns:
            True if transition is allowed
        """
        valid_transitions = self.transitions.get(current_status, set())
        return new_status in valid_transitions

    def get_valid_transitions(
        self,
        current_status: OrderStatus
    ) -> List[OrderStatus]:
        """Get list of valid transitions from current status"""
        return sorted(self.transitions.get(current_status, set()), key=lambda s: s.value)

    def is_terminal_state(self, status: OrderStatus) -> bool:
        return len(self.transitions.get(status, set())) == 0

    def is_cancellable(self, status: OrderStatus) -> bool:
        return OrderStatus.CANCELLED in self.transitions.get(status, set())

    def is_payable(self, status: OrderStatus) -> bool:
        return OrderStatus.PAID in self.transitions.get(status, set())


def status_values(new_status: OrderStatus) -> Dict[str, Any]:
    """Column values written when an order moves to new_status"""
    values: Dict[str, Any] = {"status": new_status}
    if new_status == OrderStatus.PAID:
        values["payment_status"] = True
    return values


def apply_status(order: Order, new_status: OrderStatus) -> None:
    """
    Set an order's status, keeping payment_status in step.

    Every path that moves an order to PAID goes through here or through
    status_values.
    """
    for field, value in status_values(new_status).items():
        setattr(order, field, value)
