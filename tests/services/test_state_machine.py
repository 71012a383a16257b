import pytest

from storefront.api.v1.orders.state_machine import OrderStateMachine, apply_status, status_values
from storefront.models import Order, OrderStatus


@pytest.fixture
def machine():
    return OrderStateMachine()


LEGAL = {
    (OrderStatus.PENDING, OrderStatus.PAID),
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.PAID, OrderStatus.SHIPPED),
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
}


@pytest.mark.parametrize("current", list(OrderStatus))
@pytest.mark.parametrize("target", list(OrderStatus))
def test_transition_table(machine, current, target):
    assert machine.can_transition(current, target) == ((current, target) in LEGAL)


def test_terminal_states(machine):
    assert machine.is_terminal_state(OrderStatus.DELIVERED)
    assert machine.is_terminal_state(OrderStatus.CANCELLED)
    assert not machine.is_terminal_state(OrderStatus.PENDING)


def test_only_pending_is_cancellable_or_payable(machine):
    assert [s for s in OrderStatus if machine.is_cancellable(s)] == [OrderStatus.PENDING]
    assert [s for s in OrderStatus if machine.is_payable(s)] == [OrderStatus.PENDING]


def test_valid_transitions_from_pending(machine):
    assert machine.get_valid_transitions(OrderStatus.PENDING) == [
        OrderStatus.CANCELLED,
        OrderStatus.PAID,
    ]


def test_paid_always_sets_payment_status():
    order = Order(status=OrderStatus.SHIPPED, payment_status=False)

    apply_status(order, OrderStatus.PAID)

    assert order.status == OrderStatus.PAID
    assert order.payment_status is True


def test_other_statuses_leave_payment_status_alone():
    order = Order(status=OrderStatus.PENDING, payment_status=False)

    apply_status(order, OrderStatus.CANCELLED)

    assert order.payment_status is False
    assert status_values(OrderStatus.SHIPPED) == {"status": OrderStatus.SHIPPED}
