import pytest

from models.order import OrderStatus
from models.user import Role
from services.order_flow import (
    SEQUENCE,
    TERMINAL,
    InvalidTransition,
    allowed_targets,
    check_transition,
)


@pytest.mark.parametrize(
    "current,target",
    (
        (OrderStatus.pending, OrderStatus.accepted),
        (OrderStatus.confirmed, OrderStatus.preparing),
        (OrderStatus.preparing, OrderStatus.ready),
        (OrderStatus.ready, OrderStatus.completed),
    ),
)
def test_cook_moves_order_forward(current, target) -> None:
    assert check_transition(current, target, Role.cook) == target


def test_only_customer_confirms_payment() -> None:
    assert check_transition(OrderStatus.accepted, OrderStatus.confirmed, Role.customer)
    with pytest.raises(InvalidTransition):
        check_transition(OrderStatus.accepted, OrderStatus.confirmed, Role.cook)


def test_statuses_never_move_backwards() -> None:
    with pytest.raises(InvalidTransition):
        check_transition(OrderStatus.ready, OrderStatus.preparing, Role.cook)
    with pytest.raises(InvalidTransition):
        check_transition(OrderStatus.accepted, OrderStatus.pending, Role.cook)


def test_steps_cannot_be_skipped() -> None:
    with pytest.raises(InvalidTransition):
        check_transition(OrderStatus.pending, OrderStatus.preparing, Role.cook)


@pytest.mark.parametrize("status", sorted(TERMINAL))
def test_terminal_statuses_have_no_exits(status) -> None:
    assert allowed_targets(status, Role.cook) == set()
    assert allowed_targets(status, Role.customer) == set()


def test_cancellation_rules() -> None:
    assert OrderStatus.cancelled in allowed_targets(OrderStatus.pending, Role.customer)
    assert OrderStatus.cancelled in allowed_targets(OrderStatus.accepted, Role.customer)
    assert OrderStatus.cancelled not in allowed_targets(OrderStatus.preparing, Role.customer)
    assert OrderStatus.cancelled in allowed_targets(OrderStatus.ready, Role.cook)


@pytest.mark.parametrize("role", list(Role))
@pytest.mark.parametrize("current", list(OrderStatus))
def test_every_allowed_move_goes_forward(current, role) -> None:
    for target in allowed_targets(current, role):
        if target == OrderStatus.cancelled:
            continue
        assert SEQUENCE.index(target) == SEQUENCE.index(current) + 1
