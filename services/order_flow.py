"""Order status transitions.

    pending -> accepted -> confirmed -> preparing -> ready -> completed
        \\__________\\__________\\___________\\________\\--> cancelled

The cook drives every step except payment confirmation, which belongs to the
customer. Statuses never move backwards.
"""

from models.order import OrderStatus
from models.user import Role

SEQUENCE = (
    OrderStatus.pending,
    OrderStatus.accepted,
    OrderStatus.confirmed,
    OrderStatus.preparing,
    OrderStatus.ready,
    OrderStatus.completed,
)

TERMINAL = frozenset({OrderStatus.completed, OrderStatus.cancelled})

ACTIVE = frozenset(SEQUENCE) - TERMINAL

COOK_STEPS = {
    OrderStatus.pending: OrderStatus.accepted,
    OrderStatus.confirmed: OrderStatus.preparing,
    OrderStatus.preparing: OrderStatus.ready,
    OrderStatus.ready: OrderStatus.completed,
}

CUSTOMER_STEPS = {
    OrderStatus.accepted: OrderStatus.confirmed,
}

CANCELLABLE = {
    Role.customer: frozenset({OrderStatus.pending, OrderStatus.accepted}),
    Role.cook: ACTIVE,
}


class InvalidTransition(Exception):
    def __init__(self, current: OrderStatus, target: OrderStatus) -> None:
        super().__init__(f"Invalid status transition from '{current.value}' to '{target.value}'")
        self.current = current
        self.target = target


def allowed_targets(current: OrderStatus, role: Role) -> set[OrderStatus]:
    steps = COOK_STEPS if role == Role.cook else CUSTOMER_STEPS
    targets = set()
    if current in steps:
        targets.add(steps[current])
    if current in CANCELLABLE[role]:
        targets.add(OrderStatus.cancelled)
    return targets


def check_transition(current: OrderStatus, target: OrderStatus, role: Role) -> OrderStatus:
    if target not in allowed_targets(current, role):
        raise InvalidTransition(current, target)
    return target
