"""
订单生命周期状态机。

正向流程 PENDING → PROCESSING → SHIPPED → DELIVERED，
CANCELLED 只能从 PENDING 或 PROCESSING 进入。DELIVERED 和 CANCELLED 为终态。
"""
from typing import Dict, FrozenSet

from orders.domain.entities import OrderStatus, InvalidTransitionException


ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(current: str, requested: str) -> bool:
    """判断状态流转是否在允许表中"""
    return requested in ALLOWED_TRANSITIONS.get(current, frozenset())


def assert_transition(current: str, requested: str) -> None:
    """
    校验状态流转。

    Args:
        current: 当前状态
        requested: 目标状态

    Raises:
        InvalidTransitionException: 当前状态为终态或流转不在允许表中
    """
    if not can_transition(current, requested):
        raise InvalidTransitionException(current, requested)
