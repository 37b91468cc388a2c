"""
订单领域层。
"""
from orders.domain.entities import OrderStatus, OrderItem, InvalidTransitionException
from orders.domain.value_objects import Role, Principal, OrderLine, Reservation
from orders.domain.aggregates import OrderAggregate
from orders.domain.events import OrderCreatedEvent, OrderStatusChangedEvent
from orders.domain.lifecycle import ALLOWED_TRANSITIONS, TERMINAL_STATUSES, can_transition, assert_transition
from orders.domain.pricing import compute_total, line_subtotal
from orders.domain.repositories import InventoryRepository, OrderRepository, AuthorizationGate
from orders.domain.services import OrderPlacementService, OrderStatusService, validate_order_lines

__all__ = [
    # 实体与值对象
    'OrderStatus',
    'OrderItem',
    'InvalidTransitionException',
    'Role',
    'Principal',
    'OrderLine',
    'Reservation',
    'OrderAggregate',

    # 事件
    'OrderCreatedEvent',
    'OrderStatusChangedEvent',

    # 生命周期与计价
    'ALLOWED_TRANSITIONS',
    'TERMINAL_STATUSES',
    'can_transition',
    'assert_transition',
    'compute_total',
    'line_subtotal',

    # 仓储接口
    'InventoryRepository',
    'OrderRepository',
    'AuthorizationGate',

    # 领域服务
    'OrderPlacementService',
    'OrderStatusService',
    'validate_order_lines',
]
