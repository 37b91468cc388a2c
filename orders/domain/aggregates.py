"""
订单领域模型中的聚合根。
订单聚合包含订单头和全部明细，明细随订单一起创建、一起持久化。
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from core.domain import AggregateRoot, Money
from core.domain.value_objects import DEFAULT_CURRENCY

from orders.domain.entities import OrderItem, OrderStatus
from orders.domain.events import OrderCreatedEvent, OrderStatusChangedEvent
from orders.domain.lifecycle import assert_transition
from orders.domain.pricing import compute_total
from orders.domain.value_objects import Reservation


class OrderAggregate(AggregateRoot):
    """
    订单聚合根。

    总额在创建时由明细计算得出，之后不再改变；状态是创建后唯一可变的字段，
    且只能通过change_status按生命周期表流转。
    """

    def __init__(
        self,
        user_id: str,
        total_amount: Money,
        items: Optional[List[OrderItem]] = None,
        status: str = OrderStatus.PENDING,
        id: Any = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        """
        初始化订单聚合根。

        Args:
            user_id: 下单用户ID
            total_amount: 订单总额
            items: 订单明细列表
            status: 订单状态
            id: 订单ID，如果未提供则自动生成UUID
            created_at: 创建时间
            updated_at: 更新时间
        """
        super().__init__(id)
        now = datetime.now(timezone.utc)
        self.user_id = user_id
        self.total_amount = total_amount
        self.items: List[OrderItem] = list(items or [])
        self.status = status
        self.created_at = created_at or now
        self.updated_at = updated_at or self.created_at
        for item in self.items:
            item.order_id = self.id

    @classmethod
    def create(
        cls,
        user_id: str,
        reservations: Sequence[Reservation],
        currency: str = DEFAULT_CURRENCY,
    ) -> 'OrderAggregate':
        """
        根据库存预留结果创建待处理订单。

        Args:
            user_id: 下单用户ID
            reservations: 预留结果，顺序即明细顺序
            currency: 订单货币单位

        Returns:
            新的订单聚合根，附带OrderCreatedEvent
        """
        total = compute_total(((r.quantity, r.unit_price) for r in reservations), currency)
        items = [
            OrderItem(product_id=r.product_id, quantity=r.quantity, unit_price=r.unit_price)
            for r in reservations
        ]
        order = cls(user_id=user_id, total_amount=total, items=items)
        order.add_domain_event(OrderCreatedEvent(
            order_id=order.id,
            user_id=user_id,
            total_amount=total.amount,
            item_count=len(items),
        ))
        return order

    @property
    def currency(self) -> str:
        return self.total_amount.currency

    def change_status(self, new_status: str) -> str:
        """
        按生命周期表变更订单状态。

        Args:
            new_status: 目标状态

        Returns:
            变更前的状态

        Raises:
            InvalidTransitionException: 流转不被允许
        """
        assert_transition(self.status, new_status)
        old_status = self.status
        self.status = new_status
        self.updated_at = datetime.now(timezone.utc)
        self.add_domain_event(OrderStatusChangedEvent(self.id, old_status, new_status))
        return old_status

    def check_invariants(self) -> bool:
        """总额等于各明细数量乘单价之和，且每行数量至少为1"""
        if any(item.quantity < 1 for item in self.items):
            return False
        expected = compute_total(((i.quantity, i.unit_price) for i in self.items), self.currency)
        return expected.amount == self.total_amount.amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "user_id": self.user_id,
            "status": self.status,
            "total_amount": self.total_amount.to_dict(),
            "items": [
                {
                    "id": str(item.id),
                    "product_id": str(item.product_id),
                    "quantity": item.quantity,
                    "unit_price": item.unit_price.to_dict(),
                    "subtotal": item.subtotal.to_dict(),
                }
                for item in self.items
            ],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
