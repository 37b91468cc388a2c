"""
订单领域模型中的事件。
定义订单相关的领域事件，事件在事务提交后发布。
"""
from typing import Any

from core.domain.events import DomainEvent


class OrderCreatedEvent(DomainEvent):
    """订单创建事件"""

    def __init__(self, order_id: Any, user_id: str, total_amount: Any, item_count: int):
        """
        初始化订单创建事件。

        Args:
            order_id: 订单ID
            user_id: 下单用户ID
            total_amount: 订单总额
            item_count: 明细行数
        """
        super().__init__()
        self.order_id = order_id
        self.user_id = user_id
        self.total_amount = total_amount
        self.item_count = item_count


class OrderStatusChangedEvent(DomainEvent):
    """订单状态变更事件"""

    def __init__(self, order_id: Any, old_status: str, new_status: str):
        """
        初始化订单状态变更事件。

        Args:
            order_id: 订单ID
            old_status: 旧状态
            new_status: 新状态
        """
        super().__init__()
        self.order_id = order_id
        self.old_status = old_status
        self.new_status = new_status
