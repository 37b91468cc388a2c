"""
订单应用服务层的命令对象。
定义用于修改系统状态的命令。
"""
from typing import Any, List

from orders.domain.value_objects import OrderLine, Principal


class PlaceOrderCommand:
    """下单命令"""

    def __init__(self, principal: Principal, items: List[OrderLine]):
        """
        初始化下单命令。

        Args:
            principal: 下单用户
            items: 下单明细
        """
        self.principal = principal
        self.items = items


class ChangeOrderStatusCommand:
    """变更订单状态命令"""

    def __init__(self, principal: Principal, order_id: Any, status: str):
        """
        初始化变更订单状态命令。

        Args:
            principal: 操作用户
            order_id: 订单ID
            status: 目标状态
        """
        self.principal = principal
        self.order_id = order_id
        self.status = status
