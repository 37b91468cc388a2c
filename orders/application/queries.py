"""
订单应用服务层的查询对象。
"""
from typing import Any, Optional

from orders.domain.value_objects import Principal


class GetOrderQuery:
    """获取订单详情查询"""

    def __init__(self, principal: Principal, order_id: Any):
        self.principal = principal
        self.order_id = order_id


class ListOrdersQuery:
    """订单列表查询"""

    def __init__(
        self,
        principal: Principal,
        page: int = 1,
        page_size: Optional[int] = None,
        status: Optional[str] = None,
    ):
        """
        初始化订单列表查询。

        Args:
            principal: 查询用户，管理员可查看全部订单
            page: 页码，从1开始
            page_size: 每页条数，默认取配置
            status: 按订单状态过滤
        """
        self.principal = principal
        self.page = page
        self.page_size = page_size
        self.status = status
