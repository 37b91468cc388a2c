"""
订单应用层。
"""
from orders.application.commands import PlaceOrderCommand, ChangeOrderStatusCommand
from orders.application.queries import GetOrderQuery, ListOrdersQuery
from orders.application.dtos import OrderDTO, OrderItemDTO, ErrorDTO, OrderResult, OrderListDTO
from orders.application.order_service import OrderApplicationService

__all__ = [
    # 命令
    'PlaceOrderCommand',
    'ChangeOrderStatusCommand',

    # 查询
    'GetOrderQuery',
    'ListOrdersQuery',

    # DTO
    'OrderDTO',
    'OrderItemDTO',
    'ErrorDTO',
    'OrderResult',
    'OrderListDTO',

    # 应用服务
    'OrderApplicationService',
]
