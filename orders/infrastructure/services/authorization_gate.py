"""
基于角色的授权关口。
"""
from orders.domain.aggregates import OrderAggregate
from orders.domain.repositories import AuthorizationGate
from orders.domain.value_objects import Principal


class RoleAuthorizationGate(AuthorizationGate):
    """
    管理员可以变更订单状态并查看全部订单，普通用户只能查看自己的订单。
    """

    def can_change_order_status(self, principal: Principal) -> bool:
        return principal.is_admin

    def can_view_order(self, principal: Principal, order: OrderAggregate) -> bool:
        return principal.is_admin or order.user_id == principal.id

    def can_view_all_orders(self, principal: Principal) -> bool:
        return principal.is_admin
