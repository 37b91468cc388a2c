"""
订单领域模型中的值对象。
"""
from typing import Any

from core.domain import ValueObject, Money


class Role:
    """调用方角色"""
    ADMIN = "ADMIN"
    CUSTOMER = "CUSTOMER"


class Principal(ValueObject):
    """
    已认证的调用方。
    认证由外部完成，这里只持有不透明的ID和角色。
    """

    def __init__(self, id: Any, role: str = Role.CUSTOMER):
        self.id = str(id) if id is not None else ""
        self.role = role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def __repr__(self) -> str:
        return f"Principal(id={self.id!r}, role={self.role!r})"


class OrderLine(ValueObject):
    """
    下单请求中的一行：商品ID和数量。
    """

    def __init__(self, product_id: Any, quantity: Any):
        self.product_id = product_id
        self.quantity = quantity

    def __repr__(self) -> str:
        return f"OrderLine(product_id={self.product_id!r}, quantity={self.quantity!r})"


class Reservation(ValueObject):
    """
    库存预留结果。
    unit_price是预留时读取的商品单价快照，订单按此计价。
    """

    def __init__(self, product_id: Any, quantity: int, unit_price: Money):
        self.product_id = product_id
        self.quantity = quantity
        self.unit_price = unit_price

    def __repr__(self) -> str:
        return f"Reservation(product_id={self.product_id!r}, quantity={self.quantity}, unit_price={self.unit_price!r})"
