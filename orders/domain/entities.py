"""
订单领域模型中的实体。
包含订单状态、订单明细实体以及状态流转异常。
"""
from datetime import datetime, timezone
from typing import Any, Dict

from core.domain import Entity, Money, BusinessRuleViolationException, ErrorKind


class OrderStatus:
    """订单状态枚举"""
    PENDING = "PENDING"          # 待处理
    PROCESSING = "PROCESSING"    # 处理中
    SHIPPED = "SHIPPED"          # 已发货
    DELIVERED = "DELIVERED"      # 已送达
    CANCELLED = "CANCELLED"      # 已取消

    ALL = (PENDING, PROCESSING, SHIPPED, DELIVERED, CANCELLED)

    @classmethod
    def is_valid(cls, value: Any) -> bool:
        return isinstance(value, str) and value in cls.ALL


class InvalidTransitionException(BusinessRuleViolationException):
    """订单状态流转异常"""

    kind = ErrorKind.INVALID_TRANSITION

    def __init__(self, current_status: str, requested_status: str):
        super().__init__("订单状态流转", f"订单状态不能从 {current_status} 变更为 {requested_status}")
        self.current_status = current_status
        self.requested_status = requested_status

    def details(self) -> Dict[str, Any]:
        return {"current": self.current_status, "requested": self.requested_status}


class OrderItem(Entity):
    """
    订单明细实体。
    记录下单时的商品、数量和单价快照，创建后不可修改。
    """

    def __init__(
        self,
        product_id: Any,
        quantity: int,
        unit_price: Money,
        id: Any = None,
        order_id: Any = None,
        created_at: datetime = None,
    ):
        """
        初始化订单明细。

        Args:
            product_id: 商品ID
            quantity: 购买数量
            unit_price: 下单时的单价快照
            id: 明细ID，如果未提供则自动生成
            order_id: 所属订单ID
            created_at: 创建时间
        """
        super().__init__(id)
        self.order_id = order_id
        self.product_id = product_id
        self.quantity = quantity
        self.unit_price = unit_price
        self.created_at = created_at or datetime.now(timezone.utc)

    @property
    def subtotal(self) -> Money:
        """明细小计，数量乘以单价后舍入到分"""
        return (self.unit_price * self.quantity).quantize()
