"""
订单应用服务层的数据传输对象(DTOs)。
定义应用服务与外部通信使用的数据结构。
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from core.domain import DomainException, quantize_amount

from orders.domain.aggregates import OrderAggregate
from orders.domain.entities import OrderItem


class OrderItemDTO:
    """订单明细DTO"""

    def __init__(
        self,
        id: str,
        product_id: str,
        quantity: int,
        unit_price: Decimal,
        subtotal: Decimal,
    ):
        self.id = id
        self.product_id = product_id
        self.quantity = quantity
        self.unit_price = unit_price
        self.subtotal = subtotal

    @classmethod
    def from_entity(cls, item: OrderItem) -> 'OrderItemDTO':
        return cls(
            id=str(item.id),
            product_id=str(item.product_id),
            quantity=item.quantity,
            unit_price=quantize_amount(item.unit_price.amount),
            subtotal=item.subtotal.amount,
        )


class OrderDTO:
    """订单DTO"""

    def __init__(
        self,
        id: str,
        user_id: str,
        status: str,
        total_amount: Decimal,
        currency: str,
        items: List[OrderItemDTO],
        created_at: datetime,
        updated_at: datetime,
    ):
        """
        初始化订单DTO。

        Args:
            id: 订单ID
            user_id: 下单用户ID
            status: 订单状态
            total_amount: 订单总额
            currency: 货币单位
            items: 订单明细
            created_at: 创建时间
            updated_at: 更新时间
        """
        self.id = id
        self.user_id = user_id
        self.status = status
        self.total_amount = total_amount
        self.currency = currency
        self.items = items
        self.created_at = created_at
        self.updated_at = updated_at

    @classmethod
    def from_aggregate(cls, order: OrderAggregate) -> 'OrderDTO':
        """
        从订单聚合根创建DTO。

        Args:
            order: 订单聚合根

        Returns:
            订单DTO
        """
        return cls(
            id=str(order.id),
            user_id=order.user_id,
            status=order.status,
            total_amount=quantize_amount(order.total_amount.amount),
            currency=order.currency,
            items=[OrderItemDTO.from_entity(item) for item in order.items],
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class ErrorDTO:
    """
    错误DTO。
    kind区分错误类别，retriable标记调用方能否原样重试。
    """

    def __init__(self, kind: str, message: str, retriable: bool = False, details: Optional[Dict[str, Any]] = None):
        self.kind = kind
        self.message = message
        self.retriable = retriable
        self.details = details or {}

    @classmethod
    def from_exception(cls, exc: DomainException) -> 'ErrorDTO':
        return cls(kind=exc.kind, message=exc.message, retriable=exc.retriable, details=exc.details())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "retriable": self.retriable,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"ErrorDTO(kind={self.kind!r}, message={self.message!r})"


class OrderResult:
    """
    订单操作结果。
    成功时ok为True并携带order，失败时携带error，二者只有一个非空。
    """

    def __init__(self, order: Optional[OrderDTO] = None, error: Optional[ErrorDTO] = None):
        if (order is None) == (error is None):
            raise ValueError("OrderResult必须且只能携带order或error之一")
        self.order = order
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, order: OrderDTO) -> 'OrderResult':
        return cls(order=order)

    @classmethod
    def failure(cls, error: ErrorDTO) -> 'OrderResult':
        return cls(error=error)

    def is_error(self, kind: str) -> bool:
        return self.error is not None and self.error.kind == kind


class OrderListDTO:
    """订单列表DTO"""

    def __init__(self, items: List[OrderDTO], total: int, page: int, page_size: int):
        """
        初始化订单列表DTO。

        Args:
            items: 订单DTO列表
            total: 总数
            page: 当前页码
            page_size: 每页条数
        """
        self.items = items
        self.total = total
        self.page = page
        self.page_size = page_size
