"""
订单领域模型中的服务。
包含下单协调服务和订单状态服务。
"""
from typing import Any, List, Optional, Sequence, Tuple
import uuid

from loguru import logger

from core.domain import ValidationException, EntityNotFoundException
from core.domain.events import DomainEvents
from core.infrastructure.transaction import TransactionManager

from orders.domain import config
from orders.domain.aggregates import OrderAggregate
from orders.domain.entities import OrderStatus
from orders.domain.repositories import InventoryRepository, OrderRepository
from orders.domain.value_objects import OrderLine, Reservation


def _parse_product_id(value: Any, index: int) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    if isinstance(value, str):
        try:
            return uuid.UUID(value)
        except ValueError:
            pass
    raise ValidationException(f"items[{index}].product_id", f"商品ID不是有效的UUID: {value!r}")


def validate_order_lines(
    principal_id: Any,
    lines: Sequence[OrderLine],
    max_items: Optional[int] = None,
) -> List[Tuple[uuid.UUID, int]]:
    """
    校验下单请求的结构。

    只检查输入本身，不访问存储。

    Args:
        principal_id: 下单用户ID
        lines: 下单明细
        max_items: 最大明细行数，默认取配置

    Returns:
        规范化后的(商品UUID, 数量)列表，顺序与请求一致

    Raises:
        ValidationException: 输入结构无效
    """
    if principal_id is None or str(principal_id).strip() == "":
        raise ValidationException("principal", "缺少下单用户")
    if not lines:
        raise ValidationException("items", "订单至少需要一个商品")

    max_items = max_items if max_items is not None else config.max_items_per_order()
    if len(lines) > max_items:
        raise ValidationException("items", f"订单明细不能超过{max_items}行")

    normalized = []
    for index, line in enumerate(lines):
        product_id = _parse_product_id(line.product_id, index)
        quantity = line.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationException(f"items[{index}].quantity", f"数量必须是整数: {quantity!r}")
        if quantity <= 0:
            raise ValidationException(f"items[{index}].quantity", f"数量必须为正数: {quantity}")
        normalized.append((product_id, quantity))
    return normalized


def _publish_events(order: OrderAggregate) -> None:
    for event in order.clear_domain_events():
        DomainEvents.publish(event)


class OrderPlacementService:
    """
    下单协调服务。

    在一个事务作用域内完成预留库存、计价和持久化订单，
    任一步骤失败则整体回滚。
    """

    def __init__(
        self,
        inventory_repository: InventoryRepository,
        order_repository: OrderRepository,
        transaction_manager: TransactionManager,
        currency: Optional[str] = None,
    ):
        """
        初始化下单协调服务。

        Args:
            inventory_repository: 库存台账
            order_repository: 订单仓储
            transaction_manager: 事务管理器
            currency: 订单货币单位，默认取配置
        """
        self.inventory_repository = inventory_repository
        self.order_repository = order_repository
        self.transaction_manager = transaction_manager
        self.currency = currency or config.currency()

    def place_order(self, principal_id: Any, lines: Sequence[OrderLine]) -> OrderAggregate:
        """
        下单。

        Args:
            principal_id: 下单用户ID
            lines: 下单明细

        Returns:
            已提交的订单聚合根，明细顺序与请求一致

        Raises:
            ValidationException: 输入结构无效时未访问存储；总额超出金额上限时预留已回滚
            EntityNotFoundException: 商品不存在
            InsufficientStockException: 库存不足，第一个失败的商品
            StorageFailureException: 存储故障，未部分提交
        """
        normalized = validate_order_lines(principal_id, lines)
        user_id = str(principal_id)

        # 按商品ID升序加锁，避免交叉请求死锁
        lock_order = sorted(range(len(normalized)), key=lambda i: normalized[i][0])
        reservations: List[Optional[Reservation]] = [None] * len(normalized)

        with self.transaction_manager.start() as tx:
            for index in lock_order:
                product_id, quantity = normalized[index]
                reservations[index] = self.inventory_repository.reserve(tx, product_id, quantity)

            order = OrderAggregate.create(user_id, reservations, self.currency)
            order = self.order_repository.create(tx, order)

        logger.info(
            f"订单已创建: order={order.id} user={user_id} "
            f"items={len(order.items)} total={order.total_amount}"
        )
        _publish_events(order)
        return order


class OrderStatusService:
    """
    订单状态服务。
    按生命周期表变更订单状态，取消时可在同一事务内归还库存。
    """

    def __init__(
        self,
        order_repository: OrderRepository,
        inventory_repository: InventoryRepository,
        transaction_manager: TransactionManager,
        release_stock_on_cancel: Optional[bool] = None,
    ):
        """
        初始化订单状态服务。

        Args:
            order_repository: 订单仓储
            inventory_repository: 库存台账
            transaction_manager: 事务管理器
            release_stock_on_cancel: 取消时是否归还库存，默认取配置
        """
        self.order_repository = order_repository
        self.inventory_repository = inventory_repository
        self.transaction_manager = transaction_manager
        if release_stock_on_cancel is None:
            release_stock_on_cancel = config.release_stock_on_cancel()
        self.release_stock_on_cancel = release_stock_on_cancel

    def change_status(self, order_id: Any, new_status: Any) -> OrderAggregate:
        """
        变更订单状态。

        Args:
            order_id: 订单ID
            new_status: 目标状态

        Returns:
            变更后的订单聚合根

        Raises:
            ValidationException: 目标状态不是有效的订单状态
            EntityNotFoundException: 订单不存在
            InvalidTransitionException: 流转不在允许表中
            StorageFailureException: 存储故障
        """
        if not OrderStatus.is_valid(new_status):
            raise ValidationException("status", f"无效的订单状态: {new_status!r}")

        with self.transaction_manager.start() as tx:
            order = self.order_repository.get_for_update(tx, order_id)
            if order is None:
                raise EntityNotFoundException("订单", order_id)

            old_status = order.change_status(new_status)

            if new_status == OrderStatus.CANCELLED and self.release_stock_on_cancel:
                for item in sorted(order.items, key=lambda i: str(i.product_id)):
                    self.inventory_repository.release(tx, item.product_id, item.quantity)

            order = self.order_repository.update_status(tx, order)

        logger.info(f"订单状态已变更: order={order.id} {old_status} -> {new_status}")
        _publish_events(order)
        return order
