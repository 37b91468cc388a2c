"""
订单仓储的Django实现。
"""
from typing import Any, List, Optional, Tuple

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import OperationalError

from core.domain import Money, LockAcquisitionException
from core.infrastructure.transaction import DjangoTransactionScope

from orders.domain.aggregates import OrderAggregate
from orders.domain.entities import OrderItem
from orders.domain.repositories import OrderRepository
from orders.infrastructure.models.order_models import (
    Order as OrderModel,
    OrderItem as OrderItemModel,
)


class DjangoOrderRepository(OrderRepository):
    """
    基于Django ORM的订单仓储实现。
    """

    def create(self, tx: DjangoTransactionScope, order: OrderAggregate) -> OrderAggregate:
        """
        持久化订单头和明细。

        Args:
            tx: 事务作用域
            order: 新建的订单聚合根

        Returns:
            持久化后的订单聚合根
        """
        tx.ensure_active()
        order_model = OrderModel.objects.using(tx.using).create(
            id=order.id,
            user_id=order.user_id,
            status=order.status,
            total_amount=order.total_amount.amount,
            currency=order.currency,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
        OrderItemModel.objects.using(tx.using).bulk_create([
            OrderItemModel(
                id=item.id,
                order=order_model,
                position=position,
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price=item.unit_price.amount,
                created_at=item.created_at,
            )
            for position, item in enumerate(order.items)
        ])
        return order

    def get_for_update(self, tx: DjangoTransactionScope, id: Any) -> Optional[OrderAggregate]:
        tx.ensure_active()
        try:
            order_model = OrderModel.objects.using(tx.using).select_for_update().get(id=id)
        except (OrderModel.DoesNotExist, ValueError, TypeError, DjangoValidationError):
            return None
        except OperationalError as e:
            raise LockAcquisitionException(f"订单(ID={id})", str(e)) from e

        items = list(OrderItemModel.objects.using(tx.using).filter(order_id=order_model.id))
        return self._to_domain_aggregate(order_model, items)

    def update_status(self, tx: DjangoTransactionScope, order: OrderAggregate) -> OrderAggregate:
        tx.ensure_active()
        OrderModel.objects.using(tx.using).filter(id=order.id).update(
            status=order.status,
            updated_at=order.updated_at,
        )
        return order

    def get_by_id(self, id: Any) -> Optional[OrderAggregate]:
        """
        根据ID获取订单聚合根。

        Args:
            id: 订单ID

        Returns:
            找到的订单聚合根，如果不存在则返回None
        """
        try:
            order_model = OrderModel.objects.prefetch_related('items').get(id=id)
        except (OrderModel.DoesNotExist, ValueError, TypeError, DjangoValidationError):
            return None
        return self._to_domain_aggregate(order_model, list(order_model.items.all()))

    def list(self, skip: int = 0, limit: int = 100, **filters) -> Tuple[List[OrderAggregate], int]:
        """
        按创建时间倒序获取订单列表。

        Args:
            skip: 跳过的记录数
            limit: 返回的最大记录数
            **filters: 支持user_id和status

        Returns:
            (订单列表, 总数)
        """
        queryset = OrderModel.objects.all()
        if filters.get('user_id') is not None:
            queryset = queryset.filter(user_id=str(filters['user_id']))
        if filters.get('status'):
            queryset = queryset.filter(status=filters['status'])

        total = queryset.count()
        order_models = queryset.order_by('-created_at', '-id').prefetch_related('items')[skip:skip + limit]
        return [self._to_domain_aggregate(m, list(m.items.all())) for m in order_models], total

    def _to_domain_aggregate(self, order_model: OrderModel, item_models: List[OrderItemModel]) -> OrderAggregate:
        """
        将数据库模型转换为领域聚合根。

        Args:
            order_model: 订单模型
            item_models: 明细模型，按行号排序

        Returns:
            订单聚合根
        """
        items = [
            OrderItem(
                id=item.id,
                order_id=order_model.id,
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price=Money(item.unit_price, order_model.currency),
                created_at=item.created_at,
            )
            for item in sorted(item_models, key=lambda m: m.position)
        ]
        return OrderAggregate(
            id=order_model.id,
            user_id=order_model.user_id,
            status=order_model.status,
            total_amount=Money(order_model.total_amount, order_model.currency),
            items=items,
            created_at=order_model.created_at,
            updated_at=order_model.updated_at,
        )
