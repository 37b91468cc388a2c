"""
库存台账的Django实现。

预留时先用SELECT ... FOR UPDATE锁住商品行，再以版本号做条件UPDATE（CAS）。
行锁保证同一商品的预留串行执行，CAS在隔离级别较弱或行锁失效时兜底，
冲突时在有限次数内重试。
"""
from typing import Any, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, OperationalError, connections
from django.db.models import F, Value
from django.db.models.functions import Greatest
from django.utils import timezone
from loguru import logger

from core.domain import (
    Money,
    EntityNotFoundException,
    InsufficientStockException,
    LockAcquisitionException,
    StorageFailureException,
)
from core.infrastructure.transaction import DjangoTransactionScope

from orders.domain import config
from orders.domain.repositories import InventoryRepository
from orders.domain.value_objects import Reservation
from orders.infrastructure.models.order_models import Product as ProductModel


class DjangoInventoryRepository(InventoryRepository):
    """
    基于Django ORM的库存台账实现。
    """

    def __init__(self, lock_timeout_seconds: Optional[float] = None, max_retries: Optional[int] = None):
        """
        初始化库存台账。

        Args:
            lock_timeout_seconds: 等待行锁的最长时间（秒），默认取配置
            max_retries: CAS更新的最大尝试次数，默认取配置
        """
        self.lock_timeout_seconds = (
            lock_timeout_seconds if lock_timeout_seconds is not None else config.lock_timeout_seconds()
        )
        self.max_retries = max(1, max_retries if max_retries is not None else config.reservation_max_retries())

    def _apply_lock_timeout(self, tx: DjangoTransactionScope) -> None:
        """按数据库类型设置本事务的锁等待上限，SQLite的写锁由连接的timeout控制"""
        vendor = tx.vendor
        if vendor == 'postgresql':
            milliseconds = max(1, int(self.lock_timeout_seconds * 1000))
            with connections[tx.using].cursor() as cursor:
                cursor.execute(f"SET LOCAL lock_timeout = {milliseconds}")
        elif vendor == 'mysql':
            # MySQL只能设置会话级超时，作用域结束时恢复原值，持久连接上的后续事务不受影响
            seconds = max(1, int(self.lock_timeout_seconds))
            with connections[tx.using].cursor() as cursor:
                cursor.execute("SELECT @@SESSION.innodb_lock_wait_timeout")
                previous = int(cursor.fetchone()[0])
                if previous != seconds:
                    cursor.execute(f"SET SESSION innodb_lock_wait_timeout = {seconds}")
                    tx.on_close(lambda: self._restore_mysql_lock_timeout(tx, previous))

    @staticmethod
    def _restore_mysql_lock_timeout(tx: DjangoTransactionScope, seconds: int) -> None:
        try:
            with connections[tx.using].cursor() as cursor:
                cursor.execute(f"SET SESSION innodb_lock_wait_timeout = {seconds}")
        except DatabaseError as e:
            # 连接已损坏时Django会丢弃该连接，会话设置随之失效
            logger.warning(f"恢复锁等待超时失败({tx.id}): {e}")

    def _lock_product(self, tx: DjangoTransactionScope, product_id: Any) -> ProductModel:
        try:
            return (
                ProductModel.objects.using(tx.using)
                .select_for_update()
                .only('id', 'price_amount', 'price_currency', 'available_quantity', 'version')
                .get(id=product_id)
            )
        except (ProductModel.DoesNotExist, ValueError, DjangoValidationError):
            raise EntityNotFoundException("商品", product_id)
        except OperationalError as e:
            raise LockAcquisitionException(f"商品库存(ID={product_id})", str(e)) from e

    def reserve(self, tx: DjangoTransactionScope, product_id: Any, quantity: int) -> Reservation:
        """
        预留库存。

        Args:
            tx: 事务作用域
            product_id: 商品ID
            quantity: 预留数量

        Returns:
            带单价快照的预留结果

        Raises:
            EntityNotFoundException: 商品不存在
            InsufficientStockException: 可用库存不足
            LockAcquisitionException: 等待行锁超时
            StorageFailureException: CAS重试耗尽
        """
        tx.ensure_active()
        self._apply_lock_timeout(tx)

        for attempt in range(1, self.max_retries + 1):
            product = self._lock_product(tx, product_id)

            if product.available_quantity < quantity:
                raise InsufficientStockException(product_id, quantity, product.available_quantity)

            # 使用F表达式和版本号进行乐观锁控制
            rows_updated = ProductModel.objects.using(tx.using).filter(
                id=product.id,
                version=product.version,
                available_quantity__gte=quantity
            ).update(
                available_quantity=F('available_quantity') - quantity,
                version=F('version') + 1,
                updated_at=timezone.now()
            )

            if rows_updated == 1:
                logger.debug(
                    f"库存已预留({tx.id}): product={product_id} quantity={quantity} "
                    f"remaining={product.available_quantity - quantity}"
                )
                return Reservation(
                    product_id=product.id,
                    quantity=quantity,
                    unit_price=Money(product.price_amount, product.price_currency),
                )

            logger.warning(f"库存并发更新冲突({tx.id}): product={product_id} attempt={attempt}")

        raise StorageFailureException(
            "预留库存", f"商品(ID={product_id})并发更新冲突，重试{self.max_retries}次后仍未成功"
        )

    def release(self, tx: DjangoTransactionScope, product_id: Any, quantity: int) -> None:
        """
        归还库存，结果不低于0。

        Args:
            tx: 事务作用域
            product_id: 商品ID
            quantity: 归还数量
        """
        tx.ensure_active()
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            logger.warning(f"忽略无效的库存归还({tx.id}): product={product_id} quantity={quantity!r}")
            return

        try:
            rows_updated = ProductModel.objects.using(tx.using).filter(id=product_id).update(
                available_quantity=Greatest(F('available_quantity') + quantity, Value(0)),
                version=F('version') + 1,
                updated_at=timezone.now()
            )
        except (ValueError, DjangoValidationError):
            rows_updated = 0

        if rows_updated == 0:
            logger.warning(f"归还库存时商品不存在({tx.id}): product={product_id} quantity={quantity}")
            return
        logger.debug(f"库存已归还({tx.id}): product={product_id} quantity={quantity}")

    def get_available(self, product_id: Any) -> Optional[int]:
        try:
            return (
                ProductModel.objects.filter(id=product_id)
                .values_list('available_quantity', flat=True)
                .first()
            )
        except (ValueError, DjangoValidationError):
            return None
