"""
进程内仓储实现。
用于单元测试和嵌入式场景，配合InMemoryTransactionManager使用。

写操作在作用域内持有对应记录的锁直到作用域结束，修改通过作用域的
补偿动作在回滚时撤销。
"""
import copy
import threading
from decimal import Decimal
from typing import Any, Dict, List, Optional, Set, Tuple

from loguru import logger

from core.domain import (
    Money,
    EntityNotFoundException,
    InsufficientStockException,
    LockAcquisitionException,
)
from core.infrastructure.transaction import TransactionScope

from orders.domain import config
from orders.domain.aggregates import OrderAggregate
from orders.domain.repositories import InventoryRepository, OrderRepository
from orders.domain.value_objects import Reservation


class ScopedLocks:
    """
    按键分配的锁表。
    锁由事务作用域持有，作用域结束时统一释放；同一作用域重复加锁不会阻塞。
    没有作用域持有或等待的键会从表中移除。
    """

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        self._locks: Dict[str, threading.RLock] = {}
        # 持有或正在等待该键的作用域数
        self._refs: Dict[str, int] = {}
        self._held: Dict[str, Set[str]] = {}
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def acquire(self, tx: TransactionScope, key: str, resource_name: str) -> None:
        """
        为作用域获取锁。

        Raises:
            LockAcquisitionException: 等待超时
        """
        with self._guard:
            held = self._held.setdefault(tx.id, set())
            if key in held:
                return
            lock = self._locks.setdefault(key, threading.RLock())
            self._refs[key] = self._refs.get(key, 0) + 1

        if not lock.acquire(timeout=self.timeout_seconds):
            with self._guard:
                self._unref(key)
                if not held:
                    self._held.pop(tx.id, None)
            raise LockAcquisitionException(resource_name, f"等待锁超过{self.timeout_seconds}秒")

        first_lock = False
        with self._guard:
            first_lock = not held
            held.add(key)
        if first_lock:
            tx.on_close(lambda: self._release_all(tx.id))

    def _unref(self, key: str) -> None:
        # 调用方持有self._guard
        remaining = self._refs[key] - 1
        if remaining:
            self._refs[key] = remaining
        else:
            del self._refs[key]
            del self._locks[key]

    def _release_all(self, scope_id: str) -> None:
        with self._guard:
            keys = self._held.pop(scope_id, set())
            locks = [self._locks[key] for key in keys]
        for lock in locks:
            lock.release()
        with self._guard:
            for key in keys:
                self._unref(key)


class _StockRecord:
    def __init__(self, product_id: str, name: str, unit_price: Money, available: int):
        self.product_id = product_id
        self.name = name
        self.unit_price = unit_price
        self.available = available
        self.version = 0


class InMemoryInventoryRepository(InventoryRepository):
    """
    进程内库存台账。
    """

    def __init__(self, lock_timeout_seconds: Optional[float] = None):
        timeout = lock_timeout_seconds if lock_timeout_seconds is not None else config.lock_timeout_seconds()
        self._locks = ScopedLocks(timeout)
        self._records: Dict[str, _StockRecord] = {}
        self._guard = threading.Lock()

    def add_product(
        self,
        product_id: Any,
        unit_price: Any,
        available: int,
        name: str = "",
        currency: str = "CNY",
    ) -> str:
        """
        登记商品库存。

        Args:
            product_id: 商品ID
            unit_price: 单价
            available: 可用数量
            name: 商品名称
            currency: 货币单位

        Returns:
            商品ID字符串
        """
        if available < 0:
            raise ValueError(f"可用数量不能为负数: {available}")
        key = str(product_id)
        with self._guard:
            self._records[key] = _StockRecord(key, name, Money(Decimal(str(unit_price)), currency), available)
        return key

    def _get_record(self, product_id: Any) -> Optional[_StockRecord]:
        with self._guard:
            return self._records.get(str(product_id))

    def reserve(self, tx: TransactionScope, product_id: Any, quantity: int) -> Reservation:
        tx.ensure_active()
        record = self._get_record(product_id)
        if record is None:
            raise EntityNotFoundException("商品", product_id)

        self._locks.acquire(tx, record.product_id, f"商品库存(ID={product_id})")

        if record.available < quantity:
            raise InsufficientStockException(product_id, quantity, record.available)

        previous = record.available
        record.available = previous - quantity
        record.version += 1
        tx.on_rollback(lambda: self._restore(record, previous))
        logger.debug(f"库存已预留({tx.id}): product={product_id} quantity={quantity} remaining={record.available}")
        return Reservation(product_id=product_id, quantity=quantity, unit_price=record.unit_price)

    def release(self, tx: TransactionScope, product_id: Any, quantity: int) -> None:
        tx.ensure_active()
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            logger.warning(f"忽略无效的库存归还({tx.id}): product={product_id} quantity={quantity!r}")
            return

        record = self._get_record(product_id)
        if record is None:
            logger.warning(f"归还库存时商品不存在({tx.id}): product={product_id} quantity={quantity}")
            return

        self._locks.acquire(tx, record.product_id, f"商品库存(ID={product_id})")
        previous = record.available
        record.available = max(0, previous + quantity)
        record.version += 1
        tx.on_rollback(lambda: self._restore(record, previous))
        logger.debug(f"库存已归还({tx.id}): product={product_id} quantity={quantity}")

    @staticmethod
    def _restore(record: _StockRecord, available: int) -> None:
        record.available = available
        record.version += 1

    def get_available(self, product_id: Any) -> Optional[int]:
        record = self._get_record(product_id)
        return record.available if record is not None else None


class InMemoryOrderRepository(OrderRepository):
    """
    进程内订单仓储。
    保存聚合根的副本，调用方拿到的对象与存储互不影响。
    """

    def __init__(self, lock_timeout_seconds: Optional[float] = None):
        timeout = lock_timeout_seconds if lock_timeout_seconds is not None else config.lock_timeout_seconds()
        self._locks = ScopedLocks(timeout)
        self._orders: Dict[str, OrderAggregate] = {}
        self._guard = threading.Lock()

    @staticmethod
    def _copy(order: OrderAggregate) -> OrderAggregate:
        snapshot = copy.deepcopy(order)
        snapshot.clear_domain_events()
        return snapshot

    def create(self, tx: TransactionScope, order: OrderAggregate) -> OrderAggregate:
        tx.ensure_active()
        key = str(order.id)
        with self._guard:
            self._orders[key] = self._copy(order)
        tx.on_rollback(lambda: self._discard(key))
        return order

    def _discard(self, key: str) -> None:
        with self._guard:
            self._orders.pop(key, None)

    def _put(self, key: str, order: OrderAggregate) -> None:
        with self._guard:
            self._orders[key] = order

    def get_for_update(self, tx: TransactionScope, id: Any) -> Optional[OrderAggregate]:
        tx.ensure_active()
        key = str(id)
        self._locks.acquire(tx, key, f"订单(ID={id})")
        with self._guard:
            order = self._orders.get(key)
        return self._copy(order) if order is not None else None

    def update_status(self, tx: TransactionScope, order: OrderAggregate) -> OrderAggregate:
        tx.ensure_active()
        key = str(order.id)
        with self._guard:
            previous = self._orders.get(key)
            self._orders[key] = self._copy(order)
        if previous is not None:
            tx.on_rollback(lambda: self._put(key, previous))
        else:
            tx.on_rollback(lambda: self._discard(key))
        return order

    def get_by_id(self, id: Any) -> Optional[OrderAggregate]:
        with self._guard:
            order = self._orders.get(str(id))
        return self._copy(order) if order is not None else None

    def list(self, skip: int = 0, limit: int = 100, **filters) -> Tuple[List[OrderAggregate], int]:
        user_id = filters.get('user_id')
        status = filters.get('status')
        with self._guard:
            # 倒序插入顺序，创建时间相同时后创建的排在前面
            orders = list(reversed(list(self._orders.values())))
        if user_id is not None:
            orders = [o for o in orders if o.user_id == str(user_id)]
        if status:
            orders = [o for o in orders if o.status == status]
        orders.sort(key=lambda o: o.created_at, reverse=True)
        return [self._copy(o) for o in orders[skip:skip + limit]], len(orders)
