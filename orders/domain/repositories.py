"""
订单领域模型中的仓储接口。
定义库存台账、订单仓储和授权关口的接口。

写方法都接收显式的事务作用域句柄，调用方必须在TransactionManager.start()
产出的作用域内调用，写入随作用域一起提交或回滚。
"""
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Tuple

from core.domain.repositories import ReadOnlyRepository
from core.infrastructure.transaction import TransactionScope

from orders.domain.aggregates import OrderAggregate
from orders.domain.value_objects import Principal, Reservation


class InventoryRepository(ABC):
    """
    库存台账接口。
    商品可用库存只能通过该接口修改。
    """

    @abstractmethod
    def reserve(self, tx: TransactionScope, product_id: Any, quantity: int) -> Reservation:
        """
        原子地检查并扣减库存。

        同一商品的并发预留串行执行，后到者能看到先到者的扣减。

        Args:
            tx: 事务作用域
            product_id: 商品ID
            quantity: 预留数量，正整数

        Returns:
            带单价快照的预留结果

        Raises:
            EntityNotFoundException: 商品不存在
            InsufficientStockException: 可用库存不足，库存不变
            StorageFailureException: 等锁超时或并发冲突重试耗尽
        """
        pass

    @abstractmethod
    def release(self, tx: TransactionScope, product_id: Any, quantity: int) -> None:
        """
        归还库存。

        总是成功：结果不低于0；商品不存在或数量非正时只记录日志。

        Args:
            tx: 事务作用域
            product_id: 商品ID
            quantity: 归还数量
        """
        pass

    @abstractmethod
    def get_available(self, product_id: Any) -> Optional[int]:
        """
        读取可用库存，不加锁，与进行中的预留不保证线性一致。

        Returns:
            可用数量，商品不存在时返回None
        """
        pass


class OrderRepository(ReadOnlyRepository[OrderAggregate]):
    """
    订单仓储接口。
    """

    @abstractmethod
    def create(self, tx: TransactionScope, order: OrderAggregate) -> OrderAggregate:
        """
        在事务作用域内持久化订单头和全部明细。

        Args:
            tx: 事务作用域
            order: 新建的订单聚合根

        Returns:
            持久化后的订单聚合根
        """
        pass

    @abstractmethod
    def get_for_update(self, tx: TransactionScope, id: Any) -> Optional[OrderAggregate]:
        """
        在事务作用域内加锁读取订单。

        Returns:
            订单聚合根，不存在时返回None
        """
        pass

    @abstractmethod
    def update_status(self, tx: TransactionScope, order: OrderAggregate) -> OrderAggregate:
        """
        在事务作用域内保存订单状态。

        Args:
            tx: 事务作用域
            order: 状态已变更的订单聚合根

        Returns:
            保存后的订单聚合根
        """
        pass

    @abstractmethod
    def get_by_id(self, id: Any) -> Optional[OrderAggregate]:
        pass

    @abstractmethod
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
        pass


class AuthorizationGate(ABC):
    """
    授权关口接口。
    在调用领域服务之前判断调用方是否具备相应能力。
    """

    @abstractmethod
    def can_change_order_status(self, principal: Principal) -> bool:
        pass

    @abstractmethod
    def can_view_order(self, principal: Principal, order: OrderAggregate) -> bool:
        pass

    @abstractmethod
    def can_view_all_orders(self, principal: Principal) -> bool:
        pass
