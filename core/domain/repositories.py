"""
仓储接口模块。
定义仓储接口，用于持久化和检索领域对象。

写操作显式接收事务作用域句柄，仓储不持有隐式的全局连接状态。
"""
from abc import ABC, abstractmethod
from typing import Any, Generic, List, Optional, Tuple, TypeVar

T = TypeVar('T')


class ReadOnlyRepository(Generic[T], ABC):
    """
    只读仓储接口。
    事务之外的读取，结果不保证与并发写入线性一致。
    """

    @abstractmethod
    def get_by_id(self, id: Any) -> Optional[T]:
        """
        根据ID获取实体。

        Args:
            id: 实体ID

        Returns:
            找到的实体，如果不存在则返回None
        """
        pass

    @abstractmethod
    def list(
        self,
        skip: int = 0,
        limit: int = 100,
        **filters: Any
    ) -> Tuple[List[T], int]:
        """
        获取实体列表。

        Args:
            skip: 跳过的记录数
            limit: 返回的最大记录数
            filters: 过滤条件

        Returns:
            实体列表和总数的元组
        """
        pass
