"""
聚合根模块。
包含AggregateRoot基类，用于定义领域聚合的边界和不变性规则。
"""
from typing import Any, List
from core.domain.base import Entity
from core.domain.events import DomainEvent


class AggregateRoot(Entity):
    """
    聚合根基类。
    聚合根定义聚合边界，是外部修改聚合内部对象的唯一入口，
    并收集待发布的领域事件。
    """

    def __init__(self, id: Any = None):
        """
        初始化聚合根。

        Args:
            id: 聚合根标识，如果未提供，将自动生成UUID
        """
        super().__init__(id)
        self._domain_events: List[DomainEvent] = []

    @property
    def domain_events(self) -> List[DomainEvent]:
        """获取尚未发布的领域事件（只读副本）"""
        return list(self._domain_events)

    def add_domain_event(self, event: DomainEvent) -> None:
        """
        添加领域事件到事件列表中，等待发布。

        Args:
            event: 要添加的领域事件
        """
        self._domain_events.append(event)

    def clear_domain_events(self) -> List[DomainEvent]:
        """
        清除并返回所有未发布的领域事件。

        Returns:
            未发布的领域事件列表
        """
        events = self._domain_events.copy()
        self._domain_events.clear()
        return events

    def check_invariants(self) -> bool:
        """
        检查聚合的不变性规则。
        子类应该重写此方法以实现特定的业务规则验证。

        Returns:
            如果所有不变性规则都满足，则返回True；否则返回False
        """
        return True
