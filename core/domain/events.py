"""
领域事件模块。
包含DomainEvent基类和DomainEvents管理器，用于领域事件的发布和订阅。
"""
from datetime import datetime, timezone
from threading import RLock
from typing import Callable, Dict, List, Type
import uuid

from loguru import logger


class DomainEvent:
    """
    领域事件基类。
    领域事件表示领域模型中已经发生的重要事实，只在事务提交后发布。
    """

    def __init__(self):
        self.id = uuid.uuid4()
        self.occurred_on = datetime.now(timezone.utc)


# 事件处理器类型
EventHandler = Callable[[DomainEvent], None]


class DomainEvents:
    """
    领域事件管理器。
    负责事件的发布和订阅。请求并发执行，处理器表的读写需要加锁。
    """

    _handlers: Dict[Type[DomainEvent], List[EventHandler]] = {}
    _lock = RLock()

    @classmethod
    def register(cls, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        """
        注册事件处理器。

        Args:
            event_type: 事件类型
            handler: 事件处理器函数
        """
        with cls._lock:
            cls._handlers.setdefault(event_type, []).append(handler)

    @classmethod
    def unregister(cls, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        """
        取消注册事件处理器。

        Args:
            event_type: 事件类型
            handler: 事件处理器函数
        """
        with cls._lock:
            if event_type in cls._handlers:
                cls._handlers[event_type].remove(handler)
                if not cls._handlers[event_type]:
                    del cls._handlers[event_type]

    @classmethod
    def publish(cls, event: DomainEvent) -> None:
        """
        发布事件，调用所有注册到该事件类型的处理器。

        事件在事务提交后发布，处理器失败不能撤销已提交的事实，
        因此只记录日志，不向调用方传播。

        Args:
            event: 要发布的事件
        """
        with cls._lock:
            handlers = list(cls._handlers.get(type(event), []))
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(f"领域事件处理失败: {type(event).__name__} id={event.id}")

    @classmethod
    def clear_handlers(cls) -> None:
        """
        清除所有事件处理器。
        通常用于测试环境的重置。
        """
        with cls._lock:
            cls._handlers.clear()
