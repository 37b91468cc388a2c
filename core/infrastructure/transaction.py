"""
事务管理器模块。
提供事务控制的接口和实现。

start()返回的上下文管理器产出一个事务作用域句柄，调用方把句柄显式传给
仓储的写方法。作用域正常退出即提交；任何异常（包括调用方取消引发的
BaseException）都会整体回滚。
"""
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Callable, Generator, List
import uuid

from django.db import DatabaseError, connections, transaction as django_transaction
from loguru import logger

from core.domain.exceptions import DomainException, StorageFailureException


class TransactionScope:
    """
    事务作用域句柄。

    记录作用域结束时需要执行的动作：on_rollback注册的补偿动作只在回滚时
    逆序执行，on_close注册的收尾动作（如释放进程内锁）无论结果都会执行。
    """

    def __init__(self):
        self.id = uuid.uuid4().hex[:12]
        self._rollback_actions: List[Callable[[], None]] = []
        self._close_actions: List[Callable[[], None]] = []
        self._closed = False

    @property
    def active(self) -> bool:
        return not self._closed

    def ensure_active(self) -> None:
        """
        校验作用域仍然有效。

        Raises:
            StorageFailureException: 作用域已结束
        """
        if self._closed:
            raise StorageFailureException("事务作用域", f"作用域{self.id}已结束")

    def on_rollback(self, action: Callable[[], None]) -> None:
        self.ensure_active()
        self._rollback_actions.append(action)

    def on_close(self, action: Callable[[], None]) -> None:
        self.ensure_active()
        self._close_actions.append(action)

    def _run_rollback_actions(self) -> None:
        while self._rollback_actions:
            self._rollback_actions.pop()()

    def _close(self) -> None:
        self._rollback_actions.clear()
        while self._close_actions:
            self._close_actions.pop()()
        self._closed = True


class DjangoTransactionScope(TransactionScope):
    """
    Django数据库事务作用域。
    using指定数据库别名，仓储据此在同一连接上执行查询。
    """

    def __init__(self, using: str = "default"):
        super().__init__()
        self.using = using

    @property
    def vendor(self) -> str:
        return connections[self.using].vendor

    def ensure_active(self) -> None:
        super().ensure_active()
        if not connections[self.using].in_atomic_block:
            raise StorageFailureException("事务作用域", f"作用域{self.id}不在数据库事务中")


class TransactionManager(ABC):
    """
    事务管理器接口。
    """

    @abstractmethod
    @contextmanager
    def start(self) -> Generator[TransactionScope, None, None]:
        """
        开启一个事务。

        Yields:
            事务作用域句柄
        """
        pass


def _log_rollback(scope: TransactionScope, exc: BaseException) -> None:
    if isinstance(exc, DomainException):
        logger.info(f"事务回滚({scope.id}): {exc.kind} - {exc}")
    else:
        logger.error(f"事务回滚({scope.id}): {exc.__class__.__name__} - {exc}")


class DjangoTransactionManager(TransactionManager):
    """
    基于Django的事务管理器实现。
    使用Django的atomic()管理事务，并把数据库层错误统一转换为存储故障。
    """

    def __init__(self, using: str = "default"):
        """
        初始化Django事务管理器。

        Args:
            using: 数据库别名
        """
        self.using = using

    @contextmanager
    def start(self) -> Generator[DjangoTransactionScope, None, None]:
        """
        使用Django的事务机制开启一个事务。

        Yields:
            Django事务作用域句柄

        Raises:
            StorageFailureException: 执行或提交期间发生数据库错误
        """
        scope = DjangoTransactionScope(self.using)
        try:
            with django_transaction.atomic(using=self.using):
                logger.debug(f"事务已开启: {scope.id}")
                yield scope
            logger.debug(f"事务已提交: {scope.id}")
        except DatabaseError as e:
            _log_rollback(scope, e)
            raise StorageFailureException("事务", str(e)) from e
        except BaseException as e:
            _log_rollback(scope, e)
            raise
        finally:
            scope._close()


class InMemoryTransactionManager(TransactionManager):
    """
    进程内事务管理器。
    用于单元测试和嵌入式场景，回滚时逆序执行作用域中登记的补偿动作。
    """

    @contextmanager
    def start(self) -> Generator[TransactionScope, None, None]:
        scope = TransactionScope()
        logger.debug(f"内存事务已开启: {scope.id}")
        try:
            yield scope
        except BaseException as e:
            _log_rollback(scope, e)
            scope._run_rollback_actions()
            raise
        else:
            logger.debug(f"内存事务已提交: {scope.id}")
        finally:
            scope._close()
