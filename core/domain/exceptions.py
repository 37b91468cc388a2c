"""
领域异常模块。
包含领域模型中使用的各种异常类。

每个异常携带kind标签和retriable标志，调用方据此区分
可重试的基础设施故障与由输入决定的业务拒绝。
"""
from typing import Any, Dict, Optional


class ErrorKind:
    """异常类别标签"""
    VALIDATION_ERROR = "ValidationError"
    NOT_FOUND = "NotFound"
    INSUFFICIENT_STOCK = "InsufficientStock"
    INVALID_TRANSITION = "InvalidTransition"
    STORAGE_FAILURE = "StorageFailure"
    FORBIDDEN = "Forbidden"


class DomainException(Exception):
    """
    领域异常基类。
    所有领域模型中的异常都应继承自此类。
    """

    kind: str = ErrorKind.VALIDATION_ERROR
    retriable: bool = False

    def __init__(self, message: str):
        """
        初始化领域异常。

        Args:
            message: 异常消息
        """
        self.message = message
        super().__init__(self.message)

    def details(self) -> Dict[str, Any]:
        """
        返回供调用方使用的结构化上下文。

        Returns:
            异常上下文字典，子类按需扩展
        """
        return {}


class ValidationException(DomainException):
    """
    数据验证异常。
    调用方提交的输入无效，原样重试必然得到相同结果。
    """

    kind = ErrorKind.VALIDATION_ERROR

    def __init__(self, field_name: Optional[str] = None, message: str = "数据验证失败"):
        """
        初始化数据验证异常。

        Args:
            field_name: 字段名称
            message: 异常消息
        """
        if field_name:
            full_message = f"字段'{field_name}'验证失败: {message}"
        else:
            full_message = message
        super().__init__(full_message)
        self.field_name = field_name

    def details(self) -> Dict[str, Any]:
        return {"field": self.field_name} if self.field_name else {}


class EntityNotFoundException(DomainException):
    """
    实体未找到异常。
    当请求的实体不存在时抛出。
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity_name: str, entity_id: Any):
        """
        初始化实体未找到异常。

        Args:
            entity_name: 实体名称
            entity_id: 实体ID
        """
        message = f"无法找到{entity_name}: ID={entity_id}"
        super().__init__(message)
        self.entity_name = entity_name
        self.entity_id = entity_id

    def details(self) -> Dict[str, Any]:
        return {"entity": self.entity_name, "id": str(self.entity_id)}


class BusinessRuleViolationException(DomainException):
    """
    业务规则违反异常。
    相同输入必然得到相同结果，调用方不应原样重试。
    """

    def __init__(self, rule_name: str, message: str):
        """
        初始化业务规则违反异常。

        Args:
            rule_name: 规则名称
            message: 异常消息
        """
        full_message = f"违反业务规则 '{rule_name}': {message}"
        super().__init__(full_message)
        self.rule_name = rule_name


class InsufficientStockException(BusinessRuleViolationException):
    """
    库存不足异常。
    当商品可用库存不足以满足请求时抛出，不提供部分履约。
    """

    kind = ErrorKind.INSUFFICIENT_STOCK

    def __init__(self, product_id: Any, requested: int, available: int):
        """
        初始化库存不足异常。

        Args:
            product_id: 商品ID
            requested: 请求数量
            available: 可用数量
        """
        super().__init__(
            "库存充足",
            f"商品(ID={product_id})库存不足，请求:{requested}，可用:{available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available

    def details(self) -> Dict[str, Any]:
        return {
            "product_id": str(self.product_id),
            "available": self.available,
            "requested": self.requested,
        }


class StorageFailureException(DomainException):
    """
    存储故障异常。
    事务执行或提交期间的基础设施故障。事务保证不会部分提交，调用方可以安全重试。
    """

    kind = ErrorKind.STORAGE_FAILURE
    retriable = True

    def __init__(self, operation: str, reason: Optional[str] = None):
        """
        初始化存储故障异常。

        Args:
            operation: 失败的操作名称
            reason: 底层错误描述
        """
        if reason:
            message = f"存储操作'{operation}'失败: {reason}"
        else:
            message = f"存储操作'{operation}'失败"
        super().__init__(message)
        self.operation = operation
        self.reason = reason


class LockAcquisitionException(StorageFailureException):
    """
    锁获取异常。
    等待资源锁超过时限时抛出，属于可重试的存储故障。
    """

    def __init__(self, resource_name: str, message: Optional[str] = None):
        """
        初始化锁获取异常。

        Args:
            resource_name: 资源名称
            message: 额外消息
        """
        super().__init__(f"锁定{resource_name}", message or "等待锁超时")
        self.resource_name = resource_name


class AuthorizationException(DomainException):
    """
    授权异常。
    当用户没有执行操作的权限时抛出。
    """

    kind = ErrorKind.FORBIDDEN

    def __init__(self, user_id: Any, operation: str, resource: Optional[str] = None):
        """
        初始化授权异常。

        Args:
            user_id: 用户ID
            operation: 操作名称
            resource: 资源名称
        """
        if resource:
            message = f"用户(ID={user_id})没有权限执行'{operation}'操作，资源: {resource}"
        else:
            message = f"用户(ID={user_id})没有权限执行'{operation}'操作"
        super().__init__(message)
        self.user_id = user_id
        self.operation = operation
        self.resource = resource
