"""
领域模型包。
提供实体、值对象、聚合根和领域事件等领域驱动设计(DDD)的核心概念。
"""

# 基础类
from core.domain.base import Entity
from core.domain.value_objects import ValueObject, Money, MINOR_UNIT, quantize_amount, to_decimal
from core.domain.aggregates import AggregateRoot

# 领域事件
from core.domain.events import DomainEvent, DomainEvents

# 领域异常
from core.domain.exceptions import (
    ErrorKind,
    DomainException,
    ValidationException,
    EntityNotFoundException,
    BusinessRuleViolationException,
    InsufficientStockException,
    StorageFailureException,
    LockAcquisitionException,
    AuthorizationException,
)

# 仓储接口
from core.domain.repositories import ReadOnlyRepository

__all__ = [
    # 基础类
    'Entity',
    'ValueObject',
    'Money',
    'MINOR_UNIT',
    'quantize_amount',
    'to_decimal',
    'AggregateRoot',

    # 领域事件
    'DomainEvent',
    'DomainEvents',

    # 领域异常
    'ErrorKind',
    'DomainException',
    'ValidationException',
    'EntityNotFoundException',
    'BusinessRuleViolationException',
    'InsufficientStockException',
    'StorageFailureException',
    'LockAcquisitionException',
    'AuthorizationException',

    # 仓储接口
    'ReadOnlyRepository',
]
