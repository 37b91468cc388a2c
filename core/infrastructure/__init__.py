"""
基础设施层包。
提供事务管理、统一响应等基础设施组件。
"""

# 事务管理
from core.infrastructure.transaction import (
    TransactionScope,
    DjangoTransactionScope,
    TransactionManager,
    DjangoTransactionManager,
    InMemoryTransactionManager,
)

__all__ = [
    # 事务管理
    'TransactionScope',
    'DjangoTransactionScope',
    'TransactionManager',
    'DjangoTransactionManager',
    'InMemoryTransactionManager',
]
