"""
核心领域模型基类模块。
包含Entity基类，用于所有具有唯一标识的领域对象。
"""
from typing import Any
import uuid


class Entity:
    """
    实体基类。
    实体的相等性通过标识而非属性值判断，标识在创建时生成且全局唯一。
    """

    def __init__(self, id: Any = None):
        """
        初始化实体。

        Args:
            id: 实体标识，未提供时生成UUID4
        """
        self.id = id if id is not None else uuid.uuid4()

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Entity):
            return False
        return type(self) is type(other) and self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id})"
