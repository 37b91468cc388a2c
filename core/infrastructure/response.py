"""
统一响应封装模块。
提供API响应的标准化结构，包括业务状态码、成功标志、消息、数据等。
"""
import time
import uuid
import typing as t
from dataclasses import dataclass, field

from rest_framework.response import Response
from rest_framework import status as http_status

from core.domain.exceptions import ErrorKind


@dataclass
class ApiResponse:
    """API响应数据结构"""
    code: int = 10000  # 业务状态码
    success: bool = True  # 是否成功
    message: str = "操作成功"  # 响应消息
    data: t.Any = None  # 响应数据
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))  # 时间戳，毫秒级
    trace_id: str = field(default_factory=lambda: str(uuid.uuid4()))  # 追踪ID
    metadata: t.Dict[str, t.Any] = field(default_factory=dict)  # 元数据

    def to_dict(self) -> dict:
        """转换为字典"""
        result = {
            "code": self.code,
            "success": self.success,
            "message": self.message,
            "timestamp": self.timestamp,
            "traceId": self.trace_id,
        }

        # 只有在有数据时才添加data字段
        if self.data is not None:
            result["data"] = self.data

        # 只有在有元数据时才添加metadata字段
        if self.metadata:
            result["metadata"] = self.metadata

        return result


# 状态码枚举
class StatusCode:
    """业务状态码定义"""

    # 成功状态码 (1xxxx)
    SUCCESS = 10000                # 通用成功
    CREATED = 10001                # 创建成功
    UPDATED = 10002                # 更新成功

    # 通用客户端错误 (400xx)
    BAD_REQUEST = 40000            # 错误的请求
    VALIDATION_ERROR = 40001       # 数据验证错误

    # 认证和授权错误 (401xx-403xx)
    UNAUTHORIZED = 40100           # 未认证
    TOKEN_INVALID = 40102          # 无效的令牌
    FORBIDDEN = 40300              # 权限不足

    # 资源错误 (404xx)
    NOT_FOUND = 40400              # 资源不存在
    ENTITY_NOT_FOUND = 40401       # 实体不存在

    # 商品库存错误 (410xx)
    PRODUCT_STOCK_INSUFFICIENT = 41001  # 商品库存不足

    # 订单模块错误 (411xx)
    ORDER_STATUS_INVALID = 41103   # 订单状态流转不合法

    # 服务端错误 (5xxxx)
    SERVER_ERROR = 50000           # 服务器内部错误
    DATABASE_ERROR = 50002         # 数据库错误


# 异常类别到(业务状态码, HTTP状态码)的映射
ERROR_KIND_MAPPING: t.Dict[str, t.Tuple[int, int]] = {
    ErrorKind.VALIDATION_ERROR: (StatusCode.VALIDATION_ERROR, http_status.HTTP_400_BAD_REQUEST),
    ErrorKind.NOT_FOUND: (StatusCode.ENTITY_NOT_FOUND, http_status.HTTP_404_NOT_FOUND),
    ErrorKind.INSUFFICIENT_STOCK: (StatusCode.PRODUCT_STOCK_INSUFFICIENT, http_status.HTTP_409_CONFLICT),
    ErrorKind.INVALID_TRANSITION: (StatusCode.ORDER_STATUS_INVALID, http_status.HTTP_409_CONFLICT),
    ErrorKind.FORBIDDEN: (StatusCode.FORBIDDEN, http_status.HTTP_403_FORBIDDEN),
    ErrorKind.STORAGE_FAILURE: (StatusCode.DATABASE_ERROR, http_status.HTTP_503_SERVICE_UNAVAILABLE),
}


class ApiResponseBuilder:
    """API响应构建器"""

    @staticmethod
    def success(
        data: t.Any = None,
        message: str = "操作成功",
        code: int = StatusCode.SUCCESS,
        metadata: t.Dict[str, t.Any] = None
    ) -> Response:
        """
        创建成功响应

        Args:
            data: 响应数据
            message: 响应消息
            code: 业务状态码
            metadata: 元数据

        Returns:
            Response: DRF响应对象
        """
        response = ApiResponse(code=code, success=True, message=message, data=data, metadata=metadata or {})
        return Response(response.to_dict(), status=http_status.HTTP_200_OK)

    @staticmethod
    def created(
        data: t.Any = None,
        message: str = "创建成功",
        code: int = StatusCode.CREATED,
        metadata: t.Dict[str, t.Any] = None
    ) -> Response:
        """创建资源成功响应"""
        response = ApiResponse(code=code, success=True, message=message, data=data, metadata=metadata or {})
        return Response(response.to_dict(), status=http_status.HTTP_201_CREATED)

    @staticmethod
    def fail(
        message: str = "操作失败",
        code: int = StatusCode.SERVER_ERROR,
        data: t.Any = None,
        http_code: int = http_status.HTTP_400_BAD_REQUEST,
        metadata: t.Dict[str, t.Any] = None
    ) -> Response:
        """
        创建失败响应

        Args:
            message: 错误消息
            code: 业务状态码
            data: 错误详情数据
            http_code: HTTP状态码
            metadata: 元数据

        Returns:
            Response: DRF响应对象
        """
        response = ApiResponse(code=code, success=False, message=message, data=data, metadata=metadata or {})
        return Response(response.to_dict(), status=http_code)

    @staticmethod
    def error(kind: str, message: str, data: t.Any = None) -> Response:
        """
        按异常类别创建失败响应。

        Args:
            kind: 异常类别标签
            message: 错误消息
            data: 结构化错误详情

        Returns:
            Response: DRF响应对象
        """
        code, http_code = ERROR_KIND_MAPPING.get(
            kind, (StatusCode.SERVER_ERROR, http_status.HTTP_500_INTERNAL_SERVER_ERROR)
        )
        return ApiResponseBuilder.fail(message=message, code=code, data=data, http_code=http_code)

    @staticmethod
    def paginated(
        items: list,
        total: int,
        page: int,
        page_size: int,
        message: str = "查询成功",
        code: int = StatusCode.SUCCESS,
        metadata: t.Dict[str, t.Any] = None
    ) -> Response:
        """
        创建分页响应

        Args:
            items: 分页项列表
            total: 总项数
            page: 当前页码
            page_size: 每页大小
            message: 响应消息
            code: 业务状态码
            metadata: 元数据

        Returns:
            Response: DRF响应对象
        """
        pagination_data = {
            "items": items,
            "pagination": {
                "total": total,
                "page": page,
                "pageSize": page_size,
                "hasMore": page * page_size < total
            }
        }

        response = ApiResponse(
            code=code,
            success=True,
            message=message,
            data=pagination_data,
            metadata=metadata or {}
        )
        return Response(response.to_dict(), status=http_status.HTTP_200_OK)
