"""
统一异常处理器。
提供全局异常处理机制，将各种异常转换为统一的API响应格式。
"""
import logging

from django.http import Http404
from django.core.exceptions import PermissionDenied
from rest_framework.exceptions import (
    APIException,
    NotAuthenticated,
    AuthenticationFailed,
    NotFound,
    PermissionDenied as DRFPermissionDenied,
    ValidationError as DRFValidationError
)
from rest_framework import status

from core.domain.exceptions import DomainException
from core.infrastructure.response import ApiResponseBuilder, StatusCode

logger = logging.getLogger(__name__)


def unified_exception_handler(exc, context):
    """
    统一异常处理器，将各种异常转换为统一的API响应格式。

    Args:
        exc: 异常对象
        context: 异常上下文

    Returns:
        Response: 统一格式的API响应
    """
    request = context.get('request')
    request_line = f"{request.method} {request.path}" if request is not None else "-"

    # 1. 领域异常按类别映射
    if isinstance(exc, DomainException):
        logger.warning(f"领域异常: {request_line} {exc.kind} - {exc}")
        data = {
            "kind": exc.kind,
            "message": str(exc),
            "retriable": exc.retriable,
            "details": exc.details(),
        }
        return ApiResponseBuilder.error(kind=exc.kind, message=str(exc), data=data)

    # 2. 认证与权限
    if isinstance(exc, NotAuthenticated):
        return ApiResponseBuilder.fail(
            message="请先登录",
            code=StatusCode.UNAUTHORIZED,
            http_code=status.HTTP_401_UNAUTHORIZED
        )

    if isinstance(exc, AuthenticationFailed):
        return ApiResponseBuilder.fail(
            message="身份验证失败",
            code=StatusCode.TOKEN_INVALID,
            http_code=status.HTTP_401_UNAUTHORIZED
        )

    if isinstance(exc, (PermissionDenied, DRFPermissionDenied)):
        return ApiResponseBuilder.fail(
            message="权限不足",
            code=StatusCode.FORBIDDEN,
            http_code=status.HTTP_403_FORBIDDEN
        )

    # 3. 资源与校验
    if isinstance(exc, (Http404, NotFound)):
        return ApiResponseBuilder.fail(
            message="请求的资源不存在",
            code=StatusCode.NOT_FOUND,
            http_code=status.HTTP_404_NOT_FOUND
        )

    if isinstance(exc, DRFValidationError):
        return ApiResponseBuilder.fail(
            message="数据验证失败",
            code=StatusCode.VALIDATION_ERROR,
            data=exc.detail,
            http_code=status.HTTP_400_BAD_REQUEST
        )

    if isinstance(exc, APIException):
        return ApiResponseBuilder.fail(
            message=str(exc.detail),
            code=StatusCode.BAD_REQUEST,
            http_code=exc.status_code
        )

    # 4. 其他未预期的异常
    logger.exception(f"未处理的异常: {request_line} {exc.__class__.__name__} - {exc}")
    return ApiResponseBuilder.fail(
        message="服务器内部错误",
        code=StatusCode.SERVER_ERROR,
        http_code=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
