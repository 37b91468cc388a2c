"""
订单应用服务。
定义订单相关的应用层服务，处理命令和查询，协调领域层和基础设施层。

领域层通过抛出异常触发事务回滚，这里把领域异常转换为OrderResult返回，
调用方按error.kind和error.retriable决定如何处理。
"""
from typing import Any, Callable, Optional

from django.db import DatabaseError
from loguru import logger

from core.domain import (
    DomainException,
    AuthorizationException,
    EntityNotFoundException,
    StorageFailureException,
    ValidationException,
)

from orders.domain import config
from orders.domain.aggregates import OrderAggregate
from orders.domain.entities import OrderStatus
from orders.domain.repositories import AuthorizationGate, OrderRepository
from orders.domain.services import OrderPlacementService, OrderStatusService
from orders.application.commands import PlaceOrderCommand, ChangeOrderStatusCommand
from orders.application.queries import GetOrderQuery, ListOrdersQuery
from orders.application.dtos import ErrorDTO, OrderDTO, OrderListDTO, OrderResult


class OrderApplicationService:
    """
    订单应用服务。
    处理订单相关的应用层逻辑，协调领域服务、仓储和授权关口。
    """

    def __init__(
        self,
        placement_service: OrderPlacementService,
        status_service: OrderStatusService,
        order_repository: OrderRepository,
        authorization_gate: AuthorizationGate,
    ):
        """
        初始化订单应用服务。

        Args:
            placement_service: 下单协调服务
            status_service: 订单状态服务
            order_repository: 订单仓储
            authorization_gate: 授权关口
        """
        self.placement_service = placement_service
        self.status_service = status_service
        self.order_repository = order_repository
        self.authorization_gate = authorization_gate

    def _execute(self, operation: str, action: Callable[[], OrderAggregate]) -> OrderResult:
        try:
            order = action()
        except DomainException as e:
            if e.retriable:
                logger.error(f"{operation}失败: {e.kind} - {e}")
            else:
                logger.warning(f"{operation}失败: {e.kind} - {e}")
            return OrderResult.failure(ErrorDTO.from_exception(e))
        return OrderResult.success(OrderDTO.from_aggregate(order))

    def _read(self, operation: str, action: Callable[[], Any]) -> Any:
        try:
            return action()
        except DatabaseError as e:
            raise StorageFailureException(operation, str(e)) from e

    # ==================== 命令处理方法 ====================

    def place_order(self, command: PlaceOrderCommand) -> OrderResult:
        """
        下单。

        Args:
            command: 下单命令

        Returns:
            成功时携带订单DTO，失败时携带ValidationError、NotFound、
            InsufficientStock或StorageFailure错误
        """
        return self._execute(
            "下单",
            lambda: self.placement_service.place_order(command.principal.id, command.items),
        )

    def change_order_status(self, command: ChangeOrderStatusCommand) -> OrderResult:
        """
        变更订单状态，需要管理员权限。

        Args:
            command: 变更订单状态命令

        Returns:
            成功时携带变更后的订单DTO
        """
        def action() -> OrderAggregate:
            if not self.authorization_gate.can_change_order_status(command.principal):
                raise AuthorizationException(command.principal.id, "变更订单状态", f"订单{command.order_id}")
            return self.status_service.change_status(command.order_id, command.status)

        return self._execute("变更订单状态", action)

    # ==================== 查询处理方法 ====================

    def get_order(self, query: GetOrderQuery) -> OrderResult:
        """
        获取订单详情。
        非管理员查看他人订单时与订单不存在的结果相同。

        Args:
            query: 获取订单详情查询

        Returns:
            成功时携带订单DTO，否则为NotFound错误
        """
        def action() -> OrderAggregate:
            order = self._read("查询订单", lambda: self.order_repository.get_by_id(query.order_id))
            if order is None or not self.authorization_gate.can_view_order(query.principal, order):
                raise EntityNotFoundException("订单", query.order_id)
            return order

        return self._execute("查询订单", action)

    def list_orders(self, query: ListOrdersQuery) -> OrderListDTO:
        """
        获取订单列表，按创建时间倒序。

        Args:
            query: 订单列表查询

        Returns:
            订单列表DTO

        Raises:
            ValidationException: 分页参数或状态过滤无效
            StorageFailureException: 存储故障
        """
        page = query.page
        if isinstance(page, bool) or not isinstance(page, int) or page < 1:
            raise ValidationException("page", f"页码必须是正整数: {page!r}")

        page_size: Optional[int] = query.page_size if query.page_size is not None else config.default_page_size()
        if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
            raise ValidationException("page_size", f"每页条数必须是正整数: {page_size!r}")
        page_size = min(page_size, config.MAX_PAGE_SIZE)

        if query.status is not None and not OrderStatus.is_valid(query.status):
            raise ValidationException("status", f"无效的订单状态: {query.status!r}")

        filters = {'status': query.status}
        if not self.authorization_gate.can_view_all_orders(query.principal):
            filters['user_id'] = query.principal.id

        orders, total = self._read(
            "查询订单列表",
            lambda: self.order_repository.list(skip=(page - 1) * page_size, limit=page_size, **filters),
        )
        return OrderListDTO(
            items=[OrderDTO.from_aggregate(order) for order in orders],
            total=total,
            page=page,
            page_size=page_size,
        )
