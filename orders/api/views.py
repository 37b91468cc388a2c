"""
订单API视图。
提供RESTful API接口，处理HTTP请求并调用应用服务。
"""
import logging

from core.infrastructure.api_view import ApiBaseView
from core.infrastructure.response import StatusCode

from orders.application import (
    OrderApplicationService,
    # 命令
    PlaceOrderCommand,
    ChangeOrderStatusCommand,
    # 查询
    GetOrderQuery,
    ListOrdersQuery,
)
from orders.domain.value_objects import OrderLine, Principal, Role
from orders.api.serializers import (
    # 请求序列化器
    OrderCreateSerializer,
    OrderStatusUpdateSerializer,
    OrderListQuerySerializer,
    # 响应序列化器
    OrderDetailSerializer,
)

logger = logging.getLogger(__name__)


def get_order_service() -> OrderApplicationService:
    """获取订单应用服务实例"""
    from orders.infrastructure.factory import OrderInfrastructureFactory

    return OrderInfrastructureFactory().create_application_service()


def get_principal(request) -> Principal:
    """由已认证的请求用户构造调用方，staff用户视为管理员"""
    user = request.user
    role = Role.ADMIN if user.is_staff else Role.CUSTOMER
    return Principal(id=user.pk, role=role)


class OrderListCreateView(ApiBaseView):
    """订单列表和下单接口"""

    def get(self, request):
        """获取订单列表"""
        params = OrderListQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)

        query = ListOrdersQuery(
            principal=get_principal(request),
            page=params.validated_data['page'],
            page_size=params.validated_data.get('page_size'),
            status=params.validated_data.get('status'),
        )
        result = get_order_service().list_orders(query)

        return self.paginated_response(
            items=OrderDetailSerializer(result.items, many=True).data,
            total=result.total,
            page=result.page,
            page_size=result.page_size,
            message="获取订单列表成功"
        )

    def post(self, request):
        """下单"""
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        principal = get_principal(request)
        command = PlaceOrderCommand(
            principal=principal,
            items=[
                OrderLine(product_id=item['product_id'], quantity=item['quantity'])
                for item in serializer.validated_data['items']
            ],
        )
        result = get_order_service().place_order(command)

        if not result.ok:
            logger.info(f"下单失败: user={principal.id} {result.error.kind} - {result.error.message}")
            return self.error_response(result.error)

        return self.created_response(
            data=OrderDetailSerializer(result.order).data,
            message="下单成功"
        )


class OrderDetailView(ApiBaseView):
    """订单详情接口"""

    def get(self, request, order_id):
        """获取订单详情"""
        query = GetOrderQuery(principal=get_principal(request), order_id=order_id)
        result = get_order_service().get_order(query)

        if not result.ok:
            return self.error_response(result.error)

        return self.success_response(
            data=OrderDetailSerializer(result.order).data,
            message="获取订单成功"
        )


class OrderStatusView(ApiBaseView):
    """订单状态接口"""

    def patch(self, request, order_id):
        """变更订单状态"""
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        principal = get_principal(request)
        command = ChangeOrderStatusCommand(
            principal=principal,
            order_id=order_id,
            status=serializer.validated_data['status'],
        )
        result = get_order_service().change_order_status(command)

        if not result.ok:
            logger.info(f"变更订单状态失败: order={order_id} user={principal.id} {result.error.kind}")
            return self.error_response(result.error)

        return self.success_response(
            data=OrderDetailSerializer(result.order).data,
            message="订单状态已更新",
            code=StatusCode.UPDATED
        )
