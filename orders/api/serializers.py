"""
订单API序列化器。
负责请求和响应的序列化、反序列化和验证。

请求序列化器只检查结构，数量是否为正数、商品ID是否为UUID等规则由领域层校验，
保证HTTP和Python调用得到相同的错误结果。
"""
from rest_framework import serializers

from orders.domain.entities import OrderStatus


# 请求序列化器
class OrderItemInputSerializer(serializers.Serializer):
    """下单明细请求序列化器"""
    product_id = serializers.CharField(max_length=64)
    quantity = serializers.IntegerField()


class OrderCreateSerializer(serializers.Serializer):
    """下单请求序列化器"""
    items = OrderItemInputSerializer(many=True, allow_empty=True)


class OrderStatusUpdateSerializer(serializers.Serializer):
    """订单状态变更请求序列化器"""
    status = serializers.CharField(max_length=20)


class OrderListQuerySerializer(serializers.Serializer):
    """订单列表查询参数序列化器"""
    page = serializers.IntegerField(min_value=1, default=1)
    page_size = serializers.IntegerField(min_value=1, required=False)
    status = serializers.ChoiceField(choices=OrderStatus.ALL, required=False)


# 响应序列化器
class OrderItemSerializer(serializers.Serializer):
    """订单明细响应序列化器"""
    id = serializers.CharField()
    productId = serializers.CharField(source='product_id')
    quantity = serializers.IntegerField()
    unitPrice = serializers.DecimalField(source='unit_price', max_digits=14, decimal_places=2)
    subtotal = serializers.DecimalField(max_digits=14, decimal_places=2)


class OrderDetailSerializer(serializers.Serializer):
    """订单详情响应序列化器"""
    id = serializers.CharField()
    userId = serializers.CharField(source='user_id')
    status = serializers.CharField()
    totalAmount = serializers.DecimalField(source='total_amount', max_digits=14, decimal_places=2)
    currency = serializers.CharField()
    items = OrderItemSerializer(many=True)
    createdAt = serializers.DateTimeField(source='created_at')
    updatedAt = serializers.DateTimeField(source='updated_at')
