"""
订单基础设施层数据库模型。
定义与订单领域相关的Django ORM模型。
"""
import uuid

from django.db import models

from orders.domain.pricing import AMOUNT_MAX_DIGITS, AMOUNT_DECIMAL_PLACES


class Product(models.Model):
    """
    商品数据库模型。
    商品目录由外部维护，订单模块只通过库存台账修改available_quantity和version。
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200, verbose_name="商品名称")
    price_amount = models.DecimalField(
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        verbose_name="价格金额"
    )
    price_currency = models.CharField(
        max_length=3,
        default="CNY",
        verbose_name="价格货币"
    )
    available_quantity = models.PositiveIntegerField(default=0, verbose_name="可用数量")
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="创建时间")
    updated_at = models.DateTimeField(auto_now=True, verbose_name="更新时间")

    # 版本号，用于乐观锁
    version = models.PositiveIntegerField(default=0, verbose_name="版本号")

    class Meta:
        db_table = 'product'
        verbose_name = "商品"
        verbose_name_plural = "商品"
        constraints = [
            models.CheckConstraint(condition=models.Q(price_amount__gte=0), name='product_price_amount_gte_0'),
            models.CheckConstraint(condition=models.Q(available_quantity__gte=0), name='product_available_quantity_gte_0'),
        ]

    def __str__(self):
        return self.name


class Order(models.Model):
    """订单数据库模型"""

    class StatusChoices(models.TextChoices):
        PENDING = 'PENDING', '待处理'
        PROCESSING = 'PROCESSING', '处理中'
        SHIPPED = 'SHIPPED', '已发货'
        DELIVERED = 'DELIVERED', '已送达'
        CANCELLED = 'CANCELLED', '已取消'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.CharField(max_length=64, verbose_name="用户ID")
    status = models.CharField(
        max_length=20,
        choices=StatusChoices.choices,
        default=StatusChoices.PENDING,
        verbose_name="订单状态"
    )
    total_amount = models.DecimalField(
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        verbose_name="订单总额"
    )
    currency = models.CharField(max_length=3, default="CNY", verbose_name="货币")
    created_at = models.DateTimeField(verbose_name="创建时间")
    updated_at = models.DateTimeField(verbose_name="更新时间")

    class Meta:
        db_table = 'customer_order'
        verbose_name = "订单"
        verbose_name_plural = "订单"
        indexes = [
            models.Index(fields=['user_id', 'created_at'], name='idx_order_user_created'),
            models.Index(fields=['status'], name='idx_order_status'),
            models.Index(fields=['created_at'], name='idx_order_created'),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(total_amount__gte=0), name='order_total_amount_gte_0'),
        ]

    def __str__(self):
        return f"订单{self.id}"


class OrderItem(models.Model):
    """
    订单明细数据库模型。
    unit_price是下单时的单价快照，与商品当前价格解耦。
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='items',
        verbose_name="订单"
    )
    # 行号保持请求中的明细顺序
    position = models.PositiveIntegerField(default=0, verbose_name="行号")
    product_id = models.UUIDField(verbose_name="商品ID")
    quantity = models.PositiveIntegerField(verbose_name="数量")
    unit_price = models.DecimalField(
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        verbose_name="单价"
    )
    created_at = models.DateTimeField(verbose_name="创建时间")

    class Meta:
        db_table = 'order_item'
        verbose_name = "订单明细"
        verbose_name_plural = "订单明细"
        ordering = ['position']
        indexes = [
            models.Index(fields=['product_id'], name='idx_order_item_product'),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(quantity__gte=1), name='order_item_quantity_gte_1'),
            models.CheckConstraint(condition=models.Q(unit_price__gte=0), name='order_item_unit_price_gte_0'),
        ]

    def __str__(self):
        return f"{self.order_id}的明细{self.position}"

    @property
    def subtotal(self):
        """明细小计"""
        return self.quantity * self.unit_price
