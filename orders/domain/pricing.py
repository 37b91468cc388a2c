"""
订单计价。

总额按 Σ(数量 × 单价) 精确累加，只在汇总结果上按分舍入一次（ROUND_HALF_UP），
避免逐行舍入造成的分位漂移。

金额上限与持久化列的精度一致，超出上限的金额在写库前即被拒绝。
"""
from decimal import Decimal
from typing import Any, Iterable, Tuple

from core.domain import MINOR_UNIT, Money, ValidationException, to_decimal
from core.domain.value_objects import DEFAULT_CURRENCY

# 金额列精度：DecimalField(max_digits=AMOUNT_MAX_DIGITS, decimal_places=AMOUNT_DECIMAL_PLACES)
AMOUNT_MAX_DIGITS = 14
AMOUNT_DECIMAL_PLACES = 2
MAX_AMOUNT = Decimal(10) ** (AMOUNT_MAX_DIGITS - AMOUNT_DECIMAL_PLACES) - MINOR_UNIT


def _check_amount(field_name: str, amount: Money) -> Money:
    if amount.amount > MAX_AMOUNT:
        raise ValidationException(field_name, f"金额超出上限{MAX_AMOUNT}: {amount.amount}")
    return amount


def _check_quantity(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationException("quantity", f"数量必须是整数: {quantity!r}")
    if quantity < 0:
        raise ValidationException("quantity", f"数量不能为负数: {quantity}")
    return quantity


def _check_price(unit_price: Any) -> Decimal:
    if isinstance(unit_price, Money):
        unit_price = unit_price.amount
    if isinstance(unit_price, float):
        raise ValidationException("unit_price", f"单价必须是定点数: {unit_price!r}")
    try:
        amount = to_decimal(unit_price)
    except ValueError as e:
        raise ValidationException("unit_price", str(e))
    if amount < 0:
        raise ValidationException("unit_price", f"单价不能为负数: {amount}")
    if amount > MAX_AMOUNT:
        raise ValidationException("unit_price", f"单价超出上限{MAX_AMOUNT}: {amount}")
    return amount


def line_subtotal(quantity: Any, unit_price: Any, currency: str = DEFAULT_CURRENCY) -> Money:
    """
    计算单行小计，用于展示。

    Raises:
        ValidationException: 数量或单价无效，或小计超出金额上限
    """
    subtotal = Money(_check_quantity(quantity) * _check_price(unit_price), currency).quantize()
    return _check_amount("subtotal", subtotal)


def compute_total(items: Iterable[Tuple[Any, Any]], currency: str = DEFAULT_CURRENCY) -> Money:
    """
    计算订单总额。

    Args:
        items: (数量, 单价) 序列，单价可以是Decimal、整数、数字字符串或Money
        currency: 货币单位

    Returns:
        舍入到分的订单总额

    Raises:
        ValidationException: 数量为负数或非整数，单价为负数或不是定点数，
            或总额超出金额上限
    """
    total = Decimal("0")
    for quantity, unit_price in items:
        total += _check_quantity(quantity) * _check_price(unit_price)
    # 各行非负，总额不超限时每行小计也不超限
    return _check_amount("total_amount", Money(total, currency).quantize())
