"""
值对象模块。
包含ValueObject基类和金额值对象Money。

金额一律使用Decimal定点数表示，避免二进制浮点带来的舍入漂移。
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict

# 货币最小单位（分）
MINOR_UNIT = Decimal("0.01")

DEFAULT_CURRENCY = "CNY"


def to_decimal(value: Any) -> Decimal:
    """
    将输入转换为有限的Decimal。

    浮点数先转为字符串再转换，避免把二进制误差带入金额。

    Args:
        value: 待转换的数值

    Returns:
        转换后的Decimal

    Raises:
        ValueError: 无法转换或结果不是有限数
    """
    if isinstance(value, bool):
        raise ValueError(f"无效的金额: {value!r}")
    if isinstance(value, float):
        value = repr(value)
    try:
        result = value if isinstance(value, Decimal) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"无效的金额: {value!r}")
    if not result.is_finite():
        raise ValueError(f"无效的金额: {value!r}")
    return result


def quantize_amount(amount: Decimal) -> Decimal:
    """按货币最小单位四舍五入（ROUND_HALF_UP）"""
    return amount.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)


class ValueObject:
    """
    值对象基类。
    值对象是通过其属性值而非标识定义的不可变对象。
    相同属性值的值对象被视为相等。
    """

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __hash__(self) -> int:
        items = frozenset((k, hash(v)) for k, v in self.__dict__.items())
        return hash(items)


class Money(ValueObject):
    """
    金额值对象，表示带有货币单位的金额。

    运算过程保留完整精度，只有调用quantize()时才舍入到分。
    """

    def __init__(self, amount: Any, currency: str = DEFAULT_CURRENCY):
        """
        初始化金额值对象。

        Args:
            amount: 金额数值，将被转换为Decimal
            currency: 货币单位，默认为人民币(CNY)
        """
        self.amount = to_decimal(amount)
        self.currency = currency

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> 'Money':
        return cls(Decimal("0"), currency)

    def _check_currency(self, other: 'Money', operation: str) -> None:
        if self.currency != other.currency:
            raise ValueError(f"不能{operation}不同货币单位的金额: {self.currency} != {other.currency}")

    def __add__(self, other: 'Money') -> 'Money':
        self._check_currency(other, "相加")
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        self._check_currency(other, "相减")
        return Money(self.amount - other.amount, self.currency)

    def __mul__(self, multiplier: Any) -> 'Money':
        """
        金额乘法运算。

        Args:
            multiplier: 乘数，整数或Decimal

        Returns:
            金额乘以乘数的结果（未舍入）
        """
        return Money(self.amount * to_decimal(multiplier), self.currency)

    def is_negative(self) -> bool:
        return self.amount < 0

    def quantize(self) -> 'Money':
        """
        舍入到货币最小单位。

        Returns:
            舍入后的新金额对象
        """
        return Money(quantize_amount(self.amount), self.currency)

    def __str__(self) -> str:
        return f"{self.currency} {quantize_amount(self.amount)}"

    def __repr__(self) -> str:
        return f"Money({self.amount!s}, {self.currency!r})"

    def to_dict(self) -> Dict[str, Any]:
        """
        将金额转换为字典表示，金额序列化为字符串。

        Returns:
            包含金额和货币单位的字典
        """
        return {
            "amount": str(quantize_amount(self.amount)),
            "currency": self.currency
        }
