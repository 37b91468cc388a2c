"""
订单模块配置文件。
从Django设置中获取订单模块的配置。
"""
from django.conf import settings


def _order_settings() -> dict:
    # 每次读取，测试中可以用override_settings覆盖
    return getattr(settings, 'ORDER_SETTINGS', {})


def currency() -> str:
    """订单货币单位"""
    return _order_settings().get('CURRENCY', 'CNY')


def lock_timeout_seconds() -> float:
    """等待库存行锁的最长时间（秒）"""
    return float(_order_settings().get('LOCK_TIMEOUT_SECONDS', 5))


def reservation_max_retries() -> int:
    """库存CAS更新的最大重试次数"""
    return int(_order_settings().get('RESERVATION_MAX_RETRIES', 3))


def max_items_per_order() -> int:
    """单个订单允许的最大明细行数"""
    return int(_order_settings().get('MAX_ITEMS_PER_ORDER', 100))


def release_stock_on_cancel() -> bool:
    """取消订单时是否归还库存"""
    return bool(_order_settings().get('RELEASE_STOCK_ON_CANCEL', True))


def default_page_size() -> int:
    """订单列表默认每页条数"""
    return int(_order_settings().get('DEFAULT_PAGE_SIZE', 20))


# 订单列表每页条数上限
MAX_PAGE_SIZE = 100
