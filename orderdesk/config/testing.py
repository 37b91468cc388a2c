"""
测试环境配置文件。
包含测试环境特定的Django配置。
"""
from .base import *
from .env import *

# 测试环境禁用调试模式
DEBUG = False

# 默认使用内存数据库加速测试；行锁相关的测试需要通过TEST_DB_*指向PostgreSQL或MySQL
DATABASES = {
    'default': {
        'ENGINE': get_env('TEST_DB_ENGINE', default='django.db.backends.sqlite3'),
        'NAME': get_env('TEST_DB_NAME', default=':memory:'),
        'USER': get_env('TEST_DB_USER', default=''),
        'PASSWORD': get_env('TEST_DB_PASSWORD', default=''),
        'HOST': get_env('TEST_DB_HOST', default=''),
        'PORT': get_env('TEST_DB_PORT', default=''),
    }
}

# 禁用密码哈希加速测试
PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

# 简化日志配置
LOGGING = {
    'version': 1,
    'disable_existing_loggers': True,
    'handlers': {
        'console': {
            'level': 'ERROR',
            'class': 'logging.StreamHandler',
        },
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'ERROR',
            'propagate': False,
        },
        'orders': {
            'handlers': ['console'],
            'level': 'ERROR',
            'propagate': False,
        },
    },
}

REST_FRAMEWORK['TEST_REQUEST_DEFAULT_FORMAT'] = 'json'

# 订单模块测试环境配置
ORDER_SETTINGS = {
    'CURRENCY': 'CNY',
    'LOCK_TIMEOUT_SECONDS': 2,  # 测试中尽快暴露锁等待
    'RESERVATION_MAX_RETRIES': 3,
    'MAX_ITEMS_PER_ORDER': 20,
    'RELEASE_STOCK_ON_CANCEL': True,
    'DEFAULT_PAGE_SIZE': 20,
}
