"""
开发环境配置文件。
包含开发环境特定的Django配置。
"""
import os
from .base import *
from .env import *

# 开发环境默认开启调试模式
DEBUG = True

# 安全配置 - 开发环境禁用HTTPS相关设置
SECURE_SSL_REDIRECT = False
SESSION_COOKIE_SECURE = False
CSRF_COOKIE_SECURE = False

# 数据库配置
DATABASES = {
    'default': {
        'ENGINE': DB_ENGINE,
        'NAME': DB_NAME,
        'USER': DB_USER,
        'PASSWORD': DB_PASSWORD,
        'HOST': DB_HOST,
        'PORT': DB_PORT,
    }
}

if 'mysql' in DB_ENGINE:
    DATABASES['default']['OPTIONS'] = {
        'charset': 'utf8mb4',
        'use_unicode': True,
    }

# 日志配置 - 开发环境更详细的日志
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {process:d} {thread:d} {message}',
            'style': '{',
        },
        'simple': {
            'format': '{levelname} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'level': 'DEBUG',
            'class': 'logging.StreamHandler',
            'formatter': 'verbose'
        },
        'file': {
            'level': 'INFO',
            'class': 'logging.FileHandler',
            'filename': os.path.join(BASE_DIR, 'logs/django.log'),
            'formatter': 'verbose',
        },
    },
    'loggers': {
        'django': {
            'handlers': ['console', 'file'],
            'level': 'INFO',
            'propagate': True,
        },
        'orders': {
            'handlers': ['console', 'file'],
            'level': 'DEBUG',  # 开发环境使用DEBUG级别
            'propagate': False,
        },
    },
}

# 确保日志目录存在
os.makedirs(os.path.join(BASE_DIR, 'logs'), exist_ok=True)

# 开发环境保留浏览器API渲染器
REST_FRAMEWORK['DEFAULT_RENDERER_CLASSES'] = [
    'rest_framework.renderers.JSONRenderer',
    'rest_framework.renderers.BrowsableAPIRenderer',
]

# 订单模块开发环境配置
ORDER_SETTINGS = {
    'CURRENCY': ORDER_CURRENCY,
    'LOCK_TIMEOUT_SECONDS': ORDER_LOCK_TIMEOUT_SECONDS,
    'RESERVATION_MAX_RETRIES': ORDER_RESERVATION_MAX_RETRIES,
    'MAX_ITEMS_PER_ORDER': ORDER_MAX_ITEMS,
    'RELEASE_STOCK_ON_CANCEL': ORDER_RELEASE_STOCK_ON_CANCEL,
    'DEFAULT_PAGE_SIZE': 20,
}
