"""
orderdesk项目的Django配置入口。

根据DJANGO_ENV环境变量加载对应环境的配置模块。
"""

import os
from pathlib import Path

# 构建基本路径
BASE_DIR = Path(__file__).resolve().parent.parent

# 确定当前环境
DJANGO_ENV = os.environ.get('DJANGO_ENV', 'development')

# 根据环境加载相应的配置
if DJANGO_ENV == 'production':
    from .config.production import *
elif DJANGO_ENV == 'testing':
    from .config.testing import *
else:  # 默认使用开发环境配置
    from .config.development import *
