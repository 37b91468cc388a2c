"""
orderdesk项目URL配置。
"""
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),
    # 订单模块API
    path('', include('orders.urls')),
]
