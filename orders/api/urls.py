"""
订单API URL配置。
定义RESTful API的路由映射。
"""
from django.urls import path
from orders.api import views

# API URL模式
urlpatterns = [
    path('orders/', views.OrderListCreateView.as_view(), name='order-list-create'),
    path('orders/<uuid:order_id>/', views.OrderDetailView.as_view(), name='order-detail'),
    path('orders/<uuid:order_id>/status/', views.OrderStatusView.as_view(), name='order-status'),
]
