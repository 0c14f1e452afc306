from django.urls import path
from .views import order_list_create, order_detail, order_status, client_orders

urlpatterns = [
    # Order endpoints
    path('orders/', order_list_create, name='order-list-create'),
    path('orders/<int:pk>/', order_detail, name='order-detail'),
    path('orders/<int:pk>/status/', order_status, name='order-status'),
    path('clients/<int:pk>/orders/', client_orders, name='client-orders'),
]
