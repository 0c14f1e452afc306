from django.urls import path
from .views import transaction_list_create, transaction_detail, stock_overview, state_snapshot

urlpatterns = [
    # Transaction endpoints
    path('transactions/', transaction_list_create, name='transaction-list-create'),
    path('transactions/<int:pk>/', transaction_detail, name='transaction-detail'),

    # Stock overview
    path('stock/', stock_overview, name='stock-overview'),

    # Full state snapshot
    path('state/', state_snapshot, name='state-snapshot'),
]
