import django_filters
from .models import Transaction


class TransactionFilter(django_filters.FilterSet):
    product = django_filters.NumberFilter(field_name='product_id', lookup_expr='exact')
    order = django_filters.NumberFilter(field_name='order_id', lookup_expr='exact')
    manual = django_filters.CharFilter(method='filter_manual', label='Manual')

    class Meta:
        model = Transaction
        fields = ['product', 'order', 'manual']

    def filter_manual(self, queryset, name, value):
        """Only movements outside the order flow (handles string 'true'/'false')"""
        if value is None or value == '':
            return queryset
        return queryset.filter(order__isnull=str(value).lower() == 'true')
