import django_filters
from .models import Product


class ProductFilter(django_filters.FilterSet):
    """Exact-match filters applied before the search/sort of the product list"""

    category = django_filters.CharFilter(field_name='category', lookup_expr='iexact')
    supplier = django_filters.NumberFilter(field_name='supplier_id', lookup_expr='exact')
    in_stock = django_filters.CharFilter(method='filter_in_stock', label='In Stock')

    class Meta:
        model = Product
        fields = ['category', 'supplier', 'in_stock']

    def filter_in_stock(self, queryset, name, value):
        """Filter by stock availability (handles string 'true'/'false')"""
        if value is None or value == '':
            return queryset
        if str(value).lower() == 'true':
            return queryset.filter(stock__gt=0)
        return queryset.filter(stock=0)
