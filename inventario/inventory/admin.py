from django.contrib import admin
from .models import Transaction


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ['id', 'type', 'date', 'product', 'quantity', 'total_value', 'order', 'description']
    list_filter = ['type', 'date']
    search_fields = ['product__name', 'description']
    ordering = ['-date', '-id']
    readonly_fields = ['created_at']
