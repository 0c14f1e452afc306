from django.contrib import admin
from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'client', 'date', 'status', 'total']
    list_filter = ['status', 'date']
    search_fields = ['id', 'client__name']
    ordering = ['-date']
    readonly_fields = ['total', 'created_at', 'updated_at']
    inlines = [OrderItemInline]
