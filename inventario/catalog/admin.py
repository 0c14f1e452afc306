from django.contrib import admin
from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'price', 'stock', 'supplier', 'updated_at']
    list_filter = ['category', 'supplier']
    search_fields = ['name', 'category', 'supplier__name']
    ordering = ['name']
    readonly_fields = ['created_at', 'updated_at']
