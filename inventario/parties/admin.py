from django.contrib import admin
from .models import Supplier, Client


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ['name', 'cnpj', 'contact', 'created_at']
    search_fields = ['name', 'cnpj', 'contact']
    ordering = ['name']


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ['name', 'cpf_cnpj', 'contact', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name', 'cpf_cnpj', 'contact']
    ordering = ['name']
