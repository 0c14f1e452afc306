from django.db import models


class Supplier(models.Model):
    """Suppliers (Fornecedor)"""
    name = models.CharField(max_length=200)
    cnpj = models.CharField(max_length=14, unique=True, help_text="14 digits, stored without punctuation")
    contact = models.CharField(max_length=200)
    address = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'suppliers'
        ordering = ['name']


class Client(models.Model):
    """Clients (Cliente). Clients with orders are deactivated instead of deleted."""
    name = models.CharField(max_length=200)
    cpf_cnpj = models.CharField(max_length=32, unique=True)
    contact = models.CharField(max_length=200)
    address = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'clients'
        ordering = ['name']
