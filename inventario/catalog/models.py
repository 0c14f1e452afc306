from django.db import models
from decimal import Decimal
from inventario.parties.models import Supplier


class Product(models.Model):
    """Products (Produto)"""
    name = models.CharField(max_length=200)
    category = models.CharField(max_length=100, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    stock = models.PositiveIntegerField(default=0)
    supplier = models.ForeignKey(Supplier, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    image = models.CharField(max_length=500, blank=True, help_text="Image URL")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def total_value(self):
        """Stock value: price x stock"""
        return (self.price or Decimal('0.00')) * self.stock

    class Meta:
        db_table = 'products'
        ordering = ['name']
