from django.db import models
from django.utils import timezone
from decimal import Decimal
from inventario.catalog.models import Product
from inventario.parties.models import Client
from inventario.store.entities import ORDER_CANCELLED, ORDER_COMPLETED, ORDER_PENDING


class Order(models.Model):
    """Orders (Pedido)"""
    STATUS_CHOICES = [
        (ORDER_PENDING, 'Pendente'),
        (ORDER_COMPLETED, 'Concluído'),
        (ORDER_CANCELLED, 'Cancelado'),
    ]

    client = models.ForeignKey(Client, on_delete=models.PROTECT, related_name='orders')
    date = models.DateTimeField(default=timezone.now)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=ORDER_PENDING)
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Pedido #{self.id}"

    def get_total(self):
        """Sum of price x quantity over the items"""
        return sum((item.get_line_total() for item in self.items.all()), Decimal('0.00'))

    class Meta:
        db_table = 'orders'
        ordering = ['-date']


class OrderItem(models.Model):
    """Order lines (ItemPedido); price is the unit price at the time of the order"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, blank=True, related_name='order_items')
    quantity = models.PositiveIntegerField()
    price = models.DecimalField(max_digits=10, decimal_places=2)

    def get_line_total(self):
        return self.price * self.quantity

    class Meta:
        db_table = 'order_items'
        ordering = ['id']
