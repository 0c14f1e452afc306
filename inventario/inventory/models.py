from django.db import models
from django.utils import timezone
from inventario.catalog.models import Product
from inventario.orders.models import Order
from inventario.store.entities import ENTRADA, SAIDA


class Transaction(models.Model):
    """Stock movements (Transacao): entrada adds stock, saida removes it"""
    TYPE_CHOICES = [
        (ENTRADA, 'Entrada'),
        (SAIDA, 'Saída'),
    ]

    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    date = models.DateField(default=timezone.localdate)
    product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, blank=True, related_name='transactions')
    quantity = models.PositiveIntegerField()
    total_value = models.DecimalField(max_digits=12, decimal_places=2)
    order = models.ForeignKey(Order, on_delete=models.SET_NULL, null=True, blank=True, related_name='transactions')
    description = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.get_type_display()} {self.quantity} - {self.description}"

    class Meta:
        db_table = 'transactions'
        ordering = ['-date', '-id']
        indexes = [
            models.Index(fields=['date'], name='idx_transactions_date'),
            models.Index(fields=['type'], name='idx_transactions_type'),
        ]
