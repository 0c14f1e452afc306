"""
Stock ledger writes.

Every stock change goes through these helpers so that Product.stock and the
transactions table never drift apart. Callers run inside transaction.atomic()
with the product rows locked (select_for_update).
"""
import logging

from django.db import transaction
from django.utils import timezone

from inventario.catalog.models import Product
from inventario.store import rules
from inventario.store.entities import ENTRADA, SAIDA, TRANSACTION_TYPES
from .models import Transaction

logger = logging.getLogger(__name__)


def record_stock_edit(product, old_stock):
    """
    Record the movement implied by editing ``product.stock`` directly.
    Returns the Transaction, or None when the stock did not change.
    """
    movement = rules.stock_movement(old_stock, product.stock)
    if movement is None:
        return None
    movement_type, quantity = movement
    entry = Transaction.objects.create(
        type=movement_type,
        date=timezone.localdate(),
        product=product,
        quantity=quantity,
        total_value=product.price * quantity,
        description=rules.manual_description(movement_type),
    )
    logger.info(f"Stock of product {product.id} edited {old_stock} -> {product.stock} ({movement_type} {quantity})")
    return entry


def record_order_items(order, items):
    """One saida per order item, valued at the item's price"""
    today = timezone.localdate(order.date) if timezone.is_aware(order.date) else order.date.date()
    return Transaction.objects.bulk_create([
        Transaction(
            type=SAIDA,
            date=today,
            product_id=item.product_id,
            quantity=item.quantity,
            total_value=item.price * item.quantity,
            order=order,
            description=rules.order_description(order.id),
        )
        for item in items
    ])


def record_movement(product_id, movement_type, quantity):
    """
    Manual entrada/saida for one product: adjusts the stock and appends the
    transaction atomically. A saida may not exceed the current stock.
    """
    if movement_type not in TRANSACTION_TYPES:
        raise rules.ValidationFailed(f"Tipo de transação inválido: {movement_type}", 'type')
    if not rules.is_positive_int(quantity):
        raise rules.ValidationFailed(rules.MSG_STOCK, 'quantity')

    with transaction.atomic():
        product = Product.objects.select_for_update().get(pk=product_id)
        if movement_type == SAIDA:
            rules.check_stock(product.name, product.stock, quantity)
        product.stock += quantity if movement_type == ENTRADA else -quantity
        product.save(update_fields=['stock', 'updated_at'])
        entry = Transaction.objects.create(
            type=movement_type,
            date=timezone.localdate(),
            product=product,
            quantity=quantity,
            total_value=product.price * quantity,
            description=rules.manual_description(movement_type),
        )
    logger.info(f"Manual {movement_type} of {quantity} for product {product_id}; stock now {product.stock}")
    return entry
