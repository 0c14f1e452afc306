"""Read-side join used by the transaction history screen"""
from dataclasses import dataclass
from decimal import Decimal

from .listing import as_date
from .rules import order_description

PRODUCT_NOT_FOUND = "Produto não encontrado"
MANUAL_MOVEMENT = "Movimentação manual"


@dataclass(frozen=True)
class TransactionDetails:
    product_name: str
    order_info: str
    value: Decimal
    date: object


def describe(transaction, products_by_id, orders_by_id) -> TransactionDetails:
    product = products_by_id.get(transaction.product_id)
    order = orders_by_id.get(transaction.order_id) if transaction.order_id else None
    return TransactionDetails(
        product_name=product.name if product else PRODUCT_NOT_FOUND,
        order_info=order_description(order.id) if order else MANUAL_MOVEMENT,
        value=transaction.total_value,
        date=as_date(transaction.date),
    )


def transaction_history(transactions, products, orders):
    """Pairs of (transaction, TransactionDetails), recomputed on every call"""
    products_by_id = {p.id: p for p in products}
    orders_by_id = {o.id: o for o in orders}
    return [(t, describe(t, products_by_id, orders_by_id)) for t in transactions]
