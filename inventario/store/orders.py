"""
Order placement and stock bookkeeping for the in-memory store.

place_order() is the single transition that appends the order, appends one
saida transaction per item and decrements stock. It validates everything
first and builds the three new collections before swapping any of them in.
"""
import logging
from collections import Counter
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal

from . import rules
from .entities import ENTRADA, ORDER_PENDING, SAIDA, TRANSACTION_TYPES, Order, OrderItem, Transaction
from .state import AppState, next_id, set_orders, set_products, set_transactions

logger = logging.getLogger(__name__)


def _coerce_item(raw, products_by_id) -> OrderItem:
    if isinstance(raw, OrderItem):
        product_id, quantity, price = raw.product_id, raw.quantity, raw.price
    else:
        product_id, quantity, price = raw['product_id'], raw['quantity'], raw.get('price')
    product = products_by_id.get(product_id)
    if product is None:
        raise rules.ValidationFailed(f"Produto {product_id} não encontrado.", 'items')
    if not rules.is_positive_int(quantity):
        raise rules.ValidationFailed(rules.MSG_STOCK, 'items')
    if price is None:
        price = product.price
    return OrderItem(product_id=product_id, quantity=quantity, price=Decimal(str(price)))


def build_items(raw_items, products_by_id):
    items = tuple(_coerce_item(raw, products_by_id) for raw in raw_items)
    if not items:
        raise rules.ValidationFailed(rules.MSG_NO_ITEMS, 'items')
    return items


def _quantities(items):
    counts = Counter()
    for item in items:
        counts[item.product_id] += item.quantity
    return counts


def _order_saidas(order, ids):
    """One saida per item of ``order``, dated on the order's day"""
    return [
        Transaction(
            id=ids(),
            type=SAIDA,
            date=order.date.date().isoformat(),
            product_id=item.product_id,
            quantity=item.quantity,
            total_value=item.line_total,
            order_id=order.id,
            description=rules.order_description(order.id),
        )
        for item in order.items
    ]


def place_order(state: AppState, client_id, raw_items, now=None, ids=next_id):
    if client_id is None or not any(c.id == client_id for c in state.clients):
        raise rules.ValidationFailed(rules.MSG_NO_CLIENT, 'client')

    products_by_id = {p.id: p for p in state.products}
    items = build_items(raw_items, products_by_id)

    requested = _quantities(items)
    for product_id, quantity in requested.items():
        product = products_by_id[product_id]
        rules.check_stock(product.name, product.stock, quantity)

    now = now or datetime.now()
    order = Order(
        id=ids(), client_id=client_id, date=now, status=ORDER_PENDING,
        items=items, total=rules.order_total(items),
    )
    products = [
        replace(p, stock=p.stock - requested[p.id]) if p.id in requested else p
        for p in state.products
    ]

    new_state = set_products(state, products)
    new_state = set_transactions(new_state, [*state.transactions, *_order_saidas(order, ids)])
    new_state = set_orders(new_state, [*state.orders, order])
    logger.info(f"Order {order.id} placed for client {client_id}: {len(items)} item(s), total {order.total}")
    return new_state, order


def _find_order(state, order_id) -> Order:
    for order in state.orders:
        if order.id == order_id:
            return order
    raise rules.ValidationFailed(f"Pedido {order_id} não encontrado.", 'id')


def update_order_items(state: AppState, order_id, raw_items, ids=next_id):
    """
    Replace the items of a pending order and recompute its total.

    The order's saida transactions are rebooked to match the new items and
    each product's stock moves by the difference between the old and new
    quantities. The old quantities count as available for the check.
    """
    order = _find_order(state, order_id)
    if order.status != ORDER_PENDING:
        raise rules.InvalidTransition("Somente pedidos pendentes podem ser alterados.", 'items')
    products_by_id = {p.id: p for p in state.products}
    items = build_items(raw_items, products_by_id)

    old = _quantities(order.items)
    new = _quantities(items)
    for product_id, quantity in new.items():
        product = products_by_id[product_id]
        rules.check_stock(product.name, product.stock + old[product_id], quantity)

    updated = replace(order, items=items, total=rules.order_total(items))
    products = [
        replace(p, stock=p.stock + old[p.id] - new[p.id]) if p.id in old or p.id in new else p
        for p in state.products
    ]
    kept = [t for t in state.transactions if t.order_id != order_id]
    new_state = set_products(state, products)
    new_state = set_transactions(new_state, [*kept, *_order_saidas(updated, ids)])
    orders = [updated if o.id == order_id else o for o in state.orders]
    logger.info(f"Order {order_id} items replaced: {len(items)} item(s), total {updated.total}")
    return set_orders(new_state, orders), updated


def change_status(state: AppState, order_id, new_status):
    order = _find_order(state, order_id)
    rules.validate_status_change(order.status, new_status)
    updated = replace(order, status=new_status)
    orders = [updated if o.id == order_id else o for o in state.orders]
    return set_orders(state, orders), updated


def delete_order(state: AppState, order_id) -> AppState:
    return set_orders(state, [o for o in state.orders if o.id != order_id])


def record_movement(state: AppState, product_id, movement_type, quantity, today=None, ids=next_id):
    """Manual stock movement outside the order flow"""
    if movement_type not in TRANSACTION_TYPES:
        raise rules.ValidationFailed(f"Tipo de transação inválido: {movement_type}", 'type')
    if not rules.is_positive_int(quantity):
        raise rules.ValidationFailed(rules.MSG_STOCK, 'quantity')
    product = next((p for p in state.products if p.id == product_id), None)
    if product is None:
        raise rules.ValidationFailed(f"Produto {product_id} não encontrado.", 'product')
    if movement_type == SAIDA:
        rules.check_stock(product.name, product.stock, quantity)

    delta = quantity if movement_type == ENTRADA else -quantity
    updated = replace(product, stock=product.stock + delta)
    transaction = Transaction(
        id=ids(),
        type=movement_type,
        date=(today or date.today()).isoformat(),
        product_id=product_id,
        quantity=quantity,
        total_value=product.price * quantity,
        description=rules.manual_description(movement_type),
    )
    new_state = set_products(state, [updated if p.id == product_id else p for p in state.products])
    return set_transactions(new_state, [*state.transactions, transaction]), transaction
