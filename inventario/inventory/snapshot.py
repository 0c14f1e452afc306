"""Hydrate the in-memory AppState from the database"""
from dataclasses import asdict

from inventario.catalog.models import Product
from inventario.orders.models import Order
from inventario.parties.models import Client, Supplier
from inventario.store import entities
from inventario.store.state import AppState
from .models import Transaction


def load_state() -> AppState:
    products = tuple(
        entities.Product(
            id=p.id, name=p.name, category=p.category, price=p.price, stock=p.stock,
            supplier_id=p.supplier_id, image=p.image,
        )
        for p in Product.objects.order_by('id')
    )
    suppliers = tuple(
        entities.Supplier(id=s.id, name=s.name, cnpj=s.cnpj, contact=s.contact, address=s.address)
        for s in Supplier.objects.order_by('id')
    )
    clients = tuple(
        entities.Client(
            id=c.id, name=c.name, cpf_cnpj=c.cpf_cnpj, contact=c.contact,
            address=c.address, is_active=c.is_active,
        )
        for c in Client.objects.order_by('id')
    )
    orders = tuple(
        entities.Order(
            id=o.id, client_id=o.client_id, date=o.date, status=o.status, total=o.total,
            items=tuple(
                entities.OrderItem(product_id=i.product_id, quantity=i.quantity, price=i.price)
                for i in o.items.all()
            ),
        )
        for o in Order.objects.prefetch_related('items').order_by('id')
    )
    transactions = tuple(
        entities.Transaction(
            id=t.id, type=t.type, date=t.date.isoformat(), product_id=t.product_id,
            quantity=t.quantity, total_value=t.total_value, order_id=t.order_id,
            description=t.description,
        )
        for t in Transaction.objects.order_by('id')
    )
    return AppState(
        products=products, suppliers=suppliers, clients=clients,
        orders=orders, transactions=transactions,
    )


def state_as_dict(state: AppState) -> dict:
    """Plain dict of the five collections, ready for a JSON renderer"""
    return asdict(state)
