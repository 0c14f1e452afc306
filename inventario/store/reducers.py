"""
Create/update/delete reducers for products, suppliers and clients.

Every reducer takes the current AppState and returns ``(new_state, record)``
or just ``new_state``. Validation happens before anything is built, so a
rejected call never produces a partially updated state.
"""
import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal

from . import rules
from .entities import Client, Product, Supplier, Transaction
from .state import AppState, next_id, set_clients, set_products, set_suppliers, set_transactions

logger = logging.getLogger(__name__)


def _find(collection, record_id, label):
    for record in collection:
        if record.id == record_id:
            return record
    raise rules.ValidationFailed(f"{label} {record_id} não encontrado.", 'id')


def _replace_in(collection, record):
    return [record if item.id == record.id else item for item in collection]


# ---------------------------------------------------------------- products

def add_product(state: AppState, name, category, price, stock, supplier_id=None, image='', ids=next_id):
    rules.validate_product_fields(price, stock, image)
    if supplier_id is not None:
        _find(state.suppliers, supplier_id, 'Fornecedor')
    product = Product(
        id=ids(), name=name, category=category, price=Decimal(str(price)),
        stock=stock, supplier_id=supplier_id, image=image,
    )
    return set_products(state, [*state.products, product]), product


def update_product(state: AppState, product: Product, today=None, ids=next_id):
    """
    Replace a product. A stock change records one manual entrada/saida
    transaction for the difference.
    """
    original = _find(state.products, product.id, 'Produto')
    rules.validate_product_fields(product.price, product.stock, product.image,
                                  check_stock=product.stock != original.stock)
    if product.supplier_id is not None:
        _find(state.suppliers, product.supplier_id, 'Fornecedor')

    new_state = set_products(state, _replace_in(state.products, product))
    movement = rules.stock_movement(original.stock, product.stock)
    if movement:
        movement_type, quantity = movement
        transaction = Transaction(
            id=ids(),
            type=movement_type,
            date=(today or date.today()).isoformat(),
            product_id=product.id,
            quantity=quantity,
            total_value=product.price * quantity,
            description=rules.manual_description(movement_type),
        )
        new_state = set_transactions(new_state, [*new_state.transactions, transaction])
    return new_state, product


def delete_product(state: AppState, product_id) -> AppState:
    return set_products(state, [p for p in state.products if p.id != product_id])


# ---------------------------------------------------------------- suppliers

def _cnpjs(state):
    return [(s.id, s.cnpj) for s in state.suppliers]


def add_supplier(state: AppState, name, cnpj, contact, address='', ids=next_id):
    normalized = rules.validate_supplier_fields(name, cnpj, contact, _cnpjs(state))
    supplier = Supplier(id=ids(), name=name.strip(), cnpj=normalized, contact=contact.strip(), address=address)
    return set_suppliers(state, [*state.suppliers, supplier]), supplier


def update_supplier(state: AppState, supplier: Supplier):
    _find(state.suppliers, supplier.id, 'Fornecedor')
    normalized = rules.validate_supplier_fields(
        supplier.name, supplier.cnpj, supplier.contact, _cnpjs(state), current_id=supplier.id
    )
    supplier = replace(supplier, cnpj=normalized)
    return set_suppliers(state, _replace_in(state.suppliers, supplier)), supplier


def delete_supplier(state: AppState, supplier_id) -> AppState:
    """Hard delete; products keep existing without a supplier"""
    products = [
        replace(p, supplier_id=None) if p.supplier_id == supplier_id else p
        for p in state.products
    ]
    state = set_products(state, products)
    return set_suppliers(state, [s for s in state.suppliers if s.id != supplier_id])


# ---------------------------------------------------------------- clients

def _documents(state):
    return [(c.id, c.cpf_cnpj) for c in state.clients]


def add_client(state: AppState, name, cpf_cnpj, contact, address='', ids=next_id):
    rules.validate_client_fields(name, cpf_cnpj, contact, _documents(state))
    client = Client(id=ids(), name=name, cpf_cnpj=str(cpf_cnpj).strip(), contact=contact,
                    address=address, is_active=True)
    return set_clients(state, [*state.clients, client]), client


def update_client(state: AppState, client: Client):
    _find(state.clients, client.id, 'Cliente')
    rules.validate_client_fields(client.name, client.cpf_cnpj, client.contact,
                                 _documents(state), current_id=client.id)
    client = replace(client, cpf_cnpj=str(client.cpf_cnpj).strip())
    return set_clients(state, _replace_in(state.clients, client)), client


def delete_client(state: AppState, client_id):
    """
    Clients with orders are deactivated instead of removed.

    Returns (new_state, deactivated) where ``deactivated`` tells the caller
    which of the two happened.
    """
    client = _find(state.clients, client_id, 'Cliente')
    if any(order.client_id == client_id for order in state.orders):
        logger.info(f"Client {client_id} has orders; deactivating instead of deleting")
        return set_clients(state, _replace_in(state.clients, replace(client, is_active=False))), True
    return set_clients(state, [c for c in state.clients if c.id != client_id]), False
