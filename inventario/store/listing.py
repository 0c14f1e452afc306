"""
Search, filter and sort helpers for the list screens.

Records are read through attribute access only, so the same helpers work on
the store's dataclasses and on Django model instances.
"""
import unicodedata
from datetime import date, datetime

from .entities import ORDER_STATUSES, TRANSACTION_TYPES
from .rules import ValidationFailed

ALL = 'all'
ASC = 'asc'
DESC = 'desc'


def text_key(value) -> str:
    """Accent- and case-insensitive key, close to a pt-BR localeCompare"""
    decomposed = unicodedata.normalize('NFKD', str(value or ''))
    return ''.join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


def contains(value, term) -> bool:
    return str(term).lower() in str(value or '').lower()


def as_date(value):
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationFailed(f"Data inválida: {value}", 'date')


def is_descending(direction, default=ASC) -> bool:
    direction = (direction or default).lower()
    if direction not in (ASC, DESC):
        raise ValidationFailed(f"Direção de ordenação inválida: {direction}", 'direction')
    return direction == DESC


def search(records, term, *getters):
    """Keep records where any getter's value contains ``term`` (case-insensitive)"""
    if not term:
        return list(records)
    return [record for record in records if any(contains(get(record), term) for get in getters)]


def sort_records(records, key, descending=False):
    return sorted(records, key=key, reverse=descending)


def _resolve(keys, field, default):
    field = field or default
    if field not in keys:
        raise ValidationFailed(f"Campo de ordenação inválido: {field}", 'ordering')
    return keys[field]


def _supplier_name(product):
    supplier = getattr(product, 'supplier', None)
    return supplier.name if supplier else ''


# ---------------------------------------------------------------- products

PRODUCT_SORT_KEYS = {
    'price': lambda p: p.price,
    'category': lambda p: text_key(p.category),
    'stock': lambda p: p.stock,
    'total': lambda p: p.price * p.stock,
    'name': lambda p: text_key(p.name),
}

PRODUCT_SEARCH_FIELDS = ('name', 'supplier')


def list_products(products, term='', search_by='name', ordering='price', direction=ASC,
                  supplier_name=_supplier_name):
    if search_by not in PRODUCT_SEARCH_FIELDS:
        raise ValidationFailed(f"Campo de busca inválido: {search_by}", 'search_by')
    getter = supplier_name if search_by == 'supplier' else (lambda p: p.name)
    found = search(products, term, getter)
    return sort_records(found, _resolve(PRODUCT_SORT_KEYS, ordering, 'price'), is_descending(direction))


def stock_overview(products, name='', supplier='', ordering='category', direction=ASC,
                   supplier_name=_supplier_name):
    """Products matching BOTH the name and the supplier substrings"""
    found = [
        p for p in products
        if contains(p.name, name or '') and contains(supplier_name(p), supplier or '')
    ]
    return sort_records(found, _resolve(PRODUCT_SORT_KEYS, ordering, 'category'), is_descending(direction))


# ---------------------------------------------------------------- suppliers

SUPPLIER_SORT_KEYS = {
    'name': lambda s: text_key(s.name),
    'contact': lambda s: text_key(s.contact),
}


def list_suppliers(suppliers, term='', ordering='name', direction=ASC):
    found = search(suppliers, term, lambda s: s.name, lambda s: s.contact)
    return sort_records(found, _resolve(SUPPLIER_SORT_KEYS, ordering, 'name'), is_descending(direction))


# ---------------------------------------------------------------- clients

CLIENT_SEARCH_FIELDS = ('name', 'cpf_cnpj')


def list_clients(clients, term='', search_by='name', active=None):
    if search_by not in CLIENT_SEARCH_FIELDS:
        raise ValidationFailed(f"Campo de busca inválido: {search_by}", 'search_by')
    found = search(clients, term, lambda c: getattr(c, search_by))
    if active is not None:
        found = [c for c in found if c.is_active == active]
    return found


# ---------------------------------------------------------------- orders

ORDER_SORT_KEYS = {
    'date': lambda o: o.date,
    'total': lambda o: o.total,
}


def _client_name(order):
    client = getattr(order, 'client', None)
    return client.name if client else ''


def filter_by_status(orders, status=ALL):
    status = status or ALL
    if status != ALL and status not in ORDER_STATUSES:
        raise ValidationFailed(f"Status inválido: {status}", 'status')
    return [o for o in orders if status == ALL or o.status == status]


def list_orders(orders, status=ALL, on_date=None, term='', ordering='date', direction=DESC,
                client_name=_client_name):
    found = filter_by_status(orders, status)
    wanted = as_date(on_date)
    if wanted:
        found = [o for o in found if as_date(o.date) == wanted]
    if term:
        found = [o for o in found if str(term) in str(o.id) or contains(client_name(o), term)]
    return sort_records(found, _resolve(ORDER_SORT_KEYS, ordering, 'date'), is_descending(direction, DESC))


# ---------------------------------------------------------------- transactions

def list_transactions(transactions, movement_type=ALL, on_date=None):
    movement_type = movement_type or ALL
    if movement_type != ALL and movement_type not in TRANSACTION_TYPES:
        raise ValidationFailed(f"Tipo de transação inválido: {movement_type}", 'type')
    wanted = as_date(on_date)
    return [
        t for t in transactions
        if (movement_type == ALL or t.type == movement_type)
        and (not wanted or as_date(t.date) == wanted)
    ]
