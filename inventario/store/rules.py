"""
Validation and bookkeeping rules for products, suppliers, clients and orders.

The predicates here are used twice: by the in-memory reducers in
``inventario.store.orders`` / ``inventario.store.reducers`` and by the REST
serializers, so both paths reject exactly the same input.
"""
import re
from decimal import Decimal, InvalidOperation
from urllib.parse import urlsplit

from .entities import (
    ENTRADA, ORDER_CANCELLED, ORDER_COMPLETED, ORDER_PENDING, ORDER_STATUSES, SAIDA,
)

CNPJ_LENGTH = 14

# Allowed status changes; completed and cancelled are terminal
STATUS_TRANSITIONS = {
    ORDER_PENDING: {ORDER_COMPLETED, ORDER_CANCELLED},
    ORDER_COMPLETED: set(),
    ORDER_CANCELLED: set(),
}

MSG_PRICE = "O preço deve ser maior que 0."
MSG_STOCK = "A quantidade deve ser um número inteiro positivo."
MSG_IMAGE = "A URL da imagem é inválida."
MSG_NAME = "Nome é obrigatório."
MSG_CNPJ = "CNPJ é obrigatório e deve conter 14 dígitos."
MSG_CNPJ_TAKEN = "CNPJ já cadastrado."
MSG_CONTACT = "Contato é obrigatório."
MSG_CPF_CNPJ = "CPF/CNPJ é obrigatório."
MSG_CPF_CNPJ_TAKEN = "CPF/CNPJ já está em uso por outro cliente."
MSG_NO_ITEMS = "O pedido deve conter pelo menos um produto."
MSG_NO_CLIENT = "Selecione um cliente."


class StoreError(Exception):
    """Base class for rule violations"""

    def __init__(self, message, field=None):
        super().__init__(message)
        self.message = message
        self.field = field

    def as_dict(self):
        return {self.field or 'non_field_errors': [self.message]}


class ValidationFailed(StoreError):
    pass


class InvalidTransition(StoreError):
    pass


class InsufficientStock(ValidationFailed):
    pass


# ---------------------------------------------------------------- predicates

def is_blank(value) -> bool:
    return value is None or str(value).strip() == ''


def is_valid_price(price) -> bool:
    try:
        return Decimal(str(price)) > 0
    except (InvalidOperation, ValueError, TypeError):
        return False


def is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def is_valid_image_url(url) -> bool:
    """A URL is accepted when it has both a scheme and a network location"""
    if is_blank(url):
        return False
    try:
        parts = urlsplit(str(url).strip())
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc)


def normalize_cnpj(cnpj) -> str:
    return re.sub(r'\D', '', str(cnpj or ''))


def is_valid_cnpj(cnpj) -> bool:
    return len(normalize_cnpj(cnpj)) == CNPJ_LENGTH


def is_unique(value, existing, current_id=None) -> bool:
    """
    ``existing`` is an iterable of (id, value) pairs. The record being edited
    (``current_id``) never conflicts with itself.
    """
    return not any(other == value and other_id != current_id for other_id, other in existing)


def can_transition(current: str, new: str) -> bool:
    return new in STATUS_TRANSITIONS.get(current, set())


# ---------------------------------------------------------------- validators

def validate_product_fields(price, stock, image, check_stock=True):
    """
    A stock value being set must be a positive integer. Updates that leave
    the stock as it is pass ``check_stock=False`` so a product sold out by
    orders can still be edited.
    """
    if not is_valid_price(price):
        raise ValidationFailed(MSG_PRICE, 'price')
    if check_stock and not is_positive_int(stock):
        raise ValidationFailed(MSG_STOCK, 'stock')
    if not is_valid_image_url(image):
        raise ValidationFailed(MSG_IMAGE, 'image')


def validate_supplier_fields(name, cnpj, contact, existing_cnpjs=(), current_id=None) -> str:
    """Returns the normalised cnpj"""
    if is_blank(name):
        raise ValidationFailed(MSG_NAME, 'name')
    if not is_valid_cnpj(cnpj):
        raise ValidationFailed(MSG_CNPJ, 'cnpj')
    normalized = normalize_cnpj(cnpj)
    if not is_unique(normalized, existing_cnpjs, current_id):
        raise ValidationFailed(MSG_CNPJ_TAKEN, 'cnpj')
    if is_blank(contact):
        raise ValidationFailed(MSG_CONTACT, 'contact')
    return normalized


def validate_client_fields(name, cpf_cnpj, contact, existing_documents=(), current_id=None):
    if is_blank(name):
        raise ValidationFailed(MSG_NAME, 'name')
    if is_blank(cpf_cnpj):
        raise ValidationFailed(MSG_CPF_CNPJ, 'cpf_cnpj')
    if is_blank(contact):
        raise ValidationFailed(MSG_CONTACT, 'contact')
    if not is_unique(str(cpf_cnpj).strip(), existing_documents, current_id):
        raise ValidationFailed(MSG_CPF_CNPJ_TAKEN, 'cpf_cnpj')


def validate_status_change(current: str, new: str):
    if new not in ORDER_STATUSES:
        raise ValidationFailed(f"Status inválido: {new}", 'status')
    if not can_transition(current, new):
        raise InvalidTransition(
            f"Não é possível alterar o pedido de '{current}' para '{new}'.", 'status'
        )


def check_stock(product_name: str, available: int, requested: int):
    if requested > available:
        raise InsufficientStock(
            f"Estoque insuficiente para {product_name}: disponível {available}, solicitado {requested}.",
            'items',
        )


# ---------------------------------------------------------------- bookkeeping

def order_total(items) -> Decimal:
    """Σ price × quantity over anything with ``price`` and ``quantity``"""
    return sum((Decimal(str(item.price)) * item.quantity for item in items), Decimal('0.00'))


def order_description(order_id) -> str:
    return f"Pedido #{order_id}"


def manual_description(movement_type: str) -> str:
    return "Adição manual de estoque" if movement_type == ENTRADA else "Remoção manual de estoque"


def stock_movement(old_stock: int, new_stock: int):
    """
    Movement implied by editing a product's stock directly.

    Returns (type, quantity) or None when the stock did not change.
    """
    difference = new_stock - old_stock
    if difference == 0:
        return None
    return (ENTRADA if difference > 0 else SAIDA), abs(difference)
