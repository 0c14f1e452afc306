from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

ORDER_PENDING = 'pending'
ORDER_COMPLETED = 'completed'
ORDER_CANCELLED = 'cancelled'
ORDER_STATUSES = (ORDER_PENDING, ORDER_COMPLETED, ORDER_CANCELLED)

ENTRADA = 'entrada'  # stock in
SAIDA = 'saida'  # stock out
TRANSACTION_TYPES = (ENTRADA, SAIDA)


@dataclass(frozen=True)
class Supplier:
    id: int
    name: str
    cnpj: str
    contact: str
    address: str = ''


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    category: str
    price: Decimal
    stock: int
    supplier_id: Optional[int] = None
    image: str = ''

    @property
    def total_value(self) -> Decimal:
        return self.price * self.stock


@dataclass(frozen=True)
class Client:
    id: int
    name: str
    cpf_cnpj: str
    contact: str
    address: str = ''
    is_active: bool = True


@dataclass(frozen=True)
class OrderItem:
    product_id: int
    quantity: int
    price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class Order:
    id: int
    client_id: int
    date: datetime
    status: str = ORDER_PENDING
    items: Tuple[OrderItem, ...] = field(default_factory=tuple)
    total: Decimal = Decimal('0.00')


@dataclass(frozen=True)
class Transaction:
    id: int
    type: str
    date: str  # ISO date, YYYY-MM-DD
    product_id: int
    quantity: int
    total_value: Decimal
    order_id: Optional[int] = None
    description: str = ''
