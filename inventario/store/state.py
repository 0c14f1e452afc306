"""
Shared application state.

AppState holds the five entity collections as tuples. Pages never edit a
collection in place: they build a replacement collection and hand it to one
of the set_* functions, which return a new AppState.
"""
import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Tuple

from .entities import Client, Order, Product, Supplier, Transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppState:
    products: Tuple[Product, ...] = ()
    suppliers: Tuple[Supplier, ...] = ()
    clients: Tuple[Client, ...] = ()
    orders: Tuple[Order, ...] = ()
    transactions: Tuple[Transaction, ...] = ()

    @classmethod
    def empty(cls):
        return cls()


def set_products(state: AppState, products) -> AppState:
    return replace(state, products=tuple(products))


def set_suppliers(state: AppState, suppliers) -> AppState:
    return replace(state, suppliers=tuple(suppliers))


def set_clients(state: AppState, clients) -> AppState:
    return replace(state, clients=tuple(clients))


def set_orders(state: AppState, orders) -> AppState:
    return replace(state, orders=tuple(orders))


def set_transactions(state: AppState, transactions) -> AppState:
    return replace(state, transactions=tuple(transactions))


class IdGenerator:
    """Timestamp-derived ids (milliseconds), strictly increasing per generator"""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            candidate = int(self._clock() * 1000)
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return candidate


next_id = IdGenerator()


class Store:
    """
    Mutable holder for one AppState, owned by the composition root.

    dispatch() runs a reducer against the current state and swaps the result
    in with a single assignment. A reducer that raises leaves the state
    untouched.
    """

    def __init__(self, state: AppState = None):
        self.state = state or AppState.empty()

    def dispatch(self, reducer, *args, **kwargs):
        result = reducer(self.state, *args, **kwargs)
        if isinstance(result, tuple):
            new_state, value = result
        else:
            new_state, value = result, None
        self.state = new_state
        logger.debug(f"Store updated by {getattr(reducer, '__name__', reducer)}")
        return value
