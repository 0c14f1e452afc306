"""
Test suite for the in-memory store
Tests: validation rules, reducers, order placement bookkeeping, listing and history
"""
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal

from django.test import SimpleTestCase

from inventario.store import history, listing, orders, reducers, rules
from inventario.store.entities import (
    ENTRADA, ORDER_CANCELLED, ORDER_COMPLETED, ORDER_PENDING, SAIDA,
    Client, Order, OrderItem, Product, Supplier, Transaction,
)
from inventario.store.state import AppState, IdGenerator, Store, set_products


def sequential_ids(start=1):
    counter = iter(range(start, start + 10_000))
    return lambda: next(counter)


class RulesTests(SimpleTestCase):
    """Validation predicates shared by the store and the API"""

    def test_price_must_be_positive(self):
        self.assertTrue(rules.is_valid_price(Decimal('0.01')))
        self.assertFalse(rules.is_valid_price(0))
        self.assertFalse(rules.is_valid_price(-5))
        self.assertFalse(rules.is_valid_price('abc'))

    def test_stock_must_be_positive_when_set(self):
        for stock in (0, -1):
            with self.assertRaises(rules.ValidationFailed):
                rules.validate_product_fields(10, stock, 'https://img.test/a.png')
        rules.validate_product_fields(10, 0, 'https://img.test/a.png', check_stock=False)

    def test_stock_must_be_integer(self):
        self.assertFalse(rules.is_positive_int(2.5))
        self.assertFalse(rules.is_positive_int(True))
        self.assertTrue(rules.is_positive_int(3))

    def test_image_url_needs_scheme_and_host(self):
        self.assertTrue(rules.is_valid_image_url('https://example.com/a.png'))
        self.assertFalse(rules.is_valid_image_url('example.com/a.png'))
        self.assertFalse(rules.is_valid_image_url(''))
        self.assertFalse(rules.is_valid_image_url('http://'))

    def test_cnpj_normalised_to_14_digits(self):
        self.assertEqual(rules.normalize_cnpj('12.345.678/0001-90'), '12345678000190')
        self.assertTrue(rules.is_valid_cnpj('12.345.678/0001-90'))
        self.assertFalse(rules.is_valid_cnpj('1234'))

    def test_uniqueness_ignores_record_being_edited(self):
        existing = [(1, 'A'), (2, 'B')]
        self.assertTrue(rules.is_unique('A', existing, current_id=1))
        self.assertFalse(rules.is_unique('A', existing, current_id=2))
        self.assertFalse(rules.is_unique('A', existing))

    def test_status_transitions(self):
        self.assertTrue(rules.can_transition(ORDER_PENDING, ORDER_COMPLETED))
        self.assertTrue(rules.can_transition(ORDER_PENDING, ORDER_CANCELLED))
        self.assertFalse(rules.can_transition(ORDER_COMPLETED, ORDER_PENDING))
        self.assertFalse(rules.can_transition(ORDER_CANCELLED, ORDER_COMPLETED))
        with self.assertRaises(rules.InvalidTransition):
            rules.validate_status_change(ORDER_COMPLETED, ORDER_CANCELLED)
        with self.assertRaises(rules.ValidationFailed):
            rules.validate_status_change(ORDER_PENDING, 'shipped')

    def test_stock_movement(self):
        self.assertEqual(rules.stock_movement(5, 8), (ENTRADA, 3))
        self.assertEqual(rules.stock_movement(5, 1), (SAIDA, 4))
        self.assertIsNone(rules.stock_movement(5, 5))

    def test_error_as_dict(self):
        error = rules.ValidationFailed(rules.MSG_CNPJ_TAKEN, 'cnpj')
        self.assertEqual(error.as_dict(), {'cnpj': [rules.MSG_CNPJ_TAKEN]})


class StateTests(SimpleTestCase):

    def test_empty_state(self):
        state = AppState.empty()
        self.assertEqual(state.products, ())
        self.assertEqual(state.transactions, ())

    def test_setter_replaces_whole_collection(self):
        first = Product(id=1, name='A', category='c', price=Decimal('1'), stock=1)
        second = Product(id=2, name='B', category='c', price=Decimal('1'), stock=1)
        state = set_products(AppState.empty(), [first])
        new_state = set_products(state, [second])
        self.assertEqual(new_state.products, (second,))
        self.assertEqual(state.products, (first,))

    def test_id_generator_strictly_increasing(self):
        ids = IdGenerator(clock=lambda: 1000.0)
        generated = [ids() for _ in range(5)]
        self.assertEqual(generated, sorted(set(generated)))
        self.assertEqual(generated[0], 1_000_000)

    def test_dispatch_leaves_state_untouched_on_error(self):
        store = Store()
        supplier = store.dispatch(reducers.add_supplier, 'Acme', '12345678000190', 'a@acme.com')
        before = store.state
        with self.assertRaises(rules.ValidationFailed):
            store.dispatch(reducers.add_supplier, 'Acme 2', '12345678000190', 'b@acme.com')
        self.assertIs(store.state, before)
        self.assertEqual(store.state.suppliers, (supplier,))


class SupplierReducerTests(SimpleTestCase):

    def test_add_and_re_add_acme(self):
        state, acme = reducers.add_supplier(AppState.empty(), 'Acme', '12.345.678/0001-90', 'contato@acme.com',
                                            ids=sequential_ids())
        self.assertEqual(acme.cnpj, '12345678000190')
        with self.assertRaises(rules.ValidationFailed) as ctx:
            reducers.add_supplier(state, 'Acme Again', '12345678000190', 'x@acme.com')
        self.assertEqual(ctx.exception.message, rules.MSG_CNPJ_TAKEN)
        self.assertEqual(len(state.suppliers), 1)

    def test_update_keeps_own_cnpj(self):
        state, acme = reducers.add_supplier(AppState.empty(), 'Acme', '12345678000190', 'c', ids=sequential_ids())
        state, updated = reducers.update_supplier(state, Supplier(id=acme.id, name='Acme SA', cnpj=acme.cnpj, contact='c'))
        self.assertEqual(state.suppliers[0].name, 'Acme SA')

    def test_missing_fields_rejected(self):
        with self.assertRaises(rules.ValidationFailed):
            reducers.add_supplier(AppState.empty(), '', '12345678000190', 'c')
        with self.assertRaises(rules.ValidationFailed):
            reducers.add_supplier(AppState.empty(), 'Acme', '123', 'c')
        with self.assertRaises(rules.ValidationFailed):
            reducers.add_supplier(AppState.empty(), 'Acme', '12345678000190', ' ')

    def test_delete_supplier_unlinks_products(self):
        ids = sequential_ids()
        state, acme = reducers.add_supplier(AppState.empty(), 'Acme', '12345678000190', 'c', ids=ids)
        state, product = reducers.add_product(state, 'Caneta', 'Papelaria', 2, 5, supplier_id=acme.id,
                                              image='https://img.test/c.png', ids=ids)
        state = reducers.delete_supplier(state, acme.id)
        self.assertEqual(state.suppliers, ())
        self.assertIsNone(state.products[0].supplier_id)


class ProductReducerTests(SimpleTestCase):

    def setUp(self):
        self.ids = sequential_ids()
        self.state, self.product = reducers.add_product(
            AppState.empty(), 'Caderno', 'Papelaria', Decimal('10.00'), 5,
            image='https://img.test/caderno.png', ids=self.ids,
        )

    def test_invalid_product_rejected(self):
        with self.assertRaises(rules.ValidationFailed):
            reducers.add_product(self.state, 'X', 'c', 0, 1, image='https://img.test/x.png')
        with self.assertRaises(rules.ValidationFailed):
            reducers.add_product(self.state, 'X', 'c', 1, 1, image='not a url')

    def test_stock_increase_records_entrada(self):
        state, _ = reducers.update_product(self.state, replace(self.product, stock=8), today=date(2024, 1, 2), ids=self.ids)
        self.assertEqual(len(state.transactions), 1)
        entry = state.transactions[0]
        self.assertEqual(entry.type, ENTRADA)
        self.assertEqual(entry.quantity, 3)
        self.assertEqual(entry.total_value, Decimal('30.00'))
        self.assertEqual(entry.description, 'Adição manual de estoque')
        self.assertEqual(entry.date, '2024-01-02')

    def test_stock_decrease_records_saida(self):
        state, _ = reducers.update_product(self.state, replace(self.product, stock=1), ids=self.ids)
        entry = state.transactions[0]
        self.assertEqual(entry.type, SAIDA)
        self.assertEqual(entry.quantity, 4)
        self.assertEqual(entry.description, 'Remoção manual de estoque')

    def test_stock_cannot_be_set_to_zero(self):
        with self.assertRaises(rules.ValidationFailed) as ctx:
            reducers.update_product(self.state, replace(self.product, stock=0), ids=self.ids)
        self.assertEqual(ctx.exception.field, 'stock')

    def test_sold_out_product_can_be_renamed(self):
        state = set_products(self.state, [replace(self.product, stock=0)])
        state, _ = reducers.update_product(state, replace(self.product, stock=0, name='Caderno 2'), ids=self.ids)
        self.assertEqual(state.products[0].name, 'Caderno 2')
        self.assertEqual(state.transactions, ())

    def test_update_without_stock_change_records_nothing(self):
        state, _ = reducers.update_product(self.state, replace(self.product, name='Caderno 2'), ids=self.ids)
        self.assertEqual(state.transactions, ())
        self.assertEqual(state.products[0].name, 'Caderno 2')


class ClientReducerTests(SimpleTestCase):

    def setUp(self):
        self.ids = sequential_ids()
        self.state, self.client_record = reducers.add_client(AppState.empty(), 'Maria', '111', '9999', ids=self.ids)

    def test_duplicate_document_rejected(self):
        with self.assertRaises(rules.ValidationFailed) as ctx:
            reducers.add_client(self.state, 'João', '111', '8888')
        self.assertEqual(ctx.exception.field, 'cpf_cnpj')

    def test_update_document_is_trimmed(self):
        state, _ = reducers.update_client(self.state, replace(self.client_record, cpf_cnpj=' 222 '))
        self.assertEqual(state.clients[0].cpf_cnpj, '222')
        with self.assertRaises(rules.ValidationFailed):
            reducers.add_client(state, 'João', '222', '8888')

    def test_delete_without_orders_removes(self):
        state, deactivated = reducers.delete_client(self.state, self.client_record.id)
        self.assertFalse(deactivated)
        self.assertEqual(state.clients, ())

    def test_delete_with_orders_deactivates(self):
        state, product = reducers.add_product(self.state, 'Caneta', 'c', 2, 5, image='https://img.test/c.png', ids=self.ids)
        state, _ = orders.place_order(state, self.client_record.id, [{'product_id': product.id, 'quantity': 1}], ids=self.ids)
        state, deactivated = reducers.delete_client(state, self.client_record.id)
        self.assertTrue(deactivated)
        self.assertEqual(len(state.clients), 1)
        self.assertFalse(state.clients[0].is_active)


class PlaceOrderTests(SimpleTestCase):

    def setUp(self):
        self.ids = sequential_ids()
        state = AppState.empty()
        state, self.client_record = reducers.add_client(state, 'Maria', '111', '9999', ids=self.ids)
        state, self.product = reducers.add_product(state, 'Caderno', 'Papelaria', Decimal('10'), 5,
                                                   image='https://img.test/caderno.png', ids=self.ids)
        state, self.other = reducers.add_product(state, 'Lápis', 'Papelaria', Decimal('1.50'), 100,
                                                 image='https://img.test/lapis.png', ids=self.ids)
        self.state = state

    def test_order_of_two_units(self):
        now = datetime(2024, 3, 1, 10, 0)
        state, order = orders.place_order(self.state, self.client_record.id,
                                          [{'product_id': self.product.id, 'quantity': 2}], now=now, ids=self.ids)
        self.assertEqual(order.total, Decimal('20'))
        self.assertEqual(order.status, ORDER_PENDING)
        product = next(p for p in state.products if p.id == self.product.id)
        self.assertEqual(product.stock, 3)
        self.assertEqual(len(state.transactions), 1)
        entry = state.transactions[0]
        self.assertEqual((entry.type, entry.quantity, entry.total_value), (SAIDA, 2, Decimal('20')))
        self.assertEqual(entry.order_id, order.id)
        self.assertEqual(entry.description, f'Pedido #{order.id}')
        self.assertEqual(entry.date, '2024-03-01')

    def test_one_transaction_per_item(self):
        items = [
            {'product_id': self.product.id, 'quantity': 1},
            {'product_id': self.other.id, 'quantity': 4},
        ]
        state, order = orders.place_order(self.state, self.client_record.id, items, ids=self.ids)
        self.assertEqual(order.total, Decimal('16.00'))
        self.assertEqual([t.quantity for t in state.transactions], [1, 4])
        self.assertEqual([t.total_value for t in state.transactions], [Decimal('10'), Decimal('6.00')])

    def test_empty_order_rejected(self):
        with self.assertRaises(rules.ValidationFailed) as ctx:
            orders.place_order(self.state, self.client_record.id, [])
        self.assertEqual(ctx.exception.message, rules.MSG_NO_ITEMS)

    def test_unknown_client_rejected(self):
        with self.assertRaises(rules.ValidationFailed):
            orders.place_order(self.state, 999, [{'product_id': self.product.id, 'quantity': 1}])

    def test_quantity_above_stock_rejected_and_nothing_applied(self):
        with self.assertRaises(rules.InsufficientStock):
            orders.place_order(self.state, self.client_record.id, [
                {'product_id': self.other.id, 'quantity': 1},
                {'product_id': self.product.id, 'quantity': 6},
            ])
        self.assertEqual(self.state.orders, ())
        self.assertEqual(self.state.transactions, ())

    def test_duplicate_lines_count_against_stock_together(self):
        with self.assertRaises(rules.InsufficientStock):
            orders.place_order(self.state, self.client_record.id, [
                {'product_id': self.product.id, 'quantity': 3},
                {'product_id': self.product.id, 'quantity': 3},
            ])

    def assert_order_saidas_match_items(self, state):
        """Every saida linked to an order is for a product that order contains"""
        items_by_order = {o.id: {i.product_id for i in o.items} for o in state.orders}
        for entry in state.transactions:
            if entry.type == SAIDA and entry.order_id in items_by_order:
                self.assertIn(entry.product_id, items_by_order[entry.order_id])

    def stock_of(self, state, product_id):
        return next(p.stock for p in state.products if p.id == product_id)

    def test_update_items_rebooks_stock_and_transactions(self):
        state, order = orders.place_order(self.state, self.client_record.id,
                                          [{'product_id': self.product.id, 'quantity': 2}], ids=self.ids)
        state, updated = orders.update_order_items(state, order.id, [OrderItem(self.other.id, 3, Decimal('1.50'))],
                                                   ids=self.ids)
        self.assertEqual(updated.total, Decimal('4.50'))
        self.assertEqual(self.stock_of(state, self.product.id), 5)
        self.assertEqual(self.stock_of(state, self.other.id), 97)
        order_entries = [t for t in state.transactions if t.order_id == order.id]
        self.assertEqual([(t.type, t.product_id, t.quantity) for t in order_entries], [(SAIDA, self.other.id, 3)])
        self.assertEqual(order_entries[0].total_value, Decimal('4.50'))
        self.assert_order_saidas_match_items(state)

    def test_update_items_counts_old_quantity_as_available(self):
        state, order = orders.place_order(self.state, self.client_record.id,
                                          [{'product_id': self.product.id, 'quantity': 4}], ids=self.ids)
        state, _ = orders.update_order_items(state, order.id, [{'product_id': self.product.id, 'quantity': 5}],
                                             ids=self.ids)
        self.assertEqual(self.stock_of(state, self.product.id), 0)
        with self.assertRaises(rules.InsufficientStock):
            orders.update_order_items(state, order.id, [{'product_id': self.product.id, 'quantity': 6}])

    def test_saidas_match_items_after_product_delete(self):
        state, order = orders.place_order(self.state, self.client_record.id, [
            {'product_id': self.product.id, 'quantity': 1},
            {'product_id': self.other.id, 'quantity': 1},
        ], ids=self.ids)
        state = reducers.delete_product(state, self.product.id)
        self.assert_order_saidas_match_items(state)
        state, _ = orders.update_order_items(state, order.id, [{'product_id': self.other.id, 'quantity': 2}],
                                             ids=self.ids)
        self.assert_order_saidas_match_items(state)
        self.assertEqual(self.stock_of(state, self.other.id), 98)

    def test_items_of_completed_order_are_frozen(self):
        state, order = orders.place_order(self.state, self.client_record.id,
                                          [{'product_id': self.product.id, 'quantity': 1}], ids=self.ids)
        state, _ = orders.change_status(state, order.id, ORDER_COMPLETED)
        with self.assertRaises(rules.InvalidTransition):
            orders.update_order_items(state, order.id, [{'product_id': self.product.id, 'quantity': 2}])

    def test_manual_movement(self):
        state, entry = orders.record_movement(self.state, self.product.id, ENTRADA, 4, ids=self.ids)
        self.assertEqual(next(p for p in state.products if p.id == self.product.id).stock, 9)
        self.assertEqual(entry.total_value, Decimal('40'))
        with self.assertRaises(rules.InsufficientStock):
            orders.record_movement(state, self.product.id, SAIDA, 10)


class ListingTests(SimpleTestCase):

    def setUp(self):
        self.acme = Supplier(id=1, name='Acme', cnpj='1' * 14, contact='vendas@acme.com')
        self.beta = Supplier(id=2, name='Beta', cnpj='2' * 14, contact='beta@beta.com')
        self.products = [
            Product(id=1, name='Árvore', category='b', price=Decimal('10'), stock=1, supplier_id=1),
            Product(id=2, name='banana', category='a', price=Decimal('2'), stock=20, supplier_id=2),
            Product(id=3, name='Caju', category='c', price=Decimal('5'), stock=3, supplier_id=1),
        ]
        suppliers = {1: self.acme, 2: self.beta}
        self.supplier_name = lambda p: suppliers[p.supplier_id].name if p.supplier_id in suppliers else ''

    def test_sort_by_total_reverses(self):
        asc = listing.list_products(self.products, ordering='total', direction='asc')
        desc = listing.list_products(self.products, ordering='total', direction='desc')
        self.assertEqual([p.id for p in asc], [1, 3, 2])
        self.assertEqual([p.id for p in desc], list(reversed([p.id for p in asc])))

    def test_text_sort_ignores_accents_and_case(self):
        ordered = listing.list_products(self.products, ordering='name')
        self.assertEqual([p.name for p in ordered], ['Árvore', 'banana', 'Caju'])

    def test_search_by_supplier(self):
        found = listing.list_products(self.products, term='acm', search_by='supplier', supplier_name=self.supplier_name)
        self.assertEqual({p.id for p in found}, {1, 3})

    def test_invalid_ordering_rejected(self):
        with self.assertRaises(rules.ValidationFailed):
            listing.list_products(self.products, ordering='color')

    def test_suppliers_search_name_or_contact(self):
        found = listing.list_suppliers([self.acme, self.beta], term='VENDAS')
        self.assertEqual(found, [self.acme])

    def test_stock_overview_requires_both_matches(self):
        found = listing.stock_overview(self.products, supplier='acme', supplier_name=self.supplier_name)
        self.assertEqual([p.id for p in found], [1, 3])
        found = listing.stock_overview(self.products, name='caj', supplier='acme', supplier_name=self.supplier_name)
        self.assertEqual([p.id for p in found], [3])
        found = listing.stock_overview(self.products, name='ban', supplier='acme', supplier_name=self.supplier_name)
        self.assertEqual(found, [])

    def test_clients_filter(self):
        clients = [
            Client(id=1, name='Maria', cpf_cnpj='111', contact='x'),
            Client(id=2, name='Mário', cpf_cnpj='222', contact='y', is_active=False),
        ]
        self.assertEqual(len(listing.list_clients(clients, term='mar')), 1)
        self.assertEqual([c.id for c in listing.list_clients(clients, term='22', search_by='cpf_cnpj')], [2])
        self.assertEqual([c.id for c in listing.list_clients(clients, active=True)], [1])

    def test_orders_filter_and_default_sort(self):
        maria = Client(id=1, name='Maria', cpf_cnpj='111', contact='x')
        order_list = [
            Order(id=10, client_id=1, date=datetime(2024, 1, 1), total=Decimal('5')),
            Order(id=11, client_id=1, date=datetime(2024, 1, 2), status=ORDER_COMPLETED, total=Decimal('50')),
        ]
        names = {1: maria.name}
        client_name = lambda o: names.get(o.client_id, '')
        self.assertEqual([o.id for o in listing.list_orders(order_list, client_name=client_name)], [11, 10])
        self.assertEqual([o.id for o in listing.list_orders(order_list, status=ORDER_COMPLETED)], [11])
        self.assertEqual([o.id for o in listing.list_orders(order_list, on_date='2024-01-01')], [10])
        self.assertEqual(len(listing.list_orders(order_list, term='mar', client_name=client_name)), 2)
        self.assertEqual([o.id for o in listing.list_orders(order_list, term='11')], [11])

    def test_invalid_date_rejected(self):
        with self.assertRaises(rules.ValidationFailed):
            listing.as_date('2024-13-45')

    def test_transactions_filter(self):
        entries = [
            Transaction(id=1, type=ENTRADA, date='2024-01-01', product_id=1, quantity=1, total_value=Decimal('1')),
            Transaction(id=2, type=SAIDA, date='2024-01-02', product_id=1, quantity=1, total_value=Decimal('1')),
        ]
        self.assertEqual([t.id for t in listing.list_transactions(entries, movement_type=SAIDA)], [2])
        self.assertEqual([t.id for t in listing.list_transactions(entries, on_date='2024-01-01')], [1])
        self.assertEqual(len(listing.list_transactions(entries)), 2)


class HistoryTests(SimpleTestCase):

    def test_enrichment_labels(self):
        product = Product(id=1, name='Caderno', category='c', price=Decimal('10'), stock=1)
        order = Order(id=7, client_id=1, date=datetime(2024, 1, 1))
        entries = [
            Transaction(id=1, type=SAIDA, date='2024-01-01', product_id=1, quantity=1,
                        total_value=Decimal('10'), order_id=7),
            Transaction(id=2, type=ENTRADA, date='2024-01-01', product_id=99, quantity=1,
                        total_value=Decimal('10')),
            Transaction(id=3, type=SAIDA, date='2024-01-01', product_id=1, quantity=1,
                        total_value=Decimal('10'), order_id=8),
        ]
        details = [d for _, d in history.transaction_history(entries, [product], [order])]
        self.assertEqual(details[0].product_name, 'Caderno')
        self.assertEqual(details[0].order_info, 'Pedido #7')
        self.assertEqual(details[1].product_name, 'Produto não encontrado')
        self.assertEqual(details[1].order_info, 'Movimentação manual')
        self.assertEqual(details[2].order_info, 'Movimentação manual')
        self.assertEqual(details[0].date, date(2024, 1, 1))
