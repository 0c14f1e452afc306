"""
Test suite for the inventory module
Tests: transaction history labels and filters, manual movements, stock overview and the state snapshot
"""
from decimal import Decimal
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from inventario.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from inventario.inventory import ledger
from inventario.inventory.models import Transaction
from inventario.inventory.snapshot import load_state
from inventario.store import rules


class LedgerTests(TestCase):
    """Test the ledger helpers directly"""

    def setUp(self):
        self.product = TestDataFactory.create_product(price=Decimal('4.00'), stock=5)

    def test_record_movement_entrada(self):
        """Test an entrada adds stock and records its value"""
        entry = ledger.record_movement(self.product.id, 'entrada', 3)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 8)
        self.assertEqual(entry.total_value, Decimal('12.00'))
        self.assertEqual(entry.description, 'Adição manual de estoque')

    def test_record_movement_saida_above_stock(self):
        """Test a saida cannot exceed the stock"""
        with self.assertRaises(rules.InsufficientStock):
            ledger.record_movement(self.product.id, 'saida', 6)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 5)
        self.assertFalse(Transaction.objects.exists())

    def test_record_stock_edit_no_change(self):
        """Test an unchanged stock records nothing"""
        self.assertIsNone(ledger.record_stock_edit(self.product, 5))


class TransactionAPITests(TestCase):
    """Test the transaction history endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.product = TestDataFactory.create_product(name='Caderno', price=Decimal('10.00'), stock=5)
        self.order = TestDataFactory.create_order(items=[(self.product, 1)])
        self.from_order = Transaction.objects.create(
            type='saida', product=self.product, quantity=1, total_value=Decimal('10.00'),
            order=self.order, description=f'Pedido #{self.order.id}'
        )
        self.manual = Transaction.objects.create(
            type='entrada', product=self.product, quantity=2, total_value=Decimal('20.00'),
            description='Adição manual de estoque'
        )

    def test_history_labels(self):
        """Test product names and order labels are resolved"""
        response = self.client.get('/api/v1/transactions/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        by_id = {t['id']: t for t in response.data}
        self.assertEqual(by_id[self.from_order.id]['product_name'], 'Caderno')
        self.assertEqual(by_id[self.from_order.id]['order_info'], f'Pedido #{self.order.id}')
        self.assertEqual(by_id[self.manual.id]['order_info'], 'Movimentação manual')

    def test_deleted_product_label(self):
        """Test a transaction of a deleted product is still listed"""
        self.product.delete()
        response = self.client.get(f'/api/v1/transactions/{self.manual.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['product_name'], 'Produto não encontrado')

    def test_filter_by_type(self):
        """Test the type filter"""
        response = self.client.get('/api/v1/transactions/', {'type': 'entrada'})
        self.assertEqual([t['id'] for t in response.data], [self.manual.id])

    def test_filter_by_date(self):
        """Test the date filter"""
        response = self.client.get('/api/v1/transactions/', {'date': timezone.localdate().isoformat()})
        self.assertEqual(len(response.data), 2)
        response = self.client.get('/api/v1/transactions/', {'date': '2000-01-01'})
        self.assertEqual(response.data, [])

    def test_filter_manual_and_order(self):
        """Test the manual and order filters"""
        response = self.client.get('/api/v1/transactions/', {'manual': 'true'})
        self.assertEqual([t['id'] for t in response.data], [self.manual.id])
        response = self.client.get('/api/v1/transactions/', {'order': self.order.id})
        self.assertEqual([t['id'] for t in response.data], [self.from_order.id])

    def test_invalid_type_rejected(self):
        """Test an unknown movement type is a 400"""
        response = self.client.get('/api/v1/transactions/', {'type': 'transfer'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ManualMovementAPITests(TestCase):
    """Test manual stock movements through the API"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.product = TestDataFactory.create_product(price=Decimal('10.00'), stock=5)

    def test_manual_entrada(self):
        """Test a manual entrada"""
        data = {'product': self.product.id, 'type': 'entrada', 'quantity': 4}
        response = self.client.post('/api/v1/transactions/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['order_info'], 'Movimentação manual')
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 9)

    def test_manual_saida_above_stock(self):
        """Test a manual saida above the stock is rejected"""
        data = {'product': self.product.id, 'type': 'saida', 'quantity': 6}
        response = self.client.post('/api/v1/transactions/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Estoque insuficiente', response.data['message'])
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 5)

    def test_invalid_quantity(self):
        """Test the quantity must be a positive integer"""
        data = {'product': self.product.id, 'type': 'entrada', 'quantity': 0}
        response = self.client.post('/api/v1/transactions/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class StockOverviewAPITests(TestCase):
    """Test the stock position endpoint"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        acme = TestDataFactory.create_supplier(name='Acme')
        beta = TestDataFactory.create_supplier(name='Beta')
        TestDataFactory.create_product(name='Caneta', category='b', supplier=acme)
        TestDataFactory.create_product(name='Cola', category='a', supplier=beta)
        TestDataFactory.create_product(name='Caderno', category='c', supplier=acme)

    def test_default_sort_by_category(self):
        """Test products are listed by category"""
        response = self.client.get('/api/v1/stock/')
        self.assertEqual([p['name'] for p in response.data], ['Cola', 'Caneta', 'Caderno'])
        self.assertIn('total_value', response.data[0])

    def test_name_and_supplier_must_both_match(self):
        """Test the name and supplier filters combine"""
        response = self.client.get('/api/v1/stock/', {'name': 'ca', 'supplier': 'acme'})
        self.assertEqual([p['name'] for p in response.data], ['Caneta', 'Caderno'])
        response = self.client.get('/api/v1/stock/', {'name': 'cola', 'supplier': 'acme'})
        self.assertEqual(response.data, [])


class StateSnapshotTests(TestCase):
    """Test loading the whole state from the database"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.supplier = TestDataFactory.create_supplier()
        self.product = TestDataFactory.create_product(supplier=self.supplier)
        self.order = TestDataFactory.create_order(items=[(self.product, 2)])

    def test_load_state(self):
        """Test every collection is mapped"""
        state = load_state()
        self.assertEqual(len(state.products), 1)
        self.assertEqual(state.products[0].supplier_id, self.supplier.id)
        self.assertEqual(len(state.clients), 1)
        self.assertEqual(len(state.orders[0].items), 1)
        self.assertEqual(state.orders[0].total, self.order.total)

    def test_snapshot_endpoint(self):
        """Test the snapshot lists the five collections"""
        response = self.client.get('/api/v1/state/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            set(response.data),
            {'products', 'suppliers', 'clients', 'orders', 'transactions'}
        )
        self.assertEqual(response.data['orders'][0]['id'], self.order.id)
