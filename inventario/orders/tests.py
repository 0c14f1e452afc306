"""
Test suite for the orders module
Tests: atomic order placement, stock and transaction bookkeeping, status transitions,
item edits, listing filters and the per-client order history
"""
from datetime import timedelta
from decimal import Decimal
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from inventario.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from inventario.core.models import AuditLog
from inventario.catalog.models import Product
from inventario.inventory.models import Transaction
from inventario.orders.models import Order, OrderItem


class OrderModelTests(TestCase):
    """Test Order and OrderItem model methods"""

    def test_order_str(self):
        """Test the order label"""
        order = TestDataFactory.create_order()
        self.assertEqual(str(order), f'Pedido #{order.id}')

    def test_order_total(self):
        """Test the total is the sum of the item lines"""
        first = TestDataFactory.create_product(price=Decimal('10.00'))
        second = TestDataFactory.create_product(price=Decimal('1.50'))
        order = TestDataFactory.create_order(items=[(first, 2), (second, 3)])
        self.assertEqual(order.get_total(), Decimal('24.50'))
        self.assertEqual(order.total, Decimal('24.50'))


class PlaceOrderAPITests(TestCase):
    """Test placing orders through the API"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.customer = TestDataFactory.create_client(name='Maria')
        self.product = TestDataFactory.create_product(name='Caderno', price=Decimal('10.00'), stock=5)
        self.other = TestDataFactory.create_product(name='Lápis', price=Decimal('1.50'), stock=100)

    def test_place_order(self):
        """Test an order of two units decrements stock and records one saida"""
        data = {'client': self.customer.id, 'items': [{'product': self.product.id, 'quantity': 2}]}
        response = self.client.post('/api/v1/orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(Decimal(response.data['total']), Decimal('20.00'))
        self.assertEqual(response.data['client_name'], 'Maria')
        self.assertEqual(len(response.data['items']), 1)

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 3)

        entry = Transaction.objects.get()
        order_id = response.data['id']
        self.assertEqual(entry.type, 'saida')
        self.assertEqual(entry.quantity, 2)
        self.assertEqual(entry.total_value, Decimal('20.00'))
        self.assertEqual(entry.order_id, order_id)
        self.assertEqual(entry.description, f'Pedido #{order_id}')
        self.assertEqual(entry.date, timezone.localdate())
        self.assertTrue(AuditLog.objects.filter(action='order_place', object_id=str(order_id)).exists())

    def test_one_transaction_per_item(self):
        """Test every item gets its own saida"""
        data = {
            'client': self.customer.id,
            'items': [
                {'product': self.product.id, 'quantity': 1},
                {'product': self.other.id, 'quantity': 4},
            ]
        }
        response = self.client.post('/api/v1/orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Decimal(response.data['total']), Decimal('16.00'))
        self.assertEqual(Transaction.objects.count(), 2)
        self.other.refresh_from_db()
        self.assertEqual(self.other.stock, 96)

    def test_item_price_override(self):
        """Test an explicit item price is used for the line and the total"""
        data = {'client': self.customer.id, 'items': [{'product': self.product.id, 'quantity': 2, 'price': '8.00'}]}
        response = self.client.post('/api/v1/orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Decimal(response.data['total']), Decimal('16.00'))
        self.assertEqual(Transaction.objects.get().total_value, Decimal('16.00'))

    def test_insufficient_stock_changes_nothing(self):
        """Test an order above the available stock is rejected as a whole"""
        data = {
            'client': self.customer.id,
            'items': [
                {'product': self.other.id, 'quantity': 1},
                {'product': self.product.id, 'quantity': 6},
            ]
        }
        response = self.client.post('/api/v1/orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Estoque insuficiente', response.data['message'])
        self.assertFalse(Order.objects.exists())
        self.assertFalse(OrderItem.objects.exists())
        self.assertFalse(Transaction.objects.exists())
        self.other.refresh_from_db()
        self.assertEqual(self.other.stock, 100)

    def test_repeated_product_counts_together(self):
        """Test two lines of the same product are checked against stock together"""
        data = {
            'client': self.customer.id,
            'items': [
                {'product': self.product.id, 'quantity': 3},
                {'product': self.product.id, 'quantity': 3},
            ]
        }
        response = self.client.post('/api/v1/orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Order.objects.exists())

    def test_empty_order_rejected(self):
        """Test an order needs at least one item"""
        response = self.client.post('/api/v1/orders/', {'client': self.customer.id, 'items': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'O pedido deve conter pelo menos um produto.')

    def test_client_required(self):
        """Test an order needs a client"""
        data = {'items': [{'product': self.product.id, 'quantity': 1}]}
        response = self.client.post('/api/v1/orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Selecione um cliente.')

    def test_zero_quantity_rejected(self):
        """Test item quantities must be positive"""
        data = {'client': self.customer.id, 'items': [{'product': self.product.id, 'quantity': 0}]}
        response = self.client.post('/api/v1/orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Order.objects.exists())


class OrderStatusAPITests(TestCase):
    """Test order status transitions"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.product = TestDataFactory.create_product(stock=10)
        self.order = TestDataFactory.create_order(items=[(self.product, 2)])

    def test_complete_order(self):
        """Test moving a pending order to completed"""
        response = self.client.post(f'/api/v1/orders/{self.order.id}/status/', {'status': 'completed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'completed')

    def test_cancel_does_not_restock(self):
        """Test cancelling leaves stock and transactions alone"""
        response = self.client.post(f'/api/v1/orders/{self.order.id}/status/', {'status': 'cancelled'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 10)
        self.assertFalse(Transaction.objects.exists())

    def test_terminal_status_cannot_change(self):
        """Test completed orders cannot be reopened or cancelled"""
        self.order.status = 'completed'
        self.order.save()
        for new_status in ('pending', 'cancelled'):
            response = self.client.post(f'/api/v1/orders/{self.order.id}/status/', {'status': new_status}, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertIn('message', response.data)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, 'completed')

    def test_unknown_status_rejected(self):
        """Test an unknown status value is rejected"""
        response = self.client.post(f'/api/v1/orders/{self.order.id}/status/', {'status': 'shipped'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class OrderItemsUpdateAPITests(TestCase):
    """Test replacing the items of an order"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.customer = TestDataFactory.create_client()
        self.product = TestDataFactory.create_product(price=Decimal('10.00'), stock=5)
        self.other = TestDataFactory.create_product(price=Decimal('1.50'), stock=5)

    def place(self, *items):
        data = {'client': self.customer.id, 'items': [{'product': p.id, 'quantity': q} for p, q in items]}
        response = self.client.post('/api/v1/orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        return Order.objects.get(id=response.data['id'])

    def assert_order_saidas_match_items(self):
        """Every saida linked to an order is for a product that order contains"""
        for entry in Transaction.objects.filter(type='saida', order__isnull=False, product__isnull=False):
            products = set(OrderItem.objects.filter(order_id=entry.order_id).values_list('product_id', flat=True))
            self.assertIn(entry.product_id, products)

    def test_update_pending_order(self):
        """Test new items replace the old ones and stock and saidas follow them"""
        order = self.place((self.product, 2))
        data = {'items': [{'product': self.other.id, 'quantity': 3}]}
        response = self.client.put(f'/api/v1/orders/{order.id}/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['total']), Decimal('4.50'))
        self.assertEqual([i['product'] for i in response.data['items']], [self.other.id])

        self.product.refresh_from_db()
        self.other.refresh_from_db()
        self.assertEqual(self.product.stock, 5)
        self.assertEqual(self.other.stock, 2)

        entry = Transaction.objects.get(order=order)
        self.assertEqual(entry.type, 'saida')
        self.assertEqual(entry.product_id, self.other.id)
        self.assertEqual(entry.quantity, 3)
        self.assertEqual(entry.total_value, Decimal('4.50'))
        self.assertEqual(entry.description, f'Pedido #{order.id}')
        self.assert_order_saidas_match_items()

    def test_old_quantity_counts_as_available(self):
        """Test raising a line up to the stock it already holds is allowed"""
        order = self.place((self.product, 3))
        data = {'items': [{'product': self.product.id, 'quantity': 5}]}
        response = self.client.put(f'/api/v1/orders/{order.id}/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 0)
        self.assertEqual(Transaction.objects.get(order=order).quantity, 5)

    def test_update_above_stock_changes_nothing(self):
        """Test an edit beyond the available stock is rejected as a whole"""
        order = self.place((self.product, 2))
        data = {'items': [{'product': self.other.id, 'quantity': 1}, {'product': self.product.id, 'quantity': 8}]}
        response = self.client.put(f'/api/v1/orders/{order.id}/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.product.refresh_from_db()
        self.other.refresh_from_db()
        self.assertEqual(self.product.stock, 3)
        self.assertEqual(self.other.stock, 5)
        self.assertEqual(list(order.items.values_list('product_id', 'quantity')), [(self.product.id, 2)])
        self.assertEqual(Transaction.objects.get(order=order).quantity, 2)

    def test_saidas_match_items_after_product_delete(self):
        """Test deleting a product and then editing the order keeps saidas in line with items"""
        order = self.place((self.product, 1), (self.other, 1))
        response = self.client.delete(f'/api/v1/products/{self.product.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assert_order_saidas_match_items()

        data = {'items': [{'product': self.other.id, 'quantity': 2}]}
        response = self.client.put(f'/api/v1/orders/{order.id}/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assert_order_saidas_match_items()
        self.other.refresh_from_db()
        self.assertEqual(self.other.stock, 3)
        self.assertEqual(list(Transaction.objects.filter(order=order).values_list('product_id', 'quantity')),
                         [(self.other.id, 2)])

    def test_update_completed_order_rejected(self):
        """Test items of a completed order are frozen"""
        order = TestDataFactory.create_order(items=[(self.product, 1)], status='completed')
        data = {'items': [{'product': self.other.id, 'quantity': 2}]}
        response = self.client.put(f'/api/v1/orders/{order.id}/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Somente pedidos pendentes podem ser alterados.')

    def test_delete_order_keeps_transactions(self):
        """Test deleting an order keeps its transactions as manual movements"""
        order = self.place((self.product, 1))
        response = self.client.delete(f'/api/v1/orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        entry = Transaction.objects.get()
        self.assertIsNone(entry.order)
        self.assertEqual(entry.description, f'Pedido #{order.id}')


class OrderListAPITests(TestCase):
    """Test order list filters and the client order history"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.maria = TestDataFactory.create_client(name='Maria')
        self.joao = TestDataFactory.create_client(name='João')
        product = TestDataFactory.create_product(price=Decimal('10.00'))
        self.cheap = TestDataFactory.create_order(client=self.maria, items=[(product, 1)])
        self.expensive = TestDataFactory.create_order(client=self.joao, items=[(product, 5)], status='completed')
        Order.objects.filter(id=self.cheap.id).update(date=timezone.now() - timedelta(days=2))

    def test_default_order_is_newest_first(self):
        """Test orders are listed by date, newest first"""
        response = self.client.get('/api/v1/orders/')
        self.assertEqual([o['id'] for o in response.data], [self.expensive.id, self.cheap.id])

    def test_sort_by_total(self):
        """Test ascending and descending total order are reversed"""
        ascending = self.client.get('/api/v1/orders/', {'ordering': 'total', 'direction': 'asc'}).data
        descending = self.client.get('/api/v1/orders/', {'ordering': 'total', 'direction': 'desc'}).data
        self.assertEqual([o['id'] for o in ascending], [self.cheap.id, self.expensive.id])
        self.assertEqual([o['id'] for o in descending], [self.expensive.id, self.cheap.id])

    def test_filter_by_status_and_client_name(self):
        """Test the status filter and searching by client name"""
        response = self.client.get('/api/v1/orders/', {'status': 'completed'})
        self.assertEqual([o['id'] for o in response.data], [self.expensive.id])
        response = self.client.get('/api/v1/orders/', {'search': 'mar'})
        self.assertEqual([o['id'] for o in response.data], [self.cheap.id])

    def test_filter_by_date(self):
        """Test the date filter matches the local calendar day"""
        response = self.client.get('/api/v1/orders/', {'date': timezone.localdate().isoformat()})
        self.assertEqual([o['id'] for o in response.data], [self.expensive.id])

    def test_invalid_date_rejected(self):
        """Test a malformed date is a 400"""
        response = self.client.get('/api/v1/orders/', {'date': '2024-13-45'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_client_orders(self):
        """Test the order history of one client"""
        response = self.client.get(f'/api/v1/clients/{self.joao.id}/orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([o['id'] for o in response.data], [self.expensive.id])

        response = self.client.get(f'/api/v1/clients/{self.joao.id}/orders/', {'status': 'pending'})
        self.assertEqual(response.data, [])

    def test_deactivated_client_orders_still_listed(self):
        """Test orders of a deactivated client stay visible"""
        self.client.delete(f'/api/v1/clients/{self.maria.id}/')
        response = self.client.get('/api/v1/orders/', {'search': 'mar'})
        self.assertEqual(len(response.data), 1)
        self.assertFalse(response.data[0]['client_is_active'])
        self.assertTrue(Product.objects.exists())
