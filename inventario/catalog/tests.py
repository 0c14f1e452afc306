"""
Test suite for the catalog module
Tests: product validation, list search/sort/filters, stock edits recorded as transactions, legacy /produto
"""
from decimal import Decimal
from django.test import TestCase
from rest_framework import status
from inventario.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from inventario.core.models import AuditLog
from inventario.catalog.models import Product
from inventario.catalog.serializers import ProductSerializer
from inventario.inventory.models import Transaction


class ProductModelTests(TestCase):
    """Test Product model methods"""

    def test_total_value(self):
        """Test the stock value is price x stock"""
        product = TestDataFactory.create_product(price=Decimal('2.50'), stock=4)
        self.assertEqual(product.total_value, Decimal('10.00'))


class ProductAPITests(TestCase):
    """Test Product API endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.supplier = TestDataFactory.create_supplier(name='Acme')

    def product_data(self, **overrides):
        data = {
            'name': 'Caderno',
            'category': 'Papelaria',
            'price': '10.00',
            'stock': 5,
            'supplier': self.supplier.id,
            'image': 'https://img.test/caderno.png',
        }
        data.update(overrides)
        return data

    def test_create_product(self):
        """Test creating a product"""
        response = self.client.post('/api/v1/products/', self.product_data(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['supplier_name'], 'Acme')
        self.assertEqual(Decimal(response.data['total_value']), Decimal('50.00'))

    def test_create_does_not_record_transaction(self):
        """Test the initial stock is not a movement"""
        self.client.post('/api/v1/products/', self.product_data(), format='json')
        self.assertFalse(Transaction.objects.exists())

    def test_price_must_be_positive(self):
        """Test a zero price is rejected"""
        response = self.client.post('/api/v1/products/', self.product_data(price='0'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'O preço deve ser maior que 0.')

    def test_initial_stock_must_be_positive(self):
        """Test a zero stock is rejected on create"""
        response = self.client.post('/api/v1/products/', self.product_data(stock=0), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('stock', response.data['errors'])

    def test_fractional_stock_rejected(self):
        """Test a non-integer stock is rejected"""
        response = self.client.post('/api/v1/products/', self.product_data(stock='2.5'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('stock', response.data['errors'])

    def test_image_must_be_url(self):
        """Test the image needs a scheme and host"""
        response = self.client.post('/api/v1/products/', self.product_data(image='caderno.png'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'A URL da imagem é inválida.')

    def test_product_without_supplier(self):
        """Test the supplier is optional"""
        response = self.client.post('/api/v1/products/', self.product_data(supplier=None), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['supplier_name'])

    def test_list_sorted_by_total(self):
        """Test ordering by stock value in both directions"""
        a = TestDataFactory.create_product(name='A', price=Decimal('10.00'), stock=1)
        b = TestDataFactory.create_product(name='B', price=Decimal('2.00'), stock=20)
        c = TestDataFactory.create_product(name='C', price=Decimal('5.00'), stock=3)

        response = self.client.get('/api/v1/products/', {'ordering': 'total'})
        ascending = [p['id'] for p in response.data]
        self.assertEqual(ascending, [a.id, c.id, b.id])

        response = self.client.get('/api/v1/products/', {'ordering': 'total', 'direction': 'desc'})
        self.assertEqual([p['id'] for p in response.data], list(reversed(ascending)))

    def test_list_search_by_supplier(self):
        """Test searching products by supplier name"""
        TestDataFactory.create_product(name='Caneta', supplier=self.supplier)
        TestDataFactory.create_product(name='Lápis')
        response = self.client.get('/api/v1/products/', {'search': 'acm', 'search_by': 'supplier'})
        self.assertEqual([p['name'] for p in response.data], ['Caneta'])

    def test_list_filters(self):
        """Test the category and in_stock filters"""
        TestDataFactory.create_product(name='Caneta', category='Papelaria')
        empty = TestDataFactory.create_product(name='Cola', category='Papelaria')
        Product.objects.filter(id=empty.id).update(stock=0)
        TestDataFactory.create_product(name='Mouse', category='Informática')

        response = self.client.get('/api/v1/products/', {'category': 'papelaria', 'in_stock': 'true'})
        self.assertEqual([p['name'] for p in response.data], ['Caneta'])


class ProductStockEditTests(TestCase):
    """Test editing the stock records a manual movement"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.product = TestDataFactory.create_product(name='Caderno', price=Decimal('10.00'), stock=5)

    def test_stock_increase_records_entrada(self):
        """Test raising the stock appends an entrada for the difference"""
        response = self.client.patch(f'/api/v1/products/{self.product.id}/', {'stock': 8}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        entry = Transaction.objects.get(product=self.product)
        self.assertEqual(entry.type, 'entrada')
        self.assertEqual(entry.quantity, 3)
        self.assertEqual(entry.total_value, Decimal('30.00'))
        self.assertIsNone(entry.order)
        self.assertEqual(entry.description, 'Adição manual de estoque')
        self.assertTrue(AuditLog.objects.filter(action='stock_adjust', object_id=str(self.product.id)).exists())

    def test_stock_decrease_records_saida(self):
        """Test lowering the stock appends a saida"""
        response = self.client.patch(f'/api/v1/products/{self.product.id}/', {'stock': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        entry = Transaction.objects.get(product=self.product)
        self.assertEqual(entry.type, 'saida')
        self.assertEqual(entry.quantity, 3)

    def test_zero_stock_rejected(self):
        """Test the stock cannot be set to zero on update"""
        response = self.client.patch(f'/api/v1/products/{self.product.id}/', {'stock': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('stock', response.data['errors'])
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 5)
        self.assertFalse(Transaction.objects.exists())

    def test_sold_out_product_can_be_renamed(self):
        """Test a product with no stock left can still be edited"""
        Product.objects.filter(id=self.product.id).update(stock=0)
        response = self.client.patch(f'/api/v1/products/{self.product.id}/', {'name': 'Caderno A4'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['stock'], 0)
        self.assertFalse(Transaction.objects.exists())

    def test_update_applies_to_current_row(self):
        """Test an edit does not write back a stale stock value"""
        stale = Product.objects.get(id=self.product.id)
        Product.objects.filter(id=self.product.id).update(stock=9)
        serializer = ProductSerializer(stale, data={'name': 'Caderno A4'}, partial=True)
        self.assertTrue(serializer.is_valid(), serializer.errors)
        serializer.save()
        self.product.refresh_from_db()
        self.assertEqual(self.product.name, 'Caderno A4')
        self.assertEqual(self.product.stock, 9)
        self.assertFalse(Transaction.objects.exists())

    def test_negative_stock_rejected(self):
        """Test the stock cannot go below zero"""
        response = self.client.patch(f'/api/v1/products/{self.product.id}/', {'stock': -1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 5)

    def test_edit_without_stock_change(self):
        """Test other edits do not record a movement"""
        response = self.client.patch(f'/api/v1/products/{self.product.id}/', {'name': 'Caderno A4'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Transaction.objects.exists())

    def test_delete_keeps_history(self):
        """Test transactions survive the product"""
        self.client.patch(f'/api/v1/products/{self.product.id}/', {'stock': 6}, format='json')
        response = self.client.delete(f'/api/v1/products/{self.product.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        entry = Transaction.objects.get()
        self.assertIsNone(entry.product)


class LegacyProdutoTests(TestCase):
    """Test the Portuguese POST /produto endpoint"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_create(self):
        """Test creating a product with Portuguese field names"""
        supplier = TestDataFactory.create_supplier()
        data = {
            'nome': 'Caderno',
            'descricao': 'Papelaria',
            'preco': '12.50',
            'quantidade': 3,
            'imagem': 'https://img.test/caderno.png',
            'fornecedorId': supplier.id,
        }
        response = self.client.post('/produto', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        product = Product.objects.get()
        self.assertEqual(product.category, 'Papelaria')
        self.assertEqual(product.supplier, supplier)
        self.assertEqual(response.data['quantidade'], 3)

    def test_invalid_returns_message(self):
        """Test errors are reported as a single message"""
        data = {
            'nome': 'Caderno',
            'preco': '12.50',
            'quantidade': 3,
            'imagem': 'sem-url',
        }
        response = self.client.post('/produto', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'message': 'A URL da imagem é inválida.'})
