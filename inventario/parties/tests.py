"""
Test suite for the parties module
Tests: supplier CRUD and cnpj rules, legacy fornecedor endpoints, client CRUD and soft delete
"""
from django.test import TestCase
from rest_framework import status
from inventario.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from inventario.catalog.models import Product
from inventario.parties.models import Supplier, Client


class SupplierAPITests(TestCase):
    """Test Supplier API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_supplier_normalises_cnpj(self):
        """Test the cnpj is stored as 14 digits"""
        data = {'name': ' Acme ', 'cnpj': '12.345.678/0001-90', 'contact': 'vendas@acme.com'}
        response = self.client.post('/api/v1/suppliers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['cnpj'], '12345678000190')
        self.assertEqual(response.data['name'], 'Acme')

    def test_duplicate_cnpj_rejected(self):
        """Test adding a second supplier with the same cnpj fails"""
        TestDataFactory.create_supplier(name='Acme', cnpj='12345678000190')
        data = {'name': 'Acme Again', 'cnpj': '12.345.678/0001-90', 'contact': 'outro@acme.com'}
        response = self.client.post('/api/v1/suppliers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'CNPJ já cadastrado.')
        self.assertEqual(Supplier.objects.count(), 1)

    def test_invalid_cnpj_rejected(self):
        """Test a cnpj without 14 digits fails"""
        data = {'name': 'Acme', 'cnpj': '1234', 'contact': 'vendas@acme.com'}
        response = self.client.post('/api/v1/suppliers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('cnpj', response.data['errors'])

    def test_missing_contact_rejected(self):
        """Test the contact is required"""
        data = {'name': 'Acme', 'cnpj': '12345678000190'}
        response = self.client.post('/api/v1/suppliers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Contato é obrigatório.')

    def test_update_keeps_own_cnpj(self):
        """Test re-saving a supplier with its own cnpj is allowed"""
        supplier = TestDataFactory.create_supplier(cnpj='12345678000190')
        response = self.client.patch(f'/api/v1/suppliers/{supplier.id}/', {'name': 'Renamed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        supplier.refresh_from_db()
        self.assertEqual(supplier.name, 'Renamed')
        self.assertEqual(supplier.cnpj, '12345678000190')

    def test_search_and_sort(self):
        """Test search matches name or contact and sorting honours direction"""
        TestDataFactory.create_supplier(name='Beta', contact='compras@beta.com')
        TestDataFactory.create_supplier(name='Acme', contact='vendas@acme.com')
        TestDataFactory.create_supplier(name='Zeta', contact='zeta@vendas.com')

        response = self.client.get('/api/v1/suppliers/', {'search': 'VENDAS'})
        self.assertEqual([s['name'] for s in response.data], ['Acme', 'Zeta'])

        response = self.client.get('/api/v1/suppliers/', {'direction': 'desc'})
        self.assertEqual([s['name'] for s in response.data], ['Zeta', 'Beta', 'Acme'])

    def test_delete_supplier_keeps_products(self):
        """Test deleting a supplier unlinks its products"""
        supplier = TestDataFactory.create_supplier()
        product = TestDataFactory.create_product(supplier=supplier)
        response = self.client.delete(f'/api/v1/suppliers/{supplier.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        product.refresh_from_db()
        self.assertIsNone(product.supplier)


class LegacyFornecedorTests(TestCase):
    """Test the Portuguese /fornecedor endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_list(self):
        """Test listing suppliers with Portuguese field names"""
        supplier = TestDataFactory.create_supplier(name='Acme')
        response = self.client.get('/fornecedores')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['id'], supplier.id)
        self.assertEqual(response.data[0]['nome'], 'Acme')
        self.assertIn('contato', response.data[0])

    def test_create(self):
        """Test creating a supplier through the legacy endpoint"""
        data = {'nome': 'Acme', 'cnpj': '12345678000190', 'contato': 'vendas@acme.com', 'endereco': 'Rua A, 1'}
        response = self.client.post('/fornecedor', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Supplier.objects.get().address, 'Rua A, 1')

    def test_create_duplicate_returns_message(self):
        """Test errors are reported as a single message"""
        TestDataFactory.create_supplier(cnpj='12345678000190')
        data = {'nome': 'Acme', 'cnpj': '12345678000190', 'contato': 'vendas@acme.com'}
        response = self.client.post('/fornecedor', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'message': 'CNPJ já cadastrado.'})

    def test_update_and_delete(self):
        """Test updating and deleting through the legacy endpoint"""
        supplier = TestDataFactory.create_supplier(cnpj='12345678000190')
        data = {'nome': 'Novo Nome', 'cnpj': '12345678000190', 'contato': 'novo@acme.com'}
        response = self.client.put(f'/fornecedor/{supplier.id}', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['nome'], 'Novo Nome')

        response = self.client.delete(f'/fornecedor/{supplier.id}')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Supplier.objects.exists())

    def test_missing_supplier(self):
        """Test a missing supplier returns 404 with a message"""
        response = self.client.delete('/fornecedor/999999')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {'message': 'Fornecedor não encontrado.'})


class ClientAPITests(TestCase):
    """Test Client API endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_create_client(self):
        """Test creating a client"""
        data = {'name': 'Maria', 'cpf_cnpj': ' 111 ', 'contact': '9999-0000'}
        response = self.client.post('/api/v1/clients/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['cpf_cnpj'], '111')
        self.assertTrue(response.data['is_active'])
        self.assertEqual(response.data['orders_count'], 0)

    def test_duplicate_document_rejected(self):
        """Test two clients cannot share a cpf/cnpj"""
        TestDataFactory.create_client(cpf_cnpj='111')
        data = {'name': 'João', 'cpf_cnpj': '111', 'contact': '8888'}
        response = self.client.post('/api/v1/clients/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('cpf_cnpj', response.data['errors'])

    def test_search_by_document_and_active_filter(self):
        """Test search_by and the active filter"""
        TestDataFactory.create_client(name='Maria', cpf_cnpj='111')
        TestDataFactory.create_client(name='Mário', cpf_cnpj='222', is_active=False)

        response = self.client.get('/api/v1/clients/', {'search': '22', 'search_by': 'cpf_cnpj'})
        self.assertEqual([c['name'] for c in response.data], ['Mário'])

        response = self.client.get('/api/v1/clients/', {'active': 'true'})
        self.assertEqual([c['name'] for c in response.data], ['Maria'])

    def test_delete_client_without_orders(self):
        """Test a client without orders is removed"""
        client = TestDataFactory.create_client()
        response = self.client.delete(f'/api/v1/clients/{client.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Client.objects.filter(id=client.id).exists())

    def test_delete_client_with_orders_deactivates(self):
        """Test a client with orders is deactivated and kept"""
        client = TestDataFactory.create_client(cpf_cnpj='111')
        product = TestDataFactory.create_product()
        TestDataFactory.create_order(client=client, items=[(product, 1)])

        response = self.client.delete(f'/api/v1/clients/{client.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['deactivated'])
        self.assertFalse(response.data['is_active'])
        client.refresh_from_db()
        self.assertFalse(client.is_active)
        self.assertEqual(Product.objects.get(id=product.id).stock, product.stock)
