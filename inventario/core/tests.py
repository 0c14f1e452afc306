"""
Test suite for the core module
Tests: registration and JWT login, API access policy, error bodies and audit logs
"""
from django.test import TestCase, override_settings
from rest_framework import status
from inventario.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from inventario.core.models import AuditLog, User
from inventario.core.exceptions import first_error_message
from inventario.core.utils import create_audit_log


class AuthAPITests(TestCase):
    """Test the auth endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register(self):
        """Test registering a user returns tokens"""
        data = {
            'username': 'estoquista',
            'email': 'estoquista@test.com',
            'password': 'Inventario#2024',
            'password_confirm': 'Inventario#2024',
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['username'], 'estoquista')
        self.assertTrue(User.objects.filter(username='estoquista').exists())

    def test_register_password_mismatch(self):
        """Test mismatched passwords are rejected with a message"""
        data = {
            'username': 'estoquista',
            'password': 'Inventario#2024',
            'password_confirm': 'Outra#2024xyz',
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'As senhas não coincidem.')
        self.assertIn('password', response.data['errors'])

    def test_login_returns_user(self):
        """Test JWT login includes the user payload"""
        TestDataFactory.create_user(username='maria', password='testpass123')
        response = self.client.post('/api/v1/auth/login/', {'username': 'maria', 'password': 'testpass123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['user']['username'], 'maria')

    def test_login_wrong_password(self):
        """Test a wrong password is rejected with a message"""
        TestDataFactory.create_user(username='maria', password='testpass123')
        response = self.client.post('/api/v1/auth/login/', {'username': 'maria', 'password': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('message', response.data)

    def test_me(self):
        """Test the current user endpoint"""
        user = TestDataFactory.create_user()
        self.client.authenticate_user(user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], user.id)

    def test_me_requires_authentication(self):
        """Test the current user endpoint rejects anonymous requests"""
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class ApiAccessTests(TestCase):
    """Test the API_REQUIRE_AUTH switch"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_open_by_default(self):
        """Test entity endpoints are open when auth is not required"""
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    @override_settings(API_REQUIRE_AUTH=True)
    def test_anonymous_rejected_when_required(self):
        """Test anonymous requests are rejected when auth is required"""
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('message', response.data)

    @override_settings(API_REQUIRE_AUTH=True)
    def test_authenticated_allowed_when_required(self):
        """Test authenticated requests pass when auth is required"""
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)


class ErrorBodyTests(TestCase):
    """Test every error response carries a message"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_not_found_has_message(self):
        """Test a missing record returns 404 with a message"""
        response = self.client.get('/api/v1/products/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertIn('message', response.data)

    def test_invalid_query_parameter_has_message(self):
        """Test an unknown ordering field is a 400 with a message"""
        response = self.client.get('/api/v1/products/', {'ordering': 'color'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Campo de ordenação inválido: color')
        self.assertIn('ordering', response.data['errors'])

    def test_first_error_message(self):
        """Test the first message is found in nested error structures"""
        errors = {'items': [{}, {'quantity': ['Quantidade inválida.']}]}
        self.assertEqual(first_error_message(errors), 'Quantidade inválida.')
        self.assertIsNone(first_error_message({}))


class AuditLogTests(TestCase):
    """Test audit log recording and the admin-only endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(is_staff=True, is_superuser=True)
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()

    def test_create_audit_log_without_request(self):
        """Test logging outside a request"""
        log = create_audit_log(action='create', model_name='Product', object_id=1, object_name='Caderno')
        self.assertIsNotNone(log)
        self.assertIsNone(log.user)
        self.assertEqual(log.object_name, 'Caderno')

    def test_api_write_is_logged(self):
        """Test creating a supplier through the API writes an audit entry"""
        self.client.authenticate_user(self.user)
        data = {'name': 'Acme', 'cnpj': '12.345.678/0001-90', 'contact': 'vendas@acme.com'}
        response = self.client.post('/api/v1/suppliers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        log = AuditLog.objects.get(model_name='Supplier', action='create')
        self.assertEqual(log.user, self.user)
        self.assertEqual(log.object_id, str(response.data['id']))

    def test_list_requires_admin(self):
        """Test non-staff users cannot read the audit log"""
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_filters(self):
        """Test filtering the audit log by action and model"""
        create_audit_log(action='create', model_name='Product', object_id=1)
        create_audit_log(action='delete', model_name='Product', object_id=1)
        create_audit_log(action='create', model_name='Client', object_id=2)
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/', {'action': 'create', 'model': 'Product'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

        detail = self.client.get(f"/api/v1/audit-logs/{response.data[0]['id']}/")
        self.assertEqual(detail.status_code, status.HTTP_200_OK)
