"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from inventario.catalog.models import Product
from inventario.orders.models import Order, OrderItem
from inventario.parties.models import Client, Supplier
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def random_digits(length):
        return ''.join(random.choices(string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser
        )

    @staticmethod
    def create_supplier(name=None, cnpj=None, contact=None):
        """Create a test supplier"""
        if not name:
            name = f'Supplier_{TestDataFactory.random_string(6)}'
        if not cnpj:
            cnpj = TestDataFactory.random_digits(14)
        return Supplier.objects.create(
            name=name,
            cnpj=cnpj,
            contact=contact or f'{name.lower()}@test.com',
            address=f'Rua {name}, 100'
        )

    @staticmethod
    def create_client(name=None, cpf_cnpj=None, contact=None, is_active=True):
        """Create a test client"""
        if not name:
            name = f'Client_{TestDataFactory.random_string(6)}'
        if not cpf_cnpj:
            cpf_cnpj = TestDataFactory.random_digits(11)
        return Client.objects.create(
            name=name,
            cpf_cnpj=cpf_cnpj,
            contact=contact or f'9{random.randint(10000000, 99999999)}',
            is_active=is_active
        )

    @staticmethod
    def create_product(name=None, category='Geral', price=None, stock=10, supplier=None):
        """Create a test product"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if price is None:
            price = Decimal('10.00')
        return Product.objects.create(
            name=name,
            category=category,
            price=price,
            stock=stock,
            supplier=supplier,
            image=f'https://img.test/{name}.png'
        )

    @staticmethod
    def create_order(client=None, items=None, status='pending'):
        """
        Create an order row directly (no stock or transaction bookkeeping).
        ``items`` is a list of (product, quantity) pairs.
        """
        if not client:
            client = TestDataFactory.create_client()
        order = Order.objects.create(client=client, status=status)
        total = Decimal('0.00')
        for product, quantity in items or []:
            OrderItem.objects.create(order=order, product=product, quantity=quantity, price=product.price)
            total += product.price * quantity
        order.total = total
        order.save(update_fields=['total'])
        return order


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
