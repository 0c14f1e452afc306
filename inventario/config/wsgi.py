"""WSGI config for the inventario project."""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'inventario.config.settings')

application = get_wsgi_application()
