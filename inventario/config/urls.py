"""
URL configuration for the inventario project.

The REST API lives under /api/v1/. The supplier and product endpoints used
by the first version of the front end keep their original paths.
"""
from django.contrib import admin
from django.urls import path, include

from inventario.catalog.views import produto_create
from inventario.parties.views import fornecedor_list, fornecedor_create, fornecedor_detail

admin.site.site_header = "Inventário Web - Administração"
admin.site.site_title = "Inventário Web"
admin.site.index_title = "Gerenciamento de estoque"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('inventario.core.urls')),
    path('api/v1/', include('inventario.catalog.urls')),
    path('api/v1/', include('inventario.parties.urls')),
    path('api/v1/', include('inventario.orders.urls')),
    path('api/v1/', include('inventario.inventory.urls')),

    # Legacy endpoints
    path('fornecedores', fornecedor_list, name='legacy-fornecedor-list'),
    path('fornecedor', fornecedor_create, name='legacy-fornecedor-create'),
    path('fornecedor/<int:pk>', fornecedor_detail, name='legacy-fornecedor-detail'),
    path('produto', produto_create, name='legacy-produto-create'),
]
