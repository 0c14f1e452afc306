import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from django.shortcuts import get_object_or_404

from inventario.core.exceptions import first_error_message, validation_error_response
from inventario.core.permissions import ApiAccess
from inventario.core.utils import create_audit_log
from inventario.store import listing
from .filters import ProductFilter
from .models import Product
from .serializers import ProductSerializer, ProdutoSerializer

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([ApiAccess])
def product_list_create(request):
    """
    List products or create a new product.

    GET params: search, search_by (name|supplier), ordering
    (price|category|stock|total|name), direction (asc|desc), plus the
    ProductFilter fields (category, supplier, in_stock).
    """
    if request.method == 'GET':
        queryset = Product.objects.select_related('supplier')
        queryset = ProductFilter(request.query_params, queryset=queryset).qs
        products = listing.list_products(
            queryset,
            term=request.query_params.get('search', ''),
            search_by=request.query_params.get('search_by') or 'name',
            ordering=request.query_params.get('ordering'),
            direction=request.query_params.get('direction'),
        )
        serializer = ProductSerializer(products, many=True)
        return Response(serializer.data)
    else:
        serializer = ProductSerializer(data=request.data)
        if serializer.is_valid():
            product = serializer.save()
            create_audit_log(request, 'create', 'Product', product.id, object_name=product.name)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return validation_error_response(serializer.errors)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([ApiAccess])
def product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = get_object_or_404(Product.objects.select_related('supplier'), pk=pk)

    if request.method == 'GET':
        serializer = ProductSerializer(product)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        old_stock = product.stock
        serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            product = serializer.save()
            if product.stock != old_stock:
                create_audit_log(request, 'stock_adjust', 'Product', product.id, object_name=product.name,
                                 changes={'stock': {'old': old_stock, 'new': product.stock}})
            else:
                create_audit_log(request, 'update', 'Product', product.id, object_name=product.name,
                                 changes=dict(request.data))
            return Response(serializer.data)
        return validation_error_response(serializer.errors)
    else:  # DELETE
        create_audit_log(request, 'delete', 'Product', product.id, object_name=product.name)
        product.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([ApiAccess])
def produto_create(request):
    """Legacy product creation with Portuguese field names"""
    data = request.data.copy()
    if 'categoria' not in data and 'descricao' in data:
        data['categoria'] = data['descricao']
    serializer = ProdutoSerializer(data=data)
    if serializer.is_valid():
        product = serializer.save()
        create_audit_log(request, 'create', 'Product', product.id, object_name=product.name)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response({'message': first_error_message(serializer.errors)}, status=status.HTTP_400_BAD_REQUEST)
