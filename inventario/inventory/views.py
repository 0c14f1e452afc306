import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from django.shortcuts import get_object_or_404

from inventario.catalog.models import Product
from inventario.core.exceptions import validation_error_response
from inventario.core.permissions import ApiAccess
from inventario.core.utils import create_audit_log
from inventario.store import listing
from . import ledger
from .filters import TransactionFilter
from .models import Transaction
from .serializers import TransactionSerializer, ManualMovementSerializer, StockItemSerializer
from .snapshot import load_state, state_as_dict

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([ApiAccess])
def transaction_list_create(request):
    """
    Transaction history or a manual stock movement.

    GET params: type (all|entrada|saida), date (YYYY-MM-DD), plus the
    TransactionFilter fields (product, order).
    """
    if request.method == 'GET':
        queryset = Transaction.objects.select_related('product', 'order')
        queryset = TransactionFilter(request.query_params, queryset=queryset).qs
        transactions = listing.list_transactions(
            queryset,
            movement_type=request.query_params.get('type'),
            on_date=request.query_params.get('date'),
        )
        serializer = TransactionSerializer(transactions, many=True)
        return Response(serializer.data)
    else:
        serializer = ManualMovementSerializer(data=request.data)
        if serializer.is_valid():
            product = serializer.validated_data['product']
            entry = ledger.record_movement(
                product.pk,
                serializer.validated_data['type'],
                serializer.validated_data['quantity'],
            )
            create_audit_log(request, 'stock_adjust', 'Product', product.pk, object_name=product.name,
                             changes={'type': entry.type, 'quantity': entry.quantity})
            entry = Transaction.objects.select_related('product', 'order').get(pk=entry.pk)
            return Response(TransactionSerializer(entry).data, status=status.HTTP_201_CREATED)
        return validation_error_response(serializer.errors)


@api_view(['GET'])
@permission_classes([ApiAccess])
def transaction_detail(request, pk):
    """Retrieve a transaction"""
    entry = get_object_or_404(Transaction.objects.select_related('product', 'order'), pk=pk)
    return Response(TransactionSerializer(entry).data)


@api_view(['GET'])
@permission_classes([ApiAccess])
def stock_overview(request):
    """
    Stock position per product.

    GET params: name, supplier (substrings, both must match), ordering
    (category|stock|price|total|name), direction (asc|desc).
    """
    products = listing.stock_overview(
        Product.objects.select_related('supplier'),
        name=request.query_params.get('name', ''),
        supplier=request.query_params.get('supplier', ''),
        ordering=request.query_params.get('ordering'),
        direction=request.query_params.get('direction'),
    )
    serializer = StockItemSerializer(products, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([ApiAccess])
def state_snapshot(request):
    """The five collections in one response, for initialising a client-side store"""
    return Response(state_as_dict(load_state()))
