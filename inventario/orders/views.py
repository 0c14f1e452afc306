import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from django.shortcuts import get_object_or_404

from inventario.core.exceptions import validation_error_response
from inventario.core.permissions import ApiAccess
from inventario.core.utils import create_audit_log
from inventario.parties.models import Client
from inventario.store import listing
from .models import Order
from .serializers import OrderSerializer, OrderCreateSerializer, OrderItemsUpdateSerializer, OrderStatusSerializer

logger = logging.getLogger(__name__)


def order_queryset():
    return Order.objects.select_related('client').prefetch_related('items__product')


@api_view(['GET', 'POST'])
@permission_classes([ApiAccess])
def order_list_create(request):
    """
    List orders or place a new order.

    GET params: status (all|pending|completed|cancelled), date (YYYY-MM-DD),
    search (order id or client name), ordering (date|total), direction
    (desc by default).
    """
    if request.method == 'GET':
        queryset = order_queryset()
        on_date = listing.as_date(request.query_params.get('date'))
        if on_date:
            queryset = queryset.filter(date__date=on_date)
        orders = listing.list_orders(
            queryset,
            status=request.query_params.get('status'),
            term=request.query_params.get('search', ''),
            ordering=request.query_params.get('ordering'),
            direction=request.query_params.get('direction'),
        )
        serializer = OrderSerializer(orders, many=True)
        return Response(serializer.data)
    else:
        serializer = OrderCreateSerializer(data=request.data)
        if serializer.is_valid():
            order = serializer.save()
            create_audit_log(request, 'order_place', 'Order', order.id, object_name=str(order),
                             changes={'client': order.client_id, 'total': str(order.total)})
            return Response(OrderSerializer(order_queryset().get(pk=order.pk)).data, status=status.HTTP_201_CREATED)
        return validation_error_response(serializer.errors)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([ApiAccess])
def order_detail(request, pk):
    """Retrieve an order, replace its items (pending only) or delete it"""
    order = get_object_or_404(order_queryset(), pk=pk)

    if request.method == 'GET':
        serializer = OrderSerializer(order)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = OrderItemsUpdateSerializer(order, data=request.data)
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', 'Order', order.id, object_name=str(order),
                             changes={'total': str(order.total)})
            return Response(OrderSerializer(order_queryset().get(pk=order.pk)).data)
        return validation_error_response(serializer.errors)
    else:  # DELETE
        create_audit_log(request, 'delete', 'Order', order.id, object_name=str(order))
        order.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([ApiAccess])
def order_status(request, pk):
    """Move an order from pending to completed or cancelled"""
    order = get_object_or_404(order_queryset(), pk=pk)
    previous = order.status
    serializer = OrderStatusSerializer(order, data=request.data)
    if serializer.is_valid():
        serializer.save()
        logger.info(f"Order {order.id} status {previous} -> {order.status}")
        create_audit_log(request, 'status_change', 'Order', order.id, object_name=str(order),
                         changes={'status': {'old': previous, 'new': order.status}})
        return Response(OrderSerializer(order).data)
    return validation_error_response(serializer.errors)


@api_view(['GET'])
@permission_classes([ApiAccess])
def client_orders(request, pk):
    """Order history of one client, optionally filtered by status"""
    client = get_object_or_404(Client, pk=pk)
    orders = listing.filter_by_status(
        order_queryset().filter(client=client),
        request.query_params.get('status'),
    )
    serializer = OrderSerializer(orders, many=True)
    return Response(serializer.data)
