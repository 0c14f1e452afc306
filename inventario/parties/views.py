import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from django.shortcuts import get_object_or_404

from inventario.core.exceptions import first_error_message, validation_error_response
from inventario.core.permissions import ApiAccess
from inventario.core.utils import create_audit_log
from inventario.store import listing
from .models import Supplier, Client
from .serializers import SupplierSerializer, FornecedorSerializer, ClientSerializer

logger = logging.getLogger(__name__)


def parse_bool(value):
    """Query-string boolean ('true'/'false'); None when absent"""
    if value is None or value == '':
        return None
    return str(value).lower() in ('1', 'true', 'yes')


# Supplier views
@api_view(['GET', 'POST'])
@permission_classes([ApiAccess])
def supplier_list_create(request):
    """List suppliers (search by name or contact) or create a new supplier"""
    if request.method == 'GET':
        suppliers = listing.list_suppliers(
            Supplier.objects.all(),
            term=request.query_params.get('search', ''),
            ordering=request.query_params.get('ordering'),
            direction=request.query_params.get('direction'),
        )
        serializer = SupplierSerializer(suppliers, many=True)
        return Response(serializer.data)
    else:
        serializer = SupplierSerializer(data=request.data)
        if serializer.is_valid():
            supplier = serializer.save()
            create_audit_log(request, 'create', 'Supplier', supplier.id, object_name=supplier.name)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return validation_error_response(serializer.errors)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([ApiAccess])
def supplier_detail(request, pk):
    """Retrieve, update or delete a supplier"""
    supplier = get_object_or_404(Supplier, pk=pk)

    if request.method == 'GET':
        serializer = SupplierSerializer(supplier)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SupplierSerializer(supplier, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', 'Supplier', supplier.id, object_name=supplier.name,
                             changes=dict(request.data))
            return Response(serializer.data)
        return validation_error_response(serializer.errors)
    else:  # DELETE
        create_audit_log(request, 'delete', 'Supplier', supplier.id, object_name=supplier.name)
        supplier.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Legacy supplier endpoints (Portuguese payloads, {"message"} errors)
@api_view(['GET'])
@permission_classes([ApiAccess])
def fornecedor_list(request):
    suppliers = Supplier.objects.all().order_by('id')
    return Response(FornecedorSerializer(suppliers, many=True).data)


@api_view(['POST'])
@permission_classes([ApiAccess])
def fornecedor_create(request):
    serializer = FornecedorSerializer(data=request.data)
    if serializer.is_valid():
        supplier = serializer.save()
        create_audit_log(request, 'create', 'Supplier', supplier.id, object_name=supplier.name)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response({'message': first_error_message(serializer.errors)}, status=status.HTTP_400_BAD_REQUEST)


@api_view(['PUT', 'DELETE'])
@permission_classes([ApiAccess])
def fornecedor_detail(request, pk):
    supplier = Supplier.objects.filter(pk=pk).first()
    if supplier is None:
        return Response({'message': 'Fornecedor não encontrado.'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'PUT':
        serializer = FornecedorSerializer(supplier, data=request.data)
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', 'Supplier', supplier.id, object_name=supplier.name)
            return Response(serializer.data)
        return Response({'message': first_error_message(serializer.errors)}, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        create_audit_log(request, 'delete', 'Supplier', supplier.id, object_name=supplier.name)
        supplier.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Client views
@api_view(['GET', 'POST'])
@permission_classes([ApiAccess])
def client_list_create(request):
    """List clients (search by name or cpf_cnpj, optional active filter) or create a client"""
    if request.method == 'GET':
        clients = listing.list_clients(
            Client.objects.all(),
            term=request.query_params.get('search', ''),
            search_by=request.query_params.get('search_by') or 'name',
            active=parse_bool(request.query_params.get('active')),
        )
        serializer = ClientSerializer(clients, many=True)
        return Response(serializer.data)
    else:
        serializer = ClientSerializer(data=request.data)
        if serializer.is_valid():
            client = serializer.save()
            create_audit_log(request, 'create', 'Client', client.id, object_name=client.name)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return validation_error_response(serializer.errors)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([ApiAccess])
def client_detail(request, pk):
    """
    Retrieve, update or delete a client.

    DELETE keeps clients that have orders: they are deactivated
    (is_active=False) and returned with 200 instead of 204.
    """
    client = get_object_or_404(Client, pk=pk)

    if request.method == 'GET':
        serializer = ClientSerializer(client)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ClientSerializer(client, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', 'Client', client.id, object_name=client.name,
                             changes=dict(request.data))
            return Response(serializer.data)
        return validation_error_response(serializer.errors)
    else:  # DELETE
        if client.orders.exists():
            client.is_active = False
            client.save(update_fields=['is_active', 'updated_at'])
            logger.info(f"Client {client.id} has orders; deactivated instead of deleted")
            create_audit_log(request, 'deactivate', 'Client', client.id, object_name=client.name)
            data = ClientSerializer(client).data
            data['deactivated'] = True
            return Response(data)
        create_audit_log(request, 'delete', 'Client', client.id, object_name=client.name)
        client.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
