from rest_framework import serializers

from inventario.core.exceptions import as_validation_error
from inventario.core.serializers import merged_value
from inventario.store import rules
from .models import Supplier, Client


class SupplierSerializer(serializers.ModelSerializer):
    # Declared explicitly so the store rules produce the messages (and
    # the cnpj can arrive punctuated before normalisation)
    name = serializers.CharField(max_length=200, allow_blank=True, error_messages={'required': rules.MSG_NAME})
    cnpj = serializers.CharField(max_length=32, allow_blank=True, error_messages={'required': rules.MSG_CNPJ})
    contact = serializers.CharField(max_length=200, allow_blank=True, error_messages={'required': rules.MSG_CONTACT})

    class Meta:
        model = Supplier
        fields = ['id', 'name', 'cnpj', 'contact', 'address', 'created_at', 'updated_at']

    def validate(self, attrs):
        current_id = self.instance.pk if self.instance else None
        try:
            normalized = rules.validate_supplier_fields(
                merged_value(self.instance, attrs, 'name'),
                merged_value(self.instance, attrs, 'cnpj'),
                merged_value(self.instance, attrs, 'contact'),
                Supplier.objects.values_list('id', 'cnpj'),
                current_id,
            )
        except rules.StoreError as exc:
            raise as_validation_error(exc)
        attrs['cnpj'] = normalized
        if 'name' in attrs:
            attrs['name'] = attrs['name'].strip()
        return attrs


class FornecedorSerializer(SupplierSerializer):
    """Portuguese field names used by the legacy /fornecedor endpoints"""
    nome = serializers.CharField(source='name', max_length=200, allow_blank=True, error_messages={'required': rules.MSG_NAME})
    contato = serializers.CharField(source='contact', max_length=200, allow_blank=True, error_messages={'required': rules.MSG_CONTACT})
    endereco = serializers.CharField(source='address', required=False, allow_blank=True)

    class Meta:
        model = Supplier
        fields = ['id', 'nome', 'cnpj', 'contato', 'endereco']


class ClientSerializer(serializers.ModelSerializer):
    name = serializers.CharField(max_length=200, allow_blank=True, error_messages={'required': rules.MSG_NAME})
    cpf_cnpj = serializers.CharField(max_length=32, allow_blank=True, error_messages={'required': rules.MSG_CPF_CNPJ})
    contact = serializers.CharField(max_length=200, allow_blank=True, error_messages={'required': rules.MSG_CONTACT})
    orders_count = serializers.IntegerField(source='orders.count', read_only=True)

    class Meta:
        model = Client
        fields = ['id', 'name', 'cpf_cnpj', 'contact', 'address', 'is_active', 'orders_count', 'created_at', 'updated_at']

    def validate(self, attrs):
        current_id = self.instance.pk if self.instance else None
        try:
            rules.validate_client_fields(
                merged_value(self.instance, attrs, 'name'),
                merged_value(self.instance, attrs, 'cpf_cnpj'),
                merged_value(self.instance, attrs, 'contact'),
                Client.objects.values_list('id', 'cpf_cnpj'),
                current_id,
            )
        except rules.StoreError as exc:
            raise as_validation_error(exc)
        if 'cpf_cnpj' in attrs:
            attrs['cpf_cnpj'] = attrs['cpf_cnpj'].strip()
        return attrs
