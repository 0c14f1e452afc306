from django.db import transaction
from rest_framework import serializers

from inventario.core.exceptions import as_validation_error
from inventario.core.serializers import merged_value
from inventario.inventory import ledger
from inventario.parties.models import Supplier
from inventario.store import rules
from .models import Product


class ProductSerializer(serializers.ModelSerializer):
    price = serializers.DecimalField(max_digits=10, decimal_places=2, error_messages={'invalid': rules.MSG_PRICE})
    stock = serializers.IntegerField(error_messages={'invalid': rules.MSG_STOCK})
    image = serializers.CharField(max_length=500, allow_blank=True, error_messages={'required': rules.MSG_IMAGE})
    supplier = serializers.PrimaryKeyRelatedField(queryset=Supplier.objects.all(), allow_null=True, required=False)
    supplier_name = serializers.CharField(source='supplier.name', read_only=True, default=None)
    total_value = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'category', 'price', 'stock', 'supplier', 'supplier_name',
            'image', 'total_value', 'created_at', 'updated_at'
        ]

    def validate(self, attrs):
        stock_changed = self.instance is None or (
            'stock' in attrs and attrs['stock'] != self.instance.stock
        )
        try:
            rules.validate_product_fields(
                merged_value(self.instance, attrs, 'price'),
                merged_value(self.instance, attrs, 'stock'),
                merged_value(self.instance, attrs, 'image'),
                check_stock=stock_changed,
            )
        except rules.StoreError as exc:
            raise as_validation_error(exc)
        return attrs

    def update(self, instance, validated_data):
        """
        Stock edits are recorded as a manual entrada/saida for the difference.
        The changes are applied to the locked row, not to ``instance``.
        """
        with transaction.atomic():
            locked = Product.objects.select_for_update().get(pk=instance.pk)
            old_stock = locked.stock
            product = super().update(locked, validated_data)
            ledger.record_stock_edit(product, old_stock)
        return product


class ProdutoSerializer(ProductSerializer):
    """Portuguese field names accepted by the legacy POST /produto"""
    nome = serializers.CharField(source='name', max_length=200)
    categoria = serializers.CharField(source='category', max_length=100, required=False, allow_blank=True)
    preco = serializers.DecimalField(source='price', max_digits=10, decimal_places=2, error_messages={'invalid': rules.MSG_PRICE})
    quantidade = serializers.IntegerField(source='stock', error_messages={'invalid': rules.MSG_STOCK})
    imagem = serializers.CharField(source='image', max_length=500, allow_blank=True, error_messages={'required': rules.MSG_IMAGE})
    fornecedorId = serializers.PrimaryKeyRelatedField(source='supplier', queryset=Supplier.objects.all(), allow_null=True, required=False)

    class Meta:
        model = Product
        fields = ['id', 'nome', 'categoria', 'preco', 'quantidade', 'imagem', 'fornecedorId']
