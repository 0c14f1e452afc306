from rest_framework import serializers

from inventario.catalog.models import Product
from inventario.catalog.serializers import ProductSerializer
from inventario.store import rules
from inventario.store.entities import TRANSACTION_TYPES
from inventario.store.history import describe
from .models import Transaction


class TransactionSerializer(serializers.ModelSerializer):
    """Transaction enriched with the product name and the order it came from"""
    product_name = serializers.SerializerMethodField()
    order_info = serializers.SerializerMethodField()

    class Meta:
        model = Transaction
        fields = [
            'id', 'type', 'date', 'product', 'product_name', 'quantity', 'total_value',
            'order', 'order_info', 'description', 'created_at'
        ]

    def _details(self, obj):
        products = {obj.product_id: obj.product} if obj.product_id else {}
        orders = {obj.order_id: obj.order} if obj.order_id else {}
        return describe(obj, products, orders)

    def get_product_name(self, obj):
        return self._details(obj).product_name

    def get_order_info(self, obj):
        return self._details(obj).order_info


class ManualMovementSerializer(serializers.Serializer):
    """Manual entrada/saida for one product"""
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    type = serializers.ChoiceField(choices=TRANSACTION_TYPES)
    quantity = serializers.IntegerField(error_messages={'invalid': rules.MSG_STOCK})

    def validate_quantity(self, value):
        if not rules.is_positive_int(value):
            raise serializers.ValidationError(rules.MSG_STOCK)
        return value


class StockItemSerializer(ProductSerializer):
    class Meta(ProductSerializer.Meta):
        fields = ['id', 'name', 'category', 'supplier', 'supplier_name', 'price', 'stock', 'total_value']
