import logging
from collections import Counter

from django.db import transaction
from rest_framework import serializers

from inventario.catalog.models import Product
from inventario.core.exceptions import as_validation_error
from inventario.inventory import ledger
from inventario.parties.models import Client
from inventario.store import rules
from inventario.store.entities import ORDER_PENDING, ORDER_STATUSES
from .models import Order, OrderItem

logger = logging.getLogger(__name__)

NO_CLIENT_ERRORS = {'required': rules.MSG_NO_CLIENT, 'null': rules.MSG_NO_CLIENT, 'does_not_exist': rules.MSG_NO_CLIENT}


class OrderItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True, default=None)
    line_total = serializers.SerializerMethodField()

    class Meta:
        model = OrderItem
        fields = ['id', 'product', 'product_name', 'quantity', 'price', 'line_total']

    def get_line_total(self, obj):
        return str(obj.get_line_total())


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    client_name = serializers.CharField(source='client.name', read_only=True)
    client_is_active = serializers.BooleanField(source='client.is_active', read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'client', 'client_name', 'client_is_active', 'date', 'status', 'total',
            'items', 'created_at', 'updated_at'
        ]
        read_only_fields = ['date', 'status', 'total']


class OrderItemInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField(error_messages={'invalid': rules.MSG_STOCK})
    price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)

    def validate_quantity(self, value):
        if not rules.is_positive_int(value):
            raise serializers.ValidationError(rules.MSG_STOCK)
        return value

    def validate_price(self, value):
        if value is not None and not rules.is_valid_price(value):
            raise serializers.ValidationError(rules.MSG_PRICE)
        return value


def build_order_items(order, items_data, products):
    """OrderItem rows for ``items_data``; the price defaults to the product's current price"""
    order_items = []
    for item in items_data:
        product = products[item['product'].pk]
        price = item.get('price')
        order_items.append(OrderItem(
            order=order,
            product=product,
            quantity=item['quantity'],
            price=price if price is not None else product.price,
        ))
    return OrderItem.objects.bulk_create(order_items)


class OrderCreateSerializer(serializers.Serializer):
    """
    Places an order in one database transaction: creates the order and its
    items, appends one saida transaction per item and decrements stock.
    """
    client = serializers.PrimaryKeyRelatedField(queryset=Client.objects.all(), error_messages=NO_CLIENT_ERRORS)
    items = OrderItemInputSerializer(many=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError(rules.MSG_NO_ITEMS)
        return value

    def create(self, validated_data):
        client = validated_data['client']
        items_data = validated_data['items']

        requested = Counter()
        for item in items_data:
            requested[item['product'].pk] += item['quantity']

        try:
            with transaction.atomic():
                products = Product.objects.select_for_update().in_bulk(sorted(requested))
                for product_id, quantity in requested.items():
                    product = products[product_id]
                    rules.check_stock(product.name, product.stock, quantity)

                order = Order.objects.create(client=client)
                order_items = build_order_items(order, items_data, products)
                order.total = rules.order_total(order_items)
                order.save(update_fields=['total', 'updated_at'])

                ledger.record_order_items(order, order_items)
                for product_id, quantity in requested.items():
                    product = products[product_id]
                    product.stock -= quantity
                    product.save(update_fields=['stock', 'updated_at'])
        except rules.StoreError as exc:
            logger.warning(f"Order for client {client.id} rejected: {exc.message}")
            raise as_validation_error(exc)

        logger.info(f"Order {order.id} placed for client {client.id}: {len(order_items)} item(s), total {order.total}")
        return order


class OrderItemsUpdateSerializer(serializers.Serializer):
    """Replaces the items of a pending order and recomputes its total"""
    items = OrderItemInputSerializer(many=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError(rules.MSG_NO_ITEMS)
        return value

    def validate(self, attrs):
        if self.instance.status != ORDER_PENDING:
            raise serializers.ValidationError({'items': ["Somente pedidos pendentes podem ser alterados."]})
        return attrs

    def update(self, instance, validated_data):
        """
        The order's saida transactions are rebooked to match the new items
        and each product's stock moves by the old minus the new quantity.
        """
        items_data = validated_data['items']

        requested = Counter()
        for item in items_data:
            requested[item['product'].pk] += item['quantity']

        try:
            with transaction.atomic():
                previous = Counter()
                for product_id, quantity in instance.items.exclude(product__isnull=True).values_list('product_id', 'quantity'):
                    previous[product_id] += quantity

                products = Product.objects.select_for_update().in_bulk(sorted(set(requested) | set(previous)))
                for product_id, quantity in requested.items():
                    product = products[product_id]
                    rules.check_stock(product.name, product.stock + previous[product_id], quantity)

                instance.items.all().delete()
                instance.transactions.all().delete()
                order_items = build_order_items(instance, items_data, products)
                instance.total = rules.order_total(order_items)
                instance.save(update_fields=['total', 'updated_at'])
                ledger.record_order_items(instance, order_items)

                for product_id, product in products.items():
                    delta = previous[product_id] - requested[product_id]
                    if delta:
                        product.stock += delta
                        product.save(update_fields=['stock', 'updated_at'])
        except rules.StoreError as exc:
            logger.warning(f"Item edit of order {instance.id} rejected: {exc.message}")
            raise as_validation_error(exc)

        logger.info(f"Order {instance.id} items replaced: {len(order_items)} item(s), total {instance.total}")
        return instance


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ORDER_STATUSES)

    def validate_status(self, value):
        try:
            rules.validate_status_change(self.instance.status, value)
        except rules.StoreError as exc:
            raise serializers.ValidationError(exc.message)
        return value

    def update(self, instance, validated_data):
        instance.status = validated_data['status']
        instance.save(update_fields=['status', 'updated_at'])
        return instance
