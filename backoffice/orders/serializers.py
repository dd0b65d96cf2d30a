from decimal import Decimal

from rest_framework import serializers

from backoffice.core.serializers import ResourceSerializer
from .models import Order


class OrderItemSerializer(serializers.Serializer):
    """One order line; stored inside the order's JSON ``items`` column"""
    product_id = serializers.CharField(max_length=64, required=False, allow_null=True, default=None)
    name = serializers.CharField(max_length=200)
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'))

    def validate(self, attrs):
        # Lines are always written whole, even inside a partial order update
        missing = [name for name in ('name', 'quantity', 'unit_price') if name not in attrs]
        if missing:
            raise serializers.ValidationError({name: ['This field is required.'] for name in missing})
        return attrs


class OrderSerializer(ResourceSerializer):
    items = OrderItemSerializer(many=True, allow_empty=False)

    class Meta:
        model = Order
        fields = ['id', 'customer_name', 'customer_email', 'items', 'total', 'status', 'created_at', 'modified_at']
        read_only_fields = ['id', 'total', 'created_at', 'modified_at']

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if 'items' in attrs:
            items = [dict(item) for item in attrs['items']]
            attrs['items'] = items
            attrs['total'] = sum(
                (item['quantity'] * item['unit_price'] for item in items), Decimal('0.00')
            )
        return attrs
