from decimal import Decimal

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models

from backoffice.core.models import CatalogModel


class Order(CatalogModel):
    """Customer orders placed through the storefront"""
    STATUS_CHOICES = [
        ('processing', 'Processing'),
        ('shipped', 'Shipped'),
        ('delivered', 'Delivered'),
        ('cancelled', 'Cancelled'),
    ]

    id_prefix = 'order'

    customer_name = models.CharField(max_length=200, db_index=True)
    customer_email = models.EmailField()
    # [{"product_id": ..., "name": ..., "quantity": 2, "unit_price": "12.50"}, ...]
    items = models.JSONField(default=list, encoder=DjangoJSONEncoder)
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='processing', db_index=True)

    def __str__(self):
        return f"{self.id} ({self.customer_name})"

    class Meta:
        db_table = 'orders'
