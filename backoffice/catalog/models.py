from decimal import Decimal

from django.db import models
from django.utils import timezone

from backoffice.core.models import LinkedModel


class Category(LinkedModel):
    """Storefront categories"""
    id_prefix = 'category'

    name = models.CharField(max_length=200, db_index=True)
    description = models.TextField(blank=True)
    image = models.TextField(blank=True)  # JSON blob: {"src": ..., "alt": ...}

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'categories'
        verbose_name_plural = 'categories'


class Product(LinkedModel):
    """Product master"""
    id_prefix = 'product'

    name = models.CharField(max_length=200, db_index=True)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    images = models.JSONField(default=list, blank=True)  # [{"src": ..., "alt": ...}, ...]

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'products'


class ProductVariant(models.Model):
    """Product variants (size, color, etc.)"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='variants')
    name = models.CharField(max_length=200)  # e.g., "Red - Large"
    price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)  # overrides product price
    attributes = models.JSONField(default=dict, blank=True)  # e.g., {"color": "red", "size": "L"}
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.product.name} - {self.name}"

    class Meta:
        db_table = 'product_variants'


class PromotionQuerySet(models.QuerySet):
    def active(self, at=None):
        at = at or timezone.now()
        return self.filter(is_active=True, valid_from__lte=at, valid_to__gte=at)


class Promotion(models.Model):
    """Time-boxed product discounts"""
    DISCOUNT_TYPE_CHOICES = [
        ('percentage', 'Percentage'),
        ('fixed', 'Fixed Amount'),
    ]

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='promotions')
    name = models.CharField(max_length=200)
    discount_type = models.CharField(max_length=20, choices=DISCOUNT_TYPE_CHOICES, default='percentage')
    discount_value = models.DecimalField(max_digits=10, decimal_places=2)
    valid_from = models.DateTimeField()
    valid_to = models.DateTimeField()
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = PromotionQuerySet.as_manager()

    def __str__(self):
        return self.name

    def is_current(self, at=None):
        at = at or timezone.now()
        return self.is_active and self.valid_from <= at <= self.valid_to

    class Meta:
        db_table = 'promotions'
