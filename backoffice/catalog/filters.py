import django_filters
from django.db.models import Exists, OuterRef
from django.utils import timezone

from .models import Product, ProductVariant, Promotion


class ProductFilter(django_filters.FilterSet):
    """Product list filters, combined with AND"""

    category = django_filters.CharFilter(field_name='category_id', lookup_expr='exact')
    variants = django_filters.BooleanFilter(method='filter_variants', label='Has variants')
    promotion = django_filters.BooleanFilter(method='filter_promotion', label='Has active promotion')

    class Meta:
        model = Product
        fields = ['category', 'variants', 'promotion']

    def filter_variants(self, queryset, name, value):
        """True keeps products with at least one variant, False those without"""
        if value is None:
            return queryset
        has_variants = Exists(ProductVariant.objects.filter(product=OuterRef('pk')))
        return queryset.filter(has_variants if value else ~has_variants)

    def filter_promotion(self, queryset, name, value):
        """True keeps products with a promotion running right now"""
        if value is None:
            return queryset
        running = Exists(Promotion.objects.active(timezone.now()).filter(product=OuterRef('pk')))
        return queryset.filter(running if value else ~running)
