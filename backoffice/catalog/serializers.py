from decimal import Decimal

from rest_framework import serializers

from backoffice.core.fields import JSONBlobField, UploadedImageField
from backoffice.core.serializers import ResourceSerializer
from .models import Category, Product, ProductVariant, Promotion


class CategorySerializer(ResourceSerializer):
    # Stored as a JSON text blob, returned as {"src": ..., "alt": ...}
    image = JSONBlobField(child=UploadedImageField(upload_to='categories'))

    class Meta:
        model = Category
        fields = ['id', 'name', 'description', 'image', 'link', 'created_at', 'modified_at']
        read_only_fields = ['id', 'created_at', 'modified_at']


class ProductVariantSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductVariant
        fields = ['id', 'name', 'price', 'attributes']
        read_only_fields = ['id']

    def validate(self, attrs):
        # Nested rows are always written whole, even inside a partial product update
        if 'name' not in attrs:
            raise serializers.ValidationError({'name': ['This field is required.']})
        return attrs


class PromotionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Promotion
        fields = ['id', 'name', 'discount_type', 'discount_value', 'valid_from', 'valid_to', 'is_active']
        read_only_fields = ['id']

    def validate(self, attrs):
        missing = [name for name in ('name', 'discount_value', 'valid_from', 'valid_to') if name not in attrs]
        if missing:
            raise serializers.ValidationError({name: ['This field is required.'] for name in missing})
        if attrs['valid_from'] > attrs['valid_to']:
            raise serializers.ValidationError({'valid_to': ['Must not be earlier than valid_from.']})
        if attrs.get('discount_type', 'percentage') == 'percentage' and attrs['discount_value'] > Decimal('100'):
            raise serializers.ValidationError({'discount_value': ['A percentage discount cannot exceed 100.']})
        return attrs


class ProductSerializer(ResourceSerializer):
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'))
    images = serializers.ListField(child=UploadedImageField(upload_to='products'), required=False)
    variants = ProductVariantSerializer(many=True, required=False)
    promotions = PromotionSerializer(many=True, required=False)

    # For writing: accept a category id; for reading: id plus name
    category_id = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.all(),
        source='category',
        required=False,
        allow_null=True
    )
    category_name = serializers.SerializerMethodField()
    has_variants = serializers.SerializerMethodField()
    has_active_promotion = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'description', 'price', 'category_id', 'category_name', 'link', 'images',
            'variants', 'promotions', 'has_variants', 'has_active_promotion', 'created_at', 'modified_at',
        ]
        read_only_fields = ['id', 'created_at', 'modified_at']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['category_id'].queryset = Category.objects.using(self.using)

    def get_category_name(self, obj):
        return obj.category.name if obj.category else None

    def get_has_variants(self, obj):
        return len(obj.variants.all()) > 0

    def get_has_active_promotion(self, obj):
        """Iterates in Python so prefetched promotions are reused"""
        return any(promotion.is_current() for promotion in obj.promotions.all())

    def create(self, validated_data):
        variants = validated_data.pop('variants', [])
        promotions = validated_data.pop('promotions', [])
        product = super().create(validated_data)
        self._replace_children(product, variants, promotions)
        return product

    def update(self, instance, validated_data):
        variants = validated_data.pop('variants', None)
        promotions = validated_data.pop('promotions', None)
        product = super().update(instance, validated_data)
        self._replace_children(product, variants, promotions)
        return product

    def _replace_children(self, product, variants, promotions):
        """Variants and promotions are written as whole lists; None leaves them as they are"""
        if variants is not None:
            ProductVariant.objects.using(self.using).filter(product=product).delete()
            ProductVariant.objects.using(self.using).bulk_create(
                [ProductVariant(product=product, **variant) for variant in variants]
            )
        if promotions is not None:
            Promotion.objects.using(self.using).filter(product=product).delete()
            Promotion.objects.using(self.using).bulk_create(
                [Promotion(product=product, **promotion) for promotion in promotions]
            )
        # prefetched children are stale after a rewrite
        product._prefetched_objects_cache = {}
