from backoffice.core.services import ResourceService, register_resource
from .filters import ProductFilter
from .models import Category, Product
from .serializers import CategorySerializer, ProductSerializer


@register_resource
class CategoryService(ResourceService):
    resource_kind = 'category'
    model = Category
    serializer_class = CategorySerializer
    sort_fields = ('name', 'created_at', 'modified_at')
    default_sort = 'name'
    search_field = 'name'
    slug_field = 'link'


@register_resource
class ProductService(ResourceService):
    resource_kind = 'product'
    model = Product
    serializer_class = ProductSerializer
    filterset_class = ProductFilter
    sort_fields = ('name', 'price', 'created_at', 'modified_at')
    default_sort = 'name'
    search_field = 'name'
    slug_field = 'link'

    def get_queryset(self):
        return super().get_queryset().select_related('category').prefetch_related('variants', 'promotions')
