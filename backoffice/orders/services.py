from backoffice.core.services import ResourceService, register_resource
from .filters import OrderFilter
from .models import Order
from .serializers import OrderSerializer


@register_resource
class OrderService(ResourceService):
    resource_kind = 'order'
    model = Order
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    sort_fields = ('created_at', 'modified_at', 'total', 'customer_name')
    default_sort = 'created_at'
    search_field = 'customer_name'
