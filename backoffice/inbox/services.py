from backoffice.core.services import ResourceService, register_resource
from .filters import CustomerMessageFilter
from .models import CustomerMessage
from .serializers import CustomerMessageSerializer


@register_resource
class MessageService(ResourceService):
    resource_kind = 'message'
    model = CustomerMessage
    serializer_class = CustomerMessageSerializer
    filterset_class = CustomerMessageFilter
    sort_fields = ('created_at', 'modified_at', 'subject')
    default_sort = 'created_at'
    search_field = 'subject'

    def mark_read(self, id):
        """Shortcut used when an admin opens a message"""
        return self.update(id, {'status': 'read'})
