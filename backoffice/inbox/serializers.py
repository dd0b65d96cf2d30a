from backoffice.core.serializers import ResourceSerializer
from .models import CustomerMessage


class CustomerMessageSerializer(ResourceSerializer):
    class Meta:
        model = CustomerMessage
        fields = ['id', 'name', 'email', 'subject', 'body', 'status', 'created_at', 'modified_at']
        read_only_fields = ['id', 'created_at', 'modified_at']
