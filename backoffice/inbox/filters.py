import django_filters

from .models import CustomerMessage


class CustomerMessageFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=CustomerMessage.STATUS_CHOICES)

    class Meta:
        model = CustomerMessage
        fields = ['status']
