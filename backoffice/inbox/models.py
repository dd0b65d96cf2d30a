from django.db import models

from backoffice.core.models import CatalogModel


class CustomerMessage(CatalogModel):
    """Messages sent by shoppers through the storefront contact form"""
    STATUS_CHOICES = [
        ('unread', 'Unread'),
        ('read', 'Read'),
    ]

    id_prefix = 'message'

    name = models.CharField(max_length=200)
    email = models.EmailField()
    subject = models.CharField(max_length=255, db_index=True)
    body = models.TextField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='unread', db_index=True)

    def __str__(self):
        return f"{self.subject} ({self.email})"

    class Meta:
        db_table = 'customer_messages'
