"""
Test suite for customer messages
"""
from django.test import TestCase

from backoffice.core.exceptions import NotFound, ValidationError
from backoffice.core.services import CatalogQueryService
from backoffice.core.test_utils import TestDataFactory
from backoffice.inbox.models import CustomerMessage
from backoffice.inbox.services import MessageService


class CustomerMessageTests(TestCase):
    """Test message list/add and the read flag"""

    def setUp(self):
        self.service = CatalogQueryService()

    def test_add_message(self):
        item = self.service.add('message', {
            'name': 'Jane',
            'email': 'jane@test.com',
            'subject': 'Shipping question',
            'body': 'When will my order arrive?',
        })
        self.assertRegex(item['id'], r'^message-[0-9a-f]{32}$')
        self.assertEqual(item['status'], 'unread')

    def test_add_requires_body(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.add('message', {'name': 'Jane', 'email': 'jane@test.com', 'subject': 'Hi'})
        self.assertIn('body', ctx.exception.detail)

    def test_unread_filter(self):
        TestDataFactory.create_message(subject='First')
        TestDataFactory.create_message(subject='Second', status='read')

        result = self.service.list('message', {'status': 'unread'})
        self.assertEqual([item['subject'] for item in result['items']], ['First'])

    def test_sort_by_subject(self):
        for subject in ['Returns', 'Billing', 'Delivery']:
            TestDataFactory.create_message(subject=subject)

        result = self.service.list('message', {'sort_by': 'subject', 'offset': 1, 'limit': 1})
        self.assertEqual([item['subject'] for item in result['items']], ['Delivery'])
        self.assertEqual(result['total'], 3)

    def test_search_subject(self):
        TestDataFactory.create_message(subject='Refund request')
        TestDataFactory.create_message(subject='Wholesale enquiry')
        result = self.service.list('message', {'search_term': 'refund'})
        self.assertEqual(result['total'], 1)

    def test_mark_read(self):
        message = TestDataFactory.create_message(subject='Hello')
        item = MessageService().mark_read(message.pk)
        self.assertEqual(item['status'], 'read')
        message.refresh_from_db()
        self.assertEqual(message.status, 'read')

    def test_mark_read_through_dispatcher(self):
        message = TestDataFactory.create_message(subject='Hello')
        self.service.service_for('message').mark_read(message.pk)
        self.assertEqual(CustomerMessage.objects.get(pk=message.pk).status, 'read')

    def test_mark_read_missing(self):
        with self.assertRaises(NotFound):
            MessageService().mark_read('message-missing')
