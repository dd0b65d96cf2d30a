"""
Test suite for orders
Tests: totals, status filter, sorting, validation of order lines
"""
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from backoffice.core.exceptions import NotFound, ValidationError
from backoffice.core.services import CatalogQueryService
from backoffice.core.test_utils import TestDataFactory
from backoffice.orders.models import Order


class OrderTests(TestCase):
    """Test order list/add/update"""

    def setUp(self):
        self.service = CatalogQueryService()

    def order_payload(self, **overrides):
        payload = {
            'customer_name': 'Jane Doe',
            'customer_email': 'jane@test.com',
            'items': [
                {'product_id': 'product-1', 'name': 'Lipstick', 'quantity': 2, 'unit_price': '12.50'},
                {'name': 'Mascara', 'quantity': 1, 'unit_price': '8.99'},
            ],
        }
        payload.update(overrides)
        return payload

    def test_add_computes_total(self):
        item = self.service.add('order', self.order_payload())

        self.assertRegex(item['id'], r'^order-[0-9a-f]{32}$')
        self.assertEqual(item['total'], Decimal('33.99'))
        self.assertEqual(item['status'], 'processing')
        self.assertEqual(item['items'][1]['product_id'], None)
        self.assertEqual(item['items'][0]['unit_price'], Decimal('12.50'))

    def test_add_then_get_round_trip(self):
        added = self.service.add('order', self.order_payload())
        self.assertEqual(self.service.get('order', id=added['id']), added)

    def test_total_is_not_writable(self):
        item = self.service.add('order', self.order_payload(total='1.00'))
        self.assertEqual(item['total'], Decimal('33.99'))

    def test_items_required(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.add('order', self.order_payload(items=[]))
        self.assertIn('items', ctx.exception.detail)

    def test_invalid_line(self):
        payload = self.order_payload(items=[{'name': 'Lipstick', 'quantity': 0, 'unit_price': '12.50'}])
        with self.assertRaises(ValidationError) as ctx:
            self.service.add('order', payload)
        self.assertEqual(list(ctx.exception.detail['items'][0]), ['quantity'])
        self.assertFalse(Order.objects.exists())

    def test_invalid_email(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.add('order', self.order_payload(customer_email='not-an-email'))
        self.assertIn('customer_email', ctx.exception.detail)

    def test_update_status(self):
        order = TestDataFactory.create_order()
        item = self.service.update('order', order.pk, {'status': 'shipped'})
        self.assertEqual(item['status'], 'shipped')
        self.assertEqual(item['total'], Decimal('25.00'))

    def test_update_rejects_unknown_status(self):
        order = TestDataFactory.create_order()
        with self.assertRaises(ValidationError) as ctx:
            self.service.update('order', order.pk, {'status': 'lost'})
        self.assertIn('status', ctx.exception.detail)

    def test_update_items_recomputes_total(self):
        order = TestDataFactory.create_order()
        item = self.service.update('order', order.pk, {
            'items': [{'name': 'Blush', 'quantity': 3, 'unit_price': '4.00'}],
        })
        self.assertEqual(item['total'], Decimal('12.00'))

    def test_update_rejects_incomplete_line(self):
        order = TestDataFactory.create_order()
        with self.assertRaises(ValidationError) as ctx:
            self.service.update('order', order.pk, {'items': [{'name': 'Blush', 'unit_price': '4.00'}]})
        self.assertIn('quantity', ctx.exception.detail['items'][0])
        order.refresh_from_db()
        self.assertEqual(order.total, Decimal('25.00'))

    def test_status_filter(self):
        TestDataFactory.create_order(customer_name='Ann')
        TestDataFactory.create_order(customer_name='Bob', status='shipped')
        TestDataFactory.create_order(customer_name='Cid', status='cancelled')

        result = self.service.list('order', {'status': 'shipped'})
        self.assertEqual([item['customer_name'] for item in result['items']], ['Bob'])
        self.assertEqual(result['total'], 1)

    def test_status_filter_rejects_unknown_value(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.list('order', {'status': 'lost'})
        self.assertIn('status', ctx.exception.detail)

    def test_sort_by_total(self):
        TestDataFactory.create_order(customer_name='Small', items=[
            {'name': 'Nail file', 'quantity': 1, 'unit_price': Decimal('2.00')},
        ])
        TestDataFactory.create_order(customer_name='Large', items=[
            {'name': 'Palette', 'quantity': 2, 'unit_price': Decimal('40.00')},
        ])
        result = self.service.list('order', {'sort_by': 'total', 'order': 'desc'})
        self.assertEqual([item['customer_name'] for item in result['items']], ['Large', 'Small'])

    def test_newest_first(self):
        older = TestDataFactory.create_order(customer_name='Old')
        newer = TestDataFactory.create_order(customer_name='New')
        Order.objects.filter(pk=older.pk).update(created_at=timezone.now() - timedelta(days=2))

        result = self.service.list('order', {'sort_by': 'created_at', 'order': 'desc', 'limit': 1})
        self.assertEqual([item['id'] for item in result['items']], [newer.pk])
        self.assertEqual(result['total'], 2)

    def test_search_customer_name(self):
        TestDataFactory.create_order(customer_name='Jane Doe')
        TestDataFactory.create_order(customer_name='John Smith')
        result = self.service.list('order', {'search_term': 'DOE'})
        self.assertEqual([item['customer_name'] for item in result['items']], ['Jane Doe'])

    def test_orders_have_no_slug(self):
        with self.assertRaises(ValidationError):
            self.service.get('order', slug='jane')

    def test_remove(self):
        order = TestDataFactory.create_order()
        self.service.remove('order', order.pk)
        with self.assertRaises(NotFound):
            self.service.remove('order', order.pk)
