"""
Test suite for the shared query layer
Tests: resource dispatch, list options, error translation, dashboard snapshot
"""
from datetime import timedelta
from unittest import mock

from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import OperationalError
from django.test import TestCase, override_settings
from django.utils import timezone

from backoffice.catalog.models import Category
from backoffice.orders.models import Order
from backoffice.core.exceptions import CatalogError, NotFound, StoreUnavailable, ValidationError
from backoffice.core.services import CatalogQueryService, registered_kinds
from backoffice.core.test_utils import TestDataFactory
from backoffice.core.utils import build_unique_link, generate_id


class UtilsTests(TestCase):
    """Test identifier and slug helpers"""

    def test_generate_id(self):
        identifier = generate_id('order')
        self.assertRegex(identifier, r'^order-[0-9a-f]{32}$')
        self.assertNotEqual(identifier, generate_id('order'))

    def test_build_unique_link(self):
        existing = TestDataFactory.create_category(name='Eye Liner')
        self.assertEqual(existing.link, 'eye-liner')

        link = build_unique_link(Category, 'Eye Liner', 'category-abcdef0123456789', 'default')
        self.assertEqual(link, 'eye-liner-abcdef01')

        # a record keeps its own link
        link = build_unique_link(Category, 'Eye Liner', existing.pk, 'default', exclude_pk=existing.pk)
        self.assertEqual(link, 'eye-liner')

    def test_link_falls_back_to_prefix(self):
        category = TestDataFactory.create_category(name='!!!')
        self.assertEqual(category.link, 'category')


class DispatchTests(TestCase):
    """Test resource kind dispatch"""

    def setUp(self):
        self.service = CatalogQueryService()

    def test_registered_kinds(self):
        self.assertEqual(registered_kinds(), ['category', 'message', 'order', 'product'])

    def test_unknown_kind(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.list('coupon', {})
        self.assertIn('resource_kind', ctx.exception.detail)

    def test_errors_share_a_base(self):
        for error_class in (ValidationError, NotFound, StoreUnavailable):
            self.assertTrue(issubclass(error_class, CatalogError))

    def test_slug_lookup_on_kind_without_slug(self):
        TestDataFactory.create_message(subject='Hello')
        with self.assertRaises(ValidationError) as ctx:
            self.service.get('message', slug='hello')
        self.assertIn('slug', ctx.exception.detail)


class ListOptionTests(TestCase):
    """Test validation of pagination, sort and search options"""

    def setUp(self):
        self.service = CatalogQueryService()
        for name in ['Nails', 'Lips', 'Eyes']:
            TestDataFactory.create_category(name=name)

    def assertInvalid(self, params, field):
        with self.assertRaises(ValidationError) as ctx:
            self.service.list('category', params)
        self.assertIn(field, ctx.exception.detail)

    def test_invalid_options(self):
        self.assertInvalid({'order': 'sideways'}, 'order')
        self.assertInvalid({'offset': -1}, 'offset')
        self.assertInvalid({'limit': 0}, 'limit')
        self.assertInvalid({'limit': 'ten'}, 'limit')
        self.assertInvalid({'sort_by': 'link'}, 'sort_by')

    def test_defaults(self):
        """No options: everything, default sort ascending"""
        result = self.service.list('category')
        self.assertEqual(result['total'], 3)
        self.assertEqual([item['name'] for item in result['items']], ['Eyes', 'Lips', 'Nails'])

    def test_offset_past_end(self):
        result = self.service.list('category', {'offset': 10, 'limit': 5})
        self.assertEqual(result['items'], [])
        self.assertEqual(result['total'], 3)

    def test_empty_search_term_matches_all(self):
        result = self.service.list('category', {'search_term': ''})
        self.assertEqual(result['total'], 3)

    def test_search_term_keeps_whitespace(self):
        """Spaces are part of the contains term"""
        TestDataFactory.create_category(name='Eye Liner')
        TestDataFactory.create_category(name='Lip Gloss')

        result = self.service.list('category', {'search_term': ' '})
        self.assertEqual(result['total'], 2)

        result = self.service.list('category', {'search_term': ' gloss'})
        self.assertEqual([item['name'] for item in result['items']], ['Lip Gloss'])

        result = self.service.list('category', {'search_term': 'lip '})
        self.assertEqual([item['name'] for item in result['items']], ['Lip Gloss'])

    def test_ties_broken_by_id(self):
        """Equal sort keys still produce a stable, id-ordered sequence"""
        TestDataFactory.create_category(name='Eyes')
        TestDataFactory.create_category(name='Eyes')
        items = self.service.list('category', {'sort_by': 'name'})['items']
        ids = [item['id'] for item in items if item['name'] == 'Eyes']
        self.assertEqual(len(ids), 3)
        self.assertEqual(ids, sorted(ids))

    def test_params_not_mutated(self):
        params = {'sort_by': 'name', 'limit': 2}
        self.service.list('category', params)
        self.assertEqual(params, {'sort_by': 'name', 'limit': 2})


class StoreFailureTests(TestCase):
    """Test translation of database failures"""

    def setUp(self):
        self.service = CatalogQueryService()

    def test_list_store_unavailable(self):
        with mock.patch('django.db.models.query.QuerySet.count', side_effect=OperationalError('database is locked')):
            with self.assertRaises(StoreUnavailable):
                self.service.list('category', {})

    def test_add_store_unavailable(self):
        with mock.patch.object(Category, 'save', side_effect=OperationalError('disk I/O error')):
            with self.assertRaises(StoreUnavailable):
                self.service.add('category', {'name': 'Nails', 'image': TestDataFactory.image_payload()})

    def test_remove_store_unavailable(self):
        category = TestDataFactory.create_category()
        with mock.patch('django.db.models.query.QuerySet.delete', side_effect=OperationalError('database is locked')):
            with self.assertRaises(StoreUnavailable):
                self.service.remove('category', category.pk)

    def test_upload_store_unavailable(self):
        with mock.patch('backoffice.core.storage.default_storage') as storage:
            storage.save.side_effect = OSError('read-only file system')
            upload = SimpleUploadedFile('lips.png', b'png-bytes', content_type='image/png')
            with self.assertRaises(StoreUnavailable):
                self.service.add('category', {'name': 'Lips', 'image': upload})
        self.assertFalse(Category.objects.exists())


class DashboardSnapshotTests(TestCase):
    """Test the admin home page lists"""

    def setUp(self):
        self.service = CatalogQueryService()

    @override_settings(CATALOG={'DASHBOARD_LIMIT': 2, 'UPLOAD_DIR': 'uploads'})
    def test_snapshot(self):
        first = TestDataFactory.create_order(customer_name='Ann')
        second = TestDataFactory.create_order(customer_name='Bob')
        third = TestDataFactory.create_order(customer_name='Cid')
        TestDataFactory.create_order(customer_name='Dee', status='shipped')
        now = timezone.now()
        for age, order in enumerate([third, second, first]):
            Order.objects.filter(pk=order.pk).update(created_at=now - timedelta(hours=age))

        unread = TestDataFactory.create_message(subject='Where is my order')
        TestDataFactory.create_message(subject='Thanks', status='read')

        for name in ['Nails', 'Lips', 'Eyes']:
            TestDataFactory.create_category(name=name)

        snapshot = self.service.dashboard_snapshot()

        self.assertEqual(set(snapshot), {'orders', 'messages', 'categories'})
        self.assertEqual([order['id'] for order in snapshot['orders']], [first.pk, second.pk])
        self.assertTrue(all(order['status'] == 'processing' for order in snapshot['orders']))
        self.assertEqual([message['id'] for message in snapshot['messages']], [unread.pk])
        self.assertEqual([category['name'] for category in snapshot['categories']], ['Eyes', 'Lips', 'Nails'])

    def test_snapshot_empty_store(self):
        snapshot = self.service.dashboard_snapshot()
        self.assertEqual(snapshot, {'orders': [], 'messages': [], 'categories': []})
