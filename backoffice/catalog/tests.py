"""
Test suite for the catalog module
Tests: category and product list/get/add/update/remove, filters, uploads
"""
import json
import os
import re
import shutil
import tempfile
from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import OperationalError
from django.test import TestCase, override_settings
from django.utils import timezone

from backoffice.core.exceptions import NotFound, StoreUnavailable, ValidationError
from backoffice.core.services import CatalogQueryService
from backoffice.core.test_utils import TestDataFactory
from backoffice.catalog.models import Category, Product, ProductVariant


class CategoryListTests(TestCase):
    """Test category list queries"""

    def setUp(self):
        self.service = CatalogQueryService()

    def test_list_sorted_by_name(self):
        """Categories come back alphabetically with the full count"""
        for name in ['Nails', 'Lips', 'Eyes']:
            TestDataFactory.create_category(name=name)

        result = self.service.list('category', {'sort_by': 'name', 'order': 'asc', 'offset': 0, 'limit': 7})

        self.assertEqual([item['name'] for item in result['items']], ['Eyes', 'Lips', 'Nails'])
        self.assertEqual(result['total'], 3)

    def test_list_sorted_descending(self):
        for name in ['Nails', 'Lips', 'Eyes']:
            TestDataFactory.create_category(name=name)

        result = self.service.list('category', {'sort_by': 'name', 'order': 'desc'})
        self.assertEqual([item['name'] for item in result['items']], ['Nails', 'Lips', 'Eyes'])

    def test_pages_are_contiguous_slices(self):
        """Each page is the matching slice of the full sorted list; total ignores paging"""
        for index in range(10):
            TestDataFactory.create_category(name=f'Cat_{index:02d}')
        full = [item['name'] for item in self.service.list('category', {'sort_by': 'name'})['items']]
        self.assertEqual(len(full), 10)

        for offset, limit in [(0, 3), (3, 3), (8, 5), (10, 2)]:
            result = self.service.list('category', {'sort_by': 'name', 'offset': offset, 'limit': limit})
            self.assertLessEqual(len(result['items']), limit)
            self.assertEqual([item['name'] for item in result['items']], full[offset:offset + limit])
            self.assertEqual(result['total'], 10)

    def test_search_term_contains(self):
        """Search is a case-insensitive substring match on the name"""
        TestDataFactory.create_category(name='Nail Polish')
        TestDataFactory.create_category(name='Nail Care')
        TestDataFactory.create_category(name='Lips')

        result = self.service.list('category', {'search_term': 'nail', 'sort_by': 'name', 'limit': 1})
        self.assertEqual(result['total'], 2)
        self.assertEqual([item['name'] for item in result['items']], ['Nail Care'])

    def test_sort_by_created_at(self):
        first = TestDataFactory.create_category(name='B')
        second = TestDataFactory.create_category(name='A')
        Category.objects.filter(pk=first.pk).update(created_at=timezone.now() - timedelta(days=1))

        result = self.service.list('category', {'sort_by': 'created_at', 'order': 'asc'})
        self.assertEqual([item['id'] for item in result['items']], [first.pk, second.pk])

    def test_items_have_structured_image(self):
        TestDataFactory.create_category(name='Eyes')
        item = self.service.list('category', {'sort_by': 'name'})['items'][0]
        self.assertEqual(item['image'], {'src': 'https://cdn.example.com/category.jpg', 'alt': 'category'})

    def test_invalid_sort_field(self):
        """Product-only sort fields are rejected for categories"""
        with self.assertRaises(ValidationError) as ctx:
            self.service.list('category', {'sort_by': 'price'})
        self.assertIn('sort_by', ctx.exception.detail)

    def test_category_has_no_filters(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.list('category', {'status': 'unread'})
        self.assertIn('status', ctx.exception.detail)


class CategoryMutationTests(TestCase):
    """Test category get/add/update/remove"""

    def setUp(self):
        self.service = CatalogQueryService()

    def test_add_assigns_prefixed_id(self):
        """Added categories get a category-* id and a structured image"""
        item = self.service.add('category', {
            'name': 'New',
            'description': 'd',
            'image': TestDataFactory.image_payload('new'),
        })
        self.assertRegex(item['id'], r'^category-[0-9a-f]{32}$')
        self.assertIsInstance(item['image'], dict)
        self.assertEqual(item['image'], {'src': 'https://cdn.example.com/new.jpg', 'alt': 'new'})
        self.assertEqual(item['link'], 'new')
        self.assertIsNotNone(item['created_at'])
        self.assertIsNotNone(item['modified_at'])

    def test_image_stored_as_json_blob(self):
        item = self.service.add('category', {'name': 'Blob', 'image': TestDataFactory.image_payload('blob')})
        stored = Category.objects.get(pk=item['id']).image
        self.assertIsInstance(stored, str)
        self.assertEqual(json.loads(stored), {'src': 'https://cdn.example.com/blob.jpg', 'alt': 'blob'})

    def test_add_then_get_round_trip(self):
        added = self.service.add('category', {
            'name': 'Nail Polish',
            'description': 'A wide range of nail polish',
            'image': TestDataFactory.image_payload('nail-polish'),
        })
        fetched = self.service.get('category', id=added['id'])
        self.assertEqual(fetched, added)
        self.assertEqual(fetched['name'], 'Nail Polish')
        self.assertEqual(fetched['description'], 'A wide range of nail polish')

    def test_add_missing_required_fields(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.add('category', {'description': 'no name'})
        self.assertIn('name', ctx.exception.detail)
        self.assertIn('image', ctx.exception.detail)

    def test_add_rejects_server_assigned_fields(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.add('category', {
                'id': 'category-mine',
                'name': 'Mine',
                'image': TestDataFactory.image_payload(),
            })
        self.assertIn('id', ctx.exception.detail)
        self.assertFalse(Category.objects.filter(pk='category-mine').exists())

    def test_add_rejects_malformed_image(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.add('category', {'name': 'Bad', 'image': 'not-an-image'})
        self.assertIn('image', ctx.exception.detail)

    def test_links_are_unique(self):
        first = self.service.add('category', {'name': 'Nail Polish', 'image': TestDataFactory.image_payload()})
        second = self.service.add('category', {'name': 'Nail Polish', 'image': TestDataFactory.image_payload()})
        self.assertEqual(first['link'], 'nail-polish')
        self.assertNotEqual(second['link'], first['link'])
        self.assertTrue(second['link'].startswith('nail-polish-'))

    def test_get_by_slug(self):
        category = TestDataFactory.create_category(name='Nail Polish')
        item = self.service.get('category', slug='nail-polish')
        self.assertEqual(item['id'], category.pk)

    def test_get_missing(self):
        with self.assertRaises(NotFound):
            self.service.get('category', id='missing')

    def test_get_requires_exactly_one_lookup(self):
        category = TestDataFactory.create_category(name='Eyes')
        with self.assertRaises(ValidationError):
            self.service.get('category')
        with self.assertRaises(ValidationError):
            self.service.get('category', id=category.pk, slug=category.link)

    def test_update_applies_only_supplied_fields(self):
        """A payload without image leaves the stored image untouched"""
        category = TestDataFactory.create_category(name='Lips', description='Old')
        item = self.service.update('category', category.pk, {'description': 'New'})

        self.assertEqual(item['description'], 'New')
        self.assertEqual(item['name'], 'Lips')
        self.assertEqual(item['image'], {'src': 'https://cdn.example.com/category.jpg', 'alt': 'category'})
        self.assertEqual(Category.objects.get(pk=category.pk).image, category.image)

    def test_update_image(self):
        category = TestDataFactory.create_category(name='Lips')
        item = self.service.update('category', category.pk, {'image': TestDataFactory.image_payload('lips')})
        self.assertEqual(item['image'], {'src': 'https://cdn.example.com/lips.jpg', 'alt': 'lips'})

    def test_update_with_empty_payload(self):
        """Only modified_at may change"""
        category = TestDataFactory.create_category(name='Eyes')
        before = self.service.get('category', id=category.pk)
        after = self.service.update('category', category.pk, {})

        self.assertGreaterEqual(
            Category.objects.get(pk=category.pk).modified_at, category.modified_at
        )
        before.pop('modified_at')
        after.pop('modified_at')
        self.assertEqual(after, before)

    def test_update_cannot_change_id(self):
        category = TestDataFactory.create_category(name='Eyes')
        with self.assertRaises(ValidationError):
            self.service.update('category', category.pk, {'id': 'category-other'})
        self.assertTrue(Category.objects.filter(pk=category.pk).exists())

    def test_update_missing(self):
        with self.assertRaises(NotFound):
            self.service.update('category', 'category-missing', {'name': 'X'})

    def test_remove_then_get(self):
        category = TestDataFactory.create_category(name='Eyes')
        self.service.remove('category', category.pk)
        with self.assertRaises(NotFound):
            self.service.get('category', id=category.pk)

    def test_remove_twice(self):
        """Deleting twice is not idempotent"""
        category = TestDataFactory.create_category(name='Eyes')
        self.service.remove('category', category.pk)
        with self.assertRaises(NotFound):
            self.service.remove('category', category.pk)

    def test_malformed_stored_image(self):
        """A corrupt image blob surfaces as a store failure"""
        category = TestDataFactory.create_category(name='Eyes', image='{"src": "https://cdn')
        with self.assertRaises(StoreUnavailable):
            self.service.get('category', id=category.pk)
        with self.assertRaises(StoreUnavailable):
            self.service.list('category', {})

    def test_remove_keeps_products(self):
        category = TestDataFactory.create_category(name='Eyes')
        product = TestDataFactory.create_product(name='Mascara', category=category)
        self.service.remove('category', category.pk)
        product.refresh_from_db()
        self.assertIsNone(product.category_id)


class CategoryUploadTests(TestCase):
    """Test image uploads on add/update"""

    def setUp(self):
        self.media_root = tempfile.mkdtemp()
        self.settings_override = override_settings(MEDIA_ROOT=self.media_root, MEDIA_URL='/media/')
        self.settings_override.enable()
        self.service = CatalogQueryService()

    def tearDown(self):
        self.settings_override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)

    def test_add_with_uploaded_file(self):
        upload = SimpleUploadedFile('summer_sale.png', b'\x89PNG\r\n\x1a\nfake', content_type='image/png')
        item = self.service.add('category', {'name': 'Sale', 'image': upload})

        self.assertTrue(item['image']['src'].startswith('/media/uploads/categories/'))
        self.assertTrue(item['image']['src'].endswith('summer_sale.png'))
        self.assertEqual(item['image']['alt'], 'summer sale')

        stored_name = item['image']['src'][len('/media/'):]
        self.assertTrue(default_storage.exists(stored_name))
        self.assertTrue(os.path.exists(os.path.join(self.media_root, stored_name)))

    def test_update_with_uploaded_file(self):
        category = TestDataFactory.create_category(name='Eyes')
        upload = SimpleUploadedFile('eyes.jpg', b'jpeg-bytes', content_type='image/jpeg')
        item = self.service.update('category', category.pk, {'image': upload})
        self.assertTrue(re.match(r'^/media/uploads/categories/[0-9a-f]{8}-eyes\.jpg$', item['image']['src']))

    def stored_files(self):
        return [name for _, _, files in os.walk(self.media_root) for name in files]

    def test_rejected_add_leaves_no_file(self):
        """An upload is discarded when the rest of the payload is invalid"""
        upload = SimpleUploadedFile('lips.png', b'png-bytes', content_type='image/png')
        with self.assertRaises(ValidationError) as ctx:
            self.service.add('category', {'image': upload})
        self.assertIn('name', ctx.exception.detail)
        self.assertFalse(Category.objects.exists())
        self.assertEqual(self.stored_files(), [])

    def test_rejected_update_leaves_no_file(self):
        category = TestDataFactory.create_category(name='Eyes')
        upload = SimpleUploadedFile('eyes.jpg', b'jpeg-bytes', content_type='image/jpeg')
        with self.assertRaises(ValidationError):
            self.service.update('category', category.pk, {'name': '', 'image': upload})
        self.assertEqual(self.stored_files(), [])
        self.assertEqual(Category.objects.get(pk=category.pk).image, category.image)

    def test_failed_write_leaves_no_file(self):
        upload = SimpleUploadedFile('lips.png', b'png-bytes', content_type='image/png')
        with mock.patch.object(Category, 'save', side_effect=OperationalError('disk I/O error')):
            with self.assertRaises(StoreUnavailable):
                self.service.add('category', {'name': 'Lips', 'image': upload})
        self.assertEqual(self.stored_files(), [])

    def test_rejected_product_leaves_no_files(self):
        uploads = [
            SimpleUploadedFile('front.png', b'png-bytes', content_type='image/png'),
            SimpleUploadedFile('back.png', b'png-bytes', content_type='image/png'),
        ]
        with self.assertRaises(ValidationError) as ctx:
            self.service.add('product', {'name': 'Gloss', 'price': '-1.00', 'images': uploads})
        self.assertIn('price', ctx.exception.detail)
        self.assertFalse(Product.objects.exists())
        self.assertEqual(self.stored_files(), [])


class ProductTests(TestCase):
    """Test product queries and mutations"""

    def setUp(self):
        self.service = CatalogQueryService()
        self.nails = TestDataFactory.create_category(name='Nails')
        self.lips = TestDataFactory.create_category(name='Lips')

    def product_payload(self, **overrides):
        payload = {
            'name': 'Gel Polish',
            'description': 'Long lasting',
            'price': '19.99',
            'category_id': self.nails.pk,
            'images': [TestDataFactory.image_payload('gel')],
            'variants': [
                {'name': 'Red', 'attributes': {'color': 'red'}},
                {'name': 'Pink', 'price': '21.50', 'attributes': {'color': 'pink'}},
            ],
            'promotions': [{
                'name': 'Launch',
                'discount_type': 'percentage',
                'discount_value': '15.00',
                'valid_from': (timezone.now() - timedelta(days=1)).isoformat(),
                'valid_to': (timezone.now() + timedelta(days=1)).isoformat(),
            }],
        }
        payload.update(overrides)
        return payload

    def test_add_product(self):
        item = self.service.add('product', self.product_payload())

        self.assertRegex(item['id'], r'^product-[0-9a-f]{32}$')
        self.assertEqual(item['price'], Decimal('19.99'))
        self.assertEqual(item['category_id'], self.nails.pk)
        self.assertEqual(item['category_name'], 'Nails')
        self.assertEqual(item['images'], [{'src': 'https://cdn.example.com/gel.jpg', 'alt': 'gel'}])
        self.assertEqual([variant['name'] for variant in item['variants']], ['Red', 'Pink'])
        self.assertTrue(item['has_variants'])
        self.assertTrue(item['has_active_promotion'])

    def test_add_then_get_round_trip(self):
        added = self.service.add('product', self.product_payload())
        self.assertEqual(self.service.get('product', id=added['id']), added)
        self.assertEqual(self.service.get('product', slug='gel-polish'), added)

    def test_add_requires_name_and_price(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.add('product', {'description': 'nameless'})
        self.assertIn('name', ctx.exception.detail)
        self.assertIn('price', ctx.exception.detail)

    def test_add_rejects_negative_price(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.add('product', self.product_payload(price='-1.00'))
        self.assertIn('price', ctx.exception.detail)

    def test_add_rejects_unknown_category(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.add('product', self.product_payload(category_id='category-missing'))
        self.assertIn('category_id', ctx.exception.detail)

    def test_add_rejects_inverted_promotion_window(self):
        payload = self.product_payload(promotions=[{
            'name': 'Broken',
            'discount_value': '5.00',
            'valid_from': (timezone.now() + timedelta(days=2)).isoformat(),
            'valid_to': timezone.now().isoformat(),
        }])
        with self.assertRaises(ValidationError) as ctx:
            self.service.add('product', payload)
        self.assertIn('promotions', ctx.exception.detail)
        self.assertFalse(Product.objects.exists())

    def test_update_replaces_variants(self):
        added = self.service.add('product', self.product_payload())
        item = self.service.update('product', added['id'], {'variants': [{'name': 'Nude'}]})

        self.assertEqual([variant['name'] for variant in item['variants']], ['Nude'])
        self.assertEqual(ProductVariant.objects.filter(product_id=added['id']).count(), 1)
        # untouched fields
        self.assertEqual(item['price'], Decimal('19.99'))
        self.assertTrue(item['has_active_promotion'])

    def test_update_price_keeps_children(self):
        added = self.service.add('product', self.product_payload())
        item = self.service.update('product', added['id'], {'price': '9.99'})
        self.assertEqual(item['price'], Decimal('9.99'))
        self.assertEqual(len(item['variants']), 2)

    def test_sort_by_price(self):
        TestDataFactory.create_product(name='Cheap', price=Decimal('5.00'))
        TestDataFactory.create_product(name='Pricey', price=Decimal('50.00'))
        TestDataFactory.create_product(name='Middle', price=Decimal('20.00'))

        result = self.service.list('product', {'sort_by': 'price', 'order': 'desc'})
        self.assertEqual([item['name'] for item in result['items']], ['Pricey', 'Middle', 'Cheap'])

    def test_filter_by_category(self):
        TestDataFactory.create_product(name='Polish', category=self.nails)
        TestDataFactory.create_product(name='File', category=self.nails)
        TestDataFactory.create_product(name='Gloss', category=self.lips)

        result = self.service.list('product', {'category': self.nails.pk, 'sort_by': 'name'})
        self.assertEqual(result['total'], 2)
        self.assertEqual([item['name'] for item in result['items']], ['File', 'Polish'])

    def test_filter_by_variants(self):
        with_variants = TestDataFactory.create_product(name='Polish')
        TestDataFactory.create_variant(with_variants, name='Red')
        TestDataFactory.create_variant(with_variants, name='Blue')
        TestDataFactory.create_product(name='File')

        result = self.service.list('product', {'variants': True})
        self.assertEqual([item['name'] for item in result['items']], ['Polish'])
        self.assertEqual(result['total'], 1)

        result = self.service.list('product', {'variants': False})
        self.assertEqual([item['name'] for item in result['items']], ['File'])

    def test_filter_by_active_promotion(self):
        running = TestDataFactory.create_product(name='Running')
        TestDataFactory.create_promotion(running, active=True)
        expired = TestDataFactory.create_product(name='Expired')
        TestDataFactory.create_promotion(expired, active=False)
        disabled = TestDataFactory.create_product(name='Disabled')
        TestDataFactory.create_promotion(disabled, active=True, is_active=False)

        result = self.service.list('product', {'promotion': True})
        self.assertEqual([item['name'] for item in result['items']], ['Running'])
        self.assertTrue(result['items'][0]['has_active_promotion'])

        result = self.service.list('product', {'promotion': False, 'sort_by': 'name'})
        self.assertEqual([item['name'] for item in result['items']], ['Disabled', 'Expired'])

    def test_filters_combine_with_search(self):
        polish = TestDataFactory.create_product(name='Red Polish', category=self.nails)
        TestDataFactory.create_variant(polish)
        plain = TestDataFactory.create_product(name='Clear Polish', category=self.nails)
        gloss = TestDataFactory.create_product(name='Red Gloss', category=self.lips)
        TestDataFactory.create_variant(gloss)

        result = self.service.list('product', {
            'category': self.nails.pk, 'variants': True, 'search_term': 'polish',
        })
        self.assertEqual([item['id'] for item in result['items']], [polish.pk])
        self.assertNotIn(plain.pk, [item['id'] for item in result['items']])

    def test_unknown_filter(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.list('product', {'colour': 'red'})
        self.assertIn('colour', ctx.exception.detail)

    def test_remove_product_deletes_children(self):
        product = TestDataFactory.create_product(name='Polish')
        TestDataFactory.create_variant(product)
        self.service.remove('product', product.pk)
        self.assertFalse(ProductVariant.objects.exists())


class AlternateDatabaseTests(TestCase):
    """Test services bound to a database other than ``default``"""
    databases = {'default', 'other'}

    def setUp(self):
        self.service = CatalogQueryService(using='other')

    def test_add_list_get_on_other_alias(self):
        # same link already taken in the default database only
        TestDataFactory.create_category(name='Eyes')

        item = self.service.add('category', {
            'name': 'Eyes', 'link': 'eyes', 'image': TestDataFactory.image_payload('eyes'),
        })
        self.assertEqual(item['link'], 'eyes')
        self.assertTrue(Category.objects.using('other').filter(pk=item['id']).exists())
        self.assertFalse(Category.objects.filter(pk=item['id']).exists())

        result = self.service.list('category', {})
        self.assertEqual([entry['id'] for entry in result['items']], [item['id']])
        self.assertEqual(result['total'], 1)
        self.assertEqual(self.service.get('category', slug='eyes'), item)

    def test_link_collision_on_other_alias(self):
        self.service.add('category', {'name': 'Eyes', 'link': 'eyes', 'image': TestDataFactory.image_payload()})
        with self.assertRaises(ValidationError) as ctx:
            self.service.add('category', {'name': 'Eyes', 'link': 'eyes', 'image': TestDataFactory.image_payload()})
        self.assertIn('link', ctx.exception.detail)
        self.assertEqual(Category.objects.using('other').count(), 1)

    def test_generated_link_checked_on_other_alias(self):
        TestDataFactory.create_category(name='Nail Polish')
        item = self.service.add('category', {'name': 'Nail Polish', 'image': TestDataFactory.image_payload()})
        self.assertEqual(item['link'], 'nail-polish')

    def test_product_with_category_on_other_alias(self):
        category = self.service.add('category', {'name': 'Nails', 'image': TestDataFactory.image_payload()})
        product = self.service.add('product', {
            'name': 'Gel Polish',
            'price': '19.99',
            'category_id': category['id'],
            'variants': [{'name': 'Red'}],
        })
        self.assertEqual(product['category_name'], 'Nails')
        self.assertTrue(product['has_variants'])

        result = self.service.list('product', {'category': category['id']})
        self.assertEqual([entry['id'] for entry in result['items']], [product['id']])
        self.assertFalse(Product.objects.exists())
