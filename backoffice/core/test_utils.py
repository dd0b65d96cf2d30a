"""
Test utilities and factories for creating test data
"""
import random
import string
from datetime import timedelta
from decimal import Decimal

from django.utils import timezone

from backoffice.catalog.models import Category, Product, ProductVariant, Promotion
from backoffice.inbox.models import CustomerMessage
from backoffice.orders.models import Order


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def image_payload(name='image'):
        return {'src': f'https://cdn.example.com/{name}.jpg', 'alt': name}

    @staticmethod
    def create_category(name=None, description=None, image=None, link=''):
        """Create a test category"""
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        category = Category(
            name=name,
            description=description or f'Test category {name}',
            image=image or '{"src": "https://cdn.example.com/category.jpg", "alt": "category"}',
            link=link,
        )
        category.save()
        return category

    @staticmethod
    def create_product(name=None, price=None, category=None, images=None):
        """Create a test product"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if price is None:
            price = Decimal('10.00')
        product = Product(
            name=name,
            price=price,
            category=category,
            images=images or [],
        )
        product.save()
        return product

    @staticmethod
    def create_variant(product, name=None, price=None, attributes=None):
        """Create a test product variant"""
        return ProductVariant.objects.create(
            product=product,
            name=name or f'Variant_{TestDataFactory.random_string(4)}',
            price=price,
            attributes=attributes or {},
        )

    @staticmethod
    def create_promotion(product, active=True, days=7, is_active=True):
        """Create a promotion running now (``active``) or one that already ended"""
        now = timezone.now()
        if active:
            valid_from, valid_to = now - timedelta(days=1), now + timedelta(days=days)
        else:
            valid_from, valid_to = now - timedelta(days=days + 1), now - timedelta(days=1)
        return Promotion.objects.create(
            product=product,
            name=f'Promo_{TestDataFactory.random_string(4)}',
            discount_type='percentage',
            discount_value=Decimal('10.00'),
            valid_from=valid_from,
            valid_to=valid_to,
            is_active=is_active,
        )

    @staticmethod
    def create_order(customer_name=None, status='processing', items=None):
        """Create a test order"""
        if not customer_name:
            customer_name = f'Customer_{TestDataFactory.random_string(6)}'
        if items is None:
            items = [{'product_id': None, 'name': 'Lipstick', 'quantity': 2, 'unit_price': Decimal('12.50')}]
        total = sum((item['quantity'] * Decimal(str(item['unit_price'])) for item in items), Decimal('0.00'))
        order = Order(
            customer_name=customer_name,
            customer_email=f'{customer_name.lower()}@test.com',
            items=items,
            total=total,
            status=status,
        )
        order.save()
        return order

    @staticmethod
    def create_message(subject=None, status='unread', name=None):
        """Create a test customer message"""
        if not subject:
            subject = f'Subject_{TestDataFactory.random_string(6)}'
        if not name:
            name = f'Customer_{TestDataFactory.random_string(6)}'
        message = CustomerMessage(
            name=name,
            email=f'{name.lower()}@test.com',
            subject=subject,
            body=f'Body of {subject}',
            status=status,
        )
        message.save()
        return message
