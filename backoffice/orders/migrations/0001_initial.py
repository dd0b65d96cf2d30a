# Generated manually
from decimal import Decimal

import django.core.serializers.json
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.CharField(editable=False, max_length=64, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('modified_at', models.DateTimeField(auto_now=True)),
                ('customer_name', models.CharField(db_index=True, max_length=200)),
                ('customer_email', models.EmailField(max_length=254)),
                ('items', models.JSONField(default=list, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ('total', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('status', models.CharField(choices=[('processing', 'Processing'), ('shipped', 'Shipped'), ('delivered', 'Delivered'), ('cancelled', 'Cancelled')], db_index=True, default='processing', max_length=20)),
            ],
            options={
                'db_table': 'orders',
            },
        ),
    ]
