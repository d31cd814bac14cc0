import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Part',
            fields=[
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('code', models.CharField(max_length=64, unique=True, verbose_name='part number')),
                ('name', models.CharField(max_length=255, verbose_name='part name')),
                ('customer_code', models.CharField(blank=True, max_length=64, verbose_name='customer code')),
                ('supplier_code', models.CharField(blank=True, max_length=64, verbose_name='supplier code')),
                ('model_code', models.CharField(blank=True, max_length=100, verbose_name='model')),
                ('variant', models.CharField(blank=True, max_length=100, verbose_name='variant')),
                ('standard_packing', models.PositiveIntegerField(default=1, verbose_name='standard packing')),
                ('stock', models.IntegerField(db_index=True, default=0, verbose_name='stock')),
                ('address', models.CharField(blank=True, help_text='Storage location / bin', max_length=100, verbose_name='address')),
                ('is_active', models.BooleanField(db_index=True, default=True, verbose_name='active')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='created by')),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='updated by')),
            ],
            options={
                'verbose_name': 'part',
                'verbose_name_plural': 'parts',
                'ordering': ['code'],
                'indexes': [
                    models.Index(fields=['is_active', 'stock'], name='part_active_stock_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(stock__gte=0), name='part_stock_non_negative'),
                ],
            },
        ),
    ]
