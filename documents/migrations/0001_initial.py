import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


STATUS_CHOICES = [('draft', 'Draft'), ('completed', 'Completed'), ('cancelled', 'Cancelled')]


def base_fields():
    return [
        ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='created at')),
        ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
        ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='created by')),
        ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='updated by')),
    ]


def header_fields(related_name):
    return [
        ('occurred_at', models.DateTimeField(db_index=True, verbose_name='occurred at')),
        ('status', models.CharField(choices=STATUS_CHOICES, db_index=True, default='draft', max_length=10, verbose_name='status')),
        ('notes', models.TextField(blank=True, verbose_name='notes')),
        ('actor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name=related_name, to=settings.AUTH_USER_MODEL, verbose_name='actor')),
    ]


def item_fields(document_model, document_label, part_related_name):
    return [
        ('qty', models.PositiveIntegerField(verbose_name='quantity')),
        ('position', models.PositiveIntegerField(default=0, verbose_name='position')),
        ('document', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to=document_model, verbose_name=document_label)),
        ('part', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name=part_related_name, to='parts.part', verbose_name='part')),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('parts', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='DocumentSequence',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=50, unique=True, verbose_name='name')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
            ],
            options={
                'verbose_name': 'document sequence',
                'verbose_name_plural': 'document sequences',
            },
        ),
        migrations.CreateModel(
            name='Receiving',
            fields=base_fields() + header_fields('receiving_documents') + [
                ('is_confirmed', models.BooleanField(db_index=True, default=False, verbose_name='confirmed')),
                ('number', models.CharField(max_length=32, unique=True, verbose_name='document number')),
            ],
            options={
                'verbose_name': 'receiving',
                'verbose_name_plural': 'receivings',
                'ordering': ['-occurred_at'],
                'abstract': False,
                'indexes': [
                    models.Index(fields=['status', 'is_confirmed'], name='receiving_status_conf_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Outgoing',
            fields=base_fields() + header_fields('outgoing_documents') + [
                ('is_confirmed', models.BooleanField(db_index=True, default=False, verbose_name='confirmed')),
                ('number', models.CharField(max_length=32, unique=True, verbose_name='document number')),
            ],
            options={
                'verbose_name': 'outgoing',
                'verbose_name_plural': 'outgoings',
                'ordering': ['-occurred_at'],
                'abstract': False,
                'indexes': [
                    models.Index(fields=['status', 'is_confirmed'], name='outgoing_status_conf_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Request',
            fields=base_fields() + header_fields('request_documents') + [
                ('number', models.PositiveIntegerField(unique=True, verbose_name='request number')),
                ('destination', models.CharField(blank=True, max_length=255, verbose_name='destination')),
            ],
            options={
                'verbose_name': 'request',
                'verbose_name_plural': 'requests',
                'ordering': ['-occurred_at'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='ReceivingItem',
            fields=base_fields() + item_fields('documents.receiving', 'receiving', 'receiving_items'),
            options={
                'verbose_name': 'receiving item',
                'verbose_name_plural': 'receiving items',
                'ordering': ['position'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='OutgoingItem',
            fields=base_fields() + item_fields('documents.outgoing', 'outgoing', 'outgoing_items'),
            options={
                'verbose_name': 'outgoing item',
                'verbose_name_plural': 'outgoing items',
                'ordering': ['position'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='RequestItem',
            fields=base_fields() + item_fields('documents.request', 'request', 'request_items') + [
                ('is_urgent', models.BooleanField(default=False, verbose_name='urgent')),
                ('is_supplied', models.BooleanField(db_index=True, default=False, verbose_name='supplied')),
            ],
            options={
                'verbose_name': 'request item',
                'verbose_name_plural': 'request items',
                'ordering': ['position'],
                'abstract': False,
            },
        ),
    ]
