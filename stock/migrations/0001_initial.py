import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('parts', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='PartMovement',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('stock_before', models.IntegerField(verbose_name='stock before')),
                ('movement_type', models.CharField(choices=[('in', 'In'), ('out', 'Out')], db_index=True, max_length=3, verbose_name='type')),
                ('qty', models.PositiveIntegerField(verbose_name='quantity')),
                ('stock_after', models.IntegerField(verbose_name='stock after')),
                ('document_kind', models.CharField(choices=[('RECEIVING', 'Receiving'), ('OUTGOING', 'Outgoing'), ('OTHER', 'Other')], max_length=16, verbose_name='document kind')),
                ('document_id', models.UUIDField(help_text='UUID of the receiving / outgoing; resolved per kind', verbose_name='document ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='created at')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='created by')),
                ('part', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='parts.part', verbose_name='part')),
            ],
            options={
                'verbose_name': 'part movement',
                'verbose_name_plural': 'part movements',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['document_kind', 'document_id'], name='movement_document_idx'),
                    models.Index(fields=['part', 'created_at'], name='movement_part_created_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(qty__gt=0), name='movement_qty_positive'),
                    models.CheckConstraint(
                        condition=(
                            models.Q(movement_type='in', stock_after=models.F('stock_before') + models.F('qty'))
                            | models.Q(movement_type='out', stock_after=models.F('stock_before') - models.F('qty'))
                        ),
                        name='movement_balance_consistent',
                    ),
                ],
            },
        ),
    ]
