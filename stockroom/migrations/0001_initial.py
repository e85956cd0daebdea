"""
Initial migration for Stockroom models.
"""

from decimal import Decimal
import django.db.models.deletion
import django.db.models.functions.text
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


REASON_CHOICES = [
    ('received', 'Received'),
    ('sold', 'Sold'),
    ('damaged', 'Damaged'),
    ('expired', 'Expired'),
    ('lost', 'Lost'),
    ('stolen', 'Stolen'),
    ('returned', 'Returned'),
    ('used_in_service', 'Used in service'),
    ('transfer_in', 'Transfer in'),
    ('transfer_out', 'Transfer out'),
    ('stocktake_adjustment', 'Stocktake adjustment'),
    ('initial_stock', 'Initial stock'),
    ('other', 'Other'),
]

REFERENCE_CHOICES = [
    ('purchase_order', 'Purchase order'),
    ('sale', 'Sale'),
    ('stocktake', 'Stocktake'),
    ('transfer', 'Transfer'),
]


def user_fk():
    return models.ForeignKey(
        blank=True,
        null=True,
        on_delete=django.db.models.deletion.SET_NULL,
        related_name='+',
        to=settings.AUTH_USER_MODEL,
    )


def ledger_fields():
    """Columns shared by StockAdjustment and StockMovement."""
    return [
        ('reason', models.CharField(choices=REASON_CHOICES, max_length=32, verbose_name='Reason')),
        ('note', models.TextField(blank=True, default='', verbose_name='Note')),
        ('reference_type', models.CharField(blank=True, choices=REFERENCE_CHOICES, default='', max_length=20, verbose_name='Reference type')),
        ('reference_id', models.CharField(blank=True, default='', max_length=64, verbose_name='Reference')),
        ('user_name', models.CharField(blank=True, default='', max_length=150, verbose_name='User name')),
        ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Timestamp')),
        ('item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='stockroom.stockitem', verbose_name='Item')),
        ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='User')),
    ]


class Migration(migrations.Migration):
    """Create Stockroom models: registry, ledger, purchasing, stocktakes, transfers, alerts."""

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Location',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.SlugField(help_text='Unique identifier (e.g. floor, storeroom)', unique=True, verbose_name='Code')),
                ('name', models.CharField(max_length=100, verbose_name='Name')),
                ('is_default', models.BooleanField(default=False, help_text='Receives adjustments that name no location.', verbose_name='Default location')),
                ('is_active', models.BooleanField(default=True, verbose_name='Active')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Metadata')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Location',
                'verbose_name_plural': 'Locations',
                'ordering': ['code'],
            },
        ),
        migrations.CreateModel(
            name='StockItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, verbose_name='Name')),
                ('sku', models.CharField(max_length=64, verbose_name='SKU')),
                ('barcode', models.CharField(blank=True, max_length=64, null=True, unique=True, verbose_name='Barcode')),
                ('supplier_code', models.CharField(blank=True, default='', max_length=64, verbose_name='Supplier')),
                ('supplier_name', models.CharField(blank=True, default='', max_length=200, verbose_name='Supplier name')),
                ('cost_price', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12, verbose_name='Cost price')),
                ('retail_price', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, verbose_name='Retail price')),
                ('current_stock', models.IntegerField(default=0, verbose_name='Current stock')),
                ('low_stock_threshold', models.IntegerField(default=10, verbose_name='Low stock threshold')),
                ('reorder_point', models.IntegerField(default=0, verbose_name='Reorder point')),
                ('reorder_quantity', models.IntegerField(default=0, verbose_name='Reorder quantity')),
                ('allow_negative_stock', models.BooleanField(default=False, verbose_name='Allow negative stock')),
                ('track_stock', models.BooleanField(default=True, verbose_name='Track stock')),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive')], db_index=True, default='active', max_length=20, verbose_name='Status')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Stock item',
                'verbose_name_plural': 'Stock items',
                'ordering': ['name'],
                'constraints': [
                    models.UniqueConstraint(django.db.models.functions.text.Lower('sku'), name='unique_stockitem_sku_ci'),
                ],
            },
        ),
        migrations.CreateModel(
            name='LocationStock',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.IntegerField(default=0, verbose_name='Quantity')),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='location_stock', to='stockroom.stockitem', verbose_name='Item')),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='balances', to='stockroom.location', verbose_name='Location')),
            ],
            options={
                'verbose_name': 'Location stock',
                'verbose_name_plural': 'Location stock',
                'ordering': ['id'],
                'constraints': [
                    models.UniqueConstraint(fields=('item', 'location'), name='unique_location_stock'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockAdjustment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *ledger_fields(),
                ('previous_quantity', models.IntegerField(verbose_name='Previous quantity')),
                ('adjustment_quantity', models.IntegerField(help_text='Positive = inbound, negative = outbound', verbose_name='Adjustment')),
                ('new_quantity', models.IntegerField(verbose_name='New quantity')),
                ('location', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to='stockroom.location', verbose_name='Location')),
            ],
            options={
                'verbose_name': 'Stock adjustment',
                'verbose_name_plural': 'Stock adjustments',
                'ordering': ['-timestamp', '-id'],
                'indexes': [
                    models.Index(fields=['item', 'timestamp'], name='stockroom_adj_item_ts_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('adjustment_quantity', 0), _negated=True), name='adjustment_non_zero'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockMovement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *ledger_fields(),
                ('movement_type', models.CharField(choices=[('in', 'In'), ('out', 'Out'), ('transfer', 'Transfer')], max_length=10, verbose_name='Type')),
                ('quantity', models.PositiveIntegerField(verbose_name='Quantity')),
                ('previous_stock', models.IntegerField(verbose_name='Previous stock')),
                ('new_stock', models.IntegerField(verbose_name='New stock')),
                ('adjustment', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='movement', to='stockroom.stockadjustment', verbose_name='Adjustment')),
                ('from_location', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to='stockroom.location', verbose_name='From')),
                ('to_location', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to='stockroom.location', verbose_name='To')),
            ],
            options={
                'verbose_name': 'Stock movement',
                'verbose_name_plural': 'Stock movements',
                'ordering': ['-timestamp', '-id'],
                'indexes': [
                    models.Index(fields=['item', 'timestamp'], name='stockroom_mov_item_ts_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='PurchaseOrder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('order_number', models.CharField(max_length=32, unique=True, verbose_name='Order number')),
                ('supplier_code', models.CharField(max_length=64, verbose_name='Supplier')),
                ('supplier_name', models.CharField(blank=True, default='', max_length=200, verbose_name='Supplier name')),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('sent', 'Sent'), ('partially_received', 'Partially received'), ('received', 'Received'), ('cancelled', 'Cancelled')], db_index=True, default='draft', max_length=20, verbose_name='Status')),
                ('subtotal', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('tax', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('shipping', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('total', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('order_date', models.DateField(default=django.utils.timezone.localdate, verbose_name='Order date')),
                ('expected_delivery_date', models.DateField(blank=True, null=True, verbose_name='Expected delivery')),
                ('received_date', models.DateTimeField(blank=True, null=True, verbose_name='Received at')),
                ('notes', models.TextField(blank=True, default='')),
                ('created_by_name', models.CharField(blank=True, default='', max_length=150)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', user_fk()),
            ],
            options={
                'verbose_name': 'Purchase order',
                'verbose_name_plural': 'Purchase orders',
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='PurchaseOrderLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity_ordered', models.PositiveIntegerField(verbose_name='Ordered')),
                ('quantity_received', models.PositiveIntegerField(default=0, verbose_name='Received')),
                ('unit_cost', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='Unit cost')),
                ('notes', models.TextField(blank=True, default='')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='stockroom.purchaseorder')),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='stockroom.stockitem')),
            ],
            options={
                'verbose_name': 'Purchase order line',
                'verbose_name_plural': 'Purchase order lines',
                'ordering': ['id'],
                'constraints': [
                    models.UniqueConstraint(fields=('order', 'item'), name='unique_po_line_item'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ReceivingRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('order_number', models.CharField(max_length=32)),
                ('supplier_code', models.CharField(max_length=64)),
                ('supplier_name', models.CharField(blank=True, default='', max_length=200)),
                ('received_by_name', models.CharField(blank=True, default='', max_length=150)),
                ('received_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('notes', models.TextField(blank=True, default='')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='receivings', to='stockroom.purchaseorder')),
                ('received_by', user_fk()),
            ],
            options={
                'verbose_name': 'Receiving record',
                'verbose_name_plural': 'Receiving records',
                'ordering': ['-received_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='ReceivingRecordLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity_expected', models.PositiveIntegerField()),
                ('quantity_received', models.PositiveIntegerField()),
                ('notes', models.TextField(blank=True, default='')),
                ('applied', models.BooleanField(default=True)),
                ('error', models.CharField(blank=True, default='', max_length=40)),
                ('record', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='lines', to='stockroom.receivingrecord')),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='stockroom.stockitem')),
            ],
            options={
                'verbose_name': 'Receiving line',
                'verbose_name_plural': 'Receiving lines',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='Stocktake',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, verbose_name='Name')),
                ('description', models.TextField(blank=True, default='')),
                ('status', models.CharField(choices=[('in_progress', 'In progress'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], db_index=True, default='in_progress', max_length=20, verbose_name='Status')),
                ('total_items', models.PositiveIntegerField(default=0)),
                ('counted_items', models.PositiveIntegerField(default=0)),
                ('total_discrepancy', models.PositiveIntegerField(default=0)),
                ('total_discrepancy_value', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=14)),
                ('started_by_name', models.CharField(blank=True, default='', max_length=150)),
                ('started_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('completed_by_name', models.CharField(blank=True, default='', max_length=150)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('adjustments_applied', models.BooleanField(default=False)),
                ('notes', models.TextField(blank=True, default='')),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('started_by', user_fk()),
                ('completed_by', user_fk()),
            ],
            options={
                'verbose_name': 'Stocktake',
                'verbose_name_plural': 'Stocktakes',
                'ordering': ['-started_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='StocktakeLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('expected_quantity', models.IntegerField()),
                ('counted_quantity', models.IntegerField(blank=True, null=True)),
                ('discrepancy', models.IntegerField(default=0)),
                ('discrepancy_value', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=14)),
                ('notes', models.TextField(blank=True, default='')),
                ('counted_at', models.DateTimeField(blank=True, null=True)),
                ('stocktake', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='stockroom.stocktake')),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='stockroom.stockitem')),
                ('counted_by', user_fk()),
            ],
            options={
                'verbose_name': 'Stocktake line',
                'verbose_name_plural': 'Stocktake lines',
                'ordering': ['id'],
                'constraints': [
                    models.UniqueConstraint(fields=('stocktake', 'item'), name='unique_stocktake_line_item'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockTransfer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.PositiveIntegerField(verbose_name='Quantity')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], db_index=True, default='pending', max_length=20, verbose_name='Status')),
                ('notes', models.TextField(blank=True, default='')),
                ('requested_by_name', models.CharField(blank=True, default='', max_length=150)),
                ('requested_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('completed_by_name', models.CharField(blank=True, default='', max_length=150)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transfers', to='stockroom.stockitem')),
                ('from_location', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transfers_out', to='stockroom.location', verbose_name='From')),
                ('to_location', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transfers_in', to='stockroom.location', verbose_name='To')),
                ('requested_by', user_fk()),
                ('completed_by', user_fk()),
            ],
            options={
                'verbose_name': 'Stock transfer',
                'verbose_name_plural': 'Stock transfers',
                'ordering': ['-requested_at', '-id'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('from_location', models.F('to_location')), _negated=True), name='transfer_distinct_locations'),
                    models.CheckConstraint(condition=models.Q(('quantity__gt', 0)), name='transfer_positive_qty'),
                ],
            },
        ),
        migrations.CreateModel(
            name='LowStockAlert',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('severity', models.CharField(choices=[('warning', 'Warning'), ('critical', 'Critical')], max_length=10, verbose_name='Severity')),
                ('current_stock', models.IntegerField(verbose_name='Stock')),
                ('low_stock_threshold', models.IntegerField(verbose_name='Threshold')),
                ('reorder_quantity', models.IntegerField(default=0, verbose_name='Reorder quantity')),
                ('supplier_code', models.CharField(blank=True, default='', max_length=64)),
                ('supplier_name', models.CharField(blank=True, default='', max_length=200)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('acknowledged_by_name', models.CharField(blank=True, default='', max_length=150)),
                ('acknowledged_at', models.DateTimeField(blank=True, null=True)),
                ('resolved_at', models.DateTimeField(blank=True, help_text='Set when stock recovered (AUTO_RESOLVE_ALERTS only)', null=True)),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='alerts', to='stockroom.stockitem', verbose_name='Item')),
                ('acknowledged_by', user_fk()),
            ],
            options={
                'verbose_name': 'Low stock alert',
                'verbose_name_plural': 'Low stock alerts',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['item', 'severity'], name='stockroom_alert_item_sev_idx'),
                ],
            },
        ),
    ]
