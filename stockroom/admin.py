"""
Stockroom Admin.

- Location: list + edit
- StockItem: catalog fields editable, stock fields read-only
- StockAdjustment / StockMovement: read-only audit trail
- PurchaseOrder / ReceivingRecord: browse, receiving is read-only
- Stocktake / StockTransfer: browse
- LowStockAlert: read-only with "acknowledge" action

Stock never changes from the admin: every quantity goes through
stockroom.inventory.
"""

import logging

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from stockroom.exceptions import StockError
from stockroom.models import (
    Location,
    LocationStock,
    LowStockAlert,
    PurchaseOrder,
    PurchaseOrderLine,
    ReceivingRecord,
    ReceivingRecordLine,
    StockAdjustment,
    StockItem,
    StockMovement,
    Stocktake,
    StocktakeLine,
    StockTransfer,
)

logger = logging.getLogger(__name__)


class ReadOnlyAdminMixin:
    """No add, change or delete from the admin."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =========================================================================
# LOCATION ADMIN
# =========================================================================

@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    """Location admin — editable."""

    list_display = ['code', 'name', 'is_default', 'is_active']
    list_filter = ['is_default', 'is_active']
    search_fields = ['code', 'name']
    readonly_fields = ['created_at', 'updated_at']


# =========================================================================
# STOCK ITEM ADMIN
# =========================================================================

class LocationStockInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = LocationStock
    fields = ['location', 'quantity', 'updated_at']
    readonly_fields = fields
    extra = 0


@admin.register(StockItem)
class StockItemAdmin(admin.ModelAdmin):
    """StockItem admin — current_stock is read-only, it only moves through the ledger."""

    list_display = ['name', 'sku', 'current_stock', 'low_stock_threshold',
                    'supplier_code', 'status', 'track_stock']
    list_filter = ['status', 'track_stock', 'supplier_code']
    search_fields = ['name', 'sku', 'barcode']
    readonly_fields = ['current_stock', 'stock_value_display', 'created_at', 'updated_at']
    inlines = [LocationStockInline]

    @admin.display(description=_('Stock value'))
    def stock_value_display(self, obj):
        return obj.stock_value


# =========================================================================
# LEDGER ADMIN (read-only audit trail)
# =========================================================================

@admin.register(StockAdjustment)
class StockAdjustmentAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """StockAdjustment admin — read-only. Immutable audit trail."""

    list_display = ['timestamp', 'item', 'previous_quantity', 'adjustment_quantity',
                    'new_quantity', 'reason', 'user_name']
    list_filter = ['reason', 'timestamp']
    search_fields = ['item__name', 'item__sku', 'note', 'reference_id']
    date_hierarchy = 'timestamp'


@admin.register(StockMovement)
class StockMovementAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """StockMovement admin — read-only. Immutable audit trail."""

    list_display = ['timestamp', 'item', 'movement_type', 'quantity',
                    'previous_stock', 'new_stock', 'reason']
    list_filter = ['movement_type', 'reason', 'timestamp']
    search_fields = ['item__name', 'item__sku', 'note', 'reference_id']
    date_hierarchy = 'timestamp'


# =========================================================================
# PURCHASING ADMIN
# =========================================================================

class PurchaseOrderLineInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = PurchaseOrderLine
    fields = ['item', 'quantity_ordered', 'quantity_received', 'unit_cost', 'notes']
    readonly_fields = fields
    extra = 0


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    """PurchaseOrder admin — status and totals are owned by the workflow."""

    list_display = ['order_number', 'supplier_code', 'status', 'order_date',
                    'expected_delivery_date', 'total']
    list_filter = ['status', 'supplier_code']
    search_fields = ['order_number', 'supplier_code', 'supplier_name']
    readonly_fields = ['order_number', 'status', 'subtotal', 'total', 'received_date',
                       'created_by', 'created_by_name', 'created_at', 'updated_at']
    inlines = [PurchaseOrderLineInline]


class ReceivingRecordLineInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = ReceivingRecordLine
    fields = ['item', 'quantity_expected', 'quantity_received', 'applied', 'error', 'notes']
    readonly_fields = fields
    extra = 0


@admin.register(ReceivingRecord)
class ReceivingRecordAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """ReceivingRecord admin — read-only."""

    list_display = ['order_number', 'supplier_code', 'received_at', 'received_by_name']
    search_fields = ['order_number', 'supplier_code']
    date_hierarchy = 'received_at'
    inlines = [ReceivingRecordLineInline]


# =========================================================================
# STOCKTAKE / TRANSFER ADMIN
# =========================================================================

class StocktakeLineInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = StocktakeLine
    fields = ['item', 'expected_quantity', 'counted_quantity', 'discrepancy',
              'discrepancy_value', 'notes']
    readonly_fields = fields
    extra = 0


@admin.register(Stocktake)
class StocktakeAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Stocktake admin — read-only, counts are recorded through the service."""

    list_display = ['name', 'status', 'counted_items', 'total_items',
                    'total_discrepancy', 'started_at', 'completed_at']
    list_filter = ['status']
    search_fields = ['name']
    inlines = [StocktakeLineInline]


@admin.register(StockTransfer)
class StockTransferAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """StockTransfer admin — read-only."""

    list_display = ['id', 'item', 'from_location', 'to_location', 'quantity',
                    'status', 'requested_at']
    list_filter = ['status', 'from_location', 'to_location']
    search_fields = ['item__name', 'item__sku']


# =========================================================================
# ALERT ADMIN (read-only with acknowledge action)
# =========================================================================

@admin.register(LowStockAlert)
class LowStockAlertAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """LowStockAlert admin — read-only with acknowledge action."""

    list_display = ['item', 'severity', 'current_stock', 'low_stock_threshold',
                    'created_at', 'is_open_display']
    list_filter = ['severity', 'created_at']
    search_fields = ['item__name', 'item__sku', 'supplier_code']
    actions = ['acknowledge_alerts']

    @admin.display(description=_('Open?'), boolean=True)
    def is_open_display(self, obj):
        return obj.is_open

    @admin.action(description=_('Acknowledge selected alerts'))
    def acknowledge_alerts(self, request, queryset):
        from stockroom import inventory

        count = 0
        for alert in queryset.open():
            try:
                inventory.acknowledge_alert(alert, user=request.user)
                count += 1
            except StockError as exc:
                logger.warning("acknowledge_alerts: failed for %s: %s", alert.pk, exc)

        self.message_user(request, _('{count} alert(s) acknowledged.').format(count=count))
