"""
Stock queries — read-only operations.

All methods are classmethods and use no locking: they are snapshot
reads over whatever the database has committed.
"""

from dataclasses import asdict, dataclass
from decimal import Decimal

from stockroom.exceptions import NotFound
from stockroom.models import (
    ItemStatus,
    LocationStock,
    StockAdjustment,
    StockItem,
    StockMovement,
)
from stockroom.services.lookups import get_or_raise, pk_of


@dataclass(frozen=True)
class InventoryStats:
    """Aggregate figures for dashboards."""

    total_products: int
    total_value: Decimal
    total_retail_value: Decimal
    low_stock_count: int
    out_of_stock_count: int
    active_products: int
    inactive_products: int

    def as_dict(self) -> dict:
        return asdict(self)


class StockQueries:
    """Read-only stock query methods."""

    @classmethod
    def get_item(cls, item_id) -> StockItem:
        return get_or_raise(StockItem, item_id, 'ITEM_NOT_FOUND')

    @classmethod
    def get_item_by_sku(cls, sku: str) -> StockItem:
        """Case-insensitive SKU lookup."""
        item = StockItem.objects.by_sku(sku).first()
        if item is None:
            raise NotFound('ITEM_NOT_FOUND', sku=sku)
        return item

    @classmethod
    def get_item_by_barcode(cls, barcode: str) -> StockItem:
        item = StockItem.objects.filter(barcode=barcode).first()
        if item is None:
            raise NotFound('ITEM_NOT_FOUND', barcode=barcode)
        return item

    @classmethod
    def get_stock_by_location(cls, item) -> list[LocationStock]:
        """Per-location balances. Empty when the item is untracked by location."""
        return list(
            LocationStock.objects.filter(item_id=pk_of(item)).select_related('location')
        )

    @classmethod
    def get_stock_movements(cls, item=None):
        """Movements, newest first. None = all items."""
        qs = StockMovement.objects.all()
        if item is not None:
            qs = qs.filter(item_id=pk_of(item))
        return qs

    @classmethod
    def get_stock_adjustments(cls, item=None):
        """Adjustments, newest first. None = all items."""
        qs = StockAdjustment.objects.all()
        if item is not None:
            qs = qs.filter(item_id=pk_of(item))
        return qs

    @classmethod
    def get_low_stock_items(cls):
        """Tracked items in stock but at or under their threshold."""
        return StockItem.objects.low_stock()

    @classmethod
    def get_out_of_stock_items(cls):
        return StockItem.objects.out_of_stock()

    @classmethod
    def get_inventory_stats(cls) -> InventoryStats:
        """
        Aggregate stats, recomputed on every call.

        Values are summed over active items only.
        """
        total_value = Decimal('0')
        total_retail_value = Decimal('0')
        active_items = StockItem.objects.active().values_list(
            'cost_price', 'retail_price', 'current_stock',
        )
        for cost_price, retail_price, current_stock in active_items:
            total_value += cost_price * current_stock
            if retail_price is not None:
                total_retail_value += retail_price * current_stock

        active = StockItem.objects.active().count()
        return InventoryStats(
            total_products=StockItem.objects.count(),
            total_value=total_value,
            total_retail_value=total_retail_value,
            low_stock_count=StockItem.objects.low_stock().count(),
            out_of_stock_count=StockItem.objects.out_of_stock().count(),
            active_products=active,
            inactive_products=StockItem.objects.filter(status=ItemStatus.INACTIVE).count(),
        )
