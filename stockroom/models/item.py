"""
StockItem and LocationStock — the registry of trackable items.
"""

from decimal import Decimal

from django.db import models
from django.db.models import F, Sum
from django.db.models.functions import Coalesce, Lower
from django.utils.translation import gettext_lazy as _

from stockroom.models.enums import ItemStatus


class StockItemQuerySet(models.QuerySet):
    """Custom QuerySet for StockItem with convenience filters."""

    def active(self):
        return self.filter(status=ItemStatus.ACTIVE)

    def tracked(self):
        """Active items whose stock is tracked (the ones alerts and counts look at)."""
        return self.active().filter(track_stock=True)

    def out_of_stock(self):
        return self.tracked().filter(current_stock__lte=0)

    def low_stock(self):
        """In stock, but at or under the low-stock threshold."""
        return self.tracked().filter(
            current_stock__gt=0,
            current_stock__lte=F('low_stock_threshold'),
        )

    def needs_reorder(self):
        return self.tracked().filter(current_stock__lte=F('reorder_point'))

    def by_sku(self, sku: str):
        """Case-insensitive SKU lookup."""
        return self.filter(sku__iexact=sku)


class StockItem(models.Model):
    """
    A trackable product (retail or back bar).

    Catalog fields are edited by the catalog; stock fields are not.
    current_stock changes only through the ledger (StockLedger.adjust_stock)
    or the location balance write path, which keeps it equal to the sum of
    LocationStock rows whenever the item has any.
    """

    name = models.CharField(max_length=200, verbose_name=_('Name'))
    sku = models.CharField(max_length=64, verbose_name=_('SKU'))
    barcode = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        unique=True,
        verbose_name=_('Barcode'),
    )

    # Supplier snapshot (suppliers live in the catalog)
    supplier_code = models.CharField(max_length=64, blank=True, default='', verbose_name=_('Supplier'))
    supplier_name = models.CharField(max_length=200, blank=True, default='', verbose_name=_('Supplier name'))

    cost_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0'),
        verbose_name=_('Cost price'),
    )
    retail_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name=_('Retail price'),
    )

    # Derived, see class docstring
    current_stock = models.IntegerField(default=0, verbose_name=_('Current stock'))

    low_stock_threshold = models.IntegerField(default=10, verbose_name=_('Low stock threshold'))
    reorder_point = models.IntegerField(default=0, verbose_name=_('Reorder point'))
    reorder_quantity = models.IntegerField(default=0, verbose_name=_('Reorder quantity'))

    allow_negative_stock = models.BooleanField(default=False, verbose_name=_('Allow negative stock'))
    track_stock = models.BooleanField(default=True, verbose_name=_('Track stock'))
    status = models.CharField(
        max_length=20,
        choices=ItemStatus.choices,
        default=ItemStatus.ACTIVE,
        db_index=True,
        verbose_name=_('Status'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = StockItemQuerySet.as_manager()

    class Meta:
        verbose_name = _('Stock item')
        verbose_name_plural = _('Stock items')
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(Lower('sku'), name='unique_stockitem_sku_ci'),
        ]

    @property
    def is_active(self) -> bool:
        return self.status == ItemStatus.ACTIVE

    @property
    def has_location_stock(self) -> bool:
        return self.location_stock.exists()

    @property
    def stock_value(self) -> Decimal:
        return self.cost_price * self.current_stock

    def location_total(self) -> int:
        """Sum of per-location balances (0 when untracked by location)."""
        return self.location_stock.aggregate(
            t=Coalesce(Sum('quantity'), 0)
        )['t']

    def __str__(self) -> str:
        return f"{self.name} ({self.sku})"


class LocationStock(models.Model):
    """
    Balance of one item at one location.

    Written only by StockLedger._set_location_quantity, which also
    recomputes StockItem.current_stock.
    """

    item = models.ForeignKey(
        StockItem,
        on_delete=models.CASCADE,
        related_name='location_stock',
        verbose_name=_('Item'),
    )
    location = models.ForeignKey(
        'stockroom.Location',
        on_delete=models.PROTECT,
        related_name='balances',
        verbose_name=_('Location'),
    )
    quantity = models.IntegerField(default=0, verbose_name=_('Quantity'))
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Location stock')
        verbose_name_plural = _('Location stock')
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(
                fields=['item', 'location'],
                name='unique_location_stock',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.item} [{self.location.code}]: {self.quantity}"
