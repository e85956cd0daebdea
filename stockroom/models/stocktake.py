"""
Stocktake models — physical counts compared against a snapshot.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from stockroom.models.enums import StocktakeStatus


class Stocktake(models.Model):
    """
    A counting session.

    Expected quantities are snapshotted once, at creation, from every
    active stock-tracked item. Aggregates are kept on the row and
    recomputed from the lines with refresh_totals().

    IN_PROGRESS ──► COMPLETED | CANCELLED   (both terminal)
    """

    name = models.CharField(max_length=200, verbose_name=_('Name'))
    description = models.TextField(blank=True, default='')
    status = models.CharField(
        max_length=20,
        choices=StocktakeStatus.choices,
        default=StocktakeStatus.IN_PROGRESS,
        db_index=True,
        verbose_name=_('Status'),
    )

    total_items = models.PositiveIntegerField(default=0)
    counted_items = models.PositiveIntegerField(default=0)
    total_discrepancy = models.PositiveIntegerField(default=0)
    total_discrepancy_value = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0'))

    started_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    started_by_name = models.CharField(max_length=150, blank=True, default='')
    started_at = models.DateTimeField(default=timezone.now)

    completed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    completed_by_name = models.CharField(max_length=150, blank=True, default='')
    completed_at = models.DateTimeField(null=True, blank=True)
    adjustments_applied = models.BooleanField(default=False)
    notes = models.TextField(blank=True, default='')

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Stocktake')
        verbose_name_plural = _('Stocktakes')
        ordering = ['-started_at', '-id']

    @property
    def is_fully_counted(self) -> bool:
        return self.counted_items == self.total_items

    def refresh_totals(self, save: bool = True):
        """Recompute counted_items and absolute discrepancy sums from lines."""
        lines = list(self.lines.all())
        self.total_items = len(lines)
        self.counted_items = sum(1 for line in lines if line.counted_quantity is not None)
        self.total_discrepancy = sum(abs(line.discrepancy) for line in lines)
        self.total_discrepancy_value = sum(
            (abs(line.discrepancy_value) for line in lines),
            Decimal('0'),
        )
        if save:
            self.save(update_fields=[
                'total_items', 'counted_items', 'total_discrepancy',
                'total_discrepancy_value', 'updated_at',
            ])

    def __str__(self) -> str:
        return f"{self.name} [{self.status}]"


class StocktakeLineQuerySet(models.QuerySet):

    def counted(self):
        return self.filter(counted_quantity__isnull=False)

    def with_discrepancy(self):
        return self.counted().exclude(discrepancy=0)


class StocktakeLine(models.Model):
    """Expected vs counted for one item. Re-counting overwrites (last write wins)."""

    stocktake = models.ForeignKey(Stocktake, on_delete=models.CASCADE, related_name='lines')
    item = models.ForeignKey('stockroom.StockItem', on_delete=models.PROTECT, related_name='+')
    expected_quantity = models.IntegerField()
    counted_quantity = models.IntegerField(null=True, blank=True)
    discrepancy = models.IntegerField(default=0)
    discrepancy_value = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0'))
    notes = models.TextField(blank=True, default='')

    counted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    counted_at = models.DateTimeField(null=True, blank=True)

    objects = StocktakeLineQuerySet.as_manager()

    class Meta:
        verbose_name = _('Stocktake line')
        verbose_name_plural = _('Stocktake lines')
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(fields=['stocktake', 'item'], name='unique_stocktake_line_item'),
        ]

    def record_count(self, counted_quantity: int, cost_price: Decimal):
        """Set the count and derive discrepancy/value (does not save)."""
        self.counted_quantity = counted_quantity
        self.discrepancy = counted_quantity - self.expected_quantity
        self.discrepancy_value = cost_price * self.discrepancy

    def __str__(self) -> str:
        counted = '-' if self.counted_quantity is None else self.counted_quantity
        return f"{self.item}: {counted}/{self.expected_quantity}"
