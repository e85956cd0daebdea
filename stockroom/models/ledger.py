"""
Ledger models — immutable record of every stock change.

StockAdjustment: the reason side ("why did stock change?")
StockMovement:   the directional side ("in or out, from what to what?")

Every adjustment has exactly one movement with the same previous/new
stock. Transfers add movements of type TRANSFER with no adjustment,
since they move stock between locations without changing the total.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from stockroom.models.enums import MovementType, ReferenceType, StockReason


class ImmutableRecord(models.Model):
    """
    Base for append-only rows.

    Rules:
    - NEVER update() or delete()
    - Corrections are new entries with an inverse delta
    """

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValueError(
                f"{type(self).__name__} is immutable. "
                "To correct it, record a new entry with the inverse delta."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError(
            f"{type(self).__name__} is immutable and cannot be deleted."
        )


class LedgerEntry(ImmutableRecord):
    """Fields shared by both sides of the ledger."""

    item = models.ForeignKey(
        'stockroom.StockItem',
        on_delete=models.PROTECT,
        related_name='+',
        verbose_name=_('Item'),
    )
    reason = models.CharField(
        max_length=32,
        choices=StockReason.choices,
        verbose_name=_('Reason'),
    )
    note = models.TextField(blank=True, default='', verbose_name=_('Note'))

    # External reference (order, sale, stocktake, transfer)
    reference_type = models.CharField(
        max_length=20,
        choices=ReferenceType.choices,
        blank=True,
        default='',
        verbose_name=_('Reference type'),
    )
    reference_id = models.CharField(max_length=64, blank=True, default='', verbose_name=_('Reference'))

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('User'),
    )
    user_name = models.CharField(max_length=150, blank=True, default='', verbose_name=_('User name'))
    timestamp = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Timestamp'))

    class Meta:
        abstract = True

    @property
    def reference(self) -> tuple[str, str] | None:
        if not self.reference_type:
            return None
        return (self.reference_type, self.reference_id)


class StockAdjustment(LedgerEntry):
    """Signed change of an item's total stock, with its reason."""

    previous_quantity = models.IntegerField(verbose_name=_('Previous quantity'))
    adjustment_quantity = models.IntegerField(
        verbose_name=_('Adjustment'),
        help_text=_('Positive = inbound, negative = outbound'),
    )
    new_quantity = models.IntegerField(verbose_name=_('New quantity'))
    location = models.ForeignKey(
        'stockroom.Location',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Location'),
    )

    class Meta:
        verbose_name = _('Stock adjustment')
        verbose_name_plural = _('Stock adjustments')
        ordering = ['-timestamp', '-id']
        indexes = [
            models.Index(fields=['item', 'timestamp'], name='stockroom_adj_item_ts_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(adjustment_quantity=0),
                name='adjustment_non_zero',
            ),
        ]

    def __str__(self) -> str:
        sign = '+' if self.adjustment_quantity > 0 else ''
        return f"{sign}{self.adjustment_quantity} | {self.reason}"


class StockMovement(LedgerEntry):
    """Directional record: IN/OUT pairs with an adjustment, TRANSFER stands alone."""

    adjustment = models.OneToOneField(
        StockAdjustment,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='movement',
        verbose_name=_('Adjustment'),
    )
    movement_type = models.CharField(
        max_length=10,
        choices=MovementType.choices,
        verbose_name=_('Type'),
    )
    quantity = models.PositiveIntegerField(verbose_name=_('Quantity'))
    previous_stock = models.IntegerField(verbose_name=_('Previous stock'))
    new_stock = models.IntegerField(verbose_name=_('New stock'))

    from_location = models.ForeignKey(
        'stockroom.Location',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('From'),
    )
    to_location = models.ForeignKey(
        'stockroom.Location',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('To'),
    )

    class Meta:
        verbose_name = _('Stock movement')
        verbose_name_plural = _('Stock movements')
        ordering = ['-timestamp', '-id']
        indexes = [
            models.Index(fields=['item', 'timestamp'], name='stockroom_mov_item_ts_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.movement_type} {self.quantity} | {self.reason}"
