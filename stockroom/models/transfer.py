"""
StockTransfer model — moving one item between two locations.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from stockroom.models.enums import TransferStatus


class StockTransfer(models.Model):
    """
    Request to move stock of one item from one location to another.

    PENDING ──complete()──► COMPLETED
       │
       └────cancel()──────► CANCELLED

    Nothing moves while PENDING; completion redistributes the
    location balances and never changes the item's total stock.
    """

    item = models.ForeignKey('stockroom.StockItem', on_delete=models.PROTECT, related_name='transfers')
    from_location = models.ForeignKey(
        'stockroom.Location',
        on_delete=models.PROTECT,
        related_name='transfers_out',
        verbose_name=_('From'),
    )
    to_location = models.ForeignKey(
        'stockroom.Location',
        on_delete=models.PROTECT,
        related_name='transfers_in',
        verbose_name=_('To'),
    )
    quantity = models.PositiveIntegerField(verbose_name=_('Quantity'))
    status = models.CharField(
        max_length=20,
        choices=TransferStatus.choices,
        default=TransferStatus.PENDING,
        db_index=True,
        verbose_name=_('Status'),
    )
    notes = models.TextField(blank=True, default='')

    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    requested_by_name = models.CharField(max_length=150, blank=True, default='')
    requested_at = models.DateTimeField(default=timezone.now, db_index=True)

    completed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    completed_by_name = models.CharField(max_length=150, blank=True, default='')
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = _('Stock transfer')
        verbose_name_plural = _('Stock transfers')
        ordering = ['-requested_at', '-id']
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(from_location=models.F('to_location')),
                name='transfer_distinct_locations',
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name='transfer_positive_qty',
            ),
        ]

    @property
    def is_pending(self) -> bool:
        return self.status == TransferStatus.PENDING

    def __str__(self) -> str:
        return (
            f"{self.quantity}x {self.item} "
            f"{self.from_location.code} → {self.to_location.code} [{self.status}]"
        )
