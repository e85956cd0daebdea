"""
Purchasing models — purchase orders and the receiving records they produce.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from stockroom.models.enums import PurchaseOrderStatus
from stockroom.models.ledger import ImmutableRecord


class PurchaseOrder(models.Model):
    """
    Order of stock from a supplier.

    LIFECYCLE:

        ┌───────┐  send()  ┌──────┐  receive()  ┌────────────────────┐
        │ DRAFT │ ───────► │ SENT │ ──────────► │ PARTIALLY_RECEIVED │
        └───────┘          └──────┘             └────────────────────┘
            │                 │  │                        │ receive()
            │ cancel()        │  │ receive() (all lines)  ▼
            ▼                 │  └──────────────────► ┌──────────┐
        ┌───────────┐         │                       │ RECEIVED │
        │ CANCELLED │ ◄───────┘ cancel()              └──────────┘
        └───────────┘

    Totals are computed at creation. Editing lines afterwards does not
    recompute them: call recalculate_totals().
    """

    order_number = models.CharField(max_length=32, unique=True, verbose_name=_('Order number'))

    supplier_code = models.CharField(max_length=64, verbose_name=_('Supplier'))
    supplier_name = models.CharField(max_length=200, blank=True, default='', verbose_name=_('Supplier name'))

    status = models.CharField(
        max_length=20,
        choices=PurchaseOrderStatus.choices,
        default=PurchaseOrderStatus.DRAFT,
        db_index=True,
        verbose_name=_('Status'),
    )

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    tax = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    shipping = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))

    order_date = models.DateField(default=timezone.localdate, verbose_name=_('Order date'))
    expected_delivery_date = models.DateField(null=True, blank=True, verbose_name=_('Expected delivery'))
    received_date = models.DateTimeField(null=True, blank=True, verbose_name=_('Received at'))
    notes = models.TextField(blank=True, default='')

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    created_by_name = models.CharField(max_length=150, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Purchase order')
        verbose_name_plural = _('Purchase orders')
        ordering = ['-created_at', '-id']

    @property
    def is_open(self) -> bool:
        """Can still receive stock."""
        return self.status in (PurchaseOrderStatus.SENT, PurchaseOrderStatus.PARTIALLY_RECEIVED)

    def recalculate_totals(self, save: bool = True) -> Decimal:
        """Recompute subtotal/total from current lines."""
        self.subtotal = sum(
            (line.total_cost for line in self.lines.all()),
            Decimal('0'),
        )
        self.total = self.subtotal + self.tax + self.shipping
        if save:
            self.save(update_fields=['subtotal', 'total', 'updated_at'])
        return self.total

    def __str__(self) -> str:
        return f"{self.order_number} ({self.supplier_name or self.supplier_code})"


class PurchaseOrderLine(models.Model):
    """One item on a purchase order. quantity_received only ever grows."""

    order = models.ForeignKey(PurchaseOrder, on_delete=models.CASCADE, related_name='lines')
    item = models.ForeignKey('stockroom.StockItem', on_delete=models.PROTECT, related_name='+')
    quantity_ordered = models.PositiveIntegerField(verbose_name=_('Ordered'))
    quantity_received = models.PositiveIntegerField(default=0, verbose_name=_('Received'))
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2, verbose_name=_('Unit cost'))
    notes = models.TextField(blank=True, default='')

    class Meta:
        verbose_name = _('Purchase order line')
        verbose_name_plural = _('Purchase order lines')
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(fields=['order', 'item'], name='unique_po_line_item'),
        ]

    @property
    def total_cost(self) -> Decimal:
        return self.unit_cost * self.quantity_ordered

    @property
    def is_fully_received(self) -> bool:
        return self.quantity_received >= self.quantity_ordered

    @property
    def quantity_outstanding(self) -> int:
        return max(0, self.quantity_ordered - self.quantity_received)

    def __str__(self) -> str:
        return f"{self.item} {self.quantity_received}/{self.quantity_ordered}"


class ReceivingRecord(ImmutableRecord):
    """One delivery against a purchase order. A PO may have several."""

    order = models.ForeignKey(PurchaseOrder, on_delete=models.PROTECT, related_name='receivings')
    order_number = models.CharField(max_length=32)
    supplier_code = models.CharField(max_length=64)
    supplier_name = models.CharField(max_length=200, blank=True, default='')

    received_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    received_by_name = models.CharField(max_length=150, blank=True, default='')
    received_at = models.DateTimeField(default=timezone.now, db_index=True)
    notes = models.TextField(blank=True, default='')

    class Meta:
        verbose_name = _('Receiving record')
        verbose_name_plural = _('Receiving records')
        ordering = ['-received_at', '-id']

    def __str__(self) -> str:
        return f"{self.order_number} @ {self.received_at:%Y-%m-%d %H:%M}"


class ReceivingRecordLine(ImmutableRecord):
    """
    What arrived for one item.

    applied=False means the ledger refused the line (see error); the
    attempted quantity is kept for the audit trail.
    """

    record = models.ForeignKey(ReceivingRecord, on_delete=models.PROTECT, related_name='lines')
    item = models.ForeignKey('stockroom.StockItem', on_delete=models.PROTECT, related_name='+')
    quantity_expected = models.PositiveIntegerField()
    quantity_received = models.PositiveIntegerField()
    notes = models.TextField(blank=True, default='')
    applied = models.BooleanField(default=True)
    error = models.CharField(max_length=40, blank=True, default='')

    class Meta:
        verbose_name = _('Receiving line')
        verbose_name_plural = _('Receiving lines')
        ordering = ['id']

    def __str__(self) -> str:
        return f"{self.item}: {self.quantity_received}/{self.quantity_expected}"
