"""
LowStockAlert model — derived signal when an item runs low or out.

Alerts are generated, never edited by hand:

    from stockroom.services.alerts import generate_low_stock_alerts
    created = generate_low_stock_alerts()

An alert stays open until someone acknowledges it (or, with
AUTO_RESOLVE_ALERTS, until stock recovers above the threshold).
"""

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from stockroom.models.enums import AlertSeverity


class LowStockAlertQuerySet(models.QuerySet):

    def open(self):
        """Neither acknowledged nor resolved."""
        return self.filter(acknowledged_at__isnull=True, resolved_at__isnull=True)


class LowStockAlert(models.Model):
    """
    Low-stock (WARNING) or out-of-stock (CRITICAL) alert for one item.

    At most one open alert per item per severity. The stock, threshold
    and supplier fields are a snapshot taken when the alert was raised.
    """

    item = models.ForeignKey(
        'stockroom.StockItem',
        on_delete=models.CASCADE,
        related_name='alerts',
        verbose_name=_('Item'),
    )
    severity = models.CharField(
        max_length=10,
        choices=AlertSeverity.choices,
        verbose_name=_('Severity'),
    )

    # Snapshot
    current_stock = models.IntegerField(verbose_name=_('Stock'))
    low_stock_threshold = models.IntegerField(verbose_name=_('Threshold'))
    reorder_quantity = models.IntegerField(default=0, verbose_name=_('Reorder quantity'))
    supplier_code = models.CharField(max_length=64, blank=True, default='')
    supplier_name = models.CharField(max_length=200, blank=True, default='')

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    acknowledged_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    acknowledged_by_name = models.CharField(max_length=150, blank=True, default='')
    acknowledged_at = models.DateTimeField(null=True, blank=True)
    resolved_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text=_('Set when stock recovered (AUTO_RESOLVE_ALERTS only)'),
    )

    objects = LowStockAlertQuerySet.as_manager()

    class Meta:
        verbose_name = _('Low stock alert')
        verbose_name_plural = _('Low stock alerts')
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['item', 'severity'], name='stockroom_alert_item_sev_idx'),
        ]

    @property
    def is_open(self) -> bool:
        return self.acknowledged_at is None and self.resolved_at is None

    def __str__(self) -> str:
        return f"{self.severity}: {self.item} ({self.current_stock}/{self.low_stock_threshold})"
