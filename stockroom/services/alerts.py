"""
Stock alerts — derive low-stock and out-of-stock alerts from the registry.

Usage:
    from stockroom.services.alerts import generate_low_stock_alerts

    # Runs after every ledger mutation (ALERTS_ON_MUTATION) and can be
    # run periodically (manage.py generate_stock_alerts)
    created = generate_low_stock_alerts()
    # Returns the alerts created by this call
"""

import logging

from django.db import transaction
from django.utils import timezone

from stockroom.conf import stockroom_settings
from stockroom.exceptions import InvalidTransition
from stockroom.models import AlertSeverity, LowStockAlert, StockItem
from stockroom.services.lookups import display_name, get_or_raise, pk_of

logger = logging.getLogger('stockroom')


def severity_for(item: StockItem) -> str | None:
    """
    Alert severity the item currently deserves.

    CRITICAL at or below zero, WARNING at or below the threshold,
    None otherwise (and always None for inactive or untracked items).
    """
    if not (item.is_active and item.track_stock):
        return None
    if item.current_stock <= 0:
        return AlertSeverity.CRITICAL
    if item.current_stock <= item.low_stock_threshold:
        return AlertSeverity.WARNING
    return None


def generate_low_stock_alerts(item=None) -> list[LowStockAlert]:
    """
    Ensure every low/out-of-stock item has an open alert.

    Idempotent: an item never gets a second open alert of the same
    severity. Recovered items keep their open alerts unless
    AUTO_RESOLVE_ALERTS is on, in which case alerts that no longer
    match the item's severity are resolved.

    Args:
        item: Optional StockItem (or pk) to check (None = all).

    Returns:
        List of alerts created by this call.
    """
    items = StockItem.objects.all()
    if item is not None:
        items = items.filter(pk=pk_of(item))

    auto_resolve = stockroom_settings.AUTO_RESOLVE_ALERTS
    created = []
    now = timezone.now()

    for stock_item in items:
        severity = severity_for(stock_item)
        open_alerts = LowStockAlert.objects.open().filter(item=stock_item)

        if auto_resolve:
            stale = open_alerts if severity is None else open_alerts.exclude(severity=severity)
            resolved = stale.update(resolved_at=now)
            if resolved:
                logger.info(
                    "stock.alert.resolved",
                    extra={"item_id": stock_item.pk, "count": resolved},
                )

        if severity is None or open_alerts.filter(severity=severity).exists():
            continue

        alert = LowStockAlert.objects.create(
            item=stock_item,
            severity=severity,
            current_stock=stock_item.current_stock,
            low_stock_threshold=stock_item.low_stock_threshold,
            reorder_quantity=stock_item.reorder_quantity,
            supplier_code=stock_item.supplier_code,
            supplier_name=stock_item.supplier_name,
            created_at=now,
        )
        created.append(alert)
        logger.warning(
            "stock.alert.created",
            extra={
                "alert_id": alert.pk,
                "item_id": stock_item.pk,
                "severity": severity,
                "current_stock": stock_item.current_stock,
                "threshold": stock_item.low_stock_threshold,
            },
        )

    return created


class StockAlerts:
    """Alert lifecycle methods."""

    generate_low_stock_alerts = staticmethod(generate_low_stock_alerts)

    @classmethod
    def get_active_alerts(cls, severity: str | None = None):
        """Open alerts, newest first."""
        qs = LowStockAlert.objects.open().select_related('item')
        if severity is not None:
            qs = qs.filter(severity=severity)
        return qs

    @classmethod
    def acknowledge_alert(cls, alert, user=None) -> LowStockAlert:
        """
        Acknowledge an open alert. The only way to clear it by hand.

        Raises:
            NotFound('ALERT_NOT_FOUND')
            InvalidTransition: If already acknowledged or resolved
        """
        with transaction.atomic():
            alert = get_or_raise(LowStockAlert, alert, 'ALERT_NOT_FOUND', for_update=True)
            if not alert.is_open:
                raise InvalidTransition(alert_id=alert.pk)

            alert.acknowledged_at = timezone.now()
            alert.acknowledged_by = user
            alert.acknowledged_by_name = display_name(user)
            alert.save(update_fields=['acknowledged_at', 'acknowledged_by', 'acknowledged_by_name'])

        logger.info("stock.alert.acknowledged", extra={"alert_id": alert.pk})
        return alert
