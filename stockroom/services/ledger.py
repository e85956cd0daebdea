"""
Stock ledger — the single mutation path for stock quantities.

All methods use transaction.atomic() and lock the item row with
select_for_update(), so writes to one item are serialized while
different items proceed in parallel.
"""

import logging

from django.db import transaction
from django.utils import timezone

from stockroom.conf import stockroom_settings
from stockroom.exceptions import InsufficientStock, ValidationError
from stockroom.models import (
    Location,
    LocationStock,
    MovementType,
    ReferenceType,
    StockAdjustment,
    StockItem,
    StockMovement,
    StockReason,
)
from stockroom.services.alerts import generate_low_stock_alerts
from stockroom.services.lookups import display_name, get_or_raise, lock_item

logger = logging.getLogger('stockroom')


class StockLedger:
    """State-changing ledger methods."""

    @classmethod
    def adjust_stock(cls, item, delta: int, reason: str, note: str = '',
                     user=None, reference=None, location=None) -> StockAdjustment:
        """
        Change an item's stock by a signed delta.

        Writes, in one transaction: the new current_stock, one
        StockAdjustment and one StockMovement (IN for positive delta,
        OUT for negative). Then regenerates the item's alerts.

        Items with a location breakdown take the delta on `location` when
        given, and that balance cannot go below zero. Without a location,
        inbound stock lands on the default location (else the first one)
        and outbound stock is drawn from the default location first, then
        the others by id; only the item total is guarded.

        Args:
            item: StockItem or pk
            delta: Non-zero integer (positive = inbound)
            reason: StockReason value
            reference: Optional (ReferenceType, id) tuple
            location: Optional Location (or pk)

        Raises:
            ValidationError('INVALID_QUANTITY'): If delta is zero or not an int
            ValidationError('INVALID_REASON'): If reason is not a StockReason
            InsufficientStock: If stock would go negative and the item
                doesn't allow it. Nothing is written.
            NotFound('ITEM_NOT_FOUND')

        Concurrency:
            - Runs under transaction.atomic()
            - Uses select_for_update() on StockItem
        """
        if not isinstance(delta, int) or isinstance(delta, bool) or delta == 0:
            raise ValidationError('INVALID_QUANTITY', requested=delta)
        if reason not in StockReason.values:
            raise ValidationError('INVALID_REASON', reason=reason)
        reference_type, reference_id = cls._split_reference(reference)
        if location is not None:
            location = get_or_raise(Location, location, 'LOCATION_NOT_FOUND')

        with transaction.atomic():
            locked = lock_item(item)
            previous = locked.current_stock
            new = previous + delta

            if new < 0 and not locked.allow_negative_stock:
                raise InsufficientStock(
                    item_id=locked.pk,
                    available=previous,
                    requested=-delta,
                )

            balance_location = cls._resolve_location(locked, location)
            if balance_location is None:
                locked.current_stock = new
                locked.save(update_fields=['current_stock', 'updated_at'])
            elif location is None:
                cls._spread_delta(locked, balance_location, delta)
            else:
                row = cls._ensure_location_row(locked, balance_location)
                if row.quantity + delta < 0 and not locked.allow_negative_stock:
                    raise InsufficientStock(
                        item_id=locked.pk,
                        location=balance_location.code,
                        available=row.quantity,
                        requested=-delta,
                    )
                cls._set_location_quantity(locked, balance_location, row.quantity + delta)

            now = timezone.now()
            adjustment = StockAdjustment.objects.create(
                item=locked,
                previous_quantity=previous,
                adjustment_quantity=delta,
                new_quantity=locked.current_stock,
                reason=reason,
                note=note,
                reference_type=reference_type,
                reference_id=reference_id,
                location=balance_location,
                user=user,
                user_name=display_name(user),
                timestamp=now,
            )
            inbound = delta > 0
            StockMovement.objects.create(
                item=locked,
                adjustment=adjustment,
                movement_type=MovementType.IN if inbound else MovementType.OUT,
                quantity=abs(delta),
                previous_stock=previous,
                new_stock=locked.current_stock,
                reason=reason,
                note=note,
                reference_type=reference_type,
                reference_id=reference_id,
                from_location=None if inbound else balance_location,
                to_location=balance_location if inbound else None,
                user=user,
                user_name=display_name(user),
                timestamp=now,
            )

        logger.info(
            "stock.adjust",
            extra={
                "item_id": locked.pk,
                "delta": delta,
                "reason": reason,
                "new_quantity": locked.current_stock,
                "location": balance_location.code if balance_location else None,
                "reference": f"{reference_type}:{reference_id}" if reference_type else None,
            },
        )

        if isinstance(item, StockItem):
            item.current_stock = locked.current_stock
        cls._after_mutation(locked)
        return adjustment

    @classmethod
    def ensure_location_stock(cls, item, location, seed_from_current: bool = True) -> int:
        """
        Make sure the item has a balance row at `location`; return it.

        The first location an item gets is seeded with its current stock
        (when seed_from_current), later ones with zero. An unseeded first
        row resets current_stock to zero, since the total is always the
        sum of the breakdown.
        """
        location = get_or_raise(Location, location, 'LOCATION_NOT_FOUND')
        with transaction.atomic():
            locked = lock_item(item)
            quantity = cls._ensure_location_row(locked, location, seed_from_current).quantity

        if isinstance(item, StockItem):
            item.current_stock = locked.current_stock
        return quantity

    @classmethod
    def record_transfer_movement(cls, item: StockItem, transfer, user=None) -> StockMovement:
        """
        Audit entry for a completed transfer.

        Total stock is unchanged, so there is no adjustment: the
        movement is of type TRANSFER with previous_stock == new_stock.
        Caller holds the item lock.
        """
        note = (
            f"Stock transfer: {transfer.quantity} units from "
            f"{transfer.from_location.name} to {transfer.to_location.name}"
        )
        return StockMovement.objects.create(
            item=item,
            movement_type=MovementType.TRANSFER,
            quantity=transfer.quantity,
            previous_stock=item.current_stock,
            new_stock=item.current_stock,
            reason=StockReason.TRANSFER_OUT,
            note=note,
            reference_type=ReferenceType.TRANSFER,
            reference_id=str(transfer.pk),
            from_location=transfer.from_location,
            to_location=transfer.to_location,
            user=user,
            user_name=display_name(user),
        )

    # ══════════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _split_reference(cls, reference) -> tuple[str, str]:
        if reference is None:
            return '', ''
        try:
            reference_type, reference_id = reference
        except (TypeError, ValueError):
            raise ValidationError('INVALID_REFERENCE', reference=repr(reference))
        if reference_type not in ReferenceType.values:
            raise ValidationError('INVALID_REFERENCE', reference=repr(reference))
        return str(reference_type), str(reference_id)

    @classmethod
    def _resolve_location(cls, item: StockItem, location: Location | None) -> Location | None:
        """Where a delta lands. None = item is untracked by location."""
        if location is not None:
            return location
        rows = item.location_stock.select_related('location')
        row = rows.filter(location__is_default=True).first() or rows.first()
        return row.location if row else None

    @classmethod
    def _spread_delta(cls, item: StockItem, primary: Location, delta: int):
        """
        Apply a delta with no named location across the item's balances.

        Inbound goes to `primary`. Outbound drains positive balances,
        `primary` first, then the rest by id; whatever is left (only when
        the item allows negative stock) is taken from `primary`.
        Caller holds the item lock and has checked the total.
        """
        rows = sorted(
            item.location_stock.select_related('location').order_by('id'),
            key=lambda r: r.location_id != primary.pk,
        )
        if delta > 0:
            cls._set_location_quantity(item, primary, rows[0].quantity + delta)
            return

        remaining = -delta
        drawn = {}
        for row in rows:
            take = min(remaining, max(row.quantity, 0))
            if take:
                drawn[row.location_id] = take
                cls._set_location_quantity(item, row.location, row.quantity - take)
                remaining -= take
            if not remaining:
                break
        if remaining:
            quantity = rows[0].quantity - drawn.get(primary.pk, 0) - remaining
            cls._set_location_quantity(item, primary, quantity)

    @classmethod
    def _ensure_location_row(cls, item: StockItem, location: Location,
                             seed_from_current: bool = True) -> LocationStock:
        """Caller holds the item lock."""
        row = LocationStock.objects.filter(item=item, location=location).first()
        if row is not None:
            return row
        first = not item.location_stock.exists()
        seed = item.current_stock if seed_from_current and first else 0
        return cls._set_location_quantity(item, location, seed)

    @classmethod
    def _set_location_quantity(cls, item: StockItem, location: Location, quantity: int) -> LocationStock:
        """
        The only write path for location balances.

        Recomputes current_stock as the sum across locations.
        Caller holds the item lock.
        """
        row, _ = LocationStock.objects.update_or_create(
            item=item,
            location=location,
            defaults={'quantity': quantity},
        )
        item.current_stock = item.location_total()
        item.save(update_fields=['current_stock', 'updated_at'])
        return row

    @classmethod
    def _after_mutation(cls, item: StockItem):
        """Dependent step: alert regeneration runs after the ledger commit point."""
        if stockroom_settings.ALERTS_ON_MUTATION:
            generate_low_stock_alerts(item=item)
