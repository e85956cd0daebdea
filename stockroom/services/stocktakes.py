"""
Stocktakes — physical counts reconciled against a snapshot.
"""

import logging

from django.db import transaction
from django.utils import timezone

from stockroom.exceptions import InvalidTransition, ValidationError
from stockroom.models import (
    ReferenceType,
    StockItem,
    StockReason,
    Stocktake,
    StocktakeLine,
    StocktakeStatus,
)
from stockroom.services.ledger import StockLedger
from stockroom.services.lookups import display_name, get_or_raise, pk_of

logger = logging.getLogger('stockroom')


class Stocktakes:
    """Stocktake lifecycle methods."""

    @classmethod
    def create_stocktake(cls, name: str, description: str = '', user=None) -> Stocktake:
        """
        Open a stocktake with one line per active, stock-tracked item.

        expected_quantity is the item's current_stock right now and is
        never refreshed, even if stock moves while counting.
        """
        with transaction.atomic():
            stocktake = Stocktake.objects.create(
                name=name,
                description=description,
                started_by=user,
                started_by_name=display_name(user),
            )
            StocktakeLine.objects.bulk_create([
                StocktakeLine(
                    stocktake=stocktake,
                    item_id=item_id,
                    expected_quantity=current_stock,
                )
                for item_id, current_stock in (
                    StockItem.objects.tracked()
                    .order_by('name', 'pk')
                    .values_list('pk', 'current_stock')
                )
            ])
            stocktake.refresh_totals()

        logger.info(
            "stocktake.create",
            extra={"stocktake_id": stocktake.pk, "items": stocktake.total_items},
        )
        return stocktake

    @classmethod
    def update_stocktake_item(cls, stocktake, item, counted_quantity: int,
                              notes: str = '', user=None) -> StocktakeLine:
        """
        Record a count for one item. Re-counting overwrites.

        Raises:
            InvalidTransition: Stocktake is not IN_PROGRESS
            ValidationError('INVALID_QUANTITY'): Negative or non-integer count
            ValidationError('UNKNOWN_LINE'): Item not in this stocktake
            NotFound('STOCKTAKE_NOT_FOUND')
        """
        if (not isinstance(counted_quantity, int) or isinstance(counted_quantity, bool)
                or counted_quantity < 0):
            raise ValidationError('INVALID_QUANTITY', requested=counted_quantity)

        with transaction.atomic():
            stocktake = cls._lock_stocktake(stocktake)
            cls._require_in_progress(stocktake)

            item_id = pk_of(item)
            line = (
                stocktake.lines.select_for_update()
                .filter(item_id=item_id)
                .first()
            )
            if line is None:
                raise ValidationError('UNKNOWN_LINE', stocktake_id=stocktake.pk, item_id=item_id)

            cost_price = StockItem.objects.values_list('cost_price', flat=True).get(pk=item_id)
            line.record_count(counted_quantity, cost_price)
            line.notes = notes
            line.counted_by = user
            line.counted_at = timezone.now()
            line.save()

            stocktake.refresh_totals()

        logger.info(
            "stocktake.count",
            extra={
                "stocktake_id": stocktake.pk,
                "item_id": item_id,
                "counted": counted_quantity,
                "discrepancy": line.discrepancy,
            },
        )
        return line

    @classmethod
    def complete_stocktake(cls, stocktake, user=None,
                           apply_adjustments: bool = True) -> Stocktake:
        """
        Close the stocktake and reconcile stock.

        With apply_adjustments, every counted line with a non-zero
        discrepancy becomes one adjust_stock(discrepancy,
        STOCKTAKE_ADJUSTMENT) call. Uncounted lines are skipped.

        All or nothing: if any adjustment is refused the stocktake
        stays IN_PROGRESS and no stock changes.

        Raises:
            InvalidTransition: Stocktake is not IN_PROGRESS
            InsufficientStock: An adjustment would drive stock negative
        """
        with transaction.atomic():
            stocktake = cls._lock_stocktake(stocktake)
            cls._require_in_progress(stocktake)

            uncounted = stocktake.lines.filter(counted_quantity__isnull=True).count()
            if uncounted:
                logger.warning(
                    "stocktake.complete.uncounted",
                    extra={"stocktake_id": stocktake.pk, "uncounted": uncounted},
                )

            applied = 0
            if apply_adjustments:
                for line in stocktake.lines.with_discrepancy().order_by('item_id'):
                    StockLedger.adjust_stock(
                        line.item_id,
                        line.discrepancy,
                        StockReason.STOCKTAKE_ADJUSTMENT,
                        note=f"Stocktake: {stocktake.name}",
                        user=user,
                        reference=(ReferenceType.STOCKTAKE, stocktake.pk),
                    )
                    applied += 1

            stocktake.status = StocktakeStatus.COMPLETED
            stocktake.completed_by = user
            stocktake.completed_by_name = display_name(user)
            stocktake.completed_at = timezone.now()
            stocktake.adjustments_applied = apply_adjustments
            stocktake.save()

        logger.info(
            "stocktake.complete",
            extra={
                "stocktake_id": stocktake.pk,
                "adjustments": applied,
                "total_discrepancy": stocktake.total_discrepancy,
            },
        )
        return stocktake

    @classmethod
    def cancel_stocktake(cls, stocktake) -> Stocktake:
        """Abandon the stocktake. No stock effect."""
        with transaction.atomic():
            stocktake = cls._lock_stocktake(stocktake)
            cls._require_in_progress(stocktake)
            stocktake.status = StocktakeStatus.CANCELLED
            stocktake.save(update_fields=['status', 'updated_at'])

        logger.info("stocktake.cancel", extra={"stocktake_id": stocktake.pk})
        return stocktake

    @classmethod
    def get_stocktake_by_id(cls, stocktake_id) -> Stocktake:
        return get_or_raise(Stocktake, stocktake_id, 'STOCKTAKE_NOT_FOUND')

    # ══════════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _lock_stocktake(cls, stocktake) -> Stocktake:
        return get_or_raise(Stocktake, stocktake, 'STOCKTAKE_NOT_FOUND', for_update=True)

    @classmethod
    def _require_in_progress(cls, stocktake: Stocktake):
        if stocktake.status != StocktakeStatus.IN_PROGRESS:
            raise InvalidTransition(
                stocktake_id=stocktake.pk,
                current=stocktake.status,
                expected=[str(StocktakeStatus.IN_PROGRESS)],
            )
