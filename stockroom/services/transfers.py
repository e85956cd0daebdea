"""
Stock transfers — moving an item's stock between locations.

A transfer only redistributes location balances: the item's
current_stock is the same before and after.
"""

import logging

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from stockroom.exceptions import InsufficientStock, InvalidTransition, ValidationError
from stockroom.models import Location, StockTransfer, TransferStatus
from stockroom.services.ledger import StockLedger
from stockroom.services.lookups import display_name, get_or_raise, lock_item, pk_of

logger = logging.getLogger('stockroom')


class Transfers:
    """Transfer lifecycle methods."""

    @classmethod
    def create_stock_transfer(cls, item, from_location, to_location, quantity: int,
                              user=None, notes: str = '') -> StockTransfer:
        """
        Request a transfer. Nothing moves until it is completed.

        Both locations get a balance row if they lack one (the source is
        seeded from current_stock when the item has no breakdown yet).

        Raises:
            ValidationError('SAME_LOCATION' | 'INVALID_QUANTITY')
            InsufficientStock: Source balance is short and the item
                doesn't allow negative stock
            NotFound('ITEM_NOT_FOUND' | 'LOCATION_NOT_FOUND')
        """
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            raise ValidationError('INVALID_QUANTITY', requested=quantity)
        source = get_or_raise(Location, from_location, 'LOCATION_NOT_FOUND')
        destination = get_or_raise(Location, to_location, 'LOCATION_NOT_FOUND')
        if source.pk == destination.pk:
            raise ValidationError('SAME_LOCATION', location=source.code)

        with transaction.atomic():
            locked = lock_item(item)
            source_row = StockLedger._ensure_location_row(locked, source)
            StockLedger._ensure_location_row(locked, destination, seed_from_current=False)

            cls._check_source_balance(locked, source, source_row.quantity, quantity)

            transfer = StockTransfer.objects.create(
                item=locked,
                from_location=source,
                to_location=destination,
                quantity=quantity,
                notes=notes,
                requested_by=user,
                requested_by_name=display_name(user),
            )

        logger.info(
            "transfer.create",
            extra={
                "transfer_id": transfer.pk,
                "item_id": locked.pk,
                "from": source.code,
                "to": destination.code,
                "qty": quantity,
            },
        )
        return transfer

    @classmethod
    def complete_stock_transfer(cls, transfer, user=None) -> StockTransfer:
        """
        Move the stock and close the transfer.

        The source balance is checked again under the item lock, since
        it may have changed since the request.

        Raises:
            InvalidTransition: Transfer is not PENDING
            InsufficientStock: Source balance is now short
        """
        with transaction.atomic():
            transfer = cls._lock_transfer(transfer)
            cls._require_pending(transfer)

            locked = lock_item(transfer.item_id)
            source, destination = transfer.from_location, transfer.to_location
            source_qty = StockLedger._ensure_location_row(locked, source).quantity
            destination_qty = StockLedger._ensure_location_row(
                locked, destination, seed_from_current=False,
            ).quantity

            cls._check_source_balance(locked, source, source_qty, transfer.quantity)

            StockLedger._set_location_quantity(locked, source, source_qty - transfer.quantity)
            StockLedger._set_location_quantity(locked, destination, destination_qty + transfer.quantity)
            StockLedger.record_transfer_movement(locked, transfer, user=user)

            transfer.status = TransferStatus.COMPLETED
            transfer.completed_by = user
            transfer.completed_by_name = display_name(user)
            transfer.completed_at = timezone.now()
            transfer.save(update_fields=[
                'status', 'completed_by', 'completed_by_name', 'completed_at',
            ])

        logger.info(
            "transfer.complete",
            extra={
                "transfer_id": transfer.pk,
                "item_id": locked.pk,
                "qty": transfer.quantity,
            },
        )
        return transfer

    @classmethod
    def cancel_stock_transfer(cls, transfer) -> StockTransfer:
        """Cancel a pending transfer. No stock effect."""
        with transaction.atomic():
            transfer = cls._lock_transfer(transfer)
            cls._require_pending(transfer)
            transfer.status = TransferStatus.CANCELLED
            transfer.cancelled_at = timezone.now()
            transfer.save(update_fields=['status', 'cancelled_at'])

        logger.info("transfer.cancel", extra={"transfer_id": transfer.pk})
        return transfer

    @classmethod
    def get_stock_transfers(cls, item=None, location=None, status: str | None = None):
        """
        Transfers, newest first.

        location matches either end of the transfer.
        """
        qs = StockTransfer.objects.select_related('item', 'from_location', 'to_location')
        if item is not None:
            qs = qs.filter(item_id=pk_of(item))
        if location is not None:
            location_id = pk_of(location)
            qs = qs.filter(Q(from_location_id=location_id) | Q(to_location_id=location_id))
        if status is not None:
            qs = qs.filter(status=status)
        return qs

    # ══════════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _lock_transfer(cls, transfer) -> StockTransfer:
        return get_or_raise(StockTransfer, transfer, 'TRANSFER_NOT_FOUND', for_update=True)

    @classmethod
    def _require_pending(cls, transfer: StockTransfer):
        if transfer.status != TransferStatus.PENDING:
            raise InvalidTransition(
                transfer_id=transfer.pk,
                current=transfer.status,
                expected=[str(TransferStatus.PENDING)],
            )

    @classmethod
    def _check_source_balance(cls, item, source: Location, available: int, quantity: int):
        if available < quantity and not item.allow_negative_stock:
            raise InsufficientStock(
                item_id=item.pk,
                location=source.code,
                available=available,
                requested=quantity,
            )
