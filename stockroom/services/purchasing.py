"""
Purchase orders — ordering from suppliers and receiving deliveries.

Receiving feeds the ledger through StockLedger.adjust_stock, one call
per delivered line.
"""

import logging
from collections import defaultdict
from decimal import Decimal, InvalidOperation

from django.db import IntegrityError, transaction
from django.utils import timezone

from stockroom.conf import stockroom_settings
from stockroom.exceptions import InvalidTransition, StockError, ValidationError
from stockroom.models import (
    PurchaseOrder,
    PurchaseOrderLine,
    PurchaseOrderStatus,
    ReceivingRecord,
    ReceivingRecordLine,
    ReferenceType,
    StockItem,
    StockReason,
)
from stockroom.services.ledger import StockLedger
from stockroom.services.lookups import display_name, get_or_raise, pk_of

logger = logging.getLogger('stockroom')

OPEN_STATUSES = [
    PurchaseOrderStatus.DRAFT,
    PurchaseOrderStatus.SENT,
    PurchaseOrderStatus.PARTIALLY_RECEIVED,
]

ORDER_NUMBER_ATTEMPTS = 5


def _next_order_number() -> str:
    """PREFIX-YEAR-000001, sequential per prefix and year."""
    prefix = f"{stockroom_settings.ORDER_NUMBER_PREFIX}-{timezone.localdate().year}-"
    last = (
        PurchaseOrder.objects.filter(order_number__startswith=prefix)
        .order_by('-order_number')
        .values_list('order_number', flat=True)
        .first()
    )
    seq = int(last.rsplit('-', 1)[1]) + 1 if last else 1
    return f"{prefix}{seq:06d}"


def _as_money(value, field: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError('INVALID_COST', field=field, value=str(value))
    if amount < 0:
        raise ValidationError('INVALID_COST', field=field, value=str(value))
    return amount


def _is_count(value, allow_zero: bool) -> bool:
    if not isinstance(value, int) or isinstance(value, bool):
        return False
    return value >= 0 if allow_zero else value > 0


class PurchaseOrders:
    """Purchase order lifecycle methods."""

    @classmethod
    def create_purchase_order(cls, supplier_code: str, lines, supplier_name: str = '',
                              user=None, tax=0, shipping=0, expected_delivery_date=None,
                              notes: str = '') -> PurchaseOrder:
        """
        Create a DRAFT purchase order.

        Args:
            supplier_code: Supplier identifier (catalog-owned)
            lines: Iterable of dicts with 'item' (StockItem or pk),
                'quantity_ordered', 'unit_cost' and optional 'notes'

        Totals are computed here, once:
            subtotal = Σ quantity_ordered × unit_cost
            total = subtotal + tax + shipping

        Raises:
            ValidationError('EMPTY_ORDER'): No lines
            ValidationError('DUPLICATE_LINE'): Same item twice
            ValidationError('INVALID_QUANTITY' | 'INVALID_COST')
            NotFound('ITEM_NOT_FOUND')
            StockError('ORDER_NUMBER_CONFLICT'): No free order number after
                ORDER_NUMBER_ATTEMPTS tries
        """
        lines = list(lines)
        if not lines:
            raise ValidationError('EMPTY_ORDER')

        tax = _as_money(tax, 'tax')
        shipping = _as_money(shipping, 'shipping')

        prepared = []
        seen = set()
        for raw in lines:
            item = get_or_raise(StockItem, raw['item'], 'ITEM_NOT_FOUND')
            if item.pk in seen:
                raise ValidationError('DUPLICATE_LINE', item_id=item.pk)
            seen.add(item.pk)
            quantity = raw.get('quantity_ordered')
            if not _is_count(quantity, allow_zero=False):
                raise ValidationError('INVALID_QUANTITY', item_id=item.pk, requested=quantity)
            unit_cost = _as_money(raw.get('unit_cost', item.cost_price), 'unit_cost')
            prepared.append((item, quantity, unit_cost, raw.get('notes', '')))

        with transaction.atomic():
            order = cls._create_numbered_order(
                supplier_code=supplier_code,
                supplier_name=supplier_name,
                tax=tax,
                shipping=shipping,
                expected_delivery_date=expected_delivery_date,
                notes=notes,
                created_by=user,
                created_by_name=display_name(user),
            )
            PurchaseOrderLine.objects.bulk_create([
                PurchaseOrderLine(
                    order=order,
                    item=item,
                    quantity_ordered=quantity,
                    unit_cost=unit_cost,
                    notes=line_notes,
                )
                for item, quantity, unit_cost, line_notes in prepared
            ])
            order.recalculate_totals()

        logger.info(
            "po.create",
            extra={
                "order_id": order.pk,
                "order_number": order.order_number,
                "supplier": supplier_code,
                "lines": len(prepared),
                "total": str(order.total),
            },
        )
        return order

    @classmethod
    def send_purchase_order(cls, order) -> PurchaseOrder:
        """
        Mark order as sent to the supplier.

        Transition: DRAFT → SENT
        """
        with transaction.atomic():
            order = cls._lock_order(order)
            cls._require_status(order, [PurchaseOrderStatus.DRAFT])
            order.status = PurchaseOrderStatus.SENT
            order.save(update_fields=['status', 'updated_at'])

        logger.info("po.send", extra={"order_id": order.pk})
        return order

    @classmethod
    def cancel_purchase_order(cls, order) -> PurchaseOrder:
        """
        Cancel an order nothing has been received against.

        Transition: DRAFT|SENT → CANCELLED
        """
        with transaction.atomic():
            order = cls._lock_order(order)
            cls._require_status(order, [PurchaseOrderStatus.DRAFT, PurchaseOrderStatus.SENT])
            order.status = PurchaseOrderStatus.CANCELLED
            order.save(update_fields=['status', 'updated_at'])

        logger.info("po.cancel", extra={"order_id": order.pk})
        return order

    @classmethod
    def receive_purchase_order(cls, order, received_lines, user=None,
                               notes: str = '') -> ReceivingRecord:
        """
        Receive a (possibly partial) delivery.

        Input is validated up front: unknown items, duplicates, bad
        quantities and (with ALLOW_OVER_RECEIVING off) over-receiving
        reject the whole call before anything is written.

        After that, lines are independent (best effort): each line with
        quantity > 0 is one adjust_stock(+q, RECEIVED) call. A line the
        ledger refuses is kept on the receiving record with applied=False
        and its error code, is not added to quantity_received, and does
        not undo the other lines.

        Status afterwards:
            every line fully received → RECEIVED (received_date set)
            any line received         → PARTIALLY_RECEIVED
            otherwise                 → unchanged

        Not idempotent: submitting the same delivery twice counts it twice.

        Args:
            received_lines: Iterable of dicts with 'item' (StockItem or pk),
                'quantity_received' and optional 'notes'

        Raises:
            InvalidTransition: Order is not SENT or PARTIALLY_RECEIVED
            ValidationError('UNKNOWN_LINE' | 'DUPLICATE_LINE' |
                'INVALID_QUANTITY' | 'OVER_RECEIVED')
            NotFound('ORDER_NOT_FOUND')
        """
        with transaction.atomic():
            order = cls._lock_order(order)
            cls._require_status(order, [
                PurchaseOrderStatus.SENT,
                PurchaseOrderStatus.PARTIALLY_RECEIVED,
            ])

            po_lines = {
                line.item_id: line
                for line in order.lines.select_for_update()
            }

            parsed = []
            seen = set()
            for raw in received_lines:
                item_id = pk_of(raw['item'])
                line = po_lines.get(item_id)
                if line is None:
                    raise ValidationError('UNKNOWN_LINE', order_id=order.pk, item_id=item_id)
                if item_id in seen:
                    raise ValidationError('DUPLICATE_LINE', item_id=item_id)
                seen.add(item_id)

                quantity = raw.get('quantity_received', 0)
                if not _is_count(quantity, allow_zero=True):
                    raise ValidationError('INVALID_QUANTITY', item_id=item_id, requested=quantity)

                if line.quantity_received + quantity > line.quantity_ordered:
                    if not stockroom_settings.ALLOW_OVER_RECEIVING:
                        raise ValidationError(
                            'OVER_RECEIVED',
                            item_id=item_id,
                            ordered=line.quantity_ordered,
                            received=line.quantity_received + quantity,
                        )
                    logger.warning(
                        "po.receive.over_received",
                        extra={
                            "order_id": order.pk,
                            "item_id": item_id,
                            "ordered": line.quantity_ordered,
                            "received": line.quantity_received + quantity,
                        },
                    )
                parsed.append((line, quantity, raw.get('notes', '')))

            record = ReceivingRecord.objects.create(
                order=order,
                order_number=order.order_number,
                supplier_code=order.supplier_code,
                supplier_name=order.supplier_name,
                received_by=user,
                received_by_name=display_name(user),
                notes=notes,
            )

            for line, quantity, line_notes in parsed:
                applied, error = True, ''
                if quantity > 0:
                    try:
                        StockLedger.adjust_stock(
                            line.item_id,
                            quantity,
                            StockReason.RECEIVED,
                            note=f"Received from PO {order.order_number}",
                            user=user,
                            reference=(ReferenceType.PURCHASE_ORDER, order.pk),
                        )
                    except StockError as exc:
                        applied, error = False, exc.code
                        logger.warning(
                            "po.receive.line_failed",
                            extra={
                                "order_id": order.pk,
                                "item_id": line.item_id,
                                "qty": quantity,
                                "error": exc.code,
                            },
                        )
                    else:
                        line.quantity_received += quantity
                        line.save(update_fields=['quantity_received'])

                ReceivingRecordLine.objects.create(
                    record=record,
                    item_id=line.item_id,
                    quantity_expected=line.quantity_ordered,
                    quantity_received=quantity,
                    notes=line_notes,
                    applied=applied,
                    error=error,
                )

            all_lines = po_lines.values()
            if all(line.is_fully_received for line in all_lines):
                order.status = PurchaseOrderStatus.RECEIVED
                order.received_date = timezone.now()
            elif any(line.quantity_received > 0 for line in all_lines):
                order.status = PurchaseOrderStatus.PARTIALLY_RECEIVED
            order.save(update_fields=['status', 'received_date', 'updated_at'])

        logger.info(
            "po.receive",
            extra={
                "order_id": order.pk,
                "record_id": record.pk,
                "status": order.status,
                "lines": len(parsed),
            },
        )
        return record

    @classmethod
    def create_reorder_purchase_orders(cls, user=None) -> list[PurchaseOrder]:
        """
        Quick reorder: one DRAFT order per supplier for items at or
        under their reorder point.

        Skips items without a supplier or reorder quantity, and items
        already on an open order.
        """
        on_order = PurchaseOrderLine.objects.filter(
            order__status__in=OPEN_STATUSES,
        ).values_list('item_id', flat=True)

        candidates = (
            StockItem.objects.needs_reorder()
            .exclude(supplier_code='')
            .filter(reorder_quantity__gt=0)
            .exclude(pk__in=on_order)
            .order_by('supplier_code', 'name')
        )

        by_supplier = defaultdict(list)
        for item in candidates:
            by_supplier[item.supplier_code].append(item)

        orders = []
        for supplier_code, items in by_supplier.items():
            orders.append(cls.create_purchase_order(
                supplier_code,
                [
                    {
                        'item': item,
                        'quantity_ordered': item.reorder_quantity,
                        'unit_cost': item.cost_price,
                    }
                    for item in items
                ],
                supplier_name=items[0].supplier_name,
                user=user,
                notes='Reorder from low stock',
            ))
        return orders

    @classmethod
    def get_purchase_order_by_id(cls, order_id) -> PurchaseOrder:
        return get_or_raise(PurchaseOrder, order_id, 'ORDER_NOT_FOUND')

    @classmethod
    def get_receiving_records(cls, order=None):
        """Receiving records, newest first. None = all orders."""
        qs = ReceivingRecord.objects.prefetch_related('lines')
        if order is not None:
            qs = qs.filter(order_id=pk_of(order))
        return qs

    # ══════════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _create_numbered_order(cls, **fields) -> PurchaseOrder:
        """
        Create the order under the next free number.

        Concurrent creators can compute the same number; the loser hits
        the unique constraint, rolls back its savepoint and reads again.
        """
        for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
            order_number = _next_order_number()
            try:
                with transaction.atomic():
                    return PurchaseOrder.objects.create(order_number=order_number, **fields)
            except IntegrityError:
                logger.warning(
                    "po.create.number_taken",
                    extra={"order_number": order_number, "attempt": attempt},
                )
        raise StockError('ORDER_NUMBER_CONFLICT', attempts=ORDER_NUMBER_ATTEMPTS)

    @classmethod
    def _lock_order(cls, order) -> PurchaseOrder:
        return get_or_raise(PurchaseOrder, order, 'ORDER_NOT_FOUND', for_update=True)

    @classmethod
    def _require_status(cls, order: PurchaseOrder, expected: list):
        if order.status not in expected:
            raise InvalidTransition(
                order_id=order.pk,
                current=order.status,
                expected=[str(s) for s in expected],
            )
