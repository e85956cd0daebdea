"""
Tests for purchase orders: creation, lifecycle and receiving.
"""

from decimal import Decimal

import pytest
from django.utils import timezone

from stockroom import inventory
from stockroom.exceptions import (
    InsufficientStock,
    InvalidTransition,
    NotFound,
    StockError,
    ValidationError,
)
from stockroom.models import (
    PurchaseOrder,
    PurchaseOrderStatus,
    ReceivingRecord,
    StockAdjustment,
    StockReason,
)
from stockroom.services import purchasing
from stockroom.services.ledger import StockLedger


pytestmark = pytest.mark.django_db


@pytest.fixture
def order(shampoo, color, user):
    """Draft order: 10 shampoo @ 12.00, 6 color @ 7.50."""
    return inventory.create_purchase_order(
        'LOREAL',
        [
            {'item': shampoo, 'quantity_ordered': 10, 'unit_cost': Decimal('12.00')},
            {'item': color, 'quantity_ordered': 6, 'unit_cost': Decimal('7.50')},
        ],
        supplier_name="L'Oréal Professionnel",
        user=user,
        tax=Decimal('5.00'),
        shipping=Decimal('10.00'),
    )


@pytest.fixture
def sent_order(order):
    return inventory.send_purchase_order(order)


class TestCreatePurchaseOrder:
    """Tests for inventory.create_purchase_order()."""

    def test_totals(self, order):
        """subtotal = sum(qty * cost); total = subtotal + tax + shipping."""
        assert order.subtotal == Decimal('165.00')
        assert order.total == Decimal('180.00')
        assert order.status == PurchaseOrderStatus.DRAFT
        assert order.lines.count() == 2

    def test_order_number_sequence(self, order, shampoo):
        year = timezone.localdate().year
        assert order.order_number == f'PO-{year}-000001'

        second = inventory.create_purchase_order(
            'LOREAL',
            [{'item': shampoo, 'quantity_ordered': 1, 'unit_cost': 1}],
        )
        assert second.order_number == f'PO-{year}-000002'

    def test_order_number_prefix_setting(self, settings, shampoo):
        settings.STOCKROOM = {'ORDER_NUMBER_PREFIX': 'SAL'}
        order = inventory.create_purchase_order(
            'LOREAL',
            [{'item': shampoo, 'quantity_ordered': 1, 'unit_cost': 1}],
        )
        assert order.order_number.startswith('SAL-')

    def test_taken_order_number_is_retried(self, monkeypatch, order, shampoo):
        """A number claimed by a concurrent creator is skipped."""
        numbers = iter([order.order_number, 'PO-TEST-000099'])
        monkeypatch.setattr(purchasing, '_next_order_number', lambda: next(numbers))

        second = inventory.create_purchase_order(
            'LOREAL',
            [{'item': shampoo, 'quantity_ordered': 1, 'unit_cost': 1}],
        )

        assert second.order_number == 'PO-TEST-000099'
        assert second.lines.count() == 1
        assert PurchaseOrder.objects.count() == 2

    def test_order_number_conflict(self, monkeypatch, order, shampoo):
        monkeypatch.setattr(purchasing, '_next_order_number', lambda: order.order_number)

        with pytest.raises(StockError) as exc:
            inventory.create_purchase_order(
                'LOREAL',
                [{'item': shampoo, 'quantity_ordered': 1, 'unit_cost': 1}],
            )

        assert exc.value.code == 'ORDER_NUMBER_CONFLICT'
        assert exc.value.data['attempts'] == purchasing.ORDER_NUMBER_ATTEMPTS
        assert PurchaseOrder.objects.count() == 1

    def test_creator_snapshot(self, order, user):
        assert order.created_by == user
        assert order.created_by_name == 'Ana Souza'

    def test_empty_order_rejected(self):
        with pytest.raises(ValidationError) as exc:
            inventory.create_purchase_order('LOREAL', [])
        assert exc.value.code == 'EMPTY_ORDER'

    def test_duplicate_line_rejected(self, shampoo):
        line = {'item': shampoo, 'quantity_ordered': 1, 'unit_cost': 1}
        with pytest.raises(ValidationError) as exc:
            inventory.create_purchase_order('LOREAL', [line, dict(line)])
        assert exc.value.code == 'DUPLICATE_LINE'
        assert PurchaseOrder.objects.count() == 0

    def test_invalid_quantity_rejected(self, shampoo):
        with pytest.raises(ValidationError) as exc:
            inventory.create_purchase_order(
                'LOREAL', [{'item': shampoo, 'quantity_ordered': 0, 'unit_cost': 1}],
            )
        assert exc.value.code == 'INVALID_QUANTITY'

    def test_negative_cost_rejected(self, shampoo):
        with pytest.raises(ValidationError) as exc:
            inventory.create_purchase_order(
                'LOREAL', [{'item': shampoo, 'quantity_ordered': 1, 'unit_cost': '-1'}],
            )
        assert exc.value.code == 'INVALID_COST'

    def test_unknown_item(self):
        with pytest.raises(NotFound):
            inventory.create_purchase_order(
                'LOREAL', [{'item': 424242, 'quantity_ordered': 1, 'unit_cost': 1}],
            )

    def test_recalculate_totals_after_edit(self, order):
        line = order.lines.first()
        line.quantity_ordered = 20
        line.save()

        assert order.recalculate_totals() == Decimal('300.00')


class TestOrderLifecycle:
    """Send/cancel transitions."""

    def test_send(self, order):
        inventory.send_purchase_order(order)
        order.refresh_from_db()
        assert order.status == PurchaseOrderStatus.SENT

    def test_send_twice_rejected(self, sent_order):
        with pytest.raises(InvalidTransition) as exc:
            inventory.send_purchase_order(sent_order)
        assert exc.value.code == 'INVALID_STATUS'

    def test_cancel_draft(self, order):
        inventory.cancel_purchase_order(order)
        order.refresh_from_db()
        assert order.status == PurchaseOrderStatus.CANCELLED

    def test_cancel_sent(self, sent_order):
        assert inventory.cancel_purchase_order(sent_order).status == PurchaseOrderStatus.CANCELLED

    def test_cannot_receive_draft(self, order, shampoo):
        with pytest.raises(InvalidTransition):
            inventory.receive_purchase_order(order, [{'item': shampoo, 'quantity_received': 1}])

    def test_cannot_cancel_after_receiving(self, sent_order, shampoo):
        inventory.receive_purchase_order(sent_order, [{'item': shampoo, 'quantity_received': 2}])
        with pytest.raises(InvalidTransition):
            inventory.cancel_purchase_order(sent_order)

    def test_get_by_id(self, order):
        assert inventory.get_purchase_order_by_id(order.pk) == order
        with pytest.raises(NotFound) as exc:
            inventory.get_purchase_order_by_id(987654)
        assert exc.value.code == 'ORDER_NOT_FOUND'


class TestReceivePurchaseOrder:
    """Tests for inventory.receive_purchase_order()."""

    def test_partial_then_full(self, sent_order, shampoo, color):
        """Receiving 6 then 4 of 10 ends RECEIVED with stock +10."""
        inventory.receive_purchase_order(sent_order, [
            {'item': shampoo, 'quantity_received': 6},
            {'item': color, 'quantity_received': 6},
        ])
        sent_order.refresh_from_db()
        assert sent_order.status == PurchaseOrderStatus.PARTIALLY_RECEIVED
        assert sent_order.received_date is None

        inventory.receive_purchase_order(sent_order, [
            {'item': shampoo, 'quantity_received': 4},
        ])
        sent_order.refresh_from_db()
        assert sent_order.status == PurchaseOrderStatus.RECEIVED
        assert sent_order.received_date is not None

        shampoo.refresh_from_db()
        assert shampoo.current_stock == 30
        assert [line.quantity_received for line in sent_order.lines.all()] == [10, 6]

    def test_ledger_entries_reference_order(self, sent_order, shampoo):
        inventory.receive_purchase_order(sent_order, [{'item': shampoo, 'quantity_received': 3}])

        adjustment = StockAdjustment.objects.get(item=shampoo)
        assert adjustment.reason == StockReason.RECEIVED
        assert adjustment.reference == ('purchase_order', str(sent_order.pk))
        assert sent_order.order_number in adjustment.note

    def test_receiving_record(self, sent_order, shampoo, user):
        record = inventory.receive_purchase_order(
            sent_order,
            [{'item': shampoo, 'quantity_received': 3, 'notes': 'one box dented'}],
            user=user,
            notes='Morning delivery',
        )

        assert record.order_number == sent_order.order_number
        assert record.received_by_name == 'Ana Souza'
        line = record.lines.get()
        assert line.quantity_expected == 10
        assert line.quantity_received == 3
        assert line.applied is True
        assert list(inventory.get_receiving_records(sent_order)) == [record]

    def test_zero_quantity_line_no_stock_change(self, sent_order, shampoo):
        inventory.receive_purchase_order(sent_order, [{'item': shampoo, 'quantity_received': 0}])

        sent_order.refresh_from_db()
        assert sent_order.status == PurchaseOrderStatus.SENT
        assert not StockAdjustment.objects.exists()

    def test_unknown_line_rejected(self, sent_order, empty_item):
        with pytest.raises(ValidationError) as exc:
            inventory.receive_purchase_order(sent_order, [{'item': empty_item, 'quantity_received': 1}])
        assert exc.value.code == 'UNKNOWN_LINE'
        assert not ReceivingRecord.objects.exists()

    def test_negative_quantity_rejected(self, sent_order, shampoo):
        with pytest.raises(ValidationError) as exc:
            inventory.receive_purchase_order(sent_order, [{'item': shampoo, 'quantity_received': -2}])
        assert exc.value.code == 'INVALID_QUANTITY'

    def test_over_receiving_allowed_by_default(self, sent_order, shampoo):
        inventory.receive_purchase_order(sent_order, [{'item': shampoo, 'quantity_received': 12}])

        line = sent_order.lines.get(item=shampoo)
        assert line.quantity_received == 12
        assert line.is_fully_received

    def test_over_receiving_rejected_when_disabled(self, settings, sent_order, shampoo):
        settings.STOCKROOM = {'ALLOW_OVER_RECEIVING': False}

        with pytest.raises(ValidationError) as exc:
            inventory.receive_purchase_order(sent_order, [{'item': shampoo, 'quantity_received': 12}])
        assert exc.value.code == 'OVER_RECEIVED'
        shampoo.refresh_from_db()
        assert shampoo.current_stock == 20

    def test_failed_line_does_not_block_others(self, monkeypatch, sent_order, shampoo, color):
        """A line the ledger refuses is recorded but not counted as received."""
        original = StockLedger.adjust_stock

        def refuse_color(item, delta, reason, **kwargs):
            if item == color.pk:
                raise InsufficientStock(item_id=item, available=0, requested=delta)
            return original(item, delta, reason, **kwargs)

        monkeypatch.setattr(StockLedger, 'adjust_stock', refuse_color)

        record = inventory.receive_purchase_order(sent_order, [
            {'item': shampoo, 'quantity_received': 10},
            {'item': color, 'quantity_received': 6},
        ])

        lines = {line.item_id: line for line in record.lines.all()}
        assert lines[shampoo.pk].applied is True
        assert lines[color.pk].applied is False
        assert lines[color.pk].error == 'INSUFFICIENT_STOCK'

        assert sent_order.lines.get(item=color).quantity_received == 0
        assert sent_order.lines.get(item=shampoo).quantity_received == 10
        sent_order.refresh_from_db()
        assert sent_order.status == PurchaseOrderStatus.PARTIALLY_RECEIVED
        shampoo.refresh_from_db()
        assert shampoo.current_stock == 30


class TestReorder:
    """Tests for inventory.create_reorder_purchase_orders()."""

    def test_groups_by_supplier(self, shampoo, color, user):
        shampoo.current_stock = 2
        shampoo.save()

        orders = inventory.create_reorder_purchase_orders(user=user)

        assert sorted(o.supplier_code for o in orders) == ['LOREAL', 'WELLA']
        wella = next(o for o in orders if o.supplier_code == 'WELLA')
        line = wella.lines.get()
        assert line.item_id == color.pk
        assert line.quantity_ordered == 12
        assert wella.status == PurchaseOrderStatus.DRAFT

    def test_skips_items_on_open_orders(self, shampoo, color):
        inventory.create_reorder_purchase_orders()
        assert inventory.create_reorder_purchase_orders() == []

    def test_skips_items_without_supplier(self, empty_item):
        assert inventory.create_reorder_purchase_orders() == []
