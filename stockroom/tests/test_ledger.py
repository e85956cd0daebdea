"""
Tests for the stock ledger: adjust_stock and the audit trail.
"""

import pytest

from stockroom import inventory, StockError
from stockroom.exceptions import InsufficientStock, NotFound, ValidationError
from stockroom.models import (
    LocationStock,
    MovementType,
    ReferenceType,
    StockAdjustment,
    StockItem,
    StockMovement,
    StockReason,
)


pytestmark = pytest.mark.django_db


class TestAdjustStock:
    """Tests for inventory.adjust_stock()."""

    def test_inbound_adjustment(self, shampoo, user):
        """Positive delta raises stock and records adjustment + IN movement."""
        adjustment = inventory.adjust_stock(shampoo, 12, StockReason.RECEIVED, user=user)

        shampoo.refresh_from_db()
        assert shampoo.current_stock == 32
        assert adjustment.previous_quantity == 20
        assert adjustment.adjustment_quantity == 12
        assert adjustment.new_quantity == 32
        assert adjustment.user_name == 'Ana Souza'

        movement = adjustment.movement
        assert movement.movement_type == MovementType.IN
        assert movement.quantity == 12
        assert movement.previous_stock == 20
        assert movement.new_stock == 32
        assert movement.timestamp == adjustment.timestamp

    def test_outbound_adjustment(self, shampoo):
        """Negative delta records an OUT movement with absolute quantity."""
        adjustment = inventory.adjust_stock(shampoo, -3, StockReason.USED_IN_SERVICE)

        assert adjustment.movement.movement_type == MovementType.OUT
        assert adjustment.movement.quantity == 3
        assert StockItem.objects.get(pk=shampoo.pk).current_stock == 17

    def test_syncs_passed_instance(self, shampoo):
        """The caller's instance reflects the new stock."""
        inventory.adjust_stock(shampoo, -5, StockReason.SOLD)
        assert shampoo.current_stock == 15

    def test_accepts_pk(self, shampoo):
        inventory.adjust_stock(shampoo.pk, 1, StockReason.RETURNED)
        shampoo.refresh_from_db()
        assert shampoo.current_stock == 21

    def test_reference_is_stored(self, shampoo):
        adjustment = inventory.adjust_stock(
            shampoo, -1, StockReason.SOLD,
            reference=(ReferenceType.SALE, 'S-1001'),
        )
        assert adjustment.reference == ('sale', 'S-1001')
        assert adjustment.movement.reference_id == 'S-1001'

    def test_conservation(self, shampoo):
        """Final stock = initial + sum of deltas."""
        deltas = [5, -3, -7, 10, -1]
        for delta in deltas:
            reason = StockReason.RECEIVED if delta > 0 else StockReason.SOLD
            inventory.adjust_stock(shampoo, delta, reason)

        shampoo.refresh_from_db()
        assert shampoo.current_stock == 20 + sum(deltas)

    def test_ledger_completeness(self, shampoo):
        """Each adjustment chains previous -> new, one movement per adjustment."""
        for delta in [4, -2, -6]:
            inventory.adjust_stock(shampoo, delta, StockReason.OTHER)

        adjustments = list(StockAdjustment.objects.filter(item=shampoo).order_by('id'))
        assert len(adjustments) == 3
        assert StockMovement.objects.filter(item=shampoo).count() == 3

        previous = 20
        for adj in adjustments:
            assert adj.previous_quantity == previous
            assert adj.new_quantity == adj.previous_quantity + adj.adjustment_quantity
            previous = adj.new_quantity


class TestNegativeGuard:
    """Stock never goes negative unless the item allows it."""

    def test_insufficient_stock_rejected(self, color):
        with pytest.raises(InsufficientStock) as exc:
            inventory.adjust_stock(color, -5, StockReason.USED_IN_SERVICE)

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert exc.value.available == 3
        assert exc.value.requested == 5

    def test_rejected_adjustment_leaves_no_trace(self, color):
        with pytest.raises(StockError):
            inventory.adjust_stock(color, -5, StockReason.USED_IN_SERVICE)

        color.refresh_from_db()
        assert color.current_stock == 3
        assert not StockAdjustment.objects.filter(item=color).exists()
        assert not StockMovement.objects.filter(item=color).exists()

    def test_down_to_zero_allowed(self, color):
        inventory.adjust_stock(color, -3, StockReason.USED_IN_SERVICE)
        color.refresh_from_db()
        assert color.current_stock == 0

    def test_allow_negative_stock(self, color):
        color.allow_negative_stock = True
        color.save()

        inventory.adjust_stock(color, -5, StockReason.SOLD)

        color.refresh_from_db()
        assert color.current_stock == -2


class TestAdjustValidation:
    """Bad input is rejected before anything is written."""

    def test_zero_delta(self, shampoo):
        with pytest.raises(ValidationError) as exc:
            inventory.adjust_stock(shampoo, 0, StockReason.OTHER)
        assert exc.value.code == 'INVALID_QUANTITY'

    def test_non_integer_delta(self, shampoo):
        with pytest.raises(ValidationError):
            inventory.adjust_stock(shampoo, 1.5, StockReason.OTHER)

    def test_unknown_reason(self, shampoo):
        with pytest.raises(ValidationError) as exc:
            inventory.adjust_stock(shampoo, 1, 'gift')
        assert exc.value.code == 'INVALID_REASON'

    def test_bad_reference(self, shampoo):
        with pytest.raises(ValidationError) as exc:
            inventory.adjust_stock(shampoo, 1, StockReason.OTHER, reference='PO-1')
        assert exc.value.code == 'INVALID_REFERENCE'

    def test_unknown_item(self):
        with pytest.raises(NotFound) as exc:
            inventory.adjust_stock(999999, 1, StockReason.OTHER)
        assert exc.value.code == 'ITEM_NOT_FOUND'

    def test_nothing_written(self, shampoo):
        with pytest.raises(ValidationError):
            inventory.adjust_stock(shampoo, 0, StockReason.OTHER)
        assert StockAdjustment.objects.count() == 0


class TestImmutability:
    """Ledger rows cannot be changed or deleted."""

    def test_adjustment_cannot_be_updated(self, shampoo):
        adjustment = inventory.adjust_stock(shampoo, 1, StockReason.OTHER)
        adjustment.note = 'edited'
        with pytest.raises(ValueError):
            adjustment.save()

    def test_movement_cannot_be_deleted(self, shampoo):
        inventory.adjust_stock(shampoo, 1, StockReason.OTHER)
        movement = StockMovement.objects.get(item=shampoo)
        with pytest.raises(ValueError):
            movement.delete()


class TestLocationBalances:
    """Items with a location breakdown keep current_stock = sum of balances."""

    def test_first_location_seeded_with_current_stock(self, shampoo, floor, storeroom):
        assert inventory.ensure_location_stock(shampoo, floor) == 20
        assert inventory.ensure_location_stock(shampoo, storeroom) == 0

    def test_unseeded_first_location_resets_total(self, shampoo, floor):
        assert inventory.ensure_location_stock(shampoo, floor, seed_from_current=False) == 0
        assert shampoo.current_stock == 0
        assert StockItem.objects.get(pk=shampoo.pk).current_stock == 0

    def test_adjust_lands_on_default_location(self, shampoo, floor, storeroom):
        inventory.ensure_location_stock(shampoo, floor)
        inventory.ensure_location_stock(shampoo, storeroom)

        adjustment = inventory.adjust_stock(shampoo, -4, StockReason.SOLD)

        assert adjustment.location == floor
        assert LocationStock.objects.get(item=shampoo, location=floor).quantity == 16
        shampoo.refresh_from_db()
        assert shampoo.current_stock == 16
        assert shampoo.location_total() == 16

    def test_adjust_explicit_location(self, shampoo, floor, storeroom):
        inventory.ensure_location_stock(shampoo, floor)

        adjustment = inventory.adjust_stock(shampoo, 6, StockReason.RECEIVED, location=storeroom)

        assert adjustment.movement.to_location == storeroom
        assert LocationStock.objects.get(item=shampoo, location=storeroom).quantity == 6
        assert LocationStock.objects.get(item=shampoo, location=floor).quantity == 20
        shampoo.refresh_from_db()
        assert shampoo.current_stock == 26

    def test_location_balance_guard(self, shampoo, floor, storeroom):
        """A location cannot go below zero even when the total could."""
        inventory.ensure_location_stock(shampoo, floor)
        inventory.ensure_location_stock(shampoo, storeroom)

        with pytest.raises(InsufficientStock) as exc:
            inventory.adjust_stock(shampoo, -1, StockReason.DAMAGED, location=storeroom)
        assert exc.value.data['location'] == 'storeroom'

    def test_sale_after_transfer(self, shampoo, floor, storeroom):
        """Without a location, outbound stock is drawn across balances."""
        transfer = inventory.create_stock_transfer(shampoo, floor, storeroom, 15)
        inventory.complete_stock_transfer(transfer)

        adjustment = inventory.adjust_stock(shampoo, -8, StockReason.SOLD)

        assert adjustment.location == floor
        assert adjustment.new_quantity == 12
        assert LocationStock.objects.get(item=shampoo, location=floor).quantity == 0
        assert LocationStock.objects.get(item=shampoo, location=storeroom).quantity == 12
        shampoo.refresh_from_db()
        assert shampoo.current_stock == 12

    def test_sale_beyond_total_rejected(self, shampoo, floor, storeroom):
        transfer = inventory.create_stock_transfer(shampoo, floor, storeroom, 15)
        inventory.complete_stock_transfer(transfer)

        with pytest.raises(InsufficientStock) as exc:
            inventory.adjust_stock(shampoo, -21, StockReason.SOLD)

        assert exc.value.available == 20
        assert LocationStock.objects.get(item=shampoo, location=floor).quantity == 5

    def test_negative_remainder_on_default_location(self, color, floor, storeroom):
        color.allow_negative_stock = True
        color.save()
        inventory.ensure_location_stock(color, floor)
        inventory.ensure_location_stock(color, storeroom)

        inventory.adjust_stock(color, -5, StockReason.SOLD)

        assert LocationStock.objects.get(item=color, location=floor).quantity == -2
        assert LocationStock.objects.get(item=color, location=storeroom).quantity == 0
        color.refresh_from_db()
        assert color.current_stock == -2

    def test_stock_by_location(self, shampoo, floor, storeroom):
        inventory.ensure_location_stock(shampoo, floor)
        inventory.ensure_location_stock(shampoo, storeroom)

        balances = inventory.get_stock_by_location(shampoo)

        assert [(b.location.code, b.quantity) for b in balances] == [
            ('floor', 20),
            ('storeroom', 0),
        ]


class TestLedgerQueries:
    """Tests for get_stock_movements() / get_stock_adjustments()."""

    def test_newest_first(self, shampoo):
        first = inventory.adjust_stock(shampoo, 1, StockReason.OTHER)
        second = inventory.adjust_stock(shampoo, 2, StockReason.OTHER)

        assert list(inventory.get_stock_adjustments(shampoo)) == [second, first]
        movements = list(inventory.get_stock_movements(shampoo))
        assert movements[0].adjustment == second

    def test_filter_by_item(self, shampoo, color):
        inventory.adjust_stock(shampoo, 1, StockReason.OTHER)
        inventory.adjust_stock(color, 1, StockReason.OTHER)

        assert inventory.get_stock_movements(shampoo).count() == 1
        assert inventory.get_stock_movements().count() == 2
