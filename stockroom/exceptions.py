"""
Exceptions for Stockroom.

All errors are StockError with a structured code for programmatic handling.
Subclasses group the codes by kind so callers can catch a whole family:

    InsufficientStock   stock would go negative
    NotFound            unknown item / order / stocktake / transfer
    InvalidTransition   operation not allowed in the current status
    ValidationError     bad input, rejected before any side effect
"""

from decimal import Decimal
from typing import Any


class StockError(Exception):
    """
    Structured exception for stock operations.

    Usage:
        try:
            inventory.adjust_stock(item, -10, StockReason.SOLD)
        except StockError as e:
            if e.code == 'INSUFFICIENT_STOCK':
                print(f"Only {e.available} left")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    _default_messages = {
        'INSUFFICIENT_STOCK': 'Not enough stock for this operation',
        'INVALID_QUANTITY': 'Invalid quantity',
        'INVALID_REASON': 'Unknown adjustment reason',
        'INVALID_STATUS': 'Invalid status for this operation',
        'SAME_LOCATION': 'Source and destination locations must differ',
        'UNKNOWN_LINE': 'Item is not part of this document',
        'OVER_RECEIVED': 'Received quantity exceeds ordered quantity',
        'INVALID_REFERENCE': 'Reference must be a (type, id) pair',
        'INVALID_COST': 'Invalid amount',
        'EMPTY_ORDER': 'Purchase order has no lines',
        'DUPLICATE_LINE': 'Item appears more than once',
        'ITEM_NOT_FOUND': 'Stock item not found',
        'LOCATION_NOT_FOUND': 'Location not found',
        'ORDER_NOT_FOUND': 'Purchase order not found',
        'STOCKTAKE_NOT_FOUND': 'Stocktake not found',
        'TRANSFER_NOT_FOUND': 'Stock transfer not found',
        'ALERT_NOT_FOUND': 'Alert not found',
        'ORDER_NUMBER_CONFLICT': 'Could not allocate a purchase order number',
    }

    def __init__(self, code: str, message: str | None = None, **data: Any):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    @property
    def available(self):
        """Shortcut for data['available']."""
        return self.data.get('available', 0)

    @property
    def requested(self):
        """Shortcut for data['requested']."""
        return self.data.get('requested', 0)

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: str(v) if isinstance(v, Decimal) else v
                for k, v in self.data.items()
            }
        }


class InsufficientStock(StockError):
    """Delta would drive stock below zero on an item that forbids it."""

    def __init__(self, message: str | None = None, **data: Any):
        super().__init__('INSUFFICIENT_STOCK', message, **data)


class NotFound(StockError):
    """Unknown id. Code is specific to the record kind (ITEM_NOT_FOUND, ...)."""


class InvalidTransition(StockError):
    """Operation is not allowed from the record's current status."""

    def __init__(self, message: str | None = None, **data: Any):
        super().__init__('INVALID_STATUS', message, **data)


class ValidationError(StockError):
    """Input rejected before any side effect."""
