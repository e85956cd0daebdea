"""
Inventory — the single public interface for all stock operations.

Usage:
    from stockroom import inventory, StockError
    from stockroom.models import StockReason

    inventory.adjust_stock(shampoo, 12, StockReason.RECEIVED)
    inventory.adjust_stock(shampoo, -1, StockReason.USED_IN_SERVICE)
    inventory.get_low_stock_items()

IMPORTANT: All state-changing methods use atomic transactions and lock
the rows they change. See each method's docstring.
"""

from stockroom.services import (
    PurchaseOrders,
    StockAlerts,
    StockLedger,
    StockQueries,
    Stocktakes,
    Transfers,
)


class Inventory(
    StockQueries,
    StockLedger,
    PurchaseOrders,
    Stocktakes,
    Transfers,
    StockAlerts,
):
    """
    Single interface for all stock operations.

    Composes the service classes; every method is a classmethod, so
    the class itself is used, never an instance.
    """
