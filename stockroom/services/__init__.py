"""
Stock services — modular organization of stock operations.

Each class groups one area; stockroom.service.Inventory composes them:
    from stockroom.services import StockLedger, PurchaseOrders, Stocktakes
"""

from stockroom.services.alerts import StockAlerts
from stockroom.services.ledger import StockLedger
from stockroom.services.purchasing import PurchaseOrders
from stockroom.services.queries import InventoryStats, StockQueries
from stockroom.services.stocktakes import Stocktakes
from stockroom.services.transfers import Transfers

__all__ = [
    'StockQueries',
    'StockLedger',
    'PurchaseOrders',
    'Stocktakes',
    'Transfers',
    'StockAlerts',
    'InventoryStats',
]
