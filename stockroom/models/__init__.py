"""
Stockroom Models.

Core models for stock management:
- Location: Where stock exists
- StockItem / LocationStock: What is tracked and how much of it, where
- StockAdjustment / StockMovement: Immutable ledger of changes
- PurchaseOrder / ReceivingRecord: Ordering and receiving from suppliers
- Stocktake: Physical counts and reconciliation
- StockTransfer: Moving stock between locations
- LowStockAlert: Derived low/out-of-stock signal
"""

from stockroom.models.alert import LowStockAlert
from stockroom.models.enums import (
    AlertSeverity,
    ItemStatus,
    MovementType,
    PurchaseOrderStatus,
    ReferenceType,
    StockReason,
    StocktakeStatus,
    TransferStatus,
)
from stockroom.models.item import LocationStock, StockItem
from stockroom.models.ledger import StockAdjustment, StockMovement
from stockroom.models.location import Location
from stockroom.models.purchasing import (
    PurchaseOrder,
    PurchaseOrderLine,
    ReceivingRecord,
    ReceivingRecordLine,
)
from stockroom.models.stocktake import Stocktake, StocktakeLine
from stockroom.models.transfer import StockTransfer

__all__ = [
    'AlertSeverity',
    'ItemStatus',
    'MovementType',
    'PurchaseOrderStatus',
    'ReferenceType',
    'StockReason',
    'StocktakeStatus',
    'TransferStatus',
    'Location',
    'StockItem',
    'LocationStock',
    'StockAdjustment',
    'StockMovement',
    'PurchaseOrder',
    'PurchaseOrderLine',
    'ReceivingRecord',
    'ReceivingRecordLine',
    'Stocktake',
    'StocktakeLine',
    'StockTransfer',
    'LowStockAlert',
]
