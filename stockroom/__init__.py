"""
Django Stockroom — stock ledger and fulfillment for salons.

Usage:
    from stockroom import inventory, StockError

    inventory.adjust_stock(item, 24, StockReason.RECEIVED)
    order = inventory.create_purchase_order('LOREAL', lines)
    inventory.get_inventory_stats()
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'inventory':
        from stockroom.service import Inventory
        return Inventory
    elif name == 'StockError':
        from stockroom.exceptions import StockError
        return StockError
    elif name == 'StockReason':
        from stockroom.models.enums import StockReason
        return StockReason
    elif name == 'StockItem':
        from stockroom.models.item import StockItem
        return StockItem
    elif name == 'Location':
        from stockroom.models.location import Location
        return Location
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'inventory',
    'StockError',
    'StockReason',
    'StockItem',
    'Location',
]

__version__ = '0.1.0'
