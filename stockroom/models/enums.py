"""
Enums for Stockroom models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class ItemStatus(models.TextChoices):
    ACTIVE = 'active', _('Active')
    INACTIVE = 'inactive', _('Inactive')


class StockReason(models.TextChoices):
    """Why stock changed. Closed set: every ledger entry carries one."""
    RECEIVED = 'received', _('Received')
    SOLD = 'sold', _('Sold')
    DAMAGED = 'damaged', _('Damaged')
    EXPIRED = 'expired', _('Expired')
    LOST = 'lost', _('Lost')
    STOLEN = 'stolen', _('Stolen')
    RETURNED = 'returned', _('Returned')
    USED_IN_SERVICE = 'used_in_service', _('Used in service')
    TRANSFER_IN = 'transfer_in', _('Transfer in')
    TRANSFER_OUT = 'transfer_out', _('Transfer out')
    STOCKTAKE_ADJUSTMENT = 'stocktake_adjustment', _('Stocktake adjustment')
    INITIAL_STOCK = 'initial_stock', _('Initial stock')
    OTHER = 'other', _('Other')


class ReferenceType(models.TextChoices):
    """Kind of document a ledger entry points back to."""
    PURCHASE_ORDER = 'purchase_order', _('Purchase order')
    SALE = 'sale', _('Sale')
    STOCKTAKE = 'stocktake', _('Stocktake')
    TRANSFER = 'transfer', _('Transfer')


class MovementType(models.TextChoices):
    """
    Direction of a movement.

    IN/OUT:   paired with an adjustment, sign of the delta.
    TRANSFER: stock changed location, total unchanged (no adjustment).
    """
    IN = 'in', _('In')
    OUT = 'out', _('Out')
    TRANSFER = 'transfer', _('Transfer')


class PurchaseOrderStatus(models.TextChoices):
    """Purchase order lifecycle status."""
    DRAFT = 'draft', _('Draft')
    SENT = 'sent', _('Sent')
    PARTIALLY_RECEIVED = 'partially_received', _('Partially received')
    RECEIVED = 'received', _('Received')
    CANCELLED = 'cancelled', _('Cancelled')


class StocktakeStatus(models.TextChoices):
    IN_PROGRESS = 'in_progress', _('In progress')
    COMPLETED = 'completed', _('Completed')
    CANCELLED = 'cancelled', _('Cancelled')


class TransferStatus(models.TextChoices):
    PENDING = 'pending', _('Pending')
    COMPLETED = 'completed', _('Completed')
    CANCELLED = 'cancelled', _('Cancelled')


class AlertSeverity(models.TextChoices):
    WARNING = 'warning', _('Warning')      # at or under threshold
    CRITICAL = 'critical', _('Critical')   # out of stock
