"""
Lookup helpers shared by the services.

Every public operation accepts either a model instance or its primary key.
"""

from stockroom.exceptions import NotFound
from stockroom.models import StockItem


def pk_of(obj_or_pk):
    """Primary key of an instance, or the value itself."""
    return getattr(obj_or_pk, 'pk', obj_or_pk)


def get_or_raise(model, obj_or_pk, code: str, for_update: bool = False):
    """
    Fetch a fresh row by instance or pk.

    Raises:
        NotFound(code): If the row doesn't exist
    """
    pk = pk_of(obj_or_pk)
    qs = model.objects.select_for_update() if for_update else model.objects.all()
    try:
        return qs.get(pk=pk)
    except (model.DoesNotExist, ValueError, TypeError):
        raise NotFound(code, id=pk)


def lock_item(item) -> StockItem:
    """Lock the item row. Must run inside transaction.atomic()."""
    return get_or_raise(StockItem, item, 'ITEM_NOT_FOUND', for_update=True)


def display_name(user) -> str:
    """Name snapshot stored next to user FKs."""
    if user is None:
        return ''
    full_name = user.get_full_name() if hasattr(user, 'get_full_name') else ''
    return full_name or user.get_username()
