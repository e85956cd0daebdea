"""
Pytest fixtures for Stockroom tests.
"""

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model

from stockroom.models import Location, StockItem


User = get_user_model()


@pytest.fixture
def user(db):
    """Create a test user."""
    return User.objects.create_user(
        username='ana',
        password='testpass123',
        first_name='Ana',
        last_name='Souza',
    )


@pytest.fixture
def shampoo(db):
    """Retail item, 20 in stock, threshold 5."""
    return StockItem.objects.create(
        name='Repair Shampoo 300ml',
        sku='SH-300',
        barcode='7890000000011',
        supplier_code='LOREAL',
        supplier_name="L'Oréal Professionnel",
        cost_price=Decimal('12.50'),
        retail_price=Decimal('29.90'),
        current_stock=20,
        low_stock_threshold=5,
        reorder_point=5,
        reorder_quantity=24,
    )


@pytest.fixture
def color(db):
    """Back-bar item used in services, 3 in stock."""
    return StockItem.objects.create(
        name='Hair Color 7.1',
        sku='HC-71',
        supplier_code='WELLA',
        supplier_name='Wella',
        cost_price=Decimal('8.00'),
        current_stock=3,
        low_stock_threshold=4,
        reorder_point=4,
        reorder_quantity=12,
    )


@pytest.fixture
def empty_item(db):
    """Tracked item with no stock at all."""
    return StockItem.objects.create(
        name='Styling Wax',
        sku='WX-01',
        cost_price=Decimal('5.00'),
        current_stock=0,
        low_stock_threshold=2,
    )


@pytest.fixture
def floor(db):
    """Default location."""
    return Location.objects.create(code='floor', name='Salon floor', is_default=True)


@pytest.fixture
def storeroom(db):
    return Location.objects.create(code='storeroom', name='Storeroom')


@pytest.fixture
def quiet_alerts(settings):
    """Turn off alert regeneration on ledger writes."""
    settings.STOCKROOM = {'ALERTS_ON_MUTATION': False}
