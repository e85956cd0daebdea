"""
Stockroom configuration.

Usage in settings.py:
    STOCKROOM = {
        "ORDER_NUMBER_PREFIX": "PO",
        "ALLOW_OVER_RECEIVING": True,
        "AUTO_RESOLVE_ALERTS": False,
        "ALERTS_ON_MUTATION": True,
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class StockroomSettings:
    """Stockroom configuration settings."""

    # Purchase order numbers look like "PO-2026-000042"
    ORDER_NUMBER_PREFIX: str = "PO"

    # Accept deliveries above the ordered quantity (logged as a warning)
    ALLOW_OVER_RECEIVING: bool = True

    # Resolve open low-stock alerts once stock climbs back above threshold
    AUTO_RESOLVE_ALERTS: bool = False

    # Regenerate alerts for an item after every ledger mutation
    ALERTS_ON_MUTATION: bool = True


def get_stockroom_settings() -> StockroomSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "STOCKROOM", {})
    return StockroomSettings(**{
        k: v for k, v in user_settings.items()
        if k in StockroomSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_stockroom_settings(), name)


stockroom_settings = _LazySettings()
