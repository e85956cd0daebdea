"""
Management command to generate low-stock alerts.

Usage:
    python manage.py generate_stock_alerts
    python manage.py generate_stock_alerts --dry-run
"""

from django.core.management.base import BaseCommand

from stockroom import inventory
from stockroom.models import LowStockAlert, StockItem
from stockroom.services.alerts import severity_for


class Command(BaseCommand):
    """Generate low-stock alerts command."""

    help = 'Creates alerts for low and out-of-stock items'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show how many alerts would be created without creating them'
        )

    def handle(self, *args, **options):
        if options['dry_run']:
            pending = 0
            for item in StockItem.objects.tracked():
                severity = severity_for(item)
                if severity is None:
                    continue
                if not LowStockAlert.objects.open().filter(item=item, severity=severity).exists():
                    pending += 1

            self.stdout.write(f'{pending} alert(s) would be created')
        else:
            created = inventory.generate_low_stock_alerts()
            self.stdout.write(
                self.style.SUCCESS(f'{len(created)} alert(s) created')
            )
